"""Тесты загрузки файловых конфигураций и env-переопределений head-K."""

from __future__ import annotations

import json

import pytest

from nema.config import Settings
from nema.exceptions import ConfigurationError
from nema.models.config import FailureClustersConfig
from nema.services.config_service import (
    apply_failure_cluster_overrides,
    load_budget_config,
    load_reporting_config,
    read_json_config,
)


@pytest.fixture
def settings(monkeypatch, tmp_path):
    """Фабрика Settings без влияния окружения и .env."""
    monkeypatch.chdir(tmp_path)
    for name in ("POSTMAN_HEADK_K", "POSTMAN_HEADK_THRESHOLD", "POSTMAN_HEADK_GATE_ON"):
        monkeypatch.delenv(name, raising=False)

    def _make(**overrides) -> Settings:
        return Settings(**overrides)

    return _make


def _write(path, payload) -> str:
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Файлы конфигурации
# ---------------------------------------------------------------------------

def test_missing_config_files_give_defaults(tmp_path) -> None:
    budgets = load_budget_config(tmp_path / "nope.json")
    reporting = load_reporting_config(tmp_path / "nope.json")

    assert budgets.config_path is None
    assert budgets.config.fail_on_budget_breach is False
    assert budgets.config.global_ is None
    assert reporting.config_path is None
    clusters = reporting.config.failure_clusters
    assert (clusters.top_n, clusters.head_k, clusters.head_k_threshold_percent) == (10, 3, 70)
    assert clusters.fail_on_head_k_threshold_breach is False
    assert clusters.examples_per_cluster == 3
    assert clusters.normalize_messages is True
    assert clusters.normalization.strip_uuid is True
    assert clusters.normalization.strip_email is False


def test_budget_file_is_loaded(tmp_path) -> None:
    path = _write(tmp_path / "budgets.json", {
        "failOnBudgetBreach": True,
        "global": {"responseTime": {"p95": 300}},
        "paths": {"/api/v1": {"responseTime": {"p95": 250}}},
    })

    loaded = load_budget_config(path)

    assert loaded.config_path == path
    assert loaded.config.fail_on_budget_breach is True
    assert loaded.config.global_.response_time.p95 == 300
    assert loaded.config.paths["/api/v1"].response_time.p95 == 250


@pytest.mark.parametrize("payload", ["{not json", "[1, 2]", '{"failOnBudgetBreach": "maybe"}'])
def test_malformed_budget_file_falls_back_to_defaults(tmp_path, caplog, payload: str) -> None:
    path = _write(tmp_path / "budgets.json", payload)

    with caplog.at_level("WARNING"):
        loaded = load_budget_config(path)

    assert loaded.config_path is None
    assert loaded.config.fail_on_budget_breach is False
    assert "бюджетов" in caplog.text


def test_partial_failure_clusters_are_merged_with_defaults(tmp_path) -> None:
    path = _write(tmp_path / "newman-config.json", {
        "failureClusters": {"headK": 5, "normalization": {"stripEmail": True}},
    })

    loaded = load_reporting_config(path)
    clusters = loaded.config.failure_clusters

    assert loaded.config_path == path
    assert clusters.head_k == 5
    assert clusters.top_n == 10
    assert clusters.head_k_threshold_percent == 70
    assert clusters.normalization.strip_email is True
    assert clusters.normalization.strip_uuid is True


def test_malformed_reporting_file_falls_back_to_defaults(tmp_path, caplog) -> None:
    path = _write(tmp_path / "newman-config.json", "{{{")

    with caplog.at_level("WARNING"):
        loaded = load_reporting_config(path)

    assert loaded.config_path is None
    assert loaded.config.failure_clusters.head_k == 3
    assert "отчёта" in caplog.text


def test_read_json_config_raises_configuration_error(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("nope", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        read_json_config(path)
    assert read_json_config(tmp_path / "absent.json") is None


# ---------------------------------------------------------------------------
# Env-переопределения
# ---------------------------------------------------------------------------

def test_no_overrides_keep_file_source(settings) -> None:
    config, meta = apply_failure_cluster_overrides(FailureClustersConfig(), settings())

    assert config == FailureClustersConfig()
    assert meta.source == "file"
    assert meta.overrides_applied == {}
    assert meta.warnings == []


def test_valid_overrides_are_applied(settings) -> None:
    config, meta = apply_failure_cluster_overrides(
        FailureClustersConfig(),
        settings(headk_k="2", headk_threshold="55.5", headk_gate_on="TRUE"),
    )

    assert config.head_k == 2
    assert config.head_k_threshold_percent == 55.5
    assert config.fail_on_head_k_threshold_breach is True
    assert meta.source == "env"
    assert meta.overrides_applied == {"headK": True, "threshold": True, "gateOn": True}


def test_override_equal_to_file_value_is_not_marked_applied(settings) -> None:
    _, meta = apply_failure_cluster_overrides(
        FailureClustersConfig(), settings(headk_k="3", headk_gate_on="0"),
    )

    assert meta.overrides_applied == {"headK": False, "gateOn": False}
    assert meta.source == "file"


@pytest.mark.parametrize(("raw", "expected"), [("0", 1), ("-5", 1), ("250", 100), ("100", 100), ("1", 1)])
def test_threshold_is_clamped_to_range(settings, raw: str, expected: int) -> None:
    config, meta = apply_failure_cluster_overrides(FailureClustersConfig(), settings(headk_threshold=raw))

    assert config.head_k_threshold_percent == expected
    clamped = raw not in ("100", "1")
    assert bool(meta.warnings) is clamped


@pytest.mark.parametrize(
    "env",
    [
        {"headk_k": "zero"},
        {"headk_k": "0"},
        {"headk_k": "2.5"},
        {"headk_threshold": "high"},
        {"headk_gate_on": "yes"},
    ],
)
def test_invalid_overrides_are_ignored_with_warning(settings, env: dict) -> None:
    config, meta = apply_failure_cluster_overrides(FailureClustersConfig(), settings(**env))

    assert config == FailureClustersConfig()
    assert len(meta.warnings) == 1
    assert meta.overrides_applied == {}
    assert meta.source == "file"


def test_reporting_config_applies_env_overrides_from_settings(tmp_path, settings) -> None:
    path = _write(tmp_path / "newman-config.json", {"failureClusters": {"headK": 4}})

    loaded = load_reporting_config(path, settings(headk_k="1", headk_gate_on="1"))

    assert loaded.config.failure_clusters.head_k == 1
    assert loaded.config.failure_clusters.fail_on_head_k_threshold_breach is True
    assert loaded.meta.source == "env"
    assert loaded.meta.overrides_applied == {"headK": True, "gateOn": True}


def test_blank_overrides_are_skipped_without_warning(settings) -> None:
    config, meta = apply_failure_cluster_overrides(
        FailureClustersConfig(), settings(headk_k="", headk_threshold=" ", headk_gate_on=""),
    )

    assert config == FailureClustersConfig()
    assert meta.warnings == []
    assert meta.overrides_applied == {}
    assert meta.source == "file"
