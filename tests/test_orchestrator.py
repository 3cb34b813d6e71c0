"""Тесты полного pipeline анализа прогона."""

from __future__ import annotations

from datetime import datetime, timezone

from nema.models.config import BudgetConfig, ReportingConfig
from nema.models.report import ReportingMeta
from nema.orchestrator import analyze_run
from nema.services.config_service import LoadedBudgetConfig, LoadedReportingConfig

from conftest import make_run_result

FIXED_TIME = datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc)


def _analyze(run_result, budgets: dict | None = None, reporting: dict | None = None, **kwargs):
    return analyze_run(
        run_result,
        LoadedBudgetConfig(
            config_path="scripts/newman-budgets.json" if budgets is not None else None,
            config=BudgetConfig.model_validate(budgets or {}),
        ),
        LoadedReportingConfig(
            config_path=None,
            config=ReportingConfig.model_validate(reporting or {}),
            meta=ReportingMeta(warnings=["POSTMAN_HEADK_K='x' не является целым числом > 0, игнорируется"]),
        ),
        timestamp=FIXED_TIME,
        **kwargs,
    )


def _executions() -> list[dict]:
    return [
        {
            "item": {"id": "req-login", "name": "Login"},
            "request": {"method": "POST", "url": "http://localhost:8080/api/v1/auth/login"},
            "response": {"code": 200, "responseTime": 120},
            "assertions": [{"assertion": "Status is 200"}],
        },
        {
            "item": {"id": "req-users", "name": "List users"},
            "request": {"method": "GET", "url": {"path": ["api", "v1", "users"]}},
            "response": {"code": 500, "responseTime": 80},
            "assertions": [{"assertion": "Status is 200", "error": {"message": "expected 500 to be 200"}}],
        },
    ]


def _failures() -> list[dict]:
    return [{
        "error": {"name": "AssertionError", "message": "expected 500\nto be 200", "test": "Status is 200"},
        "at": "assertion:0 in test-script",
        "source": {"id": "req-users", "name": "List users", "type": "Item"},
    }]


def test_report_carries_all_sections() -> None:
    report = _analyze(make_run_result(_executions(), _failures()), junit_path="reports/newman-results.xml")

    assert report.collection == "Demo API"
    assert report.timestamp == "2026-03-01T12:30:00.000Z"
    assert report.stats.failure_count == 1
    assert report.stats.requests_total == 2
    assert report.distributions.status_codes == {"200": 1, "500": 1}
    assert [r.response_time for r in report.top_slow_requests] == [120, 80]
    assert report.response_time_percentiles.p50 == 80
    assert set(report.folder_aggregates) == {"Auth", "Users/Admin"}
    assert set(report.method_aggregates) == {"POST", "GET"}
    assert set(report.path_aggregates) == {"/api/v1"}
    assert report.path_aggregates["/api/v1"].requests == 2
    assert report.reports.junit == "reports/newman-results.xml"
    assert report.reports.html is None


def test_failures_are_flattened_with_resolved_path() -> None:
    report = _analyze(make_run_result(_executions(), _failures()))

    entry = report.failures[0]
    assert entry.name == "AssertionError"
    assert entry.test == "Status is 200"
    assert entry.message == "expected 500\nto be 200"
    assert entry.source.item == "List users"
    assert entry.source.path == "Users/Admin"


def test_unresolved_failure_source_has_no_path() -> None:
    failures = [{"error": {"message": "x"}, "source": {"id": "ghost"}}]
    report = _analyze(make_run_result([], failures))

    assert report.failures[0].source.path is None


def test_clusters_and_meta_come_from_failures() -> None:
    report = _analyze(make_run_result(_executions(), _failures()))

    assert len(report.failure_clusters) == 1
    cluster = report.failure_clusters[0]
    assert (cluster.folder, cluster.assertion, cluster.count, cluster.share) == (
        "Users/Admin", "Status is 200", 1, 100.0,
    )
    assert cluster.examples == ["expected 500 to be 200"]
    assert report.failure_clusters_meta.coverage_percent == 100.0


def test_budget_breaches_and_config_echo() -> None:
    budgets = {"failOnBudgetBreach": True, "methods": {"POST": {"responseTime": {"p95": 100}}}}
    report = _analyze(make_run_result(_executions(), []), budgets=budgets)

    assert [(b.scope, b.key, b.point, b.actual) for b in report.budget_breaches] == [
        ("method", "POST", "p95", 120),
    ]
    assert report.budgets.config_path == "scripts/newman-budgets.json"
    assert report.budgets.config["failOnBudgetBreach"] is True
    assert report.budgets.config["methods"]["POST"]["responseTime"]["p95"] == 100


def test_reporting_section_echoes_effective_config_and_meta() -> None:
    report = _analyze(make_run_result([], []), reporting={"failureClusters": {"headK": 2}})

    clusters = report.reporting.config["failureClusters"]
    assert clusters["headK"] == 2
    assert clusters["headKThresholdPercent"] == 70
    assert clusters["normalization"]["stripUUID"] is True
    assert report.reporting.meta.warnings


def test_serialized_report_uses_camel_case_keys() -> None:
    report = _analyze(make_run_result(_executions(), _failures()))

    data = report.model_dump(by_alias=True)
    assert set(data) == {
        "collection", "timestamp", "stats", "failures", "distributions",
        "topSlowRequests", "responseTimePercentiles", "folderAggregates",
        "methodAggregates", "pathAggregates", "failureClusters",
        "failureClustersMeta", "budgets", "reporting", "budgetBreaches", "reports",
    }
    assert set(data["folderAggregates"]["Auth"]["responseTime"]) == {
        "min", "max", "avg", "p50", "p90", "p95", "p99",
    }


def test_empty_run_produces_report_with_null_statistics() -> None:
    report = _analyze(make_run_result([], []))

    assert report.stats.failure_count == 0
    assert report.folder_aggregates == {}
    assert report.response_time_percentiles.p50 is None
    assert report.failure_clusters == []


def test_collection_name_falls_back_when_missing() -> None:
    report = _analyze(make_run_result([], [], collection={"item": []}))

    assert report.collection == "collection"


def test_analysis_is_repeatable() -> None:
    run_result = make_run_result(_executions(), _failures())

    first = _analyze(run_result).model_dump()
    second = _analyze(run_result).model_dump()

    assert first == second
