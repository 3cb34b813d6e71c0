"""Загрузка файловых конфигураций и применение env-переопределений head-K.

Отсутствующий файл — не ошибка: используются встроенные значения по
умолчанию. Некорректный JSON или схема — предупреждение и те же значения по
умолчанию. Частично заданный ``failureClusters`` дополняется дефолтами
поле за полем (включая вложенный ``normalization``).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from nema.config import Settings
from nema.exceptions import ConfigurationError
from nema.models.config import BudgetConfig, FailureClustersConfig, ReportingConfig
from nema.models.report import ReportingMeta

logger = logging.getLogger(__name__)

THRESHOLD_MIN = 1
THRESHOLD_MAX = 100

_TRUE_VALUES = frozenset({"1", "true"})
_FALSE_VALUES = frozenset({"0", "false"})


@dataclass(frozen=True)
class LoadedBudgetConfig:
    config_path: str | None
    config: BudgetConfig = field(default_factory=BudgetConfig)


@dataclass(frozen=True)
class LoadedReportingConfig:
    config_path: str | None
    config: ReportingConfig = field(default_factory=ReportingConfig)
    meta: ReportingMeta = field(default_factory=ReportingMeta)


def read_json_config(path: Path) -> dict[str, Any] | None:
    """Прочитать JSON-объект конфигурации.

    Returns:
        Содержимое файла или ``None``, если файла нет.

    Raises:
        ConfigurationError: Файл не читается, не является JSON или JSON-объектом.
    """
    if not path.is_file():
        return None
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Не удалось прочитать конфигурацию {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Конфигурация {path} должна быть JSON-объектом, получено: {type(raw).__name__}"
        )
    return raw


def load_budget_config(path: str | Path) -> LoadedBudgetConfig:
    """Загрузить бюджеты времени ответа; при любой ошибке — пустые бюджеты."""
    path = Path(path)
    try:
        raw = read_json_config(path)
        if raw is None:
            logger.debug("Файл бюджетов %s не найден, бюджеты не заданы", path)
            return LoadedBudgetConfig(config_path=None)
        config = BudgetConfig.model_validate(raw)
    except (ConfigurationError, ValidationError) as exc:
        logger.warning("Некорректная конфигурация бюджетов, используются значения по умолчанию: %s", exc)
        return LoadedBudgetConfig(config_path=None)

    logger.info("Загружены бюджеты времени ответа из %s", path)
    return LoadedBudgetConfig(config_path=str(path), config=config)


def load_reporting_config(
    path: str | Path,
    settings: Settings | None = None,
) -> LoadedReportingConfig:
    """Загрузить конфигурацию отчёта и применить переопределения из окружения.

    Args:
        path: Путь к ``newman-config.json``.
        settings: Настройки с сырыми значениями ``POSTMAN_HEADK_*``.
            ``None`` — переопределения не применяются.
    """
    path = Path(path)
    config_path: str | None = None
    config = ReportingConfig()
    try:
        raw = read_json_config(path)
        if raw is not None:
            config = ReportingConfig.model_validate(raw)
            config_path = str(path)
            logger.info("Загружена конфигурация отчёта из %s", path)
    except (ConfigurationError, ValidationError) as exc:
        logger.warning("Некорректная конфигурация отчёта, используются значения по умолчанию: %s", exc)

    if settings is None:
        return LoadedReportingConfig(config_path=config_path, config=config)

    clusters, meta = apply_failure_cluster_overrides(config.failure_clusters, settings)
    config = config.model_copy(update={"failure_clusters": clusters})
    return LoadedReportingConfig(config_path=config_path, config=config, meta=meta)


def apply_failure_cluster_overrides(
    config: FailureClustersConfig,
    settings: Settings,
) -> tuple[FailureClustersConfig, ReportingMeta]:
    """Применить ``POSTMAN_HEADK_K`` / ``_THRESHOLD`` / ``_GATE_ON`` поверх файла.

    Некорректные значения игнорируются с предупреждением; порог вне
    ``[1, 100]`` прижимается к ближайшей границе тоже с предупреждением.
    ``overridesApplied`` содержит только заданные и принятые переменные:
    ``true``, если значение отличается от файлового.
    """
    warnings: list[str] = []
    applied: dict[str, bool] = {}
    update: dict[str, Any] = {}

    if settings.headk_k is not None:
        head_k = _parse_head_k(settings.headk_k)
        if head_k is None:
            warnings.append(
                f"POSTMAN_HEADK_K={settings.headk_k!r} не является целым числом > 0, игнорируется"
            )
        else:
            update["head_k"] = head_k
            applied["headK"] = head_k != config.head_k

    if settings.headk_threshold is not None:
        threshold = _parse_number(settings.headk_threshold)
        if threshold is None:
            warnings.append(
                f"POSTMAN_HEADK_THRESHOLD={settings.headk_threshold!r} не является числом, игнорируется"
            )
        else:
            if threshold < THRESHOLD_MIN:
                warnings.append(
                    f"POSTMAN_HEADK_THRESHOLD={settings.headk_threshold!r} меньше "
                    f"{THRESHOLD_MIN}, используется {THRESHOLD_MIN}"
                )
                threshold = THRESHOLD_MIN
            elif threshold > THRESHOLD_MAX:
                warnings.append(
                    f"POSTMAN_HEADK_THRESHOLD={settings.headk_threshold!r} больше "
                    f"{THRESHOLD_MAX}, используется {THRESHOLD_MAX}"
                )
                threshold = THRESHOLD_MAX
            update["head_k_threshold_percent"] = threshold
            applied["threshold"] = threshold != config.head_k_threshold_percent

    if settings.headk_gate_on is not None:
        gate_on = _parse_flag(settings.headk_gate_on)
        if gate_on is None:
            warnings.append(
                f"POSTMAN_HEADK_GATE_ON={settings.headk_gate_on!r} "
                "не распознано (ожидается 1/true/0/false), игнорируется"
            )
        else:
            update["fail_on_head_k_threshold_breach"] = gate_on
            applied["gateOn"] = gate_on != config.fail_on_head_k_threshold_breach

    for message in warnings:
        logger.warning(message)

    meta = ReportingMeta(
        source="env" if any(applied.values()) else "file",
        overrides_applied=applied,
        warnings=warnings,
    )
    if update:
        logger.info("Применены env-переопределения failureClusters: %s", sorted(update))
        config = config.model_copy(update=update)
    return config, meta


def _parse_number(raw: str) -> int | float | None:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def _parse_head_k(raw: str) -> int | None:
    value = _parse_number(raw)
    if not isinstance(value, int) or value <= 0:
        return None
    return value


def _parse_flag(raw: str) -> bool | None:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None
