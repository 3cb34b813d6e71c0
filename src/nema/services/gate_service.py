"""Гейты CI поверх готового отчёта: падения проверок, бюджеты, концентрация head-K.

Гейты — тонкий слой над ``AnalysisReport``: отчёт к этому моменту уже
записан, а ошибка в оценке любого гейта приводит только к предупреждению
и пропуску этого гейта.

Приоритет кодов выхода:
    1 — в прогоне есть упавшие проверки (независимо от гейтов);
    2 — падений нет, но сработал гейт бюджетов;
    3 — падений и превышений бюджета нет, но сработал гейт head-K;
    0 — всё чисто.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar

from nema.models.config import BudgetConfig, FailureClustersConfig
from nema.models.report import AnalysisReport
from nema.services.clustering_service import head_share

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExitCode(IntEnum):
    """Коды завершения процесса, различимые для CI."""

    PASSED = 0
    ASSERTION_FAILURES = 1
    BUDGET_BREACH = 2
    HEAD_K_CONCENTRATION = 3


@dataclass(frozen=True)
class HeadKGateResult:
    """Результат проверки концентрации падений в k крупнейших кластерах."""

    enabled: bool
    k: int
    threshold: float
    head_share: float

    @property
    def breached(self) -> bool:
        return self.head_share >= self.threshold

    @property
    def fired(self) -> bool:
        return self.enabled and self.breached


@dataclass(frozen=True)
class GateDecision:
    exit_code: ExitCode
    failure_count: int
    budget_gate_fired: bool = False
    head_k: HeadKGateResult | None = None


def evaluate_budget_gate(report: AnalysisReport) -> bool:
    """Гейт бюджетов: есть превышения и включён ``failOnBudgetBreach``."""
    if not report.budget_breaches:
        return False
    config = BudgetConfig.model_validate(report.budgets.config)
    return config.fail_on_budget_breach


def evaluate_head_k_gate(report: AnalysisReport) -> HeadKGateResult | None:
    """Гейт head-K по конфигурации, сохранённой в самом отчёте.

    Returns:
        ``None``, если кластеров нет (гейт не применим).
    """
    clusters = report.failure_clusters
    if not clusters:
        return None

    config = FailureClustersConfig.model_validate(
        report.reporting.config.get("failureClusters") or {}
    )
    k = min(config.head_k, len(clusters))
    return HeadKGateResult(
        enabled=config.fail_on_head_k_threshold_breach,
        k=k,
        threshold=config.head_k_threshold_percent,
        head_share=head_share(clusters, k),
    )


def decide_exit_code(report: AnalysisReport) -> GateDecision:
    """Свести падения и гейты в один код выхода с учётом приоритета."""
    failure_count = report.stats.failure_count

    budget_fired = _evaluate_safely("бюджетов", evaluate_budget_gate, report, False)
    if budget_fired:
        logger.warning(
            "Превышение бюджетов: %d точек, гейт включён (failOnBudgetBreach)",
            len(report.budget_breaches),
        )

    head_k = _evaluate_safely("head-K", evaluate_head_k_gate, report, None)
    if head_k is not None and head_k.fired:
        logger.warning(
            "Концентрация падений: доля %d крупнейших кластеров %.1f%% >= порога %s%%",
            head_k.k,
            head_k.head_share,
            head_k.threshold,
        )

    if failure_count > 0:
        exit_code = ExitCode.ASSERTION_FAILURES
    elif budget_fired:
        exit_code = ExitCode.BUDGET_BREACH
    elif head_k is not None and head_k.fired:
        exit_code = ExitCode.HEAD_K_CONCENTRATION
    else:
        exit_code = ExitCode.PASSED

    return GateDecision(
        exit_code=exit_code,
        failure_count=failure_count,
        budget_gate_fired=budget_fired,
        head_k=head_k,
    )


def describe_head_k(result: HeadKGateResult | None) -> str:
    """Однострочное описание результата гейта head-K для консоли."""
    if result is None:
        return "- Кластеров падений нет: проверка концентрации пропущена"
    verdict = "не пройден" if result.fired else "пройден"
    state = "включён" if result.enabled else "выключен"
    return (
        f"- Порог: {result.threshold}%; K={result.k}; "
        f"доля головы: {result.head_share}%; гейт: {state}; результат: {verdict}"
    )


def _evaluate_safely(
    name: str,
    evaluate: Callable[[AnalysisReport], T],
    report: AnalysisReport,
    default: T,
) -> T:
    try:
        return evaluate(report)
    except Exception as exc:
        logger.warning("Ошибка оценки гейта %s, гейт пропущен: %s", name, exc)
        return default
