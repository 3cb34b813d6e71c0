"""Проверка бюджетов времени ответа по четырём измерениям: global/folder/method/path."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from nema.models.config import BudgetConfig, ResponseTimeThresholds, ScopeBudget
from nema.models.report import BucketAggregate, BudgetBreach, Percentiles, ResponseTimeStats

logger = logging.getLogger(__name__)

BUDGET_POINTS: tuple[str, ...] = ("p50", "p90", "p95", "p99")


def evaluate_response_time_budget(
    actual: Percentiles | ResponseTimeStats | None,
    thresholds: ResponseTimeThresholds | None,
) -> list[tuple[str, float, float]]:
    """Сравнить перцентили с порогами одного измерения.

    Точка проверяется, только если заданы и порог, и фактическое значение.

    Returns:
        Список ``(point, actual, threshold)`` для точек, где ``actual > threshold``.
    """
    if actual is None or thresholds is None:
        return []

    breaches: list[tuple[str, float, float]] = []
    for point in BUDGET_POINTS:
        limit = getattr(thresholds, point)
        value = getattr(actual, point)
        if limit is not None and value is not None and value > limit:
            breaches.append((point, value, limit))
    return breaches


def collect_budget_breaches(
    global_percentiles: Percentiles,
    folder_aggregates: Mapping[str, BucketAggregate],
    method_aggregates: Mapping[str, BucketAggregate],
    path_aggregates: Mapping[str, BucketAggregate],
    config: BudgetConfig,
) -> list[BudgetBreach]:
    """Собрать превышения бюджетов в плоский список.

    Порядок: global, затем folder/method/path в порядке ключей агрегатов.
    Ключи, для которых в конфигурации нет порогов, не проверяются.
    """
    breaches: list[BudgetBreach] = []

    if config.global_ is not None:
        for point, value, limit in evaluate_response_time_budget(
            global_percentiles, config.global_.response_time,
        ):
            breaches.append(BudgetBreach(
                scope="global", key="responseTime", point=point, actual=value, threshold=limit,
            ))

    scoped: tuple[tuple[str, Mapping[str, BucketAggregate], dict[str, ScopeBudget]], ...] = (
        ("folder", folder_aggregates, config.folders),
        ("method", method_aggregates, config.methods),
        ("path", path_aggregates, config.paths),
    )
    for scope, aggregates, budgets in scoped:
        for key, aggregate in aggregates.items():
            budget = budgets.get(key)
            if budget is None:
                continue
            for point, value, limit in evaluate_response_time_budget(
                aggregate.response_time, budget.response_time,
            ):
                breaches.append(BudgetBreach(
                    scope=scope, key=key, point=point, actual=value, threshold=limit,
                ))

    if breaches:
        logger.warning("Превышены бюджеты времени ответа: %d", len(breaches))
    return breaches
