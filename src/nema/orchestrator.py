"""Общая логика анализа прогона — используется CLI-командой ``nema run``."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from nema.models.report import (
    AnalysisReport,
    BudgetsSection,
    Distributions,
    FailureEntry,
    FailureSourceRef,
    ReportingSection,
    ReportPaths,
    RunStatsSummary,
)
from nema.models.run import RunFailure, TestRunResult
from nema.services.aggregation_service import AggregationService
from nema.services.budget_service import collect_budget_breaches
from nema.services.clustering_service import ClusteringConfig, ClusteringService
from nema.services.collection_index import CollectionIndex, build_collection_index, folder_key
from nema.services.config_service import LoadedBudgetConfig, LoadedReportingConfig

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "collection"


def analyze_run(
    run_result: TestRunResult,
    budgets: LoadedBudgetConfig,
    reporting: LoadedReportingConfig,
    *,
    junit_path: str | None = None,
    html_path: str | None = None,
    timestamp: datetime | None = None,
) -> AnalysisReport:
    """Запустить полный pipeline анализа для одного прогона.

    Цепочка: индекс коллекции → агрегация → перцентили → кластеры падений
    → бюджеты. Гейты оцениваются отдельно, по уже готовому отчёту
    (:func:`nema.services.gate_service.decide_exit_code`).

    Args:
        run_result: Разобранная сводка newman.
        budgets: Загруженная конфигурация бюджетов.
        reporting: Конфигурация отчёта с применёнными env-переопределениями.
        junit_path: Путь JUnit-отчёта для поля ``reports.junit``.
        html_path: Путь HTML-отчёта для поля ``reports.html``.
        timestamp: Момент анализа (по умолчанию — текущее время UTC).

    Returns:
        AnalysisReport, готовый к записи на диск.
    """
    collection = run_result.collection
    run = run_result.run

    # 1. Индекс коллекции
    index = build_collection_index(collection)

    # 2-3. Агрегация и перцентили
    aggregation = AggregationService(index).aggregate(run.executions)

    # 4. Кластеры падений
    clusters_config = reporting.config.failure_clusters
    clustering = ClusteringService(
        ClusteringConfig.from_reporting(clusters_config)
    ).cluster_failures(run.failures, index)

    # 5. Бюджеты
    breaches = collect_budget_breaches(
        aggregation.response_time_percentiles,
        aggregation.folder_aggregates,
        aggregation.method_aggregates,
        aggregation.path_aggregates,
        budgets.config,
    )

    moment = timestamp or datetime.now(timezone.utc)
    report = AnalysisReport(
        collection=collection.display_name or DEFAULT_COLLECTION_NAME,
        timestamp=moment.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        stats=_run_stats(run_result),
        failures=[_flatten_failure(f, index) for f in run.failures],
        distributions=Distributions(status_codes=aggregation.status_codes),
        top_slow_requests=aggregation.top_slow_requests,
        response_time_percentiles=aggregation.response_time_percentiles,
        folder_aggregates=aggregation.folder_aggregates,
        method_aggregates=aggregation.method_aggregates,
        path_aggregates=aggregation.path_aggregates,
        failure_clusters=clustering.clusters,
        failure_clusters_meta=clustering.meta,
        budgets=BudgetsSection(
            config_path=budgets.config_path,
            config=budgets.config.model_dump(by_alias=True, exclude_none=True),
        ),
        reporting=ReportingSection(
            config_path=reporting.config_path,
            config=reporting.config.model_dump(by_alias=True),
            meta=reporting.meta,
        ),
        budget_breaches=breaches,
        reports=ReportPaths(junit=junit_path, html=html_path),
    )

    logger.info(
        "Анализ прогона '%s' завершён: %d падений, %d кластеров, %d превышений бюджета",
        report.collection,
        report.stats.failure_count,
        len(report.failure_clusters),
        len(report.budget_breaches),
    )
    return report


def _run_stats(run_result: TestRunResult) -> RunStatsSummary:
    stats = run_result.run.stats
    failure_count = run_result.failure_count
    requests = stats.requests if stats is not None else None
    assertions = stats.assertions if stats is not None else None

    assertions_failed = assertions.failed if assertions is not None else None
    return RunStatsSummary(
        failure_count=failure_count,
        requests_total=requests.total if requests is not None else None,
        assertions_total=assertions.total if assertions is not None else None,
        assertions_failed=assertions_failed if assertions_failed is not None else failure_count,
    )


def _flatten_failure(failure: RunFailure, index: CollectionIndex) -> FailureEntry:
    error = failure.error
    source = failure.source
    path = index.resolve_path(source.id, source.name)
    return FailureEntry(
        name=error.name if error else None,
        message=str(error.message) if error and error.message is not None else None,
        test=error.test if error else None,
        at=failure.at,
        source=FailureSourceRef(
            item=source.name,
            type=source.type,
            id=source.id,
            path=folder_key(path) if path is not None else None,
        ),
    )
