"""Pydantic-модели итогового отчёта анализа (AnalysisReport).

Отчёт сериализуется с camelCase-алиасами (``model_dump(by_alias=True)``),
чтобы JSON совпадал с форматом, который читают шаги CI.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Number = int | float


class _ReportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ResponseTimeStats(_ReportModel):
    """Статистика времени ответа: min/max/avg и перцентили nearest-rank."""

    min: Number | None = None
    max: Number | None = None
    avg: int | None = None
    p50: Number | None = None
    p90: Number | None = None
    p95: Number | None = None
    p99: Number | None = None


class Percentiles(_ReportModel):
    p50: Number | None = None
    p90: Number | None = None
    p95: Number | None = None
    p99: Number | None = None


class BucketAggregate(_ReportModel):
    """Итоговая (read-only) статистика одной корзины: папки, метода или префикса пути."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    requests: int = 0
    assertions_total: int = Field(0, alias="assertionsTotal")
    assertions_failed: int = Field(0, alias="assertionsFailed")
    status_codes: dict[str, int] = Field(default_factory=dict, alias="statusCodes")
    response_time: ResponseTimeStats = Field(
        default_factory=ResponseTimeStats, alias="responseTime"
    )


class SlowRequest(_ReportModel):
    name: str | None = None
    code: Any = None
    response_time: Number = Field(alias="responseTime")


class RunStatsSummary(_ReportModel):
    failure_count: int = Field(0, alias="failureCount")
    requests_total: int | None = Field(None, alias="requestsTotal")
    assertions_total: int | None = Field(None, alias="assertionsTotal")
    assertions_failed: int | None = Field(None, alias="assertionsFailed")


class FailureSourceRef(_ReportModel):
    item: str | None = None
    type: str | None = None
    id: str | int | None = None
    path: str | None = None


class FailureEntry(_ReportModel):
    """Плоская запись о падении с разрешённым путём папки источника."""

    name: str | None = None
    message: str | None = None
    test: str | None = None
    at: str | None = None
    source: FailureSourceRef = Field(default_factory=FailureSourceRef)


class Distributions(_ReportModel):
    status_codes: dict[str, int] = Field(default_factory=dict, alias="statusCodes")


class FailureCluster(_ReportModel):
    """Кластер падений — одна пара (папка, проверка)."""

    folder: str
    assertion: str
    count: int = 0
    examples: list[str] = Field(default_factory=list)
    share: float = 0.0


class FailureClustersMeta(_ReportModel):
    total_failures: int = Field(0, alias="totalFailures")
    cluster_count: int = Field(0, alias="clusterCount")
    clustered_failures_count: int = Field(0, alias="clusteredFailuresCount")
    coverage_percent: float = Field(0.0, alias="coveragePercent")


class BudgetBreach(_ReportModel):
    """Превышение бюджета времени ответа в одной точке (scope, key, point)."""

    scope: Literal["global", "folder", "method", "path"]
    key: str
    point: Literal["p50", "p90", "p95", "p99"]
    actual: Number
    threshold: Number


class ReportingMeta(_ReportModel):
    """Источник параметров head-K и предупреждения валидации env-переопределений."""

    source: Literal["file", "env"] = "file"
    # headK / threshold / gateOn: true, если env-значение изменило файловое
    overrides_applied: dict[str, bool] = Field(default_factory=dict, alias="overridesApplied")
    warnings: list[str] = Field(default_factory=list)


class BudgetsSection(_ReportModel):
    config_path: str | None = Field(None, alias="configPath")
    config: dict[str, Any] = Field(default_factory=dict)


class ReportingSection(_ReportModel):
    config_path: str | None = Field(None, alias="configPath")
    config: dict[str, Any] = Field(default_factory=dict)
    meta: ReportingMeta = Field(default_factory=ReportingMeta)


class ReportPaths(_ReportModel):
    junit: str | None = None
    html: str | None = None


class AnalysisReport(_ReportModel):
    """Полный результат анализа прогона. Создаётся один раз и записывается на диск."""

    collection: str
    timestamp: str
    stats: RunStatsSummary
    failures: list[FailureEntry] = Field(default_factory=list)
    distributions: Distributions = Field(default_factory=Distributions)
    top_slow_requests: list[SlowRequest] = Field(default_factory=list, alias="topSlowRequests")
    response_time_percentiles: Percentiles = Field(
        default_factory=Percentiles, alias="responseTimePercentiles"
    )
    folder_aggregates: dict[str, BucketAggregate] = Field(
        default_factory=dict, alias="folderAggregates"
    )
    method_aggregates: dict[str, BucketAggregate] = Field(
        default_factory=dict, alias="methodAggregates"
    )
    path_aggregates: dict[str, BucketAggregate] = Field(
        default_factory=dict, alias="pathAggregates"
    )
    failure_clusters: list[FailureCluster] = Field(
        default_factory=list, alias="failureClusters"
    )
    failure_clusters_meta: FailureClustersMeta = Field(
        default_factory=FailureClustersMeta, alias="failureClustersMeta"
    )
    budgets: BudgetsSection = Field(default_factory=BudgetsSection)
    reporting: ReportingSection = Field(default_factory=ReportingSection)
    budget_breaches: list[BudgetBreach] = Field(default_factory=list, alias="budgetBreaches")
    reports: ReportPaths = Field(default_factory=ReportPaths)
