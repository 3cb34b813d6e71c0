"""Pydantic-модели файловой конфигурации: бюджеты времени ответа и параметры отчёта."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

Threshold = int | float


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ResponseTimeThresholds(_ConfigModel):
    """Верхние границы перцентилей; отсутствующая точка не проверяется."""

    p50: Threshold | None = None
    p90: Threshold | None = None
    p95: Threshold | None = None
    p99: Threshold | None = None


class ScopeBudget(_ConfigModel):
    response_time: ResponseTimeThresholds | None = Field(None, alias="responseTime")


class BudgetConfig(_ConfigModel):
    """Конфигурация ``newman-budgets.json``.

    Пример::

        {
          "failOnBudgetBreach": false,
          "global": {"responseTime": {"p95": 300}},
          "folders": {"Auth": {"responseTime": {"p95": 250}}},
          "methods": {"GET": {"responseTime": {"p95": 200}}},
          "paths": {"/api/v1": {"responseTime": {"p95": 250}}}
        }
    """

    fail_on_budget_breach: bool = Field(False, alias="failOnBudgetBreach")
    global_: ScopeBudget | None = Field(None, alias="global")
    folders: dict[str, ScopeBudget] = Field(default_factory=dict)
    methods: dict[str, ScopeBudget] = Field(default_factory=dict)
    paths: dict[str, ScopeBudget] = Field(default_factory=dict)


class NormalizationConfig(_ConfigModel):
    """Переключатели правил нормализации сообщений об ошибках.

    Дополнительные правила (email, IP, телефон, значения query) по умолчанию
    выключены, чтобы не склеивать различающиеся по сути сообщения.
    """

    strip_uuid: bool = Field(True, alias="stripUUID")
    strip_hex: bool = Field(True, alias="stripHex")
    strip_numbers_long: bool = Field(True, alias="stripNumbersLong")
    strip_iso_datetime: bool = Field(True, alias="stripISODateTime")
    strip_email: bool = Field(False, alias="stripEmail")
    strip_ipv4: bool = Field(False, alias="stripIPv4")
    strip_ipv6: bool = Field(False, alias="stripIPv6")
    strip_phone: bool = Field(False, alias="stripPhone")
    strip_url_query_values: bool = Field(False, alias="stripURLQueryValues")

    @classmethod
    def disabled(cls) -> NormalizationConfig:
        """Конфигурация, в которой выключены все правила."""
        return cls.model_validate({name: False for name in cls.model_fields})


class FailureClustersConfig(_ConfigModel):
    top_n: int = Field(10, ge=1, alias="topN")
    head_k: int = Field(3, ge=1, alias="headK")
    head_k_threshold_percent: Threshold = Field(70, alias="headKThresholdPercent")
    fail_on_head_k_threshold_breach: bool = Field(False, alias="failOnHeadKThresholdBreach")
    examples_per_cluster: int = Field(3, ge=0, alias="examplesPerCluster")
    normalize_messages: bool = Field(True, alias="normalizeMessages")
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)


class ReportingConfig(_ConfigModel):
    """Конфигурация ``newman-config.json``."""

    failure_clusters: FailureClustersConfig = Field(
        default_factory=FailureClustersConfig, alias="failureClusters"
    )
