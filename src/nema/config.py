"""Конфигурация приложения, загружаемая из переменных окружения."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Конфигурация приложения nema.

    Все значения задаются через переменные окружения с префиксом ``POSTMAN_``
    или через файл ``.env`` в рабочей директории.

    Переопределения head-K (``POSTMAN_HEADK_*``) хранятся как сырые строки:
    их валидация с предупреждениями выполняется в
    :func:`nema.services.config_service.apply_failure_cluster_overrides`,
    а не здесь, чтобы некорректное значение не обрывало запуск.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTMAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    collection: str = Field(
        default="postman/postman_collection.json",
        description="Путь к файлу Postman-коллекции",
    )
    base_url: str = Field(
        default="http://localhost:8080",
        description="Значение переменной baseUrl, передаваемое в newman",
    )
    reports_dir: str = Field(default="reports", description="Каталог для отчётов")
    newman_bin: str = Field(default="newman", description="Исполняемый файл newman CLI")

    enable_html_report: bool = Field(
        default=False,
        description="Сформировать дополнительный HTML-отчёт (только значение '1')",
    )
    html_report_file: str = Field(
        default="newman-report.html",
        description="Имя файла HTML-отчёта внутри reports_dir",
    )

    headk_k: str | None = Field(default=None, description="Переопределение failureClusters.headK")
    headk_threshold: str | None = Field(
        default=None,
        description="Переопределение failureClusters.headKThresholdPercent (1-100)",
    )
    headk_gate_on: str | None = Field(
        default=None,
        description="Переопределение failureClusters.failOnHeadKThresholdBreach (1/true/0/false)",
    )

    budgets_path: str = Field(
        default="scripts/newman-budgets.json",
        description="Путь к конфигурации бюджетов времени ответа",
    )
    reporting_config_path: str = Field(
        default="scripts/newman-config.json",
        description="Путь к конфигурации отчёта (кластеры падений)",
    )

    log_level: str = Field(default="INFO", description="Уровень логирования")

    @field_validator("enable_html_report", mode="before")
    @classmethod
    def html_flag(cls, value: object) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip() == "1"

    @field_validator("headk_k", "headk_threshold", "headk_gate_on", mode="before")
    @classmethod
    def blank_override_is_unset(cls, value: object) -> object:
        # Пустая переменная окружения равносильна незаданной
        if isinstance(value, str) and not value.strip():
            return None
        return value
