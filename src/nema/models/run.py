"""Pydantic-модели сводки прогона newman (входные данные анализа).

Модели намеренно терпимы к вариациям формата: все поля опциональны,
``extra="allow"`` сохраняет недокументированные поля. Сводка может прийти
как из JSON-репортёра newman, так и из программного API — структура у них
совпадает с точностью до ``collection.info.name`` / ``collection.name``.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _RunModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class CollectionInfo(_RunModel):
    name: str | None = None


class CollectionItem(_RunModel):
    """Узел дерева коллекции: папка (есть ``item``) или запрос (лист)."""

    id: str | int | None = None
    name: str | None = None
    item: list[CollectionItem] | None = None

    @property
    def is_folder(self) -> bool:
        return self.item is not None


class Collection(_RunModel):
    name: str | None = None
    info: CollectionInfo | None = None
    item: list[CollectionItem] = Field(default_factory=list)

    @field_validator("item", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def display_name(self) -> str | None:
        if self.name:
            return self.name
        if self.info and self.info.name:
            return self.info.name
        return None


class ItemRef(_RunModel):
    id: str | int | None = None
    name: str | None = None


class RequestInfo(_RunModel):
    method: str | None = None
    # Строка или SDK-объект {raw, path, host, ...}
    url: Any = None


class ResponseTimings(_RunModel):
    response: Any = None


class ResponseInfo(_RunModel):
    code: Any = None
    response_time: Any = Field(None, alias="responseTime")
    timings: ResponseTimings | None = None

    @property
    def time_value(self) -> Any:
        """Время ответа: ``responseTime``, затем ``timings.response``."""
        if self.response_time is not None:
            return self.response_time
        if self.timings is not None:
            return self.timings.response
        return None


class AssertionResult(_RunModel):
    assertion: str | None = None
    error: Any = None

    @property
    def failed(self) -> bool:
        return bool(self.error)


class Execution(_RunModel):
    """Одно выполнение запроса коллекции с ответом и результатами проверок."""

    item: ItemRef = Field(default_factory=ItemRef)
    request: RequestInfo = Field(default_factory=RequestInfo)
    response: ResponseInfo = Field(default_factory=ResponseInfo)
    assertions: list[AssertionResult] = Field(default_factory=list)

    @field_validator("assertions", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("item", "request", "response", mode="before")
    @classmethod
    def empty_object(cls, value: Any) -> Any:
        return {} if value is None else value


class FailureError(_RunModel):
    name: str | None = None
    message: Any = None
    test: str | None = None


class FailureSource(_RunModel):
    id: str | int | None = None
    name: str | None = None
    type: str | None = None


class RunFailure(_RunModel):
    """Упавшая проверка из ``run.failures``."""

    error: FailureError | None = None
    at: str | None = None
    source: FailureSource = Field(default_factory=FailureSource)

    @field_validator("error", mode="before")
    @classmethod
    def wrap_plain_error(cls, value: Any) -> Any:
        # Некоторые версии newman кладут в error строку вместо объекта
        if isinstance(value, str):
            return {"message": value}
        return value

    @field_validator("source", mode="before")
    @classmethod
    def empty_source(cls, value: Any) -> Any:
        return {} if value is None else value


class StatCounter(_RunModel):
    total: int | None = None
    pending: int | None = None
    failed: int | None = None


class RunStats(_RunModel):
    requests: StatCounter | None = None
    assertions: StatCounter | None = None


class Run(_RunModel):
    stats: RunStats | None = None
    executions: list[Execution] = Field(default_factory=list)
    failures: list[RunFailure] = Field(default_factory=list)

    @field_validator("executions", "failures", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class TestRunResult(_RunModel):
    """Корневой объект сводки прогона newman."""

    __test__ = False  # не путать с тест-классом pytest

    collection: Collection = Field(default_factory=Collection)
    run: Run = Field(default_factory=Run)

    @field_validator("collection", mode="before")
    @classmethod
    def collection_object(cls, value: Any) -> Any:
        # Программный API newman допускает путь к файлу коллекции
        if isinstance(value, str):
            return {"name": PurePath(value).name}
        return {} if value is None else value

    @field_validator("run", mode="before")
    @classmethod
    def empty_object(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def failure_count(self) -> int:
        return len(self.run.failures)
