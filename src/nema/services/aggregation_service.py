"""Агрегация выполнений запросов по папкам, HTTP-методам и префиксам пути.

Для каждого выполнения:
1. Папка разрешается через ``CollectionIndex`` (id → имя → ``(root)``).
2. Метод приводится к верхнему регистру (``(UNKNOWN)`` если отсутствует).
3. Префикс пути — первые два непустых сегмента URL (``/api/v1``);
   ``/`` если сегментов нет, ``(unknown)`` если URL не распознан.
4. В каждую из трёх корзин добавляются: запрос, проверки, код ответа,
   время ответа. Нечисловые код и время пропускаются.

После прохода корзины финализируются: выборки сортируются один раз и
сводятся в ``ResponseTimeStats``. Глобальные перцентили считаются по общей
выборке всех выполнений, а не выводятся из перцентилей корзин.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from nema.models.report import BucketAggregate, Percentiles, SlowRequest
from nema.models.run import Execution
from nema.services.collection_index import CollectionIndex
from nema.utils.stats import percentiles, sort_samples, summarize_samples

logger = logging.getLogger(__name__)

UNKNOWN_METHOD = "(UNKNOWN)"
UNKNOWN_PATH = "(unknown)"
PATH_PREFIX_DEPTH = 2


# ---------------------------------------------------------------------------
# Bucket
# ---------------------------------------------------------------------------

@dataclass
class Bucket:
    """Изменяемый накопитель статистики одной корзины."""

    requests: int = 0
    assertions_total: int = 0
    assertions_failed: int = 0
    status_codes: dict[str, int] = field(default_factory=dict)
    response_times: list[float] = field(default_factory=list)

    def add(self, sample: _ExecutionSample) -> None:
        self.requests += 1
        self.assertions_total += sample.assertions_total
        self.assertions_failed += sample.assertions_failed
        if sample.status_key is not None:
            self.status_codes[sample.status_key] = self.status_codes.get(sample.status_key, 0) + 1
        if sample.response_time is not None:
            self.response_times.append(sample.response_time)

    def finalize(self) -> BucketAggregate:
        """Свести накопленное в read-only агрегат. Идемпотентно."""
        return BucketAggregate(
            requests=self.requests,
            assertions_total=self.assertions_total,
            assertions_failed=self.assertions_failed,
            status_codes=dict(self.status_codes),
            response_time=summarize_samples(self.response_times),
        )


@dataclass(frozen=True)
class _ExecutionSample:
    """Числовые факты одного выполнения, извлечённые один раз."""

    name: str | None
    code: Any
    status_key: str | None
    response_time: float | None
    assertions_total: int
    assertions_failed: int


@dataclass
class AggregationResult:
    """Результат агрегации выполнений прогона."""

    status_codes: dict[str, int] = field(default_factory=dict)
    top_slow_requests: list[SlowRequest] = field(default_factory=list)
    response_time_percentiles: Percentiles = field(default_factory=Percentiles)
    folder_aggregates: dict[str, BucketAggregate] = field(default_factory=dict)
    method_aggregates: dict[str, BucketAggregate] = field(default_factory=dict)
    path_aggregates: dict[str, BucketAggregate] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# AggregationService
# ---------------------------------------------------------------------------

class AggregationService:
    """Раскладывает выполнения по корзинам и считает статистику."""

    def __init__(self, index: CollectionIndex, *, top_slow_limit: int = 5) -> None:
        self._index = index
        self._top_slow_limit = top_slow_limit

    def aggregate(self, executions: list[Execution]) -> AggregationResult:
        folder_buckets: dict[str, Bucket] = {}
        method_buckets: dict[str, Bucket] = {}
        path_buckets: dict[str, Bucket] = {}
        status_codes: dict[str, int] = {}
        slow_candidates: list[_ExecutionSample] = []

        for execution in executions:
            sample = _sample(execution)

            folder = self._index.resolve_folder(execution.item.id, execution.item.name)
            method = (execution.request.method or UNKNOWN_METHOD).upper()
            prefix = prefix_from_segments(extract_path_segments(execution.request.url))

            for buckets, key in (
                (folder_buckets, folder),
                (method_buckets, method),
                (path_buckets, prefix),
            ):
                buckets.setdefault(key, Bucket()).add(sample)

            if sample.status_key is not None:
                status_codes[sample.status_key] = status_codes.get(sample.status_key, 0) + 1
            if sample.response_time is not None:
                slow_candidates.append(sample)

        # sorted() стабилен: при равном времени порядок выполнения сохраняется
        slowest = sorted(slow_candidates, key=lambda s: -s.response_time)
        top_slow = [
            SlowRequest(name=s.name, code=s.code, response_time=s.response_time)
            for s in slowest[: self._top_slow_limit]
        ]

        all_times = sort_samples([s.response_time for s in slow_candidates])

        logger.info(
            "Агрегировано %d выполнений: %d папок, %d методов, %d префиксов пути",
            len(executions),
            len(folder_buckets),
            len(method_buckets),
            len(path_buckets),
        )

        return AggregationResult(
            status_codes=status_codes,
            top_slow_requests=top_slow,
            response_time_percentiles=Percentiles(**percentiles(all_times)),
            folder_aggregates=_finalize_all(folder_buckets),
            method_aggregates=_finalize_all(method_buckets),
            path_aggregates=_finalize_all(path_buckets),
        )


def _finalize_all(buckets: dict[str, Bucket]) -> dict[str, BucketAggregate]:
    return {key: bucket.finalize() for key, bucket in buckets.items()}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sample(execution: Execution) -> _ExecutionSample:
    code = execution.response.code
    numeric_code = as_number(code)
    return _ExecutionSample(
        name=execution.item.name,
        code=code,
        status_key=status_key(numeric_code) if numeric_code is not None else None,
        response_time=as_number(execution.response.time_value),
        assertions_total=len(execution.assertions),
        assertions_failed=sum(1 for a in execution.assertions if a.failed),
    )


def as_number(value: Any) -> float | None:
    """Вернуть значение, если это конечное число (bool и строки — не числа)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def status_key(code: float) -> str:
    """Ключ гистограммы кодов ответа: ``200``, а не ``200.0``."""
    if isinstance(code, float) and code.is_integer():
        return str(int(code))
    return str(code)


def extract_path_segments(url: Any) -> list[str] | None:
    """Извлечь непустые сегменты пути из URL запроса.

    Поддерживается строка (абсолютный URL или относительный путь, в том
    числе с переменными ``{{baseUrl}}``) и SDK-объект Postman
    (``path.segments`` → ``path`` список/строка → ``raw``).

    Returns:
        Список сегментов или ``None``, если URL не удалось интерпретировать.
    """
    if isinstance(url, dict):
        path = url.get("path")
        segments: list[Any] | None = None
        if isinstance(path, dict) and isinstance(path.get("segments"), list):
            segments = path["segments"]
        elif isinstance(path, list):
            segments = path
        elif isinstance(path, str):
            segments = path.split("/")
        if segments is not None:
            return [str(s) for s in segments if s is not None and str(s)]
        if isinstance(url.get("raw"), str):
            return extract_path_segments(url["raw"])
        return None

    if isinstance(url, str):
        try:
            parts = urlsplit(url)
        except ValueError:
            parts = None
        if parts is not None and parts.scheme and parts.netloc:
            path = parts.path or "/"
        else:
            path = url.split("?", 1)[0].split("#", 1)[0]
        return [s for s in path.split("/") if s]

    return None


def prefix_from_segments(segments: list[str] | None) -> str:
    """Префикс пути из первых двух сегментов: ``['api','v1','users']`` → ``/api/v1``."""
    if segments is None:
        return UNKNOWN_PATH
    if not segments:
        return "/"
    return "/" + "/".join(segments[:PATH_PREFIX_DEPTH])
