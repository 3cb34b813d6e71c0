"""Сервис кластеризации упавших проверок по (папка, проверка).

Алгоритм:
1. Для каждого падения разрешается папка запроса-источника
   (id → имя → ``(root)``), имя проверки — ``error.test`` → ``error.name``
   → ``unknown-assert``. Ключ кластера: ``папка::проверка``.
2. Сообщение об ошибке схлопывается в одну строку и (опционально)
   нормализуется: UUID, HEX, длинные числа, ISO-время и т.д. заменяются
   плейсхолдерами.
3. В кластере хранятся первые ``examples_per_cluster`` сообщений в порядке
   поступления.
4. Доля кластера — процент от общего числа падений с одним знаком.
5. Кластеры сортируются по убыванию размера; при равенстве — по индексу
   первого падения, попавшего в кластер.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from nema.models.config import FailureClustersConfig, NormalizationConfig
from nema.models.report import FailureCluster, FailureClustersMeta
from nema.models.run import RunFailure
from nema.services.collection_index import CollectionIndex
from nema.utils.stats import percent_share, round_half_up
from nema.utils.text_normalization import normalize_failure_message

logger = logging.getLogger(__name__)

UNKNOWN_ASSERTION = "unknown-assert"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClusteringConfig:
    """Параметры кластеризации падений."""

    examples_per_cluster: int = 3
    normalize_messages: bool = True
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)

    @classmethod
    def from_reporting(cls, config: FailureClustersConfig) -> ClusteringConfig:
        return cls(
            examples_per_cluster=config.examples_per_cluster,
            normalize_messages=config.normalize_messages,
            normalization=config.normalization,
        )

    @property
    def effective_normalization(self) -> NormalizationConfig:
        """Правила нормализации с учётом общего выключателя ``normalize_messages``."""
        if not self.normalize_messages:
            return NormalizationConfig.disabled()
        return self.normalization


@dataclass
class ClusteringReport:
    """Кластеры падений и мета-информация о покрытии."""

    clusters: list[FailureCluster] = field(default_factory=list)
    meta: FailureClustersMeta = field(default_factory=FailureClustersMeta)


@dataclass
class _ClusterAccumulator:
    folder: str
    assertion: str
    first_index: int
    count: int = 0
    examples: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# ClusteringService
# ---------------------------------------------------------------------------

class ClusteringService:
    """Группирует падения проверок по паре (папка, проверка)."""

    def __init__(self, config: ClusteringConfig | None = None) -> None:
        self._config = config or ClusteringConfig()

    def cluster_failures(
        self,
        failures: list[RunFailure],
        index: CollectionIndex,
    ) -> ClusteringReport:
        """Кластеризовать падения и вернуть ``ClusteringReport``.

        Чистая функция от входа и конфигурации: повторный вызов на тех же
        данных даёт те же кластеры в том же порядке.
        """
        total = len(failures)
        if total == 0:
            return ClusteringReport()

        normalization = self._config.effective_normalization
        groups: dict[str, _ClusterAccumulator] = {}

        for i, failure in enumerate(failures):
            folder = index.resolve_folder(failure.source.id, failure.source.name)
            assertion = _assertion_name(failure)
            key = f"{folder}::{assertion}"

            acc = groups.get(key)
            if acc is None:
                acc = groups[key] = _ClusterAccumulator(
                    folder=folder, assertion=assertion, first_index=i,
                )
            acc.count += 1

            message = _single_line_message(failure)
            if message and len(acc.examples) < self._config.examples_per_cluster:
                acc.examples.append(normalize_failure_message(message, normalization))

        ordered = sorted(groups.values(), key=lambda a: (-a.count, a.first_index))
        clusters = [
            FailureCluster(
                folder=acc.folder,
                assertion=acc.assertion,
                count=acc.count,
                examples=acc.examples,
                share=percent_share(acc.count, total),
            )
            for acc in ordered
        ]

        clustered = sum(c.count for c in clusters)
        meta = FailureClustersMeta(
            total_failures=total,
            cluster_count=len(clusters),
            clustered_failures_count=clustered,
            coverage_percent=percent_share(clustered, total),
        )

        logger.info(
            "Сгруппировано %d падений в %d кластеров (крупнейший: %d)",
            total,
            len(clusters),
            clusters[0].count,
        )

        return ClusteringReport(clusters=clusters, meta=meta)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def head_share(clusters: list[FailureCluster], k: int) -> float:
    """Суммарная доля ``k`` крупнейших кластеров (с одним знаком)."""
    head = clusters[: max(0, min(k, len(clusters)))]
    return round_half_up(sum(c.share for c in head), 1)


def _assertion_name(failure: RunFailure) -> str:
    error = failure.error
    if error is None:
        return UNKNOWN_ASSERTION
    return error.test or error.name or UNKNOWN_ASSERTION


def _single_line_message(failure: RunFailure) -> str | None:
    if failure.error is None or not failure.error.message:
        return None
    return str(failure.error.message).replace("\n", " ")
