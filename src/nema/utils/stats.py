"""Статистика по выборкам времени ответа: nearest-rank перцентили, min/max/avg."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from nema.models.report import ResponseTimeStats

PERCENTILE_POINTS: tuple[int, ...] = (50, 90, 95, 99)


def round_half_up(value: float, digits: int = 0) -> float:
    """Округление «половина вверх» (как ``Math.round``), а не банковское ``round``."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def percent_share(part: int, total: int) -> float:
    """Доля ``part`` от ``total`` в процентах с одним знаком; 0 при ``total == 0``."""
    if not total:
        return 0.0
    return math.floor(part / total * 1000 + 0.5) / 10


def percentile(sorted_samples: Sequence[float], p: float) -> float | None:
    """Перцентиль методом nearest-rank без интерполяции.

    Индекс ``ceil(p/100 * n) - 1``, ограниченный диапазоном ``[0, n-1]``.
    Выборка должна быть отсортирована по возрастанию.

    >>> percentile([10, 20, 30, 40], 50)
    20
    >>> percentile([10, 20, 30, 40], 90)
    40
    """
    n = len(sorted_samples)
    if n == 0:
        return None
    idx = math.ceil((p / 100) * n) - 1
    idx = max(0, min(n - 1, idx))
    return sorted_samples[idx]


def percentiles(sorted_samples: Sequence[float]) -> dict[str, float | None]:
    """p50/p90/p95/p99 по отсортированной выборке."""
    return {f"p{point}": percentile(sorted_samples, point) for point in PERCENTILE_POINTS}


def sort_samples(samples: Sequence[float]) -> list[float]:
    """Отсортировать выборку по возрастанию, сохранив python-типы значений."""
    return sorted(samples)


def summarize_samples(samples: Sequence[float]) -> ResponseTimeStats:
    """Свести выборку времени ответа в ``ResponseTimeStats``.

    Пустая выборка не считается ошибкой: все поля остаются ``None``.
    min/max и перцентили берутся из самой выборки, поэтому целые значения
    остаются целыми; numpy нужен только для среднего.
    """
    if not samples:
        return ResponseTimeStats()

    values = sorted(samples)
    mean = float(np.mean(np.asarray(values, dtype=np.float64)))
    return ResponseTimeStats(
        min=values[0],
        max=values[-1],
        avg=int(round_half_up(mean)),
        **percentiles(values),
    )
