"""Абстрактный интерфейс источника сводки прогона newman."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from nema.exceptions import RunResultError
from nema.models.run import TestRunResult


@runtime_checkable
class RunSource(Protocol):
    """Протокол, определяющий контракт источника результата прогона.

    Реализации:
    - JsonSummarySource: читает уже экспортированную JSON-сводку newman
    - NewmanCliRunner: запускает коллекцию через newman CLI и читает
      сводку, экспортированную JSON-репортёром
    """

    junit_path: str | None

    def fetch(self) -> TestRunResult:
        """Получить разобранный результат прогона."""
        ...


def load_run_result(raw: Any, origin: str = "<memory>") -> TestRunResult:
    """Провалидировать сырую сводку newman.

    Raises:
        RunResultError: Сводка не является объектом или не проходит валидацию.
    """
    if not isinstance(raw, dict):
        raise RunResultError(
            f"Сводка прогона {origin} должна быть JSON-объектом, "
            f"получено: {type(raw).__name__}"
        )
    try:
        return TestRunResult.model_validate(raw)
    except ValidationError as exc:
        raise RunResultError(f"Некорректная сводка прогона {origin}: {exc}") from exc
