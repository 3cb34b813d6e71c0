"""Источник результата прогона из готовой JSON-сводки newman."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from nema.exceptions import RunResultError
from nema.models.run import TestRunResult
from nema.runners.base import load_run_result

logger = logging.getLogger(__name__)


class JsonSummarySource:
    """Читает сводку, записанную ``newman run -r json --reporter-json-export``."""

    def __init__(self, path: str | Path, *, junit_path: str | None = None) -> None:
        self.path = Path(path)
        self.junit_path = junit_path

    def fetch(self) -> TestRunResult:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RunResultError(f"Не удалось прочитать сводку прогона {self.path}: {exc}") from exc

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RunResultError(f"Сводка прогона {self.path} не является JSON: {exc}") from exc

        result = load_run_result(raw, origin=str(self.path))
        logger.info(
            "Загружена сводка прогона %s: %d выполнений, %d падений",
            self.path,
            len(result.run.executions),
            result.failure_count,
        )
        return result
