"""Запись AnalysisReport в JSON-файл."""

from __future__ import annotations

import logging
from pathlib import Path

from nema.models.report import AnalysisReport

logger = logging.getLogger(__name__)


def write_json_report(report: AnalysisReport, path: str | Path) -> Path:
    """Записать отчёт с camelCase-ключами, создав каталог при необходимости.

    Returns:
        Абсолютный путь записанного файла.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    logger.info("JSON-отчёт сохранён: %s", path)
    return path.resolve()


def read_json_report(path: str | Path) -> AnalysisReport:
    """Прочитать ранее записанный отчёт.

    Raises:
        OSError: Файл не читается.
        pydantic.ValidationError: Содержимое не является AnalysisReport.
    """
    text = Path(path).read_text(encoding="utf-8")
    return AnalysisReport.model_validate_json(text)
