"""Выбор источника результата прогона при старте."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from nema.config import Settings
from nema.exceptions import ConfigurationError
from nema.runners.base import RunSource
from nema.runners.json_summary import JsonSummarySource
from nema.runners.newman_cli import NewmanCliRunner

logger = logging.getLogger(__name__)


def select_run_source(
    settings: Settings,
    input_path: str | Path | None = None,
    collection: str | Path | None = None,
) -> RunSource:
    """Выбрать стратегию получения сводки.

    Порядок: явный JSON-файл сводки, затем newman CLI из ``PATH``.

    Raises:
        ConfigurationError: Нет ни файла сводки, ни исполняемого newman.
    """
    if input_path is not None:
        logger.debug("Источник прогона: JSON-сводка %s", input_path)
        return JsonSummarySource(input_path)

    newman = shutil.which(settings.newman_bin)
    if newman is None:
        raise ConfigurationError(
            f"newman не найден в PATH ({settings.newman_bin}). "
            "Установите newman или передайте готовую сводку через --input"
        )

    logger.debug("Источник прогона: newman CLI %s", newman)
    return NewmanCliRunner(
        collection or settings.collection,
        reports_dir=settings.reports_dir,
        env_vars={"baseUrl": settings.base_url},
        newman_bin=newman,
    )
