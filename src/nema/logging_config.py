"""Логирование nema: один обработчик на корневом логгере.

stdout занят отчётом прогона (текст или JSON), поэтому логи всегда идут
в отдельный поток, по умолчанию stderr.
"""

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: str) -> int | None:
    """Числовой уровень по имени (``debug``, ``WARN``...); ``None`` для неизвестного."""
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else None


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Настроить корневой логгер.

    Повторный вызов заменяет обработчик, а не добавляет второй.
    Неизвестное имя уровня даёт INFO и предупреждение в том же логе.
    """
    numeric_level = resolve_level(level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO if numeric_level is None else numeric_level)

    if numeric_level is None:
        logging.getLogger(__name__).warning(
            "Неизвестный уровень логирования %r, используется INFO", level
        )
