"""Запуск коллекции через newman CLI с экспортом JSON-сводки."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path

from nema.exceptions import RunnerError
from nema.models.run import TestRunResult
from nema.runners.json_summary import JsonSummarySource

logger = logging.getLogger(__name__)

JUNIT_FILE = "newman-results.xml"
CLI_SUMMARY_FILE = "newman-cli-summary.json"
REPORTERS: tuple[str, ...] = ("cli", "junit", "json")


class NewmanCliRunner:
    """Один блокирующий вызов ``newman run``.

    Ненулевой код выхода newman (обычно из-за упавших проверок) не считается
    ошибкой: сводка всё равно читается из файла JSON-репортёра. Ошибка —
    только отсутствие исполняемого файла или сводки.
    """

    def __init__(
        self,
        collection: str | Path,
        *,
        reports_dir: str | Path = "reports",
        env_vars: Mapping[str, str] | None = None,
        newman_bin: str = "newman",
    ) -> None:
        self.collection = Path(collection)
        self.reports_dir = Path(reports_dir)
        self.env_vars = dict(env_vars or {})
        self.newman_bin = newman_bin
        self.summary_path = self.reports_dir / CLI_SUMMARY_FILE
        self.junit_path: str | None = str(self.reports_dir / JUNIT_FILE)

    def build_command(self) -> list[str]:
        """Аргументы командной строки newman."""
        cmd = [
            self.newman_bin,
            "run",
            str(self.collection),
            "-r",
            ",".join(REPORTERS),
            "--reporter-junit-export",
            str(self.junit_path),
            "--reporter-json-export",
            str(self.summary_path),
        ]
        for key, value in self.env_vars.items():
            cmd.extend(["--env-var", f"{key}={value}"])
        return cmd

    def fetch(self) -> TestRunResult:
        if not self.collection.is_file():
            raise RunnerError(f"Файл коллекции не найден: {self.collection}")

        self.reports_dir.mkdir(parents=True, exist_ok=True)
        # Сводка прошлого запуска не должна выдаваться за текущую
        self.summary_path.unlink(missing_ok=True)

        cmd = self.build_command()
        logger.info("Запуск newman: %s", " ".join(cmd))
        try:
            completed = subprocess.run(cmd, check=False)
        except OSError as exc:
            raise RunnerError(f"Не удалось запустить {self.newman_bin}: {exc}") from exc

        if completed.returncode != 0:
            logger.info("newman завершился с кодом %d", completed.returncode)

        if not self.summary_path.is_file():
            raise RunnerError(
                f"newman (код {completed.returncode}) не записал JSON-сводку "
                f"{self.summary_path}",
                returncode=completed.returncode,
            )

        return JsonSummarySource(self.summary_path, junit_path=self.junit_path).fetch()
