"""Точка входа CLI для анализатора прогонов newman."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from nema import __version__

if TYPE_CHECKING:
    from nema.models.report import AnalysisReport
    from nema.services.gate_service import GateDecision

logger = logging.getLogger(__name__)

SUMMARY_FILE = "newman-summary.json"
_MAX_EXAMPLE_CHARS = 200


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Уровень логирования (переопределяет POSTMAN_LOG_LEVEL)",
    )

    parser = argparse.ArgumentParser(
        prog="nema",
        description="Анализ прогонов Postman/newman: агрегаты, кластеры падений, бюджеты и гейты CI",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"nema {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser(
        "run",
        parents=[common],
        help="Получить прогон (JSON-сводка или newman CLI), проанализировать и записать отчёт",
    )
    run.add_argument(
        "--input",
        default=None,
        help="Готовая JSON-сводка newman; без неё коллекция запускается через newman CLI",
    )
    run.add_argument(
        "--collection",
        default=None,
        help="Файл коллекции для newman CLI (переопределяет POSTMAN_COLLECTION)",
    )
    run.add_argument(
        "--output",
        default=None,
        help=f"Путь JSON-отчёта (по умолчанию: <POSTMAN_REPORTS_DIR>/{SUMMARY_FILE})",
    )
    run.add_argument(
        "--output-format",
        choices=["text", "json"],
        default="text",
        help="Формат вывода в stdout (по умолчанию: text)",
    )

    gate = subparsers.add_parser(
        "check-gate",
        parents=[common],
        help="Пересчитать гейт концентрации head-K по записанному отчёту",
    )
    gate.add_argument("report", help="Путь к JSON-отчёту nema")
    return parser


def run_command(args: argparse.Namespace) -> int:
    """Собрать зависимости, проанализировать прогон. Возвращает код выхода."""
    # Тяжёлые модули импортируются только для выполнения команды
    from pydantic import ValidationError

    from nema.config import Settings
    from nema.exceptions import ConfigurationError, NemaError
    from nema.logging_config import setup_logging
    from nema.orchestrator import analyze_run
    from nema.report.json_report import write_json_report
    from nema.runners.selection import select_run_source
    from nema.services.config_service import load_budget_config, load_reporting_config
    from nema.services.gate_service import decide_exit_code

    # 1. Загрузка настроек
    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Ошибка конфигурации: {exc}", file=sys.stderr)
        return 1

    # 2. Настройка логирования
    setup_logging(args.log_level or settings.log_level)

    # 3. Получение прогона
    try:
        source = select_run_source(settings, args.input, args.collection)
        run_result = source.fetch()
    except ConfigurationError as exc:
        logger.error("Ошибка конфигурации: %s", exc)
        return 1
    except NemaError as exc:
        logger.error("Ошибка: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Прервано пользователем")
        return 130

    # 4. Конфигурации бюджетов и отчёта
    budgets = load_budget_config(settings.budgets_path)
    reporting = load_reporting_config(settings.reporting_config_path, settings)

    # 5. Анализ и запись отчётов
    reports_dir = Path(settings.reports_dir)
    output_path = Path(args.output) if args.output else reports_dir / SUMMARY_FILE
    html_path = reports_dir / settings.html_report_file if settings.enable_html_report else None

    report = analyze_run(
        run_result,
        budgets,
        reporting,
        junit_path=source.junit_path,
        html_path=str(html_path) if html_path is not None else None,
    )

    try:
        write_json_report(report, output_path)
        if html_path is not None:
            from nema.report.html_report import write_html_report

            write_html_report(report, html_path)
    except OSError as exc:
        logger.error("Не удалось записать отчёт: %s", exc)
        return 1

    # 6. Гейты и вывод
    decision = decide_exit_code(report)

    if args.output_format == "json":
        import json

        output = report.model_dump(by_alias=True, mode="json")
        output["exitCode"] = int(decision.exit_code)
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        _print_text_report(report, decision, output_path)

    return int(decision.exit_code)


def check_gate_command(args: argparse.Namespace) -> int:
    """Пересчитать гейт head-K по записанному отчёту и напечатать вывод."""
    from pydantic import ValidationError

    from nema.logging_config import setup_logging
    from nema.report.json_report import read_json_report
    from nema.services.gate_service import describe_head_k, evaluate_head_k_gate

    setup_logging(args.log_level or "WARNING")

    try:
        report = read_json_report(args.report)
    except (OSError, ValidationError) as exc:
        print(f"Проверка не выполнена: {exc}", file=sys.stderr)
        return 1

    try:
        head_k = evaluate_head_k_gate(report)
    except ValidationError as exc:
        print(f"Некорректная конфигурация failureClusters в отчёте: {exc}", file=sys.stderr)
        return 1

    print(describe_head_k(head_k))
    return 0


def _print_text_report(
    report: "AnalysisReport",
    decision: "GateDecision",
    output_path: Path,
) -> None:
    """Вывод человекочитаемой сводки прогона в stdout."""
    from nema.services.gate_service import describe_head_k

    stats = report.stats
    pct = report.response_time_percentiles

    print()
    print("=== Отчёт прогона newman ===")
    print(f"Коллекция: {report.collection}")
    print(
        f"Запросов: {_fmt(stats.requests_total)}"
        f" | Проверок: {_fmt(stats.assertions_total)}"
        f" | Упало проверок: {_fmt(stats.assertions_failed)}"
        f" | Падений: {stats.failure_count}"
    )
    print(
        f"Время ответа, мс: p50={_fmt(pct.p50)} p90={_fmt(pct.p90)}"
        f" p95={_fmt(pct.p95)} p99={_fmt(pct.p99)}"
    )
    print()

    if report.failure_clusters:
        _print_clusters(report)
    else:
        print("Падения не найдены.")
        print()

    print("Концентрация падений (head-K):")
    print(describe_head_k(decision.head_k))
    print()

    if report.budget_breaches:
        print(f"Превышения бюджета ({len(report.budget_breaches)}):")
        for b in report.budget_breaches:
            print(f"  - [{b.scope}] {b.key} {b.point}: {b.actual} > {b.threshold}")
        print()

    warnings = report.reporting.meta.warnings
    if warnings:
        print("Предупреждения конфигурации:")
        for w in warnings:
            print(f"  - {w}")
        print()

    print(f"Отчёт: {output_path}")
    if report.reports.html:
        print(f"HTML: {report.reports.html}")
    print(f"Код выхода: {int(decision.exit_code)} ({decision.exit_code.name})")


def _print_clusters(report: "AnalysisReport") -> None:
    meta = report.failure_clusters_meta
    top_n = report.reporting.config.get("failureClusters", {}).get("topN", 10)

    print(
        f"=== Кластеры падений "
        f"({meta.cluster_count} кластеров из {meta.total_failures} падений, "
        f"покрытие {meta.coverage_percent}%) ==="
    )
    print()

    for i, cluster in enumerate(report.failure_clusters[:top_n], 1):
        cluster_lines = [
            f"Кластер #{i}: {cluster.folder} :: {cluster.assertion}",
            f"Падений: {cluster.count} ({cluster.share}%)",
        ]
        for example in cluster.examples:
            msg = _normalize_single_line(example)
            if len(msg) > _MAX_EXAMPLE_CHARS:
                msg = msg[:_MAX_EXAMPLE_CHARS] + "..."
            cluster_lines.append(f"Пример: {msg}")

        for line in _render_box(cluster_lines):
            print(line)
        print()

    hidden = len(report.failure_clusters) - top_n
    if hidden > 0:
        print(f"... и ещё {hidden} кластеров (см. JSON-отчёт)")
        print()


def _fmt(value: object) -> str:
    return "—" if value is None else str(value)


def _normalize_single_line(value: str) -> str:
    """Схлопнуть переводы строк/табуляцию в одну строку для рамочного вывода."""
    return " ".join(value.replace("\t", " ").split())


def _render_box(lines: list[str]) -> list[str]:
    """Отрендерить список строк в Unicode-рамку."""
    if not lines:
        return []

    width = max(len(line) for line in lines)
    top = f"╔{'═' * (width + 2)}╗"
    bottom = f"╚{'═' * (width + 2)}╝"
    body = [f"║ {line.ljust(width)} ║" for line in lines]

    return [top, *body, bottom]


def main(argv: list[str] | None = None) -> None:
    """Синхронная точка входа для CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "check-gate":
        exit_code = check_gate_command(args)
    else:
        exit_code = run_command(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
