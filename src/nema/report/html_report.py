"""Генератор self-contained HTML-отчёта для nema."""

from __future__ import annotations

import html as _html
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nema.models.report import (
        AnalysisReport,
        BucketAggregate,
        BudgetBreach,
        FailureCluster,
        SlowRequest,
    )

logger = logging.getLogger(__name__)

_MAX_EXAMPLE_CHARS = 2000


# ---------------------------------------------------------------------------
# Публичный API
# ---------------------------------------------------------------------------

def generate_html_report(report: "AnalysisReport") -> str:
    """Сгенерировать self-contained HTML-отчёт из AnalysisReport."""
    from nema import __version__

    generated_at = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    title = f"Прогон коллекции — {report.collection}"

    percentiles = report.response_time_percentiles
    percentiles_html = _render_section(
        "Перцентили времени ответа (мс)",
        _render_table(
            ["p50", "p90", "p95", "p99"],
            [[_fmt(percentiles.p50), _fmt(percentiles.p90), _fmt(percentiles.p95), _fmt(percentiles.p99)]],
        ),
    )

    body = "".join([
        _render_stats(report),
        percentiles_html,
        _render_breaches(report.budget_breaches),
        _render_clusters(report),
        _render_slow_requests(report.top_slow_requests),
        _render_aggregates("По папкам", report.folder_aggregates),
        _render_aggregates("По методам", report.method_aggregates),
        _render_aggregates("По префиксам пути", report.path_aggregates),
    ])

    return f"""<!DOCTYPE html>
<html lang="ru">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>nema — {_e(title)}</title>
  <style>
{_CSS}
  </style>
</head>
<body>
  <div class="container">

    <header class="header">
      <div class="header-brand">nema · Newman Run Analysis</div>
      <div class="header-title">{_e(title)}</div>
      <div class="header-meta">Прогон: {_e(report.timestamp)} · Сгенерировано: {generated_at} · nema v{_e(__version__)}</div>
    </header>

    {body}

    <footer class="footer">
      nema v{_e(__version__)} · {generated_at}
    </footer>

  </div>
</body>
</html>"""


def write_html_report(report: "AnalysisReport", path: str | Path) -> Path:
    """Записать HTML-отчёт на диск и вернуть абсолютный путь."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_html_report(report), encoding="utf-8")
    logger.info("HTML-отчёт сохранён: %s", path)
    return path.resolve()


# ---------------------------------------------------------------------------
# Секции отчёта
# ---------------------------------------------------------------------------

def _render_stats(report: "AnalysisReport") -> str:
    stats = report.stats
    failed = stats.failure_count

    cards: list[tuple[str, str, str]] = [
        ("Запросов", _fmt(stats.requests_total), ""),
        ("Проверок", _fmt(stats.assertions_total), ""),
        ("Упало проверок", _fmt(stats.assertions_failed), "danger" if failed else "muted"),
        ("Падений", str(failed), "danger" if failed else "success"),
        ("Кластеров", str(report.failure_clusters_meta.cluster_count), "info"),
        (
            "Превышений бюджета",
            str(len(report.budget_breaches)),
            "warning" if report.budget_breaches else "muted",
        ),
    ]

    cards_html = "".join(
        f'<div class="stat-card {cls}">'
        f'<div class="stat-value">{_e(val)}</div>'
        f'<div class="stat-label">{_e(label)}</div>'
        f"</div>"
        for label, val, cls in cards
    )
    return f'<div class="stats">{cards_html}</div>'


def _render_breaches(breaches: "list[BudgetBreach]") -> str:
    if not breaches:
        return ""
    rows = [
        [b.scope, b.key, b.point, _fmt(b.actual), _fmt(b.threshold)]
        for b in breaches
    ]
    return _render_section(
        f"Превышения бюджета ({len(breaches)})",
        _render_table(["Измерение", "Ключ", "Точка", "Факт, мс", "Порог, мс"], rows),
    )


def _render_clusters(report: "AnalysisReport") -> str:
    clusters = report.failure_clusters
    if not clusters:
        return _render_section(
            "Кластеры падений",
            '<div class="empty">Падений нет.</div>',
        )

    meta = report.failure_clusters_meta
    title = (
        f"Кластеры падений ({meta.cluster_count} кластеров из "
        f"{meta.total_failures} падений, покрытие {meta.coverage_percent}%)"
    )
    body = "".join(
        _render_cluster(i, cluster) for i, cluster in enumerate(clusters, 1)
    )
    return _render_section(title, f'<div class="clusters-list">{body}</div>')


def _render_cluster(idx: int, cluster: "FailureCluster") -> str:
    examples_html = ""
    if cluster.examples:
        blocks = []
        for example in cluster.examples:
            snippet = example[:_MAX_EXAMPLE_CHARS]
            if len(example) > _MAX_EXAMPLE_CHARS:
                snippet += "…"
            blocks.append(f"<pre>{_e(snippet)}</pre>")
        examples_html = (
            '<div class="block">'
            '<div class="block-title">Примеры сообщений</div>'
            f'<div class="error-block">{"".join(blocks)}</div>'
            "</div>"
        )

    return (
        '<div class="cluster">'
        '<div class="cluster-header">'
        f'<span class="cluster-num">#{idx}</span>'
        f'<span class="cluster-label">{_e(cluster.folder)} :: {_e(cluster.assertion)}</span>'
        f'<span class="cluster-count">{cluster.count} · {cluster.share}%</span>'
        "</div>"
        f'<div class="cluster-body">{examples_html}</div>'
        "</div>"
    )


def _render_slow_requests(requests: "list[SlowRequest]") -> str:
    if not requests:
        return ""
    rows = [[r.name or "—", _fmt(r.code), _fmt(r.response_time)] for r in requests]
    return _render_section(
        "Самые медленные запросы",
        _render_table(["Запрос", "Код", "Время, мс"], rows),
    )


def _render_aggregates(title: str, aggregates: "Mapping[str, BucketAggregate]") -> str:
    if not aggregates:
        return ""
    rows = []
    for key, agg in aggregates.items():
        rt = agg.response_time
        rows.append([
            key,
            str(agg.requests),
            f"{agg.assertions_failed}/{agg.assertions_total}",
            _fmt(rt.avg),
            _fmt(rt.p50),
            _fmt(rt.p95),
            _fmt(rt.max),
        ])
    return _render_section(
        title,
        _render_table(
            ["Ключ", "Запросов", "Упало/всего проверок", "avg", "p50", "p95", "max"],
            rows,
        ),
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _render_section(title: str, content: str) -> str:
    return (
        '<div class="section">'
        f'<div class="section-title">{_e(title)}</div>'
        f"{content}"
        "</div>"
    )


def _render_table(headers: list[str], rows: list[list[str]]) -> str:
    head = "".join(f"<th>{_e(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{_e(cell)}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f'<table class="data-table"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


def _fmt(value: object) -> str:
    return "—" if value is None else str(value)


def _e(s: object) -> str:
    """HTML-escape строку."""
    return _html.escape(str(s))


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

_CSS = """
    :root {
      --page: #f4f6f8;
      --card: #fff;
      --line: #d9dee4;
      --ink: #1d2733;
      --muted: #6b7785;
      --accent: #0f766e;
      --fail: #b42318;
      --fail-bg: #fff1f0;
      --ok: #1f7a3a;
      --warn: #b54708;
      --note: #175cd3;
    }

    * { box-sizing: border-box; }

    body {
      margin: 0;
      font: 14px/1.5 system-ui, -apple-system, "Segoe UI", Roboto, sans-serif;
      background: var(--page);
      color: var(--ink);
    }

    .container { max-width: 1100px; margin: 0 auto; padding: 24px 16px; }

    .header {
      background: var(--card);
      border-left: 4px solid var(--accent);
      padding: 16px 20px;
      margin-bottom: 24px;
    }
    .header-brand { color: var(--accent); font-weight: 600; font-size: 12px; }
    .header-title { margin: 4px 0; font-size: 22px; }
    .header-meta { color: var(--muted); font-size: 13px; }

    .stats { display: flex; flex-wrap: wrap; gap: 12px; margin-bottom: 24px; }
    .stat-card {
      flex: 1 1 130px;
      background: var(--card);
      border: 1px solid var(--line);
      padding: 12px;
    }
    .stat-value { font-size: 26px; font-weight: 700; }
    .stat-label { color: var(--muted); font-size: 12px; }
    .stat-card.danger .stat-value { color: var(--fail); }
    .stat-card.warning .stat-value { color: var(--warn); }
    .stat-card.success .stat-value { color: var(--ok); }
    .stat-card.info .stat-value { color: var(--note); }
    .stat-card.muted .stat-value { color: var(--muted); }

    .section { margin-bottom: 28px; }
    .section-title { font-size: 17px; margin: 0 0 10px; }
    .empty { color: var(--muted); font-style: italic; padding: 12px 0; }

    .data-table { width: 100%; border-collapse: collapse; background: var(--card); }
    .data-table th, .data-table td {
      border: 1px solid var(--line);
      padding: 5px 8px;
      text-align: left;
      font-variant-numeric: tabular-nums;
    }
    .data-table th { background: var(--page); color: var(--muted); font-weight: 600; }

    .clusters-list { display: grid; gap: 12px; }
    .cluster { background: var(--card); border: 1px solid var(--line); }
    .cluster-header {
      display: flex;
      gap: 10px;
      align-items: baseline;
      padding: 8px 12px;
      border-bottom: 1px solid var(--line);
    }
    .cluster-num { color: var(--accent); font-weight: 700; }
    .cluster-label { flex: 1; font-weight: 600; overflow-wrap: anywhere; }
    .cluster-count { color: var(--muted); white-space: nowrap; }
    .cluster-body { padding: 10px 12px; }

    .block-title { color: var(--muted); font-size: 12px; margin-bottom: 4px; }
    .error-block { background: var(--fail-bg); padding: 8px 10px; }
    .error-block pre {
      margin: 0;
      font: 12px/1.4 ui-monospace, Menlo, Consolas, monospace;
      color: var(--fail);
      white-space: pre-wrap;
      overflow-wrap: anywhere;
    }

    .footer { color: var(--muted); font-size: 12px; text-align: center; padding: 16px 0; }
"""
