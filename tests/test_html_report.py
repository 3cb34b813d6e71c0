"""Тесты HTML- и JSON-отчётов."""

from __future__ import annotations

import json

from nema.report.html_report import generate_html_report, write_html_report
from nema.report.json_report import read_json_report, write_json_report

from conftest import make_cluster, make_report


def test_html_report_is_self_contained_page() -> None:
    html = generate_html_report(make_report())

    assert html.startswith("<!DOCTYPE html>")
    assert "<style>" in html
    assert "Demo API" in html
    assert "Падений нет." in html


def test_html_report_renders_clusters_breaches_and_aggregates() -> None:
    report = make_report(
        stats={"failureCount": 2},
        failure_clusters=[make_cluster(count=2, examples=["expected <b>200</b>"])],
        budget_breaches=[{"scope": "folder", "key": "Auth", "point": "p95", "actual": 300, "threshold": 250}],
        folder_aggregates={"Auth": {"requests": 3, "responseTime": {"avg": 120, "p95": 300}}},
    )

    html = generate_html_report(report)

    assert "Auth :: Status is 200" in html
    assert "expected &lt;b&gt;200&lt;/b&gt;" in html
    assert "Превышения бюджета (1)" in html
    assert "По папкам" in html
    assert "<td>300</td>" in html


def test_html_report_escapes_collection_name() -> None:
    html = generate_html_report(make_report(collection="<script>x</script>"))

    assert "<script>x</script>" not in html
    assert "&lt;script&gt;" in html


def test_write_html_report_creates_directories(tmp_path) -> None:
    path = write_html_report(make_report(), tmp_path / "a" / "b" / "report.html")

    assert path.exists()
    assert path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")


def test_json_report_written_with_aliases_and_read_back(tmp_path) -> None:
    report = make_report(failure_clusters=[make_cluster()])

    path = write_json_report(report, tmp_path / "reports" / "newman-summary.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert "failureClusters" in data
    assert data["failureClustersMeta"]["coveragePercent"] == 0.0
    assert read_json_report(path).model_dump() == report.model_dump()
