"""Tests for report aggregator."""

import json
from pathlib import Path

import pytest

from mobile_e2e.ci_tools.models.report import ReportFragment
from mobile_e2e.ci_tools.reports.aggregator import (
    ReportAggregator,
    load_fragment,
    merge_fragments,
    render_html,
)


def _fragment(title: str, state: str, screenshot: str | None = None) -> dict:
    events = [{"type": "log", "value": "tapped login"}]
    if screenshot:
        events.append({"type": "screenshot", "value": screenshot})
    return {
        "info": {"specs": [f"{title}.e2e.ts"]},
        "metrics": {
            "passed": 1 if state == "passed" else 0,
            "failed": 1 if state == "failed" else 0,
            "skipped": 0,
            "start": f"2024-05-01T10:0{len(title) % 10}:00.000Z",
            "end": f"2024-05-01T11:0{len(title) % 10}:00.000Z",
            "duration": 1000,
        },
        "suites": [
            {
                "title": title,
                "duration": 1000,
                "tests": [
                    {
                        "title": f"{title} works",
                        "state": state,
                        "duration": 1000,
                        "error": "expected <b>true</b>" if state == "failed" else None,
                        "events": events,
                        "unknown": "ignored",
                    }
                ],
            }
        ],
    }


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    """Directory holding two worker fragments."""
    (tmp_path / "worker-0.json").write_text(
        json.dumps(_fragment("tickets", "passed", "shots/one.png"))
    )
    (tmp_path / "worker-1.json").write_text(json.dumps(_fragment("buy", "failed")))
    return tmp_path


def test_load_fragment_invalid_json(tmp_path: Path) -> None:
    """load_fragment reports malformed JSON."""
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(ValueError, match="Invalid JSON"):
        load_fragment(path)


def test_load_fragment_invalid_schema(tmp_path: Path) -> None:
    """load_fragment reports fragments not matching the schema."""
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"suites": [{"tests": "nope"}]}))

    with pytest.raises(ValueError, match="Invalid report fragment schema"):
        load_fragment(path)


def test_merge_fragments_sums_metrics() -> None:
    """merge_fragments sums counters and spans the time range."""
    fragments = {
        "a.json": ReportFragment.model_validate(_fragment("tickets", "passed")),
        "b.json": ReportFragment.model_validate(_fragment("buy", "failed")),
    }

    report = merge_fragments("E2E Report", fragments)

    assert report.metrics.passed == 1
    assert report.metrics.failed == 1
    assert report.metrics.duration == 2000
    assert report.metrics.start == "2024-05-01T10:03:00.000Z"
    assert report.metrics.end == "2024-05-01T11:07:00.000Z"
    assert [s.title for s in report.suites] == ["tickets", "buy"]
    assert report.fragments == ["a.json", "b.json"]


def test_render_html_escapes_content() -> None:
    """render_html escapes test content and renders screenshots."""
    fragments = {
        "a.json": ReportFragment.model_validate(
            _fragment("tickets", "failed", "shots/<one>.png")
        )
    }
    report = merge_fragments("E2E <Report>", fragments)

    html = render_html(report, collapse_tests=False)

    assert "<title>E2E &lt;Report&gt;</title>" in html
    assert "expected &lt;b&gt;true&lt;/b&gt;" in html
    assert 'src="shots/&lt;one&gt;.png"' in html
    assert "<details open>" in html


async def test_create_report_writes_html_and_json(results_dir: Path) -> None:
    """create_report writes the merged HTML and JSON files."""
    aggregator = ReportAggregator(results_dir, "merged-report.html")

    html_file = await aggregator.create_report()

    assert html_file == results_dir / "merged-report.html"
    html = html_file.read_text()
    assert "tickets works" in html
    assert "buy works" in html
    assert 'src="shots/one.png"' in html
    assert "<details>" in html

    merged = json.loads((results_dir / "merged-report.json").read_text())
    assert merged["metrics"]["passed"] == 1
    assert merged["fragments"] == ["worker-0.json", "worker-1.json"]


async def test_create_report_ignores_previous_merged_output(results_dir: Path) -> None:
    """Merged outputs are not read back as fragments."""
    first = ReportAggregator(results_dir, "merged-report-no-screenshots.html")
    await first.create_report()

    second = ReportAggregator(results_dir, "merged-report.html")
    await second.create_report()

    merged = json.loads((results_dir / "merged-report.json").read_text())
    assert merged["fragments"] == ["worker-0.json", "worker-1.json"]
    assert merged["metrics"]["failed"] == 1


async def test_create_report_empty_directory(tmp_path: Path) -> None:
    """create_report renders an empty report without fragments."""
    html_file = await ReportAggregator(tmp_path, "merged-report.html").create_report()

    assert "Passed: 0" in html_file.read_text()
