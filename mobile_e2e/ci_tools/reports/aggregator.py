"""Merge per-worker JSON result fragments into a single HTML report."""

import json
import logging
from html import escape
from pathlib import Path

from pydantic import ValidationError

from mobile_e2e.ci_tools.models.report import (
    MergedReport,
    Metrics,
    ReportFragment,
    ReportTest,
    Suite,
)

logger = logging.getLogger(__name__)

MERGED_PREFIX = "merged-report"

REPORT_CSS = """\
    body { font-family: sans-serif; margin: 2rem; color: #24292e; }
    h1 { font-size: 1.8rem; margin-bottom: 0.5rem; }
    h2 { font-size: 1.3rem; margin-top: 2rem; border-bottom: 1px solid #e1e4e8; }
    .metrics span { display: inline-block; margin-right: 1.5rem; font-weight: 600; }
    .passed { color: #28a745; }
    .failed { color: #d73a49; }
    .skipped, .pending { color: #6a737d; }
    details { margin: 0.5rem 0; padding: 0.5rem; border: 1px solid #e1e4e8; }
    summary { cursor: pointer; }
    pre { background: #f6f8fa; padding: 0.5rem; white-space: pre-wrap; }
    img.screenshot { max-width: 320px; margin: 0.5rem; }"""

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <style>
{style}
  </style>
</head>
<body>
{body}
</body>
</html>"""


def load_fragment(path: Path) -> ReportFragment:
    """Load and validate a single result fragment.

    Raises:
        ValueError: If the file is not valid JSON or not a result fragment

    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        return ReportFragment.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid report fragment schema in {path}: {e}") from e


def merge_fragments(title: str, fragments: dict[str, ReportFragment]) -> MergedReport:
    """Merge fragments, summing metrics and concatenating suites."""
    metrics = Metrics()
    suites: list[Suite] = []
    starts: list[str] = []
    ends: list[str] = []

    for fragment in fragments.values():
        metrics.passed += fragment.metrics.passed
        metrics.failed += fragment.metrics.failed
        metrics.skipped += fragment.metrics.skipped
        metrics.duration += fragment.metrics.duration
        if fragment.metrics.start:
            starts.append(fragment.metrics.start)
        if fragment.metrics.end:
            ends.append(fragment.metrics.end)
        suites.extend(fragment.suites)

    # ISO timestamps sort chronologically as strings
    metrics.start = min(starts) if starts else None
    metrics.end = max(ends) if ends else None

    return MergedReport(
        title=title, metrics=metrics, suites=suites, fragments=list(fragments)
    )


def _render_test(test: ReportTest, collapse: bool) -> str:
    parts = [
        f'<summary class="{escape(test.state)}">{escape(test.title)} '
        f"({test.state}, {test.duration} ms)</summary>"
    ]
    if test.error:
        parts.append(f"<pre>{escape(test.error)}</pre>")
    parts.extend(
        f'<img class="screenshot" src="{escape(path)}" alt="screenshot" />'
        for path in test.screenshots
    )
    opened = "" if collapse else " open"
    return f"<details{opened}>{''.join(parts)}</details>"


def render_html(report: MergedReport, collapse_tests: bool = True) -> str:
    """Render a merged report as a standalone HTML page."""
    metrics = report.metrics
    body = [
        f"<h1>{escape(report.title)}</h1>",
        '<div class="metrics">'
        f'<span class="passed">Passed: {metrics.passed}</span>'
        f'<span class="failed">Failed: {metrics.failed}</span>'
        f'<span class="skipped">Skipped: {metrics.skipped}</span>'
        f"<span>Duration: {metrics.duration} ms</span>"
        "</div>",
    ]
    if metrics.start and metrics.end:
        body.append(f"<p>{escape(metrics.start)} &ndash; {escape(metrics.end)}</p>")

    for suite in report.suites:
        body.append(f"<h2>{escape(suite.title)}</h2>")
        body.extend(_render_test(test, collapse_tests) for test in suite.tests)

    return HTML_TEMPLATE.format(
        title=escape(report.title), style=REPORT_CSS, body="\n".join(body)
    )


class ReportAggregator:
    """Builds a merged HTML report from the JSON fragments in a directory."""

    def __init__(
        self,
        output_dir: Path,
        filename: str,
        report_title: str = "E2E Report",
        collapse_tests: bool = True,
    ) -> None:
        """Initialize aggregator for ``output_dir`` writing ``filename``."""
        self.output_dir = output_dir
        self.filename = filename
        self.report_title = report_title
        self.collapse_tests = collapse_tests

    @property
    def html_file(self) -> Path:
        """Location of the generated HTML report."""
        return self.output_dir / self.filename

    @property
    def json_file(self) -> Path:
        """Location of the merged JSON written next to the HTML report."""
        return self.output_dir / f"{Path(self.filename).stem}.json"

    def fragment_files(self) -> list[Path]:
        """JSON fragments in the output directory, excluding merged outputs."""
        return sorted(
            path
            for path in self.output_dir.glob("*.json")
            if path.is_file() and not path.name.startswith(MERGED_PREFIX)
        )

    async def create_report(self) -> Path:
        """Merge all fragments and write the JSON and HTML reports.

        Returns:
            Path of the written HTML report

        """
        fragments = {
            path.name: load_fragment(path) for path in self.fragment_files()
        }
        logger.info(
            f"Merging {len(fragments)} report fragment(s) from {self.output_dir}"
        )

        report = merge_fragments(self.report_title, fragments)

        self.json_file.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        self.html_file.write_text(
            render_html(report, self.collapse_tests), encoding="utf-8"
        )
        logger.info(f"HTML report generated: {self.html_file}")
        return self.html_file
