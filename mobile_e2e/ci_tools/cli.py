"""CLI entry point for the mobile e2e CI tools."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer

from mobile_e2e.ci_tools.fetcher import (
    DEFAULT_OUTPUT_DIR,
    ArtifactFetcher,
    build_query,
    create_provider,
)
from mobile_e2e.ci_tools.models.artifact import FetchSummary
from mobile_e2e.ci_tools.models.settings import (
    DEFAULT_REPORTS_PATH,
    DEFAULT_RESULTS_PATH,
    ToolSettings,
)
from mobile_e2e.ci_tools.reports.merge import merge_reports
from mobile_e2e.ci_tools.reports.prepare import prepare_reports
from mobile_e2e.ci_tools.settings_loader import load_settings

# Configure logging - force reconfiguration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,  # Force reconfiguration even if already set up
)
logger = logging.getLogger(__name__)

app = typer.Typer()

CONFIG_HELP = "YAML file overriding retry, pagination and report settings"


def _load_settings_or_exit(config: Path | None) -> ToolSettings:
    try:
        return load_settings(config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Failed to load settings: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _summary_output(summary: FetchSummary) -> dict[str, object]:
    return {
        "provider": summary.provider,
        "branch": summary.branch,
        "status": summary.status,
        "artifacts_found": summary.artifacts_found,
        "results": [
            {
                "name": r.artifact.name,
                "status": r.status,
                "path": str(r.path) if r.path else None,
                "message": r.message,
            }
            for r in summary.results
        ],
    }


@app.command("download-artifacts")
def download_artifacts(
    provider: str = typer.Argument(..., help="CI provider (codemagic, bitrise)"),
    token: str = typer.Argument(..., help="API token or dashboards/<id>"),
    app_id: str = typer.Argument(..., help="Application ID on the provider"),
    branch: str = typer.Argument(..., help="Branch to fetch the latest build of"),
    output_dir: Path = typer.Option(  # noqa: B008
        DEFAULT_OUTPUT_DIR, help="Directory the installer is written to"
    ),
    config: Path | None = typer.Option(None, help=CONFIG_HELP),  # noqa: B008
) -> None:
    """Download the latest build's mobile installer from a CI provider."""
    settings = _load_settings_or_exit(config)

    try:
        query = build_query(provider, token, app_id, branch)
    except ValueError as e:
        logger.error(f"Invalid arguments: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    artifact_provider = create_provider(query, settings)
    logger.info(f"Provider created: {type(artifact_provider).__name__}")
    fetcher = ArtifactFetcher(artifact_provider, output_dir)

    try:
        summary = asyncio.run(fetcher.run())
    except Exception as e:
        logger.exception("Artifact download failed")
        typer.echo(f"Error downloading artifacts: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(_summary_output(summary), indent=2))

    if summary.status in {"partial", "failure"}:
        failed = sum(1 for r in summary.results if r.status == "failed")
        logger.error(f"Downloads failed: {failed}/{len(summary.results)}")
        raise typer.Exit(code=1)


@app.command("merge-reports")
def merge_reports_command(
    results_path: Path = typer.Argument(  # noqa: B008
        Path(DEFAULT_RESULTS_PATH), help="Directory holding the JSON results"
    ),
    filter_glob: str = typer.Argument(
        "", help="Glob of result files to merge; empty merges everything in place"
    ),
    report_name: str = typer.Argument("master-report", help="PDF report name"),
    config: Path | None = typer.Option(None, help=CONFIG_HELP),  # noqa: B008
) -> None:
    """Merge per-worker results into HTML and PDF reports."""
    settings = _load_settings_or_exit(config)

    try:
        outputs = asyncio.run(
            merge_reports(results_path, filter_glob, report_name, settings.reports)
        )
    except Exception as e:
        logger.exception("Report generation failed")
        typer.echo(f"Error during report generation or PDF creation: {e}", err=True)
        raise typer.Exit(code=1)

    for output in outputs:
        typer.echo(str(output))


@app.command("prepare-reports")
def prepare_reports_command(
    results_dir: Path = typer.Option(  # noqa: B008
        Path(DEFAULT_RESULTS_PATH), help="Directory holding the raw results"
    ),
    reports_dir: Path = typer.Option(  # noqa: B008
        Path(DEFAULT_REPORTS_PATH), help="Directory the reports are published to"
    ),
    report_name: str = typer.Option("master-report", help="PDF report name"),
    config: Path | None = typer.Option(None, help=CONFIG_HELP),  # noqa: B008
) -> None:
    """Merge raw results and publish the reports folder."""
    settings = _load_settings_or_exit(config)

    try:
        published = asyncio.run(
            prepare_reports(results_dir, reports_dir, report_name, settings.reports)
        )
    except Exception as e:
        logger.exception("Preparing reports failed")
        typer.echo(f"Error preparing reports: {e}", err=True)
        raise typer.Exit(code=1)

    if not published:
        typer.echo("No results to process")
        return

    for path in published:
        typer.echo(str(path))


if __name__ == "__main__":  # pragma: no cover
    app()
