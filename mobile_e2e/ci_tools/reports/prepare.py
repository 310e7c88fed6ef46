"""Prepare the final report folder from raw reporter results."""

import logging
import shutil
from pathlib import Path

from mobile_e2e.ci_tools.models.settings import ReportSettings
from mobile_e2e.ci_tools.reports.merge import merge_reports

logger = logging.getLogger(__name__)


def move_recursive(src: Path, dest: Path) -> None:
    """Move a file or directory, merging into directories that already exist."""
    if src.is_dir():
        dest.mkdir(parents=True, exist_ok=True)
        for entry in src.iterdir():
            move_recursive(entry, dest / entry.name)
        src.rmdir()
    else:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(src, dest)


async def prepare_reports(
    results_dir: Path,
    reports_dir: Path,
    report_name: str = "master-report",
    settings: ReportSettings | None = None,
) -> list[Path]:
    """Merge raw results and publish the reports into ``reports_dir``.

    Everything in ``results_dir`` is moved to its staging folder, merged into
    HTML and PDF reports, the JSON fragments are dropped and the remaining
    files (reports and screenshots) are moved to ``reports_dir``.

    Returns:
        Paths of the published files, empty if there was nothing to process

    """
    settings = settings or ReportSettings()
    results_dir.mkdir(parents=True, exist_ok=True)

    if not any(path.is_file() for path in results_dir.glob("*.json")):
        logger.info(f"No JSON files found in {results_dir}. Nothing to process.")
        return []

    staging_dir = results_dir / settings.staging_dir
    for entry in sorted(results_dir.iterdir()):
        if entry.name == settings.staging_dir:
            continue
        move_recursive(entry, staging_dir / entry.name)
    logger.info(f"Files moved to {staging_dir}")

    await merge_reports(results_dir, "*", report_name, settings)

    for path in staging_dir.glob("*.json"):
        path.unlink()
    logger.info("JSON files deleted.")

    published: list[Path] = []
    for entry in sorted(staging_dir.iterdir()):
        dest = reports_dir / entry.name
        move_recursive(entry, dest)
        published.append(dest)
    logger.info(f"Remaining files moved to {reports_dir}")

    return published
