"""Merge per-worker test results into HTML and PDF reports."""

import asyncio
import fnmatch
import logging
import os
import shutil
from pathlib import Path

from mobile_e2e.ci_tools.models.settings import ReportSettings
from mobile_e2e.ci_tools.reports.aggregator import ReportAggregator
from mobile_e2e.ci_tools.reports.pdf import print_pdf

logger = logging.getLogger(__name__)

NO_SCREENSHOTS_HTML = "merged-report-no-screenshots.html"
WITH_SCREENSHOTS_HTML = "merged-report.html"


def _posix_prefix(path: Path) -> str:
    """Normalized ``a/b/`` form of a directory, as referenced in fragments."""
    return os.path.normpath(path).replace(os.sep, "/").rstrip("/") + "/"


def _prefix_forms(path: Path) -> list[str]:
    """Prefixes a directory may be referenced by: as given, cwd-relative, absolute.

    Reporters record screenshots relative to the working directory, while
    callers may pass the results directory as an absolute path.
    """
    absolute = path.resolve()
    forms = [_posix_prefix(path)]
    try:
        forms.append(_posix_prefix(absolute.relative_to(Path.cwd().resolve())))
    except ValueError:
        pass
    forms.append(_posix_prefix(absolute))
    return forms


def replace_prefix(content: str, old_prefix: str, new_prefix: str) -> str:
    """Replace ``old_prefix`` with ``new_prefix`` without touching rewritten text.

    Segments already carrying ``new_prefix`` are left alone, so applying the
    replacement again is a no-op.
    """
    return new_prefix.join(
        segment.replace(old_prefix, new_prefix)
        for segment in content.split(new_prefix)
    )


async def rewrite_screenshot_paths(
    directory: Path, old_prefix: str, new_prefix: str
) -> list[Path]:
    """Rewrite screenshot references in every JSON file of a directory.

    Returns:
        Files whose content changed

    """
    updated: list[Path] = []
    for path in sorted(directory.glob("*.json")):
        if not path.is_file():
            continue

        content = path.read_text(encoding="utf-8")
        rewritten = replace_prefix(content, old_prefix, new_prefix)
        if rewritten != content:
            path.write_text(rewritten, encoding="utf-8")
            logger.info(f"Updated paths in: {path}")
            updated.append(path)

    return updated


class ReportMergePipeline:
    """Stages result fragments and renders merged HTML and PDF reports."""

    def __init__(
        self,
        results_path: Path,
        filter_glob: str = "",
        report_name: str = "master-report",
        settings: ReportSettings | None = None,
    ) -> None:
        """Initialize pipeline for a results directory."""
        self.results_path = results_path
        self.filter_glob = filter_glob
        self.report_name = report_name
        self.settings = settings or ReportSettings()

    @property
    def staging_path(self) -> Path:
        """Directory matching fragments are copied into."""
        return self.results_path / self.settings.staging_dir

    @property
    def work_dir(self) -> Path:
        """Directory the reports are aggregated from and written to."""
        return self.staging_path if self.filter_glob else self.results_path

    async def run(self) -> list[Path]:
        """Run every stage in order.

        Returns:
            Generated HTML and PDF files

        """
        outputs: list[Path] = []

        if self.filter_glob:
            await self.stage_files()

        html_file = await self._aggregate(NO_SCREENSHOTS_HTML)
        outputs.append(html_file)
        outputs.append(
            await print_pdf(
                html_file, self.work_dir / f"{self.report_name}-no-screenshots.pdf"
            )
        )

        self.remove_merged_json(NO_SCREENSHOTS_HTML)

        if self.filter_glob:
            await self.rewrite_staged_paths()

        html_file = await self._aggregate(WITH_SCREENSHOTS_HTML)
        outputs.append(html_file)
        outputs.append(
            await print_pdf(html_file, self.work_dir / f"{self.report_name}.pdf")
        )

        return outputs

    async def stage_files(self) -> list[Path]:
        """Copy result files matching the filter glob into the staging directory.

        Returns:
            Staged file paths

        """
        self.staging_path.mkdir(parents=True, exist_ok=True)

        matching = [
            path
            for path in sorted(self.results_path.iterdir())
            if path.is_file() and fnmatch.fnmatch(path.name, self.filter_glob)
        ]

        if not matching:
            logger.info(
                f"No files matching '{self.filter_glob}' found in {self.results_path}"
            )
            return []

        staged = [self.staging_path / path.name for path in matching]
        await asyncio.gather(
            *(
                asyncio.to_thread(shutil.copyfile, src, dst)
                for src, dst in zip(matching, staged, strict=True)
            )
        )
        logger.info(
            f"Copied {len(staged)} files matching '{self.filter_glob}' "
            f"to {self.staging_path}"
        )
        return staged

    async def rewrite_staged_paths(self) -> list[Path]:
        """Point staged screenshot references at the staged screenshots folder.

        Returns:
            Staged files whose content changed

        """
        screenshots = self.settings.screenshots_dir
        old_forms = _prefix_forms(self.results_path / screenshots)
        new_forms = _prefix_forms(self.staging_path / screenshots)

        updated: list[Path] = []
        for old_prefix, new_prefix in dict(zip(old_forms, new_forms)).items():
            for path in await rewrite_screenshot_paths(
                self.staging_path, old_prefix, new_prefix
            ):
                if path not in updated:
                    updated.append(path)
        return updated

    def remove_merged_json(self, html_filename: str) -> None:
        """Delete the merged JSON written alongside an HTML report, if any."""
        merged_json = self.work_dir / f"{Path(html_filename).stem}.json"
        if merged_json.exists():
            merged_json.unlink()
            logger.info(f"Deleted file: {merged_json}")
        else:
            logger.info(f"File does not exist: {merged_json}")

    async def _aggregate(self, filename: str) -> Path:
        aggregator = ReportAggregator(
            output_dir=self.work_dir,
            filename=filename,
            report_title=self.settings.report_title,
            collapse_tests=self.settings.collapse_tests,
        )
        return await aggregator.create_report()


async def merge_reports(
    results_path: Path,
    filter_glob: str = "",
    report_name: str = "master-report",
    settings: ReportSettings | None = None,
) -> list[Path]:
    """Merge the result fragments of ``results_path`` into reports."""
    pipeline = ReportMergePipeline(results_path, filter_glob, report_name, settings)
    return await pipeline.run()
