"""Tunable policies for the artifact fetcher and report pipeline."""

from pydantic import BaseModel, Field

DEFAULT_RESULTS_PATH = "./build/reports/wdio-html-nice-reporter-results/"
DEFAULT_REPORTS_PATH = "./build/reports/wdio-html-nice-reporter-reports/"


class RetryPolicy(BaseModel):
    """Retry behaviour for outbound HTTP calls."""

    max_retries: int = Field(default=3, ge=1, description="Attempts per request")
    retry_delay: float = Field(
        default=3.0, ge=0, description="Seconds to wait between attempts"
    )


class PaginationPolicy(BaseModel):
    """Bounds for walking the CodeMagic dashboard build listing."""

    max_pages: int = Field(default=10, ge=1, description="Pages fetched at most")
    max_artifacts: int = Field(
        default=500, ge=1, description="Artifacts returned at most"
    )
    page_size: int = Field(default=100, ge=1, description="Builds per page")


class ReportSettings(BaseModel):
    """Report merge settings."""

    report_title: str = Field(default="E2E Report", description="HTML report title")
    collapse_tests: bool = Field(
        default=True, description="Render tests collapsed in the HTML report"
    )
    screenshots_dir: str = Field(
        default="screenshots", description="Screenshot folder inside results"
    )
    staging_dir: str = Field(
        default="temp", description="Staging folder created inside results"
    )


class ToolSettings(BaseModel):
    """All settings, loadable from a YAML file."""

    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    pagination: PaginationPolicy = Field(default_factory=PaginationPolicy)
    reports: ReportSettings = Field(default_factory=ReportSettings)
