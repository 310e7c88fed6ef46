"""Data models for build queries, artifacts, settings and reports."""

from mobile_e2e.ci_tools.models.artifact import (
    Artifact,
    DownloadResult,
    FetchSummary,
)
from mobile_e2e.ci_tools.models.build_query import (
    BuildQuery,
    Provider,
    derive_workflow,
)
from mobile_e2e.ci_tools.models.report import (
    MergedReport,
    Metrics,
    ReportEvent,
    ReportFragment,
    ReportTest,
    Suite,
)
from mobile_e2e.ci_tools.models.settings import (
    PaginationPolicy,
    ReportSettings,
    RetryPolicy,
    ToolSettings,
)

__all__ = [
    "Artifact",
    "BuildQuery",
    "DownloadResult",
    "FetchSummary",
    "MergedReport",
    "Metrics",
    "PaginationPolicy",
    "Provider",
    "ReportEvent",
    "ReportFragment",
    "ReportSettings",
    "ReportTest",
    "RetryPolicy",
    "Suite",
    "ToolSettings",
    "derive_workflow",
]
