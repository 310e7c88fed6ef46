"""Models for build artifacts and their download outcome."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Artifact(BaseModel):
    """Downloadable build output referenced by URL."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Artifact file name")
    url: str = Field(..., description="Download URL")


class DownloadResult(BaseModel):
    """Outcome of downloading a single artifact."""

    artifact: Artifact = Field(..., description="Artifact that was processed")
    status: Literal["downloaded", "skipped", "failed"] = Field(
        ..., description="Download outcome"
    )
    path: Path | None = Field(default=None, description="Written file location")
    message: str | None = Field(
        default=None, description="Skip reason or error message"
    )


class FetchSummary(BaseModel):
    """Aggregated outcome of a fetch-and-download run."""

    provider: str = Field(..., description="Provider artifacts were fetched from")
    branch: str = Field(..., description="Branch the build was looked up for")
    artifacts_found: int = Field(default=0, description="Artifacts listed")
    results: list[DownloadResult] = Field(default_factory=list)

    @property
    def status(self) -> Literal["success", "partial", "failure", "empty"]:
        """Overall status derived from the individual download results."""
        downloaded = sum(1 for r in self.results if r.status == "downloaded")
        failed = sum(1 for r in self.results if r.status == "failed")

        if self.artifacts_found == 0:
            return "empty"
        if failed == 0:
            return "success"
        if downloaded > 0:
            return "partial"
        return "failure"
