"""Models for per-worker test result fragments and the merged report."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ReportEvent(BaseModel):
    """Event recorded while a test ran (log line or screenshot)."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., description="Event type, e.g. 'screenshot' or 'log'")
    value: str = Field(default="", description="Screenshot path or log text")


class ReportTest(BaseModel):
    """Single test case outcome."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Test title")
    state: Literal["passed", "failed", "skipped", "pending"] = Field(
        default="passed", description="Test outcome"
    )
    duration: int = Field(default=0, description="Duration in milliseconds")
    error: str | None = Field(default=None, description="Failure message")
    events: list[ReportEvent] = Field(default_factory=list)

    @property
    def screenshots(self) -> list[str]:
        """Screenshot paths attached to this test."""
        return [e.value for e in self.events if e.type == "screenshot" and e.value]


class Suite(BaseModel):
    """Group of test cases from one spec file."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Suite title")
    duration: int = Field(default=0, description="Duration in milliseconds")
    tests: list[ReportTest] = Field(default_factory=list)


class Metrics(BaseModel):
    """Pass/fail counters of a fragment or merged report."""

    model_config = ConfigDict(extra="ignore")

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    start: str | None = None
    end: str | None = None
    duration: int = 0


class ReportFragment(BaseModel):
    """One worker's JSON test results."""

    model_config = ConfigDict(extra="ignore")

    info: dict[str, object] = Field(default_factory=dict)
    metrics: Metrics = Field(default_factory=Metrics)
    suites: list[Suite] = Field(default_factory=list)


class MergedReport(BaseModel):
    """All fragments of a run merged into a single report."""

    title: str = Field(..., description="Report title")
    metrics: Metrics = Field(default_factory=Metrics)
    suites: list[Suite] = Field(default_factory=list)
    fragments: list[str] = Field(
        default_factory=list, description="Fragment file names merged"
    )
