"""Tests for artifact fetcher."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from aioresponses import aioresponses

from mobile_e2e.ci_tools.fetcher import ArtifactFetcher, build_query, create_provider
from mobile_e2e.ci_tools.models.artifact import Artifact
from mobile_e2e.ci_tools.models.build_query import BuildQuery, Provider
from mobile_e2e.ci_tools.models.settings import (
    PaginationPolicy,
    RetryPolicy,
    ToolSettings,
)
from mobile_e2e.ci_tools.providers.base import ArtifactProvider
from mobile_e2e.ci_tools.providers.bitrise import BitriseProvider
from mobile_e2e.ci_tools.providers.codemagic import (
    CodeMagicDashboardProvider,
    CodeMagicLegacyProvider,
)

DOWNLOAD_URL = "https://storage.example.com/app.apk?signature=xyz"


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no proxy from the environment is used."""
    monkeypatch.delenv("HTTPS_PROXY", raising=False)
    monkeypatch.delenv("https_proxy", raising=False)


class FakeProvider(ArtifactProvider):
    """Provider returning a fixed artifact list."""

    name = "fake"

    def __init__(self, artifacts: list[Artifact]) -> None:
        """Initialize fake provider with artifacts to return."""
        super().__init__(
            BuildQuery(
                provider=Provider.BITRISE, app_id="app", branch="main", auth_token="T"
            )
        )
        self.fetch_mock = AsyncMock(return_value=artifacts)

    async def fetch_artifacts(self) -> list[Artifact]:
        """Mock implementation."""
        result: list[Artifact] = await self.fetch_mock()
        return result


def test_build_query_valid() -> None:
    """build_query normalizes the provider name."""
    query = build_query("CodeMagic", "token", "app", "acceptance/1.0.0")

    assert query.provider is Provider.CODEMAGIC
    assert query.workflow == "acceptance"


def test_build_query_unsupported_provider() -> None:
    """build_query rejects unknown providers."""
    with pytest.raises(ValueError, match="Unsupported provider: jenkins"):
        build_query("jenkins", "token", "app", "main")


@pytest.mark.parametrize(
    "args",
    [
        ("", "token", "app", "main"),
        ("bitrise", "", "app", "main"),
        ("bitrise", "token", "", "main"),
        ("bitrise", "token", "app", ""),
    ],
)
def test_build_query_empty_arguments(args: tuple[str, str, str, str]) -> None:
    """build_query rejects empty arguments."""
    with pytest.raises(ValueError, match="Invalid arguments"):
        build_query(*args)


def test_create_provider_dispatch() -> None:
    """create_provider picks the implementation from provider and token."""
    legacy = create_provider(build_query("codemagic", "secret", "app", "main"))
    dashboard = create_provider(build_query("codemagic", "dashboards/d1", "a", "m"))
    bitrise = create_provider(build_query("bitrise", "secret", "app", "main"))

    assert isinstance(legacy, CodeMagicLegacyProvider)
    assert isinstance(dashboard, CodeMagicDashboardProvider)
    assert isinstance(bitrise, BitriseProvider)


def test_create_provider_applies_settings() -> None:
    """create_provider passes retry and pagination policies through."""
    settings = ToolSettings(
        retry=RetryPolicy(max_retries=5, retry_delay=1),
        pagination=PaginationPolicy(max_pages=2),
    )

    provider = create_provider(
        build_query("codemagic", "dashboards/d1", "app", "main"), settings
    )

    assert isinstance(provider, CodeMagicDashboardProvider)
    assert provider.retry.max_retries == 5
    assert provider.pagination.max_pages == 2


def test_create_provider_base_url_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provider API URLs can be overridden from the environment."""
    monkeypatch.setenv("BITRISE_API_URL", "http://localhost:8080/v0.1")

    provider = create_provider(build_query("bitrise", "secret", "app", "main"))

    assert isinstance(provider, BitriseProvider)
    assert provider.base_url == "http://localhost:8080/v0.1"


async def test_run_downloads_installers(tmp_path: Path) -> None:
    """run downloads installers and skips other artifacts."""
    provider = FakeProvider(
        [
            Artifact(name="app.apk", url="https://ci/app.apk"),
            Artifact(name="notes.txt", url="https://ci/notes.txt"),
        ]
    )

    with aioresponses() as m:
        m.get("https://ci/app.apk", body=b"apk")

        summary = await ArtifactFetcher(provider, tmp_path).run()

    assert summary.status == "success"
    assert summary.artifacts_found == 2
    assert [r.status for r in summary.results] == ["downloaded", "skipped"]
    assert (tmp_path / "mobile-app.apk").read_bytes() == b"apk"


async def test_run_no_artifacts(tmp_path: Path) -> None:
    """run returns an empty summary when nothing is found."""
    summary = await ArtifactFetcher(FakeProvider([]), tmp_path).run()

    assert summary.status == "empty"
    assert summary.results == []


async def test_run_continues_after_failed_download(tmp_path: Path) -> None:
    """A failed download is recorded and the next one still runs."""
    provider = FakeProvider(
        [
            Artifact(name="app.ipa", url="https://ci/app.ipa"),
            Artifact(name="app.aab", url="https://ci/app.aab"),
        ]
    )

    with aioresponses() as m:
        m.get("https://ci/app.ipa", status=404, body="Not Found")
        m.get("https://ci/app.aab", body=b"aab")

        summary = await ArtifactFetcher(provider, tmp_path).run()

    assert summary.status == "partial"
    assert summary.results[0].status == "failed"
    assert "Failed to download app.ipa" in (summary.results[0].message or "")
    assert summary.results[1].status == "downloaded"
    assert (tmp_path / "mobile-app.aab").read_bytes() == b"aab"


async def test_run_bitrise_end_to_end(tmp_path: Path) -> None:
    """Bitrise build artifacts are listed and downloaded."""
    query = build_query("bitrise", "T", "123", "release")
    provider = create_provider(query, ToolSettings(retry=RetryPolicy(retry_delay=0)))

    with aioresponses() as m:
        m.get(
            "https://api.bitrise.io/v0.1/apps/123/builds?branch=release&status=1",
            payload={"data": [{"slug": "abc"}]},
        )
        m.get(
            "https://api.bitrise.io/v0.1/apps/123/builds/abc/artifacts",
            payload={
                "data": [{"title": "app.apk", "expiring_download_url": DOWNLOAD_URL}]
            },
        )
        m.get(DOWNLOAD_URL, body=b"binary")

        summary = await ArtifactFetcher(provider, tmp_path).run()

    assert summary.status == "success"
    assert summary.artifacts_found == 1
    assert (tmp_path / "mobile-app.apk").read_bytes() == b"binary"
