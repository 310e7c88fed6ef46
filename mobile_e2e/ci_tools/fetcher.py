"""Fetch the latest build's artifacts from a CI provider and download them."""

import logging
import os
from pathlib import Path

import aiohttp

from mobile_e2e.ci_tools.downloader import download_artifact
from mobile_e2e.ci_tools.http_client import obfuscate_token
from mobile_e2e.ci_tools.models.artifact import DownloadResult, FetchSummary
from mobile_e2e.ci_tools.models.build_query import BuildQuery, Provider
from mobile_e2e.ci_tools.models.settings import ToolSettings
from mobile_e2e.ci_tools.providers.base import ArtifactProvider
from mobile_e2e.ci_tools.providers.bitrise import BITRISE_API_URL, BitriseProvider
from mobile_e2e.ci_tools.providers.codemagic import (
    CODEMAGIC_API_URL,
    CODEMAGIC_DASHBOARD_URL,
    CodeMagicDashboardProvider,
    CodeMagicLegacyProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("build")


def build_query(provider: str, token: str, app_id: str, branch: str) -> BuildQuery:
    """Validate command line values into a build query.

    Raises:
        ValueError: If a value is empty or the provider is not supported

    """
    if not provider or not token or not app_id or not branch:
        raise ValueError(
            "Invalid arguments. Ensure provider, token, app id and branch "
            "are provided in the correct order."
        )

    supported = [p.value for p in Provider]
    if provider.lower() not in supported:
        raise ValueError(
            f"Unsupported provider: {provider}. Use one of: {', '.join(supported)}"
        )

    return BuildQuery(
        provider=Provider(provider.lower()),
        app_id=app_id,
        branch=branch,
        auth_token=token,
    )


def create_provider(
    query: BuildQuery, settings: ToolSettings | None = None
) -> ArtifactProvider:
    """Create the provider matching the query's provider and token."""
    settings = settings or ToolSettings()

    if query.provider is Provider.CODEMAGIC:
        if query.is_dashboard:
            return CodeMagicDashboardProvider(
                query,
                settings.retry,
                settings.pagination,
                base_url=os.environ.get(
                    "CODEMAGIC_DASHBOARD_URL", CODEMAGIC_DASHBOARD_URL
                ),
            )
        return CodeMagicLegacyProvider(
            query,
            settings.retry,
            base_url=os.environ.get("CODEMAGIC_API_URL", CODEMAGIC_API_URL),
        )
    elif query.provider is Provider.BITRISE:
        return BitriseProvider(
            query,
            settings.retry,
            base_url=os.environ.get("BITRISE_API_URL", BITRISE_API_URL),
        )
    else:  # pragma: no cover
        raise ValueError(f"Unsupported provider: {query.provider}")


class ArtifactFetcher:
    """Lists a provider's artifacts and downloads the installers."""

    def __init__(
        self, provider: ArtifactProvider, output_dir: Path = DEFAULT_OUTPUT_DIR
    ) -> None:
        """Initialize fetcher with a provider and download directory."""
        self.provider = provider
        self.output_dir = output_dir

    async def run(self) -> FetchSummary:
        """Fetch artifacts and download each of them.

        A failed download is recorded in the summary and does not stop the
        remaining downloads.
        """
        query = self.provider.query
        logger.info(
            f"Starting with provider: {query.provider.value}, "
            f"token: {obfuscate_token(query.auth_token, 8)}, "
            f"app id: {obfuscate_token(query.app_id, 3)}, branch: {query.branch}"
        )
        logger.info(f"Derived workflow: {query.workflow}")

        artifacts = await self.provider.fetch_artifacts()
        summary = FetchSummary(
            provider=self.provider.name,
            branch=query.branch,
            artifacts_found=len(artifacts),
        )

        if not artifacts:
            logger.warning("No artifacts found.")
            return summary

        logger.info(f"Found {len(artifacts)} artifact(s). Starting download...")
        async with aiohttp.ClientSession() as session:
            for artifact in artifacts:
                try:
                    result = await download_artifact(
                        session,
                        artifact,
                        self.output_dir,
                        headers=self.provider.download_headers(),
                        proxy=self.provider.proxy,
                    )
                except (RuntimeError, aiohttp.ClientError, OSError) as e:
                    logger.error(f"Download of {artifact.name} failed: {e}")
                    result = DownloadResult(
                        artifact=artifact, status="failed", message=str(e)
                    )
                summary.results.append(result)

        return summary
