"""Bitrise provider implementation."""

import logging
from collections.abc import Mapping

import aiohttp

from mobile_e2e.ci_tools.models.artifact import Artifact
from mobile_e2e.ci_tools.models.build_query import BuildQuery
from mobile_e2e.ci_tools.models.settings import RetryPolicy
from mobile_e2e.ci_tools.providers.base import ArtifactProvider

logger = logging.getLogger(__name__)

BITRISE_API_URL = "https://api.bitrise.io/v0.1"

# Bitrise build status filter: 1 = finished successfully
FINISHED_STATUS = "1"


class BitriseProvider(ArtifactProvider):
    """Bitrise builds and artifacts API."""

    name = "bitrise"

    def __init__(
        self,
        query: BuildQuery,
        retry: RetryPolicy | None = None,
        base_url: str = BITRISE_API_URL,
    ) -> None:
        """Initialize Bitrise provider with the build query."""
        super().__init__(query, retry)
        self.base_url = base_url.rstrip("/")
        self._headers = {"Authorization": query.auth_token}

    async def fetch_artifacts(self) -> list[Artifact]:
        """Fetch artifacts of the latest finished build of the branch."""
        logger.info("Fetching artifacts from Bitrise...")
        app_url = f"{self.base_url}/apps/{self.query.app_id}"

        async with aiohttp.ClientSession() as session:
            builds = await self._get_json(
                session,
                f"{app_url}/builds",
                headers=self._headers,
                params={"branch": self.query.branch, "status": FINISHED_STATUS},
            )

            build_slug = self._first_build_slug(builds)
            if build_slug is None:
                logger.warning("No builds or artifacts found on Bitrise.")
                return []

            logger.info(f"Fetching artifacts for Bitrise build: {build_slug}")
            artifacts_url = f"{app_url}/builds/{build_slug}/artifacts"
            response = await self._get_json(
                session, artifacts_url, headers=self._headers
            )

            raw_artifacts = response.get("data")
            if not isinstance(raw_artifacts, list):
                logger.warning("No builds or artifacts found on Bitrise.")
                return []

            artifacts: list[Artifact] = []
            for raw in raw_artifacts:
                if not isinstance(raw, dict):
                    continue
                artifact = await self._to_artifact(session, artifacts_url, raw)
                if artifact is not None:
                    artifacts.append(artifact)

        logger.info(f"Bitrise artifacts list retrieved: {len(artifacts)} artifact(s)")
        return artifacts

    def _first_build_slug(self, data: Mapping[str, object]) -> str | None:
        """Slug of the newest build in a builds listing."""
        builds = data.get("data")
        if not isinstance(builds, list) or not builds:
            return None

        first = builds[0]
        if not isinstance(first, dict):
            return None

        slug = first.get("slug")
        return slug if isinstance(slug, str) else None

    async def _to_artifact(
        self,
        session: aiohttp.ClientSession,
        artifacts_url: str,
        raw: Mapping[str, object],
    ) -> Artifact | None:
        """Map a raw Bitrise artifact, resolving its download URL if needed.

        The list endpoint may omit ``expiring_download_url``; it is then read
        from the single artifact endpoint.
        """
        title = raw.get("title")
        url = raw.get("expiring_download_url")
        if not isinstance(title, str):
            return None

        if not isinstance(url, str):
            slug = raw.get("slug")
            if not isinstance(slug, str):
                return None
            detail = await self._get_json(
                session, f"{artifacts_url}/{slug}", headers=self._headers
            )
            detail_data = detail.get("data")
            if isinstance(detail_data, dict):
                url = detail_data.get("expiring_download_url")
            if not isinstance(url, str):
                return None

        return Artifact(name=title, url=url)
