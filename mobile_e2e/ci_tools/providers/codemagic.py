"""CodeMagic provider implementations (legacy REST API and public dashboards)."""

import logging
from collections.abc import Mapping

import aiohttp

from mobile_e2e.ci_tools.models.artifact import Artifact
from mobile_e2e.ci_tools.models.build_query import BuildQuery
from mobile_e2e.ci_tools.models.settings import PaginationPolicy, RetryPolicy
from mobile_e2e.ci_tools.providers.base import ArtifactProvider

logger = logging.getLogger(__name__)

CODEMAGIC_API_URL = "https://api.codemagic.io"
CODEMAGIC_DASHBOARD_URL = "https://codemagic.io/api/v3"


def parse_artifacts(raw: object) -> list[Artifact]:
    """Convert a CodeMagic artefact list into artifacts.

    Entries without a name or download URL are ignored.
    """
    if not isinstance(raw, list):
        return []

    artifacts: list[Artifact] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        url = item.get("url") or item.get("short_lived_download_url")
        if isinstance(name, str) and isinstance(url, str):
            artifacts.append(Artifact(name=name, url=url))
    return artifacts


class CodeMagicLegacyProvider(ArtifactProvider):
    """CodeMagic builds API authenticated with an ``x-auth-token``."""

    name = "codemagic"

    def __init__(
        self,
        query: BuildQuery,
        retry: RetryPolicy | None = None,
        base_url: str = CODEMAGIC_API_URL,
    ) -> None:
        """Initialize CodeMagic provider for the legacy builds endpoint."""
        super().__init__(query, retry)
        self.base_url = base_url.rstrip("/")

    def download_headers(self) -> dict[str, str]:
        """CodeMagic artefact URLs require the API token."""
        return {"x-auth-token": self.query.auth_token}

    async def fetch_artifacts(self) -> list[Artifact]:
        """Fetch artefacts of the latest finished build of the workflow."""
        logger.info("Fetching artifacts from CodeMagic...")
        params = {
            "appId": self.query.app_id,
            "workflowId": self.query.workflow,
            "branch": self.query.branch,
            "status": "finished",
        }

        async with aiohttp.ClientSession() as session:
            data = await self._get_json(
                session,
                f"{self.base_url}/builds",
                headers=self.download_headers(),
                params=params,
            )

        builds = data.get("builds")
        if not isinstance(builds, list) or not builds:
            logger.warning("No builds or artifacts found on CodeMagic.")
            return []

        last_build = builds[0]
        if not isinstance(last_build, dict):
            return []

        artifacts = parse_artifacts(last_build.get("artefacts"))
        logger.info(f"Found {len(artifacts)} artifact(s) in the latest build.")
        if not artifacts:
            logger.warning("No builds or artifacts found on CodeMagic.")
        return artifacts


class CodeMagicDashboardProvider(ArtifactProvider):
    """CodeMagic public dashboard listing, paginated with a cursor."""

    name = "codemagic"

    def __init__(
        self,
        query: BuildQuery,
        retry: RetryPolicy | None = None,
        pagination: PaginationPolicy | None = None,
        base_url: str = CODEMAGIC_DASHBOARD_URL,
    ) -> None:
        """Initialize CodeMagic provider for a ``dashboards/<id>`` token."""
        super().__init__(query, retry)
        self.pagination = pagination or PaginationPolicy()
        self.base_url = base_url.rstrip("/")

    async def fetch_artifacts(self) -> list[Artifact]:
        """Walk dashboard pages until the branch's latest build is found.

        Stops on the first page whose matching build has artifacts, when no
        cursor is returned, or after ``max_pages`` pages. At most
        ``max_artifacts`` artifacts are returned.
        """
        logger.info("Fetching artifacts from CodeMagic dashboard...")
        url = f"{self.base_url}/dashboards/{self.query.dashboard_id}/builds"
        all_artifacts: list[Artifact] = []
        cursor: str | None = None
        pages = 0

        async with aiohttp.ClientSession() as session:
            while pages < self.pagination.max_pages:
                params = {"page_size": str(self.pagination.page_size)}
                if cursor:
                    params["cursor"] = cursor

                data = await self._get_json(session, url, params=params)
                pages += 1

                page_artifacts = self._artifacts_for_branch(data)
                all_artifacts.extend(page_artifacts)

                if len(all_artifacts) > self.pagination.max_artifacts:
                    logger.warning(
                        f"Artifact limit reached, keeping the first "
                        f"{self.pagination.max_artifacts} of {len(all_artifacts)}."
                    )
                    del all_artifacts[self.pagination.max_artifacts :]

                if page_artifacts:
                    logger.info(
                        f"Stopping further fetches as the branch "
                        f"{self.query.branch} artifacts have been found."
                    )
                    break

                next_cursor = data.get("cursor")
                cursor = next_cursor if isinstance(next_cursor, str) else None
                logger.info(f"Total artifacts retrieved so far: {len(all_artifacts)}")

                if cursor is None:
                    logger.info(
                        f"Stopping pagination. Total artifacts: {len(all_artifacts)}."
                    )
                    break

                logger.info(f"Pages left: {self.pagination.max_pages - pages}")

        if not all_artifacts:
            logger.warning("No builds or artifacts found on CodeMagic.")

        return all_artifacts

    def _artifacts_for_branch(self, data: Mapping[str, object]) -> list[Artifact]:
        """Artifacts of the first build on this page built from the branch."""
        builds = data.get("data")
        if not isinstance(builds, list):
            return []

        matching = [
            build
            for build in builds
            if isinstance(build, dict) and build.get("branch") == self.query.branch
        ]
        if not matching:
            return []

        artifacts = parse_artifacts(matching[0].get("artifacts"))
        logger.info(f"Found {len(artifacts)} artifact(s) in this page.")
        return artifacts
