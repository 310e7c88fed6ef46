"""Abstract base class for CI artifact providers."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

import aiohttp

from mobile_e2e.ci_tools.http_client import fetch_json, get_proxy_url
from mobile_e2e.ci_tools.models.artifact import Artifact
from mobile_e2e.ci_tools.models.build_query import BuildQuery
from mobile_e2e.ci_tools.models.settings import RetryPolicy


class ArtifactProvider(ABC):
    """Abstract base for providers that list build artifacts."""

    name: str = "unknown"

    def __init__(self, query: BuildQuery, retry: RetryPolicy | None = None) -> None:
        """Initialize provider with the build query and retry policy."""
        self.query = query
        self.retry = retry or RetryPolicy()
        self.proxy = get_proxy_url()

    @abstractmethod
    async def fetch_artifacts(self) -> list[Artifact]:
        """List the artifacts of the latest finished build for the branch.

        Returns:
            Artifacts of the matching build, or an empty list if no build
            or artifact was found

        """

    def download_headers(self) -> dict[str, str]:
        """Headers sent when downloading one of this provider's artifacts."""
        return {}

    async def _get_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Mapping[str, object]:
        """Fetch a JSON object with this provider's retry policy and proxy."""
        data = await fetch_json(
            session,
            url,
            headers=headers,
            params=params,
            retry=self.retry,
            proxy=self.proxy,
        )
        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected response from {url}: expected an object")
        return data
