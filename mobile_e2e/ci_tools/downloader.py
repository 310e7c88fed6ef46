"""Download mobile installer artifacts to the local build directory."""

import logging
from collections.abc import Mapping
from pathlib import Path

import aiohttp

from mobile_e2e.ci_tools.models.artifact import Artifact, DownloadResult

logger = logging.getLogger(__name__)

INSTALLER_EXTENSIONS = (".ipa", ".aab", ".apk")
DOWNLOAD_BASENAME = "mobile-app"
CHUNK_SIZE = 64 * 1024


def is_installer(name: str) -> bool:
    """Check whether an artifact name is an iOS or Android installer."""
    return name.endswith(INSTALLER_EXTENSIONS)


def target_path(artifact: Artifact, output_dir: Path) -> Path:
    """Renamed download location, keeping the artifact's extension."""
    return output_dir / f"{DOWNLOAD_BASENAME}{Path(artifact.name).suffix}"


async def download_artifact(
    session: aiohttp.ClientSession,
    artifact: Artifact,
    output_dir: Path,
    headers: Mapping[str, str] | None = None,
    proxy: str | None = None,
) -> DownloadResult:
    """Stream an installer artifact to ``output_dir/mobile-app.<ext>``.

    Artifacts that are not ``.ipa``, ``.aab`` or ``.apk`` files are skipped.

    Args:
        session: HTTP session used for the download
        artifact: Artifact to download
        output_dir: Directory the file is written to, created if missing
        headers: Provider authentication headers
        proxy: Optional HTTPS proxy URL

    Returns:
        Result with status ``downloaded`` or ``skipped``

    Raises:
        RuntimeError: If the download response is not successful

    """
    if not is_installer(artifact.name):
        logger.info(
            f"Skipping artifact: {artifact.name} (not a .ipa, .aab, or .apk file)"
        )
        return DownloadResult(
            artifact=artifact,
            status="skipped",
            message="Not a .ipa, .aab or .apk file",
        )

    logger.info(f"Downloading artifact: {artifact.name}")
    file_path = target_path(artifact, output_dir)

    async with session.get(artifact.url, headers=headers, proxy=proxy) as response:
        if not response.ok:
            raise RuntimeError(
                f"Failed to download {artifact.name}: "
                f"{response.status} {response.reason}"
            )

        output_dir.mkdir(parents=True, exist_ok=True)
        with file_path.open("wb") as f:
            async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                f.write(chunk)

    logger.info(f"Download completed and renamed to: {file_path.name}")
    return DownloadResult(artifact=artifact, status="downloaded", path=file_path)
