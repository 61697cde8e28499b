"""Build agent updater - fetches the analysis tool bundle from the server.

The bundle is a zip published by the SonarQube C# plugin. It is downloaded
into the target directory, extracted in place and the archive removed.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Protocol

import httpx

from ..utils.filesystem import ensure_directory_exists
from ..utils.retry import retry

logger = logging.getLogger(__name__)

BUNDLE_URL_PATH = "static/csharp/SonarQube.MSBuild.Runner.Implementation.zip"
BUNDLE_FILE_NAME = "SonarQube.MSBuild.Runner.Implementation.zip"

# Per-request timeout; the overall budget is enforced by retry
REQUEST_TIMEOUT_SECONDS: float = 20.0


class BundleUpdater(Protocol):
    """Acquires the tool bundle into a directory."""

    async def try_update(self, server_url: str, target_directory: str) -> bool:
        """Return True if a usable bundle now exists under target_directory."""
        ...


class _DownloadRejected(Exception):
    """The server answered with a non-retryable status."""


def get_bundle_url(server_url: str) -> str:
    """Build the download URL of the tool bundle for a server."""
    return f"{server_url.rstrip('/')}/{BUNDLE_URL_PATH}"


def extract_bundle(archive: Path, target_directory: Path) -> list[str]:
    """Extract archive into target_directory.

    Args:
        archive: Path to the zip file
        target_directory: Extraction root

    Returns:
        Names of the extracted entries

    Raises:
        zipfile.BadZipFile: If the archive is not a valid zip
        ValueError: If an entry would be written outside target_directory
    """
    root = target_directory.resolve()
    with zipfile.ZipFile(archive) as bundle:
        names = bundle.namelist()
        for name in names:
            destination = (root / name).resolve()
            if destination != root and root not in destination.parents:
                raise ValueError(f"Archive entry escapes target directory: {name}")
        bundle.extractall(root)
    return names


class BuildAgentUpdater:
    """Downloads and unpacks the build agent bundle over HTTP.

    Transport errors and 5xx answers are retried until ``timeout_ms``
    elapses; any other non-200 answer fails immediately.
    """

    def __init__(
        self,
        timeout_ms: int = 30_000,
        pause_ms: int = 1_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout_ms = timeout_ms
        self._pause_ms = pause_ms
        self._transport = transport

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
            follow_redirects=True,
            transport=self._transport,
        )

    async def _download(self, client: httpx.AsyncClient, url: str, destination: Path) -> bool:
        """Single download attempt. Returns False if worth retrying."""
        try:
            response = await client.get(url)
        except httpx.TransportError as e:
            logger.warning(f"Download of {url} failed: {e}")
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # redirect loops, undecodable bodies and malformed URLs do not heal
            raise _DownloadRejected(f"{type(e).__name__} for {url}: {e}") from e

        if response.status_code >= 500:
            logger.warning(f"Server error {response.status_code} downloading {url}")
            return False
        if response.status_code != 200:
            raise _DownloadRejected(f"HTTP {response.status_code} for {url}")

        destination.write_bytes(response.content)
        logger.debug(f"Downloaded {len(response.content)} bytes to {destination}")
        return True

    async def try_update(self, server_url: str, target_directory: str) -> bool:
        """Download and extract the bundle into target_directory.

        Args:
            server_url: SonarQube server base URL
            target_directory: Directory to extract into (created if missing)

        Returns:
            True if the bundle was downloaded and extracted
        """
        url = get_bundle_url(server_url)
        target = ensure_directory_exists(target_directory)
        archive = target / BUNDLE_FILE_NAME
        logger.info(f"Downloading {url}")

        try:
            async with self._create_client() as client:
                downloaded = await retry(
                    self._timeout_ms,
                    self._pause_ms,
                    lambda: self._download(client, url, archive),
                )
        except _DownloadRejected as e:
            logger.error(f"Tool bundle not available: {e}")
            return False
        except OSError as e:
            logger.error(f"Cannot write tool bundle to {archive}: {e}")
            archive.unlink(missing_ok=True)
            return False

        if not downloaded:
            logger.error(f"Could not download {url} within {self._timeout_ms}ms")
            return False

        try:
            names = extract_bundle(archive, target)
        except (zipfile.BadZipFile, ValueError, OSError) as e:
            logger.error(f"Invalid tool bundle {archive}: {e}")
            return False
        finally:
            archive.unlink(missing_ok=True)

        logger.info(f"Extracted {len(names)} files to {target}")
        return True
