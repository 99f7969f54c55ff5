"""
Local cache of official Node.js runtime binaries.

Building for a platform other than the host needs that platform's `node`
binary. Binaries are downloaded once from nodejs.org and kept under
`cache_root/<platform>/<version>/<binary>`. A cache entry is valid if and only
if the binary file exists; contents are not verified and entries are never
evicted automatically.

The cache directory is shared by every build on the machine and is not
locked. Two builds downloading the same runtime concurrently both write the
same final path, which is harmless because the contents are identical.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Optional

import httpx

from constants import (
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TIMEOUT_SECONDS,
    EXECUTABLE_MODE,
    NODE_DOWNLOAD_URL_TEMPLATE,
)
from core.archives import ArchiveExtractor, extractor_for
from core.exceptions import DownloadError, ExtractionError, UnsupportedPlatformError
from core.platforms import get_archive_kind, get_binary_name, get_traits, parse_platform
from core.versions import VersionResolver
from models import Platform

logger = logging.getLogger(__name__)

Downloader = Callable[[str, Path], None]
ExtractorFactory = Callable[[Platform, str], ArchiveExtractor]


def get_node_download_url(version: str, platform: Platform | str) -> str:
    """
    Build the nodejs.org download URL of an x64 runtime archive.

    Args:
        version: Node.js version without the "v" prefix (e.g., "20.18.0").
        platform: Target platform.

    Returns:
        str: e.g. "https://nodejs.org/dist/v20.18.0/node-v20.18.0-win-x64.zip".

    Raises:
        UnsupportedPlatformError: If platform is not linux, darwin or win32.
    """
    try:
        target = Platform(platform)
    except ValueError as e:
        raise UnsupportedPlatformError(
            message=f"Unsupported platform: {platform}",
            platform=str(platform),
            original_exception=e,
        ) from e

    return NODE_DOWNLOAD_URL_TEMPLATE.format(
        version=version,
        token=get_traits(target)["dist_token"],
        ext=get_archive_kind(target).value,
    )


def download_file(url: str, file_path: Path, client: Optional[httpx.Client] = None) -> None:
    """
    Stream a remote file to disk.

    The response body is written chunk by chunk; a partially written file is
    removed if the transfer fails.

    Raises:
        DownloadError: On HTTP errors, network errors or local write errors.
    """
    http = client if client is not None else httpx.Client(
        timeout=DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True
    )
    logger.info("Downloading %s", url)
    try:
        with http.stream("GET", url) as response:
            response.raise_for_status()
            with open(file_path, "wb") as f:
                for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
    except httpx.HTTPStatusError as e:
        file_path.unlink(missing_ok=True)
        raise DownloadError(
            message=f"Failed to download {url}: HTTP {e.response.status_code}",
            original_exception=e,
            url=url,
        ) from e
    except (httpx.HTTPError, OSError) as e:
        file_path.unlink(missing_ok=True)
        raise DownloadError(
            message=f"Failed to download {url}: {e}",
            original_exception=e,
            url=url,
        ) from e
    finally:
        if client is None:
            http.close()


class CacheStore:
    """
    Owner of the runtime cache directory.

    Passed into RuntimeCache instead of being a module-level singleton so that
    tests and alternative callers can point it anywhere.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def entry_dir(self, platform: Platform, version: str) -> Path:
        return self.root / str(platform) / version

    def binary_path(self, platform: Platform, version: str) -> Path:
        return self.entry_dir(platform, version) / get_binary_name(platform)

    def has(self, platform: Platform, version: str) -> bool:
        return self.binary_path(platform, version).is_file()

    def clear(self) -> None:
        """Remove every cached runtime. Missing cache directories are ignored."""
        if self.root.exists():
            shutil.rmtree(self.root)
            logger.info("Removed runtime cache %s", self.root)


class RuntimeCache:
    """
    Provides the base `node` binary for a target platform.

    Host builds use the host's own Node.js. Other platforms are served from the
    cache, downloading and extracting the official archive on a miss.
    """

    def __init__(
        self,
        store: CacheStore,
        host_platform: Platform,
        host_node_path: Path,
        resolver: Optional[VersionResolver] = None,
        downloader: Optional[Downloader] = None,
        extractor_factory: Optional[ExtractorFactory] = None,
    ):
        self.store = store
        self.host_platform = host_platform
        self.host_node_path = host_node_path
        self.resolver = resolver if resolver is not None else VersionResolver()
        self.downloader = downloader if downloader is not None else download_file
        self.extractor_factory = (
            extractor_factory if extractor_factory is not None else extractor_for
        )

    def acquire(self, platform: Platform) -> Path:
        """
        Return a local path to a Node.js binary for `platform`.

        Raises:
            UnsupportedPlatformError: For platforms outside the supported set.
            DownloadError: If the runtime archive cannot be downloaded.
            ExtractionError: If the binary cannot be extracted from the archive.
        """
        if platform == self.host_platform:
            return self.host_node_path

        target = parse_platform(platform)
        version = self.resolver.resolve()
        binary_path = self.store.binary_path(target, version)

        if self.store.has(target, version):
            logger.info("Using cached Node.js %s for %s", version, target)
            return binary_path

        return self._populate(target, version, binary_path)

    def _populate(self, platform: Platform, version: str, binary_path: Path) -> Path:
        entry_dir = binary_path.parent
        url = get_node_download_url(version, platform)
        try:
            entry_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(
                message=f"Cannot create cache directory {entry_dir}: {e}",
                platform=str(platform),
                original_exception=e,
                url=url,
            ) from e

        # Per-process name so concurrent downloads never share an archive file
        archive_path = entry_dir / f"{url.rsplit('/', 1)[-1]}.{os.getpid()}.download"
        try:
            self.downloader(url, archive_path)
            extractor = self.extractor_factory(platform, version)
            extractor.extract(archive_path, entry_dir, binary_path.name)
        except ExtractionError:
            binary_path.unlink(missing_ok=True)
            raise
        finally:
            archive_path.unlink(missing_ok=True)

        if not binary_path.is_file():
            raise ExtractionError(
                message=f"Node.js binary not found after extraction: {binary_path}",
                platform=str(platform),
            )

        if platform != Platform.WINDOWS:
            try:
                binary_path.chmod(EXECUTABLE_MODE)
            except OSError as e:
                raise ExtractionError(
                    message=f"Cannot make {binary_path} executable: {e}",
                    platform=str(platform),
                    original_exception=e,
                ) from e

        logger.info("Cached Node.js %s for %s at %s", version, platform, binary_path)
        return binary_path
