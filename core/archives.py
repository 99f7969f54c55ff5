"""
Extraction of the Node.js binary from official distribution archives.

Node.js ships Windows builds as .zip files and Unix builds as .tar.gz files.
Both extractors pull exactly one member, the runtime binary, out of the
archive and write it to `dest_dir/<binary name>`; every other member is
skipped and never written to disk.
"""

import logging
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Protocol

from constants import NODE_TAR_MEMBER_TEMPLATE
from core.exceptions import ExtractionError
from core.platforms import get_archive_kind, get_traits
from models import ArchiveKind, Platform

logger = logging.getLogger(__name__)

# Errors raised by a truncated gzip stream or a corrupt deflate stream
_CORRUPT_STREAM_ERRORS = (EOFError, zlib.error)


def _partial_path(dest_dir: Path, binary_name: str) -> Path:
    return dest_dir / f".{binary_name}.partial"


class ArchiveExtractor(Protocol):
    """Protocol for pulling the runtime binary out of a distribution archive."""

    def extract(self, archive_path: Path, dest_dir: Path, binary_name: str) -> None:
        """
        Extract the runtime binary to `dest_dir / binary_name`.

        Args:
            archive_path: Path to the downloaded archive.
            dest_dir: Directory receiving the binary.
            binary_name: File name of the binary inside the archive.

        Raises:
            ExtractionError: If the archive is corrupt or has no such member.
        """


class ZipExtractor:
    """
    Extractor for .zip archives (Windows distributions).

    Entries are visited one at a time from the central directory and the
    matching entry is streamed to a partial file next to the destination.
    The CRC is only checked once the whole entry has been read, so the
    partial file is renamed into place only after the copy finishes.
    """

    def extract(self, archive_path: Path, dest_dir: Path, binary_name: str) -> None:
        destination = dest_dir / binary_name
        partial = _partial_path(dest_dir, binary_name)
        try:
            with zipfile.ZipFile(archive_path) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    if PurePosixPath(info.filename).name != binary_name:
                        continue

                    dest_dir.mkdir(parents=True, exist_ok=True)
                    with archive.open(info) as src, open(partial, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    partial.replace(destination)
                    logger.debug("Extracted %s from %s", info.filename, archive_path)
                    return
        except (zipfile.BadZipFile, OSError, *_CORRUPT_STREAM_ERRORS) as e:
            partial.unlink(missing_ok=True)
            raise ExtractionError(
                message=f"Failed to extract {binary_name} from {archive_path}: {e}",
                original_exception=e,
            ) from e

        raise ExtractionError(
            message=f"Archive {archive_path} does not contain {binary_name}"
        )


class TarGzExtractor:
    """
    Extractor for .tar.gz archives (Linux and macOS distributions).

    Only the member at `node-v{version}-{platform}-x64/bin/{binary}` is
    extracted. The file is then moved up to `dest_dir/{binary}` and the
    version-named directory created by the extraction is removed.
    """

    def __init__(self, version: str, platform: Platform):
        self.version = version
        self.platform = platform

    def member_path(self, binary_name: str) -> str:
        return NODE_TAR_MEMBER_TEMPLATE.format(
            version=self.version,
            token=get_traits(self.platform)["dist_token"],
            binary=binary_name,
        )

    def extract(self, archive_path: Path, dest_dir: Path, binary_name: str) -> None:
        expected = self.member_path(binary_name)
        extracted_root = dest_dir / PurePosixPath(expected).parts[0]
        nested = dest_dir / expected

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            found = False
            with tarfile.open(archive_path, mode="r:gz") as archive:
                for member in archive:
                    if member.name != expected or not member.isfile():
                        continue
                    archive.extract(member, path=dest_dir, filter="data")
                    found = True
                    break

            if not found:
                raise ExtractionError(
                    message=f"Archive {archive_path} does not contain {expected}"
                )

            nested.replace(dest_dir / binary_name)
            shutil.rmtree(extracted_root, ignore_errors=True)
        except (tarfile.TarError, OSError, *_CORRUPT_STREAM_ERRORS) as e:
            shutil.rmtree(extracted_root, ignore_errors=True)
            raise ExtractionError(
                message=f"Failed to extract {expected} from {archive_path}: {e}",
                original_exception=e,
            ) from e

        logger.debug("Extracted %s from %s", expected, archive_path)


def extractor_for(platform: Platform, version: str) -> ArchiveExtractor:
    """Pick the extractor matching the platform's distribution archive format."""
    if get_archive_kind(platform) is ArchiveKind.ZIP:
        return ZipExtractor()
    return TarGzExtractor(version, platform)
