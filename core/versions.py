"""
Node.js version comparison and runtime version selection.

Cross-platform builds need an official Node.js binary for the target OS.
`VersionResolver` picks which release to download by querying the
nodejs.org release index and applying a fixed policy (inclusive version
bounds, no pre-releases, a list of preferred releases, then the newest LTS of
the preferred major line). Resolution is best effort: when the index cannot
be fetched or yields nothing usable, a known-good version is returned instead
and the build carries on.
"""

import logging
from typing import Any, Callable, Optional

import httpx

from constants import (
    FALLBACK_NODE_VERSION,
    INDEX_TIMEOUT_SECONDS,
    MAX_NODE_VERSION,
    MIN_NODE_VERSION,
    NODE_INDEX_URL,
    PREFERRED_NODE_MAJOR,
    PREFERRED_NODE_VERSIONS,
    PRERELEASE_MARKERS,
)

logger = logging.getLogger(__name__)

IndexFetcher = Callable[[], Any]


def _version_parts(version: str) -> list[int]:
    """
    Split a dotted version string into integer parts.

    A leading "v" is ignored. Non-numeric parts raise ValueError.
    """
    return [int(part) for part in version.strip().lstrip("v").split(".") if part != ""]


def is_version_greater_or_equal(current: str, required: str) -> bool:
    """
    Compare two dotted version strings.

    Missing parts are treated as 0, so "20" equals "20.0.0".

    Args:
        current: The version being checked (e.g., "20.1.0" or "v20.1.0").
        required: The minimum version (e.g., "19.9.0").

    Returns:
        bool: True if current >= required.
    """
    current_parts = _version_parts(current)
    required_parts = _version_parts(required)

    for i in range(max(len(current_parts), len(required_parts))):
        current_part = current_parts[i] if i < len(current_parts) else 0
        required_part = required_parts[i] if i < len(required_parts) else 0

        if current_part > required_part:
            return True
        if current_part < required_part:
            return False

    return True


def is_prerelease(version: str) -> bool:
    lowered = version.lower()
    return any(marker in lowered for marker in PRERELEASE_MARKERS)


def is_within_bounds(version: str, minimum: str, maximum: str) -> bool:
    """True if minimum <= version <= maximum, both bounds inclusive."""
    return is_version_greater_or_equal(version, minimum) and is_version_greater_or_equal(
        maximum, version
    )


def fetch_node_index(url: str = NODE_INDEX_URL) -> Any:
    """Download and decode the nodejs.org release index."""
    response = httpx.get(url, timeout=INDEX_TIMEOUT_SECONDS, follow_redirects=True)
    response.raise_for_status()
    return response.json()


class VersionResolver:
    """
    Determines which Node.js release to download for cross-platform builds.

    Selection, applied to the release index:
    1. keep releases within [minimum, maximum] that are not pre-releases;
    2. return the first of `preferred` that survived the filter;
    3. else the newest LTS release of the preferred major line;
    4. else the first surviving release in index order.

    Any failure falls back to `fallback` with a logged warning; resolution never
    raises. The result is memoised for the lifetime of the resolver.
    """

    def __init__(
        self,
        fetch_index: Optional[IndexFetcher] = None,
        minimum: str = MIN_NODE_VERSION,
        maximum: str = MAX_NODE_VERSION,
        preferred: tuple[str, ...] = PREFERRED_NODE_VERSIONS,
        preferred_major: int = PREFERRED_NODE_MAJOR,
        fallback: str = FALLBACK_NODE_VERSION,
    ):
        self.fetch_index = fetch_index if fetch_index is not None else fetch_node_index
        self.minimum = minimum
        self.maximum = maximum
        self.preferred = preferred
        self.preferred_major = preferred_major
        self.fallback = fallback
        self._resolved: Optional[str] = None

    def resolve(self) -> str:
        if self._resolved is None:
            self._resolved = self._resolve()
        return self._resolved

    def _resolve(self) -> str:
        try:
            index = self.fetch_index()
        except Exception as e:  # noqa: BLE001
            # Any index failure degrades to the fallback version
            logger.warning(
                "Could not fetch Node.js release index (%s), using %s",
                e,
                self.fallback,
            )
            return self.fallback

        version = self.select(index)
        if version is None:
            logger.warning(
                "No suitable Node.js release found in index, using %s", self.fallback
            )
            return self.fallback

        logger.debug("Resolved Node.js version %s", version)
        return version

    def select(self, index: Any) -> Optional[str]:
        """
        Apply the selection policy to a decoded release index.

        Args:
            index: The decoded index.json payload, a list of release entries
                with at least a "version" key and optionally an "lts" key.

        Returns:
            The selected version without its "v" prefix, or None if nothing
            qualifies.
        """
        candidates = self._filter(index)
        if not candidates:
            return None

        available = {version for version, _ in candidates}
        for preferred in self.preferred:
            if preferred in available:
                return preferred

        lts_in_major = [
            version
            for version, lts in candidates
            if lts and _version_parts(version)[0] == self.preferred_major
        ]
        if lts_in_major:
            newest = lts_in_major[0]
            for version in lts_in_major[1:]:
                if not is_version_greater_or_equal(newest, version):
                    newest = version
            return newest

        return candidates[0][0]

    def _filter(self, index: Any) -> list[tuple[str, bool]]:
        if not isinstance(index, list):
            return []

        candidates: list[tuple[str, bool]] = []
        for entry in index:
            if not isinstance(entry, dict):
                continue
            raw_version = entry.get("version")
            if not isinstance(raw_version, str) or not raw_version:
                continue

            version = raw_version.strip().lstrip("v")
            if is_prerelease(version):
                continue
            try:
                if not is_within_bounds(version, self.minimum, self.maximum):
                    continue
            except ValueError:
                continue

            candidates.append((version, bool(entry.get("lts"))))
        return candidates
