"""
Platform identification and platform-derived naming rules.

Every platform-specific decision in the pipeline goes through this module:
detecting the host platform, parsing user-supplied platform names, and
deriving the executable name, runtime binary name and archive format of a
target from PLATFORM_TRAITS.
"""

import platform as host_info

from constants import PLATFORM_ALIASES, PLATFORM_TRAITS
from core.exceptions import UnsupportedPlatformError
from models import ArchiveKind, Platform, PlatformTraits


def _normalize_system() -> str:
    """
    Normalize the host system name to a Node.js platform identifier.

    Converts platform.system() output ("Linux", "Darwin", "Windows") to the
    identifiers used by `process.platform`.

    Returns:
        str: The normalized identifier ("linux", "darwin", "win32") or the
            lowercased system name for anything else.
    """
    raw_system = host_info.system().lower()
    if raw_system == "windows":
        return "win32"
    return raw_system


def get_host_platform() -> Platform:
    """
    Detect the platform this process is running on.

    Raises:
        UnsupportedPlatformError: If the host OS is not one of the supported targets.
    """
    system = _normalize_system()
    try:
        return Platform(system)
    except ValueError as e:
        raise UnsupportedPlatformError(
            message=f"Unsupported host platform: {system}",
            platform=system,
            original_exception=e,
        ) from e


def parse_platform(value: str | Platform) -> Platform:
    """
    Parse a user-supplied platform name into a Platform.

    Accepts the canonical identifiers (linux, darwin, win32) as well as the
    aliases in PLATFORM_ALIASES, case-insensitively.

    Raises:
        UnsupportedPlatformError: If the name matches no supported platform.
    """
    if isinstance(value, Platform):
        return value

    normalized = value.strip().lower()
    if normalized in PLATFORM_ALIASES:
        return PLATFORM_ALIASES[normalized]
    try:
        return Platform(normalized)
    except ValueError as e:
        raise UnsupportedPlatformError(
            message=f"Unsupported platform: {value}",
            platform=value,
            original_exception=e,
        ) from e


def parse_platform_list(value: str) -> tuple[Platform, ...]:
    """
    Parse a comma-separated platform list, dropping blanks and duplicates.

    Order of first appearance is preserved.
    """
    platforms: list[Platform] = []
    for item in value.split(","):
        if not item.strip():
            continue
        parsed = parse_platform(item)
        if parsed not in platforms:
            platforms.append(parsed)
    return tuple(platforms)


def get_traits(target: Platform) -> PlatformTraits:
    try:
        return PLATFORM_TRAITS[Platform(target)]
    except (KeyError, ValueError) as e:
        raise UnsupportedPlatformError(
            message=f"Unsupported platform: {target}",
            platform=str(target),
            original_exception=e,
        ) from e


def get_supported_platforms() -> list[Platform]:
    return list(Platform)


def get_executable_name(base_name: str, target: Platform) -> str:
    """
    Derive the output executable name for a target platform.

    The platform suffix is appended only when missing, so applying the rule to
    its own result is a no-op.
    """
    suffix = get_traits(target)["executable_suffix"]
    if suffix and not base_name.lower().endswith(suffix):
        return f"{base_name}{suffix}"
    return base_name


def get_binary_name(target: Platform) -> str:
    """Name of the Node.js binary for the target OS (not the host OS)."""
    return get_traits(target)["binary_name"]


def get_archive_kind(target: Platform) -> ArchiveKind:
    return get_traits(target)["archive_kind"]


def supports_signing(target: Platform) -> bool:
    return get_traits(target)["supports_signing"]
