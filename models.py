"""
Type definitions and data models used across the node-package-builder CLI.

This module contains shared type definitions including enums and TypedDict
structures that are used throughout the codebase for type safety and consistency.
"""

from enum import StrEnum
from typing import TypedDict


class Platform(StrEnum):
    """
    Enumeration of target platforms an executable can be built for.

    The enum values match Node.js' own `process.platform` identifiers, which is
    what users pass on the command line. Every platform-specific behaviour
    (binary names, archive formats, signing) is looked up in PLATFORM_TRAITS
    rather than by comparing strings.
    """

    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "win32"


class ArchiveKind(StrEnum):
    """Container format of the official Node.js distribution archives."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"


class PlatformTraits(TypedDict):
    """
    Type definition for platform-specific build properties.

    Attributes:
        display_name: Human readable platform name used in terminal output.
        binary_name: File name of the Node.js binary inside the distribution
            archive and inside the runtime cache (e.g., "node", "node.exe").
        executable_suffix: Suffix every produced executable must carry.
        archive_kind: Format of the distribution archive for this platform.
        dist_token: Platform token used in nodejs.org distribution file names.
        supports_signing: True if the OS has a code signing step.
        requires_macho_segment: True if postject needs a Mach-O segment name.
        requires_verification: True if the produced executable must be
            re-run to detect silently failed injections.
    """

    display_name: str
    binary_name: str
    executable_suffix: str
    archive_kind: ArchiveKind
    dist_token: str
    supports_signing: bool
    requires_macho_segment: bool
    requires_verification: bool
