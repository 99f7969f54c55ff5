"""
Application-wide constants and configuration mappings.

This module defines the fixed data used throughout the node-package-builder
CLI: platform traits, Node.js distribution endpoints, the version selection
policy, the SEA injection contract and the on-disk locations of the runtime
cache and of build workspaces.
"""

import tempfile
from pathlib import Path
from typing import Final, Mapping
from models import ArchiveKind, Platform, PlatformTraits


# Platform-specific properties for every supported target.
# Components never branch on raw platform strings; they read the traits of
# the Platform they were given. Only x64 builds are distributed.
PLATFORM_TRAITS: Final[Mapping[Platform, PlatformTraits]] = {
    Platform.LINUX: {
        "display_name": "Linux",
        "binary_name": "node",
        "executable_suffix": "",
        "archive_kind": ArchiveKind.TAR_GZ,
        "dist_token": "linux",
        "supports_signing": False,
        "requires_macho_segment": False,
        "requires_verification": False,
    },
    Platform.MACOS: {
        "display_name": "macOS",
        "binary_name": "node",
        "executable_suffix": "",
        "archive_kind": ArchiveKind.TAR_GZ,
        "dist_token": "darwin",
        "supports_signing": True,
        "requires_macho_segment": True,
        "requires_verification": False,
    },
    Platform.WINDOWS: {
        "display_name": "Windows",
        "binary_name": "node.exe",
        "executable_suffix": ".exe",
        "archive_kind": ArchiveKind.ZIP,
        "dist_token": "win",
        "supports_signing": True,
        "requires_macho_segment": False,
        "requires_verification": True,
    },
}

# Alternative spellings accepted on the command line.
PLATFORM_ALIASES: Final[Mapping[str, Platform]] = {
    "mac": Platform.MACOS,
    "macos": Platform.MACOS,
    "osx": Platform.MACOS,
    "win": Platform.WINDOWS,
    "windows": Platform.WINDOWS,
}

NODE_ARCH: Final[str] = "x64"
NODE_DIST_BASE_URL: Final[str] = "https://nodejs.org/dist"
NODE_INDEX_URL: Final[str] = f"{NODE_DIST_BASE_URL}/index.json"
NODE_DOWNLOAD_URL_TEMPLATE: Final[str] = (
    NODE_DIST_BASE_URL + "/v{version}/node-v{version}-{token}-" + NODE_ARCH + ".{ext}"
)
# Path of the node binary inside the official tar.gz archives.
NODE_TAR_MEMBER_TEMPLATE: Final[str] = "node-v{version}-{token}-" + NODE_ARCH + "/bin/{binary}"

INDEX_TIMEOUT_SECONDS: Final[float] = 10.0
DOWNLOAD_TIMEOUT_SECONDS: Final[float] = 60.0
DOWNLOAD_CHUNK_SIZE: Final[int] = 1024 * 1024

# Version policy used when a runtime has to be downloaded.
# SEA support landed in 19.9.0; versions are bounded inclusively.
MIN_NODE_VERSION: Final[str] = "19.9.0"
MAX_NODE_VERSION: Final[str] = "22.99.99"
PREFERRED_NODE_MAJOR: Final[int] = 20
PREFERRED_NODE_VERSIONS: Final[tuple[str, ...]] = (
    "20.18.0",
    "20.17.0",
    "20.16.0",
    "20.15.1",
    "22.11.0",
)
FALLBACK_NODE_VERSION: Final[str] = "20.18.0"
PRERELEASE_MARKERS: Final[tuple[str, ...]] = ("rc", "beta", "alpha", "nightly", "-")

# SEA injection contract (node --experimental-sea-config + postject).
SENTINEL_FUSE: Final[str] = "NODE_SEA_FUSE_fce680ab2cc467b6e072b8b5df1996b2"
SEA_RESOURCE_NAME: Final[str] = "NODE_SEA_BLOB"
MACHO_SEGMENT_NAME: Final[str] = "NODE_SEA"
SEA_CONFIG_FLAG: Final[str] = "--experimental-sea-config"
SEA_CONFIG_TEMPLATE: Final[str] = "sea-config-{platform}.json"
SEA_BLOB_TEMPLATE: Final[str] = "sea-prep-{platform}.blob"

# Windows verification: a failed injection leaves a plain node.exe behind,
# which answers with node's own banner or usage text instead of running the
# bundled program.
VERIFICATION_FLAG: Final[str] = "--help"
VERIFICATION_TIMEOUT_SECONDS: Final[float] = 5.0
REPL_BANNER_MARKERS: Final[tuple[str, ...]] = (
    "Welcome to Node.js",
    'Type ".help" for more information',
    "Usage: node [options]",
)

# Filesystem layout
APP_NAME: Final[str] = "node-package-builder"
APP_VERSION: Final[str] = "1.0.2"
HOME_ENV_VAR: Final[str] = "NODE_PACKAGE_BUILDER_HOME"
DEFAULT_HOME_DIR: Final[Path] = Path.home() / f".{APP_NAME}"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
CACHE_DIR_NAME: Final[str] = "cache"
DEFAULT_TEMP_ROOT: Final[Path] = Path(tempfile.gettempdir()) / APP_NAME
SESSION_PREFIX: Final[str] = "build-"

# Build defaults, mirroring the CLI defaults
DEFAULT_MAIN: Final[str] = "index.js"
DEFAULT_OUTPUT: Final[str] = "app"
DEFAULT_PROJECT_NAME: Final[str] = "my-app"
EXECUTABLE_MODE: Final[int] = 0o755
