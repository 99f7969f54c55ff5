"""
Custom exception classes for the node-package-builder CLI.

This module defines the application-specific exceptions raised while
preparing runtimes and assembling executables. Every error carries a
human-readable message, the platform it concerns (when there is one), the
underlying exception that caused it and a small diagnostic payload that the
CLI prints when asking users to report a problem.

Fatal errors for one platform abort only that platform's pipeline; the
coordinator turns them into failed build results. Non-fatal conditions
(version resolution fallback, signature removal, signing) are never raised:
they surface as warnings on StepOutcome values.
"""

import os
from typing import Optional


class BuildError(Exception):
    """
    Base exception for every failure the build pipeline knows how to report.

    Attributes:
        message: A human-readable error message describing what went wrong.
        platform: The target platform identifier the error relates to, if any.
        original_exception: The underlying exception that caused this error, if any.
        diagnostic_info: A dictionary containing diagnostic information including
            exception type, details, and OS name.
    """

    default_message = "The build failed"

    def __init__(
        self,
        message: Optional[str] = None,
        platform: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.platform = platform
        self.original_exception = original_exception
        self.diagnostic_info = {
            "type": (
                type(original_exception).__name__ if original_exception else "Unknown"
            ),
            "details": str(original_exception) if original_exception else "No details",
            "os_name": os.name,
        }


class UnsupportedPlatformError(BuildError):
    """Raised for a platform identifier outside linux, darwin and win32."""

    default_message = "Unsupported platform"


class UnsupportedRuntimeError(BuildError):
    """
    Raised when the host Node.js is too old to produce SEA blobs.

    Single executable applications need `--experimental-sea-config`, which
    first shipped in Node.js 19.9.0.
    """

    default_message = "The installed Node.js version does not support single executables"


class NodeNotFoundError(BuildError):
    """Raised when no Node.js (or npx) executable can be located on the host."""

    default_message = "Node.js executable not found"


class InvalidMainFileError(BuildError):
    """Raised when the entry-point script is missing or is not a regular file."""

    default_message = "Main file is not valid"

    def __init__(
        self,
        message: Optional[str] = None,
        file_path: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message=message, original_exception=original_exception)
        self.file_path = file_path


class DownloadError(BuildError):
    """Raised when a Node.js distribution archive cannot be downloaded."""

    default_message = "Failed to download Node.js runtime"

    def __init__(
        self,
        message: Optional[str] = None,
        platform: Optional[str] = None,
        original_exception: Optional[Exception] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, platform, original_exception)
        self.url = url


class ExtractionError(BuildError):
    """
    Raised when the runtime binary cannot be extracted from an archive.

    This covers corrupt archives, archives that do not contain the expected
    member, and cache entries whose binary is missing after extraction.
    """

    default_message = "Failed to extract Node.js runtime"


class ConfigWriteError(BuildError):
    """Raised when the SEA configuration file cannot be written to the workspace."""

    default_message = "Failed to write SEA configuration"


class BlobGenerationError(BuildError):
    """Raised when `node --experimental-sea-config` fails to produce a blob."""

    default_message = "Failed to generate blob"


class ExecutableAssemblyError(BuildError):
    """Raised when the base runtime binary cannot be copied to the output executable."""

    default_message = "Failed to create executable"


class InjectionError(BuildError):
    """Raised when postject fails to inject the blob into the executable."""

    default_message = "Failed to inject blob"


class VerificationError(BuildError):
    """
    Raised when a built Windows executable turns out to be a bare node.exe.

    A failed injection on Windows can exit successfully while leaving the
    executable unchanged, so the built file is executed once and its output
    inspected for the interactive REPL banner.
    """

    default_message = "Executable verification failed"


class WorkspaceError(BuildError):
    """Raised when the session workspace cannot be created."""

    default_message = "Failed to create build workspace"


class SettingsError(BuildError):
    """Raised when the user settings file exists but cannot be parsed."""

    default_message = "Failed to read settings"
