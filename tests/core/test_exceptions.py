"""
Comprehensive tests for the exceptions module using pytest.

Tests cover:
- BuildError: base exception with default message, platform and diagnostic info
- Subclasses: default messages and inheritance from BuildError
- InvalidMainFileError: file_path attribute
- DownloadError: url attribute and positional arguments
"""

import os
import pytest

from core.exceptions import (
    BlobGenerationError,
    BuildError,
    ConfigWriteError,
    DownloadError,
    ExecutableAssemblyError,
    ExtractionError,
    InjectionError,
    InvalidMainFileError,
    NodeNotFoundError,
    SettingsError,
    UnsupportedPlatformError,
    UnsupportedRuntimeError,
    VerificationError,
    WorkspaceError,
)


# ============================================================================
# Tests for BuildError
# ============================================================================


@pytest.mark.unit
def test_build_error_default_message():
    """BuildError should have a default message when none provided."""
    error = BuildError()
    assert str(error) == "The build failed"
    assert error.message == "The build failed"
    assert error.platform is None
    assert error.original_exception is None


@pytest.mark.unit
def test_build_error_custom_message_and_platform():
    error = BuildError(message="Boom", platform="linux")
    assert str(error) == "Boom"
    assert error.platform == "linux"


@pytest.mark.unit
def test_build_error_with_original_exception():
    """BuildError should include the original exception in diagnostic info."""
    original = OSError("Permission denied")
    error = BuildError(message="Failed", original_exception=original)

    assert error.original_exception is original
    assert error.diagnostic_info["type"] == "OSError"
    assert error.diagnostic_info["details"] == "Permission denied"
    assert error.diagnostic_info["os_name"] == os.name


@pytest.mark.unit
def test_build_error_diagnostic_info_without_exception():
    error = BuildError()
    assert error.diagnostic_info["type"] == "Unknown"
    assert error.diagnostic_info["details"] == "No details"


# ============================================================================
# Tests for subclasses
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_class, expected_message",
    [
        (UnsupportedPlatformError, "Unsupported platform"),
        (NodeNotFoundError, "Node.js executable not found"),
        (DownloadError, "Failed to download Node.js runtime"),
        (ExtractionError, "Failed to extract Node.js runtime"),
        (ConfigWriteError, "Failed to write SEA configuration"),
        (BlobGenerationError, "Failed to generate blob"),
        (ExecutableAssemblyError, "Failed to create executable"),
        (InjectionError, "Failed to inject blob"),
        (VerificationError, "Executable verification failed"),
        (WorkspaceError, "Failed to create build workspace"),
        (SettingsError, "Failed to read settings"),
    ],
)
def test_subclass_default_messages(error_class, expected_message):
    error = error_class()
    assert isinstance(error, BuildError)
    assert error.message == expected_message


@pytest.mark.unit
def test_unsupported_runtime_error_is_build_error():
    with pytest.raises(BuildError):
        raise UnsupportedRuntimeError()


@pytest.mark.unit
def test_invalid_main_file_error_stores_file_path():
    error = InvalidMainFileError(message="Main file not found", file_path="/tmp/x.js")
    assert error.file_path == "/tmp/x.js"
    assert error.platform is None
    assert str(error) == "Main file not found"


@pytest.mark.unit
def test_download_error_stores_url():
    original = ConnectionError("reset")
    error = DownloadError("Failed", "win32", original, url="https://example.test/a.zip")

    assert error.url == "https://example.test/a.zip"
    assert error.platform == "win32"
    assert error.diagnostic_info["type"] == "ConnectionError"
