"""
Comprehensive tests for the progress_display module using pytest.

Tests cover:
- RichProgressDisplay: context manager, on_start, on_update, on_complete,
  on_fail, error cases
- NoOpProgressDisplay: basic functionality (no-op behavior)

Note: RichProgressDisplay tests use mocks to avoid creating actual Rich UI components.
"""

from unittest.mock import MagicMock

import pytest

from ui.progress_display import NoOpProgressDisplay, RichProgressDisplay
from ui.progress import ProgressState


@pytest.fixture
def rich_mocks(mocker):
    """Patch Rich progress creation and return (progress, task_id, update_mock)."""
    mock_progress = MagicMock()
    mock_task_id = MagicMock()
    mocker.patch("ui.progress_display.create_progress", return_value=mock_progress)
    mocker.patch("ui.progress_display.create_task", return_value=mock_task_id)
    mock_update = mocker.patch("ui.progress_display.update_progress")
    return mock_progress, mock_task_id, mock_update


# ============================================================================
# Tests for RichProgressDisplay
# ============================================================================


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_enter_creates_progress(mocker):
    """__enter__ should create and enter the progress instance."""
    mock_progress = MagicMock()
    mocker.patch("ui.progress_display.create_progress", return_value=mock_progress)

    display = RichProgressDisplay()
    result = display.__enter__()

    assert result is display
    assert display._progress is mock_progress
    mock_progress.__enter__.assert_called_once()


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_exit_with_exception(mocker):
    """__exit__ should forward exception info to Rich."""
    mock_progress = MagicMock()
    mocker.patch("ui.progress_display.create_progress", return_value=mock_progress)

    display = RichProgressDisplay()
    display.__enter__()
    exc_val = ValueError("Test error")
    display.__exit__(ValueError, exc_val, None)

    mock_progress.__exit__.assert_called_once_with(ValueError, exc_val, None)


@pytest.mark.unit
def test_rich_progress_display_exit_without_progress():
    """__exit__ should handle case when progress is None."""
    RichProgressDisplay().__exit__(None, None, None)


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_start(mocker):
    mock_progress = MagicMock()
    mock_task_id = MagicMock()
    mocker.patch("ui.progress_display.create_progress", return_value=mock_progress)
    mock_create_task = mocker.patch(
        "ui.progress_display.create_task", return_value=mock_task_id
    )

    display = RichProgressDisplay()
    with display:
        display.on_start("Building for Linux...")

    mock_create_task.assert_called_once_with(
        mock_progress, "Building for Linux...", total=None
    )
    assert display._task is mock_task_id


@pytest.mark.unit
def test_rich_progress_display_on_start_without_context_raises_error():
    display = RichProgressDisplay()

    with pytest.raises(RuntimeError, match="must be used as a context manager"):
        display.on_start("Test")


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_update(rich_mocks):
    mock_progress, mock_task_id, mock_update = rich_mocks

    display = RichProgressDisplay()
    with display:
        display.on_start("Building for Linux...")
        display.on_update(description="linux: injecting blob...")

    mock_update.assert_called_with(
        mock_progress,
        mock_task_id,
        ProgressState.IN_PROGRESS,
        description="linux: injecting blob...",
    )


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_update_empty_description_raises_error(rich_mocks):
    display = RichProgressDisplay()
    with display:
        display.on_start("Test")
        with pytest.raises(ValueError, match="'description' must be provided"):
            display.on_update(description="")


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_update_without_on_start_raises_error(mocker):
    mocker.patch("ui.progress_display.create_progress", return_value=MagicMock())

    display = RichProgressDisplay()
    with display:
        with pytest.raises(
            RuntimeError, match="on_start\\(\\) must be called before on_update\\(\\)"
        ):
            display.on_update(description="x")


@pytest.mark.unit
@pytest.mark.mock
@pytest.mark.parametrize(
    "warning, state",
    [(False, ProgressState.COMPLETE), (True, ProgressState.WARNING)],
)
def test_rich_progress_display_on_complete(rich_mocks, warning, state):
    mock_progress, mock_task_id, mock_update = rich_mocks

    display = RichProgressDisplay()
    with display:
        display.on_start("Test")
        display.on_complete("Linux: app", warning=warning)

    mock_update.assert_called_with(
        mock_progress,
        mock_task_id,
        state,
        total=1,
        completed=1,
        description="Linux: app",
    )


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_fail(rich_mocks):
    mock_progress, mock_task_id, mock_update = rich_mocks

    display = RichProgressDisplay()
    with display:
        display.on_start("Test")
        display.on_fail("macOS: Failed to inject blob")

    mock_update.assert_called_with(
        mock_progress,
        mock_task_id,
        ProgressState.ERROR,
        total=1,
        completed=1,
        description="macOS: Failed to inject blob",
    )


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_on_fail_without_on_start_raises_error(mocker):
    mocker.patch("ui.progress_display.create_progress", return_value=MagicMock())

    display = RichProgressDisplay()
    with display:
        with pytest.raises(RuntimeError, match="on_fail"):
            display.on_fail("boom")


@pytest.mark.unit
@pytest.mark.mock
def test_rich_progress_display_one_task_per_platform(mocker):
    mocker.patch("ui.progress_display.create_progress", return_value=MagicMock())
    mock_create_task = mocker.patch(
        "ui.progress_display.create_task", side_effect=["task-linux", "task-win"]
    )
    mock_update = mocker.patch("ui.progress_display.update_progress")

    display = RichProgressDisplay()
    with display:
        display.on_start("Building for Linux...")
        display.on_complete("Linux: app")
        display.on_start("Building for Windows...")
        display.on_fail("Windows: Failed to inject blob")

    assert mock_create_task.call_count == 2
    assert mock_update.call_args_list[0].args[1] == "task-linux"
    assert mock_update.call_args_list[1].args[1] == "task-win"


# ============================================================================
# Tests for NoOpProgressDisplay
# ============================================================================


@pytest.mark.unit
def test_noop_progress_display_lifecycle():
    """NoOpProgressDisplay should accept every call without side effects."""
    display = NoOpProgressDisplay()

    with display as noop:
        assert noop is display
        noop.on_start("Test")
        noop.on_update(description="Test")
        noop.on_complete("Done", warning=True)
        noop.on_fail("Failed")
