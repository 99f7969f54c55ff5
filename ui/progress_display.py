"""
Progress reporting protocol for decoupling UI from the build pipeline.

This module defines a protocol that lets the coordinator and the platform
pipelines report what they are doing without depending on Rich, making them
easy to test and to run headless.
"""

from types import TracebackType
from typing import Protocol

from rich.progress import Progress, TaskID
from ui.progress import (
    ProgressState,
    create_progress,
    create_task,
    update_progress,
)


class ProgressDisplay(Protocol):
    """
    Protocol for build progress reporting.

    The lifecycle is:
    1. Context manager entry (__enter__)
    2. on_start() - once per platform, when its pipeline begins
    3. on_update() - on every pipeline stage transition
    4. on_complete() or on_fail() - once per platform
    5. Context manager exit (__exit__)
    """

    def __enter__(self) -> "ProgressDisplay":
        """Enter the progress context."""

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the progress context."""

    def on_start(self, description: str, total: int | None = None) -> None:
        """Begin reporting a new task (one platform build)."""

    def on_update(self, *, description: str) -> None:
        """Replace the description of the current task."""

    def on_complete(self, description: str, warning: bool = False) -> None:
        """
        Mark the current task as finished successfully.

        Args:
            description: Final description text to display.
            warning: True if the task finished with warnings.
        """

    def on_fail(self, description: str) -> None:
        """Mark the current task as failed."""


class RichProgressDisplay:
    """
    Rich UI implementation of ProgressDisplay.

    Each platform build gets its own spinner line inside a single Rich
    Progress instance, so finished platforms stay visible while the next one
    runs.
    """

    def __init__(self) -> None:
        """Initialize RPD. Progress instance is created lazily."""
        self._progress: Progress | None = None
        self._task: TaskID | None = None

    def __enter__(self) -> "RichProgressDisplay":
        self._progress = create_progress()
        self._progress.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._progress:
            self._progress.__exit__(exc_type, exc_val, exc_tb)

    def _require_progress(self) -> Progress:
        if not self._progress:
            raise RuntimeError(
                "RichProgressDisplay must be used as a context manager. "
                "Use: with RichProgressDisplay() as rpd:"
            )
        return self._progress

    def _require_task(self, method: str) -> TaskID:
        if self._task is None:
            raise RuntimeError(f"on_start() must be called before {method}()")
        return self._task

    def on_start(self, description: str, total: int | None = None) -> None:
        """
        Add a new spinner line for the next task.

        Raises:
            RuntimeError: If not used as a context manager.
        """
        progress = self._require_progress()
        self._task = create_task(progress, description, total=total)

    def on_update(self, *, description: str) -> None:
        """
        Update the description of the current spinner line.

        Raises:
            RuntimeError: If not used as a context manager or if on_start()
                was not called first.
            ValueError: If description is empty.
        """
        progress = self._require_progress()
        task = self._require_task("on_update")
        if not description:
            raise ValueError("'description' must be provided to on_update()")

        update_progress(progress, task, ProgressState.IN_PROGRESS, description=description)

    def on_complete(self, description: str, warning: bool = False) -> None:
        progress = self._require_progress()
        task = self._require_task("on_complete")
        state = ProgressState.WARNING if warning else ProgressState.COMPLETE
        update_progress(progress, task, state, total=1, completed=1, description=description)

    def on_fail(self, description: str) -> None:
        progress = self._require_progress()
        task = self._require_task("on_fail")
        update_progress(
            progress, task, ProgressState.ERROR, total=1, completed=1, description=description
        )


class NoOpProgressDisplay:
    """
    No-op implementation of ProgressDisplay for testing.

    This implementation does nothing, allowing tests and non-interactive
    callers to run without Rich progress bars.
    """

    def __enter__(self) -> "NoOpProgressDisplay":
        return self

    def __exit__(self, *args) -> None:
        """Exit the progress context (no-op)."""

    def on_start(self, description: str, total: int | None = None) -> None:
        """No-op: does nothing."""

    def on_update(self, *, description: str) -> None:
        """No-op: does nothing."""

    def on_complete(self, description: str, warning: bool = False) -> None:
        """No-op: does nothing."""

    def on_fail(self, description: str) -> None:
        """No-op: does nothing."""
