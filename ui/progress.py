"""
Progress spinner creation and management module using Rich.

This module provides utilities for creating and updating the per-platform
build spinners shown while executables are assembled. It uses the Rich
library to display a spinner, a styled description and the elapsed time. The
module supports different progress states (in progress, complete, warning,
error) with color coding.
"""

from enum import StrEnum
from typing import Optional

from rich.progress import (
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressState(StrEnum):
    """
    Enumeration of progress states with associated color codes.

    Attributes:
        IN_PROGRESS: Magenta color for platforms currently being built.
        COMPLETE: Green color for successfully built platforms.
        WARNING: Yellow color for builds that completed with warnings.
        ERROR: Red color for failed builds.
    """

    IN_PROGRESS = "magenta"
    COMPLETE = "green"
    WARNING = "yellow"
    ERROR = "red"


def create_progress() -> Progress:
    """
    Creates and configures a Rich Progress instance with standard styling.

    Builds are made of a handful of opaque steps with no meaningful
    percentage, so the display is a spinner, the description and the elapsed
    time.

    Returns:
        Progress: A configured Rich Progress instance ready for task management.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
    )


def create_task(progress: Progress, description: str, total: Optional[int]) -> TaskID:
    """
    Creates a new task in a progress instance with initial state.

    Args:
        progress (Progress): The Rich Progress instance to add the task to.
        description (str): The description text to display for this task.
        total (Optional[int]): The total number of steps, or None for an
            indeterminate task.

    Returns:
        TaskID: The unique identifier for the created task, used for updates.
    """
    return progress.add_task(f"[{ProgressState.IN_PROGRESS}]{description}", total=total)


def update_progress(
    progress: Progress,
    task: TaskID,
    progress_state: Optional[ProgressState] = None,
    total: Optional[float] = None,
    completed: Optional[float] = None,
    advance: Optional[float] = None,
    description: Optional[str] = None,
) -> None:
    """
    Updates a progress task with new state, progress, or description.

    Note: If `progress_state` is provided, `description` must also be provided,
    and vice versa, so the description is always styled with the state color.

    Raises:
        ValueError: If progress_state and description are not both provided
            or both omitted.
    """
    if bool(progress_state) != bool(description):
        raise ValueError("progress_state and description must be provided together.")

    if description:
        description = f"[{progress_state}]{description}"

    # Rich's progress.update() treats None as "clear", so it is omitted
    if description is not None:
        progress.update(
            task,
            total=total,
            completed=completed,
            advance=advance,
            description=description,
        )
    else:
        progress.update(task, total=total, completed=completed, advance=advance)
