"""
Session-scoped temporary workspaces.

Each build session writes its intermediate files (SEA configs and blobs)
into its own directory under a shared temp root. The directory is removed
when the session ends, whatever the outcome. Sessions killed before they could
clean up leave their directory behind; `BuildWorkspace.sweep` removes every
such leftover.
"""

import logging
import secrets
import shutil
import time
from pathlib import Path
from types import TracebackType
from typing import Iterable, Optional

from constants import SESSION_PREFIX
from core.exceptions import WorkspaceError

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """
    Generate a unique build session identifier.

    Combines the creation time in milliseconds with 4 random bytes, e.g.
    "build-1729260000000-9f2c41ab".
    """
    return f"{SESSION_PREFIX}{int(time.time() * 1000)}-{secrets.token_hex(4)}"


class BuildWorkspace:
    """
    Isolated temporary directory owned by one build session.

    Attributes:
        root: The shared temp root all session directories live under.
        session_id: Identifier of the owning session.
        path: The session directory, `root / session_id`.
    """

    def __init__(self, root: Path, session_id: Optional[str] = None):
        """
        Create the temp root and the session directory if missing.

        Raises:
            WorkspaceError: If the directories cannot be created.
        """
        self.root = Path(root)
        self.session_id = session_id or generate_session_id()
        self.path = self.root / self.session_id

        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(
                message=f"Cannot create build workspace: {self.path}",
                original_exception=e,
            ) from e

        logger.debug("Created workspace %s", self.path)

    def __enter__(self) -> "BuildWorkspace":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.teardown()

    def path_for(self, name: str) -> Path:
        return self.path / name

    def cleanup(self, paths: Iterable[Path]) -> None:
        """
        Remove specific files, best effort.

        Missing files are ignored; any other failure is logged as a warning and
        never raised.
        """
        for file_path in paths:
            try:
                Path(file_path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not clean up %s: %s", file_path, e)

    def teardown(self) -> None:
        """Remove the whole session directory, best effort. Safe to call twice."""
        if not self.path.exists():
            return
        try:
            shutil.rmtree(self.path)
            logger.debug("Removed workspace %s", self.path)
        except OSError as e:
            logger.warning("Could not remove workspace %s: %s", self.path, e)

    @staticmethod
    def sweep(root: Path) -> int:
        """
        Remove every session directory left under `root`.

        Used to reclaim space after sessions that were interrupted before they
        could tear down. Only directories carrying the session prefix are
        touched. Failures are logged per entry.

        Returns:
            int: Number of session directories removed.
        """
        root = Path(root)
        if not root.is_dir():
            return 0

        removed = 0
        for entry in root.iterdir():
            if not entry.is_dir() or not entry.name.startswith(SESSION_PREFIX):
                continue
            try:
                shutil.rmtree(entry)
                removed += 1
            except OSError as e:
                logger.warning("Could not remove %s: %s", entry, e)

        logger.info("Removed %d build workspace(s) from %s", removed, root)
        return removed
