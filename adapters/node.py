"""
Node.js toolchain location on the host.

Blob generation and injection are performed by the host's Node.js
installation (`node` and `npx`). This module finds those executables,
honouring explicit overrides from the user settings before falling back to
the PATH.
"""

import shutil
from pathlib import Path
from typing import Optional

from core.exceptions import NodeNotFoundError


def _locate(name: str, override: Optional[Path]) -> Path:
    if override is not None:
        if not override.is_file():
            raise NodeNotFoundError(message=f"Configured {name} not found: {override}")
        return override

    found = shutil.which(name)
    if found is None:
        raise NodeNotFoundError(
            message=f"Could not find '{name}' on PATH. Install Node.js 19.9.0 or newer."
        )
    return Path(found)


def get_node_path(override: Optional[Path] = None) -> Path:
    """
    Locate the host `node` executable.

    Args:
        override: Explicit path from the settings file, used instead of PATH.

    Returns:
        Path: Full path to the node binary.

    Raises:
        NodeNotFoundError: If the override does not exist or node is not on PATH.
    """
    return _locate("node", override)


def get_npx_path(override: Optional[Path] = None) -> Path:
    """Locate the host `npx` executable used to run postject."""
    return _locate("npx", override)
