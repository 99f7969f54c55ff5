"""
Sample project scaffolding for the `init` command.
"""

import json
from pathlib import Path

from constants import APP_NAME, DEFAULT_MAIN
from core.exceptions import WorkspaceError


def sample_source(project_name: str) -> str:
    return (
        f"console.log('Hello from {project_name}!');\n"
        "console.log('Arguments:', process.argv.slice(2));\n"
    )


def sample_package_json(project_name: str) -> dict:
    return {
        "name": project_name,
        "version": "1.0.0",
        "description": "Sample Node.js application",
        "main": DEFAULT_MAIN,
        "scripts": {
            "build": f"{APP_NAME} build",
            "build-all": f"{APP_NAME} build --platforms linux,darwin,win32",
            "cleanup": f"{APP_NAME} cleanup",
        },
    }


def create_sample_project(project_name: str, parent: Path | None = None) -> Path:
    """
    Create `<parent>/<project_name>` with an entry point and a package.json.

    An existing directory is reused; the two files are overwritten.

    Args:
        project_name: Directory name and package name of the new project.
        parent: Directory to create the project in. Defaults to the current
            working directory.

    Returns:
        Path: The project directory.

    Raises:
        ValueError: If project_name is empty or contains a path separator.
        WorkspaceError: If the directory or files cannot be written.
    """
    name = project_name.strip()
    if not name or Path(name).name != name or name in (".", ".."):
        raise ValueError(f"Invalid project name: '{project_name}'")

    project_dir = (parent or Path.cwd()) / name
    try:
        project_dir.mkdir(parents=True, exist_ok=True)
        (project_dir / DEFAULT_MAIN).write_text(sample_source(name), encoding="utf-8")
        (project_dir / "package.json").write_text(
            json.dumps(sample_package_json(name), indent=2) + "\n", encoding="utf-8"
        )
    except OSError as e:
        raise WorkspaceError(
            message=f"Failed to create project: {e}", original_exception=e
        ) from e

    return project_dir
