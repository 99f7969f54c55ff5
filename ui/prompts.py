"""
Interactive user prompts for the node-package-builder CLI.

Prompts are only shown when a value was not supplied on the command line and
the terminal is interactive. They use the `inquirer` library for input and
`rich` for formatted output.

Dependencies:
    - inquirer: Interactive terminal prompts
    - rich: Terminal formatting and colors
    - typer: CLI framework integration
"""

from pathlib import Path

import inquirer  # type: ignore
from inquirer.errors import ValidationError  # type: ignore
from inquirer.themes import GreenPassion  # type: ignore
from rich import print as pr
import typer

from constants import DEFAULT_PROJECT_NAME


def _validate_project_name(_answers: dict, current: str) -> bool:
    name = current.strip()
    if not name or Path(name).name != name or name in (".", ".."):
        raise ValidationError(
            "", reason="Use a plain directory name without path separators"
        )
    return True


def prompt_project_name(default: str = DEFAULT_PROJECT_NAME) -> str:
    """
    Ask the user for the name of the project to scaffold.

    Returns:
        str: The chosen name, stripped.

    Raises:
        typer.Exit: If the user cancels the prompt.
    """
    pr("\n[bold green]Create a sample Node.js project.[/bold green]\n")

    questions = [
        inquirer.Text(
            "name",
            message="Project name",
            default=default,
            validate=_validate_project_name,
        ),
    ]

    answers = inquirer.prompt(questions, theme=GreenPassion())
    if not answers:
        raise typer.Exit()

    return answers["name"].strip()

