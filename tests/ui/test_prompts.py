"""
Tests for the prompts module.

Tests cover:
- prompt_project_name: answer handling, cancellation
- _validate_project_name: rejection of paths
"""

import pytest
import typer
from inquirer.errors import ValidationError

from ui.prompts import _validate_project_name, prompt_project_name


@pytest.mark.unit
@pytest.mark.mock
def test_prompt_project_name_returns_stripped_answer(mocker):
    prompt = mocker.patch("ui.prompts.inquirer.prompt", return_value={"name": "  cli-tool "})

    assert prompt_project_name() == "cli-tool"
    question = prompt.call_args.args[0][0]
    assert question.default == "my-app"


@pytest.mark.unit
@pytest.mark.mock
def test_prompt_project_name_cancelled(mocker):
    mocker.patch("ui.prompts.inquirer.prompt", return_value=None)

    with pytest.raises(typer.Exit):
        prompt_project_name()


@pytest.mark.unit
def test_validate_project_name():
    assert _validate_project_name({}, "my-app")

    with pytest.raises(ValidationError):
        _validate_project_name({}, "nested/app")
    with pytest.raises(ValidationError):
        _validate_project_name({}, "   ")
