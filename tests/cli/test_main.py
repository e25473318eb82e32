"""Tests for the codust command line."""

import os
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from codust.cli.main import app


@pytest.fixture
def runner():
    """Fixture to create a Typer CLI runner."""
    return CliRunner()


@pytest.fixture
def clean_anthropic_env(monkeypatch):
    """Let activation write to os.environ and undo it afterwards."""
    for name in ["FOO", "ANTHROPIC_API_KEY", "ANTHROPIC_AUTH_TOKEN", "ANTHROPIC_BASE_URL"]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def completed():
    with patch("codust.activation.subprocess.run", return_value=MagicMock(returncode=0)) as run:
        yield run


def test_no_subcommand_shows_overview(runner):
    result = runner.invoke(app, [])
    assert result.exit_code == 1
    assert "Available codust Subcommands" in result.output
    assert "code" in result.output


def test_unknown_subcommand_shows_overview(runner):
    result = runner.invoke(app, ["bogus"])
    assert result.exit_code == 1
    assert "Available codust Subcommands" in result.output


def test_unknown_option_shows_overview(runner):
    result = runner.invoke(app, ["--bogus"])
    assert result.exit_code == 1
    assert "Available codust Subcommands" in result.output


def test_list_shows_entries(runner, switcher_env, claude_dir, router_dir, write_json):
    write_json(claude_dir / "dev-settings.json", {"env": {}})
    write_json(router_dir / "openai-config.json", {"PORT": 3000})

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "dev" in result.output
    assert "openai-ccr" in result.output
    assert "CCR" in result.output


def test_list_empty(runner, switcher_env):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "No configuration files found" in result.output


def test_code_empty_never_enters_raw_mode(runner, switcher_env):
    with patch("codust.selector.raw_mode") as raw_mode:
        result = runner.invoke(app, ["code"])
    assert result.exit_code == 1
    assert "No configuration files found" in result.output
    raw_mode.assert_not_called()


def test_code_requires_terminal(runner, switcher_env, claude_dir, write_json):
    write_json(claude_dir / "dev-settings.json", {"env": {"FOO": "bar"}})
    with patch("codust.selector.is_interactive", return_value=False):
        result = runner.invoke(app, ["code"])
    assert result.exit_code == 1
    assert "interactive terminal" in result.output


def test_code_cancelled(runner, switcher_env, claude_dir, write_json, completed):
    write_json(claude_dir / "dev-settings.json", {"env": {"FOO": "bar"}})
    with patch("codust.cli.main.select_entry", return_value=None):
        result = runner.invoke(app, ["code"])
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    completed.assert_not_called()


def test_code_interrupted(runner, switcher_env, claude_dir, write_json):
    write_json(claude_dir / "dev-settings.json", {"env": {"FOO": "bar"}})
    with patch("codust.cli.main.select_entry", side_effect=KeyboardInterrupt):
        result = runner.invoke(app, ["code"])
    assert result.exit_code == 130


def test_code_session_interrupted(runner, switcher_env, clean_anthropic_env, claude_dir, write_json):
    write_json(claude_dir / "dev-settings.json", {"env": {"FOO": "bar"}})
    with patch("codust.cli.main.select_entry", return_value=0), \
            patch("codust.cli.main.launch_agent", side_effect=KeyboardInterrupt):
        result = runner.invoke(app, ["code"])
    assert result.exit_code == 130
    assert "interrupted" in result.output


def test_code_activates_primary(runner, switcher_env, clean_anthropic_env, claude_dir, write_json, completed):
    write_json(claude_dir / "dev-settings.json", {"env": {"FOO": "bar"}})
    with patch("codust.cli.main.select_entry", return_value=0):
        result = runner.invoke(app, ["code", "--no-launch"])

    assert result.exit_code == 0, result.output
    assert os.environ["FOO"] == "bar"
    assert "Switched to Claude configuration: dev" in result.output
    completed.assert_not_called()


def test_code_activates_router_and_launches(runner, switcher_env, clean_anthropic_env, router_dir, write_json, completed):
    write_json(router_dir / "openai-config.json", {"APIKEY": "sk-secret-key", "PORT": "3000"})
    with patch("codust.cli.main.select_entry", return_value=0):
        result = runner.invoke(app, ["code"])

    assert result.exit_code == 0, result.output
    assert os.environ["ANTHROPIC_API_KEY"] == "sk-secret-key"
    assert os.environ["ANTHROPIC_BASE_URL"] == "http://127.0.0.1:3000"
    assert "ANTHROPIC_AUTH_TOKEN" not in os.environ
    assert "sk-secret-key" not in result.output
    assert (router_dir / "config.json").exists()
    commands = [call.args[0][1:] for call in completed.call_args_list]
    assert commands == [["restart"], [], ["stop"]]


def test_code_restart_failure_still_succeeds(runner, switcher_env, clean_anthropic_env, router_dir, write_json):
    write_json(router_dir / "openai-config.json", {"PORT": "3000"})
    with patch("codust.cli.main.select_entry", return_value=0), \
            patch("codust.activation.subprocess.run", return_value=MagicMock(returncode=1)):
        result = runner.invoke(app, ["code", "--no-launch"])

    assert result.exit_code == 0, result.output
    assert "exited with status 1" in result.output
    assert os.environ["ANTHROPIC_AUTH_TOKEN"] == "test"


def test_code_missing_port_fails(runner, switcher_env, clean_anthropic_env, router_dir, write_json, completed):
    write_json(router_dir / "openai-config.json", {"APIKEY": "sk"})
    with patch("codust.cli.main.select_entry", return_value=0):
        result = runner.invoke(app, ["code"])

    assert result.exit_code == 1
    assert "PORT" in result.output
    assert "ANTHROPIC_API_KEY" not in os.environ
    assert "ANTHROPIC_BASE_URL" not in os.environ
    completed.assert_not_called()


def test_version(runner):
    with patch("codust.cli.main.importlib.metadata.version", return_value="0.1.0"):
        result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "codust version: 0.1.0" in result.output
