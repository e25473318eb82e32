"""
Test Configuration and Fixtures
=============================

This module provides pytest fixtures and utilities for testing codust.
"""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from codust.environment import SwitcherSettings, reset_settings
from codust.utils.paths import PathMngrModel


class FakeRunner:
    """Command runner recording every call instead of spawning processes."""

    def __init__(self, returncodes: dict[str, int] | None = None, failing: set[str] | None = None):
        self.returncodes = returncodes or {}
        self.failing = failing or set()
        self.calls: list[tuple[list[str], dict[str, str] | None, bool]] = []

    def __call__(self, command: list[str], env: dict[str, str] | None = None, quiet: bool = False) -> int:
        self.calls.append((command, env, quiet))
        shown = " ".join(command)
        if shown in self.failing:
            raise FileNotFoundError(f"No such file or directory: '{command[0]}'")
        return self.returncodes.get(shown, 0)

    @property
    def commands(self) -> list[str]:
        return [" ".join(command) for command, _, _ in self.calls]


@pytest.fixture
def claude_dir(tmp_path: Path) -> Path:
    """Primary configuration directory (created)."""
    directory = tmp_path / ".claude"
    directory.mkdir()
    return directory


@pytest.fixture
def router_dir(tmp_path: Path) -> Path:
    """Router configuration directory (created)."""
    directory = tmp_path / ".claude-code-router"
    directory.mkdir()
    return directory


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    """Write ``data`` as JSON to ``path`` and return the path."""

    def _write(path: Path, data: Any) -> Path:
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def paths(claude_dir: Path, router_dir: Path, tmp_path: Path) -> PathMngrModel:
    work = tmp_path / "project"
    work.mkdir()
    return PathMngrModel(claude_dir=claude_dir, router_dir=router_dir, working_dir=work)


@pytest.fixture
def settings(claude_dir: Path, router_dir: Path) -> SwitcherSettings:
    return SwitcherSettings(claude_dir=claude_dir, router_dir=router_dir)


@pytest.fixture
def runner_factory() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def environ() -> dict[str, str]:
    """A stand-in for ``os.environ``."""
    return {"PATH": "/usr/bin", "HOME": "/home/user"}


@pytest.fixture
def switcher_env(monkeypatch, claude_dir: Path, router_dir: Path):
    """Point the settings singleton at the temporary directories."""
    monkeypatch.setenv("CODUST_CLAUDE_DIR", str(claude_dir))
    monkeypatch.setenv("CODUST_ROUTER_DIR", str(router_dir))
    reset_settings()
    yield
    reset_settings()
