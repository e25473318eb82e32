"""Activation of a selected configuration.

Activation happens in two steps. ``plan_activation`` inspects an entry and
returns an ``ActivationPlan`` describing every side effect: environment
assignments, file backups and copies, and an optional router restart.
``perform_activation`` then applies a plan to an environment mapping and runs
the restart through a command runner, so both can be exercised without
touching the real process environment.
"""

import os
import shlex
import shutil
import signal
import subprocess
from pathlib import Path
from typing import Any, Callable, MutableMapping, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from codust.config import ConfigEntry, ConfigKind
from codust.environment import SwitcherSettings
from codust.errors import MissingFieldError, RestartWarning
from codust.utils.paths import PathMngrModel

API_KEY_VAR = "ANTHROPIC_API_KEY"
AUTH_TOKEN_VAR = "ANTHROPIC_AUTH_TOKEN"
BASE_URL_VAR = "ANTHROPIC_BASE_URL"
FALLBACK_AUTH_TOKEN = "test"
ROUTER_HOST = "127.0.0.1"

CommandRunner = Callable[[list[str], Optional[dict[str, str]], bool], int]


class EnvAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: str


class FileBackup(BaseModel):
    """Rename ``source`` to ``target`` if ``source`` exists."""
    model_config = ConfigDict(frozen=True)

    source: Path
    target: Path


class FileCopy(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Path
    target: Path


class CommandRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: list[str]
    quiet: bool = False


class ActivationPlan(BaseModel):
    """Every side effect needed to activate one entry."""

    model_config = ConfigDict(frozen=True)

    entry: ConfigEntry
    assignments: list[EnvAssignment] = Field(default_factory=list)
    unset: list[str] = Field(default_factory=list)
    backups: list[FileBackup] = Field(default_factory=list)
    copies: list[FileCopy] = Field(default_factory=list)
    restart: Optional[CommandRequest] = None


class ActivationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    plan: ActivationPlan
    warnings: list[RestartWarning] = Field(default_factory=list)


def split_command(command: str) -> list[str]:
    """Split a configured command line into arguments."""
    args = shlex.split(command, posix=os.name != "nt")
    if not args:
        raise ValueError("Empty command")
    return args


def run_command(command: list[str], env: Optional[dict[str, str]] = None, quiet: bool = False) -> int:
    """Run ``command`` in the foreground and return its exit status.

    Raises:
        OSError: If the program cannot be started.
    """
    executable = shutil.which(command[0]) or command[0]
    stdio = subprocess.DEVNULL if quiet else None
    completed = subprocess.run(
        [executable, *command[1:]],
        env=env,
        stdin=stdio,
        stdout=stdio,
        stderr=stdio,
        check=False,
    )
    return completed.returncode


def _stringify(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def primary_assignments(entry: ConfigEntry) -> list[EnvAssignment]:
    """Read the ``env`` object of a Claude settings file.

    Raises:
        MissingFieldError: If ``env`` is present but not an object.
    """
    env = entry.raw_fields.get("env")
    if env is None:
        logger.info(f"{entry.path} has no 'env' object; no variables to export")
        return []
    if not isinstance(env, dict):
        raise MissingFieldError("env", entry.path, "expected an object of variable names to values")

    assignments = []
    for name, value in env.items():
        text = _stringify(value)
        if text is None:
            logger.warning(f"Skipping env variable {name} in {entry.path}: unsupported value {value!r}")
            continue
        assignments.append(EnvAssignment(name=name, value=text))
    return assignments


def router_port(entry: ConfigEntry) -> str:
    """Return the router port as text.

    Raises:
        MissingFieldError: If ``PORT`` is absent, empty or not a string/integer.
    """
    port = entry.raw_fields.get("PORT")
    if isinstance(port, bool) or port is None:
        raise MissingFieldError("PORT", entry.path)
    if isinstance(port, int):
        return str(port)
    if isinstance(port, str) and port.strip():
        return port.strip()
    raise MissingFieldError("PORT", entry.path, f"unusable value {port!r}")


def router_assignments(entry: ConfigEntry) -> tuple[list[EnvAssignment], list[str]]:
    """Derive the router variables and the variables that must be cleared.

    Exactly one of ANTHROPIC_API_KEY and ANTHROPIC_AUTH_TOKEN ends up set.
    """
    port = router_port(entry)
    api_key = entry.raw_fields.get("APIKEY")
    if isinstance(api_key, str) and api_key:
        credential = EnvAssignment(name=API_KEY_VAR, value=api_key)
        unset = [AUTH_TOKEN_VAR]
    else:
        credential = EnvAssignment(name=AUTH_TOKEN_VAR, value=FALLBACK_AUTH_TOKEN)
        unset = [API_KEY_VAR]
    base_url = EnvAssignment(name=BASE_URL_VAR, value=f"http://{ROUTER_HOST}:{port}")
    return [credential, base_url], unset


def plan_activation(
    entry: ConfigEntry,
    paths: PathMngrModel,
    restart_command: str = "ccr restart",
) -> ActivationPlan:
    """Build the activation plan for ``entry`` without side effects.

    Raises:
        MissingFieldError: If a field the entry's kind requires is missing.
    """
    if entry.kind is ConfigKind.PRIMARY:
        return ActivationPlan(
            entry=entry,
            assignments=primary_assignments(entry),
            backups=[FileBackup(source=paths.settings_file, target=paths.settings_backup)],
        )

    assignments, unset = router_assignments(entry)
    return ActivationPlan(
        entry=entry,
        assignments=assignments,
        unset=unset,
        copies=[FileCopy(source=entry.path, target=paths.router_config_file)],
        restart=CommandRequest(command=split_command(restart_command)),
    )


def _apply_files(plan: ActivationPlan) -> None:
    for backup in plan.backups:
        if backup.source.exists():
            backup.source.replace(backup.target)
            logger.info(f"Backed up existing {backup.source.name} to {backup.target.name}")
    for copy in plan.copies:
        if copy.source.resolve() == copy.target.resolve():
            continue
        copy.target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(copy.source, copy.target)
        logger.info(f"Copied {copy.source} to {copy.target}")


def run_followup(request: CommandRequest, runner: CommandRunner, env: Optional[dict[str, str]] = None) -> Optional[RestartWarning]:
    """Run a follow-up command, turning failures into a warning."""
    try:
        returncode = runner(request.command, env, request.quiet)
    except OSError as error:
        return RestartWarning(request.command, None, str(error))
    if returncode != 0:
        return RestartWarning(request.command, returncode)
    return None


def perform_activation(
    plan: ActivationPlan,
    environ: Optional[MutableMapping[str, str]] = None,
    runner: CommandRunner = run_command,
) -> ActivationResult:
    """Apply ``plan``: files first, then the environment, then the restart.

    ``environ`` defaults to ``os.environ`` so that spawned processes inherit
    the exported variables.
    """
    environ = os.environ if environ is None else environ
    _apply_files(plan)

    for name in plan.unset:
        environ.pop(name, None)
    for assignment in plan.assignments:
        environ[assignment.name] = assignment.value
    logger.debug(f"Exported {len(plan.assignments)} variable(s) for {plan.entry.display_name}")

    result = ActivationResult(plan=plan)
    if plan.restart is not None:
        logger.info(f"Running {' '.join(plan.restart.command)}")
        warning = run_followup(plan.restart, runner, dict(environ))
        if warning is not None:
            logger.warning(str(warning))
            result.warnings.append(warning)
    return result


def activate(
    entry: ConfigEntry,
    paths: PathMngrModel,
    settings: SwitcherSettings,
    environ: Optional[MutableMapping[str, str]] = None,
    runner: CommandRunner = run_command,
) -> ActivationResult:
    """Plan and perform the activation of ``entry``."""
    plan = plan_activation(entry, paths, settings.restart_command)
    return perform_activation(plan, environ, runner)


def _run_foreground(request: CommandRequest, runner: CommandRunner, env: dict[str, str]) -> Optional[RestartWarning]:
    """Run an interactive child that owns Ctrl-C while it is in the foreground."""
    # A Python handler, unlike SIG_IGN, is reset to the default in the child.
    previous = signal.signal(signal.SIGINT, lambda signum, frame: None)
    try:
        return run_followup(request, runner, env)
    finally:
        signal.signal(signal.SIGINT, previous)


def launch_agent(
    result: ActivationResult,
    paths: PathMngrModel,
    settings: SwitcherSettings,
    environ: Optional[MutableMapping[str, str]] = None,
    runner: CommandRunner = run_command,
) -> list[RestartWarning]:
    """Start the agent CLI with the activated environment and clean up after it.

    Router sessions stop the router afterwards; primary sessions remove the
    project-local settings file the session left behind. Cleanup runs even if
    the session is interrupted.
    """
    environ = os.environ if environ is None else environ
    warnings = []
    agent = CommandRequest(command=split_command(settings.agent_command))
    try:
        failure = _run_foreground(agent, runner, dict(environ))
        if failure is not None:
            logger.warning(str(failure))
            warnings.append(failure)
    finally:
        if result.plan.entry.kind is ConfigKind.ROUTER:
            stop = CommandRequest(command=split_command(settings.stop_command), quiet=True)
            failure = run_followup(stop, runner, dict(environ))
            if failure is not None:
                logger.warning(str(failure))
                warnings.append(failure)
        elif paths.local_settings_file.exists():
            paths.local_settings_file.unlink()
            logger.info(f"Cleaned up local settings file: {paths.local_settings_file}")
    return warnings
