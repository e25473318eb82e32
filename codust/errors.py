"""Exceptions raised while discovering, selecting and activating configurations."""

from pathlib import Path


class SwitcherError(Exception):
    """Base exception for configuration switcher errors."""

    pass


class DiscoveryError(SwitcherError):
    """A configuration directory exists but could not be listed."""

    def __init__(self, directory: Path, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Cannot read configuration directory {directory}: {reason}")


class ParseError(SwitcherError):
    """A candidate configuration file is not a JSON object."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Skipping {path}: {reason}")


class EmptySelectionError(SwitcherError):
    """No configuration files were found in either directory."""

    def __init__(self, message: str = "No configuration files found in ~/.claude/ or ~/.claude-code-router/"):
        super().__init__(message)


class MissingFieldError(SwitcherError):
    """A configuration lacks a field required for activation."""

    def __init__(self, field: str, path: Path, detail: str | None = None):
        self.field = field
        self.path = path
        message = f"Configuration {path} is missing required field '{field}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class RestartWarning(SwitcherError):
    """An external command after activation failed.

    Collected on the activation result instead of being raised: the
    configuration is already active once its variables are exported.
    """

    def __init__(self, command: list[str], returncode: int | None, reason: str | None = None):
        self.command = command
        self.returncode = returncode
        shown = " ".join(command)
        if returncode is None:
            message = f"'{shown}' could not be started: {reason}"
        else:
            message = f"'{shown}' exited with status {returncode}"
        super().__init__(message)
