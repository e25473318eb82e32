"""Switcher settings and environment helpers."""

import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

load_dotenv()


def is_sensitive_variable(name: str) -> bool:
    """
    Check if a variable name contains common sensitive terms.

    Args:
        name: The variable name to check

    Returns:
        True if the variable is likely sensitive, False otherwise
    """
    sensitive_terms = [
        "key",
        "token",
        "secret",
        "password",
        "credential",
        "auth",
    ]

    name_lower = name.lower()
    return any(term in name_lower for term in sensitive_terms)


def mask_sensitive_value(value: str) -> str:
    """
    Mask a sensitive value for display.

    Args:
        value: The value to mask

    Returns:
        Masked value (first 2 chars + 3 stars)
    """
    if not value or len(value) <= 2:
        return "***"
    return value[:2] + "***"


def display_value(name: str, value: str) -> str:
    """Return ``value`` masked when ``name`` looks like a secret."""
    if is_sensitive_variable(name):
        return mask_sensitive_value(value)
    return value


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


class SwitcherSettings(BaseModel):
    """Locations and commands used by the switcher."""

    claude_dir: Path = Field(
        default_factory=lambda: Path.home() / ".claude",
        description="Directory holding *-settings.json files",
    )
    router_dir: Path = Field(
        default_factory=lambda: Path.home() / ".claude-code-router",
        description="Directory holding *-config.json files",
    )
    restart_command: str = Field("ccr restart", description="Command restarting the router")
    stop_command: str = Field("ccr stop", description="Command stopping the router")
    agent_command: str = Field("claude", description="Agent CLI launched after activation")
    debug: bool = Field(False, description="Enable debug logging")
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: str = Field("codust.log", description="Log file used in debug mode")

    @classmethod
    def load(cls) -> "SwitcherSettings":
        """Load settings from environment variables and configure logging."""
        values = {
            "restart_command": os.getenv("CODUST_RESTART_COMMAND", "ccr restart"),
            "stop_command": os.getenv("CODUST_STOP_COMMAND", "ccr stop"),
            "agent_command": os.getenv("CODUST_AGENT_COMMAND", "claude"),
            "debug": _env_flag("CODUST_DEBUG"),
            "log_level": os.getenv("CODUST_LOG_LEVEL", "INFO").upper(),
            "log_file": os.getenv("CODUST_LOG_FILE", "codust.log"),
        }
        if os.getenv("CODUST_CLAUDE_DIR"):
            values["claude_dir"] = Path(os.environ["CODUST_CLAUDE_DIR"]).expanduser()
        if os.getenv("CODUST_ROUTER_DIR"):
            values["router_dir"] = Path(os.environ["CODUST_ROUTER_DIR"]).expanduser()

        settings = cls(**values)
        settings.configure_logging()
        return settings

    def configure_logging(self) -> None:
        """Point loguru at stderr with the configured level."""
        logger.remove()  # Remove default handler
        log_level = self.log_level
        if log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            log_level = "INFO"
        if self.debug:
            log_level = "DEBUG"

        logger.add(
            sys.stderr,
            level=log_level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        )
        if self.debug:
            logger.add(self.log_file, level="DEBUG")


# Global settings instance
_settings: Optional[SwitcherSettings] = None


def get_settings() -> SwitcherSettings:
    """Get the settings singleton."""
    global _settings
    if _settings is None:
        _settings = SwitcherSettings.load()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call reloads them."""
    global _settings
    _settings = None
