"""
codust - Claude Code configuration switcher
"""

from codust.config import ConfigEntry, ConfigKind, EntryList, scan_configurations
from codust.errors import (
    EmptySelectionError,
    MissingFieldError,
    ParseError,
    RestartWarning,
    SwitcherError,
)

__version__ = "0.1.0"
__all__ = [
    "ConfigEntry",
    "ConfigKind",
    "EntryList",
    "scan_configurations",
    "SwitcherError",
    "ParseError",
    "EmptySelectionError",
    "MissingFieldError",
    "RestartWarning",
]
