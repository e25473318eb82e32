from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from codust.environment import SwitcherSettings, get_settings

PRIMARY_SUFFIX = "-settings.json"
ROUTER_SUFFIX = "-config.json"
ROUTER_NAME_SUFFIX = "-ccr"


class PathMngrModel(BaseModel):
    """Resolves the files the switcher reads and writes."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    claude_dir: Path = Field(default_factory=lambda: Path.home() / ".claude")
    router_dir: Path = Field(default_factory=lambda: Path.home() / ".claude-code-router")
    working_dir: Path = Field(default_factory=lambda: Path.cwd())

    @classmethod
    def from_settings(cls, settings: SwitcherSettings) -> "PathMngrModel":
        return cls(claude_dir=settings.claude_dir, router_dir=settings.router_dir)

    @property
    def settings_file(self) -> Path:
        """The live settings file the agent CLI reads on startup."""
        return self.claude_dir / "settings.json"

    @property
    def settings_backup(self) -> Path:
        return self.claude_dir / "settings.json.bak"

    @property
    def router_config_file(self) -> Path:
        """The live router configuration read by ``ccr``."""
        return self.router_dir / "config.json"

    @property
    def local_settings_file(self) -> Path:
        """Project-local settings left behind by an agent session."""
        return self.working_dir / ".claude" / "settings.local.json"


# Singleton instance
_path_manager = None


def get_path_manager(settings: SwitcherSettings | None = None) -> PathMngrModel:
    """Get the singleton path manager instance."""
    global _path_manager
    if settings is not None:
        _path_manager = PathMngrModel.from_settings(settings)
    elif _path_manager is None:
        _path_manager = PathMngrModel.from_settings(get_settings())
    return _path_manager
