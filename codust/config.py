"""Discovery of Claude Code and Claude Code Router configuration files."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, NamedTuple, Sequence

from loguru import logger
from pydantic import BaseModel, ConfigDict

from codust.errors import DiscoveryError, ParseError
from codust.utils.paths import PRIMARY_SUFFIX, ROUTER_NAME_SUFFIX, ROUTER_SUFFIX


class KindMetadata(NamedTuple):
    """Naming convention for one kind of configuration."""
    file_suffix: str
    name_suffix: str
    indicator: str


class ConfigKind(Enum):
    """Which tool a configuration file belongs to."""

    PRIMARY = KindMetadata(file_suffix=PRIMARY_SUFFIX, name_suffix="", indicator="")
    ROUTER = KindMetadata(file_suffix=ROUTER_SUFFIX, name_suffix=ROUTER_NAME_SUFFIX, indicator=" [CCR]")

    @property
    def file_suffix(self) -> str:
        return self.value.file_suffix

    @property
    def indicator(self) -> str:
        return self.value.indicator

    def display_name_for(self, file_name: str) -> str | None:
        """Derive the display name from a file name, or None if it does not match."""
        if not file_name.endswith(self.file_suffix):
            return None
        stem = file_name[: -len(self.file_suffix)]
        if not stem:
            return None
        return stem + self.value.name_suffix


class ConfigEntry(BaseModel):
    """One selectable configuration."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    kind: ConfigKind
    path: Path
    raw_fields: dict[str, Any]

    @property
    def label(self) -> str:
        return f"{self.display_name}{self.kind.indicator}"


class EntryList(Sequence[ConfigEntry]):
    """Ordered entries of one scan, unique by resolved path."""

    def __init__(self, entries: Iterable[ConfigEntry] = ()):
        seen: set[Path] = set()
        unique: list[ConfigEntry] = []
        for entry in entries:
            key = entry.path.resolve()
            if key in seen:
                logger.debug(f"Ignoring duplicate configuration {entry.path}")
                continue
            seen.add(key)
            unique.append(entry)
        unique.sort(key=lambda entry: (entry.display_name, str(entry.path)))
        self._entries = tuple(unique)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __iter__(self) -> Iterator[ConfigEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"EntryList({[entry.display_name for entry in self._entries]!r})"

    def rows(self) -> list[str]:
        """Display rows: labels padded to a common width, then the path."""
        width = max((len(entry.label) for entry in self._entries), default=0)
        return [f"{entry.label.ljust(width)}  {entry.path}" for entry in self._entries]


def load_raw_fields(path: Path) -> dict[str, Any]:
    """Parse ``path`` as a JSON object.

    Raises:
        ParseError: If the file cannot be read, is not JSON, or is not an object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(path, str(e)) from e
    except (ValueError, RecursionError) as e:
        raise ParseError(path, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError(path, f"expected a JSON object, got {type(data).__name__}")
    return data


def list_directory(directory: Path) -> list[Path]:
    """List regular files in ``directory`` without recursing.

    Raises:
        DiscoveryError: If the directory exists but cannot be listed.
    """
    if not directory.is_dir():
        return []
    try:
        return [child for child in directory.iterdir() if child.is_file()]
    except OSError as e:
        raise DiscoveryError(directory, str(e)) from e


def scan_directory(directory: Path, kind: ConfigKind) -> list[ConfigEntry]:
    """Collect the entries of one kind from one directory."""
    try:
        candidates = list_directory(directory)
    except DiscoveryError as error:
        logger.warning(str(error))
        return []
    if not candidates:
        logger.debug(f"No candidates in {directory}")

    entries = []
    for path in candidates:
        display_name = kind.display_name_for(path.name)
        if display_name is None:
            continue
        try:
            raw_fields = load_raw_fields(path)
        except ParseError as error:
            logger.warning(str(error))
            continue
        entries.append(
            ConfigEntry(
                display_name=display_name,
                kind=kind,
                path=path.absolute(),
                raw_fields=raw_fields,
            )
        )
    return entries


def scan_configurations(primary_dir: Path, router_dir: Path) -> EntryList:
    """Scan both directories and return every valid entry in display order."""
    entries = scan_directory(primary_dir, ConfigKind.PRIMARY)
    entries += scan_directory(router_dir, ConfigKind.ROUTER)
    result = EntryList(entries)
    logger.debug(f"Discovered {len(result)} configuration(s)")
    return result
