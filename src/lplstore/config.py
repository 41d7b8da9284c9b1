from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .utils import env_bool, env_int, load_yaml_file

LOGGER = logging.getLogger(__name__)

# Default capacities for the two playlist flavours
HISTORY_CAPACITY = 200
COLLECTION_CAPACITY = 99999

HISTORY_SUFFIX = "_history.lpl"
FAVORITES_FILENAME = "content_favorites.lpl"

_BOOL_FIELDS = ("old_format", "compress", "fuzzy_archive_match")


@dataclass
class PlaylistConfig:
    """Settings a playlist is opened with.

    ``autofix_paths`` is derived from ``base_content_directory``; set the
    directory through :meth:`set_base_content_directory` to keep both in sync.
    """

    path: str = ""
    capacity: int = COLLECTION_CAPACITY
    old_format: bool = False
    compress: bool = False
    fuzzy_archive_match: bool = False
    autofix_paths: bool = False
    base_content_directory: str = ""

    def set_path(self, path: Union[str, Path, None]) -> None:
        self.path = str(path) if path else ""

    def set_base_content_directory(self, path: Union[str, Path, None]) -> None:
        self.base_content_directory = str(path) if path else ""
        self.autofix_paths = bool(self.base_content_directory)

    def copy(self) -> "PlaylistConfig":
        return replace(self)


def _coerce_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"'{field_name}' must be a boolean")


def build_playlist_config(data: Optional[Mapping[str, Any]]) -> PlaylistConfig:
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValueError("'playlist' must be provided as a mapping")

    config = PlaylistConfig()

    path = data.get("path")
    if path is not None and not isinstance(path, (str, Path)):
        raise ValueError("'path' must be a string")
    config.set_path(path)

    if "capacity" in data:
        raw_capacity = data.get("capacity")
        if isinstance(raw_capacity, bool):
            raise ValueError("'capacity' must be an integer")
        try:
            capacity = int(raw_capacity)
        except (TypeError, ValueError) as exc:  # noqa: PERF203
            raise ValueError("'capacity' must be an integer") from exc
        if capacity < 0:
            raise ValueError("'capacity' must be greater than or equal to 0")
        config.capacity = capacity

    for name in _BOOL_FIELDS:
        if data.get(name) is not None:
            setattr(config, name, _coerce_bool(data[name], field_name=name))

    base_dir = data.get("base_content_directory")
    if base_dir is not None and not isinstance(base_dir, (str, Path)):
        raise ValueError("'base_content_directory' must be a string")
    config.set_base_content_directory(base_dir)

    return config


def apply_env_overrides(config: PlaylistConfig) -> PlaylistConfig:
    """Apply ``LPLSTORE_*`` environment overrides on top of ``config``."""
    overrides = {
        "old_format": env_bool("LPLSTORE_OLD_FORMAT"),
        "compress": env_bool("LPLSTORE_COMPRESS"),
        "fuzzy_archive_match": env_bool("LPLSTORE_FUZZY_ARCHIVE_MATCH"),
    }
    for name, value in overrides.items():
        if value is not None:
            LOGGER.debug("Environment override: %s=%s", name, value)
            setattr(config, name, value)

    capacity = env_int("LPLSTORE_CAPACITY")
    if capacity is not None:
        LOGGER.debug("Environment override: capacity=%d", capacity)
        config.capacity = capacity
    return config


def load_config(path: Path) -> PlaylistConfig:
    data = load_yaml_file(path)
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping")
    section = data.get("playlist", data)
    return apply_env_overrides(build_playlist_config(section))
