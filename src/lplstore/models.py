from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import List, Optional, Type, TypeVar

from .core_path import DETECT_STRING, CorePath
from .utils import string_or_none

EnumT = TypeVar("EnumT", bound=enum.IntEnum)


class RuntimeStatus(enum.IntEnum):
    UNKNOWN = 0
    MISSING = 1
    RUNNABLE = 2


class LabelDisplayMode(enum.IntEnum):
    DEFAULT = 0
    REMOVE_PARENTHESES = 1
    REMOVE_BRACKETS = 2
    REMOVE_PARENTHESES_AND_BRACKETS = 3
    KEEP_REGION = 4
    KEEP_DISC_INDEX = 5
    KEEP_REGION_AND_DISC_INDEX = 6


class ThumbnailMode(enum.IntEnum):
    DEFAULT = 0
    OFF = 1
    SCREENSHOTS = 2
    TITLE_SCREENS = 3
    BOXARTS = 4


class SortMode(enum.IntEnum):
    DEFAULT = 0
    ALPHABETICAL = 1
    OFF = 2


class ThumbnailId(enum.Enum):
    RIGHT = "right"
    LEFT = "left"


def coerce_enum(enum_cls: Type[EnumT], value: object, default: EnumT) -> EnumT:
    """Convert a stored integer to ``enum_cls``, keeping ``default`` when invalid."""
    if isinstance(value, bool):
        return default
    try:
        return enum_cls(int(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


RUNTIME_FIELDS = (
    "runtime_hours",
    "runtime_minutes",
    "runtime_seconds",
)

LAST_PLAYED_FIELDS = (
    "last_played_year",
    "last_played_month",
    "last_played_day",
    "last_played_hour",
    "last_played_minute",
    "last_played_second",
)

_OPTIONAL_STRING_FIELDS = (
    "path",
    "label",
    "core_name",
    "db_name",
    "crc32",
    "subsystem_ident",
    "subsystem_name",
    "runtime_str",
    "last_played_str",
)


@dataclass(slots=True)
class PlaylistEntry:
    """One content/core binding stored in a playlist.

    Optional string fields are either ``None`` or non-empty; empty strings
    passed to the constructor are stored as ``None``. ``core_path`` accepts
    either a :class:`CorePath` or its serialized string form.
    """

    path: Optional[str] = None
    label: Optional[str] = None
    core_path: Optional[CorePath] = None
    core_name: Optional[str] = None
    db_name: Optional[str] = None
    crc32: Optional[str] = None
    subsystem_ident: Optional[str] = None
    subsystem_name: Optional[str] = None
    subsystem_roms: List[str] = field(default_factory=list)
    runtime_status: RuntimeStatus = RuntimeStatus.UNKNOWN
    runtime_hours: int = 0
    runtime_minutes: int = 0
    runtime_seconds: int = 0
    last_played_year: int = 0
    last_played_month: int = 0
    last_played_day: int = 0
    last_played_hour: int = 0
    last_played_minute: int = 0
    last_played_second: int = 0
    runtime_str: Optional[str] = None
    last_played_str: Optional[str] = None

    def __post_init__(self) -> None:
        for name in _OPTIONAL_STRING_FIELDS:
            setattr(self, name, string_or_none(getattr(self, name)))
        self.core_path = CorePath.parse(self.core_path)
        if self.core_path is not None and self.core_path.is_empty():
            self.core_path = None
        self.subsystem_roms = [rom for rom in (self.subsystem_roms or []) if rom]
        self.runtime_status = coerce_enum(RuntimeStatus, self.runtime_status, RuntimeStatus.UNKNOWN)

    @property
    def core_path_str(self) -> Optional[str]:
        return str(self.core_path) if self.core_path is not None else None

    def has_core(self) -> bool:
        """True when the entry is bound to a concrete core (not auto-detect)."""
        if self.core_path is None or not self.core_name:
            return False
        if self.core_path.is_detect or self.core_name == DETECT_STRING:
            return False
        return True

    def copy(self) -> "PlaylistEntry":
        return replace(self, subsystem_roms=list(self.subsystem_roms))

    def refresh_display_strings(self) -> None:
        """Recompute ``runtime_str`` and ``last_played_str`` from the numeric fields."""
        self.runtime_str = f"{self.runtime_hours:02d}:{self.runtime_minutes:02d}:{self.runtime_seconds:02d}"
        if self.last_played_year:
            self.last_played_str = (
                f"{self.last_played_year:04d}-{self.last_played_month:02d}-{self.last_played_day:02d} "
                f"{self.last_played_hour:02d}:{self.last_played_minute:02d}:{self.last_played_second:02d}"
            )
        else:
            self.last_played_str = None


@dataclass
class PlaylistMetadata:
    """Playlist-wide settings persisted alongside the entries."""

    default_core_path: Optional[CorePath] = None
    default_core_name: Optional[str] = None
    base_content_directory: Optional[str] = None
    label_display_mode: LabelDisplayMode = LabelDisplayMode.DEFAULT
    right_thumbnail_mode: ThumbnailMode = ThumbnailMode.DEFAULT
    left_thumbnail_mode: ThumbnailMode = ThumbnailMode.DEFAULT
    sort_mode: SortMode = SortMode.DEFAULT

    @property
    def default_core_path_str(self) -> Optional[str]:
        return str(self.default_core_path) if self.default_core_path is not None else None

    def has_default_core(self) -> bool:
        if self.default_core_path is None or not self.default_core_name:
            return False
        return not (self.default_core_path.is_detect or self.default_core_name == DETECT_STRING)
