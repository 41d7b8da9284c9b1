"""Core path values and core identity resolution.

A playlist entry is bound to an emulator core either by a real file path or
by one of two placeholders: "detect the core at launch time" and "use the
built-in core". Those placeholders are serialized as the literal strings
``DETECT`` and ``builtin`` but are modelled here as distinct variants so
they never take part in path canonicalization or path comparison.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from .paths import base_name_noext, paths_equal, resolve_real_path

DETECT_STRING = "DETECT"
BUILTIN_STRING = "builtin"


class CorePathKind(enum.Enum):
    DETECT = "detect"
    BUILTIN = "builtin"
    PATH = "path"


@dataclass(frozen=True)
class CorePath:
    kind: CorePathKind
    path: Optional[str] = None

    @classmethod
    def detect(cls) -> "CorePath":
        return cls(CorePathKind.DETECT)

    @classmethod
    def builtin(cls) -> "CorePath":
        return cls(CorePathKind.BUILTIN)

    @classmethod
    def from_path(cls, path: str) -> "CorePath":
        return cls(CorePathKind.PATH, path)

    @classmethod
    def parse(cls, value: Union["CorePath", str, None]) -> Optional["CorePath"]:
        """Build a core path from its serialized form.

        Empty values yield ``None``; the two placeholder strings yield the
        matching variant; anything else is a file path.
        """
        if value is None or isinstance(value, CorePath):
            return value
        text = str(value)
        if not text:
            return None
        if text == DETECT_STRING:
            return cls.detect()
        if text == BUILTIN_STRING:
            return cls.builtin()
        return cls.from_path(text)

    @property
    def is_sentinel(self) -> bool:
        return self.kind is not CorePathKind.PATH

    @property
    def is_detect(self) -> bool:
        return self.kind is CorePathKind.DETECT

    def resolved(self) -> "CorePath":
        """Return the canonical form; placeholders are returned untouched."""
        if self.is_sentinel:
            return self
        return CorePath.from_path(resolve_real_path(self.path) or "")

    def is_empty(self) -> bool:
        return self.kind is CorePathKind.PATH and not self.path

    def file_stem(self) -> str:
        """File name without extension, used as the default core name."""
        return base_name_noext(str(self))

    def __str__(self) -> str:
        if self.kind is CorePathKind.DETECT:
            return DETECT_STRING
        if self.kind is CorePathKind.BUILTIN:
            return BUILTIN_STRING
        return self.path or ""


class CoreIdentityResolver(Protocol):
    """Answers whether two core paths denote the same core."""

    def same_core(self, core_path_a: str, core_path_b: str) -> bool: ...


class CoreFileIdResolver:
    """Identifies cores by file id: the core file name without its extension.

    With ``strip_platform_suffix`` enabled the trailing ``_<platform>`` part of
    the file id is dropped as well (``snes9x_libretro_android`` becomes
    ``snes9x_libretro``), which is how cores are named on mobile platforms.
    """

    def __init__(self, *, strip_platform_suffix: bool = False) -> None:
        self.strip_platform_suffix = strip_platform_suffix

    def file_id(self, core_path: str) -> Optional[str]:
        file_id = base_name_noext(core_path)
        if self.strip_platform_suffix:
            head, underscore, tail = file_id.rpartition("_")
            if underscore and head and f"_{tail}" != "_libretro":
                file_id = head
        return file_id or None

    def same_core(self, core_path_a: str, core_path_b: str) -> bool:
        id_a = self.file_id(core_path_a)
        id_b = self.file_id(core_path_b)
        if id_a is None or id_b is None:
            return False
        return id_a == id_b


def core_paths_identical(left: CorePath, right: CorePath) -> bool:
    """Variant-aware equality of two canonical core paths."""
    if left.is_sentinel or right.is_sentinel:
        return left.kind is right.kind
    return paths_equal(left.path, right.path)
