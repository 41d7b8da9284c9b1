"""Bounded most-recently-used list of playlist entries.

Index 0 always holds the most recently pushed entry. The list never grows
beyond ``capacity``: pushing a new entry into a full store evicts the entry
at the last position, regardless of any timestamps it carries.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Sequence

from .core_path import CorePath
from .matching import EntryMatcher
from .models import LAST_PLAYED_FIELDS, RUNTIME_FIELDS, PlaylistEntry
from .paths import resolve_real_path

LOGGER = logging.getLogger(__name__)

_BACKFILL_FIELDS = ("label", "crc32", "db_name")
_UPDATE_FIELDS = ("path", "label", "core_path", "core_name", "db_name", "crc32")


class EntryStore:
    """Ordered, capacity-bounded entry sequence with MRU promotion."""

    def __init__(self, capacity: int, matcher: Optional[EntryMatcher] = None) -> None:
        self.capacity = max(int(capacity), 0)
        self.matcher = matcher or EntryMatcher()
        self._entries: List[PlaylistEntry] = []
        self.modified = False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PlaylistEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> PlaylistEntry:
        return self._entries[index]

    @property
    def entries(self) -> Sequence[PlaylistEntry]:
        return tuple(self._entries)

    def get(self, index: int) -> Optional[PlaylistEntry]:
        if 0 <= index < len(self._entries):
            return self._entries[index]
        return None

    def load(self, entries: Sequence[PlaylistEntry]) -> None:
        """Replace the contents with decoded entries, without touching the dirty flag."""
        self._entries = list(entries[: self.capacity])

    def find(self, predicate: Callable[[PlaylistEntry], bool]) -> Optional[int]:
        for index, entry in enumerate(self._entries):
            if predicate(entry):
                return index
        return None

    def index_of_path(self, path: Optional[str]) -> Optional[int]:
        if not path:
            return None
        real_path = resolve_real_path(path)
        return self.find(lambda entry: self.matcher.path_equal(real_path, entry.path))

    def get_by_path(self, path: Optional[str]) -> Optional[PlaylistEntry]:
        index = self.index_of_path(path)
        return self._entries[index] if index is not None else None

    def contains_path(self, path: Optional[str]) -> bool:
        return self.index_of_path(path) is not None

    def delete_at(self, index: int) -> bool:
        if not 0 <= index < len(self._entries):
            return False
        del self._entries[index]
        self.modified = True
        return True

    def delete_matching(self, path: Optional[str]) -> int:
        """Delete every entry whose content path matches ``path``.

        Returns the number of deleted entries.
        """
        if not path:
            return 0
        real_path = resolve_real_path(path)
        removed = 0
        index = 0
        while index < len(self._entries):
            if not self.matcher.path_equal(real_path, self._entries[index].path):
                index += 1
                continue
            # Deletion shifts the remaining entries down; rescan the same index.
            self.delete_at(index)
            removed += 1
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def _canonical_query(self, entry: PlaylistEntry) -> Optional[tuple[Optional[str], CorePath]]:
        if entry.core_path is None:
            LOGGER.error("Cannot push an entry without a core path into the playlist")
            return None
        real_core_path = entry.core_path.resolved()
        if real_core_path.is_empty():
            LOGGER.error("Cannot push an entry without a core path into the playlist")
            return None
        real_path = resolve_real_path(entry.path) if entry.path else None
        return real_path, real_core_path

    def _find_existing(
        self,
        real_path: Optional[str],
        real_core_path: CorePath,
        query: Optional[PlaylistEntry] = None,
    ) -> Optional[int]:
        def matches(stored: PlaylistEntry) -> bool:
            # Core names can change while the core stays the same, so only
            # the core path takes part in the comparison.
            if not self.matcher.path_or_both_empty(real_path, stored.path):
                return False
            if not self.matcher.core_equal(real_core_path, stored.core_path):
                return False
            if query is not None and not self.matcher.subsystem_equal(query, stored):
                return False
            return True

        return self.find(matches)

    def _promote(self, index: int) -> None:
        if index > 0:
            self._entries.insert(0, self._entries.pop(index))

    def _make_room(self) -> bool:
        if self.capacity == 0:
            return False
        while len(self._entries) >= self.capacity:
            evicted = self._entries.pop()
            LOGGER.debug("Evicting least recently used playlist entry: %s", evicted.path or evicted.label)
        return True

    def push(self, entry: PlaylistEntry) -> bool:
        """Insert ``entry`` at the front, or promote the existing matching entry.

        Returns ``False`` when nothing changed (the entry is already at the
        front and had no blank fields to fill in) or when the entry is
        rejected. Neither case is an error for the caller.
        """
        query = self._canonical_query(entry)
        if query is None:
            return False
        real_path, real_core_path = query

        core_name = entry.core_name or real_core_path.file_stem()
        if not core_name:
            LOGGER.error("Cannot push an entry without a core name into the playlist")
            return False

        index = self._find_existing(real_path, real_core_path, entry)
        if index is not None:
            stored = self._entries[index]
            # Content first launched from a file browser lacks some values;
            # fill in the blanks without overwriting anything.
            backfilled = False
            for name in _BACKFILL_FIELDS:
                incoming = getattr(entry, name)
                if getattr(stored, name) is None and incoming:
                    setattr(stored, name, incoming)
                    backfilled = True

            if index == 0 and not backfilled:
                return False

            self._promote(index)
            self.modified = True
            return True

        if not self._make_room():
            return False

        self._entries.insert(
            0,
            PlaylistEntry(
                path=real_path,
                label=entry.label,
                core_path=real_core_path,
                core_name=core_name,
                db_name=entry.db_name,
                crc32=entry.crc32,
                subsystem_ident=entry.subsystem_ident,
                subsystem_name=entry.subsystem_name,
                subsystem_roms=list(entry.subsystem_roms),
            ),
        )
        self.modified = True
        return True

    def push_runtime(self, entry: PlaylistEntry) -> bool:
        """Push variant used for play time bookkeeping.

        Matches on content path and core path only and stores path, core path
        and runtime statistics for new entries.
        """
        query = self._canonical_query(entry)
        if query is None:
            return False
        real_path, real_core_path = query

        index = self._find_existing(real_path, real_core_path)
        if index is not None:
            if index == 0:
                return False
            self._promote(index)
            self.modified = True
            return True

        if not self._make_room():
            return False

        new_entry = PlaylistEntry(
            path=real_path,
            core_path=real_core_path,
            runtime_status=entry.runtime_status,
            runtime_str=entry.runtime_str,
            last_played_str=entry.last_played_str,
        )
        for name in RUNTIME_FIELDS + LAST_PLAYED_FIELDS:
            setattr(new_entry, name, getattr(entry, name))
        self._entries.insert(0, new_entry)
        self.modified = True
        return True

    def update_at(self, index: int, patch: PlaylistEntry) -> bool:
        """Copy the non-empty fields of ``patch`` onto the entry at ``index``."""
        stored = self.get(index)
        if stored is None:
            return False

        changed = False
        for name in _UPDATE_FIELDS:
            value = getattr(patch, name)
            if value is not None and value != getattr(stored, name):
                setattr(stored, name, value)
                changed = True

        if changed:
            self.modified = True
        return changed

    def update_runtime_at(self, index: int, patch: PlaylistEntry, register_update: bool = True) -> bool:
        """Copy play statistics from ``patch`` onto the entry at ``index``.

        Path, core path and display strings are copied only when present;
        runtime status and the numeric fields are copied whenever they differ.
        The dirty flag is only raised when ``register_update`` is true.
        """
        stored = self.get(index)
        if stored is None:
            return False

        changed = False
        for name in ("path", "core_path", "runtime_str", "last_played_str"):
            value = getattr(patch, name)
            if value is not None and value != getattr(stored, name):
                setattr(stored, name, value)
                changed = True

        for name in ("runtime_status",) + RUNTIME_FIELDS + LAST_PLAYED_FIELDS:
            value = getattr(patch, name)
            if value != getattr(stored, name):
                setattr(stored, name, value)
                changed = True

        if changed and register_update:
            self.modified = True
        return changed

    def sort(self, key: Callable[[PlaylistEntry], str]) -> None:
        self._entries.sort(key=key)
