"""Playlist facade: a bounded entry store bound to a file on disk.

A :class:`Playlist` owns its configuration (copied at open time), its entries
and its metadata. Mutations only raise the ``modified`` flag; nothing is
written until :meth:`Playlist.write` is called, and then only when the file
on disk is out of date.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Sequence, Union

from .config import FAVORITES_FILENAME, HISTORY_SUFFIX, PlaylistConfig
from .core_path import CoreIdentityResolver, CorePath
from .fileio import PlaylistFileIO
from .logging_utils import render_fields_block
from .matching import EntryMatcher
from .models import (
    LabelDisplayMode,
    PlaylistEntry,
    PlaylistMetadata,
    SortMode,
    ThumbnailId,
    ThumbnailMode,
)
from .paths import base_name, replace_base_path, short_name
from .serialization import PlaylistFormat, read_playlist, write_playlist, write_runtime_json
from .store import EntryStore

LOGGER = logging.getLogger(__name__)


def _sort_key(entry: PlaylistEntry) -> str:
    if entry.label:
        return entry.label.casefold()
    if entry.path:
        return short_name(entry.path).casefold()
    if entry.core_name:
        return entry.core_name.casefold()
    return ""


class Playlist:
    def __init__(
        self,
        config: PlaylistConfig,
        *,
        file_io: Optional[PlaylistFileIO] = None,
        resolver: Optional[CoreIdentityResolver] = None,
    ) -> None:
        self.config = config.copy()
        self.file_io = file_io if file_io is not None else PlaylistFileIO()
        self.matcher = EntryMatcher(
            fuzzy_archive_match=self.config.fuzzy_archive_match,
            autofix_paths=self.config.autofix_paths,
            resolver=resolver,
        )
        self._store = EntryStore(self.config.capacity, self.matcher)
        self.metadata = PlaylistMetadata()
        self.old_format = False
        self.compressed = False

    @classmethod
    def open(
        cls,
        config: Optional[PlaylistConfig],
        *,
        file_io: Optional[PlaylistFileIO] = None,
        resolver: Optional[CoreIdentityResolver] = None,
    ) -> Optional["Playlist"]:
        """Open the playlist described by ``config``.

        A missing file yields an empty playlist. Returns None when the config
        has no path or the file cannot be read.
        """
        if config is None or not config.path:
            LOGGER.error("Cannot open a playlist without a file path")
            return None

        playlist = cls(config, file_io=file_io, resolver=resolver)
        if not playlist.read_file():
            return None
        playlist._autofix_paths()
        return playlist

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def path(self) -> str:
        return self.config.path

    @property
    def modified(self) -> bool:
        return self._store.modified

    def mark_modified(self) -> None:
        self._store.modified = True

    @property
    def size(self) -> int:
        return len(self._store)

    def __len__(self) -> int:
        return len(self._store)

    @property
    def capacity(self) -> int:
        return self._store.capacity

    @property
    def entries(self) -> Sequence[PlaylistEntry]:
        return self._store.entries

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def read_file(self) -> bool:
        """Load entries and metadata from disk.

        Returns False on a hard failure. Entries decoded before an
        out-of-memory abort are kept so the caller may still inspect them.
        """
        try:
            opened = self.file_io.open_read(self.path)
        except OSError as exc:
            LOGGER.error("Failed to open playlist file %s: %s", self.path, exc)
            return False

        if opened is None:
            LOGGER.debug("Playlist file %s does not exist; starting with an empty playlist", self.path)
            return True

        stream, compressed = opened
        self.compressed = compressed
        try:
            with stream:
                result = read_playlist(stream, self.capacity, PlaylistMetadata())
        except OSError as exc:
            LOGGER.error("Failed to read playlist file %s: %s", self.path, exc)
            return False

        self.metadata = result.metadata
        self._store.load(result.entries)
        if result.format is not None:
            self.old_format = result.format is PlaylistFormat.LEGACY
        if result.needs_rewrite:
            self.mark_modified()

        LOGGER.debug(
            render_fields_block(
                "Playlist Loaded",
                {
                    "Path": self.path,
                    "Entries": len(self._store),
                    "Legacy Format": self.old_format,
                    "Compressed": self.compressed,
                    "Capacity Exceeded": result.capacity_exceeded,
                    "Malformed": result.malformed,
                },
            )
        )
        return result.ok

    def needs_write(self) -> bool:
        return (
            self.modified
            or self.compressed != self.config.compress
            or self.old_format != self.config.old_format
        )

    def write(self) -> bool:
        """Write the playlist when it is dirty or stored in the wrong encoding.

        Returns True when the file was written.
        """
        if not self.needs_write():
            return False

        compress = self.config.compress
        old_format = self.config.old_format
        try:
            with self.file_io.open_write(self.path, compress=compress) as stream:
                write_playlist(
                    stream,
                    self._store.entries,
                    self.metadata,
                    old_format=old_format,
                    compact=compress,
                )
        except OSError as exc:
            LOGGER.error("Failed to write to playlist file %s: %s", self.path, exc)
            return False

        self._store.modified = False
        self.old_format = old_format
        self.compressed = compress
        LOGGER.info(
            render_fields_block(
                "Playlist Written",
                {
                    "Path": self.path,
                    "Entries": len(self._store),
                    "Legacy Format": old_format,
                    "Compressed": compress,
                },
            )
        )
        return True

    def write_runtime(self) -> bool:
        """Write the play statistics file. Only dirty playlists are written."""
        if not self.modified:
            return False

        try:
            with self.file_io.open_write(self.path, compress=False) as stream:
                write_runtime_json(stream, self._store.entries)
        except OSError as exc:
            LOGGER.error("Failed to write to playlist file %s: %s", self.path, exc)
            return False

        self._store.modified = False
        self.old_format = False
        self.compressed = False
        LOGGER.info("Written to runtime playlist file: %s", self.path)
        return True

    def _autofix_paths(self) -> None:
        target = self.config.base_content_directory
        if not self.config.autofix_paths or self.metadata.base_content_directory == target:
            return

        previous = self.metadata.base_content_directory
        if previous:
            for entry in self._store:
                if not entry.path:
                    continue
                entry.path = replace_base_path(entry.path, previous, target)
                entry.subsystem_roms = [replace_base_path(rom, previous, target) for rom in entry.subsystem_roms if rom]

        LOGGER.info(
            render_fields_block(
                "Playlist Content Directory Changed",
                {"Path": self.path, "Previous": previous or "(unset)", "Current": target},
            )
        )
        self.metadata.base_content_directory = target or None
        self.mark_modified()
        self.write()

    def free(self) -> None:
        """Drop all entries and reset the metadata."""
        self._store.clear()
        self._store.modified = False
        self.metadata = PlaylistMetadata()

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------
    def get(self, index: int) -> Optional[PlaylistEntry]:
        return self._store.get(index)

    def get_by_path(self, path: Optional[str]) -> Optional[PlaylistEntry]:
        return self._store.get_by_path(path)

    def contains_path(self, path: Optional[str]) -> bool:
        return self._store.contains_path(path)

    def get_db_name(self, index: int) -> Optional[str]:
        """Database name of the entry, falling back to the playlist file name.

        The fallback only applies to collection playlists, never to history
        or favorites playlists.
        """
        entry = self._store.get(index)
        if entry is None:
            return None
        if entry.db_name:
            return entry.db_name

        file_name = os.path.basename(self.path)
        if not file_name or file_name.endswith(HISTORY_SUFFIX) or file_name == FAVORITES_FILENAME:
            return None
        return file_name

    def index_is_valid(self, index: int, path: Optional[str], core_path: Union[CorePath, str, None]) -> bool:
        """True if ``index`` still refers to the given content and core."""
        entry = self._store.get(index)
        if entry is None or not entry.path or entry.path != path:
            return False
        query_core = CorePath.parse(core_path)
        if entry.core_path is None or query_core is None:
            return False
        return base_name(str(entry.core_path)) == base_name(str(query_core))

    def entries_are_equal(self, entry_a: PlaylistEntry, entry_b: PlaylistEntry) -> bool:
        return self.matcher.entries_equal(entry_a, entry_b)

    # ------------------------------------------------------------------
    # Entry mutation
    # ------------------------------------------------------------------
    def push(self, entry: PlaylistEntry) -> bool:
        return self._store.push(entry)

    def push_runtime(self, entry: PlaylistEntry) -> bool:
        return self._store.push_runtime(entry)

    def update(self, index: int, patch: PlaylistEntry) -> bool:
        return self._store.update_at(index, patch)

    def update_runtime(self, index: int, patch: PlaylistEntry, register_update: bool = True) -> bool:
        return self._store.update_runtime_at(index, patch, register_update)

    def delete_index(self, index: int) -> bool:
        return self._store.delete_at(index)

    def delete_by_path(self, path: Optional[str]) -> int:
        return self._store.delete_matching(path)

    def clear(self) -> None:
        self._store.clear()

    def push_and_write(self, entry: PlaylistEntry) -> bool:
        """Push ``entry`` and write the playlist when the push changed anything."""
        if not self.push(entry):
            return False
        return self.write()

    def update_and_write(self, index: int, patch: PlaylistEntry) -> bool:
        self.update(index, patch)
        return self.write()

    def sort(self) -> None:
        """Sort entries alphabetically by display label, unless sorting is off."""
        if self.metadata.sort_mode is SortMode.OFF or not len(self._store):
            return
        self._store.sort(_sort_key)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def default_core_path(self) -> Optional[CorePath]:
        return self.metadata.default_core_path

    def set_default_core_path(self, core_path: Union[CorePath, str, None]) -> None:
        parsed = CorePath.parse(core_path)
        if parsed is None:
            return
        resolved = parsed.resolved()
        if resolved.is_empty():
            return
        if resolved != self.metadata.default_core_path:
            self.metadata.default_core_path = resolved
            self.mark_modified()

    @property
    def default_core_name(self) -> Optional[str]:
        return self.metadata.default_core_name

    def set_default_core_name(self, core_name: Optional[str]) -> None:
        if not core_name:
            return
        if core_name != self.metadata.default_core_name:
            self.metadata.default_core_name = core_name
            self.mark_modified()

    @property
    def label_display_mode(self) -> LabelDisplayMode:
        return self.metadata.label_display_mode

    def set_label_display_mode(self, mode: LabelDisplayMode) -> None:
        if mode != self.metadata.label_display_mode:
            self.metadata.label_display_mode = LabelDisplayMode(mode)
            self.mark_modified()

    def get_thumbnail_mode(self, thumbnail_id: ThumbnailId) -> ThumbnailMode:
        if thumbnail_id is ThumbnailId.LEFT:
            return self.metadata.left_thumbnail_mode
        return self.metadata.right_thumbnail_mode

    def set_thumbnail_mode(self, thumbnail_id: ThumbnailId, mode: ThumbnailMode) -> None:
        if thumbnail_id is ThumbnailId.LEFT:
            self.metadata.left_thumbnail_mode = ThumbnailMode(mode)
        else:
            self.metadata.right_thumbnail_mode = ThumbnailMode(mode)
        self.mark_modified()

    @property
    def sort_mode(self) -> SortMode:
        return self.metadata.sort_mode

    def set_sort_mode(self, mode: SortMode) -> None:
        if mode != self.metadata.sort_mode:
            self.metadata.sort_mode = SortMode(mode)
            self.mark_modified()

    @property
    def base_content_directory(self) -> Optional[str]:
        return self.metadata.base_content_directory

    def set_base_content_directory(self, directory: Optional[str]) -> None:
        directory = directory or None
        if directory != self.metadata.base_content_directory:
            self.metadata.base_content_directory = directory
            self.mark_modified()
