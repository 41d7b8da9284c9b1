from __future__ import annotations

import enum
import logging
from typing import Optional

from .config import PlaylistConfig
from .core_path import CoreIdentityResolver
from .fileio import PlaylistFileIO
from .playlist import Playlist

LOGGER = logging.getLogger(__name__)


class Ownership(enum.Enum):
    OWNED = "owned"
    BORROWED = "borrowed"


class PlaylistCache:
    """Holds the currently active playlist.

    An owned playlist is written back and freed when it is released or
    replaced. A borrowed playlist belongs to someone else and is only
    forgotten.
    """

    def __init__(
        self,
        *,
        file_io: Optional[PlaylistFileIO] = None,
        resolver: Optional[CoreIdentityResolver] = None,
    ) -> None:
        self.file_io = file_io
        self.resolver = resolver
        self._playlist: Optional[Playlist] = None
        self._ownership: Optional[Ownership] = None

    def __enter__(self) -> "PlaylistCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    @property
    def playlist(self) -> Optional[Playlist]:
        return self._playlist

    def get(self) -> Optional[Playlist]:
        return self._playlist

    @property
    def ownership(self) -> Optional[Ownership]:
        return self._ownership

    def init(self, config: PlaylistConfig) -> bool:
        """Open the playlist at ``config.path`` and make it the owned active playlist.

        If the file on disk is not in the configured format or compression,
        it is rewritten immediately.
        """
        playlist = Playlist.open(config, file_io=self.file_io, resolver=self.resolver)
        if playlist is None:
            return False

        if playlist.compressed != playlist.config.compress or playlist.old_format != playlist.config.old_format:
            LOGGER.debug("Converting cached playlist %s to the configured encoding", playlist.path)
            playlist.write()

        self.adopt(playlist)
        return True

    def adopt(self, playlist: Playlist) -> None:
        """Make ``playlist`` active and take ownership of it."""
        self._set(playlist, Ownership.OWNED)

    def borrow(self, playlist: Playlist) -> None:
        """Make ``playlist`` active without taking ownership of it."""
        self._set(playlist, Ownership.BORROWED)

    def _set(self, playlist: Playlist, ownership: Ownership) -> None:
        if playlist is not self._playlist:
            self.release()
        self._playlist = playlist
        self._ownership = ownership

    def release(self) -> None:
        playlist = self._playlist
        if playlist is None:
            return

        if self._ownership is Ownership.OWNED:
            playlist.write()
            playlist.free()
        self._playlist = None
        self._ownership = None
