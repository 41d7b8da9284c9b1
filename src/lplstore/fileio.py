"""Streaming access to playlist files on disk.

Compressed playlists are gzip streams. Reading detects compression from the
magic bytes, so callers never need to know how a file was written.
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

from .utils import ensure_directory

LOGGER = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

PathLike = Union[str, Path]


class PlaylistFileIO:
    """Opens playlist files for streaming reads and writes."""

    def open_read(self, path: PathLike) -> Optional[Tuple[BinaryIO, bool]]:
        """Open ``path`` for reading.

        Returns ``(stream, compressed)``, or None when the file does not
        exist. Other failures raise :class:`OSError`.
        """
        file_path = Path(path)
        if not file_path.is_file():
            return None

        with file_path.open("rb") as handle:
            magic = handle.read(len(GZIP_MAGIC))

        if magic == GZIP_MAGIC:
            return gzip.open(file_path, "rb"), True
        return file_path.open("rb"), False

    def open_write(self, path: PathLike, *, compress: bool = False) -> BinaryIO:
        """Open ``path`` for writing, truncating any existing file."""
        file_path = Path(path)
        ensure_directory(file_path.parent)
        if compress:
            return gzip.open(file_path, "wb")
        return file_path.open("wb")
