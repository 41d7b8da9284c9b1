from __future__ import annotations

import enum
import gzip
import logging
import zlib
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional

from ..models import PlaylistEntry, PlaylistMetadata

LOGGER = logging.getLogger(__name__)

# Bytes read from the backing stream per decode step
CHUNK_SIZE = 4096

# Raised while reading a gzip stream that is cut short or corrupt
STREAM_ERRORS = (EOFError, zlib.error, gzip.BadGzipFile)


class PlaylistFormat(enum.Enum):
    JSON = "json"
    LEGACY = "legacy"


@dataclass
class DecodeResult:
    """Outcome of decoding a playlist stream.

    Attributes:
        format: Encoding detected in the stream (None for an empty stream)
        metadata: Playlist metadata, starting from the caller's defaults
        entries: Entries that were decoded completely, in file order
        capacity_exceeded: More entries were stored than the capacity allows
        malformed: Decoding stopped early on a syntax error or a damaged stream
        out_of_memory: Decoding was aborted because memory ran out
    """

    format: Optional[PlaylistFormat]
    metadata: PlaylistMetadata
    entries: List[PlaylistEntry] = field(default_factory=list)
    capacity_exceeded: bool = False
    malformed: bool = False
    out_of_memory: bool = False

    @property
    def ok(self) -> bool:
        return not self.out_of_memory

    @property
    def needs_rewrite(self) -> bool:
        """The file on disk no longer reflects what was loaded."""
        return self.capacity_exceeded or self.malformed


def _is_printable_ascii(byte: int) -> bool:
    return 0x21 <= byte <= 0x7E


def detect_format(stream: BinaryIO) -> Optional[PlaylistFormat]:
    """Sniff the playlist encoding from the first printable ASCII character.

    ``{`` means the structured JSON format; anything else is the legacy line
    format. Returns None when the stream holds no printable character. The
    stream is rewound before returning.
    """
    detected: Optional[PlaylistFormat] = None
    while detected is None:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            break
        for byte in chunk:
            if _is_printable_ascii(byte):
                detected = PlaylistFormat.JSON if byte == ord("{") else PlaylistFormat.LEGACY
                break
    stream.seek(0)
    return detected
