from __future__ import annotations

import logging
from typing import BinaryIO, Sequence

from ..models import PlaylistEntry, PlaylistMetadata
from .base import CHUNK_SIZE, STREAM_ERRORS, DecodeResult, PlaylistFormat, detect_format
from .json_reader import JsonPlaylistDecoder, read_json
from .json_writer import write_json, write_runtime_json
from .legacy import read_legacy, write_legacy
from .relaxed import RelaxedJsonFilter

LOGGER = logging.getLogger(__name__)


def read_playlist(stream: BinaryIO, capacity: int, metadata: PlaylistMetadata) -> DecodeResult:
    """Detect the encoding of ``stream`` and decode it.

    An empty stream yields an empty result whose ``format`` is ``None``. So
    does a compressed stream too damaged to sniff, flagged ``malformed``.
    """
    try:
        detected = detect_format(stream)
    except STREAM_ERRORS as exc:
        LOGGER.warning("Unable to read playlist stream: %s", exc)
        return DecodeResult(format=None, metadata=metadata, malformed=True)

    if detected is PlaylistFormat.JSON:
        return read_json(stream, capacity, metadata)
    if detected is PlaylistFormat.LEGACY:
        return read_legacy(stream, capacity, metadata)
    return DecodeResult(format=None, metadata=metadata)


def write_playlist(
    stream: BinaryIO,
    entries: Sequence[PlaylistEntry],
    metadata: PlaylistMetadata,
    *,
    old_format: bool = False,
    compact: bool = False,
) -> None:
    if old_format:
        write_legacy(stream, entries, metadata)
    else:
        write_json(stream, entries, metadata, compact=compact)


__all__ = [
    "CHUNK_SIZE",
    "DecodeResult",
    "JsonPlaylistDecoder",
    "PlaylistFormat",
    "RelaxedJsonFilter",
    "STREAM_ERRORS",
    "detect_format",
    "read_json",
    "read_legacy",
    "read_playlist",
    "write_json",
    "write_legacy",
    "write_playlist",
    "write_runtime_json",
]
