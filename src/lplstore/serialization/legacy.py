"""Legacy line-oriented playlist format.

Each entry occupies six lines (path, label, core path, core name, crc32,
database name), followed by up to five ``key = "value"`` metadata lines in a
fixed order.
"""

from __future__ import annotations

import itertools
import logging
from typing import BinaryIO, Iterator, List, Optional, Sequence

from ..core_path import CorePath
from ..models import (
    LabelDisplayMode,
    PlaylistEntry,
    PlaylistMetadata,
    SortMode,
    ThumbnailMode,
    coerce_enum,
)
from .base import STREAM_ERRORS, DecodeResult, PlaylistFormat

LOGGER = logging.getLogger(__name__)

LINES_PER_ENTRY = 6


def _iter_lines(stream: BinaryIO, result: DecodeResult) -> Iterator[str]:
    raw_lines = iter(stream)
    first = True
    while True:
        try:
            raw = next(raw_lines)
        except StopIteration:
            return
        except STREAM_ERRORS as exc:
            result.malformed = True
            LOGGER.warning("Legacy playlist stream ended early after %d entries: %s", len(result.entries), exc)
            return
        line = raw.decode("utf-8", errors="replace")
        if first:
            line = line.lstrip("\ufeff")
            first = False
        # A carriage return ends the line, whatever follows it.
        yield line.rstrip("\n").split("\r", 1)[0]


def _quoted_value(line: str, key: str) -> Optional[str]:
    """Value between the first pair of double quotes, if ``line`` starts with ``key``."""
    if not line.startswith(key):
        return None
    parts = line.split('"')
    if len(parts) < 3:
        return None
    return parts[1]


def _read_metadata(lines: Sequence[str], metadata: PlaylistMetadata) -> None:
    if not lines:
        return
    default_core_path = _quoted_value(lines[0], "default_core_path")
    if len(lines) < 2:
        return
    default_core_name = _quoted_value(lines[1], "default_core_name")
    if default_core_path and default_core_name:
        metadata.default_core_path = CorePath.parse(default_core_path)
        metadata.default_core_name = default_core_name

    if len(lines) < 3:
        return
    label_mode = _quoted_value(lines[2], "label_display_mode")
    if label_mode is not None:
        metadata.label_display_mode = coerce_enum(LabelDisplayMode, label_mode, metadata.label_display_mode)

    if len(lines) < 4:
        return
    thumbnail_mode = _quoted_value(lines[3], "thumbnail_mode")
    if thumbnail_mode is not None:
        parts = thumbnail_mode.split("|")
        if len(parts) == 2:
            metadata.right_thumbnail_mode = coerce_enum(ThumbnailMode, parts[0], metadata.right_thumbnail_mode)
            metadata.left_thumbnail_mode = coerce_enum(ThumbnailMode, parts[1], metadata.left_thumbnail_mode)

    if len(lines) < 5:
        return
    sort_mode = _quoted_value(lines[4], "sort_mode")
    if sort_mode is not None:
        metadata.sort_mode = coerce_enum(SortMode, sort_mode, metadata.sort_mode)


def read_legacy(stream: BinaryIO, capacity: int, metadata: PlaylistMetadata) -> DecodeResult:
    """Decode a legacy playlist.

    Entries beyond ``capacity`` are read and discarded so the trailing
    metadata lines are still picked up.
    """
    result = DecodeResult(format=PlaylistFormat.LEGACY, metadata=metadata)
    lines = _iter_lines(stream, result)
    try:
        while True:
            block: List[str] = list(itertools.islice(lines, LINES_PER_ENTRY))
            if len(block) < LINES_PER_ENTRY:
                _read_metadata(block, metadata)
                break
            if len(result.entries) >= capacity:
                if not result.capacity_exceeded:
                    LOGGER.warning(
                        "Playlist holds more entries than its capacity (%d); extra entries are discarded",
                        capacity,
                    )
                result.capacity_exceeded = True
                continue
            path, label, core_path, core_name, crc32, db_name = block
            result.entries.append(
                PlaylistEntry(
                    path=path,
                    label=label,
                    core_path=core_path,
                    core_name=core_name,
                    crc32=crc32,
                    db_name=db_name,
                )
            )
    except MemoryError:
        result.out_of_memory = True
        LOGGER.error("Ran out of memory while decoding legacy playlist")
    return result


def write_legacy(stream: BinaryIO, entries: Sequence[PlaylistEntry], metadata: PlaylistMetadata) -> None:
    """Encode a playlist in the legacy line format."""
    lines: List[str] = []
    for entry in entries:
        lines.extend(
            [
                entry.path or "",
                entry.label or "",
                entry.core_path_str or "",
                entry.core_name or "",
                entry.crc32 or "",
                entry.db_name or "",
            ]
        )
    lines.extend(
        [
            f'default_core_path = "{metadata.default_core_path_str or ""}"',
            f'default_core_name = "{metadata.default_core_name or ""}"',
            f'label_display_mode = "{int(metadata.label_display_mode)}"',
            f'thumbnail_mode = "{int(metadata.right_thumbnail_mode)}|{int(metadata.left_thumbnail_mode)}"',
            f'sort_mode = "{int(metadata.sort_mode)}"',
        ]
    )
    for line in lines:
        stream.write(f"{line}\n".encode("utf-8"))
