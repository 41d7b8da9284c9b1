"""Structured (JSON) playlist encoders.

Output is produced token by token so the file layout stays stable across
versions. Two token writers share one interface: the pretty writer indents
with spaces and breaks lines, the compact writer emits no whitespace at all
and is used when the destination is compressed.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable, List, Optional, Sequence, Tuple

from ..models import LAST_PLAYED_FIELDS, RUNTIME_FIELDS, PlaylistEntry, PlaylistMetadata

PLAYLIST_FORMAT_VERSION = "1.4"
RUNTIME_FORMAT_VERSION = "1.0"


class JsonTokenWriter(ABC):
    """Writes JSON tokens to a binary stream as UTF-8.

    Subclasses decide the layout by implementing :meth:`newline` and
    :meth:`indent`.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _emit(self, text: str) -> None:
        if text:
            self._stream.write(text.encode("utf-8"))

    @abstractmethod
    def newline(self) -> None:
        pass

    @abstractmethod
    def indent(self, count: int) -> None:
        pass

    def start_object(self) -> None:
        self._emit("{")

    def end_object(self) -> None:
        self._emit("}")

    def start_array(self) -> None:
        self._emit("[")

    def end_array(self) -> None:
        self._emit("]")

    def comma(self) -> None:
        self._emit(",")

    def string(self, value: Optional[str]) -> None:
        self._emit(json.dumps(value or "", ensure_ascii=False))

    def number(self, value: int) -> None:
        self._emit(str(int(value)))

    def member(self, name: str, depth: int) -> None:
        self.indent(depth)
        self.string(name)
        self._emit(":")
        self.indent(1)


class PrettyTokenWriter(JsonTokenWriter):
    def newline(self) -> None:
        self._emit("\n")

    def indent(self, count: int) -> None:
        self._emit(" " * count)


class CompactTokenWriter(JsonTokenWriter):
    def newline(self) -> None:
        pass

    def indent(self, count: int) -> None:
        pass


def token_writer_for(stream: BinaryIO, *, compact: bool) -> JsonTokenWriter:
    return CompactTokenWriter(stream) if compact else PrettyTokenWriter(stream)


def _entry_string_fields(entry: PlaylistEntry) -> List[Tuple[str, Optional[str]]]:
    fields: List[Tuple[str, Optional[str]]] = [
        ("path", entry.path),
        ("label", entry.label),
        ("core_path", entry.core_path_str),
        ("core_name", entry.core_name),
        ("crc32", entry.crc32),
        ("db_name", entry.db_name),
    ]
    if entry.subsystem_ident:
        fields.append(("subsystem_ident", entry.subsystem_ident))
    if entry.subsystem_name:
        fields.append(("subsystem_name", entry.subsystem_name))
    return fields


def _write_subsystem_roms(writer: JsonTokenWriter, roms: Sequence[str]) -> None:
    writer.comma()
    writer.newline()
    writer.member("subsystem_roms", 6)
    writer.start_array()
    writer.newline()
    for index, rom in enumerate(roms):
        writer.indent(8)
        writer.string(rom)
        if index < len(roms) - 1:
            writer.comma()
            writer.newline()
    writer.newline()
    writer.indent(6)
    writer.end_array()


def _write_items(writer: JsonTokenWriter, entries: Sequence[PlaylistEntry]) -> None:
    writer.member("items", 2)
    writer.start_array()
    writer.newline()

    for index, entry in enumerate(entries):
        writer.indent(4)
        writer.start_object()
        for position, (name, value) in enumerate(_entry_string_fields(entry)):
            if position:
                writer.comma()
            writer.newline()
            writer.member(name, 6)
            writer.string(value)
        if entry.subsystem_roms:
            _write_subsystem_roms(writer, entry.subsystem_roms)
        writer.newline()
        writer.indent(4)
        writer.end_object()
        if index < len(entries) - 1:
            writer.comma()
        writer.newline()

    writer.indent(2)
    writer.end_array()
    writer.newline()


def write_json(
    stream: BinaryIO,
    entries: Sequence[PlaylistEntry],
    metadata: PlaylistMetadata,
    *,
    compact: bool = False,
) -> None:
    """Encode a playlist in the structured format."""
    writer = token_writer_for(stream, compact=compact)

    writer.start_object()
    writer.newline()

    header: Iterable[Tuple[str, Optional[str]]] = (
        ("version", PLAYLIST_FORMAT_VERSION),
        ("default_core_path", metadata.default_core_path_str),
        ("default_core_name", metadata.default_core_name),
    )
    for name, value in header:
        writer.member(name, 2)
        writer.string(value)
        writer.comma()
        writer.newline()

    if metadata.base_content_directory:
        writer.member("base_content_directory", 2)
        writer.string(metadata.base_content_directory)
        writer.comma()
        writer.newline()

    modes = (
        ("label_display_mode", metadata.label_display_mode),
        ("right_thumbnail_mode", metadata.right_thumbnail_mode),
        ("left_thumbnail_mode", metadata.left_thumbnail_mode),
        ("sort_mode", metadata.sort_mode),
    )
    for name, mode in modes:
        writer.member(name, 2)
        writer.number(mode)
        writer.comma()
        writer.newline()

    _write_items(writer, entries)
    writer.end_object()
    writer.newline()


def write_runtime_json(stream: BinaryIO, entries: Sequence[PlaylistEntry]) -> None:
    """Encode the play statistics snapshot (always human readable)."""
    writer = PrettyTokenWriter(stream)
    numeric_fields = RUNTIME_FIELDS + LAST_PLAYED_FIELDS

    writer.start_object()
    writer.newline()
    writer.member("version", 2)
    writer.string(RUNTIME_FORMAT_VERSION)
    writer.comma()
    writer.newline()
    writer.member("items", 2)
    writer.start_array()
    writer.newline()

    for index, entry in enumerate(entries):
        writer.indent(4)
        writer.start_object()
        writer.newline()
        writer.member("path", 6)
        writer.string(entry.path)
        writer.comma()
        writer.newline()
        writer.member("core_path", 6)
        writer.string(entry.core_path_str)
        writer.comma()
        writer.newline()
        for position, name in enumerate(numeric_fields):
            writer.member(name, 6)
            writer.number(getattr(entry, name))
            if position < len(numeric_fields) - 1:
                writer.comma()
            writer.newline()
        writer.indent(4)
        writer.end_object()
        if index < len(entries) - 1:
            writer.comma()
        writer.newline()

    writer.indent(2)
    writer.end_array()
    writer.newline()
    writer.end_object()
    writer.newline()
