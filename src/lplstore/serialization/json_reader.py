"""Streaming decoder for the structured (JSON) playlist format.

The stream is read in fixed-size chunks, relaxed to strict JSON and pushed
into ijson's event coroutine. Each parse event is routed through a small
state machine that tracks where in the document the parser currently is;
scalar values are resolved through per-context field tables, so unknown keys
fall through without effect.
"""

from __future__ import annotations

import codecs
import enum
import logging
from decimal import Decimal
from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Optional, Tuple, Type

import ijson

from ..core_path import CorePath
from ..logging_utils import render_fields_block
from ..models import (
    LAST_PLAYED_FIELDS,
    RUNTIME_FIELDS,
    EnumT,
    LabelDisplayMode,
    PlaylistEntry,
    PlaylistMetadata,
    SortMode,
    ThumbnailMode,
    coerce_enum,
)
from .base import CHUNK_SIZE, STREAM_ERRORS, DecodeResult, PlaylistFormat
from .relaxed import RelaxedJsonFilter

LOGGER = logging.getLogger(__name__)

Setter = Callable[[Any, Any], None]


class DecodeState(enum.Enum):
    TOP = "top"
    METADATA = "metadata"
    ITEMS = "items"
    ITEM = "item"
    SUBSYSTEM_ROMS = "subsystem_roms"
    SKIP = "skip"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, Decimal)) and not isinstance(value, bool)


def _string_setter(attr: str) -> Setter:
    def setter(target: Any, value: Any) -> None:
        if isinstance(value, str) and value:
            setattr(target, attr, value)

    return setter


def _core_path_setter(attr: str) -> Setter:
    def setter(target: Any, value: Any) -> None:
        if isinstance(value, str) and value:
            setattr(target, attr, CorePath.parse(value))

    return setter


def _count_setter(attr: str) -> Setter:
    def setter(target: Any, value: Any) -> None:
        if _is_number(value) and value >= 0:
            setattr(target, attr, int(value))

    return setter


def _mode_setter(attr: str, enum_cls: Type[EnumT]) -> Setter:
    def setter(target: Any, value: Any) -> None:
        if _is_number(value):
            setattr(target, attr, coerce_enum(enum_cls, value, getattr(target, attr)))

    return setter


METADATA_SETTERS: Dict[str, Setter] = {
    "default_core_path": _core_path_setter("default_core_path"),
    "default_core_name": _string_setter("default_core_name"),
    "base_content_directory": _string_setter("base_content_directory"),
    "label_display_mode": _mode_setter("label_display_mode", LabelDisplayMode),
    "right_thumbnail_mode": _mode_setter("right_thumbnail_mode", ThumbnailMode),
    "left_thumbnail_mode": _mode_setter("left_thumbnail_mode", ThumbnailMode),
    "sort_mode": _mode_setter("sort_mode", SortMode),
}

ITEM_SETTERS: Dict[str, Setter] = {
    "path": _string_setter("path"),
    "label": _string_setter("label"),
    "core_path": _core_path_setter("core_path"),
    "core_name": _string_setter("core_name"),
    "crc32": _string_setter("crc32"),
    "db_name": _string_setter("db_name"),
    "subsystem_ident": _string_setter("subsystem_ident"),
    "subsystem_name": _string_setter("subsystem_name"),
}
ITEM_SETTERS.update({name: _count_setter(name) for name in RUNTIME_FIELDS + LAST_PLAYED_FIELDS})

_SCALAR_EVENTS = frozenset({"null", "boolean", "integer", "double", "number", "string"})


class JsonPlaylistDecoder:
    """Consumes ijson ``basic_parse`` events and builds a :class:`DecodeResult`."""

    def __init__(self, capacity: int, metadata: PlaylistMetadata) -> None:
        self.capacity = capacity
        self.result = DecodeResult(format=PlaylistFormat.JSON, metadata=metadata)
        self._stack: List[DecodeState] = [DecodeState.TOP]
        self._key: Optional[str] = None
        self._entry: Optional[PlaylistEntry] = None

    @property
    def state(self) -> DecodeState:
        return self._stack[-1]

    def feed(self, events: Iterable[Tuple[str, Any]]) -> None:
        for event, value in events:
            if event == "start_map":
                self._start_map()
            elif event == "start_array":
                self._start_array()
            elif event in ("end_map", "end_array"):
                self._end_container()
            elif event == "map_key":
                self._map_key(value)
            elif event in _SCALAR_EVENTS:
                self._scalar(value)

    def _start_map(self) -> None:
        state = self.state
        if state is DecodeState.TOP:
            self._stack.append(DecodeState.METADATA)
        elif state is DecodeState.ITEMS:
            self._begin_item()
            self._stack.append(DecodeState.ITEM)
        else:
            self._stack.append(DecodeState.SKIP)
        self._key = None

    def _start_array(self) -> None:
        state = self.state
        if state is DecodeState.METADATA and self._key == "items":
            self._stack.append(DecodeState.ITEMS)
        elif state is DecodeState.ITEM and self._key == "subsystem_roms":
            self._stack.append(DecodeState.SUBSYSTEM_ROMS)
        else:
            self._stack.append(DecodeState.SKIP)
        self._key = None

    def _end_container(self) -> None:
        if len(self._stack) > 1:
            finished = self._stack.pop()
            if finished is DecodeState.ITEM:
                self._commit_item()
        self._key = None

    def _map_key(self, key: str) -> None:
        if self.state in (DecodeState.METADATA, DecodeState.ITEM):
            self._key = key

    def _scalar(self, value: Any) -> None:
        state = self.state
        if state is DecodeState.METADATA:
            setter = METADATA_SETTERS.get(self._key or "")
            if setter is not None:
                setter(self.result.metadata, value)
            self._key = None
        elif state is DecodeState.ITEM:
            setter = ITEM_SETTERS.get(self._key or "")
            if setter is not None and self._entry is not None:
                setter(self._entry, value)
            self._key = None
        elif state is DecodeState.SUBSYSTEM_ROMS:
            if self._entry is not None and isinstance(value, str) and value:
                self._entry.subsystem_roms.append(value)

    def _begin_item(self) -> None:
        if len(self.result.entries) < self.capacity:
            self._entry = PlaylistEntry()
            return
        if not self.result.capacity_exceeded:
            LOGGER.warning(
                "Playlist holds more entries than its capacity (%d); extra entries are discarded",
                self.capacity,
            )
        self.result.capacity_exceeded = True
        self._entry = None

    def _commit_item(self) -> None:
        if self._entry is not None:
            self.result.entries.append(self._entry)
        self._entry = None


def _log_malformed(result: DecodeResult, consumed: int, error: BaseException) -> None:
    LOGGER.warning(
        render_fields_block(
            "Malformed Playlist Data",
            {
                "Bytes Read": consumed,
                "Entries Kept": len(result.entries),
                "Error": error,
            },
        )
    )


def read_json(stream: BinaryIO, capacity: int, metadata: PlaylistMetadata) -> DecodeResult:
    """Decode a structured playlist from ``stream``.

    Syntax errors and damaged compressed streams stop the decode: entries
    completed before that point are kept and the result is flagged
    ``malformed``. Running out of memory flags ``out_of_memory``.
    """
    decoder = JsonPlaylistDecoder(capacity, metadata)
    text_decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="replace")
    relaxed = RelaxedJsonFilter()
    events = ijson.sendable_list()
    parser = ijson.basic_parse_coro(events)
    consumed = 0

    def push(text: str) -> None:
        # An empty send is taken as end of input by ijson.
        if text:
            parser.send(text.encode("utf-8"))
        decoder.feed(events)
        del events[:]

    try:
        while True:
            try:
                chunk = stream.read(CHUNK_SIZE)
            except STREAM_ERRORS as exc:
                decoder.result.malformed = True
                _log_malformed(decoder.result, consumed, exc)
                break
            if not chunk:
                break
            consumed += len(chunk)
            push(relaxed.feed(text_decoder.decode(chunk)))

        if not decoder.result.malformed:
            push(relaxed.feed(text_decoder.decode(b"", final=True)) + relaxed.flush())
            parser.close()
            decoder.feed(events)
    except ijson.JSONError as exc:
        decoder.feed(events)
        decoder.result.malformed = True
        _log_malformed(decoder.result, consumed, exc)
    except MemoryError:
        decoder.result.out_of_memory = True
        LOGGER.error("Ran out of memory while decoding playlist after %d bytes", consumed)

    return decoder.result
