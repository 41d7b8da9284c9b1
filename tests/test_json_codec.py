from __future__ import annotations

import io
import json

import pytest

from lplstore.core_path import CorePath
from lplstore.models import (
    LabelDisplayMode,
    PlaylistEntry,
    PlaylistMetadata,
    SortMode,
    ThumbnailMode,
)
from lplstore.serialization import (
    CHUNK_SIZE,
    PlaylistFormat,
    RelaxedJsonFilter,
    detect_format,
    read_json,
    read_playlist,
    write_json,
    write_runtime_json,
)
from lplstore.serialization.json_writer import CompactTokenWriter, JsonTokenWriter, PrettyTokenWriter

EMPTY_PRETTY = (
    "{\n"
    '  "version": "1.4",\n'
    '  "default_core_path": "",\n'
    '  "default_core_name": "",\n'
    '  "label_display_mode": 0,\n'
    '  "right_thumbnail_mode": 0,\n'
    '  "left_thumbnail_mode": 0,\n'
    '  "sort_mode": 0,\n'
    '  "items": [\n'
    "  ]\n"
    "}\n"
)


class TruncatedStream(io.BytesIO):
    """Fails the way a gzip file cut short does once ``limit`` bytes are read."""

    def __init__(self, data: bytes, limit: int) -> None:
        super().__init__(data)
        self.limit = limit

    def read(self, size: int = -1) -> bytes:
        remaining = self.limit - self.tell()
        if remaining <= 0:
            raise EOFError("Compressed file ended before the end-of-stream marker was reached")
        if size < 0 or size > remaining:
            size = remaining
        return super().read(size)


def _encode(entries, metadata=None, *, compact: bool = False) -> bytes:
    stream = io.BytesIO()
    write_json(stream, entries, metadata or PlaylistMetadata(), compact=compact)
    return stream.getvalue()


def _decode(data: bytes, capacity: int = 100):
    return read_json(io.BytesIO(data), capacity, PlaylistMetadata())


def _sample_entries() -> list[PlaylistEntry]:
    return [
        PlaylistEntry(
            path="/roms/snes/Chrono Trigger (USA).sfc",
            label="Chrono Trigger (USA)",
            core_path="/cores/snes9x_libretro.so",
            core_name="Snes9x",
            crc32="2D206BF7|crc",
            db_name="Nintendo - Super Nintendo Entertainment System.lpl",
        ),
        PlaylistEntry(path="/roms/gb/tetris.gb", core_path="DETECT", core_name="DETECT"),
        PlaylistEntry(
            path="/roms/sgb/bios.gb",
            label='Quote "and" backslash \\ test',
            core_path="builtin",
            core_name="builtin core",
            subsystem_ident="sgb",
            subsystem_name="Super Game Boy",
            subsystem_roms=["/roms/sgb/bios.gb", "/roms/gb/game.gb"],
        ),
        PlaylistEntry(label="Core only", core_path="/cores/2048_libretro.so", core_name="2048"),
        PlaylistEntry(path="/roms/ünïcödé/ゲーム.bin", label="ゲーム", core_path="/cores/x.so", core_name="x"),
    ]


class TestJsonWriter:
    def test_token_writer_layout_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            JsonTokenWriter(io.BytesIO())  # type: ignore[abstract]
        for writer_cls in (PrettyTokenWriter, CompactTokenWriter):
            assert isinstance(writer_cls(io.BytesIO()), JsonTokenWriter)

    def test_empty_playlist_layout(self) -> None:
        assert _encode([]).decode("utf-8") == EMPTY_PRETTY

    def test_compact_layout_has_no_whitespace(self) -> None:
        compact = _encode(_sample_entries(), compact=True)
        assert b"\n" not in compact
        assert b": " not in compact
        assert json.loads(compact) == json.loads(_encode(_sample_entries()))

    def test_compact_empty_playlist(self) -> None:
        assert _encode([], compact=True) == (
            b'{"version":"1.4","default_core_path":"","default_core_name":"",'
            b'"label_display_mode":0,"right_thumbnail_mode":0,"left_thumbnail_mode":0,'
            b'"sort_mode":0,"items":[]}'
        )

    def test_entry_layout(self) -> None:
        entry = PlaylistEntry(path="/roms/a.bin", label="A", core_path="/cores/x.so", core_name="x")
        text = _encode([entry]).decode("utf-8")
        assert (
            '  "items": [\n'
            "    {\n"
            '      "path": "/roms/a.bin",\n'
            '      "label": "A",\n'
            '      "core_path": "/cores/x.so",\n'
            '      "core_name": "x",\n'
            '      "crc32": "",\n'
            '      "db_name": ""\n'
            "    }\n"
            "  ]\n"
        ) in text

    def test_subsystem_fields_only_written_when_present(self) -> None:
        payload = json.loads(_encode(_sample_entries()))
        assert "subsystem_ident" not in payload["items"][0]
        assert payload["items"][2]["subsystem_roms"] == ["/roms/sgb/bios.gb", "/roms/gb/game.gb"]
        assert list(payload["items"][2].keys()) == [
            "path",
            "label",
            "core_path",
            "core_name",
            "crc32",
            "db_name",
            "subsystem_ident",
            "subsystem_name",
            "subsystem_roms",
        ]

    def test_metadata_key_order(self) -> None:
        metadata = PlaylistMetadata(
            default_core_path=CorePath.from_path("/cores/x.so"),
            default_core_name="x",
            base_content_directory="/roms",
            label_display_mode=LabelDisplayMode.KEEP_REGION,
            right_thumbnail_mode=ThumbnailMode.BOXARTS,
            left_thumbnail_mode=ThumbnailMode.OFF,
            sort_mode=SortMode.OFF,
        )
        payload = json.loads(_encode([], metadata))
        assert list(payload.keys()) == [
            "version",
            "default_core_path",
            "default_core_name",
            "base_content_directory",
            "label_display_mode",
            "right_thumbnail_mode",
            "left_thumbnail_mode",
            "sort_mode",
            "items",
        ]
        assert payload["right_thumbnail_mode"] == 4
        assert payload["sort_mode"] == 2

    def test_runtime_file(self) -> None:
        entry = PlaylistEntry(
            path="/roms/a.bin",
            core_path="/cores/x.so",
            runtime_hours=1,
            runtime_minutes=2,
            runtime_seconds=3,
            last_played_year=2024,
            last_played_month=5,
            last_played_day=6,
        )
        stream = io.BytesIO()
        write_runtime_json(stream, [entry])
        payload = json.loads(stream.getvalue())

        assert payload["version"] == "1.0"
        item = payload["items"][0]
        assert list(item.keys())[:3] == ["path", "core_path", "runtime_hours"]
        assert item["runtime_seconds"] == 3
        assert item["last_played_year"] == 2024
        assert item["last_played_second"] == 0
        assert stream.getvalue().startswith(b'{\n  "version": "1.0",\n')


class TestJsonRoundTrip:
    @pytest.mark.parametrize("compact", [False, True])
    def test_entries_survive_round_trip(self, compact: bool) -> None:
        entries = _sample_entries()
        metadata = PlaylistMetadata(
            default_core_path=CorePath.detect(),
            default_core_name="DETECT",
            base_content_directory="/roms",
            label_display_mode=LabelDisplayMode.REMOVE_BRACKETS,
            right_thumbnail_mode=ThumbnailMode.SCREENSHOTS,
            left_thumbnail_mode=ThumbnailMode.TITLE_SCREENS,
            sort_mode=SortMode.ALPHABETICAL,
        )

        result = _decode(_encode(entries, metadata, compact=compact))

        assert result.format is PlaylistFormat.JSON
        assert result.entries == entries
        assert result.metadata == metadata
        assert not result.malformed
        assert not result.needs_rewrite

    def test_round_trip_across_chunk_boundaries(self) -> None:
        entries = [
            PlaylistEntry(path=f"/roms/é{index}.bin", label="é" * (index % 50 + 1), core_path="/cores/x.so", core_name="x")
            for index in range(200)
        ]
        data = _encode(entries)
        assert len(data) > CHUNK_SIZE * 3

        assert _decode(data, capacity=1000).entries == entries


class TestJsonReader:
    def test_capacity_overflow_discards_extra_items(self) -> None:
        result = _decode(_encode(_sample_entries()), capacity=2)
        assert [entry.path for entry in result.entries] == [entry.path for entry in _sample_entries()[:2]]
        assert result.capacity_exceeded
        assert result.needs_rewrite

    def test_unknown_keys_and_nested_values_are_ignored(self) -> None:
        data = (
            b'{"version":"1.4","extra":{"items":[{"path":"/nope"}]},'
            b'"items":[{"path":"/roms/a.bin","core_path":"/cores/x.so",'
            b'"unknown":[1,{"path":"/nope"}],"label":"A"}],"trailer":[]}'
        )
        result = _decode(data)
        assert len(result.entries) == 1
        assert result.entries[0].path == "/roms/a.bin"
        assert result.entries[0].label == "A"

    def test_runtime_numbers_are_read(self) -> None:
        data = b'{"items":[{"path":"/a","runtime_hours":5,"last_played_year":2023,"runtime_seconds":-1}]}'
        entry = _decode(data).entries[0]
        assert entry.runtime_hours == 5
        assert entry.last_played_year == 2023
        assert entry.runtime_seconds == 0

    def test_invalid_modes_keep_defaults(self) -> None:
        data = b'{"label_display_mode":99,"right_thumbnail_mode":true,"left_thumbnail_mode":3,"sort_mode":"1","items":[]}'
        metadata = _decode(data).metadata
        assert metadata.label_display_mode is LabelDisplayMode.DEFAULT
        assert metadata.right_thumbnail_mode is ThumbnailMode.DEFAULT
        assert metadata.left_thumbnail_mode is ThumbnailMode.TITLE_SCREENS
        assert metadata.sort_mode is SortMode.DEFAULT

    def test_empty_strings_stay_unset(self) -> None:
        entry = _decode(b'{"items":[{"path":"/a","label":"","core_path":"","crc32":""}]}').entries[0]
        assert entry.label is None
        assert entry.core_path is None
        assert entry.crc32 is None

    def test_truncated_file_keeps_complete_items(self) -> None:
        data = (
            b'{"items":[{"path":"/a","core_path":"/c"},'
            b'{"path":"/b","core_path":"/c"},{"path":"/c","core_pa'
        )
        result = _decode(data)
        assert result.malformed
        assert result.ok
        assert [entry.path for entry in result.entries] == ["/a", "/b"]

    def test_syntax_error_stops_decode(self, caplog) -> None:
        data = b'{"items":[{"path":"/a","core_path":"/c"}, oops, {"path":"/b"}]}'
        with caplog.at_level("WARNING"):
            result = _decode(data)
        assert result.malformed
        assert [entry.path for entry in result.entries] == ["/a"]
        assert "Malformed Playlist Data" in caplog.text

    def test_comments_are_ignored(self) -> None:
        data = (
            b"{ // written by hand\n"
            b' "version": "1.4", /* older front ends\n   left this here */\n'
            b' "items": [{"path": "/a", "core_path": "/c"} // trailing\n]}'
        )
        result = _decode(data)
        assert not result.malformed
        assert [entry.path for entry in result.entries] == ["/a"]

    def test_raw_control_characters_in_strings(self) -> None:
        result = _decode(b'{"items":[{"path":"/a","label":"Tab\there\x01","core_path":"/c"}]}')
        assert not result.malformed
        assert result.entries[0].label == "Tab\there\x01"

    def test_hex_numbers(self) -> None:
        result = _decode(b'{"sort_mode": 0x2, "items":[{"path":"/a","core_path":"/c","runtime_hours":0x1F}]}')
        assert not result.malformed
        assert result.metadata.sort_mode is SortMode.OFF
        assert result.entries[0].runtime_hours == 31

    def test_special_numbers_leave_fields_unset(self) -> None:
        data = b'{"items":[{"path":"/a","core_path":"/c","runtime_minutes":NaN,"runtime_seconds":-Infinity}]}'
        result = _decode(data)
        assert not result.malformed
        assert result.entries[0].runtime_minutes == 0
        assert result.entries[0].runtime_seconds == 0

    def test_relaxed_syntax_across_chunk_boundaries(self) -> None:
        head = b'{"items":['
        head += b" " * (CHUNK_SIZE - 1 - len(head)) + b"/* split */"
        item = b'{"path":"/a","core_path":"/c","runtime_hours":'
        head += b" " * (2 * CHUNK_SIZE - 2 - len(head) - len(item)) + item
        data = head + b"0x1F}]}"
        assert data[CHUNK_SIZE - 1 : CHUNK_SIZE + 1] == b"/*"
        assert data[2 * CHUNK_SIZE - 2 : 2 * CHUNK_SIZE] == b"0x"

        result = _decode(data)

        assert not result.malformed
        assert result.entries[0].runtime_hours == 31

    def test_running_out_of_memory(self, monkeypatch) -> None:
        def exhausted(*args, **kwargs):
            raise MemoryError

        monkeypatch.setattr("lplstore.serialization.json_reader.PlaylistEntry", exhausted)
        result = _decode(b'{"items":[{"path":"/a","core_path":"/c"}]}')
        assert result.out_of_memory
        assert not result.ok
        assert not result.malformed

    def test_damaged_stream_keeps_complete_items(self) -> None:
        data = _encode(_sample_entries() * 40, compact=True)
        result = read_json(TruncatedStream(data, CHUNK_SIZE * 2), 1000, PlaylistMetadata())
        assert result.malformed
        assert result.ok
        assert 0 < len(result.entries) < 200

    def test_bom_and_invalid_utf8_are_tolerated(self) -> None:
        data = b'\xef\xbb\xbf{"items":[{"path":"/r\xffom","core_path":"/c"}]}'
        result = _decode(data)
        assert not result.malformed
        assert result.entries[0].path == "/r\ufffdom"


class TestFormatDetection:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b'{"items":[]}', PlaylistFormat.JSON),
            (b"  \n\t {", PlaylistFormat.JSON),
            (b"\xef\xbb\xbf{", PlaylistFormat.JSON),
            (b"/roms/a.bin\nA\n", PlaylistFormat.LEGACY),
            (b"", None),
            (b" \n\r\n", None),
        ],
    )
    def test_detects_first_printable_character(self, data: bytes, expected) -> None:
        stream = io.BytesIO(data)
        assert detect_format(stream) is expected
        assert stream.tell() == 0

    def test_read_playlist_of_empty_stream(self) -> None:
        result = read_playlist(io.BytesIO(b""), 10, PlaylistMetadata())
        assert result.format is None
        assert result.entries == []

    def test_read_playlist_dispatches_to_json(self) -> None:
        result = read_playlist(io.BytesIO(_encode(_sample_entries())), 10, PlaylistMetadata())
        assert result.format is PlaylistFormat.JSON
        assert len(result.entries) == 5


def _relax(text: str, *, step: int = 0) -> str:
    relaxed = RelaxedJsonFilter()
    if not step:
        return relaxed.feed(text) + relaxed.flush()
    pieces = [relaxed.feed(text[start : start + step]) for start in range(0, len(text), step)]
    return "".join(pieces) + relaxed.flush()


class TestRelaxedJsonFilter:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('{"a": 0x10, // note\n "b": "x\ty"}', '{"a": 16, \n "b": "x\\u0009y"}'),
            ("[1, /* a * b **/ 2]", "[1,   2]"),
            ("[-0xff, NaN, +Infinity, -inf]", "[-255, null, null, null]"),
            ('["a\\"/* not a comment */", "//"]', '["a\\"/* not a comment */", "//"]'),
            ("[true, false, null, 1.5e3]", "[true, false, null, 1.5e3]"),
            ("[1/2]", "[1/2]"),
        ],
    )
    def test_translation(self, text: str, expected: str) -> None:
        assert _relax(text) == expected
        assert _relax(text, step=1) == expected
        assert _relax(text, step=3) == expected

    def test_strict_json_passes_through(self) -> None:
        text = _encode(_sample_entries()).decode("utf-8")
        assert _relax(text) == text
