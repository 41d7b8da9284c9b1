from __future__ import annotations

from lplstore.core_path import CorePath
from lplstore.matching import EntryMatcher, content_path_equal, core_path_equal
from lplstore.models import PlaylistEntry
from lplstore.paths import resolve_real_path


class RecordingResolver:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    def same_core(self, core_path_a: str, core_path_b: str) -> bool:
        self.calls.append((core_path_a, core_path_b))
        return self.answer


def _real(path: str) -> str:
    return resolve_real_path(path)


class TestContentPathEqual:
    def test_exact_match(self) -> None:
        assert content_path_equal(_real("/roms/a.bin"), "/roms/a.bin")

    def test_stored_side_is_canonicalized(self) -> None:
        assert content_path_equal(_real("/roms/a.bin"), "/roms/sub/../a.bin")

    def test_empty_inputs_never_match(self) -> None:
        assert not content_path_equal(None, "/roms/a.bin")
        assert not content_path_equal(_real("/roms/a.bin"), None)
        assert not content_path_equal("", "")

    def test_archive_member_needs_fuzzy_matching(self) -> None:
        assert not content_path_equal(_real("/roms/game.zip"), "/roms/game.zip#game.rom")

    def test_fuzzy_matching_works_in_both_directions(self) -> None:
        assert content_path_equal(_real("/roms/game.zip"), "/roms/game.zip#game.rom", fuzzy_archive_match=True)
        assert content_path_equal(_real("/roms/game.zip#game.rom"), "/roms/game.zip", fuzzy_archive_match=True)

    def test_fuzzy_matching_requires_same_archive(self) -> None:
        assert not content_path_equal(_real("/roms/other.zip"), "/roms/game.zip#game.rom", fuzzy_archive_match=True)

    def test_two_members_of_one_archive_do_not_match(self) -> None:
        assert not content_path_equal(
            _real("/roms/game.zip#a.rom"), "/roms/game.zip#b.rom", fuzzy_archive_match=True
        )


class TestCorePathEqual:
    def test_placeholders_match_only_themselves(self) -> None:
        assert core_path_equal(CorePath.detect(), CorePath.detect())
        assert not core_path_equal(CorePath.detect(), CorePath.builtin())
        assert not core_path_equal(CorePath.builtin(), CorePath.from_path("/cores/builtin.so"))

    def test_missing_values_never_match(self) -> None:
        assert not core_path_equal(None, CorePath.detect())
        assert not core_path_equal(CorePath.from_path(""), CorePath.from_path(""))

    def test_resolver_only_consulted_with_autofix(self) -> None:
        resolver = RecordingResolver(True)
        query = CorePath.from_path(_real("/new/cores/snes9x_libretro.so"))
        stored = CorePath.from_path("/old/cores/snes9x_libretro.so")

        assert not core_path_equal(query, stored, resolver=resolver)
        assert resolver.calls == []

        assert core_path_equal(query, stored, autofix_paths=True, resolver=resolver)
        assert len(resolver.calls) == 1

    def test_resolver_not_consulted_for_placeholders(self) -> None:
        resolver = RecordingResolver(True)
        assert not core_path_equal(
            CorePath.detect(), CorePath.from_path("/cores/a.so"), autofix_paths=True, resolver=resolver
        )
        assert resolver.calls == []


class TestEntryMatcher:
    def test_path_or_both_empty(self) -> None:
        matcher = EntryMatcher()
        assert matcher.path_or_both_empty(None, None)
        assert not matcher.path_or_both_empty(_real("/roms/a.bin"), None)

    def test_subsystem_identity_must_match(self) -> None:
        matcher = EntryMatcher()
        query = PlaylistEntry(subsystem_ident="sgb", subsystem_name="Super Game Boy")
        assert matcher.subsystem_equal(query, PlaylistEntry(subsystem_ident="sgb", subsystem_name="Super Game Boy"))
        assert not matcher.subsystem_equal(query, PlaylistEntry(subsystem_ident="sgb"))
        assert not matcher.subsystem_equal(query, PlaylistEntry())

    def test_subsystem_roms_compared_when_query_has_them(self) -> None:
        matcher = EntryMatcher()
        stored = PlaylistEntry(subsystem_ident="sgb", subsystem_roms=["/roms/bios.gb", "/roms/game.gb"])

        assert matcher.subsystem_equal(PlaylistEntry(subsystem_ident="sgb"), stored)
        assert matcher.subsystem_equal(
            PlaylistEntry(subsystem_ident="sgb", subsystem_roms=["/roms/./bios.gb", "/roms/game.gb"]), stored
        )
        assert not matcher.subsystem_equal(
            PlaylistEntry(subsystem_ident="sgb", subsystem_roms=["/roms/bios.gb"]), stored
        )
        assert not matcher.subsystem_equal(
            PlaylistEntry(subsystem_ident="sgb", subsystem_roms=["/roms/game.gb", "/roms/bios.gb"]), stored
        )

    def test_entries_without_path_or_core_are_equal(self) -> None:
        matcher = EntryMatcher()
        assert matcher.entries_equal(PlaylistEntry(label="a"), PlaylistEntry(label="b"))

    def test_entries_equal_compares_path_and_core(self) -> None:
        matcher = EntryMatcher()
        entry = PlaylistEntry(path="/roms/a.bin", core_path="/cores/x.so")
        assert matcher.entries_equal(entry, PlaylistEntry(path="/roms/a.bin", core_path="/cores/x.so", label="A"))
        assert not matcher.entries_equal(entry, PlaylistEntry(path="/roms/a.bin", core_path="/cores/y.so"))
        assert not matcher.entries_equal(entry, PlaylistEntry(path="/roms/b.bin", core_path="/cores/x.so"))
