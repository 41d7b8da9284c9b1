"""Equality rules used to decide whether two references denote the same content.

Query-side values are expected to be canonical already (see
:func:`lplstore.paths.resolve_real_path`); stored values are canonicalized
here before comparison. Nested archives (an archive inside an archive) are
not handled by the fuzzy archive rule.
"""

from __future__ import annotations

import logging
from typing import Optional

from .core_path import CoreFileIdResolver, CoreIdentityResolver, CorePath, core_paths_identical
from .models import PlaylistEntry
from .paths import archive_delimiter_index, is_compressed_file, paths_equal, resolve_real_path

LOGGER = logging.getLogger(__name__)


def content_path_equal(
    real_path: Optional[str],
    entry_path: Optional[str],
    *,
    fuzzy_archive_match: bool = False,
) -> bool:
    """True if ``real_path`` and the stored ``entry_path`` denote the same content.

    With ``fuzzy_archive_match`` a bare archive path (``game.zip``) also matches
    a member of that archive (``game.zip#game.rom``), in either direction.
    """
    if not real_path or not entry_path:
        return False

    entry_real_path = resolve_real_path(entry_path)
    if not entry_real_path:
        return False

    if paths_equal(real_path, entry_real_path):
        return True

    if not fuzzy_archive_match:
        return False

    real_is_archive = is_compressed_file(real_path)
    entry_is_archive = is_compressed_file(entry_real_path)
    if real_is_archive == entry_is_archive:
        return False

    archive_path = real_path if real_is_archive else entry_real_path
    member_path = entry_real_path if real_is_archive else real_path
    delim = archive_delimiter_index(member_path)
    if delim is None:
        return False
    return paths_equal(archive_path, member_path[:delim])


def core_path_equal(
    real_core_path: Optional[CorePath],
    entry_core_path: Optional[CorePath],
    *,
    autofix_paths: bool = False,
    resolver: Optional[CoreIdentityResolver] = None,
) -> bool:
    """True if the canonical query core path matches the stored core path.

    Placeholder variants only ever match the same variant. When
    ``autofix_paths`` is enabled, real paths that differ are handed to the
    core identity resolver, which recognizes cores that were moved or
    renamed between versions.
    """
    if real_core_path is None or entry_core_path is None:
        return False
    if real_core_path.is_empty() or entry_core_path.is_empty():
        return False

    entry_real_core_path = entry_core_path.resolved()
    if entry_real_core_path.is_empty():
        return False

    if core_paths_identical(real_core_path, entry_real_core_path):
        return True

    if real_core_path.is_sentinel or entry_core_path.is_sentinel:
        return False

    if autofix_paths and resolver is not None:
        return resolver.same_core(str(real_core_path), str(entry_core_path))

    return False


class EntryMatcher:
    """Binds the configured matching rules to a set of comparison helpers."""

    def __init__(
        self,
        *,
        fuzzy_archive_match: bool = False,
        autofix_paths: bool = False,
        resolver: Optional[CoreIdentityResolver] = None,
    ) -> None:
        self.fuzzy_archive_match = fuzzy_archive_match
        self.autofix_paths = autofix_paths
        self.resolver = resolver if resolver is not None else CoreFileIdResolver()

    def path_equal(self, real_path: Optional[str], entry_path: Optional[str]) -> bool:
        return content_path_equal(real_path, entry_path, fuzzy_archive_match=self.fuzzy_archive_match)

    def path_or_both_empty(self, real_path: Optional[str], entry_path: Optional[str]) -> bool:
        # Entries launched without content (core only) match each other.
        if not real_path and not entry_path:
            return True
        return self.path_equal(real_path, entry_path)

    def core_equal(self, real_core_path: Optional[CorePath], entry_core_path: Optional[CorePath]) -> bool:
        return core_path_equal(
            real_core_path,
            entry_core_path,
            autofix_paths=self.autofix_paths,
            resolver=self.resolver,
        )

    def subsystem_equal(self, query: PlaylistEntry, stored: PlaylistEntry) -> bool:
        """Compare subsystem identity, name and (when the query has them) ROM lists."""
        if query.subsystem_ident != stored.subsystem_ident:
            return False
        if query.subsystem_name != stored.subsystem_name:
            return False
        if not query.subsystem_roms:
            return True
        if len(query.subsystem_roms) != len(stored.subsystem_roms):
            return False
        for query_rom, stored_rom in zip(query.subsystem_roms, stored.subsystem_roms):
            if not self.path_equal(resolve_real_path(query_rom), stored_rom):
                return False
        return True

    def entries_equal(self, entry_a: PlaylistEntry, entry_b: PlaylistEntry) -> bool:
        """Content path and core path equality of two arbitrary entries."""
        if not entry_a.path and entry_a.core_path is None and not entry_b.path and entry_b.core_path is None:
            return True

        real_path = resolve_real_path(entry_a.path) if entry_a.path else None
        if not self.path_equal(real_path, entry_b.path):
            return False

        real_core_path = entry_a.core_path.resolved() if entry_a.core_path is not None else None
        return self.core_equal(real_core_path, entry_b.core_path)
