"""Path normalization helpers for playlist entries.

Every path comparison in the store goes through this module. Paths are
stored in their "real" form (absolute, ``.``/``..`` collapsed, symlinks
resolved where the platform allows it); case folding happens only when two
paths are compared, never when they are stored.

Archive members are addressed as ``archive.zip#inner/file.bin``. A path whose
own extension is an archive extension is a "bare" archive path.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOGGER = logging.getLogger(__name__)

ARCHIVE_DELIMITER = "#"
ARCHIVE_EXTENSIONS = (".zip", ".apk", ".7z")

WINDOWS_PATH_DELIMITER = "\\"
POSIX_PATH_DELIMITER = "/"


def resolve_real_path(path: Optional[str]) -> Optional[str]:
    """Return the canonical absolute form of ``path``.

    Never raises. If the path cannot be resolved the input is returned
    unchanged.
    """
    if not path:
        return path
    try:
        return os.path.realpath(path)
    except (OSError, ValueError) as exc:
        LOGGER.debug("Unable to resolve real path for %s: %s", path, exc)
        return path


def paths_equal(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two already-canonical paths using the platform's case rules."""
    if not left or not right:
        return False
    return os.path.normcase(left) == os.path.normcase(right)


def archive_delimiter_index(path: Optional[str]) -> Optional[int]:
    """Return the index of the archive delimiter in ``path``, if any.

    The delimiter only counts when it directly follows an archive extension,
    e.g. ``/roms/game.zip#game.rom``.
    """
    if not path:
        return None
    lowered = path.lower()
    found: Optional[int] = None
    for extension in ARCHIVE_EXTENSIONS:
        position = lowered.find(extension + ARCHIVE_DELIMITER)
        if position < 0:
            continue
        index = position + len(extension)
        if found is None or index < found:
            found = index
    return found


def is_compressed_file(path: Optional[str]) -> bool:
    """True when ``path`` itself names an archive file (not a member of one)."""
    if not path:
        return False
    _, extension = os.path.splitext(path)
    return extension.lower() in ARCHIVE_EXTENSIONS


def base_name(path: Optional[str]) -> str:
    """Archive-aware basename: the archive member name when one is present."""
    if not path:
        return ""
    delim = archive_delimiter_index(path)
    if delim is not None:
        return path[delim + 1 :]
    for separator in (POSIX_PATH_DELIMITER, WINDOWS_PATH_DELIMITER):
        path = path.rsplit(separator, 1)[-1]
    return path


def base_name_noext(path: Optional[str]) -> str:
    name = base_name(path)
    stem, _ = os.path.splitext(name)
    return stem


def short_name(path: Optional[str]) -> str:
    """Short display representation of a content path (file name, no extension)."""
    return base_name_noext(path)


def to_local_delimiters(path: str) -> str:
    if os.sep == WINDOWS_PATH_DELIMITER:
        return path.replace(POSIX_PATH_DELIMITER, WINDOWS_PATH_DELIMITER)
    return path.replace(WINDOWS_PATH_DELIMITER, POSIX_PATH_DELIMITER)


def replace_base_path(path: str, old_base: str, new_base: str) -> str:
    """Move ``path`` from ``old_base`` to ``new_base``.

    Only the prefix is rewritten, and the result uses the local platform's
    path delimiters. Paths outside ``old_base`` are returned unchanged.
    """
    if not path or not old_base or not path.startswith(old_base):
        return path
    return to_local_delimiters(new_base + path[len(old_base) :])
