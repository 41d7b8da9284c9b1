from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import PlaylistConfig, apply_env_overrides, load_config
from .models import PlaylistEntry, SortMode
from .playlist import Playlist
from .summary_table import PlaylistTableRenderer
from .version import __version__

LOGGER = logging.getLogger(__name__)

_BOOL_OPTIONS = ("old_format", "compress", "fuzzy_archive_match")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("playlist", nargs="?", help="Playlist file (defaults to 'path' from the config)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lplstore", description="Inspect and maintain playlist files.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Path to a YAML config file")
    parser.add_argument("--capacity", type=int, help="Maximum number of entries kept in the playlist")
    parser.add_argument(
        "--old-format",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write the legacy line format instead of JSON",
    )
    parser.add_argument(
        "--compress",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write gzip-compressed playlists",
    )
    parser.add_argument(
        "--fuzzy-archive-match",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Let an archive path match the files inside it",
    )
    parser.add_argument("--base-content-directory", help="Rewrite content paths to this base directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the playlist as a table")
    _add_common_arguments(show)
    show.add_argument("--limit", type=int, help="Show at most this many entries")

    push = subparsers.add_parser("push", help="Add an entry or move it to the front")
    _add_common_arguments(push)
    push.add_argument("--path", help="Content path")
    push.add_argument("--core-path", required=True, help="Core path, DETECT or builtin")
    push.add_argument("--core-name", help="Core display name")
    push.add_argument("--label", help="Entry label")
    push.add_argument("--db-name", help="Database name")
    push.add_argument("--crc32", help="CRC32 checksum")

    delete = subparsers.add_parser("delete", help="Remove entries")
    _add_common_arguments(delete)
    target = delete.add_mutually_exclusive_group(required=True)
    target.add_argument("--path", help="Remove every entry with this content path")
    target.add_argument("--index", type=int, help="Remove the entry at this position")

    sort = subparsers.add_parser("sort", help="Sort entries alphabetically")
    _add_common_arguments(sort)

    convert = subparsers.add_parser("convert", help="Rewrite the playlist in the configured encoding")
    _add_common_arguments(convert)

    return parser


def resolve_config(args: argparse.Namespace) -> PlaylistConfig:
    if args.config is not None:
        config = load_config(args.config)
    else:
        config = apply_env_overrides(PlaylistConfig())

    if args.playlist:
        config.set_path(args.playlist)
    if args.capacity is not None:
        if args.capacity < 0:
            raise ValueError("'capacity' must be greater than or equal to 0")
        config.capacity = args.capacity
    for name in _BOOL_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            setattr(config, name, value)
    if args.base_content_directory is not None:
        config.set_base_content_directory(args.base_content_directory)
    return config


def _save(playlist: Playlist) -> int:
    if not playlist.needs_write():
        LOGGER.info("Playlist %s is up to date", playlist.path)
        return 0
    return 0 if playlist.write() else 1


def _cmd_show(playlist: Playlist, args: argparse.Namespace) -> int:
    PlaylistTableRenderer().print_playlist(playlist, limit=args.limit)
    return 0


def _cmd_push(playlist: Playlist, args: argparse.Namespace) -> int:
    entry = PlaylistEntry(
        path=args.path,
        label=args.label,
        core_path=args.core_path,
        core_name=args.core_name,
        db_name=args.db_name,
        crc32=args.crc32,
    )
    if not playlist.push(entry):
        LOGGER.info("Playlist unchanged by push of %s", args.path or args.core_path)
    return _save(playlist)


def _cmd_delete(playlist: Playlist, args: argparse.Namespace) -> int:
    if args.index is not None:
        removed = 1 if playlist.delete_index(args.index) else 0
    else:
        removed = playlist.delete_by_path(args.path)

    if not removed:
        LOGGER.warning("No matching playlist entry to delete")
        return 1
    LOGGER.info("Removed %d playlist entr%s", removed, "y" if removed == 1 else "ies")
    return _save(playlist)


def _cmd_sort(playlist: Playlist, args: argparse.Namespace) -> int:
    if playlist.sort_mode is SortMode.OFF:
        LOGGER.info("Sorting is disabled for playlist %s", playlist.path)
        return 0
    playlist.sort()
    playlist.mark_modified()
    return _save(playlist)


def _cmd_convert(playlist: Playlist, args: argparse.Namespace) -> int:
    return _save(playlist)


COMMANDS: Dict[str, Callable[[Playlist, argparse.Namespace], int]] = {
    "show": _cmd_show,
    "push": _cmd_push,
    "delete": _cmd_delete,
    "sort": _cmd_sort,
    "convert": _cmd_convert,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as exc:
        LOGGER.error("Failed to load config: %s", exc)
        return 1

    playlist = Playlist.open(config)
    if playlist is None:
        return 1
    return COMMANDS[args.command](playlist, args)


if __name__ == "__main__":
    raise SystemExit(main())
