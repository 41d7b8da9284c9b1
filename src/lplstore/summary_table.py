from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import PlaylistEntry

if TYPE_CHECKING:  # pragma: no cover
    from .playlist import Playlist


DIM_COLOR = "dim"
WARNING_COLOR = "yellow"

MISSING_VALUE = "-"


class PlaylistTableRenderer:
    """Renders playlists as Rich Tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the renderer.

        Args:
            console: Optional Rich Console instance. If not provided, creates a new one.
        """
        self.console = console or Console()

    @staticmethod
    def _cell(value: Optional[str]) -> str:
        if not value:
            return f"[{DIM_COLOR}]{MISSING_VALUE}[/{DIM_COLOR}]"
        return escape(value)

    @staticmethod
    def _core_cell(entry: PlaylistEntry) -> str:
        if entry.core_path is None:
            return f"[{DIM_COLOR}]{MISSING_VALUE}[/{DIM_COLOR}]"
        name = escape(entry.core_name or entry.core_path.file_stem())
        if not entry.has_core():
            return f"[{WARNING_COLOR}]{name}[/{WARNING_COLOR}]"
        return name

    @classmethod
    def _runtime_cell(cls, entry: PlaylistEntry) -> str:
        if not (entry.runtime_hours or entry.runtime_minutes or entry.runtime_seconds):
            return cls._cell(None)
        snapshot = entry.copy()
        snapshot.refresh_display_strings()
        return cls._cell(snapshot.runtime_str)

    def render_metadata_table(self, playlist: Playlist) -> Table:
        """Render playlist-wide settings as a two column table.

        Args:
            playlist: Playlist to describe

        Returns:
            Rich Table instance ready to print
        """
        table = Table(title="Playlist", show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="bold")
        table.add_column("Value")

        metadata = playlist.metadata
        table.add_row("Path", self._cell(playlist.path))
        table.add_row("Entries", f"{playlist.size} / {playlist.capacity}")
        table.add_row("Format", "legacy" if playlist.old_format else "json")
        table.add_row("Compressed", "yes" if playlist.compressed else "no")
        table.add_row("Default Core", self._cell(metadata.default_core_name))
        table.add_row("Default Core Path", self._cell(metadata.default_core_path_str))
        table.add_row("Content Directory", self._cell(metadata.base_content_directory))
        table.add_row("Sort Mode", metadata.sort_mode.name.lower())
        return table

    def render_entries_table(self, playlist: Playlist, *, limit: Optional[int] = None) -> Table:
        """Render one row per entry, most recently used first.

        Args:
            playlist: Playlist whose entries are rendered
            limit: Optional maximum number of rows

        Returns:
            Rich Table instance ready to print
        """
        table = Table(title="Entries", show_header=True, header_style="bold")
        table.add_column("#", justify="right", style=DIM_COLOR)
        table.add_column("Label", style="cyan")
        table.add_column("Path")
        table.add_column("Core")
        table.add_column("Database")
        table.add_column("Runtime", justify="right")

        entries = playlist.entries
        if limit is not None:
            entries = entries[:limit]

        for index, entry in enumerate(entries):
            table.add_row(
                str(index),
                self._cell(entry.label),
                self._cell(entry.path),
                self._core_cell(entry),
                self._cell(playlist.get_db_name(index)),
                self._runtime_cell(entry),
            )
        return table

    def print_playlist(self, playlist: Playlist, *, limit: Optional[int] = None) -> None:
        self.console.print(self.render_metadata_table(playlist))
        self.console.print(self.render_entries_table(playlist, limit=limit))
