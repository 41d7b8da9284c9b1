"""lplstore core package.

The package is organized into focused modules:

- **paths**: Path canonicalization, archive member handling and base path rewriting
- **core_path**: Core path variants and core identity resolution
- **matching**: Equality rules for content paths, core paths and subsystems
- **store**: Bounded most-recently-used entry list
- **serialization**: JSON and legacy playlist encoders and decoders
- **playlist**: File-backed playlist facade
- **cache**: Holder for the active playlist

The main entry points are ``Playlist.open`` and ``PlaylistCache``.
"""

from .cache import Ownership, PlaylistCache
from .config import PlaylistConfig, load_config
from .models import PlaylistEntry, PlaylistMetadata
from .playlist import Playlist
from .version import __version__

__all__ = [
    "__version__",
    "Ownership",
    "Playlist",
    "PlaylistCache",
    "PlaylistConfig",
    "PlaylistEntry",
    "PlaylistMetadata",
    "load_config",
]
