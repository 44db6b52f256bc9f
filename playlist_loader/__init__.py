"""
playlist-loader: Named playlists resolved to playable tracks.

This package stores playlists as lists of raw references (URLs or
search text) and loads them asynchronously: every reference is handed
to a track resolver, resolved tracks and per-item errors are collected,
the result is optionally shuffled, and completion is signalled once.

Architecture:
    core/       - Configuration, logging, exceptions
    playlist/   - Playlist aggregate, load orchestration, shuffle,
                  resolver contract, yt-dlp resolver, JSON store
    utils/      - Name normalization and reference parsing
    cli.py      - Command-line interface

Usage:
    Command Line:
        plist list
        plist create "road trip" --shuffle
        plist append road_trip "https://youtu.be/xxx | some song"
        plist load road_trip

    Python API:
        from playlist_loader.core import load_config, setup_logging
        from playlist_loader.playlist import PlaylistStore, YtDlpResolver

        config = load_config()
        setup_logging(config.logging.directory)
        store = PlaylistStore(config.playlists.folder)
        playlist = store.get_playlist("road_trip")

        with YtDlpResolver(threads=config.resolver.threads) as resolver:
            playlist.load(resolver, config.playback.is_too_long,
                          on_track=print, on_complete=lambda: print("done"))
            playlist.wait()

Configuration:
    Reads config.yaml from the current directory (see core/config.py).

Dependencies:
    - yt-dlp: Reference resolution
    - rich-click: CLI framework with colors
    - tqdm: Console logging alongside progress output
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "playlist-loader"
__license__ = "MIT"

# Convenience imports for common usage
from playlist_loader.core import (
    Config,
    ConfigError,
    PlaylistLoaderError,
    ResolverError,
    StorageError,
    get_logger,
    load_config,
    setup_logging,
)
from playlist_loader.playlist import (
    LoadError,
    LoadState,
    Playlist,
    PlaylistStore,
    Track,
    YtDlpResolver,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "PlaylistLoaderError",
    "ConfigError",
    "StorageError",
    "ResolverError",
    # Playlists
    "Playlist",
    "PlaylistStore",
    "Track",
    "LoadError",
    "LoadState",
    "YtDlpResolver",
]
