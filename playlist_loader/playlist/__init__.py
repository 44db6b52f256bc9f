"""
Playlist module for playlist-loader.

This module handles turning stored playlists into playable tracks:
    1. Read the playlist definition from its JSON file (store)
    2. Submit every reference to a resolver, FIFO per playlist (resolver)
    3. Collect tracks and per-item errors, shuffle if requested (loader)
    4. Signal completion exactly once

Usage:
    from playlist_loader.playlist import PlaylistStore, YtDlpResolver

    store = PlaylistStore(config.playlists.folder)
    playlist = store.get_playlist("road_trip")

    with YtDlpResolver(threads=4) as resolver:
        playlist.load(resolver, config.playback.is_too_long)
        playlist.wait()

    for error in playlist.errors:
        print(f"{error.index + 1}: {error.item} ({error.reason})")
"""

from playlist_loader.playlist.loader import Playlist
from playlist_loader.playlist.models import (
    REASON_NO_MATCH,
    REASON_TOO_LONG,
    ExpansionResolved,
    LoadError,
    LoadState,
    NoMatch,
    ResolutionFailed,
    ResolveOutcome,
    Track,
    TrackResolved,
)
from playlist_loader.playlist.resolver import OrderedResolver, TrackResolver
from playlist_loader.playlist.shuffle import shuffle_in_place
from playlist_loader.playlist.store import PlaylistStore
from playlist_loader.playlist.youtube import YtDlpResolver

__all__ = [
    # Aggregate
    "Playlist",
    "PlaylistStore",
    # Models
    "Track",
    "LoadError",
    "LoadState",
    "TrackResolved",
    "ExpansionResolved",
    "NoMatch",
    "ResolutionFailed",
    "ResolveOutcome",
    "REASON_NO_MATCH",
    "REASON_TOO_LONG",
    # Resolvers
    "TrackResolver",
    "OrderedResolver",
    "YtDlpResolver",
    # Shuffle
    "shuffle_in_place",
]
