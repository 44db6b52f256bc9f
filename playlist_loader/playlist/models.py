"""
Data models for playlist loading.

This module defines the resolved track handle, the per-item load error,
the load state of a playlist and the four outcomes a resolver can
report for a submitted reference.

Outcomes:
    TrackResolved       - the reference resolved to one track
    ExpansionResolved   - the reference expanded to several tracks
                          (a playlist URL or a search result list)
    NoMatch             - nothing was found
    ResolutionFailed    - the resolver failed; reason is passed through
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union


# LoadError reasons produced by the playlist itself
REASON_TOO_LONG = "exceeds maximum duration"
REASON_NO_MATCH = "no matches found"


class LoadState(Enum):
    """Lifecycle of a playlist load. Only moves forward, once."""
    NOT_STARTED = auto()
    LOADING = auto()
    DONE = auto()


@dataclass
class Track:
    """
    A playable track returned by a resolver.

    Attributes:
        identifier: Stable id of the track at its source (e.g. a video id).
        title: Display title.
        duration_ms: Length in milliseconds. 0 when unknown (live streams).
        url: URL the track can be played from.
        author: Uploader/artist name, if known.
        user_data: Free slot for playback bookkeeping. Set to 0 when the
                   track is accepted into a playlist.
    """

    identifier: str
    title: str
    duration_ms: int
    url: str
    author: str | None = None
    user_data: Any = field(default=None, compare=False)

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000

    @classmethod
    def from_ytdlp_info(cls, info: dict[str, Any]) -> "Track":
        """
        Create a Track from a yt-dlp info dict (full or flat entry).

        Args:
            info: Dictionary from YoutubeDL.extract_info() or one of its
                  'entries'.

        Returns:
            Track populated from the info dict.

        Behavior:
            - identifier: 'id'
            - title: 'title', falling back to the identifier
            - duration_ms: 'duration' (seconds, may be float or missing)
            - url: 'webpage_url', then 'url', then 'original_url'
            - author: 'uploader', then 'channel'
        """
        identifier = str(info.get("id") or "")
        duration = info.get("duration") or 0
        return cls(
            identifier=identifier,
            title=info.get("title") or identifier,
            duration_ms=int(round(float(duration) * 1000)),
            url=info.get("webpage_url") or info.get("url") or info.get("original_url") or "",
            author=info.get("uploader") or info.get("channel"),
        )


@dataclass(frozen=True)
class LoadError:
    """
    One item of a playlist that didn't produce a track.

    Attributes:
        index: 0-based position of the item in the playlist's items.
        item: The raw reference as stored in the playlist.
        reason: Human-readable classification of the failure.
    """

    index: int
    item: str
    reason: str


@dataclass(frozen=True)
class TrackResolved:
    """The reference resolved to exactly one track."""
    track: Track


@dataclass(frozen=True)
class ExpansionResolved:
    """
    The reference resolved to a list of tracks.

    Attributes:
        tracks: All tracks of the expansion, in source order.
        is_search_result: True if the list is a ranked search result;
                          only its first entry is used.
        selected: Entry pre-selected by the reference (e.g. a watch URL
                  that also names a playlist); used alone when set.
    """
    tracks: tuple[Track, ...]
    is_search_result: bool = False
    selected: Track | None = None


@dataclass(frozen=True)
class NoMatch:
    """Nothing was found for the reference."""


@dataclass(frozen=True)
class ResolutionFailed:
    """The resolver failed; reason is shown to the user as-is."""
    reason: str


ResolveOutcome = Union[TrackResolved, ExpansionResolved, NoMatch, ResolutionFailed]
