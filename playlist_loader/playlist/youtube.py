"""
yt-dlp backed resolver.

Maps what yt-dlp extracts for a reference onto the resolver outcomes:

    reference                           outcome
    ---------                           -------
    video URL                           TrackResolved
    playlist URL                        ExpansionResolved
    watch URL with v= and list=         ExpansionResolved, selected = the v= entry
    search text                         ExpansionResolved, is_search_result=True
    nothing extracted / empty list      NoMatch
    yt-dlp DownloadError                ResolutionFailed (via ResolverError)

Playlists are extracted flat (no per-entry requests) and nothing is
ever downloaded.

Usage:
    with YtDlpResolver(threads=4, search_results=5) as resolver:
        playlist.load(resolver, config.playback.is_too_long)
        playlist.wait()
"""

from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from playlist_loader.core.exceptions import ResolverError
from playlist_loader.core.logger import get_logger
from playlist_loader.playlist.models import (
    ExpansionResolved,
    NoMatch,
    ResolveOutcome,
    Track,
    TrackResolved,
)
from playlist_loader.playlist.resolver import OrderedResolver
from playlist_loader.utils import is_url

logger = get_logger(__name__)


_EXPANSION_TYPES = ("playlist", "multi_video")


class YtDlpSilentLogger:
    """
    Logger handed to yt-dlp so it doesn't print to stderr on its own.

    yt-dlp ignores quiet=True for certain errors. Warnings and errors are
    forwarded to our DEBUG log instead; the resolver reports failures
    through outcomes.
    """

    def debug(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp warning: {msg}")

    def error(self, msg: str) -> None:
        logger.debug(f"yt-dlp error: {msg}")


class YtDlpResolver(OrderedResolver):
    """
    Resolves URLs and search text with yt-dlp.

    Attributes:
        _search_results: Number of results requested for text searches.
        _cookie_file: Optional cookies.txt for age-restricted content.
    """

    def __init__(
        self,
        threads: int = 4,
        search_results: int = 5,
        cookie_file: Path | None = None
    ) -> None:
        super().__init__(threads=threads)
        self._search_results = search_results
        self._cookie_file = cookie_file

    def _get_yt_dlp_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "skip_download": True,
            # Playlist entries are listed without visiting each video
            "extract_flat": "in_playlist",
            "encoding": "UTF-8",
            "logger": YtDlpSilentLogger(),
        }
        if self._cookie_file is not None:
            options["cookiefile"] = str(self._cookie_file)
        return options

    def resolve(self, reference: str) -> ResolveOutcome:
        is_search = not is_url(reference)
        query = f"ytsearch{self._search_results}:{reference}" if is_search else reference

        try:
            with YoutubeDL(self._get_yt_dlp_options()) as ydl:
                info = ydl.extract_info(query, download=False)
        except DownloadError as e:
            raise ResolverError(
                _clean_error_message(str(e)),
                details={"reference": reference, "original_error": str(e)}
            ) from e

        if not info:
            return NoMatch()

        if info.get("_type") in _EXPANSION_TYPES or "entries" in info:
            entries = [entry for entry in (info.get("entries") or []) if entry]
            if not entries:
                return NoMatch()

            tracks = tuple(Track.from_ytdlp_info(entry) for entry in entries)
            selected = None if is_search else _find_selected_track(reference, tracks)
            logger.debug(f"'{reference}' expanded to {len(tracks)} entries")
            return ExpansionResolved(
                tracks=tracks,
                is_search_result=is_search,
                selected=selected
            )

        return TrackResolved(Track.from_ytdlp_info(info))


def _find_selected_track(reference: str, tracks: tuple[Track, ...]) -> Track | None:
    """Return the entry named by the URL's v= parameter, if any."""
    video_ids = parse_qs(urlparse(reference).query).get("v")
    if not video_ids:
        return None
    for track in tracks:
        if track.identifier == video_ids[0]:
            return track
    return None


def _clean_error_message(message: str) -> str:
    """Strip yt-dlp's 'ERROR: ' prefix and surrounding whitespace."""
    message = message.strip()
    if message.startswith("ERROR:"):
        message = message[len("ERROR:"):].strip()
    return message
