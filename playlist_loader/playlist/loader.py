"""
Playlist aggregate and asynchronous load orchestration.

A Playlist holds the raw references of a named playlist. load() submits
every reference to a TrackResolver under the playlist's name as order
key, then returns immediately. Outcomes arrive on resolver threads and
are folded into the playlist:

    TrackResolved       -> track accepted, or LoadError if too long
    ExpansionResolved   -> search result: first entry only
                           pre-selected entry: that entry only
                           otherwise: every entry, (shuffled), too-long
                           entries dropped WITHOUT a LoadError
    NoMatch             -> LoadError "no matches found"
    ResolutionFailed    -> LoadError with the resolver's reason

Completion:
    A counter of handled items is kept. When it reaches the number of
    items, the accumulated tracks are shuffled once more (if shuffling
    was requested), the state becomes DONE and on_complete fires. This
    happens exactly once, whatever order outcomes arrive in.

Thread Safety:
    Tracks, errors, the counter and the state are guarded by one
    re-entrant lock. Callbacks run while that lock is held, so every
    on_track call happens before on_complete. The lock is never held
    while calling into the resolver.

Usage:
    playlist = store.get_playlist("road_trip")
    playlist.load(
        resolver,
        config.playback.is_too_long,
        on_track=lambda track: print(track.title),
        on_complete=lambda: print("done")
    )
    playlist.wait(timeout=60)
"""

import random
import threading
from functools import partial
from typing import Callable, Iterable

from playlist_loader.core.logger import format_summary_message, get_logger, log_load_failure
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
from playlist_loader.playlist.resolver import TrackResolver
from playlist_loader.playlist.shuffle import RandomSource, shuffle_in_place

logger = get_logger(__name__)


DurationPolicy = Callable[[Track], bool]
TrackCallback = Callable[[Track], None]
CompleteCallback = Callable[[], None]


class Playlist:
    """
    A named playlist and the result of loading it.

    Attributes:
        name: Playlist name, also the resolver order key.
        items: Raw references, fixed at construction.
        shuffle: Whether loaded tracks are shuffled.
        owner_id: Id of the user who created the playlist.
        group_id: Id of the group (server) the playlist belongs to.

    The loaded tracks and errors are only complete once on_complete has
    fired (or wait() returned True).
    """

    def __init__(
        self,
        name: str,
        items: Iterable[str],
        shuffle: bool = False,
        owner_id: str = "",
        group_id: str = "",
        rng: RandomSource | None = None
    ) -> None:
        """
        Initialize the playlist.

        Args:
            name: Playlist name.
            items: Raw references (URLs or search text), in play order.
            shuffle: Shuffle expansions and the final track list.
            owner_id: Opaque owner identity, not interpreted here.
            group_id: Opaque group identity, not interpreted here.
            rng: Randomness for shuffling. Defaults to the random module.
        """
        self._name = name
        self._items = tuple(items)
        self._shuffle = shuffle
        self._owner_id = owner_id
        self._group_id = group_id
        self._rng = rng if rng is not None else random

        self._tracks: list[Track] = []
        self._errors: list[LoadError] = []
        self._state = LoadState.NOT_STARTED
        self._handled: set[int] = set()
        self._lock = threading.RLock()
        self._done = threading.Event()

        self._is_too_long: DurationPolicy | None = None
        self._on_track: TrackCallback | None = None
        self._on_complete: CompleteCallback | None = None

    def __repr__(self) -> str:
        return f"Playlist(name={self._name!r}, items={len(self._items)}, state={self._state.name})"

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def items(self) -> tuple[str, ...]:
        return self._items

    @property
    def shuffle(self) -> bool:
        return self._shuffle

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def group_id(self) -> str:
        return self._group_id

    @property
    def tracks(self) -> tuple[Track, ...]:
        """Snapshot of the tracks loaded so far."""
        with self._lock:
            return tuple(self._tracks)

    @property
    def errors(self) -> tuple[LoadError, ...]:
        """Snapshot of the errors recorded so far, in the order they occurred."""
        with self._lock:
            return tuple(self._errors)

    @property
    def state(self) -> LoadState:
        with self._lock:
            return self._state

    @property
    def is_loaded(self) -> bool:
        return self._done.is_set()

    # =========================================================================
    # Loading
    # =========================================================================

    def load(
        self,
        resolver: TrackResolver,
        is_too_long: DurationPolicy,
        on_track: TrackCallback | None = None,
        on_complete: CompleteCallback | None = None
    ) -> bool:
        """
        Start resolving every item. Returns without waiting.

        Only the first call has an effect; later calls (from any thread,
        during or after loading) return False and never fire callbacks.

        Args:
            resolver: Resolver that delivers outcomes in submission order
                      per order key.
            is_too_long: Duration policy, e.g. config.playback.is_too_long.
            on_track: Called once per accepted track, in acceptance order.
                      An exception from it is logged and doesn't stop
                      the remaining calls.
            on_complete: Called once after the last item was handled.

        Returns:
            True if this call started the load.
        """
        with self._lock:
            if self._state is not LoadState.NOT_STARTED:
                logger.debug(f"Playlist '{self._name}' already {self._state.name}, ignoring load()")
                return False
            self._state = LoadState.LOADING
            self._is_too_long = is_too_long
            self._on_track = on_track
            self._on_complete = on_complete

            if not self._items:
                logger.info(f"Playlist '{self._name}' is empty")
                self._finish()
                return True

        logger.info(f"Loading playlist '{self._name}' ({len(self._items)} items)")
        for index, item in enumerate(self._items):
            resolver.submit(self._name, item, partial(self._handle_outcome, index))
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until loading is done.

        Args:
            timeout: Seconds to wait; None waits forever.

        Returns:
            True if the playlist finished loading, False on timeout.
            A timeout doesn't cancel anything: on_complete still fires
            if the remaining items resolve later.
        """
        return self._done.wait(timeout)

    def shuffle_tracks(self) -> None:
        """Shuffle the loaded tracks in place."""
        with self._lock:
            shuffle_in_place(self._tracks, self._rng)

    def _handle_outcome(self, index: int, outcome: ResolveOutcome) -> None:
        """Fold one item's outcome into the playlist. Runs on a resolver thread."""
        with self._lock:
            if index in self._handled:
                logger.warning(
                    f"Playlist '{self._name}': duplicate outcome for item {index + 1} ignored"
                )
                return
            self._handled.add(index)

            try:
                self._apply_outcome(index, outcome)
            finally:
                if len(self._handled) == len(self._items):
                    self._finish()

    def _apply_outcome(self, index: int, outcome: ResolveOutcome) -> None:
        if isinstance(outcome, TrackResolved):
            self._accept_track(index, outcome.track)
        elif isinstance(outcome, ExpansionResolved):
            self._accept_expansion(index, outcome)
        elif isinstance(outcome, NoMatch):
            self._record_error(index, REASON_NO_MATCH)
        elif isinstance(outcome, ResolutionFailed):
            self._record_error(index, outcome.reason)
        else:
            raise TypeError(f"Unknown resolver outcome: {outcome!r}")

    def _accept_track(self, index: int, track: Track) -> None:
        if self._is_too_long(track):
            self._record_error(index, REASON_TOO_LONG)
            return
        track.user_data = 0
        self._tracks.append(track)
        self._notify_track(track)

    def _accept_expansion(self, index: int, expansion: ExpansionResolved) -> None:
        if expansion.is_search_result:
            if not expansion.tracks:
                self._record_error(index, REASON_NO_MATCH)
                return
            self._accept_track(index, expansion.tracks[0])
            return

        if expansion.selected is not None:
            self._accept_track(index, expansion.selected)
            return

        loaded = list(expansion.tracks)
        if self._shuffle:
            shuffle_in_place(loaded, self._rng)

        # Too-long entries of an expansion are dropped without a LoadError
        accepted = [track for track in loaded if not self._is_too_long(track)]
        if len(accepted) < len(loaded):
            logger.debug(
                f"Playlist '{self._name}': dropped {len(loaded) - len(accepted)} "
                f"too-long entries from item {index + 1}"
            )

        for track in accepted:
            track.user_data = 0
        self._tracks.extend(accepted)
        for track in accepted:
            self._notify_track(track)

    def _notify_track(self, track: Track) -> None:
        if self._on_track is None:
            return
        try:
            self._on_track(track)
        except Exception:
            logger.exception(f"Playlist '{self._name}': on_track failed for '{track.title}'")

    def _record_error(self, index: int, reason: str) -> None:
        item = self._items[index]
        self._errors.append(LoadError(index=index, item=item, reason=reason))
        log_load_failure(logger, self._name, index, item, reason)

    def _finish(self) -> None:
        """Final shuffle, DONE, then on_complete. Called with the lock held."""
        if self._shuffle:
            shuffle_in_place(self._tracks, self._rng)
        self._state = LoadState.DONE
        self._done.set()
        logger.info(format_summary_message(self._name, len(self._tracks), len(self._errors)))
        if self._on_complete is not None:
            self._on_complete()
