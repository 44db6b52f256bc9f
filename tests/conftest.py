"""Test configuration and fixtures"""

import random
import tempfile
import threading
import time
from concurrent.futures import Future
from pathlib import Path

import pytest

from playlist_loader.core.config import PlaybackConfig
from playlist_loader.playlist.models import (
    ExpansionResolved,
    NoMatch,
    ResolutionFailed,
    Track,
    TrackResolved,
)
from playlist_loader.playlist.resolver import OrderedResolver, TrackResolver


def make_track(identifier, seconds=180):
    """Build a track with the given duration in seconds."""
    return Track(
        identifier=identifier,
        title=f"Track {identifier}",
        duration_ms=seconds * 1000,
        url=f"https://www.youtube.com/watch?v={identifier}",
    )


class ImmediateResolver(TrackResolver):
    """Resolves synchronously, inside submit(), from a reference -> outcome map."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.submitted = []

    def submit(self, order_key, reference, handler):
        self.submitted.append((order_key, reference))
        outcome = self.outcomes.get(reference, NoMatch())
        handler(outcome)
        future = Future()
        future.set_result(outcome)
        return future


class ScriptedResolver(TrackResolver):
    """Records submissions; the test decides when and in what order they resolve."""

    def __init__(self):
        self.pending = []

    def submit(self, order_key, reference, handler):
        self.pending.append((order_key, reference, handler))
        return Future()

    def deliver(self, position, outcome):
        _, _, handler = self.pending[position]
        handler(outcome)


class MapResolver(OrderedResolver):
    """Thread-pooled resolver backed by a reference -> outcome map."""

    def __init__(self, outcomes, threads=4, max_delay=0.0):
        super().__init__(threads=threads)
        self.outcomes = outcomes
        self.max_delay = max_delay
        self._random = random.Random(7)
        self._random_lock = threading.Lock()

    def resolve(self, reference):
        if self.max_delay:
            with self._random_lock:
                delay = self._random.uniform(0, self.max_delay)
            time.sleep(delay)
        return self.outcomes.get(reference, NoMatch())


class BlockingResolver(OrderedResolver):
    """Thread-pooled resolver whose resolve() blocks until release is set."""

    def __init__(self, threads=1):
        super().__init__(threads=threads)
        self.release = threading.Event()
        self.started = threading.Event()
        self.resolved = []

    def resolve(self, reference):
        self.started.set()
        self.release.wait(timeout=5)
        self.resolved.append(reference)
        return TrackResolved(make_track(reference))


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def duration_policy():
    """Tracks longer than 5 minutes are too long"""
    return PlaybackConfig(max_seconds=300).is_too_long


@pytest.fixture
def sample_outcomes():
    """Outcomes for a mixed playlist"""
    return {
        "urlA": TrackResolved(make_track("A")),
        "badquery": NoMatch(),
        "urlB": TrackResolved(make_track("B")),
        "longtrack": TrackResolved(make_track("L", seconds=3600)),
        "playlistUrl": ExpansionResolved(
            tracks=(make_track("P1"), make_track("P2", seconds=900), make_track("P3"))
        ),
        "broken": ResolutionFailed("Video unavailable"),
    }


@pytest.fixture
def config_file(temp_dir):
    """config.yaml pointing every directory into temp_dir"""
    path = temp_dir / "config.yaml"
    path.write_text(
        "playlists:\n"
        f"  folder: \"{temp_dir / 'Playlists'}\"\n"
        "playback:\n"
        "  max_seconds: 300\n"
        "resolver:\n"
        "  threads: 2\n"
        "logging:\n"
        f"  directory: \"{temp_dir / 'logs'}\"\n",
        encoding="utf-8",
    )
    return path
