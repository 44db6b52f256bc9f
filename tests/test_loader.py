"""Test playlist loading"""

import random
import threading

from playlist_loader.playlist.loader import Playlist
from playlist_loader.playlist.models import (
    REASON_NO_MATCH,
    REASON_TOO_LONG,
    ExpansionResolved,
    LoadError,
    LoadState,
    NoMatch,
    ResolutionFailed,
    TrackResolved,
)

from conftest import ImmediateResolver, MapResolver, ScriptedResolver, make_track


class Recorder:
    """Collects callback invocations in order"""

    def __init__(self):
        self.events = []

    def on_track(self, track):
        self.events.append(("track", track.identifier))

    def on_complete(self):
        self.events.append(("complete", None))

    @property
    def completions(self):
        return sum(1 for kind, _ in self.events if kind == "complete")

    @property
    def track_ids(self):
        return [value for kind, value in self.events if kind == "track"]


class RecordingRandom:
    """Random source that always draws 0 and records the requested ranges"""

    def __init__(self):
        self.stops = []

    def randrange(self, stop):
        self.stops.append(stop)
        return 0


class TestPlaylistLoad:
    """Test outcome handling"""

    def test_mixed_tracks_and_no_match(self, sample_outcomes, duration_policy):
        """Tracks are kept, the unmatched item becomes an error"""
        playlist = Playlist("mix", ["urlA", "badquery", "urlB"])
        recorder = Recorder()
        resolver = ScriptedResolver()

        playlist.load(resolver, duration_policy, recorder.on_track, recorder.on_complete)
        resolver.deliver(0, sample_outcomes["urlA"])
        resolver.deliver(1, sample_outcomes["badquery"])
        assert recorder.completions == 0

        resolver.deliver(2, sample_outcomes["urlB"])

        assert [t.identifier for t in playlist.tracks] == ["A", "B"]
        assert playlist.errors == (LoadError(index=1, item="badquery", reason=REASON_NO_MATCH),)
        assert recorder.events == [("track", "A"), ("track", "B"), ("complete", None)]
        assert playlist.state is LoadState.DONE

    def test_single_track_too_long(self, sample_outcomes, duration_policy):
        """A too-long single track is recorded as an error"""
        playlist = Playlist("long", ["longtrack"])
        playlist.load(ImmediateResolver(sample_outcomes), duration_policy)

        assert playlist.tracks == ()
        assert playlist.errors == (LoadError(index=0, item="longtrack", reason=REASON_TOO_LONG),)

    def test_expansion_drops_too_long_silently(self, sample_outcomes, duration_policy):
        """Too-long expansion entries vanish without errors"""
        playlist = Playlist("expand", ["playlistUrl"])
        recorder = Recorder()
        playlist.load(
            ImmediateResolver(sample_outcomes), duration_policy,
            recorder.on_track, recorder.on_complete
        )

        assert [t.identifier for t in playlist.tracks] == ["P1", "P3"]
        assert playlist.errors == ()
        assert recorder.track_ids == ["P1", "P3"]

    def test_search_result_uses_first_entry(self, duration_policy):
        """Only the first search hit is kept"""
        outcome = ExpansionResolved(
            tracks=(make_track("S1"), make_track("S2")), is_search_result=True
        )
        playlist = Playlist("search", ["some song"])
        playlist.load(ImmediateResolver({"some song": outcome}), duration_policy)

        assert [t.identifier for t in playlist.tracks] == ["S1"]

    def test_search_result_first_entry_too_long(self, duration_policy):
        """A too-long first search hit is an error, later hits are ignored"""
        outcome = ExpansionResolved(
            tracks=(make_track("S1", seconds=1000), make_track("S2")), is_search_result=True
        )
        playlist = Playlist("search", ["some song"])
        playlist.load(ImmediateResolver({"some song": outcome}), duration_policy)

        assert playlist.tracks == ()
        assert playlist.errors[0].reason == REASON_TOO_LONG

    def test_empty_search_result_is_no_match(self, duration_policy):
        outcome = ExpansionResolved(tracks=(), is_search_result=True)
        playlist = Playlist("search", ["nothing"])
        playlist.load(ImmediateResolver({"nothing": outcome}), duration_policy)

        assert playlist.errors == (LoadError(index=0, item="nothing", reason=REASON_NO_MATCH),)

    def test_selected_entry_used_alone(self, duration_policy):
        """A pre-selected entry replaces the whole expansion"""
        selected = make_track("X2")
        outcome = ExpansionResolved(
            tracks=(make_track("X1"), selected, make_track("X3")), selected=selected
        )
        playlist = Playlist("selected", ["watchUrl"])
        playlist.load(ImmediateResolver({"watchUrl": outcome}), duration_policy)

        assert [t.identifier for t in playlist.tracks] == ["X2"]

    def test_failure_reason_passed_through(self, sample_outcomes, duration_policy):
        playlist = Playlist("broken", ["urlA", "broken"])
        playlist.load(ImmediateResolver(sample_outcomes), duration_policy)

        assert playlist.errors == (LoadError(index=1, item="broken", reason="Video unavailable"),)

    def test_accepted_tracks_get_zero_user_data(self, sample_outcomes, duration_policy):
        playlist = Playlist("data", ["urlA", "playlistUrl"])
        playlist.load(ImmediateResolver(sample_outcomes), duration_policy)

        assert [t.user_data for t in playlist.tracks] == [0, 0, 0]

    def test_every_item_submitted_under_playlist_name(self, sample_outcomes, duration_policy):
        resolver = ImmediateResolver(sample_outcomes)
        playlist = Playlist("keyed", ["urlA", "urlB"])
        playlist.load(resolver, duration_policy)

        assert resolver.submitted == [("keyed", "urlA"), ("keyed", "urlB")]

    def test_no_duration_limit(self, sample_outcomes):
        playlist = Playlist("unlimited", ["longtrack", "playlistUrl"])
        playlist.load(ImmediateResolver(sample_outcomes), lambda track: False)

        assert [t.identifier for t in playlist.tracks] == ["L", "P1", "P2", "P3"]


class TestCompletion:
    """Test exactly-once completion and the load guard"""

    def test_second_load_is_noop(self, sample_outcomes, duration_policy):
        playlist = Playlist("twice", ["urlA"])
        first, second = Recorder(), Recorder()
        resolver = ImmediateResolver(sample_outcomes)

        assert playlist.load(resolver, duration_policy, first.on_track, first.on_complete) is True
        assert playlist.load(resolver, duration_policy, second.on_track, second.on_complete) is False

        assert first.completions == 1
        assert second.events == []
        assert len(resolver.submitted) == 1

    def test_load_while_loading_is_noop(self, duration_policy):
        playlist = Playlist("busy", ["urlA"])
        resolver = ScriptedResolver()
        recorder = Recorder()

        playlist.load(resolver, duration_policy, on_complete=recorder.on_complete)
        assert playlist.state is LoadState.LOADING
        assert playlist.load(resolver, duration_policy, on_complete=recorder.on_complete) is False
        assert len(resolver.pending) == 1

        resolver.deliver(0, TrackResolved(make_track("A")))
        assert recorder.completions == 1

    def test_out_of_order_outcomes_complete_once(self, duration_policy):
        """Completion waits for every item, whatever order they arrive in"""
        playlist = Playlist("unordered", ["a", "b", "c"])
        resolver = ScriptedResolver()
        recorder = Recorder()
        playlist.load(resolver, duration_policy, recorder.on_track, recorder.on_complete)

        resolver.deliver(2, TrackResolved(make_track("C")))
        resolver.deliver(0, NoMatch())
        assert recorder.completions == 0
        assert not playlist.is_loaded

        resolver.deliver(1, TrackResolved(make_track("B")))

        assert recorder.completions == 1
        assert recorder.events[-1] == ("complete", None)
        assert [t.identifier for t in playlist.tracks] == ["C", "B"]
        assert [e.index for e in playlist.errors] == [0]

    def test_duplicate_outcome_ignored(self, duration_policy):
        playlist = Playlist("dupes", ["a", "b"])
        resolver = ScriptedResolver()
        recorder = Recorder()
        playlist.load(resolver, duration_policy, recorder.on_track, recorder.on_complete)

        resolver.deliver(0, TrackResolved(make_track("A")))
        resolver.deliver(0, TrackResolved(make_track("A")))
        assert recorder.completions == 0

        resolver.deliver(1, NoMatch())
        resolver.deliver(1, NoMatch())

        assert recorder.completions == 1
        assert len(playlist.tracks) == 1
        assert len(playlist.errors) == 1

    def test_empty_playlist_completes_immediately(self, duration_policy):
        playlist = Playlist("empty", [])
        recorder = Recorder()

        assert playlist.load(ScriptedResolver(), duration_policy, on_complete=recorder.on_complete)
        assert recorder.completions == 1
        assert playlist.state is LoadState.DONE

    def test_wait_times_out_while_item_pending(self, duration_policy):
        playlist = Playlist("stuck", ["a", "b"])
        resolver = ScriptedResolver()
        recorder = Recorder()
        playlist.load(resolver, duration_policy, on_complete=recorder.on_complete)
        resolver.deliver(0, NoMatch())

        assert playlist.wait(timeout=0.05) is False
        assert playlist.state is LoadState.LOADING
        assert recorder.completions == 0

        resolver.deliver(1, NoMatch())
        assert playlist.wait(timeout=0.05) is True

    def test_failing_track_callback_does_not_skip_others(self, duration_policy):
        playlist = Playlist("callback", ["list", "single"])
        resolver = ImmediateResolver({
            "list": ExpansionResolved(tracks=(make_track("E1"), make_track("E2"), make_track("E3"))),
            "single": TrackResolved(make_track("S")),
        })
        recorder = Recorder()

        def on_track(track):
            if track.identifier == "E1":
                raise RuntimeError("boom")
            recorder.on_track(track)

        playlist.load(resolver, duration_policy, on_track, recorder.on_complete)

        assert recorder.track_ids == ["E2", "E3", "S"]
        assert [t.identifier for t in playlist.tracks] == ["E1", "E2", "E3", "S"]
        assert recorder.completions == 1
        assert playlist.state is LoadState.DONE

    def test_concurrent_load_calls_start_once(self, sample_outcomes, duration_policy):
        playlist = Playlist("race", ["urlA", "urlB"])
        resolver = ScriptedResolver()
        start = threading.Barrier(8)
        results = []
        results_lock = threading.Lock()

        def call_load():
            start.wait()
            started = playlist.load(resolver, duration_policy)
            with results_lock:
                results.append(started)

        threads = [threading.Thread(target=call_load) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert len(resolver.pending) == 2


class TestShuffle:
    """Test shuffled loading"""

    def test_shuffled_result_is_permutation(self, duration_policy):
        outcomes = {
            "single": TrackResolved(make_track("S")),
            "list": ExpansionResolved(
                tracks=tuple(make_track(f"E{i}") for i in range(10)) + (make_track("TOO", 999),)
            ),
            "other": TrackResolved(make_track("O")),
        }
        items = ["single", "list", "other"]

        plain = Playlist("plain", items)
        plain.load(ImmediateResolver(outcomes), duration_policy)
        shuffled = Playlist("shuffled", items, shuffle=True, rng=random.Random(3))
        shuffled.load(ImmediateResolver(outcomes), duration_policy)

        plain_ids = [t.identifier for t in plain.tracks]
        shuffled_ids = [t.identifier for t in shuffled.tracks]
        assert len(shuffled_ids) == len(plain_ids) == 12
        assert sorted(shuffled_ids) == sorted(plain_ids)
        assert "TOO" not in shuffled_ids

    def test_expansion_shuffled_before_filtering(self, duration_policy):
        """The expansion is shuffled at full length, then the final list again"""
        outcomes = {
            "single": TrackResolved(make_track("S")),
            "list": ExpansionResolved(
                tracks=(make_track("E0"), make_track("E1"), make_track("E2"), make_track("TOO", 999))
            ),
            "other": TrackResolved(make_track("O")),
        }
        rng = RecordingRandom()
        playlist = Playlist("ordered", ["single", "list", "other"], shuffle=True, rng=rng)
        recorder = Recorder()

        playlist.load(ImmediateResolver(outcomes), duration_policy, recorder.on_track)

        assert rng.stops == [4] * 4 + [5] * 5
        # Always drawing 0 moves TOO to the front of the expansion before it is dropped
        assert recorder.track_ids == ["S", "E0", "E1", "E2", "O"]
        assert [t.identifier for t in playlist.tracks] == ["O", "S", "E0", "E1", "E2"]

    def test_shuffle_tracks_after_load(self, sample_outcomes, duration_policy):
        playlist = Playlist("reshuffle", ["urlA", "urlB", "playlistUrl"], rng=random.Random(1))
        playlist.load(ImmediateResolver(sample_outcomes), duration_policy)
        before = sorted(t.identifier for t in playlist.tracks)

        playlist.shuffle_tracks()

        assert sorted(t.identifier for t in playlist.tracks) == before


class TestThreadedLoad:
    """Test loading through a real thread pool"""

    def test_many_playlists_in_parallel(self, duration_policy):
        outcomes = {}
        for i in range(40):
            if i % 5 == 0:
                outcomes[f"item{i}"] = NoMatch()
            elif i % 7 == 0:
                outcomes[f"item{i}"] = ResolutionFailed("failed")
            else:
                outcomes[f"item{i}"] = TrackResolved(make_track(f"T{i}"))
        items = [f"item{i}" for i in range(40)]

        playlists = [Playlist(f"list{n}", items) for n in range(3)]
        recorders = [Recorder() for _ in playlists]

        with MapResolver(outcomes, threads=3, max_delay=0.002) as resolver:
            for playlist, recorder in zip(playlists, recorders):
                playlist.load(resolver, duration_policy, recorder.on_track, recorder.on_complete)
            for playlist in playlists:
                assert playlist.wait(timeout=10)

        for playlist, recorder in zip(playlists, recorders):
            assert recorder.completions == 1
            assert len(playlist.tracks) + len(playlist.errors) == 40
            # FIFO per key keeps acceptance in item order
            expected = [f"T{i}" for i in range(40) if i % 5 and i % 7]
            assert [t.identifier for t in playlist.tracks] == expected
            assert [e.index for e in playlist.errors] == sorted(e.index for e in playlist.errors)
