"""Tests for segment playback and active sentence tracking."""

import pytest

from listenlab.backends.types import Sentence
from listenlab.playback import (
    PlaybackController,
    PlaybackMode,
    PlaybackState,
    RemoteTransport,
    advance,
    find_active_index,
    segment_start,
    start_segment,
)


@pytest.fixture
def controller(sample_sentences):
    return PlaybackController(RemoteTransport(), sample_sentences)


class TestFindActiveIndex:
    """Tests for continuous-playback sentence lookup."""

    def test_inside_sentences(self, sample_sentences):
        assert find_active_index(sample_sentences, 2.0) == 0
        assert find_active_index(sample_sentences, 7.0) == 1
        assert find_active_index(sample_sentences, 14.99) == 2

    def test_overlap_keeps_current_sentence(self, sample_sentences):
        """Test that back-to-back sentences switch at the end, not in the look-ahead."""
        assert find_active_index(sample_sentences, 4.81) == 0
        assert find_active_index(sample_sentences, 4.9) == 0
        assert find_active_index(sample_sentences, 5.0) == 1

    def test_lookahead_switches_early_across_gap(self):
        sentences = [
            Sentence(text="One two", start_time=0.0, end_time=4.0),
            Sentence(text="Three four", start_time=5.0, end_time=10.0),
        ]
        assert find_active_index(sentences, 4.79) is None
        assert find_active_index(sentences, 4.85) == 1

    def test_end_is_exclusive(self, sample_sentences):
        assert find_active_index(sample_sentences, 15.0) is None

    def test_lookahead_before_first_sentence(self):
        sentences = [Sentence(text="Hi there", start_time=1.0, end_time=2.0)]
        assert find_active_index(sentences, 0.79) is None
        assert find_active_index(sentences, 0.85) == 0

    def test_gap_between_sentences(self):
        sentences = [
            Sentence(text="One", start_time=0.0, end_time=1.0),
            Sentence(text="Two", start_time=3.0, end_time=4.0),
        ]
        assert find_active_index(sentences, 2.0) is None


class TestPureTransitions:
    """Tests for the (state, current_time) -> state functions."""

    def test_segment_start_applies_preroll(self):
        assert segment_start(3.0) == 2.5

    def test_segment_start_clamps_at_zero(self):
        assert segment_start(0.2) == 0.0

    def test_start_segment_sets_bound_and_index(self):
        state = start_segment(PlaybackState(active_index=0), end=10.0, index=1)
        assert state == PlaybackState(active_index=1, segment_end=10.0)

    def test_segment_end_reached(self, sample_sentences):
        state = PlaybackState(active_index=1, segment_end=10.0)
        new_state, should_pause = advance(state, 10.0, paused=False, sentences=sample_sentences)
        assert should_pause is True
        assert new_state == PlaybackState()

    def test_segment_keeps_target_during_preroll(self, sample_sentences):
        """Test that the pre-roll region of the previous sentence is not highlighted."""
        state = PlaybackState(active_index=1, segment_end=10.0)
        new_state, should_pause = advance(state, 4.6, paused=False, sentences=sample_sentences)
        assert should_pause is False
        assert new_state is state

    def test_continuous_updates_index(self, sample_sentences):
        new_state, should_pause = advance(
            PlaybackState(), 7.0, paused=False, sentences=sample_sentences
        )
        assert new_state.active_index == 1
        assert should_pause is False

    def test_continuous_same_index_returns_same_state(self, sample_sentences):
        state = PlaybackState(active_index=1)
        new_state, _ = advance(state, 7.5, paused=False, sentences=sample_sentences)
        assert new_state is state

    def test_paused_transport_does_not_update(self, sample_sentences):
        state = PlaybackState()
        new_state, _ = advance(state, 7.0, paused=True, sentences=sample_sentences)
        assert new_state.active_index is None

    def test_no_match_keeps_previous_index(self, sample_sentences):
        state = PlaybackState(active_index=2)
        new_state, _ = advance(state, 20.0, paused=False, sentences=sample_sentences)
        assert new_state.active_index == 2


class TestRemoteTransport:
    """Tests for the client-side audio element mirror."""

    def test_commands_are_queued_and_drained(self):
        transport = RemoteTransport()
        transport.seek(1.5)
        transport.play()
        assert transport.drain_commands() == [{"type": "seek", "time": 1.5}, {"type": "play"}]
        assert transport.drain_commands() == []

    def test_report_notifies_subscribers(self):
        transport = RemoteTransport()
        seen = []
        transport.subscribe(seen.append)
        transport.report(3.0, paused=False)
        assert seen == [3.0]
        assert transport.current_time == 3.0
        assert transport.paused is False

    def test_unsubscribe(self):
        transport = RemoteTransport()
        seen = []
        transport.subscribe(seen.append)
        transport.unsubscribe(seen.append)
        transport.report(1.0, paused=False)
        assert seen == []


class TestPlaybackController:
    """Tests for the controller driving a transport."""

    def test_play_segment_seeks_with_preroll(self, controller):
        controller.play_segment(5.0, 10.0, 1)
        assert controller.transport.current_time == 4.5
        assert controller.active_index == 1
        assert controller.mode == PlaybackMode.SEGMENT
        assert controller.transport.drain_commands() == [
            {"type": "seek", "time": 4.5},
            {"type": "play"},
        ]

    def test_play_segment_overrides_prior_state(self, controller):
        """Test play_segment result regardless of what was playing before."""
        controller.transport.play()
        controller.transport.report(12.0, paused=False)
        assert controller.active_index == 2

        controller.play_segment(0.3, 5.0, 0)
        assert controller.transport.current_time == 0.0
        assert controller.active_index == 0

    def test_segment_stops_at_bound(self, controller):
        controller.play_segment(5.0, 10.0, 1)
        controller.transport.drain_commands()

        controller.transport.report(9.9, paused=False)
        assert controller.active_index == 1

        controller.transport.report(10.02, paused=False)
        assert controller.active_index is None
        assert controller.transport.paused is True
        assert controller.mode == PlaybackMode.IDLE
        assert controller.transport.drain_commands() == [{"type": "pause"}]

    def test_continuous_playback_tracks_sentences(self, controller):
        controller.transport.report(1.0, paused=False)
        assert controller.mode == PlaybackMode.CONTINUOUS
        assert controller.active_index == 0
        controller.transport.report(4.85, paused=False)
        assert controller.active_index == 0
        controller.transport.report(5.0, paused=False)
        assert controller.active_index == 1
        controller.transport.report(14.99, paused=False)
        assert controller.active_index == 2

    def test_continuous_playback_never_pauses(self, controller):
        controller.transport.report(14.99, paused=False)
        assert controller.transport.drain_commands() == []

    def test_continuous_after_segment(self, controller):
        """Test that free playback resumes highlighting after a segment ends."""
        controller.play_segment(0.0, 5.0, 0)
        controller.transport.report(5.0, paused=False)
        assert controller.active_index is None

        controller.transport.report(7.0, paused=False)
        assert controller.active_index == 1

    def test_reset(self, controller):
        controller.play_segment(5.0, 10.0, 1)
        controller.transport.drain_commands()
        controller.reset()
        assert controller.state == PlaybackState()
        assert controller.transport.drain_commands() == [
            {"type": "pause"},
            {"type": "seek", "time": 0.0},
        ]

    def test_load_replaces_transcript(self, controller):
        controller.play_segment(5.0, 10.0, 1)
        controller.load([])
        assert controller.state == PlaybackState()
        controller.transport.report(7.0, paused=False)
        assert controller.active_index is None

    def test_close_unsubscribes(self, controller):
        controller.close()
        controller.close()
        controller.transport.report(7.0, paused=False)
        assert controller.active_index is None
