import math

import pytest

from musicmotion_seq.pattern import PatternStore
from musicmotion_seq.scheduler import StepScheduler, safe_timestamp
from musicmotion_seq.transport import TransportState
from musicmotion_seq.types import Track, TrackGroup

from helpers import RecordingSink


@pytest.fixture
def store():
    return PatternStore(timeline_length=8)


@pytest.fixture
def state():
    return TransportState(drums_muted=False, strings_muted=False, primed=True)


@pytest.fixture
def scheduler(store, state, sink):
    return StepScheduler(store, state, sink)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (-0.0004, 0.0),
        (-3.0, 0.0),
        (1.23456789, 1.234568),
        (float("nan"), None),
        (float("inf"), None),
        ("soon", None),
    ],
)
def test_safe_timestamp(raw, expected):
    assert safe_timestamp(raw) == expected


def test_drum_step_triggers_every_track_on_that_step(scheduler, store, sink):
    store.drums.set_step(Track.KICK, 0, True)
    store.drums.set_step(Track.CLOSED_HAT, 0, True)
    store.drums.set_step(Track.SNARE, 4, True)

    sent = scheduler.on_drum_step(0, 0.5)
    assert [c.track_id for c in sent] == ["kick", "closedHat"]
    assert sink.calls == [("kick", 24, 0.12, 0.5), ("closedHat", None, 0.12, 0.5)]
    assert scheduler.cursor.drum_step == 0
    assert scheduler.drum_step_times[0] == 0.5


def test_muted_group_is_silent_but_cursor_advances(scheduler, store, state, sink):
    store.drums.set_step(Track.KICK, 3, True)
    store.timeline.set_slot(2, 7)
    state.drums_muted = True
    state.strings_muted = True

    assert scheduler.on_drum_step(3, 1.0) == []
    assert scheduler.on_string_slot(2, 1.0) == []
    assert sink.calls == []
    assert scheduler.cursor.drum_step == 3
    assert scheduler.cursor.string_slot == 2


def test_string_slot_maps_pitch_class_to_midi(scheduler, store, sink):
    store.timeline.set_slot(5, 7)  # G
    sent = scheduler.on_string_slot(5, 2.0)
    assert sink.calls == [("strings", 67, 0.4, 2.0)]
    assert sent[0].pitch == 67
    assert store.timeline.last_triggered[5] == 2.0


def test_empty_string_slot_is_silent(scheduler, sink):
    assert scheduler.on_string_slot(0, 1.0) == []
    assert sink.calls == []


def test_negative_timestamp_is_clamped_not_dropped(scheduler, store, sink):
    store.drums.set_step(Track.KICK, 0, True)
    scheduler.on_drum_step(0, -0.0001)
    assert sink.calls[0][3] == 0.0


def test_non_finite_timestamp_skips_the_step(scheduler, store, sink):
    store.drums.set_step(Track.KICK, 0, True)
    assert scheduler.on_drum_step(0, math.nan) == []
    assert sink.calls == []
    assert scheduler.drum_step_times[0] is None


def test_sink_errors_are_swallowed(store, state):
    store.drums.set_step(Track.KICK, 1, True)
    store.timeline.set_slot(1, 0)
    scheduler = StepScheduler(store, state, RecordingSink(fail=True))

    assert scheduler.on_drum_step(1, 0.25) == []
    assert scheduler.on_string_slot(1, 0.25) == []
    # the step still counts as played for highlighting
    assert scheduler.drum_step_times[1] == 0.25
    assert store.timeline.last_triggered[1] == 0.25


def test_event_feed_is_bounded_and_drained(store, state, sink):
    scheduler = StepScheduler(store, state, sink, feed_size=3)
    store.drums.set_step(Track.SNARE, 0, True)
    for i in range(5):
        scheduler.on_drum_step(0, float(i))

    events = scheduler.drain_events()
    assert [e.timestamp for e in events] == [2.0, 3.0, 4.0]
    assert events[0].kind is TrackGroup.DRUMS
    assert events[0].track_ids == ("snare",)
    assert scheduler.drain_events() == []


def test_attached_clock_walks_steps_and_slots(store, state, sink, clock, fake_time):
    scheduler = StepScheduler(store, state, sink)
    scheduler.attach(clock)
    store.drums.set_step(Track.KICK, 2, True)
    store.timeline.set_slot(1, 0)

    clock.start()
    for _ in range(10):
        clock.poll()
        fake_time.advance(0.05)

    # drum 16ths are 0.125 s apart at 120 BPM, string 8ths 0.25 s
    assert ("kick", 24, 0.12, 0.25) in sink.calls
    assert ("strings", 60, 0.4, 0.25) in sink.calls
