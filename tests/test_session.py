import pytest

from musicmotion_seq.config import SequencerConfig
from musicmotion_seq.drums import step_position
from musicmotion_seq.session import SequencerSession
from musicmotion_seq.strings import DropOutcome
from musicmotion_seq.types import EditMode, Track, TrackGroup

from helpers import HEIGHT, OPEN, WIDTH, make_hand

CENTER = (WIDTH / 2, HEIGHT / 2)
RADIUS = min(WIDTH, HEIGHT) * 0.35


def ring_point(step):
    return step_position(step, CENTER, RADIUS)


def frame(session, hand):
    return session.process_frame(hand, WIDTH, HEIGHT)


def test_pinch_on_ring_turns_step_on_and_starts_playback(session, sink):
    result = frame(session, make_hand(ring_point(0)))

    assert result.pinch_active
    assert result.drum_toggle.track is Track.KICK and result.drum_toggle.on
    assert session.transport.state.primed
    assert "KICK step 1 ON" in session.status

    session.tick()
    assert sink.calls == [("kick", 24, 0.12, 0.0)]


def test_two_fingers_pause_everything(session):
    session.transport.play_all()
    assert session.all_active

    result = frame(session, make_hand((200, 600), pinch_px=OPEN, up=(1, 2)))

    assert result.paused
    assert session.all_active is False
    assert session.transport.state.drums_muted and session.transport.state.strings_muted
    assert session.status == "PAUSED"
    # the clock keeps running
    assert session.clock.running


def test_one_finger_also_pauses(session):
    session.play(TrackGroup.STRINGS)
    frame(session, make_hand((200, 600), pinch_px=OPEN, up=(1,)))
    assert session.transport.state.strings_muted


def test_pause_gesture_overrides_pinch(session):
    result = frame(session, make_hand(ring_point(3), up=(1,)))
    assert result.paused and result.drum_toggle is None
    assert not session.store.drums.is_on(Track.KICK, 3)


def test_open_hand_does_not_pause(session):
    session.transport.play_all()
    frame(session, make_hand((200, 600), pinch_px=OPEN, up=(0, 1, 2, 3, 4)))
    assert session.all_active


def test_no_hand_cancels_a_drag(session):
    session.set_mode(EditMode.STRINGS)
    layout = session.strings.layout(WIDTH, HEIGHT)
    session.store.timeline.set_slot(2, 4)

    frame(session, make_hand(layout.slot_position(2, 8)))
    assert session.strings.dragging

    result = frame(session, None)
    assert not result.pinch_active
    assert not session.strings.dragging
    assert session.store.timeline[2] is None


def test_mode_switch_cancels_a_drag(session):
    session.set_mode(EditMode.STRINGS)
    layout = session.strings.layout(WIDTH, HEIGHT)
    frame(session, make_hand(layout.palette_positions()[0]))
    assert session.strings.dragging
    assert session.status.startswith("Dragging C")

    session.set_mode(EditMode.DRUMS)
    assert not session.strings.dragging
    assert session.store.timeline.slots == (None,) * 8


def test_strings_drop_reports_placement(session):
    session.set_mode(EditMode.STRINGS)
    layout = session.strings.layout(WIDTH, HEIGHT)
    frame(session, make_hand(layout.palette_positions()[4]))
    frame(session, make_hand(layout.slot_position(3, 8)))
    result = frame(session, make_hand(layout.slot_position(3, 8), pinch_px=OPEN))

    assert result.string_edit.outcome is DropOutcome.PLACED
    assert session.store.timeline[3] == 4
    assert session.status == "E -> slot 4"


def test_pinch_is_hysteretic_across_frames(session):
    p = ring_point(5)
    frame(session, make_hand(p, pinch_px=60))
    # between the thresholds the pinch holds
    assert frame(session, make_hand(p, pinch_px=85)).pinch_active
    assert not frame(session, make_hand(p, pinch_px=100)).pinch_active
    # still between the thresholds, but released now
    assert not frame(session, make_hand(p, pinch_px=85)).pinch_active


@pytest.mark.parametrize("y_norm, bpm", [(0.08, 180), (0.5, 120), (0.92, 60), (0.99, 60)])
def test_bpm_slider_maps_height_to_tempo(session, y_norm, bpm):
    result = frame(session, make_hand((1200, y_norm * HEIGHT)))
    assert result.bpm_changed == bpm
    assert session.bpm == bpm
    assert result.drum_toggle is None


def test_bpm_slider_is_drums_only(session):
    session.set_mode(EditMode.STRINGS)
    result = frame(session, make_hand((1200, 0.08 * HEIGHT)))
    assert result.bpm_changed is None
    assert session.bpm == 120


def test_select_track_routes_toggles(session):
    session.select_track(Track.OPEN_HAT)
    frame(session, make_hand(ring_point(6)))
    assert session.store.drums.is_on(Track.OPEN_HAT, 6)
    assert not session.store.drums.is_on(Track.KICK, 6)


def test_clear_all(session):
    frame(session, make_hand(ring_point(1)))
    session.store.timeline.set_slot(0, 3)
    session.clear_all()

    assert session.store.drums.density(Track.KICK) == 0
    assert session.store.timeline.slots == (None,) * 8
    assert session.transport.state.drums_muted
    assert session.transport.state.primed


def test_grow_and_shrink_timeline_respect_bounds(sink):
    session = SequencerSession(sink, SequencerConfig(timeline_default=23))
    assert session.grow_timeline()
    assert not session.grow_timeline()
    assert len(session.store.timeline) == 24

    session = SequencerSession(sink, SequencerConfig(timeline_default=1))
    assert not session.shrink_timeline()
    assert len(session.store.timeline) == 1


def test_paused_groups_stay_silent_while_clock_runs(session, sink, fake_time):
    frame(session, make_hand(ring_point(0)))
    frame(session, make_hand((200, 600), pinch_px=OPEN, up=(1, 2)))
    for _ in range(20):
        fake_time.advance(0.05)
        session.tick()
    assert sink.calls == []
    assert session.scheduler.cursor.drum_step >= 0


def test_mode_switch_puts_a_lifted_note_back(session):
    session.select_track(Track.SNARE)
    frame(session, make_hand(ring_point(2)))
    frame(session, None)
    drums_before = [session.store.drums[t] for t in session.store.drums]

    session.set_mode(EditMode.STRINGS)
    layout = session.strings.layout(WIDTH, HEIGHT)
    session.store.timeline.set_slot(2, 4)
    frame(session, make_hand(layout.slot_position(2, 8)))
    frame(session, make_hand(layout.slot_position(5, 8)))
    assert session.store.timeline[2] is None

    session.set_mode(EditMode.DRUMS)
    assert not session.strings.dragging
    assert session.store.timeline[2] == 4
    assert session.store.timeline.slots.count(4) == 1
    assert [session.store.drums[t] for t in session.store.drums] == drums_before


def test_pause_gesture_mid_drag_keeps_the_note(session):
    session.set_mode(EditMode.STRINGS)
    layout = session.strings.layout(WIDTH, HEIGHT)
    session.store.timeline.set_slot(6, 11)
    frame(session, make_hand(layout.slot_position(6, 8)))

    result = frame(session, make_hand(layout.slot_position(6, 8), pinch_px=OPEN, up=(1, 2)))
    assert result.paused
    assert not session.strings.dragging
    assert session.store.timeline[6] == 11


def test_bpm_slider_geometry_comes_from_config(sink, clock):
    cfg = SequencerConfig(bpm_slider_top_norm=0.2, bpm_slider_span_norm=0.5)
    session = SequencerSession(sink, cfg, clock=clock)
    assert frame(session, make_hand((1200, 0.2 * HEIGHT))).bpm_changed == 180
    assert frame(session, make_hand((1200, 0.7 * HEIGHT))).bpm_changed == 60
