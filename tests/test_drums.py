import math

import pytest

from musicmotion_seq.clock import SequencerClock
from musicmotion_seq.drums import DrumController, angle_from_top, angle_to_step, step_at_point, step_position
from musicmotion_seq.pattern import DrumPattern
from musicmotion_seq.transport import TransportManager
from musicmotion_seq.types import Track

from helpers import HEIGHT, WIDTH

CENTER = (WIDTH / 2, HEIGHT / 2)
RADIUS = min(WIDTH, HEIGHT) * 0.35


@pytest.fixture
def controller(fake_time):
    transport = TransportManager(SequencerClock(time_fn=fake_time))
    return DrumController(DrumPattern(), transport)


def test_angle_zero_is_twelve_o_clock_and_clockwise():
    assert angle_from_top(0, -1) == pytest.approx(0.0)
    assert angle_from_top(1, 0) == pytest.approx(math.pi / 2)
    assert angle_from_top(0, 1) == pytest.approx(math.pi)
    assert angle_from_top(-1, 0) == pytest.approx(3 * math.pi / 2)


def test_angle_to_step_wraps_to_zero():
    assert angle_to_step(math.radians(359)) == 0
    assert angle_to_step(math.radians(1)) == 0
    assert angle_to_step(math.radians(349)) == 0
    assert angle_to_step(math.radians(337)) == 15
    assert angle_to_step(math.radians(90)) == 4


def test_angle_to_step_is_total_and_monotone_over_the_ring():
    prev = 0
    for deg in range(0, 360):
        step = angle_to_step(math.radians(deg))
        assert 0 <= step < 16
        # steps never jump by more than one bucket (mod wraparound)
        assert (step - prev) % 16 in (0, 1)
        prev = step


def test_step_positions_round_trip():
    for step in range(16):
        p = step_position(step, CENTER, RADIUS)
        assert step_at_point(p, CENTER, RADIUS) == step


def test_ring_is_a_band_not_a_disk():
    assert step_at_point(CENTER, CENTER, RADIUS) is None
    assert step_at_point((CENTER[0] + RADIUS + 79, CENTER[1]), CENTER, RADIUS) == 4
    assert step_at_point((CENTER[0] + RADIUS + 81, CENTER[1]), CENTER, RADIUS) is None
    assert step_at_point((CENTER[0] + RADIUS - 81, CENTER[1]), CENTER, RADIUS) is None


def test_pinch_on_step_four_turns_kick_on_and_unmutes(controller):
    pointer = step_position(4, CENTER, RADIUS)
    toggle = controller.update(True, pointer, WIDTH, HEIGHT)

    assert toggle is not None and toggle.step == 4 and toggle.on
    assert controller.pattern[Track.KICK][4] == 1
    assert controller.transport.state.drums_muted is False
    assert controller.transport.state.primed is True


def test_held_pinch_toggles_exactly_once(controller):
    pointer = step_position(7, CENTER, RADIUS)
    for _ in range(60):
        controller.update(True, pointer, WIDTH, HEIGHT)
    assert controller.pattern[Track.KICK][7] == 1


def test_release_then_pinch_toggles_again(controller):
    pointer = step_position(2, CENTER, RADIUS)
    controller.update(True, pointer, WIDTH, HEIGHT)
    controller.update(False, pointer, WIDTH, HEIGHT)
    toggle = controller.update(True, pointer, WIDTH, HEIGHT)
    assert toggle.on is False
    assert controller.pattern[Track.KICK][2] == 0


def test_leaving_the_ring_rearms(controller):
    on_ring = step_position(2, CENTER, RADIUS)
    controller.update(True, on_ring, WIDTH, HEIGHT)
    assert controller.update(True, CENTER, WIDTH, HEIGHT) is None
    assert controller.was_pinching is False
    controller.update(True, on_ring, WIDTH, HEIGHT)
    assert controller.pattern[Track.KICK][2] == 0


def test_turning_a_step_off_does_not_unmute(controller):
    controller.pattern.set_step(Track.SNARE, 5, True)
    controller.select_track(Track.SNARE)
    toggle = controller.update(True, step_position(5, CENTER, RADIUS), WIDTH, HEIGHT)
    assert toggle.track is Track.SNARE and toggle.on is False
    assert controller.transport.state.drums_muted is True
    assert controller.transport.state.primed is False
