from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import DRUM_STEPS, RING_RADIUS_FRACTION, RING_TOLERANCE_PX
from .pattern import DrumPattern
from .transport import TransportManager
from .types import Point2, Track, TrackGroup
from .utils import ring_center_radius

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


def angle_from_top(dx: float, dy: float) -> float:
    """Clockwise angle in [0, 2pi) with 0 at 12 o'clock (canvas y grows downward)."""
    a = math.atan2(dy, dx)
    if a < 0:
        a += TWO_PI
    return (a + math.pi / 2.0) % TWO_PI


def angle_to_step(angle: float, steps: int = DRUM_STEPS) -> int:
    """Round an angle into one of `steps` equal buckets; wraps to 0 near 2pi."""
    a = angle % TWO_PI
    return int(round(a / TWO_PI * steps)) % steps


def step_position(step: int, center: Point2, radius: float, steps: int = DRUM_STEPS) -> Point2:
    a = (step / float(steps)) * TWO_PI - math.pi / 2.0
    return (center[0] + math.cos(a) * radius, center[1] + math.sin(a) * radius)


def step_at_point(
    point: Point2,
    center: Point2,
    radius: float,
    *,
    tolerance_px: float = RING_TOLERANCE_PX,
    steps: int = DRUM_STEPS,
) -> Optional[int]:
    """Step under `point`, or None when it is off the ring (a band, not a disk)."""
    dx = point[0] - center[0]
    dy = point[1] - center[1]
    if abs(math.hypot(dx, dy) - radius) > tolerance_px:
        return None
    return angle_to_step(angle_from_top(dx, dy), steps)


@dataclass
class DrumToggle:
    track: Track
    step: int
    on: bool


class DrumController:
    """
    Radial step toggling for the selected drum track.

    A step flips once per pinch-down; holding the pinch does nothing more
    until the pinch is released or the thumb leaves the ring.
    """

    def __init__(
        self,
        pattern: DrumPattern,
        transport: TransportManager,
        *,
        radius_fraction: float = RING_RADIUS_FRACTION,
        tolerance_px: float = RING_TOLERANCE_PX,
    ) -> None:
        self.pattern = pattern
        self.transport = transport
        self.radius_fraction = float(radius_fraction)
        self.tolerance_px = float(tolerance_px)
        self.track = Track.KICK
        self.was_pinching = False
        self.selected_step: Optional[int] = None

    def select_track(self, track: Track) -> None:
        self.track = track
        self.reset()

    def ring(self, width: float, height: float) -> Tuple[Point2, float]:
        return ring_center_radius(width, height, self.radius_fraction)

    def target_step(self, pointer: Optional[Point2], width: float, height: float) -> Optional[int]:
        if pointer is None:
            return None
        center, radius = self.ring(width, height)
        return step_at_point(pointer, center, radius, tolerance_px=self.tolerance_px, steps=self.pattern.steps)

    def update(self, pinch_active: bool, pointer: Optional[Point2], width: float, height: float) -> Optional[DrumToggle]:
        if not pinch_active:
            self.reset()
            return None

        step = self.target_step(pointer, width, height)
        if step is None:
            self.reset()
            return None

        if self.was_pinching:
            return None

        self.was_pinching = True
        self.selected_step = step
        on = self.pattern.toggle(self.track, step)
        if on:
            self.transport.play(TrackGroup.DRUMS)
        logger.debug("%s step %d -> %s", self.track.value, step, "on" if on else "off")
        return DrumToggle(self.track, step, on)

    def reset(self) -> None:
        self.was_pinching = False
        self.selected_step = None
