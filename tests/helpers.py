from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from musicmotion_seq.types import LandmarkFrame

WIDTH = 1280
HEIGHT = 720

# (tip, proximal joint) in thumb..pinky order
_FINGERS = [(4, 3), (8, 6), (12, 10), (16, 14), (20, 18)]

PINCHED = 20.0
OPEN = 150.0


def make_hand(
    thumb_px: Tuple[float, float],
    *,
    pinch_px: float = PINCHED,
    up: Sequence[int] = (),
    width: int = WIDTH,
    height: int = HEIGHT,
) -> LandmarkFrame:
    """
    Build a 21-point hand whose *mirrored* thumb tip lands on `thumb_px`.

    The index tip sits `pinch_px` to the side of the thumb; `up` lists the
    fingers (0=thumb .. 4=pinky) whose tip is above its proximal joint.
    """

    tx = (width - thumb_px[0]) / width
    ty = thumb_px[1] / height
    pts: List[List[float]] = [[0.5, 0.9, 0.0] for _ in range(21)]
    pts[4] = [tx, ty, 0.0]
    pts[8] = [tx + pinch_px / width, ty, 0.0]
    for finger, (tip, pip) in enumerate(_FINGERS):
        if tip not in (4, 8):
            pts[tip] = [0.5, 0.6, 0.0]
        tip_y = pts[tip][1]
        pip_y = tip_y + 0.02 if finger in up else tip_y - 0.02
        pts[pip] = [pts[tip][0], pip_y, 0.0]
    return LandmarkFrame.from_points(pts)


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.calls: List[Tuple[str, Optional[int], float, float]] = []
        self.fail = fail

    def trigger(self, track_id, pitch, duration, timestamp) -> None:
        if self.fail:
            raise ValueError("Value must be within [0, Infinity]")
        self.calls.append((track_id, pitch, duration, timestamp))


class FakeTime:
    def __init__(self, t: float = 100.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt
