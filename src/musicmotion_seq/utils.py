from __future__ import annotations

import math
from typing import Tuple


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def mirror_x(x_norm: float, width: float) -> float:
    """Normalized x -> canvas px, flipped for a front-facing camera."""
    return width - x_norm * width


def to_canvas(x_norm: float, y_norm: float, width: float, height: float, *, mirror: bool = True) -> Tuple[float, float]:
    x = mirror_x(x_norm, width) if mirror else x_norm * width
    return (x, y_norm * height)


def dist(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def ring_center_radius(width: float, height: float, radius_fraction: float) -> Tuple[Tuple[float, float], float]:
    return (width / 2.0, height / 2.0), min(width, height) * radius_fraction
