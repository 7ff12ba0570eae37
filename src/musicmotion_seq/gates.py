from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class PinchGate:
    """
    Pinch detector with hysteresis (Schmitt trigger):
    - becomes active when distance < on_px
    - becomes inactive when distance > off_px
    - holds its state in between
    - a missing distance (no hand) forces inactive
    """

    on_px: float
    off_px: float
    active: bool = False

    def __post_init__(self) -> None:
        if not (self.on_px < self.off_px):
            raise ValueError(f"PinchGate needs on_px < off_px (got {self.on_px} >= {self.off_px})")

    def update(self, distance_px: Optional[float]) -> bool:
        if distance_px is None:
            self.active = False
        elif self.active:
            if distance_px > self.off_px:
                self.active = False
        elif distance_px < self.on_px:
            self.active = True
        return self.active

    def reset(self) -> None:
        self.active = False


@dataclass
class BoolEdgeGate:
    """Reports rising/falling edges of a boolean sampled once per frame."""

    prev: bool = False

    def update(self, curr: bool) -> Optional[str]:
        edge: Optional[str] = None
        if curr and not self.prev:
            edge = "down"
        elif self.prev and not curr:
            edge = "up"
        self.prev = curr
        return edge

    def reset(self) -> None:
        self.prev = False
