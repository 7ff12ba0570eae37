"""
Pattern data: the 4 x 16 drum grid and the resizable pitched-note timeline.

Plain data only. The interaction controllers are the single writer; the
scheduler and renderer only read.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from .config import DRUM_STEPS, TIMELINE_DEFAULT, TIMELINE_MAX, TIMELINE_MIN
from .types import DRUM_TRACKS, Track

logger = logging.getLogger(__name__)


class DrumPattern:
    """Fixed-length on/off steps per drum track. Never resized."""

    def __init__(self, steps: int = DRUM_STEPS) -> None:
        self.steps = int(steps)
        self._grid: Dict[Track, List[int]] = {t: [0] * self.steps for t in DRUM_TRACKS}

    def __getitem__(self, track: Track) -> Sequence[int]:
        return tuple(self._grid[track])

    def __iter__(self) -> Iterator[Track]:
        return iter(self._grid)

    def is_on(self, track: Track, step: int) -> bool:
        return self._grid[track][step % self.steps] == 1

    def set_step(self, track: Track, step: int, on: bool) -> None:
        self._grid[track][step % self.steps] = 1 if on else 0

    def toggle(self, track: Track, step: int) -> bool:
        """Flip one step; returns the new state."""
        row = self._grid[track]
        i = step % self.steps
        row[i] = 0 if row[i] == 1 else 1
        return row[i] == 1

    def tracks_at(self, step: int) -> List[Track]:
        i = step % self.steps
        return [t for t in DRUM_TRACKS if self._grid[t][i] == 1]

    def density(self, track: Track) -> int:
        return sum(self._grid[track])

    def clear(self) -> None:
        for row in self._grid.values():
            for i in range(len(row)):
                row[i] = 0


class StringTimeline:
    """
    Ordered pitch-class slots (0..11 or None) with a parallel table of
    last-triggered timestamps. Both lists always have the same length.
    """

    def __init__(
        self,
        length: int = TIMELINE_DEFAULT,
        *,
        min_length: int = TIMELINE_MIN,
        max_length: int = TIMELINE_MAX,
    ) -> None:
        self.min_length = int(min_length)
        self.max_length = int(max_length)
        length = max(self.min_length, min(self.max_length, int(length)))
        self._slots: List[Optional[int]] = [None] * length
        self._last_triggered: List[Optional[float]] = [None] * length

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, i: int) -> Optional[int]:
        return self._slots[i]

    @property
    def slots(self) -> Sequence[Optional[int]]:
        return tuple(self._slots)

    @property
    def last_triggered(self) -> Sequence[Optional[float]]:
        return tuple(self._last_triggered)

    def set_slot(self, i: int, pitch: Optional[int]) -> None:
        if pitch is not None and not (0 <= int(pitch) <= 11):
            raise ValueError(f"pitch class must be 0..11, got {pitch}")
        self._slots[i] = None if pitch is None else int(pitch)

    def clear_slot(self, i: int) -> Optional[int]:
        old = self._slots[i]
        self._slots[i] = None
        return old

    def mark_triggered(self, i: int, timestamp: float) -> None:
        self._last_triggered[i] = float(timestamp)

    def resize(self, new_length: int) -> bool:
        """Truncate or extend; out-of-range lengths are rejected without change."""
        new_length = int(new_length)
        if not (self.min_length <= new_length <= self.max_length):
            logger.debug("Rejected timeline resize to %d (bounds %d..%d)", new_length, self.min_length, self.max_length)
            return False
        cur = len(self._slots)
        if new_length < cur:
            del self._slots[new_length:]
            del self._last_triggered[new_length:]
        elif new_length > cur:
            pad = new_length - cur
            self._slots.extend([None] * pad)
            self._last_triggered.extend([None] * pad)
        return True

    def grow(self) -> bool:
        return self.resize(len(self) + 1)

    def shrink(self) -> bool:
        return self.resize(len(self) - 1)

    def clear(self) -> None:
        for i in range(len(self._slots)):
            self._slots[i] = None
            self._last_triggered[i] = None


class PatternStore:
    """Owns both editable data structures."""

    def __init__(
        self,
        *,
        drum_steps: int = DRUM_STEPS,
        timeline_length: int = TIMELINE_DEFAULT,
        timeline_min: int = TIMELINE_MIN,
        timeline_max: int = TIMELINE_MAX,
    ) -> None:
        self.drums = DrumPattern(drum_steps)
        self.timeline = StringTimeline(timeline_length, min_length=timeline_min, max_length=timeline_max)

    def clear(self) -> None:
        self.drums.clear()
        self.timeline.clear()
