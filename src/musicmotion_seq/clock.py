from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import BPM_DEFAULT, LOOKAHEAD_S

logger = logging.getLogger(__name__)

TickCallback = Callable[[float, int], None]

# Ticks that are this late when polled are skipped instead of played in a burst.
MAX_LATE_S = 0.25


@dataclass
class _Repeat:
    callback: TickCallback
    beats: float
    next_time: float = 0.0
    tick: int = 0


@dataclass
class _Ramp:
    start_t: float
    start_bpm: float
    end_bpm: float
    duration: float


class SequencerClock:
    """
    The one shared musical clock.

    Polled from the frame loop; fires repeat callbacks for every tick that
    falls within `lookahead_s` of now, passing the tick's own timestamp
    (seconds since `start()`). Once started it is never restarted.
    """

    def __init__(
        self,
        bpm: float = BPM_DEFAULT,
        lookahead_s: float = LOOKAHEAD_S,
        time_fn: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._time_fn = time_fn
        self._origin: Optional[float] = None
        self._bpm = float(bpm)
        self._ramp: Optional[_Ramp] = None
        self.lookahead_s = float(lookahead_s)
        self._repeats: List[_Repeat] = []

    @property
    def running(self) -> bool:
        return self._origin is not None

    def start(self) -> None:
        if self._origin is not None:
            return
        self._origin = self._time_fn()
        for rep in self._repeats:
            rep.next_time = 0.0
            rep.tick = 0
        logger.debug("Clock started at %.1f BPM", self._bpm)

    def now(self) -> float:
        if self._origin is None:
            return 0.0
        return max(0.0, self._time_fn() - self._origin)

    def schedule_repeat(self, callback: TickCallback, beats: float) -> None:
        if beats <= 0:
            raise ValueError(f"repeat interval must be positive, got {beats}")
        self._repeats.append(_Repeat(callback=callback, beats=float(beats), next_time=self.now()))

    # --- tempo ---
    @property
    def bpm(self) -> float:
        return self.bpm_at(self.now())

    def bpm_at(self, t: float) -> float:
        r = self._ramp
        if r is None:
            return self._bpm
        if r.duration <= 0 or t >= r.start_t + r.duration:
            return r.end_bpm
        if t <= r.start_t:
            return r.start_bpm
        a = (t - r.start_t) / r.duration
        return r.start_bpm + (r.end_bpm - r.start_bpm) * a

    def set_bpm(self, bpm: float) -> None:
        self._ramp = None
        self._bpm = float(bpm)

    def ramp_to(self, bpm: float, ramp_s: float) -> None:
        """Move tempo linearly to `bpm` over `ramp_s` seconds."""
        t = self.now()
        current = self.bpm_at(t)
        self._bpm = float(bpm)
        self._ramp = _Ramp(start_t=t, start_bpm=current, end_bpm=float(bpm), duration=max(0.0, float(ramp_s)))

    def seconds_per_beat(self, t: float) -> float:
        return 60.0 / max(1e-6, self.bpm_at(t))

    # --- scheduling ---
    def poll(self) -> int:
        """Fire all due ticks; returns how many callbacks ran."""
        if self._origin is None:
            return 0
        now = self.now()
        horizon = now + self.lookahead_s
        fired = 0
        for rep in self._repeats:
            while rep.next_time <= horizon:
                if rep.next_time < now - MAX_LATE_S:
                    logger.debug("Skipping late tick %d (%.3fs behind)", rep.tick, now - rep.next_time)
                else:
                    rep.callback(rep.next_time, rep.tick)
                    fired += 1
                rep.next_time += rep.beats * self.seconds_per_beat(rep.next_time)
                rep.tick += 1
        if self._ramp is not None and now >= self._ramp.start_t + self._ramp.duration:
            self._ramp = None
        return fired
