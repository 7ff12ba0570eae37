from __future__ import annotations

import logging
from dataclasses import dataclass

from .clock import SequencerClock
from .config import BPM_DEFAULT, BPM_MAX, BPM_MIN, BPM_RAMP_S
from .types import TrackGroup
from .utils import clamp_int

logger = logging.getLogger(__name__)


@dataclass
class TransportState:
    drums_muted: bool = True
    strings_muted: bool = True
    primed: bool = False

    def is_muted(self, group: TrackGroup) -> bool:
        return self.drums_muted if group is TrackGroup.DRUMS else self.strings_muted


# Derived predicates. Never stored; always recomputed from the two flags.
def all_active(state: TransportState) -> bool:
    return not state.drums_muted and not state.strings_muted


def any_active(state: TransportState) -> bool:
    return not state.drums_muted or not state.strings_muted


def single_active(state: TransportState, group: TrackGroup) -> bool:
    """Only `group` is playing."""
    return not state.is_muted(group) and state.is_muted(_other(group))


def all_paused(state: TransportState) -> bool:
    return state.drums_muted and state.strings_muted


def _other(group: TrackGroup) -> TrackGroup:
    return TrackGroup.STRINGS if group is TrackGroup.DRUMS else TrackGroup.DRUMS


class TransportManager:
    """
    Play/pause per track group on top of one shared clock.

    Pausing only flips mute flags read by the scheduler; the clock keeps
    running once primed.
    """

    def __init__(
        self,
        clock: SequencerClock,
        *,
        bpm: int = BPM_DEFAULT,
        bpm_min: int = BPM_MIN,
        bpm_max: int = BPM_MAX,
        bpm_ramp_s: float = BPM_RAMP_S,
    ) -> None:
        self.clock = clock
        self.state = TransportState()
        self.bpm_min = int(bpm_min)
        self.bpm_max = int(bpm_max)
        self.bpm_ramp_s = float(bpm_ramp_s)
        self._bpm = clamp_int(int(bpm), self.bpm_min, self.bpm_max)
        self.clock.set_bpm(self._bpm)

    @property
    def bpm(self) -> int:
        return self._bpm

    def prime_once(self) -> bool:
        """Start the clock the first time only; returns True if this call primed it."""
        if self.state.primed:
            return False
        self.state.primed = True
        self.clock.start()
        logger.info("Transport primed at %d BPM", self._bpm)
        return True

    def set_mute(self, group: TrackGroup, muted: bool) -> None:
        if group is TrackGroup.DRUMS:
            self.state.drums_muted = bool(muted)
        else:
            self.state.strings_muted = bool(muted)

    def ensure_running(self) -> bool:
        if self.state.primed and any_active(self.state) and not self.clock.running:
            self.clock.start()
        return self.clock.running

    def play(self, group: TrackGroup) -> None:
        self.set_mute(group, False)
        self.prime_once()
        self.ensure_running()

    def pause(self, group: TrackGroup) -> None:
        self.set_mute(group, True)

    def play_all(self) -> None:
        self.state.drums_muted = False
        self.state.strings_muted = False
        self.prime_once()
        self.ensure_running()

    def pause_all(self) -> None:
        self.state.drums_muted = True
        self.state.strings_muted = True

    def toggle_all(self) -> None:
        if all_active(self.state):
            self.pause_all()
        else:
            self.play_all()

    def set_bpm(self, bpm: int) -> int:
        """Clamp to the allowed range and ramp the clock there."""
        bpm = clamp_int(int(round(bpm)), self.bpm_min, self.bpm_max)
        if bpm != self._bpm:
            self._bpm = bpm
            self.clock.ramp_to(bpm, self.bpm_ramp_s)
            logger.debug("BPM -> %d", bpm)
        return bpm
