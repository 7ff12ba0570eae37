from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Protocol, Sequence

from .clock import SequencerClock
from .config import (
    BEAT_FEED_SIZE,
    DRUM_SUBDIVISION_BEATS,
    STRING_SUBDIVISION_BEATS,
    STRING_TRIGGER_DURATION_S,
    TRIGGER_DURATION_S,
)
from .pattern import PatternStore
from .transport import TransportState
from .types import STRINGS_ID, BeatEvent, Track, TrackGroup, TriggerCommand

logger = logging.getLogger(__name__)

# MIDI pitch per drum voice (None = unpitched noise).
DRUM_PITCHES = {
    Track.KICK: 24,  # C1
    Track.CLOSED_HAT: None,
    Track.OPEN_HAT: None,
    Track.SNARE: 36,  # C2
}
STRING_BASE_MIDI = 60  # pitch class 0 -> C4


class AudioSink(Protocol):
    def trigger(self, track_id: str, pitch: Optional[int], duration: float, timestamp: float) -> None:
        ...


def safe_timestamp(t: float) -> Optional[float]:
    """Clamp to >= 0 and round to microseconds; None if not a finite number."""
    try:
        v = float(t)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v):
        return None
    return round(max(0.0, v), 6)


@dataclass
class StepCursor:
    """Currently playing positions, for highlighting only (-1 = not yet played)."""

    drum_step: int = -1
    string_slot: int = -1


class StepScheduler:
    """
    Clock callbacks that turn the pattern into trigger commands.

    One callback per drum 16th, one per timeline slot. Muted groups still
    advance the cursor but stay silent.
    """

    def __init__(
        self,
        store: PatternStore,
        transport: TransportState,
        sink: AudioSink,
        *,
        trigger_duration_s: float = TRIGGER_DURATION_S,
        string_trigger_duration_s: float = STRING_TRIGGER_DURATION_S,
        feed_size: int = BEAT_FEED_SIZE,
    ) -> None:
        self.store = store
        self.transport = transport
        self.sink = sink
        self.trigger_duration_s = float(trigger_duration_s)
        self.string_trigger_duration_s = float(string_trigger_duration_s)
        self.cursor = StepCursor()
        self._drum_times: List[Optional[float]] = [None] * store.drums.steps
        self._events: Deque[BeatEvent] = deque(maxlen=max(1, int(feed_size)))

    def attach(
        self,
        clock: SequencerClock,
        *,
        drum_beats: float = DRUM_SUBDIVISION_BEATS,
        string_beats: float = STRING_SUBDIVISION_BEATS,
    ) -> None:
        clock.schedule_repeat(self._on_drum_tick, drum_beats)
        clock.schedule_repeat(self._on_string_tick, string_beats)

    def _on_drum_tick(self, timestamp: float, tick: int) -> None:
        self.on_drum_step(tick % self.store.drums.steps, timestamp)

    def _on_string_tick(self, timestamp: float, tick: int) -> None:
        self.on_string_slot(tick % len(self.store.timeline), timestamp)

    # --- callbacks ---
    def on_drum_step(self, step: int, timestamp: float) -> List[TriggerCommand]:
        self.cursor.drum_step = step
        if self.transport.drums_muted:
            return []
        tracks = self.store.drums.tracks_at(step)
        if not tracks:
            return []
        t = safe_timestamp(timestamp)
        if t is None:
            logger.debug("Dropped drum step %d: bad timestamp %r", step, timestamp)
            return []

        sent: List[TriggerCommand] = []
        for track in tracks:
            cmd = TriggerCommand(track.value, DRUM_PITCHES[track], self.trigger_duration_s, t)
            if self._send(cmd):
                sent.append(cmd)
        self._drum_times[step] = t
        self._events.append(BeatEvent(TrackGroup.DRUMS, step, t, tuple(tr.value for tr in tracks)))
        return sent

    def on_string_slot(self, slot: int, timestamp: float) -> List[TriggerCommand]:
        self.cursor.string_slot = slot
        timeline = self.store.timeline
        if self.transport.strings_muted or not (0 <= slot < len(timeline)):
            return []
        pitch_class = timeline[slot]
        if pitch_class is None:
            return []
        t = safe_timestamp(timestamp)
        if t is None:
            logger.debug("Dropped string slot %d: bad timestamp %r", slot, timestamp)
            return []

        cmd = TriggerCommand(STRINGS_ID, STRING_BASE_MIDI + pitch_class, self.string_trigger_duration_s, t)
        sent = [cmd] if self._send(cmd) else []
        timeline.mark_triggered(slot, t)
        self._events.append(BeatEvent(TrackGroup.STRINGS, slot, t, (STRINGS_ID,)))
        return sent

    def _send(self, cmd: TriggerCommand) -> bool:
        try:
            self.sink.trigger(cmd.track_id, cmd.pitch, cmd.duration, cmd.timestamp)
        except Exception as e:
            logger.debug("Audio sink rejected %s: %s", cmd, e)
            return False
        return True

    # --- read-only views for rendering ---
    @property
    def drum_step_times(self) -> Sequence[Optional[float]]:
        return tuple(self._drum_times)

    def drain_events(self) -> List[BeatEvent]:
        out = list(self._events)
        self._events.clear()
        return out
