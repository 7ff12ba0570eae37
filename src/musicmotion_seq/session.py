"""
Per-frame gesture interpretation for the step sequencer.

One `process_frame()` call per camera frame, on the same thread that polls
the clock and draws. Priority within a frame:

1. no hand -> every controller resets (an open drag loses its note)
2. pause gesture (1 or 2 fingers up) -> both groups muted; an open drag
   puts a lifted note back in its slot
3. the active edit mode's controller (drums also owns the BPM pinch slider)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from . import config
from .clock import SequencerClock
from .drums import DrumController, DrumToggle
from .frame_adapter import adapt_frame
from .gates import PinchGate
from .pattern import PatternStore
from .scheduler import AudioSink, StepScheduler
from .strings import DropOutcome, StringController, StringEdit
from .transport import TransportManager, all_active, all_paused
from .types import PITCH_NAMES, EditMode, FrameSignals, LandmarkFrame, Track, TrackGroup
from .utils import clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    signals: FrameSignals
    pinch_active: bool
    paused: bool = False
    bpm_changed: Optional[int] = None
    drum_toggle: Optional[DrumToggle] = None
    string_edit: Optional[StringEdit] = None


class SequencerSession:
    """Owns the pattern store, transport and both controllers."""

    def __init__(
        self,
        sink: AudioSink,
        cfg: Optional[config.SequencerConfig] = None,
        *,
        clock: Optional[SequencerClock] = None,
    ) -> None:
        self.cfg = cfg or config.SequencerConfig()
        cfg = self.cfg
        self.store = PatternStore(
            drum_steps=cfg.drum_steps,
            timeline_length=cfg.timeline_default,
            timeline_min=cfg.timeline_min,
            timeline_max=cfg.timeline_max,
        )
        self.clock = clock or SequencerClock(bpm=cfg.bpm_default, lookahead_s=cfg.lookahead_s)
        self.transport = TransportManager(
            self.clock,
            bpm=cfg.bpm_default,
            bpm_min=cfg.bpm_min,
            bpm_max=cfg.bpm_max,
            bpm_ramp_s=cfg.bpm_ramp_s,
        )
        self.scheduler = StepScheduler(
            self.store,
            self.transport.state,
            sink,
            trigger_duration_s=cfg.trigger_duration_s,
            string_trigger_duration_s=cfg.string_trigger_duration_s,
            feed_size=cfg.beat_feed_size,
        )
        self.scheduler.attach(
            self.clock,
            drum_beats=cfg.drum_subdivision_beats,
            string_beats=cfg.string_subdivision_beats,
        )

        self.pinch = PinchGate(on_px=cfg.pinch_on_px, off_px=cfg.pinch_off_px)
        self.drums = DrumController(
            self.store.drums,
            self.transport,
            radius_fraction=cfg.ring_radius_fraction,
            tolerance_px=cfg.ring_tolerance_px,
        )
        self.strings = StringController(self.store.timeline, self.transport, cfg)
        self.mode = EditMode.DRUMS
        self.status = "Pinch a beat to start"

    # --- derived views ---
    @property
    def all_active(self) -> bool:
        return all_active(self.transport.state)

    @property
    def bpm(self) -> int:
        return self.transport.bpm

    # --- frame handling ---
    def process_frame(self, frame: Optional[LandmarkFrame], width: int, height: int) -> FrameResult:
        signals = adapt_frame(frame, width, height)
        pinch_active = self.pinch.update(signals.pinch_distance_px)

        if not signals.has_hand:
            self._reset_controllers()
            playing = self.transport.state.primed and not all_paused(self.transport.state)
            self.status = "Playing" if playing else "Show your hand"
            return FrameResult(signals, False)

        if signals.fingers_up in self.cfg.pause_finger_counts:
            self._reset_controllers(restore_origin=True)
            if not all_paused(self.transport.state):
                logger.debug("Pause gesture (%d fingers)", signals.fingers_up)
            self.transport.pause_all()
            self.status = "PAUSED"
            return FrameResult(signals, pinch_active, paused=True)

        if self.mode is EditMode.DRUMS:
            return self._drum_frame(signals, pinch_active, width, height)
        return self._string_frame(signals, pinch_active, width, height)

    def tick(self) -> int:
        """Fire due sequencer steps; call once per frame after `process_frame`."""
        return self.clock.poll()

    def _drum_frame(self, signals: FrameSignals, pinch_active: bool, width: int, height: int) -> FrameResult:
        if pinch_active:
            slider_bpm = self.bpm_slider_value(signals, width)
            if slider_bpm is not None:
                self.drums.reset()
                bpm = self.transport.set_bpm(slider_bpm)
                self.status = f"BPM: {bpm}"
                return FrameResult(signals, pinch_active, bpm_changed=bpm)

        toggle = self.drums.update(pinch_active, signals.pointer, width, height)
        if toggle is not None:
            density = self.store.drums.density(toggle.track)
            self.status = (
                f"{toggle.track.label} step {toggle.step + 1} {'ON' if toggle.on else 'OFF'}"
                f" | {density}/{self.store.drums.steps}"
            )
        elif pinch_active and self.drums.selected_step is None:
            self.status = "Pinch too far from the ring"
        return FrameResult(signals, pinch_active, drum_toggle=toggle)

    def _string_frame(self, signals: FrameSignals, pinch_active: bool, width: int, height: int) -> FrameResult:
        edit = self.strings.update(pinch_active, signals.pointer, width, height)
        session = self.strings.session
        if session is not None:
            target = f"slot {session.snapped_slot + 1}" if session.snapped_slot is not None else "no slot"
            self.status = f"Dragging {PITCH_NAMES[session.carried_note]} -> {target}"
        elif edit is not None:
            self.status = _describe_edit(edit)
        return FrameResult(signals, pinch_active, string_edit=edit)

    def bpm_slider_value(self, signals: FrameSignals, width: int) -> Optional[int]:
        """BPM picked by the index tip inside the right-hand panel, else None."""
        if signals.index_pointer is None or signals.index_y_norm is None:
            return None
        cfg = self.cfg
        x = signals.index_pointer[0]
        if x < width - cfg.bpm_panel_width_px or x > width:
            return None
        slider_y = clamp((signals.index_y_norm - cfg.bpm_slider_top_norm) / cfg.bpm_slider_span_norm, 0.0, 1.0)
        span = cfg.bpm_max - cfg.bpm_min
        return int(round(cfg.bpm_min + (1.0 - slider_y) * span))

    def _reset_controllers(self, *, restore_origin: bool = False) -> None:
        self.drums.reset()
        self.strings.reset(restore_origin=restore_origin)

    # --- external UI actions ---
    def set_mode(self, mode: EditMode) -> None:
        self._reset_controllers(restore_origin=True)
        if mode is not self.mode:
            logger.debug("Edit mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        self.status = f"Editing {mode.value.upper()}"

    def select_track(self, track: Track) -> None:
        self.drums.select_track(track)
        self.status = f"Editing {track.label} pattern"

    def grow_timeline(self) -> bool:
        return self.store.timeline.grow()

    def shrink_timeline(self) -> bool:
        return self.store.timeline.shrink()

    def clear_all(self) -> None:
        self._reset_controllers()
        self.store.clear()
        self.transport.pause_all()
        self.status = "Cleared all patterns"
        logger.info("Cleared all patterns")

    def set_bpm(self, bpm: int) -> int:
        return self.transport.set_bpm(bpm)

    def play(self, group: TrackGroup) -> None:
        self.transport.play(group)

    def pause(self, group: TrackGroup) -> None:
        self.transport.pause(group)

    def toggle_all(self) -> None:
        self.transport.toggle_all()


def _describe_edit(edit: StringEdit) -> str:
    name = PITCH_NAMES[edit.note]
    if edit.outcome is DropOutcome.PLACED:
        return f"{name} -> slot {edit.slot + 1}"
    if edit.outcome is DropOutcome.RETURNED:
        return f"{name} returned to slot {edit.slot + 1}"
    if edit.outcome is DropOutcome.DELETED:
        return f"{name} deleted"
    return f"{name} dropped"
