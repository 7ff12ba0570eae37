"""
Tuning knobs for gesture interpretation, layout and timing.

Edit the constants to tweak behaviour globally, or pass a `SequencerConfig`
with overrides to the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# --- Pinch (Schmitt trigger, canvas px) ---
PINCH_ON_PX = 70.0
PINCH_OFF_PX = 95.0

# --- Gesture overrides ---
# Extended-finger counts that force a full pause (pointer / peace sign).
PAUSE_FINGER_COUNTS: Tuple[int, ...] = (1, 2)

# --- Drum ring ---
DRUM_STEPS = 16
RING_RADIUS_FRACTION = 0.35  # of min(canvas w, h)
RING_TOLERANCE_PX = 80.0

# --- BPM pinch slider (right-hand panel, drums mode) ---
BPM_MIN = 60
BPM_MAX = 180
BPM_DEFAULT = 120
BPM_RAMP_S = 0.1
BPM_PANEL_WIDTH_PX = 300
BPM_SLIDER_TOP_NORM = 0.08
BPM_SLIDER_SPAN_NORM = 0.84

# --- Strings timeline / palette ---
PALETTE_SIZE = 12
TIMELINE_MIN = 1
TIMELINE_MAX = 24
TIMELINE_DEFAULT = 8
SLOTS_PER_ROW = 8
LAYOUT_MARGIN_FRACTION = 0.08
PALETTE_Y_FRACTION = 0.18
PALETTE_DOT_RADIUS_PX = 18.0
PALETTE_HIT_MARGIN_PX = 14.0
TIMELINE_Y_FRACTION = 0.45
TIMELINE_ROW_SPACING_FRACTION = 0.16
SLOT_HALF_WIDTH_FRACTION = 0.45  # of the slot's section width
SLOT_HALF_HEIGHT_PX = 40.0
SNAP_VERTICAL_WEIGHT = 1.25
DELETE_MARGIN_PX = 90.0

# --- Scheduling ---
DRUM_SUBDIVISION_BEATS = 0.25  # 16th notes
STRING_SUBDIVISION_BEATS = 0.5  # 8th notes
TRIGGER_DURATION_S = 0.12
STRING_TRIGGER_DURATION_S = 0.4
LOOKAHEAD_S = 0.1
BEAT_FEED_SIZE = 64


@dataclass(frozen=True)
class SequencerConfig:
    pinch_on_px: float = PINCH_ON_PX
    pinch_off_px: float = PINCH_OFF_PX
    pause_finger_counts: Tuple[int, ...] = PAUSE_FINGER_COUNTS

    drum_steps: int = DRUM_STEPS
    ring_radius_fraction: float = RING_RADIUS_FRACTION
    ring_tolerance_px: float = RING_TOLERANCE_PX

    bpm_min: int = BPM_MIN
    bpm_max: int = BPM_MAX
    bpm_default: int = BPM_DEFAULT
    bpm_ramp_s: float = BPM_RAMP_S
    bpm_panel_width_px: int = BPM_PANEL_WIDTH_PX
    bpm_slider_top_norm: float = BPM_SLIDER_TOP_NORM
    bpm_slider_span_norm: float = BPM_SLIDER_SPAN_NORM

    palette_size: int = PALETTE_SIZE
    timeline_min: int = TIMELINE_MIN
    timeline_max: int = TIMELINE_MAX
    timeline_default: int = TIMELINE_DEFAULT
    slots_per_row: int = SLOTS_PER_ROW
    layout_margin_fraction: float = LAYOUT_MARGIN_FRACTION
    palette_y_fraction: float = PALETTE_Y_FRACTION
    palette_dot_radius_px: float = PALETTE_DOT_RADIUS_PX
    palette_hit_margin_px: float = PALETTE_HIT_MARGIN_PX
    timeline_y_fraction: float = TIMELINE_Y_FRACTION
    timeline_row_spacing_fraction: float = TIMELINE_ROW_SPACING_FRACTION
    slot_half_width_fraction: float = SLOT_HALF_WIDTH_FRACTION
    slot_half_height_px: float = SLOT_HALF_HEIGHT_PX
    snap_vertical_weight: float = SNAP_VERTICAL_WEIGHT
    delete_margin_px: float = DELETE_MARGIN_PX

    drum_subdivision_beats: float = DRUM_SUBDIVISION_BEATS
    string_subdivision_beats: float = STRING_SUBDIVISION_BEATS
    trigger_duration_s: float = TRIGGER_DURATION_S
    string_trigger_duration_s: float = STRING_TRIGGER_DURATION_S
    lookahead_s: float = LOOKAHEAD_S
    beat_feed_size: int = BEAT_FEED_SIZE

    def __post_init__(self) -> None:
        if not (0.0 < self.pinch_on_px < self.pinch_off_px):
            raise ValueError(
                f"pinch thresholds need 0 < on < off (got on={self.pinch_on_px}, off={self.pinch_off_px})"
            )
        if not (1 <= self.timeline_min <= self.timeline_default <= self.timeline_max):
            raise ValueError(
                "timeline bounds need 1 <= min <= default <= max "
                f"(got {self.timeline_min}, {self.timeline_default}, {self.timeline_max})"
            )
        if not (self.bpm_min <= self.bpm_default <= self.bpm_max):
            raise ValueError(f"bpm_default {self.bpm_default} outside [{self.bpm_min}, {self.bpm_max}]")
        if self.drum_steps <= 0 or self.slots_per_row <= 0:
            raise ValueError("drum_steps and slots_per_row must be positive")
        if self.bpm_slider_span_norm <= 0:
            raise ValueError(f"bpm_slider_span_norm must be positive, got {self.bpm_slider_span_norm}")
