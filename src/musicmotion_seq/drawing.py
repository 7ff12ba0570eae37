from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from .drums import step_position
from .session import SequencerSession
from .types import PITCH_NAMES, EditMode, FrameSignals

ON_COLOR = (136, 255, 0)
PLAYING_COLOR = (136, 0, 255)
DIM_COLOR = (90, 140, 90)
TEXT_COLOR = (255, 255, 255)
PULSE_S = 0.2


def draw_text(frame, text: str, org: Tuple[int, int], color=TEXT_COLOR, scale=0.6, thickness=2):
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, (0, 0, 0), thickness + 2, cv2.LINE_AA)
    cv2.putText(frame, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, thickness, cv2.LINE_AA)
    return frame


def _pt(p) -> Tuple[int, int]:
    return (int(round(p[0])), int(round(p[1])))


def _pulse(now: float, last) -> float:
    if last is None:
        return 1.0
    age = now - last
    if 0.0 <= age < PULSE_S:
        return 1.0 + 0.5 * (1.0 - age / PULSE_S)
    return 1.0


def draw_drum_ring(frame, session: SequencerSession) -> None:
    h, w = frame.shape[:2]
    center, radius = session.drums.ring(w, h)
    pattern = session.store.drums[session.drums.track]
    cursor = session.scheduler.cursor.drum_step
    times = session.scheduler.drum_step_times
    now = session.clock.now()
    playing = not session.transport.state.drums_muted

    for i, on in enumerate(pattern):
        p = _pt(step_position(i, center, radius, len(pattern)))
        if on and playing and i == cursor:
            cv2.circle(frame, p, int(18 * _pulse(now, times[i])), PLAYING_COLOR, -1, cv2.LINE_AA)
        elif on:
            cv2.circle(frame, p, int(12 * _pulse(now, times[i])), ON_COLOR, -1, cv2.LINE_AA)
        else:
            cv2.circle(frame, p, 6, DIM_COLOR, -1, cv2.LINE_AA)
        if i == session.drums.selected_step:
            cv2.circle(frame, p, 22, TEXT_COLOR, 2, cv2.LINE_AA)

    draw_text(frame, session.drums.track.label, (int(center[0]) - 50, int(center[1])))


def draw_bpm_panel(frame, session: SequencerSession) -> None:
    h, w = frame.shape[:2]
    cfg = session.cfg
    x = w - cfg.bpm_panel_width_px // 2
    top = int(h * cfg.bpm_slider_top_norm)
    bottom = int(h * (cfg.bpm_slider_top_norm + cfg.bpm_slider_span_norm))
    cv2.line(frame, (x, top), (x, bottom), DIM_COLOR, 4, cv2.LINE_AA)

    a = (session.bpm - cfg.bpm_min) / max(1, cfg.bpm_max - cfg.bpm_min)
    knob_y = int(bottom - a * (bottom - top))
    cv2.circle(frame, (x, knob_y), 14, ON_COLOR, -1, cv2.LINE_AA)
    draw_text(frame, f"{session.bpm}", (x + 20, knob_y + 6), scale=0.5, thickness=1)


def draw_strings(frame, session: SequencerSession) -> None:
    h, w = frame.shape[:2]
    layout = session.strings.layout(w, h)
    timeline = session.store.timeline
    now = session.clock.now()

    for i, p in enumerate(layout.palette_positions()):
        cv2.circle(frame, _pt(p), int(layout.dot_radius_px), ON_COLOR, -1, cv2.LINE_AA)
        draw_text(frame, PITCH_NAMES[i], (int(p[0]) - 10, int(p[1]) - 26), scale=0.45, thickness=1)

    drag = session.strings.session
    cursor = session.scheduler.cursor.string_slot
    for i, p in enumerate(layout.slot_positions(len(timeline))):
        half_w = layout.section_width(i, len(timeline)) * layout.slot_half_width_fraction
        x0, y0 = int(p[0] - half_w), int(p[1] - layout.slot_half_height_px)
        x1, y1 = int(p[0] + half_w), int(p[1] + layout.slot_half_height_px)
        snapped = drag is not None and drag.snapped_slot == i
        border = TEXT_COLOR if snapped else (PLAYING_COLOR if i == cursor else DIM_COLOR)
        cv2.rectangle(frame, (x0, y0), (x1, y1), border, 2)
        note = timeline[i]
        if note is not None:
            r = int(layout.dot_radius_px * _pulse(now, timeline.last_triggered[i]))
            cv2.circle(frame, _pt(p), r, ON_COLOR, -1, cv2.LINE_AA)
            draw_text(frame, PITCH_NAMES[note], (int(p[0]) - 10, int(p[1]) + 6), scale=0.5, thickness=1)

    if drag is not None:
        cv2.circle(frame, _pt(drag.pointer), int(layout.dot_radius_px), PLAYING_COLOR, -1, cv2.LINE_AA)


def draw_overlay(frame, session: SequencerSession, signals: FrameSignals) -> np.ndarray:
    """Draw the sequencer state on a (mirrored) BGR frame; reads state only."""
    if session.mode is EditMode.DRUMS:
        draw_drum_ring(frame, session)
        draw_bpm_panel(frame, session)
    else:
        draw_strings(frame, session)

    if signals.pointer is not None:
        color = ON_COLOR if session.pinch.active else TEXT_COLOR
        cv2.circle(frame, _pt(signals.pointer), 8, color, -1, cv2.LINE_AA)

    state = session.transport.state
    hud = (
        f"{session.mode.value.upper()} | {session.bpm} BPM | "
        f"drums {'off' if state.drums_muted else 'on'} | strings {'off' if state.strings_muted else 'on'}"
    )
    draw_text(frame, hud, (12, 28))
    draw_text(frame, session.status, (12, frame.shape[0] - 16))
    return frame
