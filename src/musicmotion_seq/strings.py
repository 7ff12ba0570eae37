"""
Drag-and-drop note editing for the strings timeline.

A pinch-down over a palette dot or an occupied slot picks a note up; while
the pinch is held the note follows the pointer and snaps (advisory only) to
the nearest slot; releasing the pinch drops it. Dropping below the last
timeline row deletes the note.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from . import config
from .gates import BoolEdgeGate
from .pattern import StringTimeline
from .transport import TransportManager
from .types import DragOrigin, DragSession, Point2, TrackGroup
from .utils import dist

logger = logging.getLogger(__name__)


class StringLayout:
    """Canvas geometry of the palette row and the timeline rows."""

    def __init__(
        self,
        width: float,
        height: float,
        *,
        palette_size: int = config.PALETTE_SIZE,
        slots_per_row: int = config.SLOTS_PER_ROW,
        margin_fraction: float = config.LAYOUT_MARGIN_FRACTION,
        palette_y_fraction: float = config.PALETTE_Y_FRACTION,
        dot_radius_px: float = config.PALETTE_DOT_RADIUS_PX,
        hit_margin_px: float = config.PALETTE_HIT_MARGIN_PX,
        timeline_y_fraction: float = config.TIMELINE_Y_FRACTION,
        row_spacing_fraction: float = config.TIMELINE_ROW_SPACING_FRACTION,
        slot_half_width_fraction: float = config.SLOT_HALF_WIDTH_FRACTION,
        slot_half_height_px: float = config.SLOT_HALF_HEIGHT_PX,
        snap_vertical_weight: float = config.SNAP_VERTICAL_WEIGHT,
        delete_margin_px: float = config.DELETE_MARGIN_PX,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.palette_size = int(palette_size)
        self.slots_per_row = int(slots_per_row)
        self.margin = self.width * float(margin_fraction)
        self.palette_y = self.height * float(palette_y_fraction)
        self.dot_radius_px = float(dot_radius_px)
        self.hit_margin_px = float(hit_margin_px)
        self.timeline_y = self.height * float(timeline_y_fraction)
        self.row_spacing = self.height * float(row_spacing_fraction)
        self.slot_half_width_fraction = float(slot_half_width_fraction)
        self.slot_half_height_px = float(slot_half_height_px)
        self.snap_vertical_weight = float(snap_vertical_weight)
        self.delete_margin_px = float(delete_margin_px)

    @classmethod
    def from_config(cls, width: float, height: float, cfg: config.SequencerConfig) -> "StringLayout":
        return cls(
            width,
            height,
            palette_size=cfg.palette_size,
            slots_per_row=cfg.slots_per_row,
            margin_fraction=cfg.layout_margin_fraction,
            palette_y_fraction=cfg.palette_y_fraction,
            dot_radius_px=cfg.palette_dot_radius_px,
            hit_margin_px=cfg.palette_hit_margin_px,
            timeline_y_fraction=cfg.timeline_y_fraction,
            row_spacing_fraction=cfg.timeline_row_spacing_fraction,
            slot_half_width_fraction=cfg.slot_half_width_fraction,
            slot_half_height_px=cfg.slot_half_height_px,
            snap_vertical_weight=cfg.snap_vertical_weight,
            delete_margin_px=cfg.delete_margin_px,
        )

    @property
    def usable_width(self) -> float:
        return max(1.0, self.width - 2.0 * self.margin)

    # --- palette ---
    def palette_positions(self) -> List[Point2]:
        step = self.usable_width / self.palette_size
        return [(self.margin + (i + 0.5) * step, self.palette_y) for i in range(self.palette_size)]

    def palette_hit(self, pointer: Point2) -> Optional[int]:
        reach = self.dot_radius_px + self.hit_margin_px
        best: Optional[int] = None
        best_d = reach
        for i, (x, y) in enumerate(self.palette_positions()):
            d = dist(pointer, (x, y))
            if d <= best_d:
                best, best_d = i, d
        return best

    # --- timeline ---
    def row_count(self, length: int) -> int:
        return max(1, (length + self.slots_per_row - 1) // self.slots_per_row)

    def section_width(self, slot: int, length: int) -> float:
        row = slot // self.slots_per_row
        in_row = min(self.slots_per_row, length - row * self.slots_per_row)
        return self.usable_width / max(1, in_row)

    def slot_position(self, slot: int, length: int) -> Point2:
        row, col = divmod(slot, self.slots_per_row)
        w = self.section_width(slot, length)
        return (self.margin + (col + 0.5) * w, self.timeline_y + row * self.row_spacing)

    def slot_positions(self, length: int) -> List[Point2]:
        return [self.slot_position(i, length) for i in range(length)]

    def lowest_row_y(self, length: int) -> float:
        return self.timeline_y + (self.row_count(length) - 1) * self.row_spacing

    def in_delete_zone(self, pointer: Point2, length: int) -> bool:
        return pointer[1] > self.lowest_row_y(length) + self.delete_margin_px

    def nearest_slot(self, pointer: Point2, length: int, *, occupied: Optional[StringTimeline] = None) -> Optional[int]:
        """
        Closest slot whose rectangular hitbox contains `pointer`, scored by
        |dx| + weight * |dy| so horizontally aligned slots win ties. With
        `occupied`, only slots holding a note qualify.
        """

        best: Optional[int] = None
        best_score = math.inf
        for i in range(length):
            if occupied is not None and occupied[i] is None:
                continue
            x, y = self.slot_position(i, length)
            dx = abs(pointer[0] - x)
            dy = abs(pointer[1] - y)
            if dx > self.section_width(i, length) * self.slot_half_width_fraction or dy > self.slot_half_height_px:
                continue
            score = dx + self.snap_vertical_weight * dy
            if score < best_score:
                best, best_score = i, score
        return best


class DropOutcome(enum.Enum):
    PLACED = "placed"
    RETURNED = "returned"
    DELETED = "deleted"
    DISCARDED = "discarded"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StringEdit:
    outcome: DropOutcome
    note: int
    slot: Optional[int] = None


class StringController:
    """Idle -> (pinch-down on a note) -> Dragging -> (pinch-up) -> Idle."""

    def __init__(
        self,
        timeline: StringTimeline,
        transport: TransportManager,
        cfg: Optional[config.SequencerConfig] = None,
    ) -> None:
        self.timeline = timeline
        self.transport = transport
        self.cfg = cfg or config.SequencerConfig()
        self.session: Optional[DragSession] = None
        self._edges = BoolEdgeGate()

    @property
    def dragging(self) -> bool:
        return self.session is not None

    @property
    def was_pinching(self) -> bool:
        return self._edges.prev

    def layout(self, width: float, height: float) -> StringLayout:
        return StringLayout.from_config(width, height, self.cfg)

    def update(self, pinch_active: bool, pointer: Optional[Point2], width: float, height: float) -> Optional[StringEdit]:
        if pointer is None:
            return self.reset()

        layout = self.layout(width, height)
        edge = self._edges.update(pinch_active)
        if edge == "down":
            if self.session is None:
                self._pick_up(pointer, layout)
        elif edge == "up":
            if self.session is not None:
                return self._drop(pointer, layout)
        elif pinch_active and self.session is not None:
            self._drag(pointer, layout)
        return None

    def cancel(self, *, restore_origin: bool = False) -> Optional[StringEdit]:
        """
        Abandon an open drag without placing the note.

        With `restore_origin`, a note lifted from a slot goes back there if
        that slot still exists and is empty; otherwise the note is dropped.
        """
        session = self.session
        self.session = None
        if session is None:
            return None
        origin = session.origin_slot
        if restore_origin and origin is not None and origin < len(self.timeline) and self.timeline[origin] is None:
            self.timeline.set_slot(origin, session.carried_note)
            logger.debug("Drag cancelled, note %d restored to slot %d", session.carried_note, origin)
            return StringEdit(DropOutcome.RETURNED, session.carried_note, origin)
        logger.debug("Drag cancelled, note %d dropped", session.carried_note)
        return StringEdit(DropOutcome.CANCELLED, session.carried_note, None)

    def reset(self, *, restore_origin: bool = False) -> Optional[StringEdit]:
        self._edges.reset()
        return self.cancel(restore_origin=restore_origin)

    # --- phases ---
    def _pick_up(self, pointer: Point2, layout: StringLayout) -> None:
        length = len(self.timeline)
        idx = layout.palette_hit(pointer)
        if idx is not None:
            self.session = DragSession(origin=DragOrigin.PALETTE, carried_note=idx, pointer=pointer)
        else:
            slot = layout.nearest_slot(pointer, length, occupied=self.timeline)
            if slot is None:
                return
            note = self.timeline.clear_slot(slot)
            self.session = DragSession(origin=DragOrigin.SLOT, carried_note=note, pointer=pointer, origin_slot=slot)
        self.session.snapped_slot = layout.nearest_slot(pointer, length)
        logger.debug("Picked up note %d from %s", self.session.carried_note, self.session.origin.value)

    def _drag(self, pointer: Point2, layout: StringLayout) -> None:
        self.session.pointer = pointer
        self.session.snapped_slot = layout.nearest_slot(pointer, len(self.timeline))

    def _drop(self, pointer: Point2, layout: StringLayout) -> StringEdit:
        session = self.session
        self.session = None
        session.pointer = pointer
        note = session.carried_note
        length = len(self.timeline)

        if layout.in_delete_zone(pointer, length):
            return StringEdit(DropOutcome.DELETED, note, None)

        # Re-validate: the timeline may have shrunk since the last drag frame.
        snapped = session.snapped_slot
        if snapped is not None and snapped < length:
            self.timeline.set_slot(snapped, note)
            self.transport.play(TrackGroup.STRINGS)
            return StringEdit(DropOutcome.PLACED, note, snapped)

        origin = session.origin_slot
        if origin is not None and origin < length and self.timeline[origin] is None:
            self.timeline.set_slot(origin, note)
            return StringEdit(DropOutcome.RETURNED, note, origin)

        return StringEdit(DropOutcome.DISCARDED, note, None)
