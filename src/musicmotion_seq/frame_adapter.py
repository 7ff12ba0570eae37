from __future__ import annotations

import math
from typing import Optional

from .types import FINGER_JOINTS, INDEX_TIP, THUMB_TIP, FrameSignals, LandmarkFrame
from .utils import to_canvas


def count_fingers_up(frame: LandmarkFrame) -> int:
    """
    Count extended fingers (0..5).

    A finger is up when its tip sits above (smaller y than) its proximal joint.
    Missing landmarks simply don't count.
    """

    up = 0
    for tip_idx, pip_idx in FINGER_JOINTS:
        tip = frame.get(tip_idx)
        pip = frame.get(pip_idx)
        if tip is not None and pip is not None and tip.y < pip.y:
            up += 1
    return up


def pinch_distance_px(frame: LandmarkFrame, width: float, height: float) -> Optional[float]:
    # Raw coordinates: mirroring cancels out in a distance.
    thumb = frame.get(THUMB_TIP)
    index = frame.get(INDEX_TIP)
    if thumb is None or index is None:
        return None
    dx = (thumb.x - index.x) * width
    dy = (thumb.y - index.y) * height
    return math.hypot(dx, dy)


def adapt_frame(frame: Optional[LandmarkFrame], width: float, height: float) -> FrameSignals:
    """Turn one landmark frame into pointer-space signals; `None` means no hand."""
    if frame is None or not frame.landmarks:
        return FrameSignals()

    thumb = frame.get(THUMB_TIP)
    index = frame.get(INDEX_TIP)
    pointer = to_canvas(thumb.x, thumb.y, width, height) if thumb is not None else None
    index_pointer = to_canvas(index.x, index.y, width, height) if index is not None else None

    return FrameSignals(
        fingers_up=count_fingers_up(frame),
        pinch_distance_px=pinch_distance_px(frame, width, height),
        pointer=pointer,
        index_pointer=index_pointer,
        index_y_norm=index.y if index is not None else None,
    )
