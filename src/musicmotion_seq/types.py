from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


Point2 = Tuple[float, float]

THUMB_TIP = 4
INDEX_TIP = 8
# (tip, proximal joint) for thumb, index, middle, ring, pinky
FINGER_JOINTS: List[Tuple[int, int]] = [(4, 3), (8, 6), (12, 10), (16, 14), (20, 18)]


@dataclass(frozen=True)
class HandLandmark:
    """A single hand landmark in normalized [0, 1] image space."""

    idx: int
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class LandmarkFrame:
    """One frame of a single tracked hand (normally 21 landmarks)."""

    landmarks: List[HandLandmark]
    handedness: Optional[str] = None  # "Left" / "Right" (may be None)

    def get(self, idx: int) -> Optional[HandLandmark]:
        if 0 <= idx < len(self.landmarks):
            return self.landmarks[idx]
        return None

    @staticmethod
    def from_points(points, handedness: Optional[str] = None) -> "LandmarkFrame":
        lms: List[HandLandmark] = []
        for i, p in enumerate(points):
            z = float(p[2]) if len(p) > 2 else 0.0
            lms.append(HandLandmark(idx=i, x=float(p[0]), y=float(p[1]), z=z))
        return LandmarkFrame(landmarks=lms, handedness=handedness)


@dataclass(frozen=True)
class FrameSignals:
    """Scalar signals derived from one landmark frame."""

    fingers_up: int = 0
    pinch_distance_px: Optional[float] = None
    pointer: Optional[Point2] = None  # mirrored thumb tip, canvas px
    index_pointer: Optional[Point2] = None  # mirrored index tip, canvas px
    index_y_norm: Optional[float] = None

    @property
    def has_hand(self) -> bool:
        return self.pointer is not None or self.pinch_distance_px is not None


class Track(enum.Enum):
    KICK = "kick"
    CLOSED_HAT = "closedHat"
    OPEN_HAT = "openHat"
    SNARE = "snare"

    @property
    def label(self) -> str:
        return _TRACK_LABELS[self]


_TRACK_LABELS = {
    Track.KICK: "KICK",
    Track.CLOSED_HAT: "CLOSED HAT",
    Track.OPEN_HAT: "OPEN HAT",
    Track.SNARE: "SNARE",
}

# Step order of the grid; also the iteration order of a DrumPattern.
DRUM_TRACKS: Tuple[Track, ...] = (Track.KICK, Track.CLOSED_HAT, Track.OPEN_HAT, Track.SNARE)

STRINGS_ID = "strings"


class TrackGroup(enum.Enum):
    DRUMS = "drums"
    STRINGS = "strings"


class EditMode(enum.Enum):
    DRUMS = "drums"
    STRINGS = "strings"


class DragOrigin(enum.Enum):
    PALETTE = "palette"
    SLOT = "slot"


PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


@dataclass
class DragSession:
    """A note being carried between pick-up and drop."""

    origin: DragOrigin
    carried_note: int  # pitch class 0..11
    pointer: Point2
    origin_slot: Optional[int] = None
    snapped_slot: Optional[int] = None


@dataclass(frozen=True)
class TriggerCommand:
    track_id: str
    pitch: Optional[int]
    duration: float
    timestamp: float


@dataclass(frozen=True)
class BeatEvent:
    """Read-only record of a scheduler tick that produced sound."""

    kind: TrackGroup
    index: int
    timestamp: float
    track_ids: Tuple[str, ...] = field(default_factory=tuple)
