from .config import SequencerConfig
from .session import FrameResult, SequencerSession
from .types import EditMode, HandLandmark, LandmarkFrame, Track, TrackGroup

__all__ = [
    "SequencerConfig",
    "SequencerSession",
    "FrameResult",
    "EditMode",
    "HandLandmark",
    "LandmarkFrame",
    "Track",
    "TrackGroup",
]
