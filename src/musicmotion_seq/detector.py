from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import cv2

from .model_assets import ensure_hand_landmarker_task
from .types import HandLandmark, LandmarkFrame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SolutionsBackend:
    hands: object


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    landmarker: object


def _create_solutions_backend(min_detection_confidence: float, min_tracking_confidence: float) -> Optional[_SolutionsBackend]:
    import mediapipe as mp  # type: ignore

    if not hasattr(mp, "solutions"):
        return None
    hands = mp.solutions.hands.Hands(
        static_image_mode=False,
        max_num_hands=1,
        model_complexity=1,
        min_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _SolutionsBackend(hands=hands)


def _create_tasks_backend(model_path: str, min_detection_confidence: float, min_tracking_confidence: float) -> _TasksBackend:
    """Fallback for MediaPipe builds without `mp.solutions` (needs a `.task` model on disk)."""

    import mediapipe as mp  # type: ignore
    from mediapipe.tasks.python import BaseOptions  # type: ignore
    from mediapipe.tasks.python.vision import HandLandmarker, HandLandmarkerOptions, RunningMode  # type: ignore

    options = HandLandmarkerOptions(
        base_options=BaseOptions(model_asset_path=ensure_hand_landmarker_task(model_path)),
        running_mode=RunningMode.VIDEO,
        num_hands=1,
        min_hand_detection_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return _TasksBackend(mp=mp, landmarker=HandLandmarker.create_from_options(options))


def _to_frame(landmarks, handedness: Optional[str]) -> LandmarkFrame:
    lms: List[HandLandmark] = [
        HandLandmark(idx=i, x=float(lm.x), y=float(lm.y), z=float(getattr(lm, "z", 0.0)))
        for i, lm in enumerate(landmarks)
    ]
    return LandmarkFrame(landmarks=lms, handedness=handedness)


class LandmarkSource:
    """
    Per-frame hand landmarks from MediaPipe: zero or one hand.

    Input frames are **BGR** images straight from the camera (not mirrored);
    mirroring happens later, in pointer space.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        tasks_model_path: str = "models/hand_landmarker.task",
        frame_interval_ms: int = 33,
    ) -> None:
        self._solutions = _create_solutions_backend(min_detection_confidence, min_tracking_confidence)
        self._tasks: Optional[_TasksBackend] = None
        self._timestamp_ms = 0
        self._frame_interval_ms = int(frame_interval_ms)

        if self._solutions is None:
            try:
                self._tasks = _create_tasks_backend(tasks_model_path, min_detection_confidence, min_tracking_confidence)
            except Exception as e:
                raise RuntimeError(
                    "Could not initialize MediaPipe hand tracking.\n"
                    "This mediapipe build has no `mp.solutions`, and the Tasks HandLandmarker fallback\n"
                    f"failed with model path {tasks_model_path!r}."
                ) from e
            logger.info("Using MediaPipe Tasks HandLandmarker backend")

    def close(self) -> None:
        if self._solutions is not None:
            self._solutions.hands.close()
        if self._tasks is not None:
            self._tasks.landmarker.close()

    def __enter__(self) -> "LandmarkSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def read(self, frame_bgr) -> Optional[LandmarkFrame]:
        """Landmarks of the first tracked hand, or None when no hand is visible."""
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

        if self._solutions is not None:
            results = self._solutions.hands.process(frame_rgb)
            if not results.multi_hand_landmarks:
                return None
            label = None
            if results.multi_handedness and results.multi_handedness[0].classification:
                label = getattr(results.multi_handedness[0].classification[0], "label", None)
            return _to_frame(results.multi_hand_landmarks[0].landmark, label)

        mp = self._tasks.mp
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        # VIDEO mode requires monotonically increasing timestamps.
        self._timestamp_ms += self._frame_interval_ms
        result = self._tasks.landmarker.detect_for_video(image, self._timestamp_ms)

        hands = getattr(result, "hand_landmarks", None) or []
        if not hands:
            return None
        handedness = getattr(result, "handedness", None) or []
        label = None
        if handedness and handedness[0]:
            label = getattr(handedness[0][0], "category_name", None)
        return _to_frame(hands[0], label)
