# Pose estimation service: wraps MediaPipe Pose and emits COCO-17 PoseSamples.
# Swapping models: subclass PoseService and return the same 17 normalized keypoints.

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from ergorisk.models.assessment import Keypoint, KeypointIndex

logger = logging.getLogger(__name__)

# COCO-17 index → MediaPipe Pose landmark index
MEDIAPIPE_TO_COCO: dict[KeypointIndex, int] = {
    KeypointIndex.NOSE: 0,
    KeypointIndex.LEFT_EYE: 2,
    KeypointIndex.RIGHT_EYE: 5,
    KeypointIndex.LEFT_EAR: 7,
    KeypointIndex.RIGHT_EAR: 8,
    KeypointIndex.LEFT_SHOULDER: 11,
    KeypointIndex.RIGHT_SHOULDER: 12,
    KeypointIndex.LEFT_ELBOW: 13,
    KeypointIndex.RIGHT_ELBOW: 14,
    KeypointIndex.LEFT_WRIST: 15,
    KeypointIndex.RIGHT_WRIST: 16,
    KeypointIndex.LEFT_HIP: 23,
    KeypointIndex.RIGHT_HIP: 24,
    KeypointIndex.LEFT_KNEE: 25,
    KeypointIndex.RIGHT_KNEE: 26,
    KeypointIndex.LEFT_ANKLE: 27,
    KeypointIndex.RIGHT_ANKLE: 28,
}


def _unit(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def landmarks_to_keypoints(landmarks: Sequence[Any]) -> list[Keypoint]:
    """Convert MediaPipe's 33 normalized landmarks into 17 COCO keypoints.

    Landmarks outside the frame are clamped to its edge; visibility becomes
    the keypoint confidence.
    """
    return [
        Keypoint(
            x=_unit(landmarks[MEDIAPIPE_TO_COCO[idx]].x),
            y=_unit(landmarks[MEDIAPIPE_TO_COCO[idx]].y),
            confidence=_unit(landmarks[MEDIAPIPE_TO_COCO[idx]].visibility),
        )
        for idx in KeypointIndex
    ]


class PoseService:
    """Human pose estimation using MediaPipe Pose."""

    def __init__(
        self,
        static_image_mode: bool = True,
        model_complexity: int = 2,
        min_detection_confidence: float = 0.5,
    ) -> None:
        import mediapipe as mp

        logger.info("Initialising MediaPipe Pose (complexity=%d)", model_complexity)
        self.pose = mp.solutions.pose.Pose(
            static_image_mode=static_image_mode,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
        )

    def estimate(self, image_rgb: np.ndarray) -> list[Keypoint] | None:
        """Return the 17 keypoints of the first detected person, or None."""
        results = self.pose.process(image_rgb)
        if not results.pose_landmarks:
            return None
        return landmarks_to_keypoints(results.pose_landmarks.landmark)

    def close(self) -> None:
        self.pose.close()
