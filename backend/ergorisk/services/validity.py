# Validity gate: confidence filtering, side selection, required-point check.

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from ergorisk.models.assessment import (
    KEYPOINT_NAMES,
    POSE_SAMPLE_LENGTH,
    AssessmentMethod,
    Indeterminate,
    Keypoint,
    KeypointIndex,
    Side,
)
from ergorisk.services.geometry import midpoint

logger = logging.getLogger(__name__)

# Points at or below this confidence are treated as absent.
CONFIDENCE_THRESHOLD = 0.3

# Tie in side confidence resolves to this side.
DEFAULT_SIDE = Side.LEFT

_SIDED: dict[str, tuple[KeypointIndex, KeypointIndex]] = {
    "eye": (KeypointIndex.LEFT_EYE, KeypointIndex.RIGHT_EYE),
    "ear": (KeypointIndex.LEFT_EAR, KeypointIndex.RIGHT_EAR),
    "shoulder": (KeypointIndex.LEFT_SHOULDER, KeypointIndex.RIGHT_SHOULDER),
    "elbow": (KeypointIndex.LEFT_ELBOW, KeypointIndex.RIGHT_ELBOW),
    "wrist": (KeypointIndex.LEFT_WRIST, KeypointIndex.RIGHT_WRIST),
    "hip": (KeypointIndex.LEFT_HIP, KeypointIndex.RIGHT_HIP),
    "knee": (KeypointIndex.LEFT_KNEE, KeypointIndex.RIGHT_KNEE),
    "ankle": (KeypointIndex.LEFT_ANKLE, KeypointIndex.RIGHT_ANKLE),
}


def sided_index(part: str, side: Side) -> KeypointIndex:
    """Index of a bilateral body part (``"elbow"``, ``"knee"``...) on ``side``."""
    left, right = _SIDED[part]
    return left if side is Side.LEFT else right


def is_present(kp: Keypoint | None) -> bool:
    return kp is not None and kp.confidence > CONFIDENCE_THRESHOLD


def select_side(keypoints: Sequence[Keypoint]) -> Side:
    """Pick the arm with the higher mean shoulder/elbow/wrist confidence."""

    def arm_confidence(side: Side) -> float:
        parts = ("shoulder", "elbow", "wrist")
        return sum(keypoints[sided_index(p, side)].confidence for p in parts) / len(parts)

    left, right = arm_confidence(Side.LEFT), arm_confidence(Side.RIGHT)
    if left == right:
        return DEFAULT_SIDE
    return Side.LEFT if left > right else Side.RIGHT


class GatedPose(BaseModel):
    """A PoseSample that passed the gate, with the chosen side resolved."""

    model_config = ConfigDict(frozen=True)

    method: AssessmentMethod
    side: Side
    keypoints: tuple[Keypoint, ...]
    nose: Keypoint
    shoulder: Keypoint
    elbow: Keypoint
    wrist: Keypoint
    hip: Keypoint
    knee: Keypoint | None = None
    ankle: Keypoint | None = None
    shoulder_mid: Keypoint
    hip_mid: Keypoint

    def part(self, name: str, side: Side | None = None) -> Keypoint:
        return self.keypoints[sided_index(name, side or self.side)]

    def opposite(self, name: str) -> Keypoint | None:
        """The other side's point, or None when it is not confidently tracked."""
        kp = self.part(name, self.side.opposite)
        return kp if is_present(kp) else None


def gate(keypoints: Sequence[Keypoint], method: AssessmentMethod) -> GatedPose | Indeterminate:
    """Decide whether ``keypoints`` can be scored with ``method``.

    Returns a GatedPose, or an Indeterminate result naming why not.
    """
    if len(keypoints) != POSE_SAMPLE_LENGTH:
        logger.debug("Rejecting pose sample of length %d", len(keypoints))
        return Indeterminate(method=method, reason="malformed_length")

    side = select_side(keypoints)

    required = [
        KeypointIndex.NOSE,
        sided_index("shoulder", side),
        sided_index("elbow", side),
        sided_index("wrist", side),
        KeypointIndex.LEFT_HIP,
        KeypointIndex.RIGHT_HIP,
    ]
    if method is AssessmentMethod.REBA:
        required += [sided_index("knee", side), sided_index("ankle", side)]

    missing = [KEYPOINT_NAMES[idx] for idx in required if not is_present(keypoints[idx])]
    if missing:
        logger.debug("Rejecting pose sample, low-confidence keypoints: %s", missing)
        return Indeterminate(method=method, reason="low_confidence", missing_keypoints=missing)

    shoulder = keypoints[sided_index("shoulder", side)]
    other_shoulder = keypoints[sided_index("shoulder", side.opposite)]
    shoulder_mid = midpoint(shoulder, other_shoulder) if is_present(other_shoulder) else shoulder

    whole_body = method is AssessmentMethod.REBA
    return GatedPose(
        method=method,
        side=side,
        keypoints=tuple(keypoints),
        nose=keypoints[KeypointIndex.NOSE],
        shoulder=shoulder,
        elbow=keypoints[sided_index("elbow", side)],
        wrist=keypoints[sided_index("wrist", side)],
        hip=keypoints[sided_index("hip", side)],
        knee=keypoints[sided_index("knee", side)] if whole_body else None,
        ankle=keypoints[sided_index("ankle", side)] if whole_body else None,
        shoulder_mid=shoulder_mid,
        hip_mid=midpoint(keypoints[KeypointIndex.LEFT_HIP], keypoints[KeypointIndex.RIGHT_HIP]),
    )
