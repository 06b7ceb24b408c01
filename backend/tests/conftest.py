"""Shared pose fixtures.

Coordinates are normalized image coordinates (y grows downwards). The
subject's left side sits at larger x. The left arm is tracked slightly more
confidently than the right so side selection is deterministic.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from ergorisk.models.assessment import KEYPOINT_NAMES, Keypoint

NEUTRAL_POSITIONS: dict[str, tuple[float, float]] = {
    "nose": (0.5, 0.15),
    "left_eye": (0.52, 0.13),
    "right_eye": (0.48, 0.13),
    "left_ear": (0.54, 0.14),
    "right_ear": (0.46, 0.14),
    "left_shoulder": (0.6, 0.3),
    "right_shoulder": (0.4, 0.3),
    "left_elbow": (0.6, 0.45),
    "right_elbow": (0.4, 0.45),
    "left_wrist": (0.6, 0.6),
    "right_wrist": (0.4, 0.6),
    "left_hip": (0.6, 0.6),
    "right_hip": (0.4, 0.6),
    "left_knee": (0.6, 0.78),
    "right_knee": (0.4, 0.78),
    "left_ankle": (0.6, 0.95),
    "right_ankle": (0.4, 0.95),
}

DEFAULT_CONFIDENCE = 0.9
RIGHT_ARM_CONFIDENCE = 0.8
RIGHT_ARM = ("right_shoulder", "right_elbow", "right_wrist")

UPPER_BODY = (
    "nose", "left_eye", "right_eye", "left_ear", "right_ear",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
)

PoseFactory = Callable[..., list[Keypoint]]


def build_pose(
    positions: dict[str, tuple[float, float]] | None = None,
    confidences: dict[str, float] | None = None,
    shift_upper_body: float = 0.0,
) -> list[Keypoint]:
    """Neutral standing pose with optional per-point overrides.

    ``shift_upper_body`` moves everything above the hips sideways, which
    leans the trunk without bending any limb.
    """
    merged = {**NEUTRAL_POSITIONS, **(positions or {})}
    confidences = confidences or {}
    keypoints = []
    for name in KEYPOINT_NAMES:
        x, y = merged[name]
        if name in UPPER_BODY and name not in (positions or {}):
            x += shift_upper_body
        default = RIGHT_ARM_CONFIDENCE if name in RIGHT_ARM else DEFAULT_CONFIDENCE
        keypoints.append(Keypoint(x=x, y=y, confidence=confidences.get(name, default)))
    return keypoints


def mirror(keypoints: list[Keypoint]) -> list[Keypoint]:
    """Reflect a pose across the vertical centre line, swapping left and right."""
    mirrored = []
    for name in KEYPOINT_NAMES:
        if name.startswith("left_"):
            source = "right_" + name[len("left_"):]
        elif name.startswith("right_"):
            source = "left_" + name[len("right_"):]
        else:
            source = name
        kp = keypoints[KEYPOINT_NAMES.index(source)]
        mirrored.append(Keypoint(x=1.0 - kp.x, y=kp.y, confidence=kp.confidence))
    return mirrored


@pytest.fixture
def make_pose() -> PoseFactory:
    return build_pose


@pytest.fixture
def neutral_pose() -> list[Keypoint]:
    return build_pose()


@pytest.fixture
def raised_arm_pose() -> list[Keypoint]:
    """Left upper arm raised 95° from hanging, forearm straight."""
    return build_pose(
        {
            "left_elbow": (0.7494, 0.2869),
            "left_wrist": (0.8989, 0.2738),
        }
    )


@pytest.fixture
def mirror_pose() -> Callable[[list[Keypoint]], list[Keypoint]]:
    return mirror
