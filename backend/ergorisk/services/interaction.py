# Object-interaction analyzer: which detected objects are in the person's hands.

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

from ergorisk import config
from ergorisk.models.assessment import (
    POSE_SAMPLE_LENGTH,
    DetectedObject,
    HeldObject,
    Keypoint,
    KeypointIndex,
    ObjectInteraction,
)
from ergorisk.services.validity import is_present

logger = logging.getLogger(__name__)

# Class → (category, typical weight in kg) for things people pick up and carry
OBJECT_WEIGHTS: dict[str, tuple[str, float]] = {
    # Tools and equipment
    "hammer": ("tools", 0.5),
    "wrench": ("tools", 0.3),
    "screwdriver": ("tools", 0.15),
    "drill": ("tools", 1.5),
    "saw": ("tools", 0.8),
    "scissors": ("tools", 0.1),
    "knife": ("tools", 0.2),
    # Containers and boxes
    "box": ("containers", 0.2),
    "suitcase": ("containers", 2.0),
    "bag": ("containers", 0.5),
    "backpack": ("containers", 0.8),
    "bottle": ("containers", 0.5),
    "cup": ("containers", 0.2),
    # Electronics
    "laptop": ("electronics", 2.0),
    "phone": ("electronics", 0.2),
    "tablet": ("electronics", 0.6),
    "keyboard": ("electronics", 0.7),
    # Office
    "book": ("office", 0.4),
    # Fitness and sports
    "dumbbell": ("fitness", 5.0),
    "ball": ("sports", 0.4),
    # Accessories
    "umbrella": ("accessories", 0.3),
    # Too large to be held in the hands
    "chair": ("furniture", 5.0),
    "bench": ("furniture", 15.0),
}

UNKNOWN_CATEGORY = "unknown"
UNKNOWN_OBJECT_WEIGHT_KG = 0.5

HAND_HELD_CATEGORIES = {
    "tools",
    "containers",
    "electronics",
    "office",
    "fitness",
    "sports",
    "accessories",
    UNKNOWN_CATEGORY,
}

HAND_PROXIMITY_PX = 80.0
TORSO_PROXIMITY_PX = HAND_PROXIMITY_PX * 1.5


def object_profile(label: str) -> tuple[str, float]:
    """(category, weight kg) for a class label; unknown classes get the fallback."""
    return OBJECT_WEIGHTS.get(label.lower(), (UNKNOWN_CATEGORY, UNKNOWN_OBJECT_WEIGHT_KG))


def is_hand_held(label: str) -> bool:
    return object_profile(label)[0] in HAND_HELD_CATEGORIES


def weight_suggestions(objects: Sequence[DetectedObject]) -> list[dict[str, Any]]:
    """Per-object weight hints, for offering a manual weight to the user."""
    suggestions = []
    for obj in objects:
        category, weight = object_profile(obj.label)
        suggestions.append(
            {
                "name": obj.label,
                "category": category,
                "weight_kg": weight,
                "confidence": round(obj.confidence * 100),
            }
        )
    return suggestions


def analyze_interaction(
    objects: Sequence[DetectedObject],
    keypoints: Sequence[Keypoint],
    frame_width: int | None = None,
    frame_height: int | None = None,
) -> ObjectInteraction:
    """Associate detected objects with the wrists or torso of a pose.

    Boxes and keypoints share the normalized coordinate space; proximity is
    measured in pixels of a ``frame_width`` x ``frame_height`` frame. Every
    object given is considered; confidence and category filtering belong to
    the detector.
    """
    if not objects or len(keypoints) != POSE_SAMPLE_LENGTH:
        return ObjectInteraction()

    width = frame_width or config.FRAME_WIDTH
    height = frame_height or config.FRAME_HEIGHT

    def to_px(x: float, y: float) -> tuple[float, float]:
        return x * width, y * height

    anchors: list[tuple[str, tuple[float, float], float]] = []
    for name, idx in (("left_wrist", KeypointIndex.LEFT_WRIST), ("right_wrist", KeypointIndex.RIGHT_WRIST)):
        wrist = keypoints[idx]
        if is_present(wrist):
            anchors.append((name, to_px(wrist.x, wrist.y), HAND_PROXIMITY_PX))

    left_elbow, right_elbow = keypoints[KeypointIndex.LEFT_ELBOW], keypoints[KeypointIndex.RIGHT_ELBOW]
    if is_present(left_elbow) and is_present(right_elbow):
        torso = to_px((left_elbow.x + right_elbow.x) / 2, (left_elbow.y + right_elbow.y) / 2)
        anchors.append(("torso", torso, TORSO_PROXIMITY_PX))

    held: list[HeldObject] = []
    for obj in objects:
        category, weight = object_profile(obj.label)

        x, y, w, h = obj.bbox
        cx, cy = to_px(x + w / 2, y + h / 2)

        best: tuple[str, float] | None = None
        for name, (ax, ay), threshold in anchors:
            dist = math.hypot(cx - ax, cy - ay)
            if dist < threshold and (best is None or dist < best[1]):
                best = (name, dist)

        if best is not None:
            held.append(
                HeldObject(
                    detection=obj,
                    category=category,
                    estimated_weight_kg=weight,
                    anchor=best[0],
                    distance_px=best[1],
                )
            )

    total = sum(item.estimated_weight_kg for item in held)
    if held:
        logger.debug("Holding %d object(s), %.2f kg total", len(held), total)

    return ObjectInteraction(
        is_holding_object=bool(held),
        held_objects=held,
        total_estimated_weight_kg=total,
    )
