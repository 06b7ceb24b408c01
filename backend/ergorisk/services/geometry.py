# Geometry kernel: joint-angle primitives over normalized keypoints.

from __future__ import annotations

import math

from ergorisk.models.assessment import Keypoint

# Substituted when a vertex angle is undefined (coincident points).
NEUTRAL_ANGLE = 90.0


def vertical_deviation_angle(a: Keypoint, b: Keypoint) -> float:
    """Angle in degrees between the vector a→b and the vertical axis.

    Uses absolute deltas, so the result lies in [0, 90] and is unchanged by
    left/right mirroring.
    """
    return math.degrees(math.atan2(abs(b.x - a.x), abs(b.y - a.y)))


def vertex_angle(p1: Keypoint, p2: Keypoint, p3: Keypoint) -> float:
    """Interior angle at ``p2`` formed by p2→p1 and p2→p3, in [0, 180].

    Returns ``NEUTRAL_ANGLE`` when either vector has zero length.
    """
    v1x, v1y = p1.x - p2.x, p1.y - p2.y
    v2x, v2y = p3.x - p2.x, p3.y - p2.y

    mag1 = math.hypot(v1x, v1y)
    mag2 = math.hypot(v2x, v2y)
    if mag1 == 0 or mag2 == 0:
        return NEUTRAL_ANGLE

    cos_angle = (v1x * v2x + v1y * v2y) / (mag1 * mag2)
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_angle))))


def line_tilt(a: Keypoint, b: Keypoint) -> float:
    """Tilt of the segment a–b away from horizontal, in [0, 90] degrees."""
    return math.degrees(math.atan2(abs(b.y - a.y), abs(b.x - a.x)))


def midpoint(a: Keypoint, b: Keypoint) -> Keypoint:
    """Average position; confidence is that of the weaker point."""
    return Keypoint(
        x=(a.x + b.x) / 2,
        y=(a.y + b.y) / 2,
        confidence=min(a.confidence, b.confidence),
    )


def distance(a: Keypoint, b: Keypoint) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)
