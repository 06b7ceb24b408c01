# Load estimator & posture classifier: geometry-only guess at a carried weight.
#
# Purely heuristic. Distances are normalized by trunk length so the rules do
# not depend on how large the person appears in the frame.

from __future__ import annotations

import logging
from collections.abc import Sequence

from ergorisk.models.assessment import (
    POSE_SAMPLE_LENGTH,
    ArmPosition,
    Keypoint,
    KeypointIndex,
    LoadDirection,
    LoadEstimate,
    PostureAnalysis,
)
from ergorisk.services.geometry import distance, midpoint, vertex_angle, vertical_deviation_angle
from ergorisk.services.validity import is_present

logger = logging.getLogger(__name__)

FALLBACK_TRUNK_LENGTH = 0.25

# Elbow band (degrees) for a bent, load-bearing arm
LIFT_ELBOW_MIN = 50.0
LIFT_ELBOW_MAX = 140.0
CARRY_ELBOW_MAX = 150.0
SYMMETRY_TOLERANCE_DEG = 25.0

# Offsets in trunk lengths
WRIST_BELOW_SHOULDER = 0.3
WRIST_AWAY_FROM_SHOULDER = 0.15
EXTENDED_REACH = 0.5
OVERHEAD_MARGIN = 0.2
ASYMMETRY_WRIST_HEIGHT = 0.25
LATERAL_WRIST_OFFSET = 0.3
BEHIND_BODY_OFFSET = 0.1

ASYMMETRY_ELBOW_DEG = 40.0
FORWARD_LEAN_DEG = 20.0
SPINE_COMPENSATION_DEG = 15.0
SPINE_COMPENSATION_SEVERE_DEG = 30.0

# Weights in kg
LIFTING_BASE_KG = 10.0
CARRYING_BASE_KG = 5.0
OVERHEAD_BONUS_KG = 8.0
EXTENDED_BONUS_KG = 5.0
ASYMMETRY_BONUS_KG = 3.0
LEAN_LATERAL_BONUS_KG = 4.0
SPINE_BONUS_KG = 1.5
SPINE_SEVERE_BONUS_KG = 3.0

MIN_AGREEING_INDICATORS = 2

DETECTED_CONFIDENCE = 0.7
UNDETECTED_CONFIDENCE = 0.3


def _no_load() -> LoadEstimate:
    return LoadEstimate(estimated_weight_kg=0.0, confidence=UNDETECTED_CONFIDENCE)


def estimate_load(keypoints: Sequence[Keypoint]) -> LoadEstimate:
    """Classify lifting/carrying posture and guess the carried weight.

    The weight is emitted only when a grip posture (lifting or carrying) is
    seen and at least one other indicator agrees.
    """
    if len(keypoints) != POSE_SAMPLE_LENGTH:
        return _no_load()

    kp = keypoints
    ls, rs = kp[KeypointIndex.LEFT_SHOULDER], kp[KeypointIndex.RIGHT_SHOULDER]
    le, re = kp[KeypointIndex.LEFT_ELBOW], kp[KeypointIndex.RIGHT_ELBOW]
    lw, rw = kp[KeypointIndex.LEFT_WRIST], kp[KeypointIndex.RIGHT_WRIST]
    lh, rh = kp[KeypointIndex.LEFT_HIP], kp[KeypointIndex.RIGHT_HIP]

    if not all(is_present(p) for p in (ls, rs, le, re, lw, rw)):
        return _no_load()

    shoulder_mid = midpoint(ls, rs)
    hips_present = is_present(lh) and is_present(rh)
    hip_mid = midpoint(lh, rh) if hips_present else None
    trunk_length = distance(shoulder_mid, hip_mid) if hip_mid is not None else 0.0
    if trunk_length <= 0:
        trunk_length = FALLBACK_TRUNK_LENGTH

    left_elbow = vertex_angle(ls, le, lw)
    right_elbow = vertex_angle(rs, re, rw)

    def below_and_away(shoulder: Keypoint, wrist: Keypoint) -> bool:
        return (
            wrist.y - shoulder.y > WRIST_BELOW_SHOULDER * trunk_length
            and abs(wrist.x - shoulder.x) > WRIST_AWAY_FROM_SHOULDER * trunk_length
        )

    both_bent = all(LIFT_ELBOW_MIN <= a <= LIFT_ELBOW_MAX for a in (left_elbow, right_elbow))
    coordinated = abs(left_elbow - right_elbow) <= SYMMETRY_TOLERANCE_DEG
    overhead = any(
        shoulder.y - wrist.y > OVERHEAD_MARGIN * trunk_length
        for shoulder, wrist in ((ls, lw), (rs, rw))
    )
    is_lifting = overhead or (
        both_bent and coordinated and below_and_away(ls, lw) and below_and_away(rs, rw)
    )

    # Forearms bent and wrists held in front of the torso, between shoulders and hips.
    waist_y = hip_mid.y if hip_mid is not None else shoulder_mid.y + trunk_length
    is_carrying = (
        not is_lifting
        and all(a < CARRY_ELBOW_MAX for a in (left_elbow, right_elbow))
        and all(
            shoulder.y < wrist.y <= waist_y
            and abs(wrist.x - shoulder.x) <= WRIST_AWAY_FROM_SHOULDER * trunk_length
            for shoulder, wrist in ((ls, lw), (rs, rw))
        )
    )

    reach = max(abs(lw.x - ls.x), abs(rw.x - rs.x))
    extended = reach > EXTENDED_REACH * trunk_length
    if overhead:
        arm_position = ArmPosition.OVERHEAD
    elif extended:
        arm_position = ArmPosition.EXTENDED
    else:
        arm_position = ArmPosition.CLOSE

    strong_asymmetry = (
        abs(left_elbow - right_elbow) > ASYMMETRY_ELBOW_DEG
        or abs(lw.y - rw.y) > ASYMMETRY_WRIST_HEIGHT * trunk_length
    )

    spine_deviation = vertical_deviation_angle(hip_mid, shoulder_mid) if hip_mid is not None else 0.0
    wrist_mid_x = (lw.x + rw.x) / 2
    anchor_x = hip_mid.x if hip_mid is not None else shoulder_mid.x
    lateral_offset = abs(wrist_mid_x - anchor_x)
    lean_lateral = (
        spine_deviation > FORWARD_LEAN_DEG and lateral_offset > LATERAL_WRIST_OFFSET * trunk_length
    )
    spine_compensation = spine_deviation > SPINE_COMPENSATION_DEG

    # The nose sits ahead of the shoulders in a side view; wrists on the other
    # side of the hips mean the load is held behind the body.
    facing = kp[KeypointIndex.NOSE].x - shoulder_mid.x if is_present(kp[KeypointIndex.NOSE]) else 0.0
    behind = (
        abs(facing) > BEHIND_BODY_OFFSET * trunk_length
        and facing * (wrist_mid_x - anchor_x) < 0
        and lateral_offset > BEHIND_BODY_OFFSET * trunk_length
    )
    if behind:
        load_direction = LoadDirection.BACK
    elif strong_asymmetry:
        load_direction = LoadDirection.SIDE
    else:
        load_direction = LoadDirection.FRONT

    posture = PostureAnalysis(
        is_lifting=is_lifting,
        is_carrying=is_carrying,
        arm_position=arm_position,
        spine_deviation_deg=spine_deviation,
        load_direction=load_direction,
    )

    indicators = [
        name
        for name, hit in (
            ("grip_posture", is_lifting or is_carrying),
            ("extended_reach", extended),
            ("asymmetry", strong_asymmetry),
            ("lean_with_lateral_offset", lean_lateral),
            ("spine_compensation", spine_compensation),
        )
        if hit
    ]

    weight = 0.0
    gripping = is_lifting or is_carrying
    if gripping and len(indicators) >= MIN_AGREEING_INDICATORS:
        if is_lifting:
            weight = LIFTING_BASE_KG
        elif is_carrying:
            weight = CARRYING_BASE_KG
        if overhead:
            weight += OVERHEAD_BONUS_KG
        if extended:
            weight += EXTENDED_BONUS_KG
        if strong_asymmetry:
            weight += ASYMMETRY_BONUS_KG
        if lean_lateral:
            weight += LEAN_LATERAL_BONUS_KG
        if spine_deviation > SPINE_COMPENSATION_SEVERE_DEG:
            weight += SPINE_SEVERE_BONUS_KG
        elif spine_compensation:
            weight += SPINE_BONUS_KG
    elif indicators:
        logger.debug("Load cue %s suppressed, needs a grip and %d agreeing indicators", indicators, MIN_AGREEING_INDICATORS)

    return LoadEstimate(
        estimated_weight_kg=weight,
        confidence=DETECTED_CONFIDENCE if is_lifting or is_carrying else UNDETECTED_CONFIDENCE,
        posture=posture,
        indicators=indicators,
    )
