# Method B scorer (REBA-style, whole body with legs and load/force).
#
# Geometric modifiers work on normalized coordinates; callers can override any
# of them through PostureModifiers.

from __future__ import annotations

from ergorisk.models.assessment import (
    JointAngles,
    PostureModifiers,
    RebaComponents,
    RebaModifierFlags,
    RebaScore,
    RiskLevel,
)
from ergorisk.services.geometry import line_tilt, vertex_angle, vertical_deviation_angle
from ergorisk.services.rula import clamp, lookup
from ergorisk.services.validity import GatedPose, is_present

# TABLE_A[trunk - 1][(neck + legs) - 2]
TABLE_A: tuple[tuple[int, ...], ...] = (
    (1, 2, 3, 4),
    (2, 3, 4, 5),
    (2, 4, 5, 6),
    (3, 5, 6, 7),
    (4, 6, 7, 8),
)

# TABLE_B[upper_arm - 1][(lower_arm + wrist) - 2]
TABLE_B: tuple[tuple[int, ...], ...] = (
    (1, 2, 2),
    (1, 2, 3),
    (3, 4, 5),
    (4, 5, 5),
    (6, 7, 8),
    (7, 8, 8),
)

# TABLE_C[score_a - 1][score_b - 1]; the native REBA scale reaches 15, this
# table is already collapsed onto 1-7.
TABLE_C: tuple[tuple[int, ...], ...] = (
    (1, 1, 1, 2, 3, 3, 4, 5, 6, 7, 7, 7),
    (1, 2, 2, 3, 4, 4, 5, 6, 6, 7, 7, 7),
    (2, 3, 3, 3, 4, 5, 6, 7, 7, 7, 7, 7),
    (3, 4, 4, 4, 5, 6, 7, 7, 7, 7, 7, 7),
    (4, 4, 4, 5, 6, 7, 7, 7, 7, 7, 7, 7),
    (6, 6, 6, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
    (7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7, 7),
)

MIN_FINAL_SCORE = 1
MAX_FINAL_SCORE = 7

RISK_BANDS: tuple[tuple[int, RiskLevel, str, str], ...] = (
    (1, RiskLevel.NEGLIGIBLE, "Negligible", "Not necessary"),
    (3, RiskLevel.LOW, "Low", "May be necessary"),
    (5, RiskLevel.MEDIUM, "Medium", "Necessary"),
    (MAX_FINAL_SCORE, RiskLevel.HIGH, "High", "Necessary soon"),
)

# Modifier heuristics (normalized frame units / degrees)
MIN_SEGMENT_WIDTH = 0.02
TRUNK_TWIST_WIDTH_RATIO = 0.8
TRUNK_SIDE_BEND_DEG = 10.0
NECK_TWIST_WIDTH_RATIO = 0.35
NECK_SIDE_BEND_DEG = 15.0
UNEVEN_ANKLE_DELTA = 0.05
RAISED_SHOULDER_DELTA = 0.03


def trunk_score(angle: float, twisted: bool = False, side_bent: bool = False) -> int:
    if angle <= 5:
        score = 1
    elif angle <= 20:
        score = 2
    elif angle <= 60:
        score = 3
    else:
        score = 4
    score += int(twisted) + int(side_bent)
    return min(score, 5)


def neck_score(angle: float, twisted: bool = False, side_bent: bool = False) -> int:
    if angle <= 20:
        score = 1
    elif angle <= 45:
        score = 2
    else:
        score = 3
    if twisted or side_bent:
        score += 1
    return min(score, 4)


def legs_score(thigh_angle: float, knee_angle: float, uneven: bool = False) -> int:
    flexion = (thigh_angle + knee_angle) / 2
    if flexion <= 30:
        score = 1
    elif flexion <= 55:
        score = 2
    else:
        score = 3
    return min(score + int(uneven), 4)


def upper_arm_score(angle: float, shoulder_raised: bool = False, abducted: bool = False) -> int:
    if angle <= 20:
        score = 1
    elif angle <= 45:
        score = 2
    elif angle <= 90:
        score = 3
    else:
        score = 4
    score += int(shoulder_raised) + int(abducted)
    return min(score, 6)


def lower_arm_score(angle: float, crosses_midline: bool = False) -> int:
    score = 1 if 60 <= angle <= 100 else 2
    return min(score + int(crosses_midline), 3)


def wrist_score(angle: float, deviated: bool = False, twisted: bool = False) -> int:
    if angle <= 15:
        score = 1
    elif angle <= 30:
        score = 2
    else:
        score = 3
    return min(score + int(deviated) + int(twisted), 4)


def load_score(weight_kg: float) -> int:
    if weight_kg < 5:
        return 0
    if weight_kg <= 10:
        return 1
    if weight_kg <= 20:
        return 2
    return 3


def score_a(trunk: int, neck: int, legs: int, load: int = 0) -> int:
    return lookup(TABLE_A, trunk, neck + legs - 1) + load


def score_b(upper_arm: int, lower_arm: int, wrist: int) -> int:
    return lookup(TABLE_B, upper_arm, lower_arm + wrist - 1)


def final_score(a: int, b: int) -> int:
    return clamp(lookup(TABLE_C, a, b), MIN_FINAL_SCORE, MAX_FINAL_SCORE)


def risk_for(score: int) -> tuple[RiskLevel, str, str]:
    """Risk level, risk label and action level for a final score."""
    for upper, level, label, action in RISK_BANDS:
        if score <= upper:
            return level, label, action
    _, level, label, action = RISK_BANDS[-1]
    return level, label, action


def measure_angles(pose: GatedPose) -> JointAngles:
    return JointAngles(
        trunk=vertical_deviation_angle(pose.hip_mid, pose.shoulder_mid),
        neck=vertical_deviation_angle(pose.shoulder_mid, pose.nose),
        upper_arm=vertex_angle(pose.hip, pose.shoulder, pose.elbow),
        lower_arm=vertex_angle(pose.shoulder, pose.elbow, pose.wrist),
        wrist=vertical_deviation_angle(pose.elbow, pose.wrist),
        thigh=vertical_deviation_angle(pose.hip, pose.knee),
        knee=180.0 - vertex_angle(pose.hip, pose.knee, pose.ankle),
    )


def infer_modifiers(pose: GatedPose) -> RebaModifierFlags:
    """Derive the postural modifiers visible in a 2D skeleton."""
    other_shoulder = pose.opposite("shoulder")
    left_hip, right_hip = pose.part("hip", pose.side), pose.part("hip", pose.side.opposite)
    hip_width = abs(left_hip.x - right_hip.x)

    trunk_twisted = trunk_side_bent = neck_twisted = shoulder_raised = False
    if other_shoulder is not None:
        shoulder_width = abs(pose.shoulder.x - other_shoulder.x)
        if hip_width > MIN_SEGMENT_WIDTH:
            trunk_twisted = shoulder_width < TRUNK_TWIST_WIDTH_RATIO * hip_width
        if shoulder_width > MIN_SEGMENT_WIDTH:
            trunk_side_bent = line_tilt(pose.shoulder, other_shoulder) > TRUNK_SIDE_BEND_DEG
            neck_twisted = (
                abs(pose.nose.x - pose.shoulder_mid.x) > NECK_TWIST_WIDTH_RATIO * shoulder_width
            )
        shoulder_raised = other_shoulder.y - pose.shoulder.y > RAISED_SHOULDER_DELTA

    eye, other_eye = pose.part("eye"), pose.opposite("eye")
    neck_side_bent = (
        is_present(eye)
        and other_eye is not None
        and abs(eye.x - other_eye.x) > MIN_SEGMENT_WIDTH / 2
        and line_tilt(eye, other_eye) > NECK_SIDE_BEND_DEG
    )

    other_ankle = pose.opposite("ankle")
    legs_uneven = other_ankle is not None and abs(pose.ankle.y - other_ankle.y) > UNEVEN_ANKLE_DELTA

    arm_abducted = abs(pose.elbow.x - pose.shoulder.x) > abs(pose.elbow.y - pose.shoulder.y)

    # Wrist on the far side of the body midline from its own shoulder.
    mid_x = pose.shoulder_mid.x
    crosses_midline = (
        pose.shoulder.x != mid_x
        and (pose.wrist.x - mid_x) * (pose.shoulder.x - mid_x) < 0
    )

    return RebaModifierFlags(
        trunk_twisted=trunk_twisted,
        trunk_side_bent=trunk_side_bent,
        neck_twisted=neck_twisted,
        neck_side_bent=neck_side_bent,
        legs_uneven=legs_uneven,
        shoulder_raised=shoulder_raised,
        arm_abducted=arm_abducted,
        crosses_midline=crosses_midline,
    )


def apply_overrides(flags: RebaModifierFlags, overrides: PostureModifiers | None) -> RebaModifierFlags:
    if overrides is None:
        return flags
    forced = {k: v for k, v in overrides.model_dump().items() if v is not None}
    return flags.model_copy(update=forced)


def score_pose(
    pose: GatedPose,
    weight_kg: float = 0.0,
    overrides: PostureModifiers | None = None,
) -> RebaScore:
    """Score a gated pose with Method B, including the load/force term."""
    angles = measure_angles(pose)
    flags = apply_overrides(infer_modifiers(pose), overrides)

    components = RebaComponents(
        trunk=trunk_score(angles.trunk, flags.trunk_twisted, flags.trunk_side_bent),
        neck=neck_score(angles.neck, flags.neck_twisted, flags.neck_side_bent),
        legs=legs_score(angles.thigh, angles.knee, flags.legs_uneven),
        upper_arm=upper_arm_score(angles.upper_arm, flags.shoulder_raised, flags.arm_abducted),
        lower_arm=lower_arm_score(angles.lower_arm, flags.crosses_midline),
        wrist=wrist_score(angles.wrist, flags.wrist_deviated, flags.wrist_twisted),
        load=load_score(weight_kg),
    )

    a = score_a(components.trunk, components.neck, components.legs, components.load)
    b = score_b(components.upper_arm, components.lower_arm, components.wrist)
    final = final_score(a, b)
    level, label, action = risk_for(final)

    return RebaScore(
        side=pose.side,
        angles=angles,
        components=components,
        modifiers=flags,
        score_a=a,
        score_b=b,
        final_score=final,
        risk_level=level,
        risk_label=label,
        action_level=action,
    )
