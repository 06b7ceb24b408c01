# Method A scorer (RULA-style, upper-body focused).
#
# One canonical threshold/table set; the tables below are the single source
# of truth for this method.

from __future__ import annotations

from ergorisk.models.assessment import (
    JointAngles,
    RiskLevel,
    RulaComponents,
    RulaScore,
)
from ergorisk.services.geometry import vertex_angle, vertical_deviation_angle
from ergorisk.services.validity import GatedPose

# TABLE_A[upper_arm - 1][lower_arm - 1][wrist - 1], values 1-8
TABLE_A: tuple[tuple[tuple[int, ...], ...], ...] = (
    ((1, 2, 2, 2, 2, 3, 3, 3), (2, 2, 2, 2, 3, 3, 3, 3), (2, 3, 3, 3, 3, 3, 4, 4)),
    ((2, 2, 2, 2, 3, 3, 3, 3), (2, 2, 2, 2, 3, 3, 3, 3), (3, 3, 3, 3, 3, 4, 4, 4)),
    ((2, 3, 3, 3, 3, 4, 4, 4), (3, 3, 3, 3, 3, 4, 4, 4), (3, 4, 4, 4, 4, 4, 5, 5)),
    ((3, 3, 3, 4, 4, 4, 5, 5), (3, 3, 4, 4, 4, 4, 5, 5), (4, 4, 4, 4, 5, 5, 5, 6)),
    ((4, 4, 4, 4, 4, 5, 5, 5), (4, 4, 4, 4, 4, 5, 5, 5), (4, 4, 4, 5, 5, 5, 6, 6)),
    ((6, 6, 6, 6, 6, 7, 7, 7), (6, 6, 6, 6, 6, 7, 7, 7), (6, 6, 7, 7, 7, 7, 7, 8)),
)

# TABLE_B[neck - 1][trunk - 1], values 1-7
TABLE_B: tuple[tuple[int, ...], ...] = (
    (1, 2, 3, 3, 4, 5),
    (2, 2, 3, 4, 5, 5),
    (3, 3, 3, 4, 5, 6),
    (3, 3, 4, 4, 5, 6),
    (4, 5, 5, 5, 6, 7),
    (4, 5, 5, 6, 6, 7),
)

# TABLE_C[score_a - 1][score_b - 1]
TABLE_C: tuple[tuple[int, ...], ...] = (
    (1, 1, 1, 2, 3, 3, 4),
    (1, 2, 2, 3, 3, 3, 4),
    (2, 2, 2, 3, 3, 3, 4),
    (3, 3, 3, 3, 3, 4, 4),
    (4, 4, 4, 4, 4, 4, 5),
    (4, 4, 4, 4, 4, 4, 5),
    (5, 5, 5, 5, 5, 5, 6),
    (5, 5, 5, 5, 5, 6, 6),
)

MIN_FINAL_SCORE = 1
MAX_FINAL_SCORE = 7

RISK_BANDS: tuple[tuple[int, RiskLevel, str], ...] = (
    (2, RiskLevel.NEGLIGIBLE, "Acceptable"),
    (4, RiskLevel.LOW, "Investigate"),
    (6, RiskLevel.HIGH, "Investigate & Change Soon"),
    (MAX_FINAL_SCORE, RiskLevel.CRITICAL, "Investigate & Change ASAP"),
)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def lookup(table, *scores: int) -> int:
    """Index a nested table with 1-based scores, clamping each index."""
    cell = table
    for score in scores:
        cell = cell[clamp(score - 1, 0, len(cell) - 1)]
    return cell


def upper_arm_score(angle: float) -> int:
    if angle <= 20:
        return 1
    if angle <= 45:
        return 2
    if angle <= 90:
        return 3
    return 4


def lower_arm_score(angle: float) -> int:
    return 1 if 60 <= angle <= 100 else 2


def wrist_score(angle: float) -> int:
    if angle <= 15:
        return 1
    if angle <= 30:
        return 2
    return 3


def neck_score(angle: float) -> int:
    if angle <= 10:
        return 1
    if angle <= 20:
        return 2
    return 3


def trunk_score(angle: float) -> int:
    if angle <= 5:
        return 1
    if angle <= 20:
        return 2
    if angle <= 60:
        return 3
    return 4


def score_a(upper_arm: int, lower_arm: int, wrist: int) -> int:
    return clamp(lookup(TABLE_A, upper_arm, lower_arm, wrist), 1, 8)


def score_b(neck: int, trunk: int) -> int:
    return clamp(lookup(TABLE_B, neck, trunk), 1, 7)


def final_score(a: int, b: int) -> int:
    return clamp(lookup(TABLE_C, a, b), MIN_FINAL_SCORE, MAX_FINAL_SCORE)


def risk_for(score: int) -> tuple[RiskLevel, str]:
    """Risk level and action label for a final score."""
    for upper, level, label in RISK_BANDS:
        if score <= upper:
            return level, label
    return RISK_BANDS[-1][1], RISK_BANDS[-1][2]


def measure_angles(pose: GatedPose) -> JointAngles:
    return JointAngles(
        trunk=vertical_deviation_angle(pose.hip_mid, pose.shoulder_mid),
        neck=vertical_deviation_angle(pose.shoulder_mid, pose.nose),
        upper_arm=vertex_angle(pose.hip, pose.shoulder, pose.elbow),
        lower_arm=vertex_angle(pose.shoulder, pose.elbow, pose.wrist),
        wrist=vertical_deviation_angle(pose.elbow, pose.wrist),
    )


def score_pose(pose: GatedPose) -> RulaScore:
    """Score a gated pose with Method A."""
    angles = measure_angles(pose)
    components = RulaComponents(
        upper_arm=upper_arm_score(angles.upper_arm),
        lower_arm=lower_arm_score(angles.lower_arm),
        wrist=wrist_score(angles.wrist),
        neck=neck_score(angles.neck),
        trunk=trunk_score(angles.trunk),
    )

    a = score_a(components.upper_arm, components.lower_arm, components.wrist)
    b = score_b(components.neck, components.trunk)
    final = final_score(a, b)
    level, label = risk_for(final)

    return RulaScore(
        side=pose.side,
        angles=angles,
        components=components,
        score_a=a,
        score_b=b,
        final_score=final,
        stress_level=clamp(final, MIN_FINAL_SCORE, MAX_FINAL_SCORE),
        risk_level=level,
        risk_label=label,
    )
