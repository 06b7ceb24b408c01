# Plain-language posture summary built from component scores.

from __future__ import annotations

from ergorisk.models.assessment import RebaScore, RulaScore

# (component, [(min score, issue text), ...] highest first, good-region label)
_RULES: tuple[tuple[str, tuple[tuple[int, str], ...], str], ...] = (
    (
        "upper_arm",
        (
            (4, "upper arm position is problematic (raised >90°)"),
            (3, "upper arm angle needs attention (45-90°)"),
        ),
        "upper arm position",
    ),
    ("lower_arm", ((2, "elbow angle is suboptimal (outside 60-100°)"),), "elbow angle"),
    (
        "wrist",
        (
            (3, "wrist is severely bent or twisted"),
            (2, "wrist deviation detected"),
        ),
        "wrist alignment",
    ),
    (
        "neck",
        (
            (4, "neck is severely forward or tilted"),
            (3, "neck posture needs correction"),
            (2, "slight forward head posture detected"),
        ),
        "neck position",
    ),
    (
        "trunk",
        (
            (4, "trunk is severely leaning or twisted (>60°)"),
            (3, "trunk posture needs attention (20-60° lean)"),
            (2, "slight trunk deviation from upright"),
        ),
        "trunk alignment",
    ),
    (
        "legs",
        (
            (3, "legs are deeply flexed or unevenly loaded"),
            (2, "knees are moderately bent"),
        ),
        "leg support",
    ),
)

SHOWN_PER_GROUP = 2


def posture_feedback(score: RulaScore | RebaScore, final_score: int | None = None) -> str:
    """Summarise the worst regions, the acceptable ones, and a recommendation.

    ``final_score`` overrides the score's own final score, e.g. after a load
    adjustment.
    """
    components = score.components.model_dump()
    issues: list[str] = []
    good: list[str] = []

    for name, thresholds, good_label in _RULES:
        if name not in components:
            continue
        value = components[name]
        for minimum, text in thresholds:
            if value >= minimum:
                issues.append(text)
                break
        else:
            good.append(good_label)

    parts = []
    if issues:
        text = "Issues detected: " + ", ".join(issues[:SHOWN_PER_GROUP])
        if len(issues) > SHOWN_PER_GROUP:
            text += f", and {len(issues) - SHOWN_PER_GROUP} more"
        parts.append(text + ".")
    if good:
        text = "Good: " + ", ".join(good[:SHOWN_PER_GROUP])
        if len(good) > SHOWN_PER_GROUP:
            text += f", +{len(good) - SHOWN_PER_GROUP} more"
        parts.append(text + ".")

    final = score.final_score if final_score is None else final_score
    if final >= 5:
        parts.append("Immediate posture correction recommended.")
    elif final >= 3:
        parts.append("Consider adjusting posture soon.")
    else:
        parts.append("Overall posture is acceptable.")

    return " ".join(parts)
