# Score adjustment combinator: folds an effective carried weight into a final score.

from __future__ import annotations

import math

from ergorisk.models.assessment import (
    AdjustedScore,
    AssessmentMethod,
    LoadEstimate,
    ObjectInteraction,
    RiskLevel,
    WeightSource,
)
from ergorisk.services import reba, rula

MIN_FINAL_SCORE = 1
MAX_FINAL_SCORE = 7

# (exclusive lower bound kg, multiplier), heaviest first
WEIGHT_MULTIPLIERS: tuple[tuple[float, float], ...] = (
    (23.0, 3.0),
    (10.0, 2.0),
    (5.0, 1.5),
)

# Sources tried, in order, for each requested source
_FALLBACK_CHAIN: dict[WeightSource, tuple[WeightSource, ...]] = {
    WeightSource.MANUAL: (WeightSource.MANUAL, WeightSource.OBJECT_DETECTED, WeightSource.HEURISTIC),
    WeightSource.OBJECT_DETECTED: (WeightSource.OBJECT_DETECTED, WeightSource.HEURISTIC),
    WeightSource.HEURISTIC: (WeightSource.HEURISTIC,),
}


def weight_multiplier(weight_kg: float) -> float:
    for bound, multiplier in WEIGHT_MULTIPLIERS:
        if weight_kg > bound:
            return multiplier
    return 1.0


def risk_for(method: AssessmentMethod, score: int) -> tuple[RiskLevel, str]:
    if method == AssessmentMethod.REBA:
        level, label, _ = reba.risk_for(score)
        return level, label
    return rula.risk_for(score)


def default_source(
    manual_weight_kg: float | None,
    has_objects: bool,
) -> WeightSource:
    """Source used when the caller does not pick one explicitly."""
    if manual_weight_kg is not None:
        return WeightSource.MANUAL
    if has_objects:
        return WeightSource.OBJECT_DETECTED
    return WeightSource.HEURISTIC


def resolve_effective_weight(
    source: WeightSource,
    load: LoadEstimate | None = None,
    interaction: ObjectInteraction | None = None,
    manual_weight_kg: float | None = None,
) -> tuple[float, WeightSource]:
    """Pick the effective weight, preferring manual, then detected objects.

    Starts at ``source`` and falls back down the chain when that source has
    nothing to offer. Returns the weight and the source it came from.
    """
    for candidate in _FALLBACK_CHAIN[source]:
        if candidate is WeightSource.MANUAL and manual_weight_kg:
            return manual_weight_kg, candidate
        if candidate is WeightSource.OBJECT_DETECTED and interaction is not None and interaction.is_holding_object:
            return interaction.total_estimated_weight_kg, candidate
        if candidate is WeightSource.HEURISTIC and load is not None and load.estimated_weight_kg > 0:
            return load.estimated_weight_kg, candidate
    return 0.0, source


def adjust(
    base_final_score: int,
    effective_weight_kg: float,
    method: AssessmentMethod = AssessmentMethod.RULA,
    source: WeightSource = WeightSource.HEURISTIC,
) -> AdjustedScore:
    """Scale a base final score by the carried weight, clamped to [1, 7]."""
    multiplier = weight_multiplier(effective_weight_kg)
    final = max(MIN_FINAL_SCORE, min(MAX_FINAL_SCORE, math.ceil(base_final_score * multiplier)))
    level, label = risk_for(method, final)
    return AdjustedScore(
        base_final_score=base_final_score,
        final_score=final,
        risk_level=level,
        risk_label=label,
        weight_multiplier=multiplier,
        effective_weight_kg=effective_weight_kg,
        weight_source=source,
    )
