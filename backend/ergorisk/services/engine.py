# Assessment engine: gate → score → load → adjust, for one frame at a time.
#
# Stateless; every call recomputes everything from its arguments, so frames
# can be scored in any order or in parallel.

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from ergorisk.models.assessment import (
    Assessment,
    AssessmentMethod,
    DetectedObject,
    Indeterminate,
    Keypoint,
    PostureModifiers,
    WeightSource,
)
from ergorisk.services import reba, rula
from ergorisk.services.adjustment import adjust, default_source, resolve_effective_weight
from ergorisk.services.feedback import posture_feedback
from ergorisk.services.interaction import analyze_interaction
from ergorisk.services.load import estimate_load
from ergorisk.services.validity import gate

logger = logging.getLogger(__name__)


def assess(
    keypoints: Sequence[Keypoint],
    method: AssessmentMethod | str = AssessmentMethod.RULA,
    objects: Sequence[DetectedObject] | None = None,
    manual_weight_kg: float | None = None,
    weight_source: WeightSource | str | None = None,
    modifiers: PostureModifiers | None = None,
    frame_size: tuple[int, int] | None = None,
) -> Assessment | Indeterminate:
    """Score one PoseSample.

    Args:
        keypoints: 17 normalized COCO keypoints.
        method: ``rula`` (upper body) or ``reba`` (whole body).
        objects: Detected objects in the same normalized space, if any.
        manual_weight_kg: Weight entered by an observer.
        weight_source: Where the effective weight should come from. Defaults
            to manual if a manual weight is given, detected objects if any
            were given, otherwise the posture heuristic.
        modifiers: Observer overrides for the whole-body modifiers.
        frame_size: (width, height) in pixels of the source frame, used for
            hand/object proximity.

    Returns:
        An Assessment, or Indeterminate when the pose cannot be scored.
    """
    method = AssessmentMethod(method)
    pose = gate(keypoints, method)
    if isinstance(pose, Indeterminate):
        return pose

    load = estimate_load(keypoints)

    interaction = None
    if objects:
        width, height = frame_size if frame_size else (None, None)
        interaction = analyze_interaction(objects, keypoints, width, height)

    source = (
        WeightSource(weight_source)
        if weight_source is not None
        else default_source(manual_weight_kg, bool(objects))
    )
    weight_kg, used_source = resolve_effective_weight(source, load, interaction, manual_weight_kg)

    if method is AssessmentMethod.REBA:
        score = reba.score_pose(pose, weight_kg=weight_kg, overrides=modifiers)
    else:
        score = rula.score_pose(pose)

    adjusted = None
    if weight_kg > 0:
        adjusted = adjust(score.final_score, weight_kg, method, used_source)

    return Assessment(
        method=method,
        score=score,
        load=load,
        interaction=interaction,
        adjusted=adjusted,
        feedback=posture_feedback(score, adjusted.final_score if adjusted else None),
    )


def assess_batch(
    frames: Iterable[Sequence[Keypoint]],
    method: AssessmentMethod | str = AssessmentMethod.RULA,
    **kwargs: Any,
) -> list[Assessment | Indeterminate]:
    """Score independent frames (e.g. a recorded session) in order."""
    results = [assess(keypoints, method, **kwargs) for keypoints in frames]
    indeterminate = sum(isinstance(r, Indeterminate) for r in results)
    if indeterminate:
        logger.info("Batch of %d frames: %d indeterminate", len(results), indeterminate)
    return results
