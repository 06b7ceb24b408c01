# Assessment router: scores PoseSamples posted as JSON, or a still image run
# through pose estimation and object detection first.

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np
from fastapi import APIRouter, HTTPException, Query, UploadFile

from ergorisk import config
from ergorisk.models.assessment import (
    Assessment,
    AssessmentMethod,
    AssessmentResult,
    DetectedObject,
    WeightSource,
)
from ergorisk.models.schemas import (
    AssessmentRequest,
    BatchAssessmentRequest,
    BatchAssessmentResponse,
    ImageAssessmentResponse,
    ObjectWeight,
    WeightSuggestion,
)
from ergorisk.services.detection import DetectionService
from ergorisk.services.engine import assess
from ergorisk.services.interaction import OBJECT_WEIGHTS, weight_suggestions
from ergorisk.services.pose import PoseService

logger = logging.getLogger(__name__)
router = APIRouter()

# Module-level singletons (initialised lazily)
_detection_service: DetectionService | None = None
_pose_service: PoseService | None = None


def get_detection_service() -> DetectionService:
    global _detection_service
    if _detection_service is None:
        _detection_service = DetectionService()
    return _detection_service


def get_pose_service() -> PoseService:
    global _pose_service
    if _pose_service is None:
        _pose_service = PoseService()
    return _pose_service


ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".webp"}


def _assess_request(request: AssessmentRequest) -> AssessmentResult:
    return assess(
        request.keypoints,
        request.method,
        objects=request.objects,
        manual_weight_kg=request.manual_weight_kg,
        weight_source=request.weight_source,
        modifiers=request.modifiers,
        frame_size=request.frame_size,
    )


@router.post("/assess", response_model=AssessmentResult)
def assess_pose(request: AssessmentRequest):
    """Score one frame of keypoints."""
    return _assess_request(request)


@router.post("/assess/batch", response_model=BatchAssessmentResponse)
def assess_pose_batch(request: BatchAssessmentRequest):
    """Score a sequence of independent frames and summarise the session."""
    results = [_assess_request(frame) for frame in request.frames]
    finals = [r.effective_final_score for r in results if isinstance(r, Assessment)]

    logger.info("Scored %d / %d frames", len(finals), len(results))

    return BatchAssessmentResponse(
        results=results,
        total_frames=len(results),
        scored_frames=len(finals),
        indeterminate_frames=len(results) - len(finals),
        peak_final_score=max(finals) if finals else None,
        mean_final_score=round(sum(finals) / len(finals), 2) if finals else None,
    )


@router.post("/assess/image", response_model=ImageAssessmentResponse)
async def assess_image(
    file: UploadFile,
    method: AssessmentMethod = Query(AssessmentMethod(config.DEFAULT_METHOD)),
    manual_weight_kg: float | None = Query(None, ge=0.0, description="Observer-entered load"),
    weight_source: WeightSource | None = Query(None),
    confidence: float = Query(
        config.DETECTION_CONFIDENCE, ge=0.0, le=1.0, description="Detection confidence threshold (0-1)",
    ),
):
    """Upload a still image; detect the person and nearby objects, then score the pose."""

    # Validate by file extension (content_type is unreliable)
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported image format: {ext}. Use JPG, PNG, BMP, or WebP.",
        )

    data = await file.read()
    frame_bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame_bgr is None:
        raise HTTPException(status_code=400, detail="Could not decode image")

    height, width = frame_bgr.shape[:2]
    frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)

    try:
        detections = get_detection_service().detect(frame_bgr, confidence_threshold=confidence)
        keypoints = get_pose_service().estimate(frame_rgb)
    except Exception as exc:
        logger.exception("Model inference failed")
        raise HTTPException(status_code=500, detail="Model inference failed") from exc

    logger.info(
        "Image %dx%d: %d detections, pose %s",
        width, height, len(detections), "found" if keypoints else "not found",
    )

    result = None
    if keypoints is not None:
        result = assess(
            keypoints,
            method,
            objects=detections,
            manual_weight_kg=manual_weight_kg,
            weight_source=weight_source,
            frame_size=(width, height),
        )

    return ImageAssessmentResponse(
        width=width,
        height=height,
        detections=detections,
        keypoints=keypoints,
        assessment=result,
    )


@router.get("/objects/weights", response_model=list[ObjectWeight])
def object_weights():
    """The static class → (category, typical weight) table."""
    return [
        ObjectWeight(label=label, category=category, weight_kg=weight)
        for label, (category, weight) in OBJECT_WEIGHTS.items()
    ]


@router.post("/objects/suggestions", response_model=list[WeightSuggestion])
def object_suggestions(objects: list[DetectedObject]):
    return [WeightSuggestion(**s) for s in weight_suggestions(objects)]
