# API models (Pydantic schemas)

from __future__ import annotations

from pydantic import BaseModel, Field

from ergorisk import config
from ergorisk.models.assessment import (
    AssessmentMethod,
    AssessmentResult,
    DetectedObject,
    Keypoint,
    PostureModifiers,
    WeightSource,
)


def _default_method() -> AssessmentMethod:
    return AssessmentMethod(config.DEFAULT_METHOD)


class AssessmentRequest(BaseModel):
    keypoints: list[Keypoint] = Field(description="17 COCO keypoints, normalized to [0, 1]")
    method: AssessmentMethod = Field(default_factory=_default_method)
    objects: list[DetectedObject] = Field(default_factory=list)
    manual_weight_kg: float | None = Field(None, ge=0.0, description="Observer-entered load")
    weight_source: WeightSource | None = Field(
        None, description="Force where the effective weight comes from",
    )
    modifiers: PostureModifiers | None = None
    frame_width: int | None = Field(None, gt=0, description="Source frame width in pixels")
    frame_height: int | None = Field(None, gt=0, description="Source frame height in pixels")

    @property
    def frame_size(self) -> tuple[int, int] | None:
        if self.frame_width and self.frame_height:
            return self.frame_width, self.frame_height
        return None


class BatchAssessmentRequest(BaseModel):
    frames: list[AssessmentRequest]


class BatchAssessmentResponse(BaseModel):
    results: list[AssessmentResult]
    total_frames: int
    scored_frames: int
    indeterminate_frames: int
    peak_final_score: int | None = Field(None, description="Highest load-adjusted final score")
    mean_final_score: float | None = None


class ImageAssessmentResponse(BaseModel):
    width: int
    height: int
    detections: list[DetectedObject]
    keypoints: list[Keypoint] | None = Field(None, description="None if no person was found")
    assessment: AssessmentResult | None = None


class ObjectWeight(BaseModel):
    label: str
    category: str
    weight_kg: float


class WeightSuggestion(BaseModel):
    name: str
    category: str
    weight_kg: float
    confidence: int = Field(description="Detection confidence in percent")
