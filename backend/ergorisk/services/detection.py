# Detection service: wraps a YOLO model for object detection.
# Swapping models: replace the `model_path` or subclass DetectionService.

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from ergorisk import config
from ergorisk.models.assessment import DetectedObject
from ergorisk.services.interaction import is_hand_held

logger = logging.getLogger(__name__)

# Available pre-trained models
AVAILABLE_MODELS = {
    "coco": "yolov8n.pt",           # COCO dataset (80 classes)
    "coco-medium": "yolov8m.pt",    # Larger COCO model for better accuracy
    "oiv7": "yolov8m-oiv7.pt",      # Open Images V7 (600 classes, includes tools)
}

# Model class names → object-weight table labels
LABEL_REMAP = {
    # COCO
    "cell phone": "phone",
    "handbag": "bag",
    "sports ball": "ball",
    # Open Images V7
    "Mobile phone": "phone",
    "Handbag": "bag",
    "Tablet computer": "tablet",
    "Computer keyboard": "keyboard",
    "Drill (Tool)": "drill",
    "Kitchen knife": "knife",
    "Ball": "ball",
}

# People are tracked by the pose model, not weighed as objects
IGNORED_LABELS = {"person", "Person", "Man", "Woman", "Boy", "Girl"}


def normalize_label(raw_label: str) -> str:
    return LABEL_REMAP.get(raw_label, raw_label).lower()


def to_detected_object(
    raw_label: str,
    confidence: float,
    xyxy: Sequence[float],
    width: int,
    height: int,
) -> DetectedObject:
    """Convert a pixel [x1, y1, x2, y2] box into a normalized [x, y, w, h] object."""
    x1, y1, x2, y2 = xyxy
    x1, x2 = max(0.0, x1 / width), min(1.0, x2 / width)
    y1, y2 = max(0.0, y1 / height), min(1.0, y2 / height)
    return DetectedObject(
        label=normalize_label(raw_label),
        confidence=round(float(confidence), 3),
        bbox=(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1)),
    )


def filter_detections(
    detections: Sequence[DetectedObject],
    confidence_threshold: float,
) -> list[DetectedObject]:
    """Keep confident detections of things a person can hold in their hands."""
    return [
        det
        for det in detections
        if det.confidence > confidence_threshold and is_hand_held(det.label)
    ]


class DetectionService:
    """Object detection using YOLOv8."""

    def __init__(self, model_path: str | None = None) -> None:
        """Initialize detection service with specified model.

        Args:
            model_path: Path to model file or model key from AVAILABLE_MODELS.
                       If None, uses the YOLO_MODEL setting.
        """
        from ultralytics import YOLO

        model_path = model_path or config.YOLO_MODEL
        model_path = AVAILABLE_MODELS.get(model_path, model_path)

        logger.info("Loading YOLO model: %s", model_path)
        self.model = YOLO(model_path)
        self.model_path = model_path

    def detect(
        self,
        image: np.ndarray,
        confidence_threshold: float | None = None,
    ) -> list[DetectedObject]:
        """Run detection and return objects in normalized [x, y, w, h] boxes."""
        threshold = config.DETECTION_CONFIDENCE if confidence_threshold is None else confidence_threshold
        height, width = image.shape[:2]
        results = self.model(image, verbose=False)[0]

        raw: list[DetectedObject] = []
        for box in results.boxes:
            cls_id = int(box.cls[0])
            raw_label = results.names.get(cls_id, f"class_{cls_id}")
            if raw_label in IGNORED_LABELS:
                continue
            raw.append(
                to_detected_object(raw_label, float(box.conf[0]), box.xyxy[0].tolist(), width, height)
            )

        detections = filter_detections(raw, threshold)
        logger.debug(
            "Kept %d detections, filtered %d at or below %.2f or not hand-held",
            len(detections), len(raw) - len(detections), threshold,
        )
        return detections
