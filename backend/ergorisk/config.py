# Runtime settings, read once from the environment.

from __future__ import annotations

import os

LOG_LEVEL = os.getenv("ERGORISK_LOG_LEVEL", "INFO").upper()

# Pixel size used to measure hand/object proximity when the caller does not
# say how large the source frame was.
FRAME_WIDTH = int(os.getenv("ERGORISK_FRAME_WIDTH", "640"))
FRAME_HEIGHT = int(os.getenv("ERGORISK_FRAME_HEIGHT", "480"))

DEFAULT_METHOD = os.getenv("ERGORISK_DEFAULT_METHOD", "rula").lower()

# Key of detection.AVAILABLE_MODELS or a path to YOLO weights
YOLO_MODEL = os.getenv("YOLO_MODEL", "coco")
# Detections at or below this confidence are dropped
DETECTION_CONFIDENCE = float(os.getenv("ERGORISK_DETECTION_CONFIDENCE", "0.4"))
