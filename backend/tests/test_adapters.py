"""Tests for the pose/detection adapters' conversions and the feedback text.

No ML models are loaded here.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from ergorisk.models.assessment import AssessmentMethod, DetectedObject, KeypointIndex
from ergorisk.services import rula
from ergorisk.services.detection import filter_detections, normalize_label, to_detected_object
from ergorisk.services.feedback import posture_feedback
from ergorisk.services.pose import MEDIAPIPE_TO_COCO, landmarks_to_keypoints
from ergorisk.services.validity import gate


class TestLandmarksToKeypoints:
    def test_maps_33_landmarks_to_coco_17(self) -> None:
        landmarks = [SimpleNamespace(x=i / 40, y=i / 50, visibility=0.9) for i in range(33)]
        keypoints = landmarks_to_keypoints(landmarks)
        assert len(keypoints) == 17
        assert keypoints[KeypointIndex.LEFT_SHOULDER].x == pytest.approx(11 / 40)
        assert keypoints[KeypointIndex.RIGHT_ANKLE].y == pytest.approx(28 / 50)
        assert all(kp.confidence == 0.9 for kp in keypoints)

    def test_off_frame_landmarks_are_clamped(self) -> None:
        landmarks = [SimpleNamespace(x=1.3, y=-0.2, visibility=1.0) for _ in range(33)]
        keypoints = landmarks_to_keypoints(landmarks)
        assert keypoints[0].x == 1.0
        assert keypoints[0].y == 0.0

    def test_every_coco_point_has_a_landmark(self) -> None:
        assert set(MEDIAPIPE_TO_COCO) == set(KeypointIndex)


class TestDetectedObjectConversion:
    def test_pixel_box_becomes_normalized_xywh(self) -> None:
        obj = to_detected_object("cell phone", 0.87654, [64, 48, 128, 96], 640, 480)
        assert obj.label == "phone"
        assert obj.confidence == 0.877
        assert obj.bbox == pytest.approx((0.1, 0.1, 0.1, 0.1))

    def test_box_clipped_to_frame(self) -> None:
        obj = to_detected_object("suitcase", 0.9, [-20, 0, 700, 480], 640, 480)
        assert obj.bbox == pytest.approx((0.0, 0.0, 1.0, 1.0))

    def test_filter_drops_low_confidence_and_furniture(self) -> None:
        detections = [
            DetectedObject(label="hammer", confidence=0.9, bbox=(0.1, 0.1, 0.1, 0.1)),
            DetectedObject(label="hammer", confidence=0.4, bbox=(0.1, 0.1, 0.1, 0.1)),
            DetectedObject(label="chair", confidence=0.9, bbox=(0.1, 0.1, 0.1, 0.1)),
            DetectedObject(label="widget", confidence=0.41, bbox=(0.1, 0.1, 0.1, 0.1)),
        ]
        kept = filter_detections(detections, 0.4)
        assert [(d.label, d.confidence) for d in kept] == [("hammer", 0.9), ("widget", 0.41)]

    def test_label_remap(self) -> None:
        assert normalize_label("handbag") == "bag"
        assert normalize_label("Tablet computer") == "tablet"
        assert normalize_label("Hammer") == "hammer"


class TestPostureFeedback:
    def test_neutral_pose(self, neutral_pose) -> None:
        score = rula.score_pose(gate(neutral_pose, AssessmentMethod.RULA))
        text = posture_feedback(score)
        assert text.startswith("Issues detected: elbow angle is suboptimal")
        assert "Good: upper arm position, wrist alignment, +2 more." in text
        assert text.endswith("Overall posture is acceptable.")

    def test_adjusted_score_drives_recommendation(self, neutral_pose) -> None:
        score = rula.score_pose(gate(neutral_pose, AssessmentMethod.RULA))
        assert posture_feedback(score, final_score=5).endswith(
            "Immediate posture correction recommended."
        )
        assert posture_feedback(score, final_score=3).endswith("Consider adjusting posture soon.")

    def test_many_issues_are_summarised(self, raised_arm_pose) -> None:
        score = rula.score_pose(gate(raised_arm_pose, AssessmentMethod.RULA))
        text = posture_feedback(score)
        assert "upper arm position is problematic" in text
        assert "and 1 more" in text
