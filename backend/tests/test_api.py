"""HTTP tests for the FastAPI app, with the ML adapters replaced by fakes."""

from __future__ import annotations

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from ergorisk.main import app
from ergorisk.models.assessment import DetectedObject
from ergorisk.routers import assessment


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def as_json(keypoints) -> list[dict]:
    return [kp.model_dump() for kp in keypoints]


class FakePoseService:
    def __init__(self, keypoints) -> None:
        self.keypoints = keypoints

    def estimate(self, image_rgb):
        return self.keypoints


class FakeDetectionService:
    def __init__(self, detections=None, fail: bool = False) -> None:
        self.detections = detections or []
        self.fail = fail

    def detect(self, image, confidence_threshold=None):
        if self.fail:
            raise RuntimeError("model exploded")
        return self.detections


def png_bytes(width: int = 320, height: int = 240) -> bytes:
    ok, buf = cv2.imencode(".png", np.zeros((height, width, 3), dtype=np.uint8))
    assert ok
    return buf.tobytes()


class TestHealth:
    def test_health(self, client) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAssessEndpoint:
    def test_scores_neutral_pose(self, client, neutral_pose) -> None:
        response = client.post("/api/assess", json={"keypoints": as_json(neutral_pose), "method": "rula"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "scored"
        assert body["score"]["method"] == "rula"
        assert body["score"]["final_score"] == 1
        assert body["adjusted"] is None

    def test_manual_weight(self, client, neutral_pose) -> None:
        response = client.post(
            "/api/assess",
            json={"keypoints": as_json(neutral_pose), "method": "reba", "manual_weight_kg": 25},
        )
        body = response.json()
        assert body["score"]["components"]["load"] == 3
        assert body["adjusted"]["weight_source"] == "manual"

    def test_short_sample_is_indeterminate_not_an_error(self, client, neutral_pose) -> None:
        response = client.post("/api/assess", json={"keypoints": as_json(neutral_pose[:10])})
        assert response.status_code == 200
        assert response.json() == {
            "status": "indeterminate",
            "method": "rula",
            "reason": "malformed_length",
            "missing_keypoints": [],
        }

    def test_rejects_unnormalized_keypoints(self, client, neutral_pose) -> None:
        keypoints = as_json(neutral_pose)
        keypoints[0]["x"] = 320
        response = client.post("/api/assess", json={"keypoints": keypoints})
        assert response.status_code == 422

    def test_rejects_negative_weight(self, client, neutral_pose) -> None:
        response = client.post(
            "/api/assess", json={"keypoints": as_json(neutral_pose), "manual_weight_kg": -1}
        )
        assert response.status_code == 422


class TestBatchEndpoint:
    def test_summary(self, client, neutral_pose) -> None:
        frames = [
            {"keypoints": as_json(neutral_pose)},
            {"keypoints": as_json(neutral_pose[:3])},
            {"keypoints": as_json(neutral_pose), "manual_weight_kg": 25},
        ]
        response = client.post("/api/assess/batch", json={"frames": frames})
        assert response.status_code == 200
        body = response.json()
        assert body["total_frames"] == 3
        assert body["scored_frames"] == 2
        assert body["indeterminate_frames"] == 1
        assert body["peak_final_score"] == 3
        assert body["mean_final_score"] == 2.0

    def test_empty_batch(self, client) -> None:
        body = client.post("/api/assess/batch", json={"frames": []}).json()
        assert body["total_frames"] == 0
        assert body["peak_final_score"] is None


class TestImageEndpoint:
    @pytest.fixture(autouse=True)
    def _restore_services(self):
        yield
        assessment._pose_service = None
        assessment._detection_service = None

    def test_unsupported_extension(self, client) -> None:
        response = client.post("/api/assess/image", files={"file": ("clip.gif", b"GIF89a", "image/gif")})
        assert response.status_code == 400

    def test_undecodable_image(self, client) -> None:
        response = client.post("/api/assess/image", files={"file": ("photo.png", b"not an image", "image/png")})
        assert response.status_code == 400

    def test_runs_pose_detection_and_engine(self, client, neutral_pose) -> None:
        phone = DetectedObject(label="phone", confidence=0.9, bbox=(0.62, 0.575, 0.05, 0.05))
        assessment._pose_service = FakePoseService(neutral_pose)
        assessment._detection_service = FakeDetectionService([phone])

        response = client.post(
            "/api/assess/image?method=reba",
            files={"file": ("photo.png", png_bytes(), "image/png")},
        )
        assert response.status_code == 200
        body = response.json()
        assert (body["width"], body["height"]) == (320, 240)
        assert body["detections"][0]["label"] == "phone"
        assert len(body["keypoints"]) == 17
        assert body["assessment"]["method"] == "reba"
        assert body["assessment"]["interaction"] is not None

    def test_no_person_found(self, client) -> None:
        assessment._pose_service = FakePoseService(None)
        assessment._detection_service = FakeDetectionService()

        response = client.post("/api/assess/image", files={"file": ("photo.jpg", png_bytes(), "image/jpeg")})
        body = response.json()
        assert body["keypoints"] is None
        assert body["assessment"] is None

    def test_model_failure_is_500(self, client, neutral_pose) -> None:
        assessment._pose_service = FakePoseService(neutral_pose)
        assessment._detection_service = FakeDetectionService(fail=True)

        response = client.post("/api/assess/image", files={"file": ("photo.png", png_bytes(), "image/png")})
        assert response.status_code == 500


class TestObjectEndpoints:
    def test_weight_table(self, client) -> None:
        body = client.get("/api/objects/weights").json()
        assert {"label": "hammer", "category": "tools", "weight_kg": 0.5} in body

    def test_suggestions(self, client) -> None:
        response = client.post(
            "/api/objects/suggestions",
            json=[{"label": "widget", "confidence": 0.61, "bbox": [0.1, 0.1, 0.2, 0.2]}],
        )
        assert response.json() == [
            {"name": "widget", "category": "unknown", "weight_kg": 0.5, "confidence": 61}
        ]
