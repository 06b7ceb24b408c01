"""Tests for the posture-based load estimator."""

from __future__ import annotations

import pytest

from ergorisk.models.assessment import ArmPosition, LoadDirection
from ergorisk.services.load import estimate_load

# Elbows bent 90°, forearms pointing outwards at elbow height
LIFT_ARMS = {
    "left_elbow": (0.6, 0.45),
    "right_elbow": (0.4, 0.45),
    "left_wrist": (0.7, 0.45),
    "right_wrist": (0.3, 0.45),
}


class TestEstimateLoad:
    def test_neutral_pose_carries_nothing(self, neutral_pose) -> None:
        result = estimate_load(neutral_pose)
        assert result.estimated_weight_kg == 0.0
        assert result.confidence == 0.3
        assert not result.posture.is_lifting
        assert not result.posture.is_carrying
        assert result.posture.arm_position is ArmPosition.CLOSE
        assert result.indicators == []

    def test_malformed_sample(self, neutral_pose) -> None:
        result = estimate_load(neutral_pose[:5])
        assert result.estimated_weight_kg == 0.0
        assert result.confidence == 0.3

    def test_missing_arm_points(self, make_pose) -> None:
        result = estimate_load(make_pose(confidences={"right_wrist": 0.1}))
        assert result.estimated_weight_kg == 0.0

    def test_single_indicator_is_not_enough(self, make_pose) -> None:
        """A grip posture alone is detected but yields no weight."""
        result = estimate_load(make_pose(LIFT_ARMS))
        assert result.posture.is_lifting
        assert result.confidence == 0.7
        assert result.indicators == ["grip_posture"]
        assert result.estimated_weight_kg == 0.0

    def test_raised_empty_arm_carries_nothing(self, raised_arm_pose) -> None:
        """Reach and asymmetry from one arm agree, but there is no grip."""
        result = estimate_load(raised_arm_pose)
        assert result.indicators == ["extended_reach", "asymmetry"]
        assert not result.posture.is_lifting
        assert not result.posture.is_carrying
        assert result.estimated_weight_kg == 0.0

    def test_lift_with_spine_compensation(self, make_pose) -> None:
        shifted = {name: (x + 0.1, y) for name, (x, y) in LIFT_ARMS.items()}
        result = estimate_load(make_pose(shifted, shift_upper_body=0.1))
        assert result.posture.is_lifting
        assert result.posture.spine_deviation_deg == pytest.approx(18.43, abs=0.1)
        assert result.indicators == ["grip_posture", "spine_compensation"]
        assert result.estimated_weight_kg == pytest.approx(11.5)

    def test_one_arm_overhead(self, make_pose) -> None:
        result = estimate_load(make_pose({"left_elbow": (0.6, 0.2), "left_wrist": (0.6, 0.1)}))
        assert result.posture.is_lifting
        assert result.posture.arm_position is ArmPosition.OVERHEAD
        assert result.posture.load_direction is LoadDirection.SIDE
        assert "asymmetry" in result.indicators
        assert result.estimated_weight_kg == pytest.approx(21.0)

    def test_carrying_close_to_body(self, make_pose) -> None:
        result = estimate_load(
            make_pose(
                {
                    "left_elbow": (0.62, 0.45),
                    "right_elbow": (0.38, 0.45),
                    "left_wrist": (0.6, 0.4),
                    "right_wrist": (0.4, 0.4),
                }
            )
        )
        assert result.posture.is_carrying
        assert not result.posture.is_lifting
        assert result.confidence == 0.7

    def test_weight_never_negative(self, make_pose) -> None:
        for shift in (0.0, 0.05, 0.1, 0.2):
            assert estimate_load(make_pose(shift_upper_body=shift)).estimated_weight_kg >= 0.0
