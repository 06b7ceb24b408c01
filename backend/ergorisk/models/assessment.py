# Assessment data model: keypoints, joint angles, component/composite scores,
# load estimates and the scored / indeterminate result union.

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class KeypointIndex(IntEnum):
    """COCO-17 body topology used by every PoseSample."""

    NOSE = 0
    LEFT_EYE = 1
    RIGHT_EYE = 2
    LEFT_EAR = 3
    RIGHT_EAR = 4
    LEFT_SHOULDER = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW = 7
    RIGHT_ELBOW = 8
    LEFT_WRIST = 9
    RIGHT_WRIST = 10
    LEFT_HIP = 11
    RIGHT_HIP = 12
    LEFT_KNEE = 13
    RIGHT_KNEE = 14
    LEFT_ANKLE = 15
    RIGHT_ANKLE = 16


KEYPOINT_NAMES: list[str] = [kp.name.lower() for kp in KeypointIndex]

POSE_SAMPLE_LENGTH = len(KeypointIndex)


class AssessmentMethod(str, Enum):
    RULA = "rula"
    REBA = "reba"


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> Side:
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


class RiskLevel(str, Enum):
    """Cross-method risk category, ordered by ``severity``."""

    NEGLIGIBLE = "negligible"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return list(RiskLevel).index(self)


class WeightSource(str, Enum):
    HEURISTIC = "heuristic"
    OBJECT_DETECTED = "object_detected"
    MANUAL = "manual"


class ArmPosition(str, Enum):
    CLOSE = "close"
    EXTENDED = "extended"
    OVERHEAD = "overhead"


class LoadDirection(str, Enum):
    FRONT = "front"
    SIDE = "side"
    BACK = "back"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Keypoint(_Frozen):
    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)


class JointAngles(_Frozen):
    """Raw joint angles in degrees, kept on the result for diagnostics."""

    trunk: float
    neck: float
    upper_arm: float
    lower_arm: float
    wrist: float
    thigh: float | None = None
    knee: float | None = None


class RulaComponents(_Frozen):
    upper_arm: int = Field(ge=1, le=4)
    lower_arm: int = Field(ge=1, le=2)
    wrist: int = Field(ge=1, le=3)
    neck: int = Field(ge=1, le=3)
    trunk: int = Field(ge=1, le=4)


class RebaComponents(_Frozen):
    trunk: int = Field(ge=1, le=5)
    neck: int = Field(ge=1, le=4)
    legs: int = Field(ge=1, le=4)
    upper_arm: int = Field(ge=1, le=6)
    lower_arm: int = Field(ge=1, le=3)
    wrist: int = Field(ge=1, le=4)
    load: int = Field(ge=0, le=3)


class PostureModifiers(_Frozen):
    """Observer-supplied overrides for the whole-body modifiers.

    ``None`` leaves a flag to be inferred from geometry. Wrist deviation and
    twist cannot be seen in a 17-point skeleton, so they are only ever set
    here.
    """

    trunk_twisted: bool | None = None
    trunk_side_bent: bool | None = None
    neck_twisted: bool | None = None
    neck_side_bent: bool | None = None
    legs_uneven: bool | None = None
    shoulder_raised: bool | None = None
    arm_abducted: bool | None = None
    crosses_midline: bool | None = None
    wrist_deviated: bool | None = None
    wrist_twisted: bool | None = None


class RebaModifierFlags(_Frozen):
    trunk_twisted: bool = False
    trunk_side_bent: bool = False
    neck_twisted: bool = False
    neck_side_bent: bool = False
    legs_uneven: bool = False
    shoulder_raised: bool = False
    arm_abducted: bool = False
    crosses_midline: bool = False
    wrist_deviated: bool = False
    wrist_twisted: bool = False


class RulaScore(_Frozen):
    method: Literal["rula"] = "rula"
    side: Side
    angles: JointAngles
    components: RulaComponents
    score_a: int = Field(ge=1, le=8)
    score_b: int = Field(ge=1, le=7)
    final_score: int = Field(ge=1, le=7)
    stress_level: int = Field(ge=1, le=7)
    risk_level: RiskLevel
    risk_label: str


class RebaScore(_Frozen):
    method: Literal["reba"] = "reba"
    side: Side
    angles: JointAngles
    components: RebaComponents
    modifiers: RebaModifierFlags
    score_a: int = Field(ge=1, le=11)
    score_b: int = Field(ge=1, le=8)
    final_score: int = Field(ge=1, le=7)
    risk_level: RiskLevel
    risk_label: str
    action_level: str


MethodScore = Annotated[Union[RulaScore, RebaScore], Field(discriminator="method")]


class PostureAnalysis(_Frozen):
    is_lifting: bool = False
    is_carrying: bool = False
    arm_position: ArmPosition = ArmPosition.CLOSE
    spine_deviation_deg: float = 0.0
    load_direction: LoadDirection = LoadDirection.FRONT


class LoadEstimate(_Frozen):
    estimated_weight_kg: float = Field(0.0, ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)
    posture: PostureAnalysis = PostureAnalysis()
    indicators: list[str] = Field(
        default_factory=list,
        description="Independent load cues that agreed for this frame",
    )


class DetectedObject(_Frozen):
    label: str
    confidence: float = Field(ge=0.0, le=1.0)
    bbox: tuple[float, float, float, float] = Field(
        description="[x, y, width, height], normalized like the pose keypoints",
    )


class HeldObject(_Frozen):
    detection: DetectedObject
    category: str
    estimated_weight_kg: float
    anchor: Literal["left_wrist", "right_wrist", "torso"]
    distance_px: float


class ObjectInteraction(_Frozen):
    is_holding_object: bool = False
    held_objects: list[HeldObject] = Field(default_factory=list)
    total_estimated_weight_kg: float = 0.0


class AdjustedScore(_Frozen):
    base_final_score: int = Field(ge=1, le=7)
    final_score: int = Field(ge=1, le=7)
    risk_level: RiskLevel
    risk_label: str
    weight_multiplier: float
    effective_weight_kg: float = Field(ge=0.0)
    weight_source: WeightSource


class Assessment(_Frozen):
    status: Literal["scored"] = "scored"
    method: AssessmentMethod
    score: MethodScore
    load: LoadEstimate
    interaction: ObjectInteraction | None = None
    adjusted: AdjustedScore | None = None
    feedback: str = ""

    @property
    def effective_final_score(self) -> int:
        """Final score after load adjustment, if any."""
        return self.adjusted.final_score if self.adjusted else self.score.final_score


class Indeterminate(_Frozen):
    status: Literal["indeterminate"] = "indeterminate"
    method: AssessmentMethod
    reason: Literal["malformed_length", "low_confidence"]
    missing_keypoints: list[str] = Field(default_factory=list)


AssessmentResult = Annotated[Union[Assessment, Indeterminate], Field(discriminator="status")]
