"""
Pose data structures shared by the estimator, the sequence builder and the
quality scorer.

Coordinates are image-pixel space with the origin at the top-left corner.
"""

import math
import uuid
from types import MappingProxyType
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from exercise_pose.errors import InvalidPoseData
from exercise_pose.joints import JointName, TRACKED_JOINTS

ACCEPTANCE_THRESHOLD = 0.3
VALID_THRESHOLD = 0.5


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BodyJoint:
    """A single detected landmark in pixel coordinates."""
    name: JointName
    position: Tuple[float, float]
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "x": self.position[0],
            "y": self.position[1],
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BodyJoint":
        return cls(
            name=JointName(data["name"]),
            position=(float(data["x"]), float(data["y"])),
            confidence=float(data["confidence"]),
        )


def empty_joint_slots() -> Dict[JointName, Optional[BodyJoint]]:
    return {name: None for name in TRACKED_JOINTS}


@dataclass(frozen=True)
class PoseEstimate:
    """
    One sampled frame's body pose.

    `joints` always holds exactly the 14 tracked slots; a slot is None when
    the landmark was not observed or its confidence did not clear the
    acceptance threshold. `frame_index` and `timestamp` are placeholders
    until the sequence builder back-fills them with `with_frame()`.
    """
    joints: Mapping[JointName, Optional[BodyJoint]] = field(
        default_factory=empty_joint_slots, hash=False
    )
    overall_confidence: float = 0.0
    frame_index: int = 0
    timestamp: datetime = field(default_factory=_now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        # Read-only snapshot: the caller's dict cannot reach back into the pose.
        object.__setattr__(self, "joints", MappingProxyType(dict(self.joints)))

        keys = set(self.joints)
        if keys != set(TRACKED_JOINTS):
            missing = [j.value for j in TRACKED_JOINTS if j not in keys]
            extra = sorted(str(getattr(k, "value", k)) for k in keys - set(TRACKED_JOINTS))
            raise InvalidPoseData(f"joint slots mismatch (missing={missing}, extra={extra})")

        for name, joint in self.joints.items():
            if joint is None:
                continue
            if joint.name != name:
                raise InvalidPoseData(f"slot {name.value} holds joint {joint.name.value}")
            if not math.isfinite(joint.confidence) or joint.confidence <= ACCEPTANCE_THRESHOLD:
                raise InvalidPoseData(
                    f"{name.value} confidence {joint.confidence} is not above "
                    f"{ACCEPTANCE_THRESHOLD}"
                )

    # --------------------------------------------------------------------------
    # Slot accessors
    # --------------------------------------------------------------------------

    @property
    def head(self) -> Optional[BodyJoint]:
        return self.joints[JointName.NOSE]

    @property
    def neck(self) -> Optional[BodyJoint]:
        return self.joints[JointName.NECK]

    @property
    def left_shoulder(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_SHOULDER]

    @property
    def right_shoulder(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_SHOULDER]

    @property
    def left_elbow(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_ELBOW]

    @property
    def right_elbow(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_ELBOW]

    @property
    def left_wrist(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_WRIST]

    @property
    def right_wrist(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_WRIST]

    @property
    def left_hip(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_HIP]

    @property
    def right_hip(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_HIP]

    @property
    def left_knee(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_KNEE]

    @property
    def right_knee(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_KNEE]

    @property
    def left_ankle(self) -> Optional[BodyJoint]:
        return self.joints[JointName.LEFT_ANKLE]

    @property
    def right_ankle(self) -> Optional[BodyJoint]:
        return self.joints[JointName.RIGHT_ANKLE]

    # --------------------------------------------------------------------------
    # Derived views
    # --------------------------------------------------------------------------

    @property
    def all_joints(self) -> List[BodyJoint]:
        """Present joints in slot order."""
        return [self.joints[name] for name in TRACKED_JOINTS if self.joints[name] is not None]

    @property
    def all_valid_joints(self) -> List[BodyJoint]:
        return self.valid_joints()

    def valid_joints(self, threshold: float = VALID_THRESHOLD) -> List[BodyJoint]:
        """Present joints with confidence strictly above `threshold`."""
        return [j for j in self.all_joints if j.confidence > threshold]

    @property
    def center_of_mass(self) -> Optional[Tuple[float, float]]:
        valid = self.all_valid_joints
        if not valid:
            return None
        x = sum(j.position[0] for j in valid) / len(valid)
        y = sum(j.position[1] for j in valid) / len(valid)
        return (x, y)

    def with_frame(self, frame_index: int, timestamp: datetime) -> "PoseEstimate":
        """Copy of this pose placed at a sequence position (same id)."""
        return replace(self, frame_index=frame_index, timestamp=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "frame_index": self.frame_index,
            "timestamp": self.timestamp.isoformat(),
            "overall_confidence": self.overall_confidence,
            "joints": {
                name.value: (joint.to_dict() if joint is not None else None)
                for name, joint in self.joints.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoseEstimate":
        joints = empty_joint_slots()
        for key, value in data.get("joints", {}).items():
            try:
                name = JointName(key)
            except ValueError as e:
                raise InvalidPoseData(f"unknown joint name: {key}") from e
            if value is None:
                continue
            try:
                joints[name] = BodyJoint.from_dict(value)
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidPoseData(f"malformed joint {key}: {e!r}") from e
        try:
            return cls(
                id=data["id"],
                frame_index=int(data["frame_index"]),
                timestamp=datetime.fromisoformat(data["timestamp"]),
                overall_confidence=float(data["overall_confidence"]),
                joints=joints,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidPoseData(f"malformed pose record: {e!r}") from e


class QualityLevel(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @property
    def color(self) -> str:
        return _LEVEL_COLORS[self]

    @classmethod
    def from_score(cls, score: float) -> "QualityLevel":
        # Scores above 1.0 fall through to POOR, matching the closed [0.8, 1.0] band.
        if 0.8 <= score <= 1.0:
            return cls.EXCELLENT
        if 0.6 <= score < 0.8:
            return cls.GOOD
        if 0.4 <= score < 0.6:
            return cls.FAIR
        return cls.POOR


_LEVEL_COLORS = {
    QualityLevel.EXCELLENT: "green",
    QualityLevel.GOOD: "blue",
    QualityLevel.FAIR: "orange",
    QualityLevel.POOR: "red",
}


@dataclass(frozen=True)
class QualityAssessment:
    """Detection quality of one pose for one exercise type."""
    overall_quality: float
    confidence_score: float
    completeness_score: float
    stability_score: float
    missing_joints: Tuple[JointName, ...]
    is_acceptable: bool

    @property
    def quality_level(self) -> QualityLevel:
        return QualityLevel.from_score(self.overall_quality)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_quality": self.overall_quality,
            "confidence_score": self.confidence_score,
            "completeness_score": self.completeness_score,
            "stability_score": self.stability_score,
            "missing_joints": [j.value for j in self.missing_joints],
            "is_acceptable": self.is_acceptable,
            "quality_level": self.quality_level.value,
        }


@dataclass(frozen=True)
class SequenceQuality:
    """Aggregate detection quality over a whole pose sequence."""
    average_confidence: float
    completeness_score: float
    consistency_score: float
    overall_score: float

    @property
    def quality_level(self) -> QualityLevel:
        return QualityLevel.from_score(self.overall_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_confidence": self.average_confidence,
            "completeness_score": self.completeness_score,
            "consistency_score": self.consistency_score,
            "overall_score": self.overall_score,
            "quality_level": self.quality_level.value,
        }
