"""
================================================================================
JOINT VOCABULARY & EXERCISE POLICY
================================================================================
Landmark names, the 14 joints a pose carries, and the required-joint table
used by quality scoring.

Vocabulary (19 landmarks):
    nose, left/right eye, left/right ear, neck, root,
    left/right shoulder, elbow, wrist, hip, knee, ankle

Only 14 of these are tracked per pose. Eyes, ears and root exist in the
vocabulary because the UNKNOWN exercise type requires the full set.
================================================================================
"""

import re
from enum import Enum
from typing import Dict, Tuple


class JointName(str, Enum):
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    NECK = "neck"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"
    ROOT = "root"


# Slot order of a PoseEstimate. The head slot holds the nose landmark.
TRACKED_JOINTS: Tuple[JointName, ...] = (
    JointName.NOSE,
    JointName.NECK,
    JointName.LEFT_SHOULDER,
    JointName.RIGHT_SHOULDER,
    JointName.LEFT_ELBOW,
    JointName.RIGHT_ELBOW,
    JointName.LEFT_WRIST,
    JointName.RIGHT_WRIST,
    JointName.LEFT_HIP,
    JointName.RIGHT_HIP,
    JointName.LEFT_KNEE,
    JointName.RIGHT_KNEE,
    JointName.LEFT_ANKLE,
    JointName.RIGHT_ANKLE,
)


class ExerciseType(str, Enum):
    SQUAT = "squat"
    DEADLIFT = "deadlift"
    BENCH_PRESS = "bench_press"
    SHOULDER_PRESS = "shoulder_press"
    PULL_UP = "pull_up"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str) -> "ExerciseType":
        """
        Parse user input such as 'Bench Press', 'bench-press' or 'benchPress'.

        Unrecognised names map to UNKNOWN.
        """
        key = re.sub(r"(?<=[a-z])(?=[A-Z])", "_", value.strip())
        key = re.sub(r"[\s\-]+", "_", key).lower()
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


_SHOULDERS = (JointName.LEFT_SHOULDER, JointName.RIGHT_SHOULDER)
_ELBOWS = (JointName.LEFT_ELBOW, JointName.RIGHT_ELBOW)
_WRISTS = (JointName.LEFT_WRIST, JointName.RIGHT_WRIST)
_HIPS = (JointName.LEFT_HIP, JointName.RIGHT_HIP)
_KNEES = (JointName.LEFT_KNEE, JointName.RIGHT_KNEE)
_ANKLES = (JointName.LEFT_ANKLE, JointName.RIGHT_ANKLE)

REQUIRED_JOINTS: Dict[ExerciseType, Tuple[JointName, ...]] = {
    ExerciseType.SQUAT: _HIPS + _KNEES + _ANKLES + _SHOULDERS + (JointName.NECK,),
    ExerciseType.DEADLIFT: (
        _HIPS + _KNEES + _ANKLES + _SHOULDERS + _WRISTS + (JointName.NECK,)
    ),
    ExerciseType.BENCH_PRESS: _SHOULDERS + _ELBOWS + _WRISTS + (JointName.NECK,),
    ExerciseType.SHOULDER_PRESS: (
        _SHOULDERS + _ELBOWS + _WRISTS + (JointName.NECK,) + _HIPS
    ),
    ExerciseType.PULL_UP: _SHOULDERS + _ELBOWS + _WRISTS + (JointName.NECK,) + _HIPS,
    ExerciseType.UNKNOWN: (
        JointName.NOSE,
        JointName.LEFT_EYE,
        JointName.RIGHT_EYE,
        JointName.LEFT_EAR,
        JointName.RIGHT_EAR,
        JointName.NECK,
    ) + _SHOULDERS + _ELBOWS + _WRISTS + _HIPS + _KNEES + _ANKLES + (JointName.ROOT,),
}


def required_joints(exercise_type: ExerciseType) -> Tuple[JointName, ...]:
    """Ordered joints that must be visible to assess the given exercise."""
    return REQUIRED_JOINTS[ExerciseType(exercise_type)]
