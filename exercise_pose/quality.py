"""
================================================================================
QUALITY SCORING MODULE
================================================================================
Measures how complete and trustworthy a pose is for a given exercise.

Per pose:
    completeness = |valid joints| / |required joints|      (not clamped)
    confidence   = mean confidence of valid joints           (0 if none)
    stability    = max(0, 1 - std(confidence of valid joints))
    overall      = 0.4 * completeness + 0.4 * confidence + 0.2 * stability
    acceptable   = overall >= 0.6 AND completeness >= 0.7

Valid joints may include joints outside the required set. They still count
toward completeness, which can therefore exceed 1.0.

Per sequence, the same weighting is applied to the average whole-pose
confidence, the valid-joint coverage relative to the best frame, and the
consistency of whole-pose confidence across frames.
================================================================================
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from configs.config import PoseAnalysisConfig
from exercise_pose.joints import ExerciseType, required_joints
from exercise_pose.pose_types import PoseEstimate, QualityAssessment, SequenceQuality


def _mean_and_std(values: Sequence[float]) -> Tuple[float, float]:
    """
    Mean and population standard deviation.

    Empty and single-element inputs have zero spread by definition.
    """
    if len(values) == 0:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=np.float64)
    mean = float(arr.mean())
    if len(values) == 1:
        return mean, 0.0
    variance = float(np.mean((arr - mean) ** 2))
    return mean, float(np.sqrt(variance))


def score_pose(
    pose: PoseEstimate,
    exercise_type: ExerciseType,
    config: Optional[PoseAnalysisConfig] = None,
) -> QualityAssessment:
    """Assess one pose against an exercise's required joints. Never raises."""
    config = config or PoseAnalysisConfig()
    scoring = config.scoring

    required = required_joints(exercise_type)
    detected = pose.valid_joints(config.joints.valid_threshold)

    completeness = len(detected) / len(required)
    confidence, spread = _mean_and_std([j.confidence for j in detected])
    stability = max(0.0, 1.0 - spread)

    overall = (
        completeness * scoring.completeness_weight
        + confidence * scoring.confidence_weight
        + stability * scoring.stability_weight
    )

    detected_names = {j.name for j in detected}
    missing = tuple(name for name in required if name not in detected_names)

    return QualityAssessment(
        overall_quality=overall,
        confidence_score=confidence,
        completeness_score=completeness,
        stability_score=stability,
        missing_joints=missing,
        is_acceptable=overall >= scoring.min_overall and completeness >= scoring.min_completeness,
    )


def summarize_sequence(
    poses: Sequence[PoseEstimate],
    config: Optional[PoseAnalysisConfig] = None,
) -> SequenceQuality:
    """Aggregate detection quality over a pose sequence."""
    if not poses:
        return SequenceQuality(
            average_confidence=0.0,
            completeness_score=0.0,
            consistency_score=0.0,
            overall_score=0.0,
        )

    config = config or PoseAnalysisConfig()
    scoring = config.scoring

    average_confidence, spread = _mean_and_std([p.overall_confidence for p in poses])
    consistency = max(0.0, 1.0 - spread)

    counts = [len(p.valid_joints(config.joints.valid_threshold)) for p in poses]
    max_count = max(counts)
    completeness = sum(counts) / (len(poses) * max_count) if max_count > 0 else 0.0

    overall = (
        average_confidence * scoring.confidence_weight
        + completeness * scoring.completeness_weight
        + consistency * scoring.stability_weight
    )

    return SequenceQuality(
        average_confidence=average_confidence,
        completeness_score=completeness,
        consistency_score=consistency,
        overall_score=overall,
    )


class QualityScorer:
    """
    Stateless scorer bound to one configuration.

    Example:
        >>> scorer = QualityScorer()
        >>> assessment = scorer.score(pose, ExerciseType.SQUAT)
        >>> assessment.quality_level
    """

    def __init__(self, config: Optional[PoseAnalysisConfig] = None):
        self.config = config or PoseAnalysisConfig()

    def score(self, pose: PoseEstimate, exercise_type: ExerciseType) -> QualityAssessment:
        return score_pose(pose, exercise_type, self.config)

    def score_sequence(
        self,
        poses: Sequence[PoseEstimate],
        exercise_type: ExerciseType,
    ) -> List[QualityAssessment]:
        return [score_pose(pose, exercise_type, self.config) for pose in poses]

    def summarize(self, poses: Sequence[PoseEstimate]) -> SequenceQuality:
        return summarize_sequence(poses, self.config)
