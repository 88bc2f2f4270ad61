"""Exercise pose extraction and detection-quality scoring."""
from exercise_pose.errors import (
    PoseDetectionError,
    NoVideoTrack,
    FrameExtractionFailed,
    RequestExecutionFailed,
    InsufficientValidPoses,
    InvalidPoseData,
    VideoNotReadable,
    VideoQualityBelowStandards,
)
from exercise_pose.joints import (
    JointName,
    ExerciseType,
    TRACKED_JOINTS,
    required_joints,
)
from exercise_pose.pose_types import (
    BodyJoint,
    PoseEstimate,
    QualityAssessment,
    QualityLevel,
    SequenceQuality,
)
from exercise_pose.pose_estimator import (
    PoseBackend,
    PoseEstimator,
    RawObservation,
    YoloPoseBackend,
    create_estimator,
    normalized_to_pixel,
)
from exercise_pose.video_processor import (
    VideoProcessor,
    VideoMetadata,
    SampledFrame,
    compute_stride,
)
from exercise_pose.sequence_builder import SequenceBuilder, build_sequence
from exercise_pose.quality import QualityScorer, score_pose, summarize_sequence
from exercise_pose.video_validator import (
    VideoQualityValidator,
    VideoQualityReport,
    VideoQualityIssue,
)
