"""
================================================================================
EXERCISE POSE ANALYSIS CONFIGURATION
================================================================================
This configuration file centralizes all settings for the exercise pose
pipeline. Modify these values to customize behavior without touching core logic.

Project: Exercise Pose Extraction & Quality Scoring
Backend: Ultralytics YOLO-Pose (single-stage pose estimation)

CONFIGURATION SECTIONS:
    1. Device Settings - Hardware acceleration options
    2. Model Settings - YOLO-Pose model selection
    3. Frame Sampling - Stride and frame cap
    4. Joint Thresholds - Acceptance and validity floors
    5. Quality Scoring - Weights and acceptability gates
    6. Video Standards - Minimum recording quality
    7. Output Settings - File paths
================================================================================
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


# ==============================================================================
# SECTION 1: DEVICE SETTINGS
# ==============================================================================
# Device Priority:
#   1. MPS (Apple Silicon GPU)
#   2. CUDA (NVIDIA GPU)
#   3. CPU - Fallback, slowest but always available
# ==============================================================================

@dataclass
class DeviceConfig:
    """
    Hardware device configuration for YOLO model inference.

    Attributes:
        preferred_device: Target device string ('mps', 'cuda', 'cpu')
        fallback_to_cpu: If True, falls back to CPU when the device is missing
    """
    preferred_device: str = "cpu"
    fallback_to_cpu: bool = True

    def get_device(self) -> str:
        """
        Determines the best available device for inference.

        Returns:
            str: Device string compatible with Ultralytics YOLO

        Raises:
            RuntimeError: If preferred device unavailable and fallback disabled
        """
        if self.preferred_device == "cpu":
            print("→ Using CPU for inference")
            return "cpu"

        import torch

        if self.preferred_device == "mps":
            if torch.backends.mps.is_available() and torch.backends.mps.is_built():
                print("✓ MPS (Metal Performance Shaders) backend available")
                return "mps"

            if self.fallback_to_cpu:
                print("⚠ MPS unavailable, falling back to CPU")
                return "cpu"
            raise RuntimeError("MPS device requested but not available")

        if self.preferred_device in ("cuda", "0"):
            if torch.cuda.is_available():
                print(f"✓ CUDA available: {torch.cuda.get_device_name(0)}")
                return "cuda"

            if self.fallback_to_cpu:
                print("⚠ CUDA unavailable, falling back to CPU")
                return "cpu"
            raise RuntimeError("CUDA device requested but not available")

        raise ValueError(f"Unknown device: {self.preferred_device}")


# ==============================================================================
# SECTION 2: MODEL SETTINGS
# ==============================================================================
# Model Variants (COCO-trained, 17 keypoints):
#   - yolov8n-pose: Nano - fastest, lowest accuracy
#   - yolov8m-pose: Medium - balanced [DEFAULT]
#   - yolov8x-pose: XLarge - slowest, highest accuracy
#
# Weights are auto-downloaded on first use to ~/.cache/ultralytics/
# ==============================================================================

@dataclass
class ModelConfig:
    """
    YOLO-Pose model configuration.

    Attributes:
        model_name: YOLO-Pose weights file or variant name
        confidence_threshold: Minimum person-detection confidence (0-1)
        iou_threshold: IoU threshold for non-max suppression
        max_detections: Maximum people to detect per frame
    """
    model_name: str = "yolov8m-pose.pt"
    confidence_threshold: float = 0.25
    iou_threshold: float = 0.7
    max_detections: int = 1


# ==============================================================================
# SECTION 3: FRAME SAMPLING
# ==============================================================================
# stride = max(1, round(fps * frame_interval))
#   - 30 fps video at 0.1s interval → every 3rd frame
#   - 10 fps video at 0.1s interval → every frame
#
# max_frames bounds memory for long recordings: 300 frames at the default
# interval is roughly 30 seconds of output.
# ==============================================================================

@dataclass
class SamplingConfig:
    """Frame sampling configuration."""
    frame_interval: float = 0.1
    max_frames: int = 300
    supported_formats: Tuple[str, ...] = (".mp4", ".mov", ".avi", ".mkv", ".m4v")


# ==============================================================================
# SECTION 4: JOINT THRESHOLDS
# ==============================================================================
# acceptance_threshold: estimator points at or below this are dropped
#   entirely; a pose never carries a joint this uncertain. May be raised,
#   never lowered below 0.3.
# valid_threshold: joints above this count toward quality scoring.
# ==============================================================================

@dataclass
class JointConfig:
    """Per-joint confidence floors."""
    acceptance_threshold: float = 0.3
    valid_threshold: float = 0.5


# ==============================================================================
# SECTION 5: QUALITY SCORING
# ==============================================================================
# overall = 0.4 * completeness + 0.4 * confidence + 0.2 * stability
# acceptable = overall >= 0.6 AND completeness >= 0.7
# ==============================================================================

@dataclass
class ScoringConfig:
    """Quality scoring weights and acceptability gates."""
    completeness_weight: float = 0.4
    confidence_weight: float = 0.4
    stability_weight: float = 0.2
    min_overall: float = 0.6
    min_completeness: float = 0.7


# ==============================================================================
# SECTION 6: VIDEO STANDARDS
# ==============================================================================

@dataclass
class VideoStandardsConfig:
    """
    Minimum recording standards checked before analysis.

    Duration, resolution and frame rate violations are critical and reject
    the video. Overlong recordings and oversized files are only reported.
    """
    min_duration: float = 3.0
    max_duration: float = 300.0
    min_width: int = 480
    min_height: int = 640
    min_fps: float = 15.0
    max_file_size: int = 500 * 1024 * 1024


# ==============================================================================
# SECTION 7: OUTPUT SETTINGS
# ==============================================================================

@dataclass
class OutputConfig:
    """Output file configuration."""

    output_dir: Path = field(default_factory=lambda: Path("./output"))
    save_poses: bool = True

    def setup_directories(self) -> None:
        """Create output directory structure."""
        (self.output_dir / "keypoints").mkdir(parents=True, exist_ok=True)


# ==============================================================================
# MASTER CONFIGURATION CLASS
# ==============================================================================

@dataclass
class PoseAnalysisConfig:
    """
    Master configuration class combining all settings.

    Usage:
        >>> config = PoseAnalysisConfig()
        >>> config.sampling.frame_interval
        0.1
    """

    device: DeviceConfig = field(default_factory=DeviceConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    joints: JointConfig = field(default_factory=JointConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    standards: VideoStandardsConfig = field(default_factory=VideoStandardsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ValueError on out-of-range settings."""
        if not 0 <= self.model.confidence_threshold <= 1:
            raise ValueError("confidence_threshold must be between 0 and 1")
        if self.sampling.frame_interval <= 0:
            raise ValueError("frame_interval must be positive")
        if self.sampling.max_frames < 1:
            raise ValueError("max_frames must be at least 1")
        if not 0.3 <= self.joints.acceptance_threshold <= self.joints.valid_threshold <= 1:
            raise ValueError(
                "joint thresholds must satisfy 0.3 <= acceptance <= valid <= 1"
            )
        weights = (
            self.scoring.completeness_weight
            + self.scoring.confidence_weight
            + self.scoring.stability_weight
        )
        if abs(weights - 1.0) > 1e-9:
            raise ValueError(f"scoring weights must sum to 1.0, got {weights}")

    def print_summary(self) -> None:
        """Print a summary of current configuration."""
        print("\n" + "=" * 60)
        print("EXERCISE POSE CONFIGURATION SUMMARY")
        print("=" * 60)
        print(f"\n[Device]")
        print(f"  Preferred: {self.device.preferred_device}")
        print(f"\n[Model]")
        print(f"  Model: {self.model.model_name}")
        print(f"  Confidence: {self.model.confidence_threshold}")
        print(f"\n[Sampling]")
        print(f"  Interval: {self.sampling.frame_interval}s")
        print(f"  Max Frames: {self.sampling.max_frames}")
        print(f"\n[Joints]")
        print(f"  Acceptance: > {self.joints.acceptance_threshold}")
        print(f"  Valid: > {self.joints.valid_threshold}")
        print(f"\n[Output]")
        print(f"  Directory: {self.output.output_dir}")
        print("=" * 60 + "\n")


# ==============================================================================
# PRESET FACTORIES
# ==============================================================================

def get_fast_config() -> PoseAnalysisConfig:
    """Speed-optimized configuration."""
    config = PoseAnalysisConfig()
    config.model.model_name = "yolov8n-pose.pt"
    config.sampling.frame_interval = 0.2
    return config


def get_accurate_config() -> PoseAnalysisConfig:
    """Accuracy-optimized configuration."""
    config = PoseAnalysisConfig()
    config.model.model_name = "yolov8x-pose.pt"
    config.model.confidence_threshold = 0.15
    return config


if __name__ == "__main__":
    PoseAnalysisConfig().print_summary()
