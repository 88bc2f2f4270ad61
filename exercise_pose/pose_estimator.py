"""
================================================================================
POSE ESTIMATOR MODULE
================================================================================
Adapter between an external body-pose capability and PoseEstimate.

The capability (a PoseBackend) reports points in normalized coordinates with
the origin at the BOTTOM-LEFT of the image, both axes in [0, 1]. The adapter
keeps points whose confidence is strictly above the acceptance threshold and
converts them to pixel space with the vertical axis flipped:

    x_pixel = x_norm * width
    y_pixel = (1 - y_norm) * height
================================================================================
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from configs.config import PoseAnalysisConfig
from exercise_pose.errors import InvalidPoseData, RequestExecutionFailed
from exercise_pose.joints import JointName, TRACKED_JOINTS
from exercise_pose.pose_types import BodyJoint, PoseEstimate, empty_joint_slots


# COCO-17 output order of YOLO-Pose
COCO_KEYPOINTS: Tuple[JointName, ...] = (
    JointName.NOSE,
    JointName.LEFT_EYE,
    JointName.RIGHT_EYE,
    JointName.LEFT_EAR,
    JointName.RIGHT_EAR,
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


@dataclass
class RawObservation:
    """
    One body as reported by the capability.

    points maps a landmark to (x_norm, y_norm, confidence), origin bottom-left.
    """
    points: Dict[JointName, Tuple[float, float, float]] = field(default_factory=dict)
    confidence: float = 0.0


def normalized_to_pixel(x: float, y: float, width: int, height: int) -> Tuple[float, float]:
    """Map a bottom-left-origin normalized point to top-left pixel space."""
    return (x * width, (1.0 - y) * height)


# ==============================================================================
# CAPABILITY INTERFACE
# ==============================================================================

class PoseBackend(ABC):
    """
    Body-pose capability.

    Implementations take a BGR image (H, W, 3 uint8) and return zero or more
    observations, best first.
    """

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[RawObservation]: ...

    def close(self) -> None:
        pass


class YoloPoseBackend(PoseBackend):
    """
    Ultralytics YOLO-Pose capability.

    COCO-17 has no neck keypoint; it is synthesized as the shoulder midpoint
    with the weaker shoulder's confidence.
    """

    def __init__(self, config: Optional[PoseAnalysisConfig] = None):
        self.config = config or PoseAnalysisConfig()
        self.device: Optional[str] = None
        self.model = None
        self.initialized = False

    def name(self) -> str:
        return f"yolo_pose:{self.config.model.model_name}"

    def initialize(self) -> None:
        """Select device, load the model once and warm it up."""
        print("\n" + "=" * 60)
        print("INITIALIZING YOLO-POSE BACKEND")
        print("=" * 60)

        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise RuntimeError("Ultralytics not installed. Run: pip install ultralytics") from e

        print("\n[Step 1/2] Selecting compute device...")
        self.device = self.config.device.get_device()

        print(f"\n[Step 2/2] Loading YOLO-Pose model...")
        print(f"  Model: {self.config.model.model_name}")
        self.model = YOLO(self.config.model.model_name)
        print(f"  ✓ Model loaded successfully")

        self._warmup()
        self.initialized = True
        print("=" * 60 + "\n")

    def _warmup(self) -> None:
        dummy_img = np.zeros((640, 640, 3), dtype=np.uint8)
        try:
            _ = self.model(dummy_img, device=self.device, verbose=False)
            print("  ✓ Warmup complete")
        except Exception as e:
            print(f"  ⚠ Warmup failed: {e}")

    def detect(self, image: np.ndarray) -> List[RawObservation]:
        if not self.initialized:
            raise RuntimeError("Backend not initialized. Call initialize() first.")

        results = self.model(
            image,
            device=self.device,
            conf=self.config.model.confidence_threshold,
            iou=self.config.model.iou_threshold,
            max_det=self.config.model.max_detections,
            verbose=False,
        )
        result = results[0]

        if result.keypoints is None or len(result.keypoints) == 0:
            return []

        xyn = result.keypoints.xyn.cpu().numpy()
        if result.keypoints.conf is not None:
            kp_scores = result.keypoints.conf.cpu().numpy()
        else:
            kp_scores = np.ones(xyn.shape[:2], dtype=np.float32)
        box_scores = result.boxes.conf.cpu().numpy()

        observations = []
        for person in np.argsort(-box_scores):
            points = {}
            for idx, joint in enumerate(COCO_KEYPOINTS):
                x, y = xyn[person, idx]
                points[joint] = (float(x), 1.0 - float(y), float(kp_scores[person, idx]))

            left = points[JointName.LEFT_SHOULDER]
            right = points[JointName.RIGHT_SHOULDER]
            points[JointName.NECK] = (
                (left[0] + right[0]) / 2.0,
                (left[1] + right[1]) / 2.0,
                min(left[2], right[2]),
            )
            observations.append(
                RawObservation(points=points, confidence=float(box_scores[person]))
            )
        return observations

    def close(self) -> None:
        self.model = None
        self.initialized = False


# ==============================================================================
# ADAPTER
# ==============================================================================

class PoseEstimator:
    """
    Turns one image into at most one PoseEstimate.

    Example:
        >>> estimator = create_estimator()
        >>> pose = asyncio.run(estimator.estimate_single(frame))
    """

    def __init__(
        self,
        backend: PoseBackend,
        config: Optional[PoseAnalysisConfig] = None,
    ):
        self.backend = backend
        self.config = config or PoseAnalysisConfig()
        self._inference_times: List[float] = []

    async def estimate_single(self, image: np.ndarray) -> Optional[PoseEstimate]:
        """
        Estimate the single best body pose in an image.

        Returns None when the capability finds no body. The returned pose has
        placeholder frame_index and timestamp.

        Raises:
            RequestExecutionFailed: The capability raised
            InvalidPoseData: The capability returned non-finite values
        """
        if not isinstance(image, np.ndarray) or image.ndim < 2:
            raise ValueError("image must be an (H, W[, C]) array")

        start_time = time.perf_counter()
        try:
            observations = await asyncio.to_thread(self.backend.detect, image)
        except Exception as e:
            raise RequestExecutionFailed(e) from e
        self._inference_times.append(time.perf_counter() - start_time)

        if not observations:
            return None

        height, width = image.shape[:2]
        return self.build_pose(observations[0], width, height)

    def build_pose(self, observation: RawObservation, width: int, height: int) -> PoseEstimate:
        """Filter and convert one observation into a PoseEstimate."""
        threshold = self.config.joints.acceptance_threshold

        if not math.isfinite(observation.confidence):
            raise InvalidPoseData(f"pose confidence {observation.confidence}")

        joints = empty_joint_slots()
        for name in TRACKED_JOINTS:
            point = observation.points.get(name)
            if point is None:
                continue

            x, y, confidence = point
            if not all(math.isfinite(v) for v in (x, y, confidence)):
                raise InvalidPoseData(f"{name.value} has non-finite values {point}")
            if confidence <= threshold:
                continue

            joints[name] = BodyJoint(
                name=name,
                position=normalized_to_pixel(x, y, width, height),
                confidence=float(confidence),
            )

        return PoseEstimate(
            joints=joints,
            overall_confidence=float(observation.confidence),
        )

    def get_average_fps(self) -> float:
        if not self._inference_times:
            return 0.0
        avg_time = sum(self._inference_times) / len(self._inference_times)
        return 1.0 / avg_time if avg_time > 0 else 0.0

    def reset_timing_stats(self) -> None:
        self._inference_times.clear()

    def close(self) -> None:
        """Release the backend model."""
        self.backend.close()

    def __enter__(self) -> "PoseEstimator":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def create_estimator(config: Optional[PoseAnalysisConfig] = None) -> PoseEstimator:
    """Create a YOLO-backed estimator with its model loaded."""
    config = config or PoseAnalysisConfig()
    backend = YoloPoseBackend(config)
    backend.initialize()
    return PoseEstimator(backend, config)
