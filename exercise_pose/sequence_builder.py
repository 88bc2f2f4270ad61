"""
Runs the pose estimator over sampled frames in order and collects a pose
sequence.

Frames are processed one at a time. A frame whose estimation fails or finds
no body is dropped; the remaining poses keep their position in the sampled
list as frame_index, so indices increase strictly but may have gaps.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import numpy as np

from exercise_pose.errors import InsufficientValidPoses
from exercise_pose.pose_estimator import PoseEstimator
from exercise_pose.pose_types import PoseEstimate


class SequenceBuilder:
    """
    Best-effort pose extraction across a frame sequence.

    Example:
        >>> builder = SequenceBuilder(estimator, frame_interval=0.1)
        >>> poses = asyncio.run(builder.build(images))
    """

    def __init__(
        self,
        estimator: PoseEstimator,
        frame_interval: float = 0.1,
        show_progress: bool = False,
    ):
        if frame_interval <= 0:
            raise ValueError("frame_interval must be positive")
        self.estimator = estimator
        self.frame_interval = frame_interval
        self.show_progress = show_progress

        self.frames_attempted = 0
        self.frames_failed = 0
        self.frames_without_pose = 0

    async def build(
        self,
        images: Sequence[np.ndarray],
        capture_start: Optional[datetime] = None,
    ) -> List[PoseEstimate]:
        """
        Estimate a pose for every image and return the successful ones.

        Args:
            images: Sampled frames in stream order
            capture_start: Time of the first sampled frame (defaults to now)

        Raises:
            InsufficientValidPoses: No frame produced a pose
        """
        if capture_start is None:
            capture_start = datetime.now(timezone.utc)

        self.frames_attempted = 0
        self.frames_failed = 0
        self.frames_without_pose = 0

        sequence: List[PoseEstimate] = []

        for index, image in enumerate(images):
            # Cancellation point between frames
            await asyncio.sleep(0)
            self.frames_attempted += 1

            try:
                pose = await self.estimator.estimate_single(image)
            except Exception as e:
                self.frames_failed += 1
                print(f"  ⚠ Failed to detect pose in frame {index}: {e}")
                continue

            if pose is None:
                self.frames_without_pose += 1
                if self.show_progress:
                    print(f"  No pose found in frame {index}")
                continue

            timestamp = capture_start + timedelta(seconds=index * self.frame_interval)
            sequence.append(pose.with_frame(index, timestamp))

            if self.show_progress and (index + 1) % 50 == 0:
                print(f"  Processed {index + 1}/{len(images)} frames")

        if self.show_progress:
            print(f"  ✓ {len(sequence)} poses from {self.frames_attempted} frames")

        if not sequence:
            raise InsufficientValidPoses(detected=0, required=1)

        return sequence


async def build_sequence(
    estimator: PoseEstimator,
    images: Sequence[np.ndarray],
    frame_interval: float = 0.1,
    capture_start: Optional[datetime] = None,
) -> List[PoseEstimate]:
    """One-shot helper around SequenceBuilder.build."""
    builder = SequenceBuilder(estimator, frame_interval=frame_interval)
    return await builder.build(images, capture_start=capture_start)
