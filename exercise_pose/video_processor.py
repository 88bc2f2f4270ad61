"""
================================================================================
VIDEO PROCESSOR MODULE
================================================================================
Handles video loading and bounded, evenly-strided frame sampling.

Sampling rule:
    stride = max(1, round(fps * frame_interval))
    keep every stride-th decoded-stream position, stop at max_frames kept.

Only kept positions are decoded. A kept position that fails to decode is
skipped and does not count toward the cap.
================================================================================
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generator, List, Optional, Tuple, Union

import cv2
import numpy as np

from configs.config import PoseAnalysisConfig
from exercise_pose.errors import FrameExtractionFailed, NoVideoTrack


# ==============================================================================
# DATA STRUCTURES
# ==============================================================================

@dataclass
class VideoMetadata:
    """Container for video file metadata."""
    filepath: Path
    width: int
    height: int
    fps: float
    frame_count: int
    duration: float
    codec: str

    @property
    def has_video_track(self) -> bool:
        return self.width > 0 and self.height > 0

    def __str__(self) -> str:
        return (
            f"Video: {self.filepath.name}\n"
            f"  Resolution: {self.width}x{self.height}\n"
            f"  FPS: {self.fps:.2f}\n"
            f"  Duration: {self.duration:.2f}s ({self.frame_count} frames)\n"
            f"  Codec: {self.codec}"
        )


@dataclass
class SampledFrame:
    """A single kept frame."""
    image: np.ndarray
    source_index: int
    timestamp: float

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the image."""
        return (self.image.shape[1], self.image.shape[0])


def compute_stride(fps: float, frame_interval: float) -> int:
    """Number of source frames between kept frames, never below 1."""
    if not math.isfinite(fps) or fps <= 0 or frame_interval <= 0:
        return 1
    return max(1, int(math.floor(fps * frame_interval + 0.5)))


# ==============================================================================
# VIDEO PROCESSOR CLASS
# ==============================================================================

class VideoProcessor:
    """
    Handles video loading and frame sampling.

    Example:
        >>> processor = VideoProcessor()
        >>> frames = processor.extract_frames("squat.mp4", frame_interval=0.1)
        >>> images = [f.image for f in frames]
    """

    def __init__(
        self,
        config: Optional[PoseAnalysisConfig] = None,
        capture_factory: Callable[[str], Any] = cv2.VideoCapture,
        show_progress: bool = False,
    ):
        self.config = config or PoseAnalysisConfig()
        self._capture_factory = capture_factory
        self.show_progress = show_progress

    def _open(self, video_path: Path):
        if not video_path.exists():
            raise FileNotFoundError(f"Video not found: {video_path}")

        cap = self._capture_factory(str(video_path))
        if not cap.isOpened():
            cap.release()
            raise FrameExtractionFailed(f"cannot open {video_path}")
        return cap

    def _read_metadata(self, cap, video_path: Path) -> VideoMetadata:
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        duration = frame_count / fps if fps > 0 else 0.0

        fourcc_int = int(cap.get(cv2.CAP_PROP_FOURCC))
        codec = "".join([chr((fourcc_int >> 8 * i) & 0xFF) for i in range(4)])

        return VideoMetadata(
            filepath=video_path,
            width=width,
            height=height,
            fps=fps,
            frame_count=frame_count,
            duration=duration,
            codec=codec,
        )

    def get_metadata(self, video_path: Union[str, Path]) -> VideoMetadata:
        """Extract metadata from a video file."""
        video_path = Path(video_path)
        cap = self._open(video_path)
        try:
            return self._read_metadata(cap, video_path)
        finally:
            cap.release()

    def iter_frames(
        self,
        video_path: Union[str, Path],
        frame_interval: Optional[float] = None,
        max_frames: Optional[int] = None,
    ) -> Generator[SampledFrame, None, None]:
        """
        Iterate through sampled frames as a generator.

        Args:
            video_path: Path to video file
            frame_interval: Seconds between kept frames (uses config if None)
            max_frames: Hard cap on kept frames (uses config if None)

        Yields:
            SampledFrame objects in stream order

        Raises:
            FileNotFoundError: The path does not exist
            FrameExtractionFailed: The container cannot be opened
            NoVideoTrack: The container has no visual track
        """
        video_path = Path(video_path)
        if frame_interval is None:
            frame_interval = self.config.sampling.frame_interval
        if max_frames is None:
            max_frames = self.config.sampling.max_frames

        cap = self._open(video_path)
        kept = 0
        try:
            metadata = self._read_metadata(cap, video_path)
            if not metadata.has_video_track:
                raise NoVideoTrack(str(video_path))

            stride = compute_stride(metadata.fps, frame_interval)
            if self.show_progress:
                print(f"\nSampling: {metadata.filepath.name}")
                print(f"  {metadata.width}x{metadata.height} @ {metadata.fps:.1f} FPS, stride {stride}")

            position = 0
            while kept < max_frames:
                if not cap.grab():
                    break
                position += 1

                if position % stride != 0:
                    continue

                ok, image = cap.retrieve()
                if not ok or image is None:
                    continue

                source_index = position - 1
                timestamp = source_index / metadata.fps if metadata.fps > 0 else 0.0

                yield SampledFrame(
                    image=image,
                    source_index=source_index,
                    timestamp=timestamp,
                )
                kept += 1
        finally:
            cap.release()
            if self.show_progress:
                print(f"  Kept {kept} frames")

    def extract_frames(
        self,
        video_path: Union[str, Path],
        frame_interval: Optional[float] = None,
        max_frames: Optional[int] = None,
    ) -> List[SampledFrame]:
        """Sample a video into an ordered list of frames (see iter_frames)."""
        return list(self.iter_frames(video_path, frame_interval, max_frames))

    def find_videos(self, directory: Union[str, Path]) -> List[Path]:
        """Find all supported video files in a directory."""
        directory = Path(directory)

        if not directory.exists():
            return []

        videos = []
        for ext in self.config.sampling.supported_formats:
            videos.extend(directory.glob(f"*{ext}"))
            videos.extend(directory.glob(f"*{ext.upper()}"))

        return sorted(set(videos))
