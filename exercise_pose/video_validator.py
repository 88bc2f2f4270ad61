"""
Recording quality checks run before a video is analysed.

Short, low-resolution and low-frame-rate recordings are rejected. Overlong
recordings and oversized files are reported but still accepted.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from configs.config import PoseAnalysisConfig, VideoStandardsConfig
from exercise_pose.errors import (
    FrameExtractionFailed,
    NoVideoTrack,
    VideoNotReadable,
    VideoQualityBelowStandards,
)
from exercise_pose.video_processor import VideoProcessor


class IssueKind(Enum):
    DURATION_TOO_SHORT = "duration_too_short"
    DURATION_TOO_LONG = "duration_too_long"
    RESOLUTION_TOO_LOW = "resolution_too_low"
    FRAME_RATE_TOO_LOW = "frame_rate_too_low"
    FILE_SIZE_TOO_LARGE = "file_size_too_large"


_CRITICAL = {
    IssueKind.DURATION_TOO_SHORT,
    IssueKind.RESOLUTION_TOO_LOW,
    IssueKind.FRAME_RATE_TOO_LOW,
}


def _format_megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class VideoQualityIssue:
    kind: IssueKind
    actual: float
    limit: float
    actual_size: Optional[tuple] = None
    limit_size: Optional[tuple] = None

    @property
    def is_critical(self) -> bool:
        return self.kind in _CRITICAL

    @property
    def description(self) -> str:
        if self.kind == IssueKind.DURATION_TOO_SHORT:
            return f"Video too short: {self.actual:.1f}s (minimum: {self.limit:.1f}s)"
        if self.kind == IssueKind.DURATION_TOO_LONG:
            return f"Video too long: {self.actual:.1f}s (maximum: {self.limit:.1f}s)"
        if self.kind == IssueKind.RESOLUTION_TOO_LOW:
            return (
                f"Resolution too low: {self.actual_size[0]}x{self.actual_size[1]} "
                f"(minimum: {self.limit_size[0]}x{self.limit_size[1]})"
            )
        if self.kind == IssueKind.FRAME_RATE_TOO_LOW:
            return f"Frame rate too low: {self.actual:.1f}fps (minimum: {self.limit:.1f}fps)"
        return (
            f"File size too large: {_format_megabytes(int(self.actual))} "
            f"(maximum: {_format_megabytes(int(self.limit))})"
        )


@dataclass
class VideoQualityReport:
    duration: float
    width: int
    height: int
    frame_rate: float
    file_size: int
    issues: List[VideoQualityIssue] = field(default_factory=list)

    @property
    def quality_score(self) -> float:
        score = 1.0

        # Optimal duration is 10-60 seconds
        if self.duration < 10:
            score *= 0.8
        elif self.duration > 60:
            score *= 0.9

        score *= min(self.width / 1920.0, 1.0) * min(self.height / 1080.0, 1.0)
        score *= min(self.frame_rate / 30.0, 1.0)

        return max(score, 0.0)

    @property
    def is_high_quality(self) -> bool:
        return self.quality_score >= 0.8

    def to_dict(self):
        return {
            "duration": self.duration,
            "resolution": [self.width, self.height],
            "frame_rate": self.frame_rate,
            "file_size": self.file_size,
            "quality_score": self.quality_score,
            "is_high_quality": self.is_high_quality,
            "issues": [issue.description for issue in self.issues],
        }


def find_issues(report: VideoQualityReport, standards: VideoStandardsConfig) -> List[VideoQualityIssue]:
    """Compare a report against the recording standards."""
    issues = []

    if report.duration < standards.min_duration:
        issues.append(VideoQualityIssue(
            IssueKind.DURATION_TOO_SHORT, report.duration, standards.min_duration
        ))
    elif report.duration > standards.max_duration:
        issues.append(VideoQualityIssue(
            IssueKind.DURATION_TOO_LONG, report.duration, standards.max_duration
        ))

    if report.width < standards.min_width or report.height < standards.min_height:
        issues.append(VideoQualityIssue(
            IssueKind.RESOLUTION_TOO_LOW,
            actual=report.width * report.height,
            limit=standards.min_width * standards.min_height,
            actual_size=(report.width, report.height),
            limit_size=(standards.min_width, standards.min_height),
        ))

    if report.frame_rate < standards.min_fps:
        issues.append(VideoQualityIssue(
            IssueKind.FRAME_RATE_TOO_LOW, report.frame_rate, standards.min_fps
        ))

    if report.file_size > standards.max_file_size:
        issues.append(VideoQualityIssue(
            IssueKind.FILE_SIZE_TOO_LARGE, report.file_size, standards.max_file_size
        ))

    return issues


class VideoQualityValidator:
    """
    Example:
        >>> report = VideoQualityValidator().validate("squat.mp4")
        >>> report.is_high_quality
    """

    def __init__(
        self,
        config: Optional[PoseAnalysisConfig] = None,
        video_processor: Optional[VideoProcessor] = None,
    ):
        self.config = config or PoseAnalysisConfig()
        self.video_processor = video_processor or VideoProcessor(self.config)

    def validate(self, video_path: Union[str, Path]) -> VideoQualityReport:
        """
        Raises:
            FileNotFoundError: The path does not exist
            VideoNotReadable: The container cannot be opened
            NoVideoTrack: The container has no visual track
            VideoQualityBelowStandards: At least one critical issue
        """
        video_path = Path(video_path)
        try:
            metadata = self.video_processor.get_metadata(video_path)
        except FrameExtractionFailed as e:
            raise VideoNotReadable(str(video_path)) from e

        if not metadata.has_video_track:
            raise NoVideoTrack(str(video_path))

        report = VideoQualityReport(
            duration=metadata.duration,
            width=metadata.width,
            height=metadata.height,
            frame_rate=metadata.fps,
            file_size=video_path.stat().st_size,
        )
        report.issues = find_issues(report, self.config.standards)

        critical = [issue for issue in report.issues if issue.is_critical]
        if critical:
            raise VideoQualityBelowStandards(critical)

        return report
