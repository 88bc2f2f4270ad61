"""
Error taxonomy for frame sampling, pose estimation and sequence building.

Only asset-level failures (no video track, unreadable container) and
sequence-level failures (no usable poses at all) reach the caller. Per-frame
failures are absorbed by the sequence builder.
"""

from typing import List


RERECORD_HINT = "Please re-record or re-import a clearer or longer video."


class PoseDetectionError(Exception):
    """Base class for all pose pipeline errors."""

    fatal = False

    @property
    def user_message(self) -> str:
        if self.fatal:
            return f"{self} {RERECORD_HINT}"
        return str(self)


class NoVideoTrack(PoseDetectionError):
    fatal = True

    def __init__(self, source: str = ""):
        self.source = source
        detail = f": {source}" if source else ""
        super().__init__(f"No video track found in the video file{detail}.")


class FrameExtractionFailed(PoseDetectionError):
    fatal = True

    def __init__(self, reason: str = ""):
        self.reason = reason
        detail = f": {reason}" if reason else "."
        super().__init__(f"Failed to extract frames from video{detail}")


class RequestExecutionFailed(PoseDetectionError):
    """The pose-estimation capability raised while processing one image."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Request execution failed: {cause}")


class InsufficientValidPoses(PoseDetectionError):
    fatal = True

    def __init__(self, detected: int, required: int):
        self.detected = detected
        self.required = required
        super().__init__(
            f"Insufficient valid poses detected: {detected} (required: {required})."
        )


class InvalidPoseData(PoseDetectionError):
    def __init__(self, reason: str = ""):
        self.reason = reason
        detail = f": {reason}" if reason else "."
        super().__init__(f"Invalid or corrupted pose data{detail}")


class VideoNotReadable(PoseDetectionError):
    fatal = True

    def __init__(self, source: str = ""):
        self.source = source
        detail = f": {source}" if source else "."
        super().__init__(f"Video file is not readable or corrupted{detail}")


class VideoQualityBelowStandards(PoseDetectionError):
    fatal = True

    def __init__(self, issues: List):
        # VideoQualityIssue instances, critical ones only
        self.issues = list(issues)
        lines = "\n".join(f"  - {issue.description}" for issue in self.issues)
        super().__init__(f"Video quality is below standards:\n{lines}\n")
