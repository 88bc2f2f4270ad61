"""Shared fakes: pose-capability backends, video captures and pose builders."""

from typing import Dict, Iterable, List, Optional

import cv2
import numpy as np
import pytest

from exercise_pose.joints import JointName, TRACKED_JOINTS
from exercise_pose.pose_estimator import PoseBackend, RawObservation
from exercise_pose.pose_types import BodyJoint, PoseEstimate, empty_joint_slots


class FakeBackend(PoseBackend):
    """
    Replays scripted responses, one per detect() call.

    A response is a list of observations or an exception instance to raise.
    Once the script is exhausted every call returns `default`.
    """

    def __init__(self, responses: Optional[Iterable] = None, default=None):
        self.responses = list(responses or [])
        self.default = default if default is not None else []
        self.calls = 0
        self.closed = False

    def name(self) -> str:
        return "fake"

    def detect(self, image):
        self.calls += 1
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


class FakeCapture:
    """Minimal cv2.VideoCapture stand-in. A None frame fails to decode."""

    def __init__(
        self,
        frames: List[Optional[np.ndarray]],
        fps: float = 30.0,
        width: int = 64,
        height: int = 48,
        frame_count: Optional[int] = None,
        opened: bool = True,
    ):
        self.frames = frames
        self.fps = fps
        self.width = width
        self.height = height
        self.frame_count = len(frames) if frame_count is None else frame_count
        self.opened = opened
        self.released = False
        self.grabs = 0
        self._pos = 0
        self._current = None

    def isOpened(self):
        return self.opened

    def get(self, prop):
        values = {
            cv2.CAP_PROP_FRAME_WIDTH: self.width,
            cv2.CAP_PROP_FRAME_HEIGHT: self.height,
            cv2.CAP_PROP_FPS: self.fps,
            cv2.CAP_PROP_FRAME_COUNT: self.frame_count,
            cv2.CAP_PROP_FOURCC: 0,
        }
        return values.get(prop, 0)

    def grab(self):
        if self._pos >= len(self.frames):
            return False
        self._current = self.frames[self._pos]
        self._pos += 1
        self.grabs += 1
        return True

    def retrieve(self):
        if self._current is None:
            return False, None
        return True, self._current

    def release(self):
        self.released = True


def blank_frames(count: int, width: int = 64, height: int = 48) -> List[np.ndarray]:
    return [np.full((height, width, 3), i % 255, dtype=np.uint8) for i in range(count)]


@pytest.fixture
def fake_backend():
    return FakeBackend


@pytest.fixture
def capture_factory():
    """Build a capture factory whose captures share the given settings."""
    def factory(frames=None, **kwargs):
        frames = blank_frames(10) if frames is None else frames
        created = []

        def open_capture(path):
            cap = FakeCapture(frames, **kwargs)
            created.append(cap)
            return cap

        open_capture.created = created
        return open_capture
    return factory


@pytest.fixture
def video_file(tmp_path):
    """An existing (empty) file path for fake captures to 'open'."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00" * 1024)
    return path


@pytest.fixture
def make_pose():
    def factory(
        confidences: Optional[Dict[JointName, float]] = None,
        overall_confidence: float = 0.9,
        **kwargs,
    ) -> PoseEstimate:
        joints = empty_joint_slots()
        for i, (name, confidence) in enumerate((confidences or {}).items()):
            joints[name] = BodyJoint(
                name=name,
                position=(10.0 * (i + 1), 20.0 * (i + 1)),
                confidence=confidence,
            )
        return PoseEstimate(joints=joints, overall_confidence=overall_confidence, **kwargs)
    return factory


@pytest.fixture
def make_observation():
    def factory(
        confidence: float = 0.9,
        joint_confidence: float = 0.9,
        joints: Iterable[JointName] = TRACKED_JOINTS,
        point=(0.5, 0.5),
    ) -> RawObservation:
        return RawObservation(
            points={name: (point[0], point[1], joint_confidence) for name in joints},
            confidence=confidence,
        )
    return factory


@pytest.fixture
def image():
    return np.zeros((2000, 1000, 3), dtype=np.uint8)
