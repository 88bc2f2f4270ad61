import asyncio
import math

import numpy as np
import pytest

from configs.config import PoseAnalysisConfig
from exercise_pose.errors import InvalidPoseData, RequestExecutionFailed
from exercise_pose.joints import JointName as J, TRACKED_JOINTS
from exercise_pose.pose_estimator import (
    PoseEstimator,
    RawObservation,
    YoloPoseBackend,
    normalized_to_pixel,
)


def test_vertical_axis_is_flipped_at_both_extremes():
    assert normalized_to_pixel(0.5, 0.0, 1000, 2000) == (500.0, 2000.0)
    assert normalized_to_pixel(0.5, 1.0, 1000, 2000) == (500.0, 0.0)


def test_estimate_converts_points_to_pixels(fake_backend, make_observation, image):
    observation = make_observation(point=(0.25, 0.75), confidence=0.66)
    estimator = PoseEstimator(fake_backend([[observation]]))

    pose = asyncio.run(estimator.estimate_single(image))

    assert pose.frame_index == 0
    assert pose.overall_confidence == pytest.approx(0.66)
    assert len(pose.all_joints) == 14
    assert pose.left_knee.position == (250.0, 500.0)


def test_low_confidence_points_become_absent_slots(fake_backend, image):
    observation = RawObservation(
        points={
            J.NECK: (0.5, 0.5, 0.3),
            J.LEFT_HIP: (0.5, 0.5, 0.31),
            J.LEFT_EYE: (0.5, 0.5, 0.99),
        },
        confidence=0.8,
    )
    estimator = PoseEstimator(fake_backend([[observation]]))

    pose = asyncio.run(estimator.estimate_single(image))

    assert pose.neck is None
    assert pose.left_hip.confidence == pytest.approx(0.31)
    assert [j.name for j in pose.all_joints] == [J.LEFT_HIP]
    assert set(pose.joints) == set(TRACKED_JOINTS)


def test_stricter_acceptance_threshold_from_config(fake_backend, make_observation, image):
    config = PoseAnalysisConfig()
    config.joints.acceptance_threshold = 0.5
    estimator = PoseEstimator(
        fake_backend([[make_observation(joint_confidence=0.45)]]), config
    )

    pose = asyncio.run(estimator.estimate_single(image))

    assert pose.all_joints == []


def test_no_body_returns_none(fake_backend, image):
    estimator = PoseEstimator(fake_backend([[]]))

    assert asyncio.run(estimator.estimate_single(image)) is None


def test_only_first_observation_is_used(fake_backend, make_observation, image):
    first = make_observation(confidence=0.9, joints=[J.NECK])
    second = make_observation(confidence=0.95, joints=TRACKED_JOINTS)
    estimator = PoseEstimator(fake_backend([[first, second]]))

    pose = asyncio.run(estimator.estimate_single(image))

    assert [j.name for j in pose.all_joints] == [J.NECK]
    assert pose.overall_confidence == pytest.approx(0.9)


def test_backend_failure_is_wrapped(fake_backend, image):
    cause = RuntimeError("model crashed")
    estimator = PoseEstimator(fake_backend([cause]))

    with pytest.raises(RequestExecutionFailed) as excinfo:
        asyncio.run(estimator.estimate_single(image))

    assert excinfo.value.cause is cause
    assert excinfo.value.__cause__ is cause


def test_non_finite_output_is_invalid(fake_backend, image):
    observation = RawObservation(points={J.NECK: (math.nan, 0.5, 0.9)}, confidence=0.9)
    estimator = PoseEstimator(fake_backend([[observation]]))

    with pytest.raises(InvalidPoseData):
        asyncio.run(estimator.estimate_single(image))


def test_rejects_non_image_input(fake_backend):
    estimator = PoseEstimator(fake_backend())

    with pytest.raises(ValueError):
        asyncio.run(estimator.estimate_single(np.zeros(5)))


def test_each_estimate_gets_a_fresh_id(fake_backend, make_observation, image):
    estimator = PoseEstimator(fake_backend(default=[make_observation()]))

    a = asyncio.run(estimator.estimate_single(image))
    b = asyncio.run(estimator.estimate_single(image))

    assert a.id != b.id


def test_context_manager_releases_backend(fake_backend):
    backend = fake_backend()
    with PoseEstimator(backend):
        pass
    assert backend.closed


# ------------------------------------------------------------------------------
# YOLO backend, driven by a stand-in model
# ------------------------------------------------------------------------------

class _Tensor:
    def __init__(self, array):
        self._array = np.asarray(array, dtype=np.float32)

    def cpu(self):
        return self

    def numpy(self):
        return self._array


class _Keypoints:
    def __init__(self, xyn, conf):
        self.xyn = _Tensor(xyn)
        self.conf = _Tensor(conf) if conf is not None else None

    def __len__(self):
        return len(self.xyn.numpy())


class _Boxes:
    def __init__(self, conf):
        self.conf = _Tensor(conf)


class _Result:
    def __init__(self, keypoints, boxes):
        self.keypoints = keypoints
        self.boxes = boxes


class _Model:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def __call__(self, image, **kwargs):
        self.calls.append(kwargs)
        return [self.result]


def _yolo_backend(result):
    backend = YoloPoseBackend(PoseAnalysisConfig())
    backend.model = _Model(result)
    backend.device = "cpu"
    backend.initialized = True
    return backend


def test_yolo_backend_maps_coco_keypoints():
    xyn = np.zeros((2, 17, 2))
    xyn[0, :, :] = (0.2, 0.1)
    xyn[1, 5] = (0.4, 0.2)   # left shoulder
    xyn[1, 6] = (0.6, 0.4)   # right shoulder
    conf = np.full((2, 17), 0.9)
    conf[1, 5] = 0.7
    backend = _yolo_backend(_Result(_Keypoints(xyn, conf), _Boxes([0.5, 0.8])))

    observations = backend.detect(np.zeros((10, 10, 3), dtype=np.uint8))

    assert [o.confidence for o in observations] == pytest.approx([0.8, 0.5])
    best = observations[0]
    x, y, c = best.points[J.LEFT_SHOULDER]
    assert (x, y, c) == pytest.approx((0.4, 0.8, 0.7))
    assert best.points[J.NECK] == pytest.approx((0.5, 0.7, 0.7))
    assert J.LEFT_EAR in best.points


def test_yolo_backend_without_people():
    empty = _Result(_Keypoints(np.zeros((0, 17, 2)), np.zeros((0, 17))), _Boxes([]))
    backend = _yolo_backend(empty)

    assert backend.detect(np.zeros((10, 10, 3), dtype=np.uint8)) == []


def test_yolo_backend_requires_initialize():
    with pytest.raises(RuntimeError):
        YoloPoseBackend().detect(np.zeros((10, 10, 3), dtype=np.uint8))
