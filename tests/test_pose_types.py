from datetime import datetime, timezone

import pytest

from exercise_pose.errors import InvalidPoseData
from exercise_pose.joints import JointName as J, TRACKED_JOINTS
from exercise_pose.pose_types import (
    BodyJoint,
    PoseEstimate,
    QualityLevel,
    empty_joint_slots,
)


def test_joint_at_acceptance_threshold_is_rejected(make_pose):
    with pytest.raises(InvalidPoseData):
        make_pose({J.NECK: 0.3})


def test_slots_must_be_exactly_the_tracked_joints():
    joints = empty_joint_slots()
    del joints[J.LEFT_ANKLE]
    with pytest.raises(InvalidPoseData):
        PoseEstimate(joints=joints)

    joints = empty_joint_slots()
    joints[J.LEFT_EYE] = None
    with pytest.raises(InvalidPoseData):
        PoseEstimate(joints=joints)


def test_slot_must_hold_matching_joint():
    joints = empty_joint_slots()
    joints[J.NECK] = BodyJoint(name=J.LEFT_KNEE, position=(1.0, 1.0), confidence=0.9)
    with pytest.raises(InvalidPoseData):
        PoseEstimate(joints=joints)


def test_valid_joints_require_confidence_above_half(make_pose):
    pose = make_pose({J.NECK: 0.5, J.LEFT_HIP: 0.51, J.RIGHT_HIP: 0.4})

    assert [j.name for j in pose.all_joints] == [J.NECK, J.LEFT_HIP, J.RIGHT_HIP]
    assert [j.name for j in pose.all_valid_joints] == [J.LEFT_HIP]


def test_all_joints_follow_slot_order(make_pose):
    pose = make_pose({J.RIGHT_ANKLE: 0.9, J.NOSE: 0.9, J.LEFT_KNEE: 0.9})

    assert [j.name for j in pose.all_joints] == [J.NOSE, J.LEFT_KNEE, J.RIGHT_ANKLE]
    assert pose.head is pose.joints[J.NOSE]
    assert pose.right_ankle.confidence == 0.9
    assert pose.left_wrist is None


def test_center_of_mass_averages_valid_joints():
    joints = empty_joint_slots()
    joints[J.LEFT_HIP] = BodyJoint(J.LEFT_HIP, (100.0, 200.0), 0.9)
    joints[J.RIGHT_HIP] = BodyJoint(J.RIGHT_HIP, (300.0, 400.0), 0.8)
    joints[J.NECK] = BodyJoint(J.NECK, (1000.0, 1000.0), 0.4)
    pose = PoseEstimate(joints=joints)

    assert pose.center_of_mass == (200.0, 300.0)


def test_center_of_mass_undefined_without_valid_joints(make_pose):
    assert make_pose({J.NECK: 0.45}).center_of_mass is None
    assert make_pose().center_of_mass is None


def test_with_frame_backfills_a_copy(make_pose):
    pose = make_pose({J.NECK: 0.9})
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)

    placed = pose.with_frame(7, stamp)

    assert placed.id == pose.id
    assert (placed.frame_index, placed.timestamp) == (7, stamp)
    assert pose.frame_index == 0
    assert placed.joints == pose.joints


def test_pose_is_immutable(make_pose):
    pose = make_pose()
    with pytest.raises(AttributeError):
        pose.frame_index = 3


def test_dict_export_restores_pose(make_pose):
    pose = make_pose({J.NECK: 0.9, J.LEFT_KNEE: 0.35}, overall_confidence=0.7)

    restored = PoseEstimate.from_dict(pose.to_dict())

    assert restored == pose
    data = pose.to_dict()
    assert set(data["joints"]) == {name.value for name in TRACKED_JOINTS}
    assert data["joints"]["left_wrist"] is None


@pytest.mark.parametrize("score,level", [
    (1.0, QualityLevel.EXCELLENT),
    (0.8, QualityLevel.EXCELLENT),
    (0.79, QualityLevel.GOOD),
    (0.6, QualityLevel.GOOD),
    (0.59, QualityLevel.FAIR),
    (0.4, QualityLevel.FAIR),
    (0.39, QualityLevel.POOR),
    (0.0, QualityLevel.POOR),
    (1.2, QualityLevel.POOR),
])
def test_quality_bands(score, level):
    assert QualityLevel.from_score(score) is level


def test_quality_level_colors():
    assert QualityLevel.EXCELLENT.color == "green"
    assert QualityLevel.POOR.color == "red"


def test_joints_are_read_only(make_pose):
    pose = make_pose({J.NECK: 0.9})

    with pytest.raises(TypeError):
        pose.joints[J.NECK] = BodyJoint(J.NECK, (0.0, 0.0), 0.05)
    assert pose.neck is not None


def test_pose_does_not_share_callers_dict():
    joints = empty_joint_slots()
    joints[J.NECK] = BodyJoint(J.NECK, (10.0, 10.0), 0.9)
    pose = PoseEstimate(joints=joints)
    placed = pose.with_frame(3, datetime(2024, 1, 1, tzinfo=timezone.utc))

    joints[J.NECK] = None

    assert pose.neck is not None
    assert placed.neck == pose.neck


def test_pose_is_hashable(make_pose):
    pose = make_pose()
    assert hash(pose) == hash(pose.with_frame(0, pose.timestamp))


@pytest.mark.parametrize("data", [
    {"frame_index": 0, "timestamp": "2024-01-01T00:00:00", "overall_confidence": 0.5},
    {"id": "a", "frame_index": 0, "timestamp": "2024-01-01T00:00:00",
     "overall_confidence": 0.5, "joints": {"neck": {"name": "neck", "y": 1.0, "confidence": 0.9}}},
    {"id": "a", "frame_index": 0, "timestamp": "2024-01-01T00:00:00",
     "overall_confidence": 0.5, "joints": {"tail": None}},
])
def test_malformed_dict_raises_invalid_pose_data(data):
    with pytest.raises(InvalidPoseData) as excinfo:
        PoseEstimate.from_dict(data)
    assert excinfo.value.__cause__ is not None
