import numpy as np
import pytest
from numpy.testing import assert_allclose

from visual_servo import ConfigurationError, ServoMode
from visual_servo.jacobians import camera_to_joint_velocity, task_jacobian
from visual_servo.transforms import pose_vector_to_homogeneous, twist_transform_from_homogeneous


@pytest.fixture
def L():
    return np.arange(12, dtype=float).reshape(2, 6) / 10.0


@pytest.fixture
def cVe():
    return twist_transform_from_homogeneous(pose_vector_to_homogeneous(0.0, 0.05, 0.1, 0.0, 0.0, np.pi / 2))


def test_task_jacobian_per_mode(L, cVe):
    eJe = np.random.default_rng(0).standard_normal((6, 7))
    assert_allclose(task_jacobian(L, ServoMode.EYE_IN_HAND_CAMERA, cVe, eJe), L)
    assert_allclose(task_jacobian(L, ServoMode.EYE_IN_HAND_JOINT, cVe, eJe), L @ cVe @ eJe)
    assert_allclose(task_jacobian(L, ServoMode.EYE_TO_HAND_CAMERA, cVe, eJe), -L @ cVe)
    assert_allclose(task_jacobian(L, ServoMode.EYE_TO_HAND_JOINT, cVe, eJe), -L @ cVe @ eJe)


def test_joint_mode_without_jacobian(L):
    with pytest.raises(ConfigurationError):
        task_jacobian(L, ServoMode.EYE_TO_HAND_JOINT)


def test_bad_twist_transform_shape(L):
    with pytest.raises(ValueError):
        task_jacobian(L, ServoMode.EYE_TO_HAND_CAMERA, np.eye(3))


def test_camera_to_joint_velocity(cVe):
    eJe = np.diag([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    v_c = np.array([0.1, -0.2, 0.05, 0.0, 0.3, -0.1])
    qdot = camera_to_joint_velocity(v_c, cVe, eJe)
    assert_allclose(cVe @ eJe @ qdot, v_c, atol=1e-12)


def test_redundant_arm_uses_minimum_norm_solution(cVe):
    eJe = np.hstack((np.eye(6), np.zeros((6, 1))))
    v_c = np.array([0.1, 0.0, 0.0, 0.0, 0.0, 0.2])
    qdot = camera_to_joint_velocity(v_c, cVe, eJe)
    assert qdot[6] == pytest.approx(0.0, abs=1e-12)
    assert_allclose(cVe @ eJe @ qdot, v_c, atol=1e-12)
