import numpy as np
import pytest

from visual_servo import InteractionMatrixType, PointFeature, ServoMode, VisualServoTask


@pytest.fixture
def camera_task():
    task = VisualServoTask()
    task.set_servo_mode(ServoMode.EYE_IN_HAND_CAMERA)
    task.set_interaction_matrix_type(InteractionMatrixType.CURRENT)
    task.set_gain(1.0)
    yield task
    task.kill()


@pytest.fixture
def off_center_point():
    return PointFeature(0.5, 0.3, 1.0)


def rot_z(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
