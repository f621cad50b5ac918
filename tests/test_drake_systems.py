import numpy as np
import pytest
from numpy.testing import assert_allclose

pytest.importorskip("pydrake")

from visual_servo import InteractionMatrixType, PointFeature, ServoMode, VisualServoTask  # noqa: E402
from visual_servo.drake_systems import PointFeatureServoSystem  # noqa: E402


def _reference_velocity(current, desired, depth):
    task = VisualServoTask()
    task.set_servo_mode(ServoMode.EYE_IN_HAND_CAMERA)
    task.set_interaction_matrix_type(InteractionMatrixType.CURRENT)
    task.set_gain(0.5)
    for (x, y), (xd, yd), Z in zip(current, desired, depth):
        task.add_feature(PointFeature(x, y, Z), PointFeature(xd, yd, Z))
    return task.compute_control_law().velocity


def test_system_outputs_match_task():
    current = np.array([[0.1, 0.1], [-0.1, 0.1], [-0.1, -0.1], [0.1, -0.1]]) * 1.2
    desired = np.array([[0.1, 0.1], [-0.1, 0.1], [-0.1, -0.1], [0.1, -0.1]])
    depth = np.array([1.0, 1.1, 0.9, 1.0])

    system = PointFeatureServoSystem(N_features=4, lambda_gain=0.5)
    context = system.CreateDefaultContext()
    system.GetInputPort("current_xy").FixValue(context, current.flatten())
    system.GetInputPort("desired_xy").FixValue(context, desired.flatten())
    system.GetInputPort("depth").FixValue(context, depth)

    v = system.GetOutputPort("camera_velocity").Eval(context)
    assert_allclose(v, _reference_velocity(current, desired, depth), atol=1e-12)

    error_norm = system.GetOutputPort("error_norm").Eval(context)
    assert error_norm[0] == pytest.approx(np.linalg.norm(current - desired))
