"""
Robot Collaborators

Interface the servo loop expects from a robot, plus a free-flying camera
simulator used for examples and tests. The simulated camera keeps the
pose of the observed object in the camera frame (cMo) and integrates the
commanded camera twist over one sampling period.
"""

import abc
import logging
from enum import Enum

import numpy as np

from .exceptions import RobotCommunicationError
from .transforms import invert_homogeneous, se3_exp_body

logger = logging.getLogger(__name__)


class RobotFrame(Enum):
    CAMERA = "camera"
    JOINT = "joint"
    REFERENCE = "reference"


class Robot(abc.ABC):
    """
    Robot collaborator. Implementations raise RobotCommunicationError on
    failure; the servo loop propagates it unchanged.
    """

    @abc.abstractmethod
    def get_position(self) -> np.ndarray:
        """Current pose as a 4x4 homogeneous matrix."""

    @abc.abstractmethod
    def set_velocity(self, frame: RobotFrame, velocity) -> None:
        """Apply a velocity command expressed in `frame`."""

    @abc.abstractmethod
    def get_jacobian(self) -> np.ndarray:
        """Manipulator Jacobian in the end-effector frame (6 x n)."""


class SimulatedCameraRobot(Robot):
    """
    Free-flying camera with six velocity-controlled degrees of freedom.

    Args:
        cMo: Initial pose of the object in the camera frame (4x4)
        sampling_time: Integration period of each velocity command (seconds)
    """

    def __init__(self, cMo=None, sampling_time: float = 0.04):
        if sampling_time <= 0:
            raise ValueError(f"sampling_time must be positive, got {sampling_time}")
        self.sampling_time = float(sampling_time)
        self._cMo = np.eye(4)
        if cMo is not None:
            self.set_position(cMo)

    def set_position(self, cMo) -> None:
        cMo = np.asarray(cMo, dtype=float)
        if cMo.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 homogeneous matrix, got shape {cMo.shape}")
        self._cMo = cMo.copy()

    def get_position(self) -> np.ndarray:
        return self._cMo.copy()

    def get_jacobian(self) -> np.ndarray:
        return np.eye(6)

    def set_velocity(self, frame: RobotFrame, velocity) -> None:
        frame = RobotFrame(frame)
        velocity = np.asarray(velocity, dtype=float).reshape(-1)
        if velocity.size != 6:
            raise RobotCommunicationError(f"Expected a 6D velocity, got {velocity.size} components")
        if frame is RobotFrame.REFERENCE:
            raise RobotCommunicationError("Simulated camera has no reference frame")
        # camera and joint spaces coincide for a free-flying camera (eJe = I)
        c_M_cnew = se3_exp_body(velocity, self.sampling_time)
        self._cMo = invert_homogeneous(c_M_cnew) @ self._cMo

    def point_in_camera(self, o_P) -> np.ndarray:
        """Coordinates in the camera frame of a point given in the object frame."""
        o_P = np.append(np.asarray(o_P, dtype=float).reshape(3), 1.0)
        return (self._cMo @ o_P)[:3]


def run_servo_step(task, robot: Robot, frame: RobotFrame = RobotFrame.CAMERA, secondary_velocity=None):
    """
    One control cycle: compute the control law and, when it produced a
    velocity, send it to the robot.

    In joint servo modes the robot Jacobian is refreshed first. Robot
    errors propagate unchanged.

    Returns:
        ControlLawResult of the cycle
    """
    if task.servo_mode is not None and task.servo_mode.is_joint:
        task.set_robot_jacobian(robot.get_jacobian())
    result = task.compute_control_law(secondary_velocity)
    if result.ok:
        robot.set_velocity(frame, result.velocity)
    else:
        logger.error("No velocity sent to the robot: %s", result.failure)
    return result
