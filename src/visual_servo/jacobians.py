"""
Mapping Interaction Matrices to the Command Space

The stacked interaction matrix L relates feature motion to the camera
twist. Depending on the servo mode the task Jacobian J relates feature
motion to the commanded quantity instead:

    EYE_IN_HAND_CAMERA   J =  L                  (camera twist)
    EYE_IN_HAND_JOINT    J =  L · cVe · eJe      (joint velocities)
    EYE_TO_HAND_CAMERA   J = -L · cVe            (end-effector twist)
    EYE_TO_HAND_JOINT    J = -L · cVe · eJe      (joint velocities)

where cVe is the twist transform from the end-effector frame to the camera
frame and eJe the manipulator Jacobian expressed in the end-effector frame.
For eye-to-hand setups the camera is static and the observed object moves
with the end-effector, hence the sign flip.
"""

import numpy as np

from .exceptions import ConfigurationError
from .modes import ServoMode
from .pseudo_inverse import DEFAULT_EPS, pseudo_inverse


def _check_twist_transform(cVe) -> np.ndarray:
    cVe = np.asarray(cVe, dtype=float)
    if cVe.shape != (6, 6):
        raise ValueError(f"Twist transform must be 6x6, got shape {cVe.shape}")
    return cVe


def _check_robot_jacobian(eJe) -> np.ndarray:
    if eJe is None:
        raise ConfigurationError("Joint servo modes require the robot Jacobian")
    eJe = np.asarray(eJe, dtype=float)
    if eJe.ndim != 2 or eJe.shape[0] != 6:
        raise ValueError(f"Robot Jacobian must be 6 x n, got shape {eJe.shape}")
    return eJe


def task_jacobian(L, mode: ServoMode, cVe=None, eJe=None) -> np.ndarray:
    """
    Compose the task Jacobian for a servo mode.

    Args:
        L: m x 6 stacked interaction matrix
        mode: ServoMode
        cVe: 6x6 end-effector -> camera twist transform (identity if None)
        eJe: 6 x n manipulator Jacobian, required for joint modes

    Returns:
        m x 6 (camera modes) or m x n (joint modes) matrix
    """
    L = np.asarray(L, dtype=float)
    mode = ServoMode(mode)
    if mode is ServoMode.EYE_IN_HAND_CAMERA:
        return L

    cVe = np.eye(6) if cVe is None else _check_twist_transform(cVe)
    J = L @ cVe
    if mode.is_joint:
        J = J @ _check_robot_jacobian(eJe)
    if mode.is_eye_to_hand:
        J = -J
    return J


def camera_to_joint_velocity(v_camera, cVe, eJe, eps: float = DEFAULT_EPS) -> np.ndarray:
    """
    Joint velocities realising a camera twist:

        q̇ = (cVe · eJe)⁺ · v_c

    Args:
        v_camera: 6D camera twist [vx, vy, vz, wx, wy, wz]
        cVe: 6x6 end-effector -> camera twist transform
        eJe: 6 x n manipulator Jacobian in the end-effector frame

    Returns:
        numpy array: joint velocities (n,)
    """
    v_camera = np.asarray(v_camera, dtype=float).reshape(6)
    cJe = _check_twist_transform(cVe) @ _check_robot_jacobian(eJe)
    return pseudo_inverse(cJe, eps).matrix @ v_camera
