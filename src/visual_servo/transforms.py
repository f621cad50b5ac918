"""
Spatial Transforms and Twist Operations

Utilities for homogeneous transforms, the theta-u (axis-angle) rotation
parameterisation and transforming velocity twists between frames.

Twists are ordered [vx, vy, vz, wx, wy, wz] (linear velocity followed by
angular) everywhere in the package.
"""

import numpy as np


def skew(v: np.ndarray) -> np.ndarray:
    """Cross-product matrix [v]x, so that skew(v) @ w == np.cross(v, w)."""
    x, y, z = np.asarray(v, dtype=float).reshape(3)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]], dtype=float)


def sinc(x: float) -> float:
    """Unnormalised sinc, sin(x)/x with sinc(0) = 1."""
    return float(np.sinc(x / np.pi))


def homogeneous(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Build a 4x4 homogeneous matrix from rotation R and translation t."""
    M = np.eye(4)
    M[:3, :3] = np.asarray(R, dtype=float).reshape(3, 3)
    M[:3, 3] = np.asarray(t, dtype=float).reshape(3)
    return M


def invert_homogeneous(M: np.ndarray) -> np.ndarray:
    """Inverse of a rigid transform: [R^T, -R^T t]."""
    M = _as_homogeneous(M)
    R = M[:3, :3]
    t = M[:3, 3]
    return homogeneous(R.T, -R.T @ t)


def _as_homogeneous(M) -> np.ndarray:
    M = np.asarray(M, dtype=float)
    if M.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 homogeneous matrix, got shape {M.shape}")
    return M


def rotation_from_theta_u(theta_u: np.ndarray) -> np.ndarray:
    """
    Rotation matrix from a theta-u vector (Rodrigues' formula).

    Args:
        theta_u: 3D vector, unit axis u scaled by angle theta (radians)

    Returns:
        3x3 rotation matrix
    """
    tu = np.asarray(theta_u, dtype=float).reshape(3)
    theta = np.linalg.norm(tu)
    if theta < 1e-12:
        return np.eye(3) + skew(tu)
    u_hat = skew(tu / theta)
    return np.eye(3) + np.sin(theta) * u_hat + (1.0 - np.cos(theta)) * (u_hat @ u_hat)


def theta_u_from_rotation(R: np.ndarray) -> np.ndarray:
    """
    Minimal theta-u representation of a rotation matrix, theta in [0, pi].

    Near theta = pi the axis is recovered from the symmetric part of R,
    since the antisymmetric part vanishes there.
    """
    R = np.asarray(R, dtype=float).reshape(3, 3)
    c = np.clip((np.trace(R) - 1.0) / 2.0, -1.0, 1.0)
    w = 0.5 * np.array([R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]])
    s = np.linalg.norm(w)
    theta = np.arctan2(s, c)

    if c > -0.99:
        if s < 1e-12:
            return w
        return w * (theta / s)

    # theta close to pi
    uut = (0.5 * (R + R.T) - c * np.eye(3)) / (1.0 - c)
    k = int(np.argmax(np.diag(uut)))
    u = uut[:, k] / np.sqrt(uut[k, k])
    if np.dot(u, w) < 0.0:
        u = -u
    return theta * u


def pose_vector_to_homogeneous(tx, ty, tz, tux, tuy, tuz) -> np.ndarray:
    """Homogeneous matrix from a pose vector (translation, theta-u)."""
    return homogeneous(rotation_from_theta_u([tux, tuy, tuz]), [tx, ty, tz])


def twist_transform(R: np.ndarray, t: np.ndarray, angular_first: bool = False) -> np.ndarray:
    """
    Compute the 6x6 transform mapping a velocity twist from frame B to frame A.

    Given rotation R and translation t of frame B expressed in frame A:
        V = [ R        [t]x R ]
            [ 0            R  ]

    for twists ordered [v; w]. Translation only affects the linear
    component (shifting the reference point), not the angular component.

    With angular_first=True the same screw transform is returned for twists
    ordered [w; v]:
        V = [ R        0 ]
            [ [t]x R   R ]

    Args:
        R: 3x3 rotation matrix
        t: 3D translation vector
        angular_first: Twist ordering of the vectors the matrix will act on

    Returns:
        6x6 twist transform matrix
    """
    R = np.asarray(R, dtype=float).reshape(3, 3)
    tR = skew(t) @ R
    Z = np.zeros((3, 3))
    if angular_first:
        return np.block([[R, Z], [tR, R]])
    return np.block([[R, tR], [Z, R]])


def twist_transform_from_homogeneous(M: np.ndarray) -> np.ndarray:
    """Twist transform aVb from the homogeneous matrix aMb."""
    M = _as_homogeneous(M)
    return twist_transform(M[:3, :3], M[:3, 3])


def rpy_rotation(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """
    Rotation from roll, pitch and yaw angles (radians) about the fixed
    x, y and z axes, applied in that order: R = Rz(yaw) Ry(pitch) Rx(roll).
    """
    R = np.eye(3)
    for axis, angle in zip(np.eye(3), (roll, pitch, yaw)):
        R = rotation_from_theta_u(angle * axis) @ R
    return R


def rpy_pose(tx, ty, tz, roll, pitch, yaw) -> np.ndarray:
    """Homogeneous matrix from a translation and roll-pitch-yaw angles (radians)."""
    return homogeneous(rpy_rotation(roll, pitch, yaw), [tx, ty, tz])


def se3_exp_body(twist6: np.ndarray, dt: float) -> np.ndarray:
    """
    Integrate a constant body-frame twist over dt with the SE(3) exponential.

    Args:
        twist6: 6D twist [vx, vy, vz, wx, wy, wz] in body frame
        dt: Time step

    Returns:
        4x4 homogeneous matrix of the displacement, expressed in the
        body frame at the start of the step
    """
    twist6 = np.asarray(twist6, dtype=float).reshape(6)
    v = twist6[:3]
    w = twist6[3:]
    w_norm = np.linalg.norm(w)
    theta = w_norm * dt

    if theta < 1e-9:
        # Small angle approximation
        R = np.eye(3) + skew(w) * dt
        t = v * dt
    else:
        W = skew(w)
        R = rotation_from_theta_u(w * dt)
        V = (
            np.eye(3) * dt
            + (1.0 - np.cos(theta)) / w_norm ** 2 * W
            + (theta - np.sin(theta)) / w_norm ** 3 * (W @ W)
        )
        t = V @ v

    return homogeneous(R, t)
