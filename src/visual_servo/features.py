"""
Visual Features

Each feature kind exposes the same capability set used by the servo task:

    dimension               number of components d
    interaction(mask)       rows of the interaction matrix L_s (d x 6)
    error(desired, mask)    rows of the error block against a desired feature

Features never touch one another; the task only reads them. The caller
updates the current values between control cycles (build(...) methods).
"""

import abc
from enum import Enum

import numpy as np

from .exceptions import ConfigurationError, DimensionMismatch, FeatureReleasedError
from .selection import SelectionMask, resolve_mask
from .transforms import sinc, skew, theta_u_from_rotation


class VisualFeature(abc.ABC):
    """Base capability interface for a visual feature."""

    dimension = 0

    def __init__(self):
        self._released = False

    @property
    def columns(self):
        """Column count of the interaction matrix, None while unknown."""
        return 6

    @property
    def kind(self) -> str:
        """Kind tag; a desired feature must share it with its current feature."""
        return type(self).__name__

    @property
    @abc.abstractmethod
    def value(self) -> np.ndarray:
        """Current feature vector s (length d)."""

    @abc.abstractmethod
    def _full_interaction(self) -> np.ndarray:
        """Full d x 6 interaction matrix."""

    @abc.abstractmethod
    def zero_like(self) -> "VisualFeature":
        """Canonical desired counterpart of the same kind (the goal s* = 0)."""

    def _full_error(self, desired: "VisualFeature") -> np.ndarray:
        return self.value - desired.value

    def interaction(self, mask=None) -> np.ndarray:
        self._check_alive()
        m = self.selection(mask)
        return self._full_interaction()[m.indices, :]

    def error(self, desired: "VisualFeature", mask=None) -> np.ndarray:
        self._check_alive()
        self.check_counterpart(desired)
        desired._check_alive()
        m = self.selection(mask)
        return np.asarray(self._full_error(desired), dtype=float)[m.indices]

    def selection(self, mask=None) -> SelectionMask:
        m = resolve_mask(mask, self.dimension)
        if m.width != self.dimension:
            raise DimensionMismatch(
                f"Selection width {m.width} does not match {self.kind} dimension {self.dimension}"
            )
        return m

    def check_counterpart(self, other: "VisualFeature") -> None:
        if not isinstance(other, VisualFeature):
            raise DimensionMismatch(f"Expected a VisualFeature, got {type(other).__name__}")
        if other.kind != self.kind or other.dimension != self.dimension:
            raise DimensionMismatch(
                f"Cannot pair {self.kind} (d={self.dimension}) with "
                f"{other.kind} (d={other.dimension})"
            )

    def release(self) -> None:
        self._released = True

    @property
    def released(self) -> bool:
        return self._released

    def _check_alive(self) -> None:
        if self._released:
            raise FeatureReleasedError(f"{self.kind} feature was released")

    def __repr__(self):
        values = np.array2string(self.value, precision=4, separator=", ")
        return f"{type(self).__name__}({values})"


class PointFeature(VisualFeature):
    """
    2D image point s = (x, y) in normalised coordinates (metres on the
    image plane). The depth Z is not observable from the image and must be
    supplied for the interaction matrix:

        [ -1/Z   0    x/Z   x*y    -(1 + x^2)   y ]
        [  0    -1/Z  y/Z   1+y^2  -x*y        -x ]
    """

    dimension = 2

    def __init__(self, x: float = 0.0, y: float = 0.0, Z: float = 1.0):
        super().__init__()
        self.build(x, y, Z)

    @classmethod
    def from_camera_point(cls, X: float, Y: float, Z: float) -> "PointFeature":
        """Perspective projection of a 3D point expressed in the camera frame."""
        if Z <= 0:
            raise ValueError(f"Point is behind the camera (Z={Z})")
        return cls(X / Z, Y / Z, Z)

    def build(self, x: float, y: float, Z: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.Z = float(Z)

    @property
    def value(self) -> np.ndarray:
        return np.array([self.x, self.y])

    def _full_interaction(self) -> np.ndarray:
        if self.Z <= 0:
            raise ValueError(f"Point depth must be positive to compute the interaction matrix (Z={self.Z})")
        x, y, Z = self.x, self.y, self.Z
        return np.array(
            [
                [-1.0 / Z, 0.0, x / Z, x * y, -(1.0 + x * x), y],
                [0.0, -1.0 / Z, y / Z, 1.0 + y * y, -x * y, -x],
            ]
        )

    def zero_like(self) -> "PointFeature":
        return PointFeature(0.0, 0.0, 1.0)


class TranslationRepresentation(Enum):
    CDMC = "cdMc"  # s = cd_t_c, translation of the current camera in the desired one
    CMCD = "cMcd"  # s = c_t_cd, translation of the desired camera in the current one
    CMO = "cMo"    # s = c_t_o, translation of the object in the current camera


class TranslationFeature(VisualFeature):
    """3D translation feature, d = 3. The representation fixes the interaction matrix."""

    dimension = 3

    def __init__(self, t=(0.0, 0.0, 0.0), R=None, representation=TranslationRepresentation.CDMC):
        super().__init__()
        self.representation = TranslationRepresentation(representation)
        self.build(t, R)

    @classmethod
    def from_homogeneous(cls, M, representation=TranslationRepresentation.CDMC) -> "TranslationFeature":
        feature = cls(representation=representation)
        feature.build_from_homogeneous(M)
        return feature

    def build(self, t, R=None) -> None:
        self.t = np.asarray(t, dtype=float).reshape(3).copy()
        self.R = np.eye(3) if R is None else np.asarray(R, dtype=float).reshape(3, 3).copy()

    def build_from_homogeneous(self, M) -> None:
        M = np.asarray(M, dtype=float)
        self.build(M[:3, 3], M[:3, :3])

    @property
    def kind(self) -> str:
        return f"TranslationFeature[{self.representation.value}]"

    @property
    def value(self) -> np.ndarray:
        return self.t.copy()

    def _full_interaction(self) -> np.ndarray:
        if self.representation is TranslationRepresentation.CDMC:
            return np.hstack((self.R, np.zeros((3, 3))))
        return np.hstack((-np.eye(3), skew(self.t)))

    def zero_like(self) -> "TranslationFeature":
        return TranslationFeature(representation=self.representation)


class RotationRepresentation(Enum):
    CDRC = "cdRc"  # rotation of the current camera in the desired one
    CRCD = "cRcd"  # rotation of the desired camera in the current one


class ThetaUFeature(VisualFeature):
    """
    3D rotation feature s = theta*u, d = 3.

    The error against a desired rotation R* is theta-u of R*^T R, the
    minimal rotation taking the desired orientation to the current one.
    """

    dimension = 3

    def __init__(self, R=None, representation=RotationRepresentation.CDRC):
        super().__init__()
        self.representation = RotationRepresentation(representation)
        self.build(R)

    @classmethod
    def from_homogeneous(cls, M, representation=RotationRepresentation.CDRC) -> "ThetaUFeature":
        return cls(np.asarray(M, dtype=float)[:3, :3], representation)

    def build(self, R=None) -> None:
        self.R = np.eye(3) if R is None else np.asarray(R, dtype=float).reshape(3, 3).copy()

    def build_from_homogeneous(self, M) -> None:
        self.build(np.asarray(M, dtype=float)[:3, :3])

    @property
    def kind(self) -> str:
        return f"ThetaUFeature[{self.representation.value}]"

    @property
    def value(self) -> np.ndarray:
        return theta_u_from_rotation(self.R)

    def _full_error(self, desired: "ThetaUFeature") -> np.ndarray:
        return theta_u_from_rotation(desired.R.T @ self.R)

    def _full_interaction(self) -> np.ndarray:
        tu = self.value
        theta = np.linalg.norm(tu)
        U = skew(tu / theta) if theta > 1e-12 else np.zeros((3, 3))
        k = 1.0 - sinc(theta) / sinc(theta / 2.0) ** 2
        if self.representation is RotationRepresentation.CDRC:
            Lw = np.eye(3) + 0.5 * theta * U + k * (U @ U)
        else:
            Lw = -(np.eye(3) - 0.5 * theta * U + k * (U @ U))
        return np.hstack((np.zeros((3, 3)), Lw))

    def zero_like(self) -> "ThetaUFeature":
        return ThetaUFeature(representation=self.representation)


class PoseFeature(VisualFeature):
    """
    Full 3D pose s = (cd_t_c, theta*u(cd_R_c)), d = 6, built from the
    homogeneous matrix cdMc. Stacks a translation and a theta-u block.
    """

    dimension = 6

    def __init__(self, M=None):
        super().__init__()
        self._translation = TranslationFeature(representation=TranslationRepresentation.CDMC)
        self._rotation = ThetaUFeature(representation=RotationRepresentation.CDRC)
        self.build(np.eye(4) if M is None else M)

    def build(self, M) -> None:
        M = np.asarray(M, dtype=float)
        if M.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 homogeneous matrix, got shape {M.shape}")
        self._translation.build_from_homogeneous(M)
        self._rotation.build_from_homogeneous(M)

    @property
    def value(self) -> np.ndarray:
        return np.concatenate((self._translation.value, self._rotation.value))

    def _full_interaction(self) -> np.ndarray:
        return np.vstack((self._translation._full_interaction(), self._rotation._full_interaction()))

    def _full_error(self, desired: "PoseFeature") -> np.ndarray:
        return np.concatenate(
            (
                self._translation._full_error(desired._translation),
                self._rotation._full_error(desired._rotation),
            )
        )

    def zero_like(self) -> "PoseFeature":
        return PoseFeature()


class GenericFeature(VisualFeature):
    """
    Feature of arbitrary dimension whose value and interaction matrix are
    set directly by the caller.
    """

    def __init__(self, dimension: int, value=None, interaction_matrix=None):
        super().__init__()
        dimension = int(dimension)
        if dimension <= 0:
            raise ValueError(f"Feature dimension must be positive, got {dimension}")
        self.dimension = dimension
        self._value = np.zeros(dimension)
        self._L = None
        if value is not None:
            self.set_value(value)
        if interaction_matrix is not None:
            self.set_interaction(interaction_matrix)

    def set_value(self, value) -> None:
        value = np.asarray(value, dtype=float).reshape(-1)
        if value.size != self.dimension:
            raise DimensionMismatch(f"Expected {self.dimension} values, got {value.size}")
        self._value = value.copy()

    def set_interaction(self, L) -> None:
        L = np.asarray(L, dtype=float)
        if L.ndim != 2 or L.shape[0] != self.dimension:
            raise DimensionMismatch(
                f"Interaction matrix must have {self.dimension} rows, got shape {L.shape}"
            )
        self._L = L.copy()

    @property
    def columns(self):
        return None if self._L is None else self._L.shape[1]

    @property
    def value(self) -> np.ndarray:
        return self._value.copy()

    def _full_interaction(self) -> np.ndarray:
        if self._L is None:
            raise ConfigurationError("GenericFeature interaction matrix has not been set")
        return self._L

    def zero_like(self) -> "GenericFeature":
        return GenericFeature(self.dimension, interaction_matrix=self._L)
