"""
Visual Servoing Task

Implements the task-function control law over a runtime-assembled stack of
visual features:

    e = [s_1 - s_1*; ...; s_k - s_k*]          (stacked error)
    L = [L_1; ...; L_k]                         (stacked interaction matrix)
    v = -λ(||e||) · J⁺ · e + (I - J⁺J) · v2

where J is L mapped to the command space of the servo mode (see
jacobians.task_jacobian) and v2 an optional secondary-task velocity.

The task only reads the features; the caller updates them between calls.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from .exceptions import ConfigurationError, DimensionMismatch, SingularityDegraded, VisualServoError
from .features import VisualFeature
from .gain import AdaptiveGain
from .jacobians import task_jacobian
from .modes import InteractionMatrixType, ServoMode
from .pseudo_inverse import DEFAULT_EPS, pseudo_inverse
from .redundancy import project_secondary_task
from .selection import SelectionMask

logger = logging.getLogger(__name__)


@dataclass
class FeatureEntry:
    """
    One (current, desired) pair of the stack.

    owned is True when the task built the desired feature itself; only
    owned features are released by the task.
    """
    current: VisualFeature
    desired: VisualFeature
    mask: SelectionMask
    owned: bool = False

    @property
    def rows(self) -> int:
        return self.mask.count


class ServoStatus(Enum):
    OK = "ok"
    SINGULARITY_DEGRADED = "singularity_degraded"
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_FEATURE = "invalid_feature"


@dataclass
class ControlLawResult:
    """
    Outcome of one control-law computation.

    On CONFIGURATION_ERROR or INVALID_FEATURE velocity is None and failure
    holds the exception. On SINGULARITY_DEGRADED velocity is the
    least-squares command of the rank-deficient task.
    """
    status: ServoStatus
    velocity: Optional[np.ndarray] = None
    task_error: Optional[np.ndarray] = None
    gain: Optional[float] = None
    rank: Optional[int] = None
    failure: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.velocity is not None

    @property
    def rank_degraded(self) -> bool:
        return self.status is ServoStatus.SINGULARITY_DEGRADED

    @property
    def error_norm(self) -> Optional[float]:
        if self.task_error is None:
            return None
        return float(np.linalg.norm(self.task_error))

    def unwrap(self, strict: bool = False) -> np.ndarray:
        """
        Return the velocity, raising the stored failure if there is none.

        With strict=True a rank-degraded result raises SingularityDegraded.
        """
        if self.failure is not None:
            raise self.failure
        if strict and self.rank_degraded:
            raise SingularityDegraded(f"Task rank dropped to {self.rank}")
        return self.velocity


class VisualServoTask:
    """
    Task-function engine owning the feature stack.

    Args:
        pinv_eps: Relative singular-value threshold of the pseudo-inverse
    """

    def __init__(self, pinv_eps: float = DEFAULT_EPS):
        self.pinv_eps = float(pinv_eps)
        self._entries: List[FeatureEntry] = []

        self._servo_mode: Optional[ServoMode] = None
        self._interaction_type: Optional[InteractionMatrixType] = None
        self._gain: Optional[AdaptiveGain] = None
        self._cVe = np.eye(6)
        self._eJe: Optional[np.ndarray] = None

        self._reset_outputs()

    def _reset_outputs(self) -> None:
        self._clear_cycle_outputs()
        self.status: Optional[ServoStatus] = None
        self._degraded_logged = False

    def _clear_cycle_outputs(self) -> None:
        self.error: Optional[np.ndarray] = None
        self.interaction_matrix: Optional[np.ndarray] = None
        self.task_jacobian: Optional[np.ndarray] = None
        self.pseudo_inverse: Optional[np.ndarray] = None
        self.singular_values: Optional[np.ndarray] = None
        self.rank: Optional[int] = None
        self.velocity: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Configuration

    def set_servo_mode(self, mode) -> None:
        self._servo_mode = ServoMode(mode)

    @property
    def servo_mode(self) -> Optional[ServoMode]:
        return self._servo_mode

    def set_interaction_matrix_type(self, mode) -> None:
        self._interaction_type = InteractionMatrixType(mode)

    @property
    def interaction_matrix_type(self) -> Optional[InteractionMatrixType]:
        return self._interaction_type

    def set_gain(self, gain) -> None:
        """Constant gain, or an AdaptiveGain instance."""
        if isinstance(gain, AdaptiveGain):
            self._gain = gain
        else:
            self._gain = AdaptiveGain.constant(gain)

    def set_adaptive_gain(self, lambda0: float, lambda_inf: float, slope: float) -> None:
        self._gain = AdaptiveGain(lambda0, lambda_inf, slope)

    @property
    def gain(self) -> Optional[AdaptiveGain]:
        return self._gain

    def set_camera_to_end_effector(self, cVe) -> None:
        """Twist transform from the end-effector frame to the camera frame."""
        cVe = np.asarray(cVe, dtype=float)
        if cVe.shape != (6, 6):
            raise ValueError(f"Twist transform must be 6x6, got shape {cVe.shape}")
        self._cVe = cVe.copy()

    def set_robot_jacobian(self, eJe) -> None:
        """Manipulator Jacobian in the end-effector frame (6 x n), for joint modes."""
        eJe = np.asarray(eJe, dtype=float)
        if eJe.ndim != 2 or eJe.shape[0] != 6:
            raise ValueError(f"Robot Jacobian must be 6 x n, got shape {eJe.shape}")
        self._eJe = eJe.copy()

    # ------------------------------------------------------------------
    # Feature stack

    def add_feature(self, current: VisualFeature, desired: Optional[VisualFeature] = None, mask=None) -> FeatureEntry:
        """
        Append a (current, desired) pair to the stack.

        When desired is None the task builds the canonical desired feature
        (s* = 0) itself and releases it on kill().

        Raises:
            DimensionMismatch: kinds, dimensions or mask width disagree
        """
        if not isinstance(current, VisualFeature):
            raise DimensionMismatch(f"Expected a VisualFeature, got {type(current).__name__}")
        owned = desired is None
        if owned:
            desired = current.zero_like()
        current.check_counterpart(desired)
        self._check_columns(current, desired)
        entry = FeatureEntry(current, desired, current.selection(mask), owned)
        self._entries.append(entry)
        logger.debug(
            "Added %s pair (%s, %d rows)", current.kind, "owned" if owned else "borrowed", entry.rows
        )
        return entry

    def _check_columns(self, *features: VisualFeature) -> None:
        """All interaction blocks of the stack must share one column count."""
        known = {f.columns for entry in self._entries for f in (entry.current, entry.desired)}
        known.update(f.columns for f in features)
        known.discard(None)
        if len(known) > 1:
            raise DimensionMismatch(f"Interaction blocks disagree on column count: {sorted(known)}")

    def remove_feature(self, current: VisualFeature) -> None:
        """Remove every pair whose current feature is `current`."""
        kept = [entry for entry in self._entries if entry.current is not current]
        if len(kept) == len(self._entries):
            raise ValueError(f"{current!r} is not part of this task")
        for entry in self._entries:
            if entry.current is current and entry.owned:
                entry.desired.release()
        self._entries = kept

    @property
    def entries(self) -> List[FeatureEntry]:
        return list(self._entries)

    @property
    def dimension(self) -> int:
        """Number of stacked rows (sum of selected components)."""
        return sum(entry.rows for entry in self._entries)

    def __len__(self):
        return len(self._entries)

    def kill(self) -> None:
        """Release task-owned desired features and empty the stack."""
        for entry in self._entries:
            if entry.owned:
                entry.desired.release()
        self._entries = []
        self._reset_outputs()

    # ------------------------------------------------------------------
    # Control law

    def compute_interaction_matrix(self) -> np.ndarray:
        """Stack the per-pair interaction blocks according to the interaction matrix type."""
        blocks = []
        for entry in self._entries:
            if self._interaction_type is InteractionMatrixType.CURRENT:
                Ls = entry.current.interaction(entry.mask)
            elif self._interaction_type is InteractionMatrixType.DESIRED:
                Ls = entry.desired.interaction(entry.mask)
            else:
                Ls = 0.5 * (entry.current.interaction(entry.mask) + entry.desired.interaction(entry.mask))
            blocks.append(Ls)

        columns = {block.shape[1] for block in blocks}
        if len(columns) > 1:
            raise DimensionMismatch(f"Interaction blocks disagree on column count: {sorted(columns)}")
        return np.vstack(blocks)

    def compute_error(self) -> np.ndarray:
        """Stack the per-pair error blocks in insertion order."""
        return np.concatenate([entry.current.error(entry.desired, entry.mask) for entry in self._entries])

    def _check_configuration(self) -> None:
        if self._servo_mode is None:
            raise ConfigurationError("Servo mode must be set before computing the control law")
        if self._interaction_type is None:
            raise ConfigurationError("Interaction matrix type must be set before computing the control law")
        if self._gain is None:
            raise ConfigurationError("Gain must be set before computing the control law")
        if not self._entries:
            raise ConfigurationError("No visual features have been added to the task")
        if self._servo_mode.is_joint and self._eJe is None:
            raise ConfigurationError(f"{self._servo_mode.name} requires the robot Jacobian")

    def compute_control_law(self, secondary_velocity=None) -> ControlLawResult:
        """
        Compute the velocity command for the current feature values.

        Args:
            secondary_velocity: Optional secondary-task velocity in the
                command space, injected through the null-space projector

        Returns:
            ControlLawResult; misconfiguration and unusable feature values
            are reported in the result, not raised
        """
        try:
            return self._compute(secondary_velocity)
        except ConfigurationError as exc:
            return self._failed(ServoStatus.CONFIGURATION_ERROR, exc)
        except (VisualServoError, ValueError) as exc:
            return self._failed(ServoStatus.INVALID_FEATURE, exc)

    def _failed(self, status: ServoStatus, exc: Exception) -> ControlLawResult:
        logger.error("Control law not computed: %s", exc)
        self._clear_cycle_outputs()
        self.status = status
        return ControlLawResult(status, failure=exc)

    def _compute(self, secondary_velocity) -> ControlLawResult:
        self._check_configuration()

        L = self.compute_interaction_matrix()
        e = self.compute_error()
        J = task_jacobian(L, self._servo_mode, self._cVe, self._eJe)

        pinv = pseudo_inverse(J, self.pinv_eps)
        e_norm = float(np.linalg.norm(e))
        lam = self._gain(e_norm)

        v = -lam * (pinv.matrix @ e)

        if secondary_velocity is not None:
            v2 = np.asarray(secondary_velocity, dtype=float).reshape(-1)
            if v2.size != J.shape[1]:
                raise ConfigurationError(
                    f"Secondary velocity must have {J.shape[1]} components, got {v2.size}"
                )
            v = v + project_secondary_task(J, pinv.matrix, v2)

        self.error = e
        self.interaction_matrix = L
        self.task_jacobian = J
        self.pseudo_inverse = pinv.matrix
        self.singular_values = pinv.singular_values
        self.rank = pinv.rank
        self.velocity = v

        if pinv.full_rank:
            self.status = ServoStatus.OK
            self._degraded_logged = False
        else:
            self.status = ServoStatus.SINGULARITY_DEGRADED
            if not self._degraded_logged:
                logger.warning(
                    "Task Jacobian %dx%d has rank %d; using least-squares command",
                    J.shape[0], J.shape[1], pinv.rank,
                )
                self._degraded_logged = True

        logger.debug("||e||=%.6g lambda=%.4g rank=%d v=%s", e_norm, lam, pinv.rank, v)
        return ControlLawResult(self.status, v.copy(), e.copy(), lam, pinv.rank)

    # ------------------------------------------------------------------

    def describe(self) -> str:
        """Human-readable summary of the task configuration and last state."""
        mode = self._servo_mode.name if self._servo_mode else "<unset>"
        lines = [
            "Visual servoing task:",
            f"  servo mode: {mode}",
            f"  interaction matrix: {self._interaction_type.name if self._interaction_type else '<unset>'}",
            f"  gain: {self._gain!r}" if self._gain else "  gain: <unset>",
            f"  features: {len(self._entries)} pairs, {self.dimension} rows",
        ]
        for i, entry in enumerate(self._entries):
            lines.append(
                f"    [{i}] {entry.current.kind} s={np.round(entry.current.value, 6)} "
                f"s*={np.round(entry.desired.value, 6)} mask={entry.mask.bits:#b} "
                f"({'owned' if entry.owned else 'borrowed'})"
            )
        if self.error is not None:
            lines.append(f"  error: {np.round(self.error, 6)}")
            lines.append(f"  rank: {self.rank} ({self.status.name})")
        elif self.status is not None:
            lines.append(f"  last cycle: {self.status.name}")
        return "\n".join(lines)

    def __repr__(self):
        mode = self._servo_mode.name if self._servo_mode else None
        return f"VisualServoTask(mode={mode}, pairs={len(self._entries)}, rows={self.dimension})"
