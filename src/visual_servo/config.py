"""
Servo Parameters

Dataclass of task parameters whose defaults can be overridden from the
environment, so that a control loop can be tuned without code changes.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import ConfigurationError
from .modes import InteractionMatrixType, ServoMode
from .pseudo_inverse import DEFAULT_EPS


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _enum_by_name(enum_cls, name: str):
    try:
        return enum_cls[name.strip().upper()]
    except KeyError as exc:
        choices = ", ".join(m.name for m in enum_cls)
        raise ConfigurationError(f"Unknown {enum_cls.__name__} {name!r} (expected one of: {choices})") from exc


@dataclass
class ServoParams:
    """
    Task parameters.

    When lambda0 and lambda_inf are both set an adaptive gain is used,
    otherwise the constant `gain`.
    """
    servo_mode: str = field(default_factory=lambda: os.environ.get("VS_SERVO_MODE", "EYE_IN_HAND_CAMERA"))
    interaction: str = field(default_factory=lambda: os.environ.get("VS_INTERACTION", "CURRENT"))
    gain: float = field(default_factory=lambda: _env_float("VS_GAIN", 1.0))
    lambda0: Optional[float] = field(default_factory=lambda: _env_float("VS_LAMBDA0", None))
    lambda_inf: Optional[float] = field(default_factory=lambda: _env_float("VS_LAMBDA_INF", None))
    slope: float = field(default_factory=lambda: _env_float("VS_SLOPE", 1.0))
    pinv_eps: float = field(default_factory=lambda: _env_float("VS_PINV_EPS", DEFAULT_EPS))
    sampling_time: float = field(default_factory=lambda: _env_float("VS_SAMPLING_TIME", 0.04))
    log_level: str = field(default_factory=lambda: os.environ.get("VS_LOG_LEVEL", "WARNING"))

    @property
    def servo_mode_enum(self) -> ServoMode:
        return _enum_by_name(ServoMode, self.servo_mode)

    @property
    def interaction_enum(self) -> InteractionMatrixType:
        return _enum_by_name(InteractionMatrixType, self.interaction)

    @property
    def adaptive(self) -> bool:
        return self.lambda0 is not None and self.lambda_inf is not None

    def apply(self, task) -> None:
        """Configure servo mode, interaction matrix type, gain and threshold of a task."""
        task.set_servo_mode(self.servo_mode_enum)
        task.set_interaction_matrix_type(self.interaction_enum)
        task.pinv_eps = self.pinv_eps
        if self.adaptive:
            task.set_adaptive_gain(self.lambda0, self.lambda_inf, self.slope)
        else:
            task.set_gain(self.gain)
