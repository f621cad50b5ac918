"""
Error taxonomy for the visual servoing engine.
"""


class VisualServoError(Exception):
    """Base class for errors raised by the servoing engine."""


class ConfigurationError(VisualServoError):
    """Task is not ready: servo mode, gain, features or Jacobian missing."""


class DimensionMismatch(VisualServoError, ValueError):
    """Current and desired features differ in kind or dimension."""


class FeatureReleasedError(VisualServoError):
    """A feature was used after the task that owned it released it."""


class RobotCommunicationError(VisualServoError):
    """Raised by robot collaborators; never retried by the engine."""


class SingularityDegraded(UserWarning):
    """The stacked interaction matrix lost rank; the command is least-squares only."""
