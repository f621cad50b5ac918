"""
Visual Servoing Control-Law Engine

Task-function visual servoing: a runtime-assembled stack of visual features
(points, translations, rotations, poses, generic features) is turned into a
velocity command each control cycle,

    v = -λ(||e||) · L⁺ · e + (I - L⁺L) · v2

with rank-aware pseudo-inversion, null-space secondary tasks and twist
transforms between camera, end-effector and joint spaces.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConfigurationError,
    DimensionMismatch,
    FeatureReleasedError,
    RobotCommunicationError,
    SingularityDegraded,
    VisualServoError,
)
from .features import (
    GenericFeature,
    PointFeature,
    PoseFeature,
    RotationRepresentation,
    ThetaUFeature,
    TranslationFeature,
    TranslationRepresentation,
    VisualFeature,
)
from .gain import AdaptiveGain
from .modes import InteractionMatrixType, ServoMode
from .pseudo_inverse import PseudoInverse, pseudo_inverse
from .redundancy import null_space_projector, project_secondary_task
from .selection import SelectionMask
from .task import ControlLawResult, FeatureEntry, ServoStatus, VisualServoTask
