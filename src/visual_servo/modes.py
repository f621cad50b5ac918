"""
Servo configuration enums.
"""

from enum import Enum


class ServoMode(Enum):
    """Camera mounting and the space the command is expressed in."""
    EYE_IN_HAND_CAMERA = "eye_in_hand_camera"  # camera twist, camera frame
    EYE_IN_HAND_JOINT = "eye_in_hand_joint"    # joint velocities
    EYE_TO_HAND_CAMERA = "eye_to_hand_camera"  # end-effector twist, end-effector frame
    EYE_TO_HAND_JOINT = "eye_to_hand_joint"    # joint velocities

    @property
    def is_joint(self) -> bool:
        return self in (ServoMode.EYE_IN_HAND_JOINT, ServoMode.EYE_TO_HAND_JOINT)

    @property
    def is_eye_to_hand(self) -> bool:
        return self in (ServoMode.EYE_TO_HAND_CAMERA, ServoMode.EYE_TO_HAND_JOINT)


class InteractionMatrixType(Enum):
    """Which feature the interaction matrix is evaluated at."""
    CURRENT = "current"
    DESIRED = "desired"
    MEAN = "mean"
