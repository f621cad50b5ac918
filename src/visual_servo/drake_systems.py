"""
Drake Integration

LeafSystem wrapping a point-feature visual servoing task so it can be wired
into a Drake diagram between a feature tracker and a velocity controller.

Inputs:
    - current_xy: Vector of size 2N (normalised coordinates [x1, y1, x2, y2, ...])
    - depth: Vector of size N (depth Z for each point)
    - desired_xy: Vector of size 2N

Outputs:
    - camera_velocity: Vector of size 6 (twist [vx, vy, vz, wx, wy, wz])
    - error_norm: Vector of size 1 (||s - s*||)
"""

import numpy as np
from pydrake.all import LeafSystem

from .features import PointFeature
from .modes import InteractionMatrixType, ServoMode
from .task import VisualServoTask


class PointFeatureServoSystem(LeafSystem):
    """
    Eye-in-hand camera-frame servo on N point features.

    Args:
        N_features: Number of point features
        lambda_gain: Constant gain, ignored when adaptive_gain is given
        adaptive_gain: Optional (lambda0, lambda_inf, slope)
        interaction: InteractionMatrixType used by the task
    """

    def __init__(self, N_features=4, lambda_gain=1.0, adaptive_gain=None,
                 interaction=InteractionMatrixType.CURRENT):
        LeafSystem.__init__(self)
        self.N_features = N_features

        self.task = VisualServoTask()
        self.task.set_servo_mode(ServoMode.EYE_IN_HAND_CAMERA)
        self.task.set_interaction_matrix_type(interaction)
        if adaptive_gain is not None:
            self.task.set_adaptive_gain(*adaptive_gain)
        else:
            self.task.set_gain(lambda_gain)

        self._current = [PointFeature() for _ in range(N_features)]
        self._desired = [PointFeature() for _ in range(N_features)]
        for s, s_star in zip(self._current, self._desired):
            self.task.add_feature(s, s_star)

        self.current_xy_input = self.DeclareVectorInputPort("current_xy", size=2 * N_features)
        self.depth_input = self.DeclareVectorInputPort("depth", size=N_features)
        self.desired_xy_input = self.DeclareVectorInputPort("desired_xy", size=2 * N_features)

        self.velocity_output = self.DeclareVectorOutputPort(
            "camera_velocity", size=6, calc=self._calc_velocity
        )
        self.error_norm_output = self.DeclareVectorOutputPort(
            "error_norm", size=1, calc=self._calc_error_norm
        )

    def _update_features(self, context) -> None:
        current = np.asarray(self.current_xy_input.Eval(context)).reshape(self.N_features, 2)
        desired = np.asarray(self.desired_xy_input.Eval(context)).reshape(self.N_features, 2)
        depth = np.asarray(self.depth_input.Eval(context))
        for i in range(self.N_features):
            # desired depth is unknown here; reuse the measured one
            self._current[i].build(current[i, 0], current[i, 1], depth[i])
            self._desired[i].build(desired[i, 0], desired[i, 1], depth[i])

    def _calc_velocity(self, context, output):
        """Compute the camera twist from the inputs."""
        self._update_features(context)
        result = self.task.compute_control_law()
        if not result.ok:
            output.SetFromVector(np.zeros(6))
            return
        output.SetFromVector(result.velocity)

    def _calc_error_norm(self, context, output):
        self._update_features(context)
        output.SetFromVector(np.array([np.linalg.norm(self.task.compute_error())]))
