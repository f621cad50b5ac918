"""
Gain Laws

Adaptive gain as a function of the task error norm x = ||e||:

    lambda(x) = (lambda0 - lambda_inf) * exp(-slope * x / (lambda0 - lambda_inf)) + lambda_inf

lambda(0) = lambda0 and lambda(x) -> lambda_inf as x grows. With
lambda0 > lambda_inf the gain stays moderate far from the goal, avoiding
large initial velocities, and stiffens near it to speed up the final
convergence. slope is |d(lambda)/dx| at x = 0.
"""

import numpy as np


class AdaptiveGain:
    """
    Gain law lambda(||e||). A constant gain is the degenerate case
    lambda0 == lambda_inf.

    Args:
        lambda0: Gain at zero error
        lambda_inf: Gain as the error tends to infinity
        slope: Magnitude of d(lambda)/dx at x = 0
    """

    def __init__(self, lambda0: float, lambda_inf: float, slope: float):
        lambda0 = float(lambda0)
        lambda_inf = float(lambda_inf)
        slope = float(slope)
        if lambda_inf < 0.0:
            raise ValueError(f"lambda_inf must be non-negative, got {lambda_inf}")
        if lambda0 < lambda_inf:
            raise ValueError(f"lambda0 ({lambda0}) must not be smaller than lambda_inf ({lambda_inf})")
        if lambda0 > lambda_inf and slope <= 0.0:
            raise ValueError(f"slope must be positive for an adaptive gain, got {slope}")
        self.lambda0 = lambda0
        self.lambda_inf = lambda_inf
        self.slope = slope

    @classmethod
    def constant(cls, gain: float) -> "AdaptiveGain":
        return cls(gain, gain, 0.0)

    @property
    def is_constant(self) -> bool:
        return self.lambda0 == self.lambda_inf

    def value(self, error_norm: float) -> float:
        if self.is_constant:
            return self.lambda0
        span = self.lambda0 - self.lambda_inf
        return span * np.exp(-self.slope * float(error_norm) / span) + self.lambda_inf

    def __call__(self, error_norm: float) -> float:
        return self.value(error_norm)

    def __repr__(self):
        if self.is_constant:
            return f"AdaptiveGain.constant({self.lambda0})"
        return f"AdaptiveGain(lambda0={self.lambda0}, lambda_inf={self.lambda_inf}, slope={self.slope})"
