"""
Null-Space Redundancy

Secondary objectives are injected through the projector onto the null
space of the task Jacobian, so they never disturb the primary task:

    P = I - L⁺ L
    v = v_primary + P v2
"""

import numpy as np

from .pseudo_inverse import DEFAULT_EPS, pseudo_inverse


def null_space_projector(L, L_pinv=None, eps: float = DEFAULT_EPS) -> np.ndarray:
    """
    Orthogonal projector onto the null space of L.

    P is idempotent (P P = P) and symmetric up to rounding.

    Args:
        L: m x n task Jacobian
        L_pinv: Optional precomputed n x m pseudo-inverse of L
        eps: Threshold used when L_pinv has to be computed

    Returns:
        n x n projector
    """
    L = np.asarray(L, dtype=float)
    if L_pinv is None:
        L_pinv = pseudo_inverse(L, eps).matrix
    n = L.shape[1]
    P = np.eye(n) - np.asarray(L_pinv, dtype=float) @ L
    # symmetrise to strip rounding asymmetry
    return 0.5 * (P + P.T)


def project_secondary_task(L, L_pinv, secondary_velocity, eps: float = DEFAULT_EPS) -> np.ndarray:
    """Component of secondary_velocity that leaves the primary task unchanged."""
    v2 = np.asarray(secondary_velocity, dtype=float).reshape(-1)
    P = null_space_projector(L, L_pinv, eps)
    if v2.size != P.shape[0]:
        raise ValueError(f"Secondary velocity must have {P.shape[0]} components, got {v2.size}")
    return P @ v2
