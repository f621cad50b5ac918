"""
Rank-Aware Pseudo-Inverse

Moore-Penrose inverse via singular-value decomposition:

    L = U S V^T   ->   L⁺ = V S⁺ U^T

Singular values below eps * sigma_max are treated as zero. The directions
they span get no contribution in the primary solution and remain
available to a secondary task through the null-space projector.
"""

from dataclasses import dataclass

import numpy as np

DEFAULT_EPS = 1e-6


@dataclass(frozen=True)
class PseudoInverse:
    """
    Result of a pseudo-inversion.

    Attributes:
        matrix: n x m pseudo-inverse
        rank: Effective rank after thresholding
        singular_values: All singular values, descending
        shape: Shape (m, n) of the inverted matrix
    """
    matrix: np.ndarray
    rank: int
    singular_values: np.ndarray
    shape: tuple

    @property
    def full_rank(self) -> bool:
        return self.rank == min(self.shape)

    @property
    def condition_number(self) -> float:
        """Ratio of the largest to the smallest retained singular value."""
        if self.rank == 0:
            return float("inf")
        return float(self.singular_values[0] / self.singular_values[self.rank - 1])


def pseudo_inverse(matrix, eps: float = DEFAULT_EPS) -> PseudoInverse:
    """
    Compute the Moore-Penrose pseudo-inverse of an m x n matrix.

    Works uniformly for m < n, m = n and m > n.

    Args:
        matrix: m x n real matrix
        eps: Relative threshold; sigma < eps * sigma_max counts as zero

    Returns:
        PseudoInverse with the n x m inverse, effective rank and singular values
    """
    A = np.asarray(matrix, dtype=float)
    if A.ndim != 2:
        raise ValueError(f"Expected a 2D matrix, got shape {A.shape}")
    if eps < 0:
        raise ValueError(f"eps must be non-negative, got {eps}")
    m, n = A.shape
    if m == 0 or n == 0:
        return PseudoInverse(np.zeros((n, m)), 0, np.zeros(0), (m, n))

    U, S, Vt = np.linalg.svd(A, full_matrices=False)
    sigma_max = S[0] if S.size else 0.0
    keep = S > eps * sigma_max if sigma_max > 0.0 else np.zeros_like(S, dtype=bool)
    rank = int(np.count_nonzero(keep))

    S_inv = np.zeros_like(S)
    S_inv[keep] = 1.0 / S[keep]
    A_pinv = (Vt.T * S_inv) @ U.T

    return PseudoInverse(A_pinv, rank, S, (m, n))
