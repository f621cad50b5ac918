import numpy as np
import pytest
from numpy.testing import assert_allclose

from visual_servo import pseudo_inverse


@pytest.mark.parametrize("shape", [(2, 6), (6, 6), (9, 6)])
def test_matches_moore_penrose_for_any_shape(shape):
    rng = np.random.default_rng(7)
    A = rng.standard_normal(shape)
    result = pseudo_inverse(A)
    assert result.matrix.shape == (shape[1], shape[0])
    assert result.rank == min(shape)
    assert result.full_rank
    assert_allclose(result.matrix, np.linalg.pinv(A), atol=1e-10)
    assert_allclose(A @ result.matrix @ A, A, atol=1e-10)


def test_rank_deficient_matrix():
    A = np.array([[1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    result = pseudo_inverse(A)
    assert result.rank == 1
    assert not result.full_rank
    assert_allclose(result.matrix, np.linalg.pinv(A), atol=1e-12)


def test_threshold_is_relative_to_largest_singular_value():
    A = np.diag([1.0, 1e-8])
    assert pseudo_inverse(A, eps=1e-6).rank == 1
    assert_allclose(pseudo_inverse(A, eps=1e-6).matrix, np.diag([1.0, 0.0]))
    assert pseudo_inverse(A, eps=1e-10).rank == 2
    assert pseudo_inverse(1e6 * A, eps=1e-6).rank == 1


def test_zero_matrix():
    result = pseudo_inverse(np.zeros((3, 6)))
    assert result.rank == 0
    assert_allclose(result.matrix, np.zeros((6, 3)))
    assert result.condition_number == float("inf")


def test_condition_number():
    result = pseudo_inverse(np.diag([4.0, 2.0, 0.5]))
    assert result.condition_number == pytest.approx(8.0)
    assert_allclose(result.singular_values, [4.0, 2.0, 0.5])


def test_rejects_non_matrix():
    with pytest.raises(ValueError):
        pseudo_inverse(np.ones(3))
