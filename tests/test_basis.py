"""
基底展開のテスト
"""

import numpy as np
import pytest

from regboost.models.boosting_components.basis import (
    basis_length,
    basis_vector,
    basis_matrix,
    basis_term_features,
)


def test_basis_length():
    assert basis_length(3) == 10
    assert basis_length(3, quadratic=False) == 4
    assert basis_length(1) == 3
    assert basis_length(8) == 1 + 8 + 36


def test_basis_vector_order():
    """bias, linear terms in subset order, then x_i*x_j for i <= j (i-major)"""
    x = [1.0, 2.0, 3.0, 4.0]
    phi = basis_vector(x, subset=[2, 0])
    np.testing.assert_allclose(phi, [1.0, 3.0, 1.0, 9.0, 3.0, 1.0])


def test_basis_vector_linear_only():
    phi = basis_vector([5.0, -1.0, 2.0], subset=[1, 2], quadratic=False)
    np.testing.assert_allclose(phi, [1.0, -1.0, 2.0])


def test_basis_matrix_matches_vector():
    rng = np.random.default_rng(3)
    X = rng.normal(size=(6, 5))
    subset = [4, 1, 3]
    phi = basis_matrix(X, subset)
    assert phi.shape == (6, basis_length(3))
    for i in range(X.shape[0]):
        np.testing.assert_allclose(phi[i], basis_vector(X[i], subset))


def test_basis_term_features():
    subset = [2, 0]
    assert basis_term_features(0, subset) == (-1, -1)
    assert basis_term_features(1, subset) == (2, -1)
    assert basis_term_features(2, subset) == (0, -1)
    assert basis_term_features(3, subset) == (2, 2)
    assert basis_term_features(4, subset) == (2, 0)
    assert basis_term_features(5, subset) == (0, 0)


def test_basis_term_features_out_of_range():
    with pytest.raises(IndexError):
        basis_term_features(6, [2, 0])
    with pytest.raises(IndexError):
        basis_term_features(3, [2, 0], quadratic=False)
