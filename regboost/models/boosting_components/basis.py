"""
Basis Expansion

Maps a selected feature subset to the regression basis used by the weak
regressors: a bias term, the linear terms, and optionally every pairwise
product x_i * x_j with i <= j, enumerated i-major. Coefficients are read
positionally, so the enumeration order is fixed.
"""

import numpy as np
from typing import Sequence, Tuple


def basis_length(subset_size: int, quadratic: bool = True) -> int:
    """Length of the basis for ``subset_size`` selected features."""
    k = int(subset_size)
    length = 1 + k
    if quadratic:
        length += k * (k + 1) // 2
    return length


def _quadratic_pairs(k: int) -> Tuple[np.ndarray, np.ndarray]:
    return np.triu_indices(k)


def basis_vector(raw_input: Sequence[float], subset: Sequence[int], quadratic: bool = True) -> np.ndarray:
    """
    Build the basis vector for one raw input

    Parameters:
    -----------
    raw_input : array-like, shape=(n_features,)
        全特徴量
    subset : sequence of int
        選択された特徴量のインデックス（この順序で線形項を並べる）
    quadratic : bool, default=True
        二次項を含めるかどうか

    Returns:
    --------
    basis : np.ndarray, shape=(basis_length(len(subset), quadratic),)
    """
    return basis_matrix(np.asarray(raw_input, dtype=np.float64).reshape(1, -1), subset, quadratic)[0]


def basis_matrix(X: np.ndarray, subset: Sequence[int], quadratic: bool = True) -> np.ndarray:
    """Vectorized basis expansion for every row of ``X``."""
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(1, -1)
    selected = X[:, np.asarray(subset, dtype=int)]
    blocks = [np.ones((X.shape[0], 1)), selected]
    if quadratic:
        rows, cols = _quadratic_pairs(selected.shape[1])
        blocks.append(selected[:, rows] * selected[:, cols])
    return np.hstack(blocks)


def basis_term_features(index: int, subset: Sequence[int], quadratic: bool = True) -> Tuple[int, int]:
    """
    Map a basis position back to the raw feature indices it is built from

    Returns ``(-1, -1)`` for the bias, ``(f, -1)`` for a linear term and
    ``(f, g)`` for the quadratic term x_f * x_g.
    """
    k = len(subset)
    if index < 0 or index >= basis_length(k, quadratic):
        raise IndexError(f"basis index {index} out of range")
    if index == 0:
        return -1, -1
    if index <= k:
        return int(subset[index - 1]), -1
    rows, cols = _quadratic_pairs(k)
    pair = index - k - 1
    return int(subset[rows[pair]]), int(subset[cols[pair]])
