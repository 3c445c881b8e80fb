"""
Data Transform Utilities

This module contains the min-max feature transformer, the weighted
closed-form correlation estimate used for feature ranking, and the
prediction error helpers shared by the boosting components.
"""

import numpy as np
from typing import Tuple

from .exceptions import DegenerateSampleError
from .training_set import Sample, TrainingSet


class FeatureTransformer:
    """
    特徴量とターゲットの線形変換（min-max正規化）

        x_i = input_offset_i + input_scale_i * v_i
        y   = target_offset  + target_scale  * w

    v_i and w are the normalized values in ``[lower, upper]``. A zero scale
    (constant column) skips the division, so the column maps to
    ``value - offset``.

    Attributes:
    -----------
    input_offset : np.ndarray, shape=(n_features,)
    input_scale : np.ndarray, shape=(n_features,)
    target_offset : float
    target_scale : float
    """

    def __init__(self, training_set: TrainingSet, lower: float = 0.0, upper: float = 3.0):
        if upper <= lower:
            raise ValueError(f"upper ({upper}) must be greater than lower ({lower})")
        self.lower = float(lower)
        self.upper = float(upper)
        span = self.upper - self.lower

        X = training_set.features
        y = training_set.targets

        input_min = X.min(axis=0)
        input_scale = (X.max(axis=0) - input_min) / span
        target_min = float(y.min())
        target_scale = (float(y.max()) - target_min) / span

        self._input_scale = input_scale
        self._input_offset = input_min - input_scale * self.lower
        self._target_scale = target_scale
        self._target_offset = target_min - target_scale * self.lower
        self._input_scale.setflags(write=False)
        self._input_offset.setflags(write=False)

    @property
    def input_offset(self) -> np.ndarray:
        return self._input_offset

    @property
    def input_scale(self) -> np.ndarray:
        return self._input_scale

    @property
    def target_offset(self) -> float:
        return self._target_offset

    @property
    def target_scale(self) -> float:
        return self._target_scale

    def transform_input(self, X: np.ndarray) -> np.ndarray:
        """Normalize a single input vector or a matrix of inputs."""
        X = np.asarray(X, dtype=np.float64)
        values = X - self._input_offset
        scale = np.where(self._input_scale > 0, self._input_scale, 1.0)
        return values / scale

    def transform_target(self, y):
        y = np.asarray(y, dtype=np.float64) - self._target_offset
        if self._target_scale > 0:
            y = y / self._target_scale
        return y

    def to_real_target(self, normalized_target):
        """Convert a normalized target (or prediction) back to real units."""
        return self._target_offset + self._target_scale * normalized_target

    def transform(self, training_set: TrainingSet) -> TrainingSet:
        """
        Return a new training set holding the normalized features and targets

        Weights, relative weights and cut-offs are carried over unchanged.
        """
        X = self.transform_input(training_set.features)
        y = self.transform_target(training_set.targets)
        samples = []
        for i, original in enumerate(training_set):
            sample = Sample(X[i], y[i], original.weight, original.test_cutoffs)
            sample.set_relative_weight(original.relative_weight)
            samples.append(sample)
        return TrainingSet(samples)


def estimate_correlations(
    features: np.ndarray,
    targets: np.ndarray,
    relative_weights: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    各特徴量とターゲットの線形関係を重み付き最小二乗で推定

    factor_i = (E[x_i]E[y] - E[x_i y]) / (E[x_i]^2 - E[x_i^2])
    offset_i = E[y] - factor_i E[x_i]

    Expectations are taken under ``relative_weights``. A feature with zero
    weighted variance gets a factor of 0.

    Parameters:
    -----------
    features : array-like, shape=(n_samples, n_features)
    targets : array-like, shape=(n_samples,)
    relative_weights : array-like, shape=(n_samples,)

    Returns:
    --------
    offsets : np.ndarray, shape=(n_features,)
    factors : np.ndarray, shape=(n_features,)
    """
    X = np.asarray(features, dtype=np.float64)
    y = np.asarray(targets, dtype=np.float64)
    w = np.asarray(relative_weights, dtype=np.float64)

    x_mean = w @ X
    x2_mean = w @ (X * X)
    xy_mean = w @ (X * y[:, None])
    y_mean = float(w @ y)

    dev = x_mean * x_mean - x2_mean
    # constant columns up to rounding
    dev = np.where(np.abs(dev) > 1e-12 * np.maximum(np.abs(x2_mean), 1.0), dev, 0.0)
    safe_dev = np.where(dev != 0, dev, 1.0)
    factors = np.where(dev != 0, (x_mean * y_mean - xy_mean) / safe_dev, 0.0)
    offsets = y_mean - factors * x_mean
    return offsets, factors


def check_nonzero_targets(targets: np.ndarray) -> None:
    """
    Raise DegenerateSampleError when a relative error would divide by zero
    """
    targets = np.asarray(targets, dtype=np.float64)
    zero_idx = np.flatnonzero(targets == 0)
    if zero_idx.size > 0:
        raise DegenerateSampleError(
            f"Relative error is undefined for zero targets (sample indices {zero_idx[:10].tolist()})"
        )


def prediction_errors(predictions: np.ndarray, targets: np.ndarray, relative: bool = True) -> np.ndarray:
    """
    予測誤差を計算

    Parameters:
    -----------
    predictions : array-like, shape=(n_samples,)
    targets : array-like, shape=(n_samples,)
    relative : bool, default=True
        True なら |f-y|/|y|、False なら |f-y|

    Returns:
    --------
    errors : np.ndarray, shape=(n_samples,)
    """
    predictions = np.asarray(predictions, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64)
    errors = np.abs(predictions - targets)
    if relative:
        check_nonzero_targets(targets)
        errors = errors / np.abs(targets)
    return errors


def squared_errors(predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
    diff = np.asarray(predictions, dtype=np.float64) - np.asarray(targets, dtype=np.float64)
    return diff * diff
