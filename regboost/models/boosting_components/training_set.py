"""
Training Set

This module contains the Sample value type and the TrainingSet container
that holds the per-sample weights mutated by the boosting controller.
"""

import numpy as np
import pandas as pd
from typing import Iterable, List, Optional, Sequence, Tuple

from .exceptions import DegenerateSampleError


class Sample:
    """
    訓練サンプル（特徴量ベクトル、ターゲット値、重み）

    Attributes:
    -----------
    features : np.ndarray, shape=(n_features,)
        入力特徴量
    target : float
        ターゲット値
    weight : float
        ラウンドを通して蓄積される正規化前の重み
    relative_weight : float
        weight / Σweight（全サンプルで合計1）
    test_cutoffs : tuple of float or None
        評価レポート専用の2つのカットオフ値（学習には使用しない）
    """

    def __init__(self, features: Sequence[float], target: float, weight: float = 0.0,
                 test_cutoffs: Optional[Tuple[float, float]] = None):
        self._features = np.asarray(features, dtype=np.float64)
        if self._features.ndim != 1:
            raise ValueError(f"features must be 1D, got {self._features.ndim}D")
        self._features.setflags(write=False)
        self._target = float(target)
        self._weight = float(weight)
        self._relative_weight = 0.0
        if test_cutoffs is not None:
            if len(test_cutoffs) != 2:
                raise ValueError(f"test_cutoffs must be a pair, got {len(test_cutoffs)} values")
            test_cutoffs = (float(test_cutoffs[0]), float(test_cutoffs[1]))
        self._test_cutoffs = test_cutoffs

    @property
    def features(self) -> np.ndarray:
        return self._features

    @property
    def target(self) -> float:
        return self._target

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def relative_weight(self) -> float:
        return self._relative_weight

    @property
    def test_cutoffs(self) -> Optional[Tuple[float, float]]:
        return self._test_cutoffs

    @property
    def n_features(self) -> int:
        return self._features.shape[0]

    def set_weight(self, weight: float) -> None:
        self._weight = float(weight)

    def set_relative_weight(self, relative_weight: float) -> None:
        self._relative_weight = float(relative_weight)

    def copy(self) -> 'Sample':
        sample = Sample(self._features.copy(), self._target, self._weight, self._test_cutoffs)
        sample.set_relative_weight(self._relative_weight)
        return sample

    def __repr__(self) -> str:
        return (f"Sample(n_features={self.n_features}, target={self._target:.4f}, "
                f"weight={self._weight:.6f}, relative_weight={self._relative_weight:.6f})")


class TrainingSet:
    """
    ブースティング用のサンプル集合

    The feature matrix and target vector are fixed at construction. Only the
    two per-sample weights change, and only through ``initialize_distribution``
    and ``update_weights``, which the boosting controller calls between rounds.
    A controller owns its TrainingSet for the duration of a run; use ``copy``
    to give a concurrent run its own weights.
    """

    def __init__(self, samples: Iterable[Sample]):
        self.samples: List[Sample] = list(samples)
        if not self.samples:
            raise ValueError("TrainingSet requires at least one sample")

        n_features = self.samples[0].n_features
        for i, sample in enumerate(self.samples):
            if sample.n_features != n_features:
                raise ValueError(f"Sample {i} has {sample.n_features} features, expected {n_features}")

        self._features = np.vstack([s.features for s in self.samples])
        self._targets = np.array([s.target for s in self.samples], dtype=np.float64)
        self._features.setflags(write=False)
        self._targets.setflags(write=False)

        if np.any(~np.isfinite(self._features)):
            raise ValueError("features contain inf or NaN values")
        if np.any(~np.isfinite(self._targets)):
            raise ValueError("targets contain inf or NaN values")

    @classmethod
    def from_arrays(cls, X: np.ndarray, y: np.ndarray,
                    cutoffs: Optional[np.ndarray] = None) -> 'TrainingSet':
        """
        Build a training set from a feature matrix and a target vector

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
            入力特徴量
        y : array-like, shape=(n_samples,)
            ターゲット値
        cutoffs : array-like, shape=(n_samples, 2), optional
            評価用カットオフ値
        """
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).ravel()
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.shape[0] != y.shape[0]:
            raise ValueError(f"X ({X.shape[0]} samples) and y ({y.shape[0]} samples) have different numbers of samples")
        if cutoffs is not None:
            cutoffs = np.asarray(cutoffs, dtype=np.float64)
            if cutoffs.shape != (X.shape[0], 2):
                raise ValueError(f"cutoffs must have shape ({X.shape[0]}, 2), got {cutoffs.shape}")

        samples = []
        for i in range(X.shape[0]):
            pair = tuple(cutoffs[i]) if cutoffs is not None else None
            samples.append(Sample(X[i], y[i], test_cutoffs=pair))
        return cls(samples)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, feature_columns: Sequence[str], target_column: str,
                       cutoff_columns: Optional[Sequence[str]] = None) -> 'TrainingSet':
        """Build a training set from selected DataFrame columns."""
        missing = [c for c in list(feature_columns) + [target_column] + list(cutoff_columns or [])
                   if c not in df.columns]
        if missing:
            raise ValueError(f"DataFrame is missing columns: {missing}")

        cutoffs = None
        if cutoff_columns is not None:
            if len(cutoff_columns) != 2:
                raise ValueError("cutoff_columns must name exactly two columns")
            cutoffs = df[list(cutoff_columns)].to_numpy(dtype=np.float64)

        return cls.from_arrays(
            df[list(feature_columns)].to_numpy(dtype=np.float64),
            df[target_column].to_numpy(dtype=np.float64),
            cutoffs=cutoffs
        )

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def __getitem__(self, index: int) -> Sample:
        return self.samples[index]

    @property
    def n_features(self) -> int:
        return self._features.shape[1]

    @property
    def features(self) -> np.ndarray:
        return self._features

    @property
    def targets(self) -> np.ndarray:
        return self._targets

    def weights(self) -> np.ndarray:
        return np.array([s.weight for s in self.samples])

    def relative_weights(self) -> np.ndarray:
        return np.array([s.relative_weight for s in self.samples])

    def initialize_distribution(self) -> None:
        """Set every weight and relative weight to 1/N."""
        uniform = 1.0 / len(self.samples)
        for sample in self.samples:
            sample.set_weight(uniform)
            sample.set_relative_weight(uniform)

    def update_weights(self, new_weights: np.ndarray) -> None:
        """
        全サンプルの重みを更新し、相対重みを再正規化する

        Parameters:
        -----------
        new_weights : array-like, shape=(n_samples,)
            新しい（正規化前の）重み

        Raises:
        -------
        DegenerateSampleError
            重みの合計が0、負、または有限でない場合
        """
        new_weights = np.asarray(new_weights, dtype=np.float64)
        if new_weights.shape != (len(self.samples),):
            raise ValueError(f"Expected {len(self.samples)} weights, got shape {new_weights.shape}")
        if np.any(new_weights < 0) or np.any(~np.isfinite(new_weights)):
            raise DegenerateSampleError("Sample weights must be finite and non-negative")

        total_weight = new_weights.sum()
        if not np.isfinite(total_weight) or total_weight <= 0:
            raise DegenerateSampleError(f"Total sample weight collapsed to {total_weight}")

        relative = new_weights / total_weight
        for sample, weight, rel in zip(self.samples, new_weights, relative):
            sample.set_weight(weight)
            sample.set_relative_weight(rel)

    def copy(self) -> 'TrainingSet':
        return TrainingSet([s.copy() for s in self.samples])

    def to_frame(self) -> pd.DataFrame:
        """Return features, target and weights as a DataFrame."""
        df = pd.DataFrame(self._features, columns=[f"x{i}" for i in range(self.n_features)])
        df['target'] = self._targets
        df['weight'] = self.weights()
        df['relative_weight'] = self.relative_weights()
        return df
