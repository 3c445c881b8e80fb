"""
Weak Regressor

This module contains the basis-function regressor recruited by the boosting
controller each round. It selects a feature subset, expands it into the
regression basis and fits the coefficients by normalized batch gradient
descent against the current relative-weight distribution.
"""

import warnings
import numpy as np
import pandas as pd
from typing import List, Optional, Sequence
from sklearn.exceptions import ConvergenceWarning

from .basis import basis_length, basis_matrix, basis_term_features, basis_vector
from .data_transforms import estimate_correlations
from .training_set import TrainingSet


FEATURE_SELECTIONS = ("random", "correlation")

# consecutive small accepted steps before the descent is considered converged
N_SMALL_STEPS = 10
STEP_GROWTH = 1.2
STEP_SHRINK = 0.5


class WeakRegressor:
    """
    弱学習器（基底関数回帰）

    Attributes:
    -----------
    subset : tuple of int
        学習に使用する特徴量のインデックス
    theta : np.ndarray, shape=(basis_length,)
        回帰係数（学習中のみ更新）
    comb_coef : float or None
        結合係数。学習と採用判定の後にコントローラが一度だけ設定する
    n_iterations_ : int
        勾配降下の反復回数
    converged_ : bool
        収束判定で停止したかどうか（反復上限で停止した場合 False）
    """

    def __init__(self,
                 training_set: TrainingSet,
                 subset_size: int = 8,
                 feature_selection: str = "random",
                 use_quadratic: bool = True,
                 regularization: float = 0.0,
                 initial_step: float = 0.1,
                 tol: float = 0.01,
                 max_iterations: int = 20000,
                 min_step: float = 1e-12,
                 subset: Optional[Sequence[int]] = None,
                 track_history: bool = False,
                 rng: Optional[np.random.Generator] = None):
        if feature_selection not in FEATURE_SELECTIONS:
            raise ValueError(f"Unknown feature_selection: {feature_selection}")
        if subset is None and subset_size < 1:
            raise ValueError(f"subset_size must be >= 1, got {subset_size}")
        if regularization < 0:
            raise ValueError(f"regularization must be >= 0, got {regularization}")

        self.training_set = training_set
        self.subset_size = subset_size
        self.feature_selection = feature_selection
        self.use_quadratic = use_quadratic
        self.regularization = regularization
        self.initial_step = initial_step
        self.tol = tol
        self.max_iterations = max_iterations
        self.min_step = min_step
        self.track_history = track_history
        self.rng = rng if rng is not None else np.random.default_rng()

        self.comb_coef: Optional[float] = None
        self.theta_history: List[np.ndarray] = []
        self.n_iterations_ = 0
        self.converged_ = False
        self.is_fitted = False

        self._correlations = None
        if feature_selection == "correlation":
            self._correlations = estimate_correlations(
                training_set.features, training_set.targets, training_set.relative_weights()
            )

        self.subset = self._select_subset(training_set.n_features, subset)
        self.theta = self._initial_theta()

    def _select_subset(self, n_features: int, subset: Optional[Sequence[int]]) -> tuple:
        if subset is not None:
            chosen = [int(i) for i in subset]
            if not chosen:
                raise ValueError("subset must not be empty")
            if len(set(chosen)) != len(chosen):
                raise ValueError(f"subset contains duplicate indices: {chosen}")
            if min(chosen) < 0 or max(chosen) >= n_features:
                raise ValueError(f"subset indices must lie in [0, {n_features})")
            return tuple(chosen)

        if self.subset_size >= n_features:
            return tuple(range(n_features))

        if self.feature_selection == "random":
            chosen = self.rng.choice(n_features, size=self.subset_size, replace=False)
        else:
            _, factors = self._correlations
            chosen = np.argsort(-factors, kind="stable")[:self.subset_size]
        return tuple(int(i) for i in chosen)

    def _initial_theta(self) -> np.ndarray:
        k = len(self.subset)
        theta = np.zeros(basis_length(k, self.use_quadratic))
        if self._correlations is not None:
            # average of the single-feature fits of the chosen features
            offsets, factors = self._correlations
            idx = np.asarray(self.subset)
            theta[0] = offsets[idx].mean()
            theta[1:k + 1] = factors[idx] / k
        return theta

    def basis(self, raw_input: Sequence[float]) -> np.ndarray:
        return basis_vector(raw_input, self.subset, self.use_quadratic)

    def _objective(self, phi: np.ndarray, targets: np.ndarray, weights: np.ndarray,
                   theta: np.ndarray) -> float:
        residual = phi @ theta - targets
        error = 0.5 * float(np.sum(weights * residual * residual))
        if self.regularization > 0:
            error += 0.5 * self.regularization * float(np.sum(theta[1:] ** 2))
        return error

    def _unit_gradient(self, phi: np.ndarray, targets: np.ndarray, weights: np.ndarray,
                       theta: np.ndarray) -> Optional[np.ndarray]:
        """
        Weighted least-squares gradient, L2-normalized

        The bias (index 0) is not regularized. Returns None for a zero or
        non-finite gradient norm.
        """
        residual = phi @ theta - targets
        gradient = phi.T @ (weights * residual)
        gradient[1:] += self.regularization * theta[1:]
        norm = np.linalg.norm(gradient)
        if norm == 0 or not np.isfinite(norm):
            return None
        return gradient / norm

    def train(self) -> 'WeakRegressor':
        """
        Fit theta by batch gradient descent on the current weighted distribution

        A step is taken only when it lowers the objective; the step size then
        grows by 1.2, otherwise it halves and the step is retried. The descent
        stops after 10 consecutive accepted steps shorter than tol * |theta|,
        when the step size falls below ``min_step``, or when the gradient
        vanishes. Reaching ``max_iterations`` emits a ConvergenceWarning and
        keeps the current theta.
        """
        phi = basis_matrix(self.training_set.features, self.subset, self.use_quadratic)
        targets = self.training_set.targets
        weights = self.training_set.relative_weights()

        theta = self.theta.copy()
        alpha = self.initial_step
        error = self._objective(phi, targets, weights, theta)
        gradient = self._unit_gradient(phi, targets, weights, theta)

        small_steps = 0
        iterations = 0
        converged = False
        while True:
            if gradient is None or small_steps >= N_SMALL_STEPS:
                converged = True
                break
            if iterations >= self.max_iterations:
                warnings.warn(
                    f"Gradient descent stopped after {iterations} iterations without converging "
                    f"(subset={list(self.subset)}, error={error:.6g})",
                    ConvergenceWarning
                )
                break
            iterations += 1

            candidate = theta - alpha * gradient
            new_error = self._objective(phi, targets, weights, candidate)
            if new_error < error:
                step = np.linalg.norm(candidate - theta)
                theta = candidate
                if self.track_history:
                    self.theta_history.append(theta.copy())
                if step < self.tol * np.linalg.norm(theta):
                    small_steps += 1
                else:
                    small_steps = 0
                error = new_error
                gradient = self._unit_gradient(phi, targets, weights, theta)
                alpha *= STEP_GROWTH
            else:
                alpha *= STEP_SHRINK
                if alpha < self.min_step:
                    # no representable descent step left
                    converged = True
                    break

        self.theta = theta
        self.n_iterations_ = iterations
        self.converged_ = converged
        self.training_error_ = error
        self.is_fitted = True
        return self

    def hypothesis(self, raw_input: Sequence[float]) -> float:
        """Prediction for one raw input vector: theta . basis(x)."""
        return float(self.basis(raw_input) @ self.theta)

    def predict(self, X: np.ndarray) -> np.ndarray:
        return basis_matrix(X, self.subset, self.use_quadratic) @ self.theta

    def set_comb_coef(self, comb_coef: float) -> None:
        self.comb_coef = float(comb_coef)

    def get_comb_coef(self) -> Optional[float]:
        return self.comb_coef

    def major_basis(self) -> int:
        """
        訓練データ上で予測への寄与が最大の基底インデックス

        Returns -1 when no basis term contributes positively.
        """
        phi = basis_matrix(self.training_set.features, self.subset, self.use_quadratic)
        contributions = (phi * self.theta).sum(axis=0)
        best = int(np.argmax(contributions))
        if contributions[best] <= 0:
            return -1
        return best

    def iteration_errors(self) -> pd.DataFrame:
        """
        Prediction error of every recorded theta snapshot, per training sample

        Rows are sorted by target. Columns hold the raw feature indices and
        value of the major basis term, the target, one ``iter_<n>`` error column
        per snapshot, and the final prediction.
        """
        if not self.track_history:
            raise ValueError("iteration_errors requires track_history=True")

        major = self.major_basis()
        feature_a, feature_b = basis_term_features(max(major, 0), self.subset, self.use_quadratic)
        phi = basis_matrix(self.training_set.features, self.subset, self.use_quadratic)
        targets = self.training_set.targets

        data = {
            'feature_a': np.full(len(targets), feature_a),
            'feature_b': np.full(len(targets), feature_b),
            'major_value': phi[:, max(major, 0)],
            'target': targets,
        }
        for n, theta in enumerate(self.theta_history):
            data[f'iter_{n}'] = phi @ theta - targets
        data['prediction'] = phi @ self.theta

        return pd.DataFrame(data).sort_values('target', kind="stable").reset_index(drop=True)

    def __repr__(self) -> str:
        return (f"WeakRegressor(subset={list(self.subset)}, quadratic={self.use_quadratic}, "
                f"comb_coef={self.comb_coef})")
