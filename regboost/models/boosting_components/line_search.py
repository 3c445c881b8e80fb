"""
Golden-Section Line Search

Derivative-free minimization of the boosting cost over the combination
coefficient of a weak regressor.
"""

import warnings
import numpy as np
from typing import Callable
from sklearn.exceptions import ConvergenceWarning

from .data_transforms import prediction_errors, squared_errors
from .training_set import TrainingSet
from .weak_regressor import WeakRegressor


GOLDEN_R = 0.61803399
GOLDEN_C = 1.0 - GOLDEN_R


def golden_section_minimize(
    func: Callable[[float], float],
    lower: float,
    upper: float,
    tol: float = 0.01,
    max_iterations: int = 100
) -> float:
    """
    黄金分割探索による1次元最小化

    The bracket (x0, x1, x2, x3) starts at ``[lower, upper]`` with x1 at the
    golden interior point and narrows until
    ``|x3 - x0| < tol * (|x1| + |x2|)``; the bracket midpoint is returned.
    The function is assumed unimodal on the interval; this is not checked.

    Parameters:
    -----------
    func : callable
        最小化する関数
    lower, upper : float
        探索区間
    tol : float, default=0.01
        相対許容誤差
    max_iterations : int, default=100
        反復上限。超えた場合は ConvergenceWarning を出し、その時点の中点を返す

    Returns:
    --------
    x_min : float
    """
    if not lower < upper:
        raise ValueError(f"lower ({lower}) must be less than upper ({upper})")
    if tol <= 0:
        raise ValueError(f"tol must be positive, got {tol}")

    x0, x3 = float(lower), float(upper)
    x1 = x0 + GOLDEN_C * (x3 - x0)
    x2 = x1 + GOLDEN_C * (x3 - x1)
    f1, f2 = func(x1), func(x2)

    iterations = 0
    while abs(x3 - x0) > tol * (abs(x1) + abs(x2)):
        if iterations >= max_iterations:
            warnings.warn(
                f"Golden-section search stopped after {iterations} iterations "
                f"with bracket [{x0:.6g}, {x3:.6g}]",
                ConvergenceWarning
            )
            break
        iterations += 1
        if f2 < f1:
            x0, x1, x2 = x1, x2, GOLDEN_R * x2 + GOLDEN_C * x3
            f1, f2 = f2, func(x2)
        else:
            x3, x2, x1 = x2, x1, GOLDEN_R * x1 + GOLDEN_C * x0
            f2, f1 = f1, func(x1)

    return 0.5 * (x0 + x3)


class CombinationCoefficientSearch:
    """
    結合係数の探索

    Minimizes  J(c) = sum_i weight_i * c^(-1/2) * exp(c * error_i)  over
    ``c`` in ``[lower, upper]``. ``error_i`` is the relative absolute error
    when ``relative_error`` is True, the squared error otherwise. The upper
    bound stays at 1.0 so that the exponential weighting is not inverted.
    """

    def __init__(self, training_set: TrainingSet, relative_error: bool = True,
                 lower: float = 0.01, upper: float = 1.0, tol: float = 0.01,
                 max_iterations: int = 100):
        if not 0 < lower < upper <= 1.0:
            raise ValueError(f"Search interval must satisfy 0 < lower < upper <= 1, got [{lower}, {upper}]")
        self.training_set = training_set
        self.relative_error = relative_error
        self.lower = lower
        self.upper = upper
        self.tol = tol
        self.max_iterations = max_iterations

    def errors(self, learner: WeakRegressor) -> np.ndarray:
        predictions = learner.predict(self.training_set.features)
        if self.relative_error:
            return prediction_errors(predictions, self.training_set.targets, relative=True)
        return squared_errors(predictions, self.training_set.targets)

    @staticmethod
    def cost_from_errors(errors: np.ndarray, weights: np.ndarray, c: float) -> float:
        with np.errstate(over='ignore'):
            return float(np.sum(weights * np.exp(c * errors)) / np.sqrt(c))

    def cost(self, learner: WeakRegressor, c: float) -> float:
        return self.cost_from_errors(self.errors(learner), self.training_set.weights(), c)

    def minimize_coef(self, learner: WeakRegressor) -> float:
        """Return the combination coefficient in [lower, upper] minimizing the cost."""
        errors = self.errors(learner)
        weights = self.training_set.weights()
        return golden_section_minimize(
            lambda c: self.cost_from_errors(errors, weights, c),
            self.lower, self.upper, tol=self.tol, max_iterations=self.max_iterations
        )
