"""
Boosted Regressor

Array-in / array-out estimator over the BoostingController.
"""

import numpy as np
from typing import Any, Dict, Optional, Sequence

from .base import RegressorBase
from .boosting_components.boosting_core import BoostingController, TrainingStatus
from .boosting_components.training_set import TrainingSet


class BoostedRegressor(RegressorBase):
    """
    ブースティング回帰モデル

    Every ``fit`` builds a private TrainingSet from ``X`` and ``y`` and runs a
    fresh BoostingController on it. Parameters mirror the controller's.

    Attributes:
    -----------
    controller_ : BoostingController
        学習に使用したコントローラ
    status_ : TrainingStatus
        学習の終了状態
    """

    def __init__(self,
                 max_learners: int = 100,
                 max_bad_learners: int = 200,
                 max_error_rate: float = 0.495,
                 subset_size: int = 8,
                 use_quadratic: bool = True,
                 feature_selection: str = "random",
                 strategy: str = "exponential",
                 threshold: float = 0.2,
                 boost_power: float = 2.0,
                 min_error: float = 5.0,
                 max_error: float = 25.0,
                 normalize: bool = False,
                 normalize_bounds: Sequence[float] = (0.0, 3.0),
                 relative_error: bool = True,
                 use_line_search: bool = False,
                 subset_fallback_to_all: bool = True,
                 regularization: float = 0.0,
                 learner_max_iterations: int = 20000,
                 learner_tol: float = 0.01,
                 random_state: Optional[int] = None,
                 verbose: int = 0):
        super().__init__(random_state=random_state)
        self.max_learners = max_learners
        self.max_bad_learners = max_bad_learners
        self.max_error_rate = max_error_rate
        self.subset_size = subset_size
        self.use_quadratic = use_quadratic
        self.feature_selection = feature_selection
        self.strategy = strategy
        self.threshold = threshold
        self.boost_power = boost_power
        self.min_error = min_error
        self.max_error = max_error
        self.normalize = normalize
        self.normalize_bounds = normalize_bounds
        self.relative_error = relative_error
        self.use_line_search = use_line_search
        self.subset_fallback_to_all = subset_fallback_to_all
        self.regularization = regularization
        self.learner_max_iterations = learner_max_iterations
        self.learner_tol = learner_tol
        self.verbose = verbose

        self.controller_: Optional[BoostingController] = None
        self.status_ = TrainingStatus.NOT_TRAINED

    def fit(self, X: np.ndarray, y: np.ndarray,
            cutoffs: Optional[np.ndarray] = None) -> 'BoostedRegressor':
        """
        Fit the boosted ensemble

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
            Training features
        y : array-like, shape=(n_samples,)
            Training targets
        cutoffs : array-like, shape=(n_samples, 2), optional
            Per-sample cut-off pairs kept for reporting

        Returns:
        --------
        self : BoostedRegressor
        """
        self.n_features_ = None
        X, y = self._validate_input(X, y)
        self.n_features_ = X.shape[1]

        training_set = TrainingSet.from_arrays(X, y, cutoffs=cutoffs)
        self.controller_ = BoostingController(training_set, **self._controller_params())
        self.status_ = self.controller_.train()

        if self.verbose > 0:
            self.controller_.print_training_summary()
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Make predictions with the fitted ensemble

        Returns:
        --------
        predictions : np.ndarray, shape=(n_samples,)
        """
        if self.controller_ is None:
            raise ValueError("Model has not been fitted yet")
        X, _ = self._validate_input(X)
        return self.controller_.predict_many(X)

    @property
    def committee_(self):
        if self.controller_ is None:
            raise ValueError("Model has not been fitted yet")
        return self.controller_.committee

    def _controller_params(self) -> Dict[str, Any]:
        return {
            'max_learners': self.max_learners,
            'max_bad_learners': self.max_bad_learners,
            'max_error_rate': self.max_error_rate,
            'subset_size': self.subset_size,
            'use_quadratic': self.use_quadratic,
            'feature_selection': self.feature_selection,
            'strategy': self.strategy,
            'threshold': self.threshold,
            'boost_power': self.boost_power,
            'min_error': self.min_error,
            'max_error': self.max_error,
            'normalize': self.normalize,
            'normalize_bounds': self.normalize_bounds,
            'relative_error': self.relative_error,
            'use_line_search': self.use_line_search,
            'subset_fallback_to_all': self.subset_fallback_to_all,
            'regularization': self.regularization,
            'learner_max_iterations': self.learner_max_iterations,
            'learner_tol': self.learner_tol,
            'random_state': self.random_state,
            'verbose': self.verbose,
        }

    def get_params(self) -> Dict[str, Any]:
        params = self._controller_params()
        params.pop('verbose')
        return params
