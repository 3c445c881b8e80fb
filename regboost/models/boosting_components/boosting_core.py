"""
Boosting Core Module

This module contains the BoostingController that recruits weak regressors,
decides whether to admit them, assigns their combination coefficients and
reweights the training distribution between rounds.
"""

import json
import numpy as np
import pandas as pd
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .boosting_strategies import BoostingStrategyManager
from .data_transforms import FeatureTransformer, check_nonzero_targets, prediction_errors
from .line_search import CombinationCoefficientSearch
from .training_set import TrainingSet
from .weak_regressor import FEATURE_SELECTIONS, WeakRegressor


# error rate used in place of an exact zero when admitting a perfect learner
PERFECT_ERROR_RATE = 1e-10


class TrainingStatus(Enum):
    NOT_TRAINED = "not_trained"
    COMPLETED = "completed"        # max_learners reached
    EXHAUSTED = "exhausted"        # max_bad_learners consecutive rejections
    PERFECT_FIT = "perfect_fit"    # a round found a zero error rate


class BoostingController:
    """
    Boosted ensemble regression controller

    Each round: TRAIN a new weak regressor on the current distribution,
    EVALUATE its per-sample errors and error rate, ACCEPT it when the error
    rate is strictly below ``max_error_rate`` (else REJECT and discard it),
    then REWEIGHT every sample and renormalize. The run continues while fewer
    than ``max_learners`` are accepted and fewer than ``max_bad_learners``
    consecutive learners were rejected; a zero error rate ends it at once.
    A learner whose policy coefficient would be <= 0 is rejected as well.
    With deterministic feature selection (correlation ranking, or every
    feature in each subset) the first rejection ends the run as EXHAUSTED,
    since the unchanged distribution would reproduce the same learner.

    The controller owns ``training_set`` during ``train``; its weights are
    rewritten every round.
    """

    def __init__(self,
                 training_set: TrainingSet,
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
                 random_state: Optional[Union[int, np.random.Generator]] = None,
                 verbose: int = 0):
        """
        Initialize BoostingController

        Parameters:
        -----------
        training_set : TrainingSet
            Samples to train on (their weights are mutated)
        max_learners : int
            Number of weak learners to recruit
        max_bad_learners : int
            Stop after this many consecutive rejected learners
        max_error_rate : float
            Acceptance ceiling for a learner's error rate, in (0, 1)
        subset_size : int
            Number of features each weak learner regresses on
        use_quadratic : bool
            Whether to include pairwise quadratic basis terms
        feature_selection : str
            "random" or "correlation"
        strategy : str
            "exponential", "threshold" or "linear"
        threshold : float
            Relative error above which a sample is wrong (threshold strategy)
        boost_power : float
            Exponent of the error rate in beta (threshold strategy)
        min_error, max_error : float
            Ramp bounds in target units (linear strategy)
        normalize : bool
            Whether to min-max normalize features and targets before training
        normalize_bounds : pair of float
            Normalized range (lower, upper)
        relative_error : bool
            Relative (|f-y|/|y|) rather than absolute error for reporting and
            for the exponential strategy
        use_line_search : bool
            Choose each coefficient by golden-section search over [0.01, 1]
        subset_fallback_to_all : bool
            Use every feature when subset_size exceeds the feature count
            (otherwise that is a configuration error)
        regularization : float
            L2 penalty of the weak learners (bias excluded)
        learner_max_iterations : int
            Gradient descent iteration cap of each weak learner
        learner_tol : float
            Relative step size below which a descent step counts as small
        random_state : int or numpy Generator, optional
            Random source for feature subset selection
        verbose : int
            Print one line per round when > 0
        """
        self.training_set = training_set
        self.max_learners = max_learners
        self.max_bad_learners = max_bad_learners
        self.max_error_rate = max_error_rate
        self.subset_size = subset_size
        self.use_quadratic = use_quadratic
        self.feature_selection = feature_selection
        self.normalize = normalize
        self.normalize_bounds = tuple(normalize_bounds)
        self.relative_error = relative_error
        self.use_line_search = use_line_search
        self.subset_fallback_to_all = subset_fallback_to_all
        self.regularization = regularization
        self.learner_max_iterations = learner_max_iterations
        self.learner_tol = learner_tol
        self.random_state = random_state
        self.verbose = verbose

        self._validate_params()

        self.transformer: Optional[FeatureTransformer] = None
        if normalize:
            lower, upper = self.normalize_bounds
            self.transformer = FeatureTransformer(training_set, lower=lower, upper=upper)
            self.fit_set = self.transformer.transform(training_set)
        else:
            self.fit_set = training_set

        # Initialize components
        self.strategy_manager = BoostingStrategyManager(
            strategy=strategy,
            relative_error=relative_error,
            threshold=threshold,
            boost_power=boost_power,
            min_error=min_error,
            max_error=max_error,
            target_scale=self.transformer.target_scale if self.transformer is not None else 1.0
        )
        self.strategy = self.strategy_manager.strategy

        if isinstance(random_state, np.random.Generator):
            self._rng = random_state
        else:
            self._rng = np.random.default_rng(random_state)

        # with an unchanged distribution the next learner would repeat a rejected one
        self._deterministic_selection = (
            feature_selection == "correlation" or subset_size >= training_set.n_features
        )

        # relative errors divide by the target
        if self.relative_error:
            check_nonzero_targets(training_set.targets)
        if self.strategy.relative_error:
            check_nonzero_targets(self.fit_set.targets)

        self.line_search = None
        if use_line_search:
            self.line_search = CombinationCoefficientSearch(
                self.fit_set, relative_error=self.strategy.relative_error
            )

        # Initialize storage
        self.committee: List[WeakRegressor] = []
        self.status = TrainingStatus.NOT_TRAINED
        self.round_logs: List[Dict[str, Any]] = []
        self.n_rounds_ = 0
        self.n_rejected_ = 0
        self._train_predictions: List[np.ndarray] = []

    def _validate_params(self) -> None:
        n_features = self.training_set.n_features
        if self.max_learners < 1:
            raise ValueError(f"max_learners must be >= 1, got {self.max_learners}")
        if self.max_bad_learners < 0:
            raise ValueError(f"max_bad_learners must be >= 0, got {self.max_bad_learners}")
        if not 0 < self.max_error_rate < 1:
            raise ValueError(f"max_error_rate must lie in (0, 1), got {self.max_error_rate}")
        if self.subset_size < 1:
            raise ValueError(f"subset_size must be >= 1, got {self.subset_size}")
        if self.subset_size > n_features and not self.subset_fallback_to_all:
            raise ValueError(
                f"subset_size ({self.subset_size}) exceeds the number of features ({n_features})"
            )
        if self.feature_selection not in FEATURE_SELECTIONS:
            raise ValueError(f"Unknown feature_selection: {self.feature_selection}")
        if len(self.normalize_bounds) != 2 or not self.normalize_bounds[0] < self.normalize_bounds[1]:
            raise ValueError(f"normalize_bounds must be (lower, upper) with lower < upper, got {self.normalize_bounds}")
        if self.regularization < 0:
            raise ValueError(f"regularization must be >= 0, got {self.regularization}")

    def _new_learner(self) -> WeakRegressor:
        return WeakRegressor(
            self.fit_set,
            subset_size=self.subset_size,
            feature_selection=self.feature_selection,
            use_quadratic=self.use_quadratic,
            regularization=self.regularization,
            tol=self.learner_tol,
            max_iterations=self.learner_max_iterations,
            rng=self._rng
        )

    def _initialize_distribution(self) -> None:
        self.fit_set.initialize_distribution()
        if self.fit_set is not self.training_set:
            self.training_set.initialize_distribution()

    def _update_weights(self, new_weights: np.ndarray) -> None:
        self.fit_set.update_weights(new_weights)
        if self.fit_set is not self.training_set:
            self.training_set.update_weights(new_weights)

    def train(self) -> TrainingStatus:
        """
        Run boosting rounds until termination

        Returns:
        --------
        status : TrainingStatus
            COMPLETED when ``max_learners`` were accepted, EXHAUSTED when the
            consecutive rejection cap was hit first, PERFECT_FIT when a
            learner made no errors
        """
        self.committee = []
        self.round_logs = []
        self._train_predictions = []
        self.n_rounds_ = 0
        self.n_rejected_ = 0
        self._initialize_distribution()

        targets = self.fit_set.targets
        status = TrainingStatus.COMPLETED
        n_discarded = 0

        while len(self.committee) < self.max_learners:
            if n_discarded >= self.max_bad_learners:
                status = TrainingStatus.EXHAUSTED
                break
            self.n_rounds_ += 1

            # TRAIN
            learner = self._new_learner().train()

            # EVALUATE
            predictions = learner.predict(self.fit_set.features)
            errors = self.strategy.per_sample_errors(predictions, targets)
            error_rate = self.strategy.error_rate(errors, self.fit_set.relative_weights())

            if error_rate == 0:
                beta = self.strategy.beta(PERFECT_ERROR_RATE)
                self._admit(learner, predictions, self.strategy.comb_coef(beta))
                self._log_round(learner, "perfect", error_rate, beta)
                if self.verbose > 0:
                    print(f"[{len(self.committee)}] No errors. Quit")
                status = TrainingStatus.PERFECT_FIT
                break

            # ACCEPT / REJECT
            beta = None
            accepted = error_rate < self.max_error_rate
            if accepted:
                beta = self.strategy.beta(error_rate)
                # a learner the policy would weight by <= 0 cannot enter the average
                accepted = self.strategy.comb_coef(beta) > 0

            if not accepted:
                n_discarded += 1
                self.n_rejected_ += 1
                self._log_round(learner, "rejected", error_rate, beta)
                if self.verbose > 0:
                    print(f"discard {n_discarded} failed weak learner with error rate {error_rate:.6f}")
                if self._deterministic_selection:
                    status = TrainingStatus.EXHAUSTED
                    break
                continue

            n_discarded = 0
            if self.line_search is not None:
                comb_coef = self.line_search.minimize_coef(learner)
            else:
                comb_coef = self.strategy.comb_coef(beta)
            self._admit(learner, predictions, comb_coef)

            # REWEIGHT
            self._update_weights(self.strategy.reweight(self.fit_set.weights(), errors, beta))

            record = self._log_round(learner, "accepted", error_rate, beta)
            if self.verbose > 0:
                print(f"[{len(self.committee)}] WeakLearnerError={record['weak_learner_error']:.6f} "
                      f"ErrorRate={error_rate:.6f} FinalError={record['committee_error']:.6f}")

        self.status = status
        return status

    def _admit(self, learner: WeakRegressor, predictions: np.ndarray, comb_coef: float) -> None:
        learner.set_comb_coef(comb_coef)
        self.committee.append(learner)
        self._train_predictions.append(predictions)

    def _log_round(self, learner: WeakRegressor, outcome: str, error_rate: float,
                   beta: Optional[float]) -> Dict[str, Any]:
        weights = self.fit_set.relative_weights()
        record = {
            'round': self.n_rounds_,
            'outcome': outcome,
            'n_learners': len(self.committee),
            'subset': list(learner.subset),
            'error_rate': error_rate,
            'beta': beta,
            'comb_coef': learner.comb_coef,
            'n_iterations': learner.n_iterations_,
            'converged': learner.converged_,
            'weak_learner_error': self.weak_learner_error(learner),
            'committee_error': self.committee_error() if self.committee else None,
            'weight_sum': float(weights.sum()),
            'max_relative_weight': float(weights.max()),
        }
        self.round_logs.append(record)
        return record

    def _predict_normalized(self, X: np.ndarray) -> np.ndarray:
        numerator = np.zeros(X.shape[0])
        total = 0.0
        for learner in self.committee:
            numerator += learner.comb_coef * learner.predict(X)
            total += learner.comb_coef
        if total == 0:
            return np.zeros(X.shape[0])
        return numerator / total

    def predict_many(self, X: np.ndarray) -> np.ndarray:
        """
        Committee prediction for every row of ``X`` (raw units)

        predicted y = SUM { c_t * f_t(x) } / SUM { c_t }
        """
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != self.training_set.n_features:
            raise ValueError(f"X has {X.shape[1]} features, expected {self.training_set.n_features}")
        if not self.committee:
            return np.zeros(X.shape[0])
        if self.transformer is not None:
            return self.transformer.to_real_target(self._predict_normalized(self.transformer.transform_input(X)))
        return self._predict_normalized(X)

    def predict(self, x: Sequence[float]) -> float:
        """Committee prediction for one raw input vector; 0 for an empty committee."""
        return float(self.predict_many(np.asarray(x, dtype=np.float64).reshape(1, -1))[0])

    def committee_error(self, training_set: Optional[TrainingSet] = None) -> float:
        """
        Mean relative (or absolute) error of the committee in real units

        Parameters:
        -----------
        training_set : TrainingSet, optional
            Samples to evaluate; defaults to the training samples
        """
        samples = training_set if training_set is not None else self.training_set
        predictions = self.predict_many(samples.features)
        return float(np.mean(prediction_errors(predictions, samples.targets, self.relative_error)))

    def weak_learner_error(self, learner: WeakRegressor) -> float:
        """Mean relative (or absolute) error of one learner on the training samples."""
        predictions = learner.predict(self.fit_set.features)
        if self.transformer is not None:
            predictions = self.transformer.to_real_target(predictions)
        return float(np.mean(prediction_errors(predictions, self.training_set.targets, self.relative_error)))

    def boost_results(self) -> pd.DataFrame:
        """
        Cumulative committee error per training sample after each learner

        Rows are sorted by target. Column ``after_<t>`` is the committee
        prediction minus the target using the first t accepted learners;
        ``prediction`` is the final committee prediction (real units).
        """
        targets = self.training_set.targets
        data = {'target': targets}
        numerator = np.zeros(len(targets))
        total = 0.0
        prediction = np.zeros(len(targets))
        for t, (learner, normalized) in enumerate(zip(self.committee, self._train_predictions), start=1):
            numerator += learner.comb_coef * normalized
            total += learner.comb_coef
            prediction = numerator / total if total != 0 else np.zeros(len(targets))
            if self.transformer is not None:
                prediction = self.transformer.to_real_target(prediction)
            data[f'after_{t}'] = prediction - targets
        data['prediction'] = prediction
        return pd.DataFrame(data).sort_values('target', kind="stable").reset_index(drop=True)

    def get_round_logs(self) -> List[Dict[str, Any]]:
        return [dict(log) for log in self.round_logs]

    def history_frame(self) -> pd.DataFrame:
        """Round logs as a DataFrame."""
        return pd.DataFrame(self.round_logs)

    def save_logs_to_json(self, file_path: str) -> None:
        """
        Save round logs to a JSON file
        """
        all_logs = self.get_round_logs()

        timestamp = datetime.now().isoformat()
        for log in all_logs:
            log['timestamp'] = timestamp

        with open(file_path, 'w') as f:
            json.dump(all_logs, f, ensure_ascii=False, indent=4)

        if self.verbose > 0:
            print(f"Round logs saved to {file_path}")

    def get_params(self) -> Dict[str, Any]:
        info = self.strategy_manager.get_strategy_info()
        return {
            'max_learners': self.max_learners,
            'max_bad_learners': self.max_bad_learners,
            'max_error_rate': self.max_error_rate,
            'subset_size': self.subset_size,
            'use_quadratic': self.use_quadratic,
            'feature_selection': self.feature_selection,
            'strategy': info['strategy'],
            'normalize': self.normalize,
            'relative_error': self.relative_error,
            'use_line_search': self.use_line_search,
            'regularization': self.regularization,
        }

    def print_training_summary(self) -> None:
        """
        Print training summary
        """
        print(f"\n=== Boosting Training Summary ===")
        print(f"Strategy: {self.strategy.name}")
        print(f"Status: {self.status.value}")
        print(f"Rounds: {self.n_rounds_}")
        print(f"Accepted learners: {len(self.committee)}")
        print(f"Rejected learners: {self.n_rejected_}")
        if self.committee:
            coefs = [learner.comb_coef for learner in self.committee]
            print(f"Combination coefficients: min={min(coefs):.4f} max={max(coefs):.4f}")
            print(f"Committee error: {self.committee_error():.6f}")
