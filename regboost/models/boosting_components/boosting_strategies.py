"""
Boosting Strategies

This module contains the error / reweighting policies of the boosting
controller and the manager that selects one of them by name. The policies
share the acceptance gate and termination rules of the controller; they
differ only in the per-sample error, the error rate and the weight update.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Any, Dict

from .data_transforms import prediction_errors, squared_errors


class BoostingStrategy(ABC):
    """
    誤差計算と重み更新の戦略（抽象基底クラス）

    Attributes:
    -----------
    name : str
        戦略名
    relative_error : bool
        相対誤差 |f-y|/|y| を使うかどうか（ゼロターゲットの検証、
        および結合係数の直線探索で使う誤差の種類に影響する）
    """

    name = "base"
    relative_error = True

    @abstractmethod
    def per_sample_errors(self, predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
        """Per-sample error signal of a weak regressor."""

    def error_rate(self, errors: np.ndarray, relative_weights: np.ndarray) -> float:
        """Aggregate error rate under the current distribution."""
        return float(np.dot(relative_weights, errors))

    @abstractmethod
    def beta(self, error_rate: float) -> float:
        pass

    @abstractmethod
    def comb_coef(self, beta: float) -> float:
        pass

    @abstractmethod
    def reweight_factors(self, errors: np.ndarray, beta: float) -> np.ndarray:
        """Multiplicative weight update for every sample."""

    def reweight(self, weights: np.ndarray, errors: np.ndarray, beta: float) -> np.ndarray:
        return weights * self.reweight_factors(errors, beta)

    def get_info(self) -> Dict[str, Any]:
        return {"strategy": self.name, "relative_error": self.relative_error}


class ExponentialStrategy(BoostingStrategy):
    """
    AdaBoost.R 型の戦略

    Errors are relative absolute errors (or squared errors) clipped to [0, 1];
    beta = (1 - e) / e, coefficient ln(beta), weights scale by
    beta^(error_i - 0.5).
    """

    name = "exponential"

    def __init__(self, relative_error: bool = True):
        self.relative_error = relative_error

    def per_sample_errors(self, predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
        if self.relative_error:
            errors = prediction_errors(predictions, targets, relative=True)
        else:
            errors = squared_errors(predictions, targets)
        return np.clip(errors, 0.0, 1.0)

    def beta(self, error_rate: float) -> float:
        return (1.0 - error_rate) / error_rate

    def comb_coef(self, beta: float) -> float:
        return float(np.log(beta))

    def reweight_factors(self, errors: np.ndarray, beta: float) -> np.ndarray:
        return np.power(beta, errors - 0.5)


class ThresholdStrategy(BoostingStrategy):
    """
    AdaBoost.RT 型の戦略（Shrestha & Solomatine）

    A sample is wrong when its relative error exceeds ``threshold``. The error
    rate is the relative weight of the wrong samples, beta = e^boost_power,
    the coefficient is ln(1/beta), and only correct samples are scaled by
    beta.
    """

    name = "threshold"
    relative_error = True

    def __init__(self, threshold: float = 0.2, boost_power: float = 2.0):
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        if boost_power <= 0:
            raise ValueError(f"boost_power must be positive, got {boost_power}")
        self.threshold = threshold
        self.boost_power = boost_power

    def per_sample_errors(self, predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
        return prediction_errors(predictions, targets, relative=True)

    def error_rate(self, errors: np.ndarray, relative_weights: np.ndarray) -> float:
        return float(np.sum(relative_weights[errors > self.threshold]))

    def beta(self, error_rate: float) -> float:
        return error_rate ** self.boost_power

    def comb_coef(self, beta: float) -> float:
        return float(np.log(1.0 / beta))

    def reweight_factors(self, errors: np.ndarray, beta: float) -> np.ndarray:
        return np.where(errors <= self.threshold, beta, 1.0)

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info.update({"threshold": self.threshold, "boost_power": self.boost_power})
        return info


class LinearPenaltyStrategy(BoostingStrategy):
    """
    線形ペナルティ戦略

    The absolute error |f - y| is mapped to a ramp: 0 up to ``min_error``,
    1 from ``max_error``, linear in between. The bounds are in real target
    units; ``target_scale`` converts errors measured on normalized targets
    back to those units.
    Error rate, beta and the weight update follow the exponential strategy.
    """

    name = "linear"
    relative_error = False

    def __init__(self, min_error: float = 5.0, max_error: float = 25.0, target_scale: float = 1.0):
        if min_error < 0:
            raise ValueError(f"min_error must be >= 0, got {min_error}")
        if not min_error < max_error:
            raise ValueError(f"min_error ({min_error}) must be less than max_error ({max_error})")
        self.min_error = min_error
        self.max_error = max_error
        # real units per unit of the targets the errors are measured on
        self.target_scale = target_scale if target_scale > 0 else 1.0

    def per_sample_errors(self, predictions: np.ndarray, targets: np.ndarray) -> np.ndarray:
        errors = prediction_errors(predictions, targets, relative=False) * self.target_scale
        return np.clip((errors - self.min_error) / (self.max_error - self.min_error), 0.0, 1.0)

    def beta(self, error_rate: float) -> float:
        return (1.0 - error_rate) / error_rate

    def comb_coef(self, beta: float) -> float:
        return float(np.log(beta))

    def reweight_factors(self, errors: np.ndarray, beta: float) -> np.ndarray:
        return np.power(beta, errors - 0.5)

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info.update({"min_error": self.min_error, "max_error": self.max_error})
        return info


class BoostingStrategyManager:
    """
    ブースティング戦略を管理するクラス

    Attributes:
    -----------
    strategy_name : str
        使用する戦略名
    strategy : BoostingStrategy
        生成された戦略オブジェクト
    """

    def __init__(self, strategy: str = "exponential", relative_error: bool = True,
                 threshold: float = 0.2, boost_power: float = 2.0,
                 min_error: float = 5.0, max_error: float = 25.0, target_scale: float = 1.0):
        self.strategy_name = strategy
        self.relative_error = relative_error
        self.threshold = threshold
        self.boost_power = boost_power
        self.min_error = min_error
        self.max_error = max_error
        self.target_scale = target_scale

        # 利用可能な戦略
        self.available_strategies = {
            "exponential": self._create_exponential,
            "threshold": self._create_threshold,
            "linear": self._create_linear,
        }

        if strategy not in self.available_strategies:
            raise ValueError(f"Unknown strategy: {strategy}")
        self.strategy = self.available_strategies[strategy]()

    def _create_exponential(self) -> BoostingStrategy:
        return ExponentialStrategy(relative_error=self.relative_error)

    def _create_threshold(self) -> BoostingStrategy:
        return ThresholdStrategy(threshold=self.threshold, boost_power=self.boost_power)

    def _create_linear(self) -> BoostingStrategy:
        return LinearPenaltyStrategy(min_error=self.min_error, max_error=self.max_error,
                                     target_scale=self.target_scale)

    def get_strategy_info(self) -> Dict[str, Any]:
        """
        現在の戦略情報を取得
        """
        info = self.strategy.get_info()
        info["available_strategies"] = list(self.available_strategies.keys())
        return info
