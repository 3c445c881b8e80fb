"""
ブースティング戦略のテスト
"""

import numpy as np
import pytest

from regboost.models.boosting_components.boosting_strategies import (
    ExponentialStrategy,
    ThresholdStrategy,
    LinearPenaltyStrategy,
    BoostingStrategyManager,
)


class TestExponentialStrategy:

    def test_errors_are_clipped(self):
        strategy = ExponentialStrategy()
        errors = strategy.per_sample_errors(np.array([11.0, 30.0]), np.array([10.0, 10.0]))
        np.testing.assert_allclose(errors, [0.1, 1.0])

    def test_squared_errors(self):
        strategy = ExponentialStrategy(relative_error=False)
        errors = strategy.per_sample_errors(np.array([0.5, 3.0]), np.array([0.0, 0.0]))
        np.testing.assert_allclose(errors, [0.25, 1.0])

    def test_beta_and_coefficient(self):
        strategy = ExponentialStrategy()
        beta = strategy.beta(0.2)
        assert beta == pytest.approx(4.0)
        assert strategy.comb_coef(beta) == pytest.approx(np.log(4.0))

    def test_reweight(self):
        """beta^(error - 0.5): 誤差の大きいサンプルの重みが増える"""
        strategy = ExponentialStrategy()
        factors = strategy.reweight_factors(np.array([0.0, 0.5, 1.0]), 4.0)
        np.testing.assert_allclose(factors, [0.5, 1.0, 2.0])

        weights = strategy.reweight(np.array([0.2, 0.3, 0.5]), np.array([0.0, 0.5, 1.0]), 4.0)
        np.testing.assert_allclose(weights, [0.1, 0.3, 1.0])

    def test_error_rate(self):
        strategy = ExponentialStrategy()
        rate = strategy.error_rate(np.array([0.1, 0.3]), np.array([0.5, 0.5]))
        assert rate == pytest.approx(0.2)


class TestThresholdStrategy:

    def test_error_rate_counts_wrong_samples(self):
        strategy = ThresholdStrategy(threshold=0.2, boost_power=2.0)
        errors = np.array([0.1, 0.3, 0.05])
        rate = strategy.error_rate(errors, np.array([0.5, 0.25, 0.25]))
        assert rate == pytest.approx(0.25)

    def test_beta_and_coefficient(self):
        strategy = ThresholdStrategy(threshold=0.2, boost_power=2.0)
        beta = strategy.beta(0.25)
        assert beta == pytest.approx(0.0625)
        assert strategy.comb_coef(beta) == pytest.approx(np.log(16.0))

    def test_only_correct_samples_shrink(self):
        strategy = ThresholdStrategy(threshold=0.2)
        factors = strategy.reweight_factors(np.array([0.1, 0.3, 0.2]), 0.0625)
        np.testing.assert_allclose(factors, [0.0625, 1.0, 0.0625])

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            ThresholdStrategy(threshold=0.0)
        with pytest.raises(ValueError):
            ThresholdStrategy(boost_power=-1.0)


class TestLinearPenaltyStrategy:

    def test_ramp(self):
        strategy = LinearPenaltyStrategy(min_error=5.0, max_error=25.0)
        predictions = np.array([100.0, 115.0, 130.0, 103.0])
        targets = np.full(4, 100.0)
        np.testing.assert_allclose(strategy.per_sample_errors(predictions, targets), [0.0, 0.5, 1.0, 0.0])

    def test_zero_targets_allowed(self):
        strategy = LinearPenaltyStrategy(min_error=0.0, max_error=2.0)
        errors = strategy.per_sample_errors(np.array([1.0]), np.array([0.0]))
        np.testing.assert_allclose(errors, [0.5])
        assert not strategy.relative_error

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            LinearPenaltyStrategy(min_error=10.0, max_error=5.0)
        with pytest.raises(ValueError):
            LinearPenaltyStrategy(min_error=-1.0, max_error=5.0)


class TestBoostingStrategyManager:

    @pytest.mark.parametrize("name,cls", [
        ("exponential", ExponentialStrategy),
        ("threshold", ThresholdStrategy),
        ("linear", LinearPenaltyStrategy),
    ])
    def test_creates_strategy(self, name, cls):
        manager = BoostingStrategyManager(strategy=name)
        assert isinstance(manager.strategy, cls)
        assert manager.strategy.name == name

    def test_passes_parameters(self):
        manager = BoostingStrategyManager(strategy="threshold", threshold=0.1, boost_power=3.0)
        info = manager.get_strategy_info()
        assert info['strategy'] == "threshold"
        assert info['threshold'] == 0.1
        assert info['boost_power'] == 3.0
        assert set(info['available_strategies']) == {"exponential", "threshold", "linear"}

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown strategy"):
            BoostingStrategyManager(strategy="adaboost")


def test_linear_errors_rescaled_to_target_units():
    """正規化されたターゲット上の誤差を元の単位に戻してからランプを適用する"""
    strategy = LinearPenaltyStrategy(min_error=5.0, max_error=25.0, target_scale=10.0)
    errors = strategy.per_sample_errors(np.array([0.0, 1.5, 3.0]), np.zeros(3))
    np.testing.assert_allclose(errors, [0.0, 0.5, 1.0])

    manager = BoostingStrategyManager(strategy="linear", target_scale=10.0)
    assert manager.strategy.target_scale == 10.0
