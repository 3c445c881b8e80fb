"""
BoostingController のテスト
"""

import json

import numpy as np
import pandas as pd
import pytest

from regboost.models.boosting_components.boosting_core import BoostingController, TrainingStatus
from regboost.models.boosting_components.exceptions import DegenerateSampleError
from regboost.models.boosting_components.training_set import TrainingSet


def test_completes_with_max_learners(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=3, **fast_params)
    status = controller.train()

    assert status == TrainingStatus.COMPLETED
    assert controller.status == TrainingStatus.COMPLETED
    assert len(controller.committee) == 3
    assert all(learner.comb_coef is not None for learner in controller.committee)
    assert all(learner.comb_coef > 0 for learner in controller.committee)


def test_distribution_stays_normalized(noisy_set, fast_params):
    """各ラウンド後も相対重みは非負で合計1"""
    controller = BoostingController(noisy_set, max_learners=4, **fast_params)
    controller.train()

    for log in controller.round_logs:
        assert log['weight_sum'] == pytest.approx(1.0)
        assert 0.0 < log['max_relative_weight'] <= 1.0

    relative = noisy_set.relative_weights()
    assert relative.sum() == pytest.approx(1.0)
    assert np.all(relative >= 0)
    # the distribution has moved away from uniform
    assert not np.allclose(relative, 1.0 / len(noisy_set))


def test_prediction_is_weighted_average(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=3, **fast_params)
    controller.train()

    X = noisy_set.features[:10]
    coefs = np.array([learner.comb_coef for learner in controller.committee])
    outputs = np.array([learner.predict(X) for learner in controller.committee])
    expected = coefs @ outputs / coefs.sum()

    np.testing.assert_allclose(controller.predict_many(X), expected)
    assert controller.predict(X[0]) == pytest.approx(expected[0])


def test_prediction_is_repeatable(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=2, **fast_params)
    controller.train()
    first = controller.predict_many(noisy_set.features)
    second = controller.predict_many(noisy_set.features)
    np.testing.assert_array_equal(first, second)


def test_empty_committee_predicts_zero(noisy_set):
    controller = BoostingController(noisy_set, subset_size=2)
    assert controller.status == TrainingStatus.NOT_TRAINED
    assert controller.predict(noisy_set.features[0]) == 0.0
    np.testing.assert_array_equal(controller.predict_many(noisy_set.features[:3]), 0.0)

    with pytest.raises(ValueError):
        controller.predict_many(np.ones((2, 7)))


def test_perfect_fit_stops(factorial_data):
    """誤差率0の学習器が見つかった時点で終了する"""
    X, y = factorial_data
    training_set = TrainingSet.from_arrays(X, y)
    controller = BoostingController(
        training_set,
        max_learners=10,
        subset_size=3,
        use_quadratic=False,
        strategy="threshold",
        threshold=1.0,
        random_state=0,
    )
    status = controller.train()

    assert status == TrainingStatus.PERFECT_FIT
    assert len(controller.committee) == 1
    assert controller.n_rounds_ == 1
    assert controller.round_logs[-1]['outcome'] == "perfect"
    assert np.isfinite(controller.committee[0].comb_coef)
    assert controller.committee[0].comb_coef > 0


def test_zero_tolerance_for_bad_learners(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_bad_learners=0, **fast_params)
    status = controller.train()

    assert status == TrainingStatus.EXHAUSTED
    assert controller.committee == []
    assert controller.n_rounds_ == 0


def test_exhausted_after_consecutive_rejections(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_error_rate=1e-9, max_bad_learners=2, **fast_params)
    status = controller.train()

    assert status == TrainingStatus.EXHAUSTED
    assert controller.committee == []
    assert controller.n_rejected_ == 2
    assert [log['outcome'] for log in controller.round_logs] == ["rejected", "rejected"]
    assert all(log['beta'] is None for log in controller.round_logs)
    # rejected rounds do not touch the distribution
    np.testing.assert_allclose(noisy_set.relative_weights(), 1.0 / len(noisy_set))
    assert controller.predict(noisy_set.features[0]) == 0.0


@pytest.mark.parametrize("params", [
    {'max_error_rate': 0.0},
    {'max_error_rate': 1.0},
    {'max_learners': 0},
    {'max_bad_learners': -1},
    {'subset_size': 0},
    {'subset_size': 10, 'subset_fallback_to_all': False},
    {'feature_selection': "greedy"},
    {'strategy': "unknown"},
    {'normalize_bounds': (3.0, 0.0)},
    {'regularization': -0.1},
])
def test_invalid_configuration(noisy_set, params):
    with pytest.raises(ValueError):
        BoostingController(noisy_set, **params)


def test_zero_target_rejected_for_relative_errors(factorial_data):
    X, _ = factorial_data
    y = np.arange(len(X), dtype=float)
    training_set = TrainingSet.from_arrays(X, y)

    with pytest.raises(DegenerateSampleError):
        BoostingController(training_set, subset_size=2)

    # absolute errors are fine with a zero target
    BoostingController(training_set, subset_size=2, strategy="linear", relative_error=False)


def test_line_search_coefficients(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=2, use_line_search=True, **fast_params)
    controller.train()

    assert len(controller.committee) == 2
    for learner in controller.committee:
        assert 0.01 <= learner.comb_coef <= 1.0


@pytest.mark.parametrize("strategy,extra", [
    ("threshold", {'threshold': 0.02}),
    ("linear", {'min_error': 0.2, 'max_error': 2.0}),
])
def test_other_strategies_train(noisy_set, fast_params, strategy, extra):
    controller = BoostingController(noisy_set, max_learners=3, max_bad_learners=5, strategy=strategy,
                                    **extra, **fast_params)
    status = controller.train()

    assert status in (TrainingStatus.COMPLETED, TrainingStatus.PERFECT_FIT, TrainingStatus.EXHAUSTED)
    assert noisy_set.relative_weights().sum() == pytest.approx(1.0)
    if controller.committee:
        assert controller.committee_error() < 1.0


def test_normalized_training_predicts_real_units(noisy_data, fast_params):
    """正規化した場合も予測は元の単位で返る"""
    X_train, y_train, _, _ = noisy_data
    training_set = TrainingSet.from_arrays(X_train, y_train)
    controller = BoostingController(
        training_set,
        max_learners=3,
        normalize=True,
        normalize_bounds=(1.0, 4.0),
        **fast_params
    )
    controller.train()

    assert controller.transformer is not None
    assert controller.fit_set is not training_set
    assert len(controller.committee) > 0

    predictions = controller.predict_many(X_train)
    assert abs(predictions.mean() - y_train.mean()) < 0.1 * y_train.mean()
    assert controller.committee_error() < 0.2
    # raw and normalized sets share one distribution
    np.testing.assert_allclose(training_set.relative_weights(), controller.fit_set.relative_weights())


def test_normalization_to_zero_conflicts_with_relative_errors(noisy_set):
    with pytest.raises(DegenerateSampleError):
        BoostingController(noisy_set, normalize=True, normalize_bounds=(0.0, 3.0))


def test_boost_results(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=3, **fast_params)
    controller.train()
    results = controller.boost_results()

    assert isinstance(results, pd.DataFrame)
    assert len(results) == len(noisy_set)
    assert results['target'].is_monotonic_increasing
    assert {'after_1', 'after_2', 'after_3', 'prediction'} <= set(results.columns)

    order = np.argsort(noisy_set.targets, kind="stable")
    expected = controller.predict_many(noisy_set.features)[order]
    np.testing.assert_allclose(results['prediction'], expected)
    np.testing.assert_allclose(results['after_3'], expected - noisy_set.targets[order])


def test_round_logs_and_json(noisy_set, fast_params, tmp_path):
    controller = BoostingController(noisy_set, max_learners=2, **fast_params)
    controller.train()

    logs = controller.get_round_logs()
    assert len(logs) == controller.n_rounds_
    assert logs[-1]['n_learners'] == 2
    assert {'round', 'outcome', 'subset', 'error_rate', 'beta', 'comb_coef',
            'committee_error', 'weak_learner_error'} <= set(logs[0])

    history = controller.history_frame()
    assert len(history) == len(logs)

    path = tmp_path / "round_logs.json"
    controller.save_logs_to_json(str(path))
    with open(path) as f:
        saved = json.load(f)
    assert len(saved) == len(logs)
    assert 'timestamp' in saved[0]


def test_retrain_resets_state(noisy_set, fast_params):
    controller = BoostingController(noisy_set, max_learners=2, **fast_params)
    controller.train()
    controller.train()
    assert len(controller.committee) == 2
    assert controller.n_rounds_ == len(controller.round_logs)


def test_same_seed_same_committee(noisy_data, fast_params):
    X_train, y_train, _, _ = noisy_data
    subsets = []
    for _ in range(2):
        controller = BoostingController(TrainingSet.from_arrays(X_train, y_train), max_learners=3, **fast_params)
        controller.train()
        subsets.append([learner.subset for learner in controller.committee])
    assert subsets[0] == subsets[1]


def test_params_and_summary(noisy_set, fast_params, capsys):
    controller = BoostingController(noisy_set, max_learners=2, **fast_params)
    params = controller.get_params()
    assert params['strategy'] == "exponential"
    assert params['max_learners'] == 2

    controller.train()
    controller.print_training_summary()
    out = capsys.readouterr().out
    assert "Boosting Training Summary" in out
    assert "completed" in out


def _wide_target_set(seed=0):
    """y = 50 + 20*x0 + N(0, 10): absolute errors of several target units"""
    rng = np.random.default_rng(seed)
    X = rng.uniform(0.0, 3.0, size=(80, 2))
    y = 50.0 + 20.0 * X[:, 0] + rng.normal(0.0, 10.0, size=80)
    return TrainingSet.from_arrays(X, y)


def test_linear_bounds_stay_in_target_units_when_normalized():
    """正規化しても線形戦略の誤差範囲は元の単位で評価される"""
    training_set = _wide_target_set()
    controller = BoostingController(
        training_set,
        max_learners=2,
        max_bad_learners=3,
        subset_size=1,
        use_quadratic=False,
        strategy="linear",
        min_error=5.0,
        max_error=25.0,
        normalize=True,
        relative_error=False,
        learner_max_iterations=3000,
        random_state=0,
    )
    assert controller.strategy.target_scale == pytest.approx(controller.transformer.target_scale)

    status = controller.train()
    assert status != TrainingStatus.PERFECT_FIT
    # noise alone puts a sizeable share of samples past min_error
    assert controller.round_logs[0]['error_rate'] > 0.05


def test_non_positive_coefficients_are_rejected():
    """誤差率が0.5以上の学習器は上限が緩くても採用されない"""
    training_set = _wide_target_set(seed=1)
    controller = BoostingController(
        training_set,
        max_learners=6,
        max_bad_learners=5,
        max_error_rate=0.9,
        subset_size=1,
        use_quadratic=False,
        strategy="linear",
        min_error=2.0,
        max_error=12.0,
        relative_error=False,
        learner_max_iterations=3000,
        random_state=0,
    )
    controller.train()

    assert all(learner.comb_coef > 0 for learner in controller.committee)
    for log in controller.round_logs:
        if log['outcome'] == "accepted":
            assert log['error_rate'] < 0.5
        elif log['beta'] is not None:
            assert log['beta'] <= 1.0
    if controller.committee:
        assert np.all(np.isfinite(controller.predict_many(training_set.features)))


def test_deterministic_selection_stops_after_one_rejection(noisy_set, fast_params):
    """相関選択では棄却後に同じ学習器を繰り返さない"""
    params = dict(fast_params, feature_selection="correlation")
    controller = BoostingController(noisy_set, max_error_rate=1e-9, max_bad_learners=50, **params)
    status = controller.train()

    assert status == TrainingStatus.EXHAUSTED
    assert controller.n_rounds_ == 1
    assert controller.n_rejected_ == 1
    assert controller.committee == []
