"""
Pytest configuration and shared fixtures.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from regboost.models.boosting_components.training_set import TrainingSet
from regboost.utils.model_interface import generate_simple_data


@pytest.fixture
def factorial_data():
    """
    y = 10 + 2*x0 + x1 - x2 on a full 2^3 design plus two centre points.

    The design columns are orthogonal under uniform weights, so gradient
    descent on the linear basis is well conditioned.
    """
    design = np.array([
        [-1, -1, -1],
        [-1, -1, 1],
        [-1, 1, -1],
        [-1, 1, 1],
        [1, -1, -1],
        [1, -1, 1],
        [1, 1, -1],
        [1, 1, 1],
        [0, 0, 0],
        [0, 0, 0],
    ], dtype=float)
    y = 10.0 + 2.0 * design[:, 0] + design[:, 1] - design[:, 2]
    return design, y


@pytest.fixture
def factorial_set(factorial_data):
    X, y = factorial_data
    training_set = TrainingSet.from_arrays(X, y)
    training_set.initialize_distribution()
    return training_set


@pytest.fixture
def noisy_data():
    """Small positive-target regression problem with noise."""
    return generate_simple_data(n_samples=120, n_features=4, noise=0.5, test_size=0.25, random_state=0)


@pytest.fixture
def noisy_set(noisy_data):
    X_train, y_train, _, _ = noisy_data
    return TrainingSet.from_arrays(X_train, y_train)


@pytest.fixture
def fast_params():
    """Controller settings that keep each round cheap."""
    return {
        'subset_size': 2,
        'use_quadratic': False,
        'learner_max_iterations': 3000,
        'random_state': 7,
    }
