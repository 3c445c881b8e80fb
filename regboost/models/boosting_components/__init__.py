"""
Boosting Components Package

This package contains the building blocks of the boosted regression
ensemble: the sample store, the feature transformer, the basis expansion,
the weak regressor, the golden-section line search, the boosting
strategies and the controller that runs the rounds.
"""

from .exceptions import DegenerateSampleError
from .training_set import Sample, TrainingSet
from .data_transforms import (
    FeatureTransformer,
    estimate_correlations,
    check_nonzero_targets,
    prediction_errors,
    squared_errors
)
from .basis import basis_length, basis_vector, basis_matrix, basis_term_features
from .weak_regressor import WeakRegressor
from .line_search import golden_section_minimize, CombinationCoefficientSearch
from .boosting_strategies import (
    BoostingStrategy,
    ExponentialStrategy,
    ThresholdStrategy,
    LinearPenaltyStrategy,
    BoostingStrategyManager
)
from .boosting_core import BoostingController, TrainingStatus

__all__ = [
    'DegenerateSampleError',
    'Sample',
    'TrainingSet',
    'FeatureTransformer',
    'estimate_correlations',
    'check_nonzero_targets',
    'prediction_errors',
    'squared_errors',
    'basis_length',
    'basis_vector',
    'basis_matrix',
    'basis_term_features',
    'WeakRegressor',
    'golden_section_minimize',
    'CombinationCoefficientSearch',
    'BoostingStrategy',
    'ExponentialStrategy',
    'ThresholdStrategy',
    'LinearPenaltyStrategy',
    'BoostingStrategyManager',
    'BoostingController',
    'TrainingStatus'
]
