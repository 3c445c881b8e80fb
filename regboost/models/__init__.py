from .base import RegressorBase
from .boosted_regressor import BoostedRegressor
from .boosting_components import BoostingController, TrainingSet, TrainingStatus, WeakRegressor

__all__ = ['RegressorBase', 'BoostedRegressor', 'BoostingController', 'TrainingSet', 'TrainingStatus', 'WeakRegressor']
