"""
regboost: boosted ensemble regression with basis-function weak learners
"""

from .models import BoostedRegressor, BoostingController, RegressorBase, TrainingSet, TrainingStatus, WeakRegressor

__version__ = "0.1.0"
