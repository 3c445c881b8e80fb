"""
回帰モデル基底クラスモジュール

このモジュールは、ブースティング回帰モデルの抽象基底クラスを提供します。
"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Dict, List, Tuple, Optional, Any
from sklearn.utils.validation import check_X_y, check_array

from .boosting_components.data_transforms import prediction_errors


class RegressorBase(ABC):
    """
    回帰モデルの抽象基底クラス

    すべての実装は fit / predict を実装する必要があります。

    Attributes:
    -----------
    n_features_ : int or None
        学習時の特徴量数
    """

    def __init__(self, random_state: Optional[int] = None, **kwargs):
        """
        初期化メソッド

        Parameters:
        -----------
        random_state : int, optional
            乱数シード
        **kwargs : dict
            追加のパラメータ
        """
        self.random_state = random_state
        self.n_features_ = None

        # 追加のパラメータを設定
        for key, value in kwargs.items():
            setattr(self, key, value)

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray, **kwargs) -> 'RegressorBase':
        """
        モデルを学習

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
            入力特徴量
        y : array-like, shape=(n_samples,)
            ターゲット値
        """
        pass

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        学習済みモデルで予測

        Returns:
        --------
        y_pred : array-like, shape=(n_samples,)
        """
        pass

    def _validate_input(self, X: np.ndarray, y: Optional[np.ndarray] = None) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """
        入力データの検証と前処理

        Parameters:
        -----------
        X : array-like
            入力特徴量
        y : array-like, optional
            ターゲット値

        Returns:
        --------
        X : np.ndarray
        y : np.ndarray or None
        """
        if y is not None:
            X, y = check_X_y(X, y, dtype=np.float64, y_numeric=True)
        else:
            X = check_array(X, dtype=np.float64)

        if self.n_features_ is not None and X.shape[1] != self.n_features_:
            raise ValueError(f"X has {X.shape[1]} features, but model was fitted with {self.n_features_} features")

        return X, y

    def evaluate(self, X: np.ndarray, y: np.ndarray, metrics: List[str] = ['mse']) -> Dict[str, float]:
        """
        モデルの評価

        Parameters:
        -----------
        X : array-like, shape=(n_samples, n_features)
        y : array-like, shape=(n_samples,)
        metrics : list of str, default=['mse']
            'mse', 'rmse', 'mae', 'r2', 'mre'（平均相対誤差）

        Returns:
        --------
        results : dict
            各評価指標の値
        """
        X, y = self._validate_input(X, y)
        y_pred = self.predict(X)

        results = {}
        for metric in metrics:
            if metric.lower() == 'mse':
                results['mse'] = float(np.mean((y - y_pred) ** 2))

            elif metric.lower() == 'rmse':
                results['rmse'] = float(np.sqrt(np.mean((y - y_pred) ** 2)))

            elif metric.lower() == 'mae':
                results['mae'] = float(np.mean(np.abs(y - y_pred)))

            elif metric.lower() == 'r2':
                ss_tot = np.sum((y - np.mean(y)) ** 2)
                ss_res = np.sum((y - y_pred) ** 2)
                results['r2'] = float(1 - ss_res / ss_tot) if ss_tot > 0 else 0.0

            elif metric.lower() == 'mre':
                results['mre'] = float(np.mean(prediction_errors(y_pred, y, relative=True)))

            else:
                raise ValueError(f"Unknown metric: {metric}")

        return results

    def get_params(self) -> Dict[str, Any]:
        return {'random_state': self.random_state}

    def set_params(self, **params) -> 'RegressorBase':
        """
        モデルパラメータの設定
        """
        for key, value in params.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Invalid parameter: {key}")
        return self
