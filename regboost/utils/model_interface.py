"""
モデルインターフェース確認用モジュール

このモジュールは、ブースティング回帰モデルの共通インターフェースを
合成データで確認し、戦略ごとの性能を比較するユーティリティを提供します。
"""

import numpy as np
from typing import Dict, Optional, Tuple
import time
import matplotlib.pyplot as plt

from ..models.boosted_regressor import BoostedRegressor


def generate_simple_data(n_samples: int = 500, n_features: int = 10, noise: float = 0.1,
                         target_offset: float = 20.0, test_size: float = 0.2,
                         random_state: Optional[int] = None) -> Tuple:
    """
    簡単な回帰データを生成

    The target is a random linear combination of half of the features plus
    one pairwise product, shifted by ``target_offset`` so that relative errors
    stay defined.

    Parameters:
    -----------
    n_samples : int, default=500
        サンプル数
    n_features : int, default=10
        特徴量の数
    noise : float, default=0.1
        ノイズの標準偏差
    target_offset : float, default=20.0
        ターゲットのオフセット
    test_size : float, default=0.2
        テストデータの割合
    random_state : int, optional
        乱数シード

    Returns:
    --------
    X_train, y_train, X_test, y_test : np.ndarray
    """
    rng = np.random.default_rng(random_state)

    X = rng.uniform(0.0, 3.0, size=(n_samples, n_features))

    # ターゲットに寄与する特徴
    used_features = rng.choice(n_features, size=max(1, n_features // 2), replace=False)
    weights = rng.uniform(0.5, 2.0, size=len(used_features))

    y = target_offset + X[:, used_features] @ weights
    if len(used_features) >= 2:
        y += X[:, used_features[0]] * X[:, used_features[1]]
    y += rng.normal(0.0, noise, size=n_samples)

    # 訓練データとテストデータに分割
    n_test = int(n_samples * test_size)
    n_train = n_samples - n_test

    X_train, X_test = X[:n_train], X[n_train:]
    y_train, y_test = y[:n_train], y[n_train:]

    return X_train, y_train, X_test, y_test


def check_model_interface(model_class=BoostedRegressor, model_params: Dict = None,
                          n_samples: int = 500, n_features: int = 10,
                          random_state: int = 42) -> Dict:
    """
    モデルのインターフェースを確認

    Parameters:
    -----------
    model_class : class
        確認するモデルクラス
    model_params : dict, optional
        モデルのパラメータ
    n_samples : int, default=500
        サンプル数
    n_features : int, default=10
        特徴量の数
    random_state : int, default=42
        乱数シード

    Returns:
    --------
    results : dict
        学習時間、予測時間、評価結果
    """
    # デフォルトパラメータ
    if model_params is None:
        model_params = {
            'max_learners': 10,
            'subset_size': 3,
            'random_state': random_state
        }

    X_train, y_train, X_test, y_test = generate_simple_data(
        n_samples=n_samples,
        n_features=n_features,
        random_state=random_state
    )

    model = model_class(**model_params)

    # 学習時間を計測
    start_time = time.time()
    model.fit(X_train, y_train)
    train_time = time.time() - start_time

    # 予測時間を計測
    start_time = time.time()
    model.predict(X_test)
    predict_time = time.time() - start_time

    eval_results = model.evaluate(X_test, y_test, metrics=['mse', 'rmse', 'mae', 'r2', 'mre'])

    results = {
        'model_class': model_class.__name__,
        'train_time': train_time,
        'predict_time': predict_time,
        'evaluation': eval_results
    }
    if hasattr(model, 'status_'):
        results['status'] = model.status_.value
        results['n_learners'] = len(model.controller_.committee)

    return results


def compare_strategies(n_samples: int = 500, n_features: int = 10, max_learners: int = 20,
                       random_state: int = 42) -> Dict:
    """
    3つのブースティング戦略を比較

    Returns:
    --------
    results : dict
        戦略名をキーとする check_model_interface の結果
    """
    common_params = {
        'max_learners': max_learners,
        'max_bad_learners': 20,
        'subset_size': 3,
        'random_state': random_state
    }
    strategy_params = {
        'exponential': {'strategy': 'exponential'},
        'threshold': {'strategy': 'threshold', 'threshold': 0.05},
        'linear': {'strategy': 'linear', 'min_error': 0.5, 'max_error': 3.0},
    }

    results = {}
    for name, params in strategy_params.items():
        print(f"Testing {name} strategy...")
        results[name] = check_model_interface(
            BoostedRegressor,
            model_params={**common_params, **params},
            n_samples=n_samples,
            n_features=n_features,
            random_state=random_state
        )

    return results


def plot_comparison_results(results: Dict, save_path: Optional[str] = None) -> None:
    """
    比較結果をプロット

    Parameters:
    -----------
    results : dict
        compare_strategies の結果
    save_path : str, optional
        保存先のパス
    """
    names = list(results.keys())

    train_times = [results[name]['train_time'] for name in names]
    mse_values = [results[name]['evaluation']['mse'] for name in names]
    mre_values = [results[name]['evaluation']['mre'] for name in names]
    r2_values = [results[name]['evaluation']['r2'] for name in names]

    fig, axes = plt.subplots(2, 2, figsize=(12, 10))

    axes[0, 0].bar(names, train_times)
    axes[0, 0].set_title('Training Time (s)')
    axes[0, 0].set_ylabel('Time (s)')

    axes[0, 1].bar(names, mre_values)
    axes[0, 1].set_title('Mean Relative Error')
    axes[0, 1].set_ylabel('MRE')

    axes[1, 0].bar(names, mse_values)
    axes[1, 0].set_title('Mean Squared Error (MSE)')
    axes[1, 0].set_ylabel('MSE')

    axes[1, 1].bar(names, r2_values)
    axes[1, 1].set_title('R² Score')
    axes[1, 1].set_ylabel('R²')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path)

    plt.close(fig)


if __name__ == "__main__":
    results = compare_strategies(n_samples=500, n_features=10, random_state=42)
    plot_comparison_results(results, save_path="strategy_comparison.png")
