"""
ブースティング戦略比較実験モジュール

このモジュールは、3種類の再重み付け戦略（exponential、threshold、linear）と
scikit-learn の AdaBoostRegressor を同じデータで比較する実験スクリプトを提供します。
"""

import numpy as np
import time
import os
import json
from typing import Dict, Optional

from sklearn.ensemble import AdaBoostRegressor
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from ..models.boosted_regressor import BoostedRegressor
from ..models.boosting_components.data_transforms import prediction_errors
from ..utils.model_interface import generate_simple_data
from ..utils.visualization import (
    create_results_directory,
    save_experiment_config,
    plot_training_history,
    plot_weight_distribution,
    plot_strategy_comparison,
    create_summary_report,
)


STRATEGY_PARAMS = {
    'exponential': {'strategy': 'exponential'},
    'threshold': {'strategy': 'threshold', 'threshold': 0.05},
    'linear': {'strategy': 'linear', 'min_error': 0.5, 'max_error': 3.0},
}


def _baseline_evaluation(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
    return {
        'mse': float(mean_squared_error(y_true, y_pred)),
        'rmse': float(np.sqrt(mean_squared_error(y_true, y_pred))),
        'mae': float(mean_absolute_error(y_true, y_pred)),
        'r2': float(r2_score(y_true, y_pred)),
        'mre': float(np.mean(prediction_errors(y_pred, y_true, relative=True))),
    }


def run_strategy_comparison(dataset_name: str,
                            X_train: np.ndarray,
                            y_train: np.ndarray,
                            X_test: np.ndarray,
                            y_test: np.ndarray,
                            max_learners: int = 20,
                            subset_size: int = 3,
                            random_state: int = 42,
                            include_baseline: bool = True,
                            output_dir: Optional[str] = None) -> Dict:
    """
    3種類の戦略と AdaBoostRegressor を比較

    Parameters:
    -----------
    dataset_name : str
        データセット名
    X_train, y_train : array-like
        訓練データ
    X_test, y_test : array-like
        テストデータ
    max_learners : int, default=20
        採用する弱学習器の数
    subset_size : int, default=3
        各弱学習器が使う特徴量数
    random_state : int, default=42
        乱数シード
    include_baseline : bool, default=True
        AdaBoostRegressor を比較に含めるか
    output_dir : str, optional
        結果の出力ディレクトリ（None の場合はタイムスタンプ付きで作成）

    Returns:
    --------
    results : dict
        比較結果
    """
    if output_dir is None:
        output_dir = create_results_directory()
    else:
        os.makedirs(os.path.join(output_dir, "figures"), exist_ok=True)
        os.makedirs(os.path.join(output_dir, "round_logs"), exist_ok=True)

    common_params = {
        'max_learners': max_learners,
        'max_bad_learners': 20,
        'subset_size': subset_size,
        'random_state': random_state
    }
    save_experiment_config({
        'dataset': dataset_name,
        'n_samples_train': int(X_train.shape[0]),
        'n_samples_test': int(X_test.shape[0]),
        'n_features': int(X_train.shape[1]),
        'common_params': common_params,
        'strategies': STRATEGY_PARAMS,
    }, output_dir)

    results = {}

    for name, params in STRATEGY_PARAMS.items():
        print(f"\nEvaluating {name} strategy on {dataset_name}...")
        model = BoostedRegressor(**common_params, **params)

        start_time = time.time()
        model.fit(X_train, y_train)
        train_time = time.time() - start_time

        start_time = time.time()
        model.predict(X_test)
        predict_time = time.time() - start_time

        eval_results = model.evaluate(X_test, y_test, metrics=['mse', 'rmse', 'mae', 'r2', 'mre'])
        controller = model.controller_

        results[name] = {
            'train_time': train_time,
            'predict_time': predict_time,
            'evaluation': eval_results,
            'status': model.status_.value,
            'n_learners': len(controller.committee),
            'n_rejected': controller.n_rejected_,
        }

        controller.save_logs_to_json(os.path.join(output_dir, "round_logs", f"{dataset_name}_{name}.json"))
        if controller.round_logs:
            plot_training_history(
                controller,
                title=f"{name} strategy on {dataset_name}",
                save_path=os.path.join(output_dir, "figures", f"{dataset_name}_{name}_history.png")
            )
        plot_weight_distribution(
            controller,
            title=f"Final weights ({name})",
            save_path=os.path.join(output_dir, "figures", f"{dataset_name}_{name}_weights.png")
        )

        print(f"  Status: {results[name]['status']} ({results[name]['n_learners']} learners)")
        print(f"  Train time: {train_time:.4f}s")
        print(f"  MSE: {eval_results['mse']:.6f}")
        print(f"  MRE: {eval_results['mre']:.6f}")
        print(f"  R2: {eval_results['r2']:.6f}")

    if include_baseline:
        print(f"\nEvaluating AdaBoostRegressor on {dataset_name}...")
        baseline = AdaBoostRegressor(n_estimators=max_learners, random_state=random_state)

        start_time = time.time()
        baseline.fit(X_train, y_train)
        train_time = time.time() - start_time

        start_time = time.time()
        y_pred = baseline.predict(X_test)
        predict_time = time.time() - start_time

        results['adaboost_r2'] = {
            'train_time': train_time,
            'predict_time': predict_time,
            'evaluation': _baseline_evaluation(y_test, y_pred),
            'status': 'sklearn',
            'n_learners': len(baseline.estimators_),
        }

    with open(os.path.join(output_dir, f"{dataset_name}_comparison.json"), 'w') as f:
        json.dump(results, f, indent=2)

    plot_strategy_comparison(
        results,
        title=f"Strategy Comparison on {dataset_name}",
        save_path=os.path.join(output_dir, "figures", f"{dataset_name}_comparison.png")
    )
    create_summary_report(results, output_dir)

    return results


def run_all_experiments(output_dir: str = "results", random_state: int = 42) -> Dict:
    """
    合成データの設定ごとに比較実験を実行

    Parameters:
    -----------
    output_dir : str, default="results"
        結果の出力ディレクトリ
    random_state : int, default=42
        乱数シード
    """
    experiments = [
        {'name': 'low_noise', 'params': {'n_samples': 500, 'n_features': 10, 'noise': 0.1}},
        {'name': 'high_noise', 'params': {'n_samples': 500, 'n_features': 10, 'noise': 1.0}},
        {'name': 'wide', 'params': {'n_samples': 500, 'n_features': 30, 'noise': 0.1}},
    ]

    all_results = {}
    for exp in experiments:
        print(f"\n\n{'='*50}")
        print(f"Running experiment: {exp['name']}")
        print(f"{'='*50}")

        X_train, y_train, X_test, y_test = generate_simple_data(random_state=random_state, **exp['params'])
        all_results[exp['name']] = run_strategy_comparison(
            dataset_name=exp['name'],
            X_train=X_train,
            y_train=y_train,
            X_test=X_test,
            y_test=y_test,
            random_state=random_state,
            output_dir=os.path.join(output_dir, exp['name'])
        )

    return all_results


if __name__ == "__main__":
    run_all_experiments(output_dir="results", random_state=42)
