"""
実験結果の保存・可視化ユーティリティモジュール

このモジュールは、ブースティングの学習履歴と戦略比較の結果を
保存・可視化するためのユーティリティ関数を提供します。
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import os
import json
from typing import Dict, Optional
import datetime

from ..models.boosting_components.boosting_core import BoostingController


def create_results_directory(base_dir: str = "results") -> str:
    """
    実験結果を保存するディレクトリを作成

    Parameters:
    -----------
    base_dir : str, default="results"
        基本ディレクトリ名

    Returns:
    --------
    results_dir : str
        作成された結果ディレクトリのパス
    """
    # タイムスタンプを含むディレクトリ名を生成
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    results_dir = os.path.join(base_dir, f"experiment_{timestamp}")

    os.makedirs(results_dir, exist_ok=True)
    os.makedirs(os.path.join(results_dir, "strategy_comparison"), exist_ok=True)
    os.makedirs(os.path.join(results_dir, "figures"), exist_ok=True)
    os.makedirs(os.path.join(results_dir, "round_logs"), exist_ok=True)

    return results_dir


def save_experiment_config(config: Dict, results_dir: str) -> None:
    """
    実験設定をJSONファイルに保存
    """
    with open(os.path.join(results_dir, "experiment_config.json"), 'w') as f:
        json.dump(config, f, indent=2)


def plot_training_history(controller: BoostingController,
                          title: str = "Boosting Training History",
                          save_path: Optional[str] = None) -> None:
    """
    ラウンドごとの誤差率と委員会誤差をプロット

    Parameters:
    -----------
    controller : BoostingController
        学習済みコントローラ
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    history = controller.history_frame()
    if history.empty:
        raise ValueError("Controller has no round logs to plot")

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    # 採用・棄却ごとの誤差率
    sns.scatterplot(data=history, x='round', y='error_rate', hue='outcome', ax=axes[0])
    axes[0].axhline(controller.max_error_rate, color='grey', linestyle='--', label='max_error_rate')
    axes[0].set_title('Weak Learner Error Rate')
    axes[0].set_xlabel('Round')
    axes[0].set_ylabel('Error Rate')

    accepted = history[history['outcome'] != 'rejected']
    axes[1].plot(accepted['n_learners'], accepted['committee_error'].astype(float), marker='o',
                 label='committee')
    axes[1].plot(accepted['n_learners'], accepted['weak_learner_error'].astype(float), marker='.',
                 alpha=0.6, label='weak learner')
    axes[1].set_title('Training Error')
    axes[1].set_xlabel('Accepted Learners')
    axes[1].set_ylabel('Error')
    axes[1].legend()
    axes[1].grid(True, linestyle='--', alpha=0.7)

    fig.suptitle(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close(fig)


def plot_weight_distribution(controller: BoostingController,
                             title: str = "Sample Weight Distribution",
                             save_path: Optional[str] = None) -> None:
    """
    現在のサンプル相対重みをターゲット値に対してプロット
    """
    frame = controller.training_set.to_frame()

    plt.figure(figsize=(10, 6))
    sns.scatterplot(data=frame, x='target', y='relative_weight')
    plt.axhline(1.0 / len(frame), color='grey', linestyle='--')
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_strategy_comparison(results: Dict, metrics=('mse', 'mae', 'mre', 'r2'),
                             title: str = "Strategy Performance Comparison",
                             save_path: Optional[str] = None) -> pd.DataFrame:
    """
    戦略ごとの評価指標をヒートマップで表示

    Parameters:
    -----------
    results : dict
        戦略名 -> {'evaluation': {metric: value}}

    Returns:
    --------
    df : pd.DataFrame
        プロットに使用した表
    """
    data = {name: [results[name]['evaluation'].get(metric, np.nan) for metric in metrics]
            for name in results}
    df = pd.DataFrame(data, index=list(metrics)).T

    plt.figure(figsize=(10, 6))
    sns.heatmap(df, annot=True, fmt=".4f", cmap="YlGnBu")
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()
    return df


def create_summary_report(results: Dict, results_dir: str) -> str:
    """
    戦略比較結果の要約レポート（Markdown）を作成

    Returns:
    --------
    report_path : str
    """
    report = []
    report.append("# Boosting Strategy Comparison")
    report.append(f"実行日時: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

    report.append("| Strategy | MSE | MAE | MRE | R² | Learners | Status | 訓練時間(秒) |")
    report.append("| --- | --- | --- | --- | --- | --- | --- | --- |")
    for name, result in results.items():
        evaluation = result['evaluation']
        report.append(
            f"| {name} | {evaluation.get('mse', np.nan):.6f} | {evaluation.get('mae', np.nan):.6f} | "
            f"{evaluation.get('mre', np.nan):.6f} | {evaluation.get('r2', np.nan):.6f} | "
            f"{result.get('n_learners', '-')} | {result.get('status', '-')} | {result['train_time']:.4f} |"
        )

    report_path = os.path.join(results_dir, "summary_report.md")
    with open(report_path, 'w') as f:
        f.write('\n'.join(report))
    return report_path
