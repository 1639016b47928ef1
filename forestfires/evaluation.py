"""
Model Evaluation Module - Phase 4
==================================

Test-set predictions, error metrics and evaluation plots.

Features:
    - RMSE, MAE, R² on the held-out partition
    - Predicted vs Actual plot on fixed axes
    - Residual analysis
    - Evaluation report generation
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score

from .exceptions import InputLengthMismatchError

logger = logging.getLogger(__name__)


def predict(model, test: pd.DataFrame) -> np.ndarray:
    """
    Predict ``area_log`` for every test row.

    Args:
        model: Trained model exposing ``predict(frame)``
        test: Test ModelInput rows

    Returns:
        Predictions with the same length and row order as ``test``
    """
    predictions = np.asarray(model.predict(test), dtype=float).ravel()

    if len(predictions) != len(test):
        raise InputLengthMismatchError(
            f"Model returned {len(predictions)} predictions for {len(test)} rows"
        )

    return predictions


def _check_lengths(actual: Sequence[float], predicted: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    actual = np.asarray(actual, dtype=float).ravel()
    predicted = np.asarray(predicted, dtype=float).ravel()

    if len(actual) != len(predicted):
        raise InputLengthMismatchError(
            f"actual has {len(actual)} values but predicted has {len(predicted)}"
        )
    if len(actual) == 0:
        raise ValueError("Cannot compute metrics on empty sequences")

    return actual, predicted


def rmse(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """
    Root mean squared error, ``sqrt(mean((actual - predicted)^2))``.

    Raises:
        InputLengthMismatchError: If the sequences differ in length
    """
    actual, predicted = _check_lengths(actual, predicted)
    return float(np.sqrt(mean_squared_error(actual, predicted)))


def calculate_metrics(
    actual: Sequence[float],
    predicted: Sequence[float]
) -> Dict[str, Any]:
    """
    Calculate evaluation metrics for the test predictions.

    Args:
        actual: Observed ``area_log`` values
        predicted: Predicted ``area_log`` values

    Returns:
        Dictionary of metrics
    """
    actual, predicted = _check_lengths(actual, predicted)
    errors = actual - predicted

    return {
        'rmse': rmse(actual, predicted),
        'mae': float(mean_absolute_error(actual, predicted)),
        'r2': float(r2_score(actual, predicted)) if len(actual) > 1 else float('nan'),
        'mean_error': float(np.mean(errors)),
        'std_error': float(np.std(errors)),
        'max_error': float(np.max(np.abs(errors))),
        'n_samples': int(len(actual))
    }


def plot_predicted_vs_actual(
    actual: Sequence[float],
    predicted: Sequence[float],
    axis_limits: Tuple[float, float] = (-3.0, 8.0),
    figsize: Tuple[int, int] = (7, 7),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Scatter predicted against actual ``area_log`` on fixed axes.

    Args:
        actual: Observed values
        predicted: Predicted values
        axis_limits: Shared (min, max) of both axes
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    actual, predicted = _check_lengths(actual, predicted)

    fig, ax = plt.subplots(figsize=figsize)

    ax.scatter(actual, predicted, alpha=0.6, s=25)

    low, high = axis_limits
    ax.plot([low, high], [low, high], 'r--', linewidth=2, label='Perfect')
    ax.set_xlim(low, high)
    ax.set_ylim(low, high)

    ax.set_xlabel('Actual area_log')
    ax.set_ylabel('Predicted area_log')
    ax.set_title(f'Predicted vs Actual\nRMSE={rmse(actual, predicted):.4f}',
                 fontsize=12, fontweight='bold')
    ax.legend(loc='upper left', fontsize=8)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Predicted vs Actual plot saved to {save_path}")

    return fig


def plot_residuals(
    actual: Sequence[float],
    predicted: Sequence[float],
    figsize: Tuple[int, int] = (10, 5),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Create residual distribution plot for model diagnostics.

    Args:
        actual: Observed values
        predicted: Predicted values
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    actual, predicted = _check_lengths(actual, predicted)
    residuals = actual - predicted

    fig, ax = plt.subplots(figsize=figsize)

    sns.histplot(residuals, kde=len(residuals) > 1, ax=ax, bins=30, alpha=0.7)

    ax.axvline(0, color='red', linestyle='--', linewidth=2, label='Zero')
    ax.axvline(np.mean(residuals), color='green', linestyle='--',
               linewidth=2, label=f'Mean: {np.mean(residuals):.4f}')

    ax.set_xlabel('Residual (Actual - Predicted)')
    ax.set_ylabel('Frequency')
    ax.set_title(f'Residual Analysis (Std: {np.std(residuals):.4f})',
                 fontsize=12, fontweight='bold')
    ax.legend(fontsize=8)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Residuals plot saved to {save_path}")

    return fig


def evaluate_model(
    actual: Sequence[float],
    predicted: Sequence[float],
    output_dir: str = "reports/",
    axis_limits: Tuple[float, float] = (-3.0, 8.0),
    show_plots: bool = False
) -> Dict[str, Any]:
    """
    Run complete model evaluation and generate all reports.

    Args:
        actual: Observed test values
        predicted: Predicted test values
        output_dir: Directory for output files
        axis_limits: Axis range for the predicted vs actual plot
        show_plots: Whether to display plots interactively

    Returns:
        Dictionary containing metrics and file paths
    """
    output_dir = Path(output_dir)
    figures_dir = output_dir / "figures"
    metrics_dir = output_dir / "metrics"

    figures_dir.mkdir(parents=True, exist_ok=True)
    metrics_dir.mkdir(parents=True, exist_ok=True)

    logger.info("=" * 60)
    logger.info("STARTING MODEL EVALUATION (Phase 4)")
    logger.info("=" * 60)

    logger.info("Calculating evaluation metrics...")
    metrics = calculate_metrics(actual, predicted)

    metrics_file = metrics_dir / "evaluation_metrics.json"
    with open(metrics_file, 'w', encoding='utf-8') as f:
        json.dump(metrics, f, indent=2)
    logger.info(f"Metrics saved to {metrics_file}")

    figures = []

    logger.info("Generating Predicted vs Actual plot...")
    fig = plot_predicted_vs_actual(
        actual, predicted, axis_limits=tuple(axis_limits),
        save_path=str(figures_dir / "eval_predicted_vs_actual.png")
    )
    figures.append("eval_predicted_vs_actual.png")
    if not show_plots:
        plt.close(fig)

    logger.info("Generating residual analysis...")
    fig = plot_residuals(
        actual, predicted,
        save_path=str(figures_dir / "eval_residuals.png")
    )
    figures.append("eval_residuals.png")

    if show_plots:
        plt.show()
    else:
        plt.close('all')

    result = {
        'metrics': metrics,
        'figures': figures,
        'metrics_file': str(metrics_file)
    }

    logger.info("=" * 60)
    logger.info("EVALUATION COMPLETE")
    logger.info(f"  RMSE: {metrics['rmse']:.6f}")
    logger.info(f"  MAE: {metrics['mae']:.6f}")
    logger.info("=" * 60)

    return result


def print_evaluation_report(metrics: Dict[str, Any]) -> None:
    """
    Print a formatted evaluation report to console.

    Args:
        metrics: Metrics dictionary from calculate_metrics
    """
    print("\n" + "=" * 50)
    print("MODEL EVALUATION REPORT")
    print("=" * 50)
    print(f"  • RMSE: {metrics['rmse']:.6f}")
    print(f"  • MAE: {metrics['mae']:.6f}")
    print(f"  • R²: {metrics['r2']:.6f}")
    print(f"  • Mean error: {metrics['mean_error']:.6f}")
    print(f"  • Max |error|: {metrics['max_error']:.6f}")
    print(f"  • Samples evaluated: {metrics['n_samples']}")
    print("=" * 50 + "\n")
