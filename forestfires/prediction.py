"""
Prediction Export Module - Phase 5
===================================

Writes the test-set predictions and a short run report to disk.

Features:
    - Export predictions to CSV (log scale, observed hectares)
    - JSON report with selected hyperparameters and metrics
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, Optional, Sequence
from datetime import datetime

import numpy as np
import pandas as pd

from .schema import TARGET_COLUMN

logger = logging.getLogger(__name__)


def export_predictions(
    test: pd.DataFrame,
    predicted: Sequence[float],
    dataset: pd.DataFrame,
    output_path: str,
    include_timestamp: bool = True
) -> str:
    """
    Export test predictions to a CSV file.

    Columns:
        - actual_area_ha: observed burned area, taken from ``dataset``
        - actual_area_log / predicted_area_log: model scale
        - exp_predicted_area_log: ``exp`` of the prediction

    ``exp_predicted_area_log`` is not an exact hectare back-transform: zero
    area was mapped to ``area_log == 0``, the same value as a 1 ha fire.

    Args:
        test: Test ModelInput rows
        predicted: Predicted ``area_log`` per test row
        dataset: Original dataset the test rows were derived from
        output_path: Directory to save the file
        include_timestamp: Whether to add timestamp to filename

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    predicted = np.asarray(predicted, dtype=float)

    df = pd.DataFrame({
        'actual_area_ha': dataset.loc[test.index, 'area'].to_numpy(),
        'actual_area_log': test[TARGET_COLUMN].to_numpy(),
        'predicted_area_log': predicted,
        'exp_predicted_area_log': np.exp(predicted)
    }, index=test.index)
    df.index.name = 'row_index'

    if include_timestamp:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"test_predictions_{timestamp}.csv"
    else:
        filename = "test_predictions.csv"

    filepath = output_path / filename
    df.to_csv(filepath)

    logger.info(f"Predictions exported to {filepath}")
    return str(filepath)


def generate_prediction_report(
    predicted: Sequence[float],
    best_params: Dict[str, Any],
    metrics: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None,
    output_path: Optional[str] = None
) -> Dict[str, Any]:
    """
    Generate a summary report of the run.

    Args:
        predicted: Predicted test values
        best_params: Hyperparameters selected by cross-validation
        metrics: Evaluation metrics (optional)
        seed: Seed used for the split and the forest
        output_path: Path to save the report (optional)

    Returns:
        Report dictionary
    """
    predicted = np.asarray(predicted, dtype=float)

    report = {
        'generated_at': datetime.now().isoformat(),
        'seed': seed,
        'selected_hyperparameters': best_params,
        'metrics': metrics or {},
        'summary': {
            'n_predictions': int(len(predicted)),
            'mean_predicted_area_log': float(predicted.mean()) if len(predicted) else None,
            'max_predicted_area_log': float(predicted.max()) if len(predicted) else None
        }
    }

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, default=str)
        logger.info(f"Prediction report saved to {output_path}")

    return report


def run_prediction_export(
    test: pd.DataFrame,
    predicted: Sequence[float],
    dataset: pd.DataFrame,
    best_params: Dict[str, Any],
    metrics: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None,
    output_dir: str = "data/predictions/"
) -> Dict[str, Any]:
    """
    Export predictions and the run report.

    Returns:
        Dictionary containing file paths and the report
    """
    logger.info("=" * 60)
    logger.info("EXPORTING PREDICTIONS (Phase 5)")
    logger.info("=" * 60)

    output_dir = Path(output_dir)

    csv_path = export_predictions(test, predicted, dataset, str(output_dir))

    report_path = output_dir / "prediction_report.json"
    report = generate_prediction_report(
        predicted, best_params, metrics, seed=seed, output_path=str(report_path)
    )

    return {
        'csv_path': csv_path,
        'report_path': str(report_path),
        'report': report
    }


def print_prediction_results(result: Dict[str, Any]) -> None:
    """
    Print where the predictions were written.

    Args:
        result: Result dictionary from run_prediction_export
    """
    report = result['report']

    print("\n" + "=" * 50)
    print("PREDICTION EXPORT")
    print("=" * 50)
    print(f"Predictions: {report['summary']['n_predictions']}")
    print(f"Selected hyperparameters: {report['selected_hyperparameters']}")
    print(f"\nPredictions exported to: {result['csv_path']}")
    print(f"Full report saved to: {result['report_path']}")
    print("=" * 50 + "\n")
