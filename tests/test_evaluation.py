"""
Test Suite for Evaluation Module
=================================

Tests for rmse, metrics and the evaluation report.
"""

import json

import pytest
import numpy as np
import pandas as pd

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from forestfires.evaluation import (
    predict,
    rmse,
    calculate_metrics,
    plot_predicted_vs_actual,
    evaluate_model,
)
from forestfires.exceptions import InputLengthMismatchError


class ConstantModel:
    """Predicts the same value for every row."""

    def __init__(self, value, n_out=None):
        self.value = value
        self.n_out = n_out

    def predict(self, frame):
        n = self.n_out if self.n_out is not None else len(frame)
        return np.full(n, self.value)


class TestRmse:
    """Tests for rmse."""

    def test_perfect_prediction(self):
        """Test identical sequences give zero."""
        assert rmse([1, 2, 3], [1, 2, 3]) == 0

    def test_single_value(self):
        """Test a single error of 3 gives 3."""
        assert rmse([0], [3]) == 3

    def test_mean_based(self):
        """Test errors are averaged, not summed."""
        assert rmse([0, 0, 0, 0], [2, 2, 2, 2]) == pytest.approx(2.0)

    def test_length_mismatch(self):
        """Test mismatched inputs raise InputLengthMismatchError."""
        with pytest.raises(InputLengthMismatchError):
            rmse([1, 2, 3], [1, 2])

    def test_empty(self):
        """Test empty inputs are rejected."""
        with pytest.raises(ValueError):
            rmse([], [])


class TestPredict:
    """Tests for predict."""

    def test_one_value_per_row(self):
        """Test predictions follow the test rows."""
        test = pd.DataFrame({'a': range(4)}, index=[10, 3, 7, 1])
        predictions = predict(ConstantModel(0.5), test)

        assert predictions.shape == (4,)
        assert (predictions == 0.5).all()

    def test_wrong_length_from_model(self):
        """Test a model returning the wrong count is caught."""
        test = pd.DataFrame({'a': range(4)})

        with pytest.raises(InputLengthMismatchError):
            predict(ConstantModel(0.5, n_out=3), test)


class TestMetrics:
    """Tests for calculate_metrics and the evaluation report."""

    @pytest.fixture
    def values(self):
        """Actual and predicted values."""
        rng = np.random.default_rng(42)
        actual = rng.normal(1.0, 1.5, 120)
        return actual, actual + rng.normal(0, 0.5, 120)

    def test_metric_keys(self, values):
        """Test metric dictionary contents."""
        metrics = calculate_metrics(*values)

        for key in ['rmse', 'mae', 'r2', 'mean_error', 'std_error', 'max_error', 'n_samples']:
            assert key in metrics
        assert metrics['n_samples'] == 120
        assert metrics['rmse'] >= metrics['mae']

    def test_plot_fixed_axes(self, values, tmp_path):
        """Test the predicted vs actual plot uses the given axis range."""
        path = tmp_path / "pva.png"
        fig = plot_predicted_vs_actual(*values, axis_limits=(-3, 8), save_path=str(path))

        assert fig.axes[0].get_xlim() == (-3, 8)
        assert fig.axes[0].get_ylim() == (-3, 8)
        assert path.exists()

    def test_evaluate_model_outputs(self, values, tmp_path):
        """Test metrics file and figures are written."""
        result = evaluate_model(*values, output_dir=str(tmp_path))

        with open(result['metrics_file'], encoding='utf-8') as f:
            saved = json.load(f)

        assert saved['rmse'] == pytest.approx(result['metrics']['rmse'])
        for name in result['figures']:
            assert (tmp_path / "figures" / name).exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
