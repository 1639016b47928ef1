"""
Test Suite for EDA Module
==========================

The views are visual; these tests check the tables behind them and that
every figure gets written.
"""

import pytest
import numpy as np
import matplotlib.pyplot as plt

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from forestfires.data_loader import load_data
from forestfires.preprocessing import reorder_categoricals
from forestfires.eda import (
    standardize,
    plot_correlation_matrix,
    plot_fires_by_day,
    plot_fires_by_month,
    plot_spatial_occurrence,
    compute_spatial_means,
    generate_eda_report,
)
from forestfires.schema import DAYS, MONTHS, NUMERIC_COLUMNS


@pytest.fixture(scope="module")
def dataset(synthetic_csv):
    """Synthetic dataset with reordered categoricals."""
    return reorder_categoricals(load_data(synthetic_csv))


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


class TestTables:
    """Tests for the computed tables."""

    def test_correlation_matrix(self, dataset):
        """Test correlation matrix covers numeric columns and is finite."""
        _, corr = plot_correlation_matrix(dataset)

        assert list(corr.columns) == NUMERIC_COLUMNS
        assert np.isfinite(corr.to_numpy()).all()
        np.testing.assert_allclose(np.diag(corr), 1.0)

    def test_standardize(self, dataset):
        """Test standardized columns have zero mean and unit variance."""
        z = standardize(dataset[NUMERIC_COLUMNS])

        np.testing.assert_allclose(z.mean(), 0.0, atol=1e-9)
        np.testing.assert_allclose(z.std(ddof=0), 1.0)

    def test_fires_by_day(self, dataset):
        """Test day counts are Monday first and sum to the row count."""
        _, counts = plot_fires_by_day(dataset)

        assert list(counts.index) == DAYS
        assert counts.sum() == len(dataset)

    def test_fires_by_month(self, dataset):
        """Test month table is in calendar order with temperature range."""
        _, table = plot_fires_by_month(dataset)

        assert list(table.index) == MONTHS
        assert table['count'].sum() == len(dataset)
        assert (table['temp_min'] <= table['temp_max']).all()

    def test_spatial_occurrence(self, dataset):
        """Test count grid covers the full park grid."""
        _, counts = plot_spatial_occurrence(dataset)

        assert counts.shape == (8, 9)
        assert counts.to_numpy().sum() == len(dataset)

    def test_spatial_means_finite(self, dataset):
        """Test standardized cell means are finite."""
        means = compute_spatial_means(dataset)

        assert np.isfinite(means.to_numpy()).all()
        assert 'area' in means.columns
        assert means.index.names == ['x_coord', 'y_coord']

    def test_spatial_means_constant_column(self, sample_csv):
        """Test a constant column standardizes to zero rather than NaN."""
        df = reorder_categoricals(load_data(sample_csv))
        df['wind'] = 2.0

        means = compute_spatial_means(df)

        assert (means['wind'] == 0).all()


class TestReport:
    """Tests for generate_eda_report."""

    def test_all_figures_written(self, dataset, tmp_path):
        """Test every view is saved and reported."""
        report = generate_eda_report(dataset, output_dir=str(tmp_path))

        assert len(report['figures']) == 9
        for name in report['figures']:
            assert (tmp_path / name).exists()
        assert sum(report['fires_by_day'].values()) == len(dataset)
        assert list(report['fires_by_month']) == MONTHS

    def test_small_fixture(self, sample_csv, tmp_path):
        """Test the report also runs on the 14-row fixture."""
        df = reorder_categoricals(load_data(sample_csv))

        report = generate_eda_report(df, output_dir=str(tmp_path))

        assert report['data_shape'] == (14, 13)
        assert plt.get_fignums() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
