"""
Test Suite for Preprocessing Module
=====================================

Tests for category ordering, the log target, encoding and the split.
"""

import math

import pytest
import numpy as np
import pandas as pd

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from forestfires.data_loader import load_data
from forestfires.exceptions import NumericDomainError
from forestfires.preprocessing import (
    reorder_categoricals,
    derive_model_input,
    encode_categoricals,
    build_design_matrix,
    log_area,
    split,
    stratify_groups,
    preprocess_pipeline,
)
from forestfires.schema import MONTHS, DAYS, TARGET_COLUMN


@pytest.fixture
def dataset(sample_csv):
    """Fixture dataset with reordered categoricals."""
    return reorder_categoricals(load_data(sample_csv))


@pytest.fixture
def synthetic_input(synthetic_csv):
    """ModelInput derived from the 517-row synthetic file."""
    return derive_model_input(reorder_categoricals(load_data(synthetic_csv)))


class TestReorderCategoricals:
    """Tests for reorder_categoricals."""

    def test_month_order(self, dataset):
        """Test months are in calendar order."""
        assert list(dataset['month'].cat.categories) == [
            'jan', 'feb', 'mar', 'apr', 'may', 'jun',
            'jul', 'aug', 'sep', 'oct', 'nov', 'dec'
        ]
        assert dataset['month'].cat.ordered

    def test_day_order(self, dataset):
        """Test days are Monday first."""
        assert list(dataset['day'].cat.categories) == [
            'mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun'
        ]

    def test_values_unchanged(self, sample_csv):
        """Test reordering keeps every value and leaves the input alone."""
        raw = load_data(sample_csv)
        reordered = reorder_categoricals(raw)

        assert list(reordered['month'].astype(str)) == list(raw['month'].astype(str))
        assert list(raw['month'].cat.categories) != MONTHS

    def test_ordered_comparison(self, dataset):
        """Test ordering follows the calendar, not the alphabet."""
        assert (dataset['month'] < 'apr').sum() == 3  # the three 'mar' rows


class TestDeriveModelInput:
    """Tests for derive_model_input and log_area."""

    def test_dropped_columns(self, dataset):
        """Test collinear columns and raw area are removed."""
        model_input = derive_model_input(dataset)

        assert 'relative_humidity' not in model_input.columns
        assert 'dmc' not in model_input.columns
        assert 'area' not in model_input.columns
        assert TARGET_COLUMN in model_input.columns

    def test_zero_area_maps_to_zero(self, dataset):
        """Test zero area gives exactly zero, not -inf or NaN."""
        model_input = derive_model_input(dataset)
        zero_rows = dataset['area'] == 0

        assert zero_rows.sum() == 10
        assert (model_input.loc[zero_rows, TARGET_COLUMN] == 0).all()
        assert np.isfinite(model_input[TARGET_COLUMN]).all()

    def test_area_e_maps_to_one(self):
        """Test ln(e) is 1."""
        assert log_area([math.e])[0] == pytest.approx(1.0, abs=1e-6)

    def test_positive_area(self, dataset):
        """Test positive area is log transformed."""
        model_input = derive_model_input(dataset)

        assert model_input.loc[13, TARGET_COLUMN] == pytest.approx(math.log(28.66))
        assert model_input.loc[10, TARGET_COLUMN] < 0  # area 0.36 ha

    def test_negative_area_rejected(self):
        """Test negative area raises NumericDomainError."""
        with pytest.raises(NumericDomainError):
            log_area([1.0, -0.5])


class TestEncodeCategoricals:
    """Tests for the explicit one-hot encoding."""

    def test_full_levels_with_reference_dropped(self, dataset):
        """Test every non-reference level gets a column, even if absent."""
        encoded = encode_categoricals(dataset[['month', 'day']])

        assert list(encoded.columns) == (
            [f"month_{m}" for m in MONTHS[1:]] + [f"day_{d}" for d in DAYS[1:]]
        )
        assert encoded['month_dec'].sum() == 0
        assert encoded.dtypes.eq(float).all()

    def test_indicator_values(self, dataset):
        """Test indicators match the row labels."""
        encoded = encode_categoricals(dataset[['month', 'day']])

        assert encoded.loc[0, 'month_mar'] == 1.0
        assert encoded.loc[0, 'day_fri'] == 1.0
        assert encoded.loc[6, 'day_tue'] == 0.0  # a Monday row, all day indicators off

    def test_design_matrix(self, dataset):
        """Test design matrix has 25 predictors and the target."""
        X, y = build_design_matrix(derive_model_input(dataset))

        assert X.shape == (14, 25)
        assert y.name == TARGET_COLUMN
        assert 'month' not in X.columns

    def test_design_matrix_present_levels_only(self, dataset):
        """Test absent levels get no column and the first present level is the reference."""
        X, _ = build_design_matrix(derive_model_input(dataset), drop_unused_levels=True)

        month_columns = [col for col in X.columns if col.startswith('month_')]
        assert month_columns == ['month_jul', 'month_aug', 'month_sep', 'month_oct']
        assert 'day_mon' not in X.columns
        assert (X[month_columns + [c for c in X.columns if c.startswith('day_')]].sum() > 0).all()

    def test_design_matrix_missing_predictor(self, dataset):
        """Test missing predictor column is reported."""
        model_input = derive_model_input(dataset).drop(columns=['wind'])

        with pytest.raises(ValueError, match="wind"):
            build_design_matrix(model_input)


class TestSplit:
    """Tests for the stratified train/test split."""

    def test_deterministic(self, synthetic_input):
        """Test the same seed gives the same row assignment."""
        first = split(synthetic_input, seed=123)
        second = split(synthetic_input, seed=123)

        assert list(first.train_index) == list(second.train_index)
        assert list(first.test_index) == list(second.test_index)

    def test_seed_changes_assignment(self, synthetic_input):
        """Test a different seed gives a different partition."""
        first = split(synthetic_input, seed=123)
        second = split(synthetic_input, seed=321)

        assert list(first.test_index) != list(second.test_index)

    def test_proportion(self, synthetic_input):
        """Test training share is within 0.02 of 0.75."""
        data_split = split(synthetic_input, train_fraction=0.75, seed=123)
        n_train, n_test = len(data_split.train), len(data_split.test)

        assert abs(n_train / (n_train + n_test) - 0.75) <= 0.02
        assert n_train + n_test == len(synthetic_input)

    def test_proportion_200_rows(self, synthetic_input):
        """Test proportion on a 200-row subset."""
        data_split = split(synthetic_input.iloc[:200], seed=1)

        assert abs(data_split.train_fraction - 0.75) <= 0.02

    def test_partition_is_disjoint(self, synthetic_input):
        """Test no row lands in both partitions."""
        data_split = split(synthetic_input, seed=123)

        assert set(data_split.train_index).isdisjoint(data_split.test_index)

    def test_target_represented_in_both(self, synthetic_input):
        """Test zero and burned records appear in train and test."""
        data_split = split(synthetic_input, seed=123)

        for part in (data_split.train, data_split.test):
            zero_share = (part[TARGET_COLUMN] == 0).mean()
            assert 0.3 < zero_share < 0.7

    def test_invalid_fraction(self, synthetic_input):
        """Test train_fraction outside (0, 1) is rejected."""
        with pytest.raises(ValueError, match="train_fraction"):
            split(synthetic_input, train_fraction=1.0)

    def test_small_data_not_stratified(self):
        """Test tiny targets fall back to an unstratified split."""
        assert stratify_groups(pd.Series([0.0, 1.0, 2.0])) is None

    def test_group_sizes_balanced(self, synthetic_input):
        """Test quantile groups are of similar size despite ties at zero."""
        groups = stratify_groups(synthetic_input[TARGET_COLUMN], n_groups=5)
        sizes = np.bincount(groups)

        assert len(sizes) == 5
        assert sizes.max() - sizes.min() <= 1


class TestPreprocessPipeline:
    """Tests for the preprocess_pipeline function."""

    def test_pipeline_returns_expected_keys(self, synthetic_csv):
        """Test that pipeline returns all expected keys."""
        result = preprocess_pipeline(load_data(synthetic_csv), seed=123)

        for key in ['dataset', 'model_input', 'split', 'feature_names', 'seed']:
            assert key in result, f"Missing key: {key}"

    def test_pipeline_shapes(self, synthetic_csv):
        """Test that pipeline outputs have correct shapes."""
        result = preprocess_pipeline(load_data(synthetic_csv), train_fraction=0.75, seed=123)

        assert len(result['split'].train) == 387
        assert len(result['split'].test) == 130
        assert len(result['feature_names']) == 25


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
