"""
Shared fixtures for the test suite.
"""

import matplotlib
matplotlib.use("Agg")

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from forestfires.schema import FILE_COLUMNS

DATA_DIR = Path(__file__).parent / "data"


# Records per level in the 517-row UCI forest fires file
MONTH_COUNTS = {
    'jan': 2, 'feb': 20, 'mar': 54, 'apr': 9, 'may': 2, 'jun': 17,
    'jul': 32, 'aug': 184, 'sep': 172, 'oct': 15, 'nov': 1, 'dec': 9
}
DAY_COUNTS = {'mon': 74, 'tue': 64, 'wed': 54, 'thu': 61, 'fri': 85, 'sat': 84, 'sun': 95}


def _shuffled_labels(counts: dict, n_rows: int, rng: np.random.Generator) -> np.ndarray:
    """Labels with the given frequencies, scaled to n_rows and shuffled."""
    labels = np.repeat(list(counts), list(counts.values()))
    if n_rows != len(labels):
        labels = rng.choice(labels, n_rows)
    return rng.permutation(labels)


def make_synthetic_fires(n_rows: int = 517, seed: int = 7) -> pd.DataFrame:
    """Random records shaped like the forest fires file (header names, ranges, level counts, skewed area)."""
    rng = np.random.default_rng(seed)

    dmc = np.round(rng.gamma(2.5, 45, n_rows).clip(1.1, 291.3), 1)
    temp = np.round(rng.normal(18.9, 5.8, n_rows).clip(2.2, 33.3), 1)
    burned = rng.random(n_rows) > 0.48

    df = pd.DataFrame({
        'X': rng.integers(1, 10, n_rows),
        'Y': rng.integers(2, 10, n_rows),
        'month': _shuffled_labels(MONTH_COUNTS, n_rows, rng),
        'day': _shuffled_labels(DAY_COUNTS, n_rows, rng),
        'FFMC': np.round(rng.uniform(80, 96.2, n_rows), 1),
        'DMC': dmc,
        'DC': np.round((dmc * 3.5 + rng.normal(0, 80, n_rows)).clip(7.9, 860.6), 1),
        'ISI': np.round(rng.gamma(3, 3, n_rows).clip(0, 56.1), 1),
        'temp': temp,
        'RH': np.round((90 - 2 * temp + rng.normal(0, 10, n_rows)).clip(15, 100)).astype(int),
        'wind': np.round(rng.uniform(0.4, 9.4, n_rows), 1),
        'rain': np.where(rng.random(n_rows) < 0.02, 0.2, 0.0),
        'area': np.where(burned, np.round(rng.lognormal(1.5, 1.5, n_rows), 2), 0.0)
    })

    return df[FILE_COLUMNS]


@pytest.fixture
def sample_csv():
    """Small hand-written fixture file (14 rows)."""
    return DATA_DIR / "forestfires_sample.csv"


@pytest.fixture(scope="session")
def synthetic_csv(tmp_path_factory):
    """517-row synthetic dataset written to a CSV file."""
    path = tmp_path_factory.mktemp("data") / "forestfires.csv"
    make_synthetic_fires().to_csv(path, index=False)
    return path


@pytest.fixture
def fast_config(tmp_path):
    """Configuration with a reduced forest search and temporary outputs."""
    return {
        'data': {
            'predictions_path': str(tmp_path / "predictions"),
            'strict_ranges': True
        },
        'preprocessing': {'train_fraction': 0.75, 'stratify_groups': 5, 'seed': 123},
        'model': {
            'folds': 3,
            'repeats': 1,
            'n_estimators': 20,
            'max_features_grid': [2, 13, 25],
            'n_jobs': 1,
            'seed': 123,
            'model_path': str(tmp_path / "models" / "forest.joblib")
        },
        'evaluation': {'axis_limits': [-3, 8]},
        'output': {
            'figures_path': str(tmp_path / "reports" / "figures"),
            'reports_path': str(tmp_path / "reports")
        },
        'logging': {'level': 'WARNING'}
    }
