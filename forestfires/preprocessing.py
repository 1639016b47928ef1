"""
Data Preprocessing Module - Phase 2
====================================

Turns the loaded dataset into model input and splits it for training.

Functions:
    - reorder_categoricals: Put month/day levels in calendar order
    - derive_model_input: Log-transform the target, drop collinear columns
    - encode_categoricals: Explicit one-hot encoding of month and day
    - build_design_matrix: Numeric predictor matrix and target vector
    - split: Stratified, seeded train/test partition
"""

import logging
from typing import Dict, Any, List, NamedTuple, Optional, Tuple

import pandas as pd
import numpy as np
from sklearn.model_selection import train_test_split

from .exceptions import DataFormatError, NumericDomainError
from .schema import (
    CATEGORICAL_LEVELS,
    DROPPED_COLUMNS,
    PREDICTOR_COLUMNS,
    TARGET_COLUMN,
)

logger = logging.getLogger(__name__)


class DataSplit(NamedTuple):
    """Train/test partition of the model input."""

    train: pd.DataFrame
    test: pd.DataFrame

    @property
    def train_index(self) -> pd.Index:
        return self.train.index

    @property
    def test_index(self) -> pd.Index:
        return self.test.index

    @property
    def train_fraction(self) -> float:
        return len(self.train) / (len(self.train) + len(self.test))


def reorder_categoricals(df: pd.DataFrame) -> pd.DataFrame:
    """
    Assign domain order to the categorical columns.

    ``month`` becomes an ordered categorical in calendar order and ``day``
    in Monday-first order. Levels not present in the data are kept so plots
    and encodings always see the full label set.

    Args:
        df: Dataset returned by load_data

    Returns:
        Copy of the dataset with reordered categoricals
    """
    df = df.copy()

    for col, levels in CATEGORICAL_LEVELS.items():
        if col not in df.columns:
            continue
        reordered = pd.Categorical(df[col].astype(str), categories=levels, ordered=True)
        if pd.isna(reordered).any():
            raise DataFormatError(f"Column '{col}' has labels outside {levels}")
        df[col] = reordered

    return df


def log_area(area) -> np.ndarray:
    """
    Log-transform burned area, mapping zero area to zero.

    Args:
        area: Burned area in hectares (array-like, >= 0)

    Returns:
        ``0`` where area is zero, ``ln(area)`` elsewhere
    """
    area = np.asarray(area, dtype=float)

    if (area < 0).any():
        raise NumericDomainError(f"Burned area must be >= 0, found minimum {area.min()}")

    return np.log(np.where(area == 0, 1.0, area))


def derive_model_input(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build the model input table.

    Drops ``relative_humidity`` and ``dmc`` (collinear with ``temp`` and
    ``dc``) and replaces ``area`` by ``area_log``.

    Args:
        df: Dataset (ideally after reorder_categoricals)

    Returns:
        ModelInput DataFrame
    """
    required = DROPPED_COLUMNS + ['area']
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise DataFormatError(f"Dataset is missing columns: {missing}")

    model_input = df.drop(columns=required)
    model_input[TARGET_COLUMN] = log_area(df['area'])

    logger.info(
        f"Derived model input: {model_input.shape[1]} columns, "
        f"dropped {DROPPED_COLUMNS}, target '{TARGET_COLUMN}'"
    )
    return model_input


def encode_categoricals(
    df: pd.DataFrame,
    drop_first: bool = True,
    levels: Optional[Dict[str, List[str]]] = None
) -> pd.DataFrame:
    """
    One-hot encode the categorical columns over their label sets.

    Args:
        df: Frame holding some or all of the categorical columns
        drop_first: Drop the first level of each categorical as reference
        levels: Label set per column (default: the full CATEGORICAL_LEVELS)

    Returns:
        Frame with indicator columns (``month_feb`` ...) in place of categoricals
    """
    if levels is None:
        levels = CATEGORICAL_LEVELS

    frame = df.copy()
    columns = [col for col in CATEGORICAL_LEVELS if col in frame.columns]

    for col in columns:
        frame[col] = pd.Categorical(frame[col].astype(str), categories=levels[col])

    return pd.get_dummies(frame, columns=columns, drop_first=drop_first, dtype=float)


def present_levels(df: pd.DataFrame) -> Dict[str, List[str]]:
    """Levels of each categorical that occur in ``df``, in calendar order."""
    present = {}
    for col, labels in CATEGORICAL_LEVELS.items():
        if col in df.columns:
            seen = set(df[col].astype(str))
            present[col] = [label for label in labels if label in seen]
    return present


def build_design_matrix(
    model_input: pd.DataFrame,
    predictors: Optional[List[str]] = None,
    drop_unused_levels: bool = False
) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
    """
    Select the enumerated predictors and encode them.

    With ``drop_unused_levels`` only the levels present in ``model_input`` are
    encoded, so the reference is the first present level and no indicator
    column is constant.

    Args:
        model_input: ModelInput frame
        predictors: Predictor columns (default: PREDICTOR_COLUMNS)
        drop_unused_levels: Encode present levels only instead of full label sets

    Returns:
        Tuple of (X, y); y is None when the frame has no target column
    """
    if predictors is None:
        predictors = PREDICTOR_COLUMNS

    missing = [col for col in predictors if col not in model_input.columns]
    if missing:
        raise ValueError(f"Model input is missing predictor columns: {missing}")

    frame = model_input[predictors]
    levels = present_levels(frame) if drop_unused_levels else None

    X = encode_categoricals(frame, levels=levels).astype(float)
    y = model_input[TARGET_COLUMN].astype(float) if TARGET_COLUMN in model_input.columns else None

    return X, y


def stratify_groups(y: pd.Series, n_groups: int = 5) -> Optional[np.ndarray]:
    """
    Quantile groups of a continuous target for stratified splitting.

    Ties are broken by row order so every group has roughly the same size,
    even when most targets are zero.

    Returns:
        Group label per row, or None if the data is too small to stratify
    """
    n_groups = min(n_groups, len(y) // 10)
    if n_groups < 2:
        return None

    ranks = pd.Series(y).rank(method='first')
    return pd.qcut(ranks, q=n_groups, labels=False).to_numpy()


def split(
    model_input: pd.DataFrame,
    train_fraction: float = 0.75,
    seed: int = 123,
    n_groups: int = 5
) -> DataSplit:
    """
    Split model input into train and test partitions.

    Stratified by quantile groups of ``area_log`` and deterministic for a
    given seed.

    Args:
        model_input: ModelInput frame
        train_fraction: Fraction of rows assigned to training
        seed: Random seed for the partition
        n_groups: Number of target quantile groups to stratify on

    Returns:
        DataSplit with train and test frames
    """
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    if not model_input.index.is_unique:
        raise ValueError("Model input index must be unique")

    groups = stratify_groups(model_input[TARGET_COLUMN], n_groups)

    train_idx, test_idx = train_test_split(
        model_input.index.to_numpy(),
        train_size=train_fraction,
        random_state=seed,
        stratify=groups
    )

    data_split = DataSplit(
        train=model_input.loc[np.sort(train_idx)].copy(),
        test=model_input.loc[np.sort(test_idx)].copy()
    )

    logger.info(
        f"Train/Test split: {len(data_split.train)} train rows, "
        f"{len(data_split.test)} test rows (seed={seed})"
    )

    return data_split


def preprocess_pipeline(
    df: pd.DataFrame,
    train_fraction: float = 0.75,
    seed: int = 123,
    n_groups: int = 5
) -> Dict[str, Any]:
    """
    Complete preprocessing pipeline.

    Args:
        df: Dataset returned by load_data
        train_fraction: Train/test split ratio
        seed: Random seed for the split
        n_groups: Target quantile groups for stratification

    Returns:
        Dictionary containing:
            - dataset: Dataset with reordered categoricals
            - model_input: ModelInput frame
            - split: DataSplit
            - feature_names: Encoded predictor column names
    """
    logger.info("=" * 60)
    logger.info("STARTING DATA PREPROCESSING (Phase 2)")
    logger.info("=" * 60)

    dataset = reorder_categoricals(df)
    model_input = derive_model_input(dataset)
    data_split = split(model_input, train_fraction=train_fraction, seed=seed, n_groups=n_groups)
    X, _ = build_design_matrix(model_input)

    result = {
        'dataset': dataset,
        'model_input': model_input,
        'split': data_split,
        'feature_names': X.columns.tolist(),
        'seed': seed
    }

    logger.info("=" * 60)
    logger.info("PREPROCESSING COMPLETE")
    logger.info(f"  Training rows: {len(data_split.train)}")
    logger.info(f"  Test rows: {len(data_split.test)}")
    logger.info(f"  Encoded predictors: {X.shape[1]}")
    logger.info("=" * 60)

    return result


def print_preprocessing_summary(result: Dict[str, Any]) -> None:
    """
    Print a summary of the preprocessing results.

    Args:
        result: Dictionary from preprocess_pipeline
    """
    data_split = result['split']
    target = result['model_input'][TARGET_COLUMN]

    print("\n" + "=" * 50)
    print("PREPROCESSING SUMMARY")
    print("=" * 50)
    print(f"Month order: {list(result['dataset']['month'].cat.categories)}")
    print(f"Day order: {list(result['dataset']['day'].cat.categories)}")
    print(f"Dropped columns: {DROPPED_COLUMNS}")
    print(f"Target: {TARGET_COLUMN} (mean {target.mean():.4f}, "
          f"{(target == 0).mean() * 100:.1f}% zero)")
    print(f"\nTraining rows: {len(data_split.train)}")
    print(f"Test rows: {len(data_split.test)}")
    print(f"Train fraction: {data_split.train_fraction:.4f}")
    print(f"Encoded predictors: {len(result['feature_names'])}")
    print("=" * 50 + "\n")
