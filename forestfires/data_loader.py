"""
Data Loader Module
==================

Handles CSV ingestion, schema checks and value range validation for the
forest fires dataset.

Functions:
    - load_config: Load YAML configuration file
    - load_data: Load the CSV file into a typed DataFrame
    - validate_data: Check values against their documented ranges
    - get_data_summary: Generate basic statistics
"""

import logging
from pathlib import Path
from typing import Dict, Any, Tuple

import pandas as pd
import numpy as np
import yaml

from .exceptions import DataFormatError, NumericDomainError
from .schema import (
    FILE_COLUMNS,
    COLUMN_MAP,
    NUMERIC_COLUMNS,
    INTEGER_COLUMNS,
    CATEGORICAL_LEVELS,
    VALID_RANGES,
)

logger = logging.getLogger(__name__)


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def load_data(file_path: str) -> pd.DataFrame:
    """
    Load the forest fires CSV file and check it against the fixed schema.

    The file must have exactly the 13 header columns
    ``X, Y, month, day, FFMC, DMC, DC, ISI, temp, RH, wind, rain, area``
    in that order. Columns are renamed to their internal names, numeric
    columns are typed, and ``month``/``day`` become categoricals.

    Args:
        file_path: Path to the CSV file

    Returns:
        DataFrame containing the loaded data

    Raises:
        FileNotFoundError: If data file doesn't exist
        DataFormatError: If the file doesn't match the expected schema
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    try:
        df = pd.read_csv(file_path, encoding='utf-8', skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DataFormatError(f"Could not parse {file_path}: {e}") from e

    logger.info(f"Loaded data from {file_path}: {df.shape[0]} rows × {df.shape[1]} columns")

    if df.shape[1] != len(FILE_COLUMNS):
        raise DataFormatError(
            f"Expected {len(FILE_COLUMNS)} columns, but found {df.shape[1]}. "
            f"Columns: {list(df.columns)}"
        )

    header = [str(col).strip() for col in df.columns]
    if header != FILE_COLUMNS:
        mismatched = [
            f"{found!r} (expected {expected!r})"
            for found, expected in zip(header, FILE_COLUMNS)
            if found != expected
        ]
        raise DataFormatError(f"Unexpected header names: {', '.join(mismatched)}")

    df.columns = header
    df = df.rename(columns=COLUMN_MAP)

    missing = df.isnull().sum()
    if missing.any():
        raise DataFormatError(
            f"Missing values in columns: {missing[missing > 0].to_dict()}"
        )

    for col in NUMERIC_COLUMNS:
        converted = pd.to_numeric(df[col], errors='coerce')
        bad_rows = df.index[converted.isna()].tolist()
        if bad_rows:
            raise DataFormatError(
                f"Column '{col}' has non-numeric values at rows {bad_rows[:5]}"
            )
        df[col] = converted.astype(float)

    for col in INTEGER_COLUMNS:
        if not np.all(np.mod(df[col], 1) == 0):
            raise DataFormatError(f"Column '{col}' must hold integer grid coordinates")
        df[col] = df[col].astype(int)

    for col, levels in CATEGORICAL_LEVELS.items():
        values = df[col].astype(str).str.strip()
        unknown = sorted(set(values) - set(levels))
        if unknown:
            raise DataFormatError(
                f"Column '{col}' has unknown labels {unknown}; expected one of {levels}"
            )
        df[col] = values.astype('category')

    return df


def validate_data(df: pd.DataFrame, strict: bool = True) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate value ranges and basic data quality.

    Checks:
        - Missing values in any column
        - Every numeric column lies within its documented valid range
        - Duplicate rows (reported only)

    Out-of-range values are reported, never clamped.

    Args:
        df: DataFrame returned by load_data
        strict: If True, raise DataFormatError on missing values and
            NumericDomainError on any range violation

    Returns:
        Tuple of (is_valid, validation_report)
    """
    report = {
        "total_rows": len(df),
        "total_columns": len(df.columns),
        "column_names": list(df.columns),
        "missing_values": {},
        "range_violations": {},
        "issues": []
    }

    missing = df.isnull().sum()
    for col, count in missing[missing > 0].items():
        report["missing_values"][col] = int(count)
        issue = f"Column '{col}' has {int(count)} missing values"
        report["issues"].append(issue)
        logger.warning(issue)

    for col, (low, high) in VALID_RANGES.items():
        if col not in df.columns:
            continue
        below = int((df[col] < low).sum()) if low is not None else 0
        above = int((df[col] > high).sum()) if high is not None else 0
        if below or above:
            report["range_violations"][col] = {
                "below": below,
                "above": above,
                "valid_range": [low, high],
                "observed_min": float(df[col].min()),
                "observed_max": float(df[col].max())
            }
            issue = (
                f"Column '{col}' has {below + above} values outside "
                f"[{low}, {high}] (observed {df[col].min()}..{df[col].max()})"
            )
            report["issues"].append(issue)
            logger.warning(issue)

    duplicates = int(df.duplicated().sum())
    report["duplicate_rows"] = duplicates
    if duplicates > 0:
        logger.warning(f"Duplicate rows found: {duplicates}")

    is_valid = not report["range_violations"] and not report["missing_values"]
    report["is_valid"] = is_valid

    if strict and report["missing_values"]:
        raise DataFormatError(f"Data validation failed: {report['issues']}")
    if strict and report["range_violations"]:
        raise NumericDomainError(f"Data validation failed: {report['issues']}")

    return is_valid, report


def get_data_summary(df: pd.DataFrame) -> Dict[str, Any]:
    """
    Generate summary statistics for the dataset.

    Args:
        df: DataFrame to summarize

    Returns:
        Dictionary containing summary statistics
    """
    summary = {
        "shape": df.shape,
        "columns": list(df.columns),
        "dtypes": df.dtypes.astype(str).to_dict(),
        "statistics": {},
        "levels": {}
    }

    for col in df.select_dtypes(include=[np.number]).columns:
        summary["statistics"][col] = {
            "count": int(df[col].count()),
            "mean": float(df[col].mean()),
            "std": float(df[col].std()),
            "min": float(df[col].min()),
            "25%": float(df[col].quantile(0.25)),
            "50%": float(df[col].quantile(0.50)),
            "75%": float(df[col].quantile(0.75)),
            "max": float(df[col].max()),
            "skew": float(df[col].skew()),
            "kurtosis": float(df[col].kurtosis())
        }

    for col in df.select_dtypes(include=['category']).columns:
        summary["levels"][col] = {
            str(level): int(count)
            for level, count in df[col].value_counts(sort=False).items()
        }

    return summary


def print_data_summary(df: pd.DataFrame) -> None:
    """
    Print a formatted summary of the dataset to console.

    Args:
        df: DataFrame to summarize
    """
    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Shape: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"Memory Usage: {df.memory_usage(deep=True).sum() / 1024:.2f} KB")
    print("\nColumn Information:")
    print("-" * 40)

    for col in df.columns:
        print(f"  {col}: {df[col].dtype}")

    print("\nBasic Statistics:")
    print("-" * 40)
    print(df.describe().round(4).to_string())

    zero_area = int((df['area'] == 0).sum()) if 'area' in df.columns else 0
    if zero_area:
        print(f"\nRecords with zero burned area: {zero_area} ({zero_area / len(df) * 100:.1f}%)")
    print("=" * 60 + "\n")
