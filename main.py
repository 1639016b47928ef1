#!/usr/bin/env python3
"""
Forest Fires Analysis - Main Pipeline
=====================================

Orchestrates the analysis of burned area in the forest fires dataset.

Phases:
    1. EDA - Distributions, correlations, frequency and spatial charts
    2. Preprocessing - Category order, log target, stratified split
    3. Training - OLS baseline and cross-validated random forest
    4. Evaluation - Test-set RMSE and predicted vs actual plot
    5. Export - Test predictions and run report

Usage:
    # Run complete pipeline
    python main.py

    # Run on another file or a single phase
    python main.py --data data/raw/forestfires.csv --phase eda
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from forestfires.data_loader import load_config, load_data, validate_data, print_data_summary
from forestfires.eda import generate_eda_report, print_correlation_insights
from forestfires.preprocessing import preprocess_pipeline, print_preprocessing_summary
from forestfires.model import (
    ForestAreaModel,
    BaselineLinearModel,
    fit_baseline_linear,
    train_model,
    print_model_summary,
    print_linear_summary,
)
from forestfires.evaluation import predict, evaluate_model, print_evaluation_report
from forestfires.prediction import run_prediction_export, print_prediction_results
from forestfires.schema import TARGET_COLUMN


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure logging for the pipeline."""
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = Path(log_dir) / f'pipeline_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def _seed(config: Dict[str, Any], section: str, seed: Optional[int]) -> int:
    if seed is not None:
        return seed
    return config.get(section, {}).get('seed', 123)


def load_dataset(data_path: str, config: Dict[str, Any]) -> pd.DataFrame:
    """Load the input file and check value ranges."""
    print("\n📊 Loading data...")
    df = load_data(data_path)
    print_data_summary(df)

    strict = config.get('data', {}).get('strict_ranges', True)
    is_valid, report = validate_data(df, strict=strict)
    if not is_valid:
        print(f"⚠️  Data quality issues: {report['issues']}")

    return df


def run_eda(df: pd.DataFrame, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Execute Phase 1: Exploratory Data Analysis.

    Args:
        df: Dataset with reordered categoricals
        config: Configuration dictionary

    Returns:
        EDA report dictionary
    """
    print("\n" + "=" * 70)
    print("PHASE 1: EXPLORATORY DATA ANALYSIS")
    print("=" * 70)

    output_dir = config.get('output', {}).get('figures_path', 'reports/figures/')

    report = generate_eda_report(df, output_dir=output_dir, show_plots=False)

    corr_df = pd.DataFrame(report["correlation_matrix"])
    print_correlation_insights(corr_df)

    print(f"\n✓ EDA complete. {len(report['figures'])} figures saved to {output_dir}")

    return report


def run_preprocessing(
    df: pd.DataFrame,
    config: Dict[str, Any],
    seed: Optional[int] = None
) -> Dict[str, Any]:
    """
    Execute Phase 2: Data Preprocessing.

    Args:
        df: Raw dataset
        config: Configuration dictionary
        seed: Overrides the configured split seed

    Returns:
        Preprocessing result dictionary
    """
    print("\n" + "=" * 70)
    print("PHASE 2: DATA PREPROCESSING")
    print("=" * 70)

    prep_config = config.get('preprocessing', {})

    result = preprocess_pipeline(
        df,
        train_fraction=prep_config.get('train_fraction', 0.75),
        seed=_seed(config, 'preprocessing', seed),
        n_groups=prep_config.get('stratify_groups', 5)
    )

    print_preprocessing_summary(result)

    return result


def run_linear(prep_result: Dict[str, Any]) -> BaselineLinearModel:
    """
    Execute Phase 3a: baseline OLS on the full model input.

    Args:
        prep_result: Preprocessing result dictionary

    Returns:
        Fitted linear model
    """
    print("\n" + "=" * 70)
    print("PHASE 3a: BASELINE LINEAR MODEL")
    print("=" * 70)

    linear = fit_baseline_linear(prep_result['model_input'])
    print_linear_summary(linear)

    return linear


def run_training(
    prep_result: Dict[str, Any],
    config: Dict[str, Any],
    seed: Optional[int] = None
) -> ForestAreaModel:
    """
    Execute Phase 3b: cross-validated random forest on the training rows.

    Args:
        prep_result: Preprocessing result dictionary
        config: Configuration dictionary
        seed: Overrides the configured model seed

    Returns:
        Trained model
    """
    print("\n" + "=" * 70)
    print("PHASE 3b: RANDOM FOREST TRAINING")
    print("=" * 70)

    model_path = config.get('model', {}).get('model_path')

    model = train_model(
        prep_result['split'].train,
        config,
        save_path=model_path,
        seed=_seed(config, 'model', seed)
    )

    print_model_summary(model)

    return model


def run_evaluation(
    model: ForestAreaModel,
    prep_result: Dict[str, Any],
    config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Execute Phase 4: Model Evaluation.

    Args:
        model: Trained model
        prep_result: Preprocessing result dictionary
        config: Configuration dictionary

    Returns:
        Evaluation result dictionary with the test predictions
    """
    print("\n" + "=" * 70)
    print("PHASE 4: MODEL EVALUATION")
    print("=" * 70)

    test = prep_result['split'].test
    predicted = predict(model, test)

    output_dir = config.get('output', {}).get('reports_path', 'reports/')
    axis_limits = config.get('evaluation', {}).get('axis_limits', [-3, 8])

    result = evaluate_model(
        test[TARGET_COLUMN].to_numpy(),
        predicted,
        output_dir=output_dir,
        axis_limits=tuple(axis_limits),
        show_plots=False
    )
    result['predicted'] = predicted

    print_evaluation_report(result['metrics'])

    return result


def run_export(
    model: ForestAreaModel,
    prep_result: Dict[str, Any],
    eval_result: Dict[str, Any],
    config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Execute Phase 5: export test predictions and the run report.
    """
    print("\n" + "=" * 70)
    print("PHASE 5: PREDICTION EXPORT")
    print("=" * 70)

    output_dir = config.get('data', {}).get('predictions_path', 'data/predictions/')

    result = run_prediction_export(
        prep_result['split'].test,
        eval_result['predicted'],
        prep_result['dataset'],
        model.best_params_,
        metrics=eval_result['metrics'],
        seed=prep_result['seed'],
        output_dir=output_dir
    )

    print_prediction_results(result)

    return result


def run_full_pipeline(
    data_path: str,
    config_path: str = "config/config.yaml",
    config: Optional[Dict[str, Any]] = None,
    seed: Optional[int] = None
) -> Dict[str, Any]:
    """
    Execute the complete pipeline.

    Args:
        data_path: Path to input CSV file
        config_path: Path to configuration file
        config: Configuration dictionary (skips loading config_path)
        seed: Seed for both the split and the forest (overrides config)

    Returns:
        Dictionary containing all phase results
    """
    if config is None:
        config = load_config(config_path)
    log_config = config.get('logging', {})
    setup_logging(log_config.get('level', 'INFO'), log_config.get('log_dir'))

    print("\n" + "=" * 70)
    print("FOREST FIRES ANALYSIS PIPELINE")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    df = load_dataset(data_path, config)

    results = {
        'config': config,
        'data_shape': df.shape
    }

    results['preprocessing'] = run_preprocessing(df, config, seed)
    results['eda'] = run_eda(results['preprocessing']['dataset'], config)
    results['linear'] = run_linear(results['preprocessing'])
    results['model'] = run_training(results['preprocessing'], config, seed)
    results['evaluation'] = run_evaluation(results['model'], results['preprocessing'], config)
    results['export'] = run_export(
        results['model'], results['preprocessing'], results['evaluation'], config
    )
    results['rmse'] = results['evaluation']['metrics']['rmse']

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"  • Input data: {df.shape[0]} rows × {df.shape[1]} columns")
    print(f"  • Linear model R²: {results['linear'].r_squared:.4f}")
    print(f"  • Forest hyperparameters: {results['model'].best_params_}")
    print(f"  • Test RMSE (area_log): {results['rmse']:.4f}")
    print(f"  • Output: {results['export']['csv_path']}")
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70 + "\n")

    return results


def run_single_phase(
    phase: str,
    data_path: str,
    config_path: str = "config/config.yaml"
) -> Dict[str, Any]:
    """
    Execute a single phase of the pipeline.

    Args:
        phase: Phase to run ('eda', 'preprocess', 'linear', 'train', 'evaluate')
        data_path: Path to input CSV file
        config_path: Path to configuration file

    Returns:
        Phase result dictionary
    """
    config = load_config(config_path)
    log_config = config.get('logging', {})
    setup_logging(log_config.get('level', 'INFO'), log_config.get('log_dir'))

    df = load_dataset(data_path, config)
    prep_result = run_preprocessing(df, config)

    if phase == 'eda':
        return run_eda(prep_result['dataset'], config)

    elif phase == 'preprocess':
        return prep_result

    elif phase == 'linear':
        return {'linear': run_linear(prep_result), 'preprocessing': prep_result}

    elif phase == 'train':
        return {'model': run_training(prep_result, config), 'preprocessing': prep_result}

    elif phase == 'evaluate':
        model = run_training(prep_result, config)
        return run_evaluation(model, prep_result, config)

    else:
        raise ValueError(
            f"Unknown phase: {phase}. Choose from: eda, preprocess, linear, train, evaluate"
        )


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Forest fires burned area analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --phase eda
  python main.py --data data/raw/forestfires.csv --config config/custom.yaml
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        default=None,
        help='Path to the input CSV file (default: data.raw_path from config)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--phase', '-p',
        type=str,
        choices=['eda', 'preprocess', 'linear', 'train', 'evaluate', 'all'],
        default='all',
        help='Phase to run (default: all)'
    )

    args = parser.parse_args()

    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        return 1

    data_path = args.data or load_config(args.config).get('data', {}).get(
        'raw_path', 'data/raw/forestfires.csv'
    )

    if not Path(data_path).exists():
        print(f"Error: Data file not found: {data_path}")
        print("\nPlace the forest fires CSV file in the specified location.")
        print("Expected header: X,Y,month,day,FFMC,DMC,DC,ISI,temp,RH,wind,rain,area")
        return 1

    try:
        if args.phase == 'all':
            run_full_pipeline(data_path, args.config)
        else:
            run_single_phase(args.phase, data_path, args.config)

        return 0

    except Exception as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
