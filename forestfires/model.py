"""
Model Training Module - Phase 3
================================

Baseline linear model and cross-validated random forest for ``area_log``.

Features:
    - Ordinary least squares with coefficient table (statsmodels)
    - Random forest tuned by repeated k-fold cross-validation
    - Explicit seed threaded into every source of randomness
    - Model persistence (save/load)
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime

import numpy as np
import pandas as pd
import joblib
import statsmodels.api as sm
from sklearn.ensemble import RandomForestRegressor
from sklearn.model_selection import GridSearchCV, RepeatedKFold

from .preprocessing import build_design_matrix
from .schema import PREDICTOR_COLUMNS

logger = logging.getLogger(__name__)

DEFAULT_MAX_FEATURES_GRID = (2, 13, 25)


class BaselineLinearModel:
    """
    Ordinary least squares of ``area_log`` on the encoded predictors.

    Categoricals are one-hot encoded over the levels present in the fitting
    data, with the first present level as reference, and an intercept is
    added. No column selection happens here.
    """

    def __init__(self, predictors: Optional[List[str]] = None):
        self.predictors = list(predictors) if predictors is not None else list(PREDICTOR_COLUMNS)
        self.results = None
        self.feature_names: Optional[List[str]] = None
        self._is_fitted = False

    def fit(self, model_input: pd.DataFrame) -> 'BaselineLinearModel':
        X, y = build_design_matrix(model_input, self.predictors, drop_unused_levels=True)
        if y is None:
            raise ValueError("Model input has no target column")

        self.feature_names = X.columns.tolist()
        X = sm.add_constant(X, has_constant='add')

        logger.info(f"Fitting OLS on {X.shape[0]} rows, {X.shape[1]} terms")
        self.results = sm.OLS(y, X).fit()
        self._is_fitted = True

        logger.info(f"OLS R²: {self.r_squared:.4f}")
        return self

    def _check_fitted(self) -> None:
        if not self._is_fitted:
            raise ValueError("Model must be trained first. Call fit() first.")

    @property
    def r_squared(self) -> float:
        self._check_fitted()
        return float(self.results.rsquared)

    @property
    def adj_r_squared(self) -> float:
        self._check_fitted()
        return float(self.results.rsquared_adj)

    @property
    def n_obs(self) -> int:
        self._check_fitted()
        return int(self.results.nobs)

    @property
    def coefficients(self) -> pd.Series:
        self._check_fitted()
        return self.results.params.copy()

    def coefficient_table(self) -> pd.DataFrame:
        """
        Coefficient estimates with standard errors, t-values and p-values.

        Returns:
            DataFrame indexed by term (``const`` first)
        """
        self._check_fitted()
        return pd.DataFrame({
            'coef': self.results.params,
            'std_err': self.results.bse,
            't_value': self.results.tvalues,
            'p_value': self.results.pvalues
        })

    @property
    def design_matrix(self) -> pd.DataFrame:
        """Exogenous matrix the model was fitted on, intercept included."""
        self._check_fitted()
        return pd.DataFrame(self.results.model.exog, columns=self.results.model.exog_names)

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """
        Predict ``area_log`` for each row of ``frame``.

        Rows whose level was absent when fitting fall back to the reference.
        """
        self._check_fitted()
        X, _ = build_design_matrix(frame, self.predictors)
        # Unseen levels have no column and all-zero indicators
        X = X.reindex(columns=self.feature_names, fill_value=0.0)
        X = sm.add_constant(X, has_constant='add')
        return np.asarray(self.results.predict(X))


class ForestAreaModel:
    """
    Random forest regressor selected by repeated k-fold cross-validation.

    Every ``max_features`` candidate is scored by cross-validated RMSE on the
    training rows; the best one is refit on all of them.
    """

    def __init__(
        self,
        max_features_grid: Sequence[int] = DEFAULT_MAX_FEATURES_GRID,
        n_estimators: int = 500,
        folds: int = 10,
        repeats: int = 3,
        random_state: int = 123,
        n_jobs: int = -1,
        predictors: Optional[List[str]] = None
    ):
        """
        Initialize the model with its search configuration.

        Args:
            max_features_grid: Candidate predictors considered per split
            n_estimators: Number of trees per forest
            folds: Number of cross-validation folds
            repeats: Number of cross-validation repeats
            random_state: Seed shared by the folds and the forest bootstrap
            n_jobs: Parallel jobs for tree building (-1 for all cores)
            predictors: Predictor columns (default: PREDICTOR_COLUMNS)
        """
        self.max_features_grid = [int(m) for m in max_features_grid]
        self.n_estimators = n_estimators
        self.folds = folds
        self.repeats = repeats
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.predictors = list(predictors) if predictors is not None else list(PREDICTOR_COLUMNS)

        self.model: Optional[RandomForestRegressor] = None
        self.search: Optional[GridSearchCV] = None
        self.feature_names: Optional[List[str]] = None
        self.best_params_: Dict[str, Any] = {}
        self.best_cv_rmse_: Optional[float] = None
        self.training_info: Dict[str, Any] = {}
        self._is_fitted = False

    def _create_base_estimator(self) -> RandomForestRegressor:
        """Create the base RandomForestRegressor."""
        return RandomForestRegressor(
            n_estimators=self.n_estimators,
            random_state=self.random_state,
            n_jobs=self.n_jobs
        )

    def _param_grid(self, n_features: int) -> Dict[str, List[int]]:
        # Candidates above the feature count collapse onto it
        grid = sorted({max(1, min(m, n_features)) for m in self.max_features_grid})
        return {'max_features': grid}

    def fit(self, train: pd.DataFrame) -> 'ForestAreaModel':
        """
        Run the cross-validated search and refit the best forest.

        Args:
            train: Training ModelInput rows

        Returns:
            Self for method chaining
        """
        start_time = datetime.now()

        X, y = build_design_matrix(train, self.predictors)
        if y is None:
            raise ValueError("Training data has no target column")

        param_grid = self._param_grid(X.shape[1])

        logger.info("=" * 60)
        logger.info("STARTING MODEL TRAINING (Phase 3)")
        logger.info("=" * 60)
        logger.info(f"Training data shape: X={X.shape}, y={y.shape}")
        logger.info(f"Cross-validation: {self.folds} folds × {self.repeats} repeats")
        logger.info(f"Grid: {param_grid}")
        logger.info(f"  - n_estimators: {self.n_estimators}")
        logger.info(f"  - random_state: {self.random_state}")

        cv = RepeatedKFold(
            n_splits=self.folds,
            n_repeats=self.repeats,
            random_state=self.random_state
        )
        self.search = GridSearchCV(
            self._create_base_estimator(),
            param_grid=param_grid,
            cv=cv,
            scoring='neg_root_mean_squared_error',
            refit=True
        )
        self.search.fit(X, y)

        self.model = self.search.best_estimator_
        self.feature_names = X.columns.tolist()
        self.best_params_ = dict(self.search.best_params_)
        self.best_cv_rmse_ = float(-self.search.best_score_)

        end_time = datetime.now()
        training_duration = (end_time - start_time).total_seconds()

        self.training_info = {
            'training_duration_seconds': training_duration,
            'n_samples': X.shape[0],
            'n_features': X.shape[1],
            'trained_at': end_time.isoformat(),
            'best_params': self.best_params_,
            'best_cv_rmse': self.best_cv_rmse_,
            'hyperparameters': {
                'n_estimators': self.n_estimators,
                'folds': self.folds,
                'repeats': self.repeats,
                'random_state': self.random_state,
                'max_features_grid': param_grid['max_features']
            }
        }

        self._is_fitted = True

        logger.info(f"Selected: {self.best_params_} (CV RMSE {self.best_cv_rmse_:.4f})")
        logger.info("=" * 60)
        logger.info(f"MODEL TRAINING COMPLETE in {training_duration:.2f} seconds")
        logger.info("=" * 60)

        return self

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """
        Predict ``area_log`` for each row of a ModelInput frame.

        Args:
            frame: Rows with the predictor columns (target optional)

        Returns:
            Predictions array with one value per row, in row order
        """
        if not self._is_fitted:
            raise ValueError("Model must be trained before prediction. Call fit() first.")

        X, _ = build_design_matrix(frame, self.predictors)

        if X.columns.tolist() != self.feature_names:
            raise ValueError(
                f"Expected features {self.feature_names}, but got {X.columns.tolist()}"
            )

        return self.model.predict(X)

    def cv_results(self) -> pd.DataFrame:
        """Cross-validated RMSE per candidate configuration."""
        if self.search is None:
            raise ValueError("Model must be trained first.")

        results = self.search.cv_results_
        return pd.DataFrame({
            'max_features': [params['max_features'] for params in results['params']],
            'mean_rmse': -results['mean_test_score'],
            'std_rmse': results['std_test_score'],
            'rank': results['rank_test_score']
        })

    def get_feature_importances(self) -> pd.Series:
        """
        Get impurity-based feature importances of the refit forest.

        Returns:
            Series indexed by encoded feature name, sorted descending
        """
        if not self._is_fitted:
            raise ValueError("Model must be trained first.")

        return pd.Series(
            self.model.feature_importances_, index=self.feature_names
        ).sort_values(ascending=False)

    def save(self, filepath: str) -> None:
        """
        Save the trained model to disk.

        Args:
            filepath: Path to save the model
        """
        if not self._is_fitted:
            raise ValueError("Cannot save untrained model.")

        state = {
            'model': self.model,
            'hyperparameters': {
                'max_features_grid': self.max_features_grid,
                'n_estimators': self.n_estimators,
                'folds': self.folds,
                'repeats': self.repeats,
                'random_state': self.random_state,
                'n_jobs': self.n_jobs,
                'predictors': self.predictors
            },
            'feature_names': self.feature_names,
            'best_params_': self.best_params_,
            'best_cv_rmse_': self.best_cv_rmse_,
            'training_info': self.training_info,
            '_is_fitted': self._is_fitted
        }

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(state, filepath)
        logger.info(f"Model saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> 'ForestAreaModel':
        """
        Load a trained model from disk.

        Args:
            filepath: Path to the saved model

        Returns:
            Loaded ForestAreaModel instance
        """
        state = joblib.load(filepath)

        model = cls(**state['hyperparameters'])
        model.model = state['model']
        model.feature_names = state['feature_names']
        model.best_params_ = state['best_params_']
        model.best_cv_rmse_ = state['best_cv_rmse_']
        model.training_info = state['training_info']
        model._is_fitted = state['_is_fitted']

        logger.info(f"Model loaded from {filepath}")
        return model


def fit_baseline_linear(
    model_input: pd.DataFrame,
    predictors: Optional[List[str]] = None
) -> BaselineLinearModel:
    """Fit the OLS baseline on the full model input."""
    return BaselineLinearModel(predictors=predictors).fit(model_input)


def fit_cv_random_forest(
    train: pd.DataFrame,
    folds: int = 10,
    repeats: int = 3,
    seed: int = 123,
    max_features_grid: Sequence[int] = DEFAULT_MAX_FEATURES_GRID,
    n_estimators: int = 500,
    n_jobs: int = -1,
    predictors: Optional[List[str]] = None
) -> ForestAreaModel:
    """
    Fit a random forest selected by repeated k-fold cross-validation.

    Args:
        train: Training ModelInput rows
        folds: Number of folds
        repeats: Number of repeats
        seed: Seed for fold assignment and forest bootstrap sampling
        max_features_grid: Candidate predictors considered per split
        n_estimators: Number of trees
        n_jobs: Parallel jobs for tree building
        predictors: Predictor columns (default: PREDICTOR_COLUMNS)

    Returns:
        Trained ForestAreaModel
    """
    model = ForestAreaModel(
        max_features_grid=max_features_grid,
        n_estimators=n_estimators,
        folds=folds,
        repeats=repeats,
        random_state=seed,
        n_jobs=n_jobs,
        predictors=predictors
    )
    return model.fit(train)


def train_model(
    train: pd.DataFrame,
    config: Dict[str, Any],
    save_path: Optional[str] = None,
    seed: Optional[int] = None
) -> ForestAreaModel:
    """
    Train the forest using configuration parameters.

    Args:
        train: Training ModelInput rows
        config: Configuration dictionary
        save_path: Path to save the trained model (optional)
        seed: Overrides ``model.seed`` from the config when given

    Returns:
        Trained ForestAreaModel
    """
    model_config = config.get('model', {})

    model = fit_cv_random_forest(
        train,
        folds=model_config.get('folds', 10),
        repeats=model_config.get('repeats', 3),
        seed=seed if seed is not None else model_config.get('seed', 123),
        max_features_grid=model_config.get('max_features_grid', DEFAULT_MAX_FEATURES_GRID),
        n_estimators=model_config.get('n_estimators', 500),
        n_jobs=model_config.get('n_jobs', -1)
    )

    if save_path:
        model.save(save_path)

    return model


def print_linear_summary(model: BaselineLinearModel) -> None:
    """
    Print the OLS coefficient table and R².

    Args:
        model: Fitted baseline linear model
    """
    table = model.coefficient_table()

    print("\n" + "=" * 70)
    print("BASELINE LINEAR MODEL (OLS)")
    print("=" * 70)
    print(f"{'Term':<15} {'Estimate':<12} {'Std. Error':<12} {'t value':<12} {'Pr(>|t|)':<12}")
    print("-" * 70)

    for term, row in table.iterrows():
        print(f"{term:<15} {row['coef']:<12.5f} {row['std_err']:<12.5f} "
              f"{row['t_value']:<12.3f} {row['p_value']:<12.4f}")

    print("-" * 70)
    print(f"Observations: {model.n_obs}")
    print(f"R²: {model.r_squared:.4f}    Adjusted R²: {model.adj_r_squared:.4f}")
    print("=" * 70 + "\n")


def print_model_summary(model: ForestAreaModel) -> None:
    """
    Print a summary of the trained forest and its selected configuration.

    Args:
        model: Trained model instance
    """
    print("\n" + "=" * 50)
    print("MODEL SUMMARY")
    print("=" * 50)
    print("Model Type: RandomForestRegressor (GridSearchCV, RepeatedKFold)")
    print(f"Resampling: {model.folds}-fold CV repeated {model.repeats} times")
    print(f"Trees: {model.n_estimators}")

    if model.search is not None:
        print("\nCandidates:")
        for _, row in model.cv_results().iterrows():
            print(f"  - max_features={int(row['max_features'])}: "
                  f"RMSE {row['mean_rmse']:.4f} (± {row['std_rmse']:.4f})")

    print(f"\nSelected hyperparameters: {model.best_params_}")

    if model.training_info:
        print("\nTraining Info:")
        print(f"  - Duration: {model.training_info.get('training_duration_seconds', 0.0):.2f}s")
        print(f"  - Samples: {model.training_info.get('n_samples', 'N/A')}")
        print(f"  - Features: {model.training_info.get('n_features', 'N/A')}")

    print("=" * 50 + "\n")
