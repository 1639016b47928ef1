"""
Forest Fires Analysis
=====================

Exploratory analysis and baseline models for burned area in forest fires.

Modules:
    - data_loader: CSV ingestion and validation
    - eda: Exploratory Data Analysis (Phase 1)
    - preprocessing: Category order, target transform, encoding, split (Phase 2)
    - model: OLS baseline and cross-validated random forest (Phase 3)
    - evaluation: Test-set predictions and metrics (Phase 4)
    - prediction: Export of predictions and run report (Phase 5)
"""

__version__ = "1.0.0"
__author__ = "Forest Fires Analysis Team"
