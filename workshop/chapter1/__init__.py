"""
Chapter 1: Data for the Workshop

Simple, step-by-step functions for learning:
1. config - Load settings (.env overrides)
2. ingest - Query fund prices, download the toxicity archive
3. prepare - Canonical columns, lags, relative differences, splits
4. validate - Check dataset integrity
"""

from .config import (ArimaConfig, ClassificationConfig, RegressionConfig,
                     WorkshopSettings, load_settings)
from .ingest import (download_toxicity, fetch_fund_prices, load_fund_prices,
                     load_toxicity)
from .prepare import (add_lag_features, add_relative_difference,
                      add_reldiff_lags, chronological_split, prepare_prices,
                      prepare_toxicity, split_features_target,
                      stratified_split)
from .validate import (ToxicityValidation, ValidationResult,
                       print_validation_report, validate_price_series,
                       validate_toxicity_table)

__all__ = [
    # Config
    "WorkshopSettings",
    "RegressionConfig",
    "ArimaConfig",
    "ClassificationConfig",
    "load_settings",
    # Ingest
    "fetch_fund_prices",
    "download_toxicity",
    "load_fund_prices",
    "load_toxicity",
    # Prepare
    "prepare_prices",
    "add_lag_features",
    "add_relative_difference",
    "add_reldiff_lags",
    "chronological_split",
    "prepare_toxicity",
    "stratified_split",
    "split_features_target",
    # Validate
    "ValidationResult",
    "ToxicityValidation",
    "validate_price_series",
    "validate_toxicity_table",
    "print_validation_report",
]
