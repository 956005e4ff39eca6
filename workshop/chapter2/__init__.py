"""
Chapter 2: Regression on Fund Prices

- Polynomial trend regression on time (scikit-learn Pipeline)
- Lag regression on prices or relative differences
- statsmodels OLS summaries for inference
- Degree selection with TimeSeriesSplit cross-validation
"""

from .evaluation import RegressionMetrics, evaluate_regression
from .models import (LagRegression, RegressionModel, TrendRegression,
                     fit_lag_regression, fit_trend_regression, ols_summary,
                     polynomial_pipeline)
from .selection import compare_regressions, select_polynomial_degree

__all__ = [
    # Models
    "RegressionModel",
    "TrendRegression",
    "LagRegression",
    "polynomial_pipeline",
    "fit_trend_regression",
    "fit_lag_regression",
    "ols_summary",
    # Evaluation
    "RegressionMetrics",
    "evaluate_regression",
    # Selection
    "select_polynomial_degree",
    "compare_regressions",
]
