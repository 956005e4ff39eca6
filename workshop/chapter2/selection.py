"""
Chapter 2: Choosing the polynomial degree

Higher degrees always fit the training range better; TimeSeriesSplit
cross-validation shows where extrapolating the next block starts to fail.
"""

import logging
from typing import Iterable, List

import numpy as np
import pandas as pd
from sklearn.model_selection import TimeSeriesSplit, cross_val_score

from .evaluation import evaluate_regression
from .models import RegressionModel, polynomial_pipeline, time_index

logger = logging.getLogger(__name__)


def select_polynomial_degree(
    df: pd.DataFrame,
    degrees: Iterable[int] = (1, 2, 3, 4, 5),
    n_splits: int = 5,
    target: str = "y",
) -> pd.DataFrame:
    """
    Score each polynomial degree with forward-chaining cross-validation.

    Args:
        df: Price frame (sorted by ds)
        degrees: Candidate degrees
        n_splits: Number of TimeSeriesSplit folds
        target: Column to regress

    Returns:
        DataFrame [degree, rmse_mean, rmse_std, fold_rmse] sorted by rmse_mean;
        the first row is the selected degree
    """
    ordered = df.sort_values("ds").reset_index(drop=True)
    if len(ordered) <= n_splits:
        raise ValueError(f"Need more than {n_splits} rows for {n_splits} folds, got {len(ordered)}")

    ds = pd.to_datetime(ordered["ds"])
    origin = ds.min()
    span_days = max(float((ds.max() - origin).days), 1.0)
    X = time_index(ds, origin, span_days)
    y = ordered[target].to_numpy(dtype=float)

    cv = TimeSeriesSplit(n_splits=n_splits)

    rows = []
    for degree in degrees:
        scores = cross_val_score(
            polynomial_pipeline(degree),
            X,
            y,
            cv=cv,
            scoring="neg_root_mean_squared_error",
        )
        fold_rmse = -scores
        rows.append({
            "degree": int(degree),
            "rmse_mean": float(np.mean(fold_rmse)),
            "rmse_std": float(np.std(fold_rmse)),
            "fold_rmse": fold_rmse.tolist(),
        })
        logger.info(f"degree={degree}: CV RMSE {np.mean(fold_rmse):.3f} +/- {np.std(fold_rmse):.3f}")

    scores_df = pd.DataFrame(rows).sort_values("rmse_mean").reset_index(drop=True)
    print(f"Selected degree: {int(scores_df.loc[0, 'degree'])} "
          f"(CV RMSE {scores_df.loc[0, 'rmse_mean']:.3f})")
    return scores_df


def compare_regressions(
    models: List[RegressionModel],
    train: pd.DataFrame,
    test: pd.DataFrame,
) -> pd.DataFrame:
    """
    Fit every model on train and rank by test RMSE.

    Models are compared on their own target; mixing price and relative
    difference targets in one table only makes sense for r2.
    """
    rows = []
    for model in models:
        model.fit(train)
        metrics = evaluate_regression(model, train, test)
        rows.append({"model_name": model.get_name(), "target": model.target, **metrics})

    return pd.DataFrame(rows).sort_values("test_rmse").reset_index(drop=True)
