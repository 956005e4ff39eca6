# file: workshop/chapter3/evaluation.py
"""
Chapter 3: Forecast Evaluation Metrics

Every metric drops non-finite pairs first and returns NaN when nothing is
left to score. A NaN metric is a visible failure; a zero would hide one.
"""

from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

METRIC_COLS = ["rmse", "mae", "mape", "mase"]
_EPS = 1e-10


def _finite_pairs(y_true, y_pred, keep=None) -> Tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    mask = np.isfinite(y_true) & np.isfinite(y_pred)
    if keep is not None:
        mask &= keep(y_true)
    return y_true[mask], y_pred[mask]


class ForecastMetrics:
    """Point and interval accuracy of a forecast against actuals"""

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        actual, predicted = _finite_pairs(y_true, y_pred)
        if actual.size == 0:
            return np.nan
        return float(np.sqrt(np.mean((predicted - actual) ** 2)))

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        actual, predicted = _finite_pairs(y_true, y_pred)
        if actual.size == 0:
            return np.nan
        return float(np.mean(np.abs(predicted - actual)))

    @staticmethod
    def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Percent error; rows with a zero actual are skipped"""
        actual, predicted = _finite_pairs(y_true, y_pred, keep=lambda y: np.abs(y) > _EPS)
        if actual.size == 0:
            return np.nan
        return float(100 * np.mean(np.abs(predicted - actual) / np.abs(actual)))

    @staticmethod
    def mase(
        y_true: np.ndarray,
        y_pred: np.ndarray,
        y_train: np.ndarray,
        season_length: int = 1,
    ) -> float:
        """
        Mean Absolute Scaled Error

        Scales the error by the in-sample MAE of the seasonal naive forecast
        (season_length=1 is the random walk). MASE < 1 beats the naive model.

        Returns NaN if the training data is too short or perfectly flat.
        """
        history = np.asarray(y_train, dtype=float)
        history = history[np.isfinite(history)]
        if len(history) <= season_length:
            return np.nan

        naive_mae = np.mean(np.abs(history[season_length:] - history[:-season_length]))
        if naive_mae < _EPS:
            return np.nan

        forecast_mae = ForecastMetrics.mae(y_true, y_pred)
        return float(forecast_mae / naive_mae) if np.isfinite(forecast_mae) else np.nan

    @staticmethod
    def coverage(y_true: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> float:
        """Share (%) of finite actuals inside [lower, upper]"""
        y_true, lower, upper = (np.asarray(a, dtype=float) for a in (y_true, lower, upper))
        rows = np.isfinite(y_true) & np.isfinite(lower) & np.isfinite(upper)
        if not rows.any():
            return np.nan
        inside = (lower[rows] <= y_true[rows]) & (y_true[rows] <= upper[rows])
        return float(100 * inside.mean())

    @staticmethod
    def compute_all(
        y_true: np.ndarray,
        y_pred: np.ndarray,
        y_train: Optional[np.ndarray] = None,
        season_length: int = 1,
    ) -> Dict[str, float]:
        metrics = {name: getattr(ForecastMetrics, name)(y_true, y_pred)
                   for name in ("rmse", "mae", "mape")}
        if y_train is not None:
            metrics["mase"] = ForecastMetrics.mase(y_true, y_pred, y_train, season_length)
        return metrics


def compute_series_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    y_train: Optional[np.ndarray] = None,
    valid_threshold: int = 1,
    season_length: int = 1,
) -> Dict[str, float]:
    """
    Metrics for one backtest window, with the count of scored rows.

    Below valid_threshold every metric is NaN and an "error" key says why.
    """
    valid_count = len(_finite_pairs(y_true, y_pred)[0])

    if valid_count < valid_threshold:
        metrics = dict.fromkeys(METRIC_COLS, np.nan)
        metrics["error"] = f"Insufficient valid predictions: {valid_count} < {valid_threshold}"
    else:
        metrics = ForecastMetrics.compute_all(y_true, y_pred, y_train, season_length=season_length)
        metrics.setdefault("mase", np.nan)

    metrics["valid_count"] = valid_count
    return metrics


def aggregate_metrics(results: pd.DataFrame, by: Optional[str] = None) -> pd.DataFrame:
    """Summary statistics of the metric columns, overall or per group"""
    if by is None:
        return results[METRIC_COLS].agg(["mean", "std", "min", "max"])
    return results.groupby(by)[METRIC_COLS].agg(["mean", "std", "count"])
