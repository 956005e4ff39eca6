# file: workshop/chapter2/evaluation.py
"""
Chapter 2: Regression Evaluation Metrics

Computes fit metrics with explicit NaN handling (fail-loud principle).
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class RegressionMetrics:
    """Compute regression evaluation metrics"""

    @staticmethod
    def _valid(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
        return np.isfinite(y_true) & np.isfinite(y_pred)

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Root Mean Squared Error

        Returns NaN if no valid predictions
        """
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = RegressionMetrics._valid(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.sqrt(np.mean((y_pred[valid_mask] - y_true[valid_mask]) ** 2)))

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Error

        Returns NaN if no valid predictions
        """
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = RegressionMetrics._valid(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.mean(np.abs(y_pred[valid_mask] - y_true[valid_mask])))

    @staticmethod
    def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Percentage Error (%)

        Masks zero y_true as well as NaN/inf. Not meaningful for relative
        differences, which cross zero.
        """
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = RegressionMetrics._valid(y_true, y_pred) & (np.abs(y_true) > 1e-10)

        if valid_mask.sum() == 0:
            return np.nan

        ape = np.abs((y_pred[valid_mask] - y_true[valid_mask]) / y_true[valid_mask])
        return float(100 * np.mean(ape))

    @staticmethod
    def r2(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Coefficient of determination on valid rows.

        Returns NaN for fewer than two valid rows or a constant target.
        """
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        valid_mask = RegressionMetrics._valid(y_true, y_pred)

        if valid_mask.sum() < 2:
            return np.nan

        yt, yp = y_true[valid_mask], y_pred[valid_mask]
        ss_tot = np.sum((yt - yt.mean()) ** 2)
        if ss_tot < 1e-12:
            return np.nan

        return float(1 - np.sum((yt - yp) ** 2) / ss_tot)

    @staticmethod
    def compute_all(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
        y_true, y_pred = np.asarray(y_true, float), np.asarray(y_pred, float)
        return {
            "rmse": RegressionMetrics.rmse(y_true, y_pred),
            "mae": RegressionMetrics.mae(y_true, y_pred),
            "mape": RegressionMetrics.mape(y_true, y_pred),
            "r2": RegressionMetrics.r2(y_true, y_pred),
            "valid_count": int(RegressionMetrics._valid(y_true, y_pred).sum()),
        }


def evaluate_regression(model, train: pd.DataFrame, test: pd.DataFrame) -> Dict[str, float]:
    """
    Train and test metrics for a fitted Chapter 2 model.

    Args:
        model: Fitted TrendRegression or LagRegression
        train: Training partition
        test: Test partition

    Returns:
        Flat dict: train_rmse, train_r2, ..., test_rmse, test_r2, ...
    """
    metrics = {}
    for name, part in (("train", train), ("test", test)):
        y_true = part[model.target].to_numpy(dtype=float)
        y_pred = model.predict(part)
        for key, value in RegressionMetrics.compute_all(y_true, y_pred).items():
            metrics[f"{name}_{key}"] = value

    logger.info(
        f"{model.get_name()}: train RMSE={metrics['train_rmse']:.4f}, "
        f"test RMSE={metrics['test_rmse']:.4f}"
    )
    return metrics
