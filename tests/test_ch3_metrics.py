"""
Chapter 3: Metrics Tests (NaN handling)

Metrics mask NaN/inf explicitly and return NaN, never raise, when nothing
valid is left.
"""

import numpy as np
import pandas as pd
import pytest

from workshop.chapter3 import (ForecastMetrics, aggregate_metrics,
                               compute_series_metrics)


class TestForecastMetrics:
    def test_rmse_mae(self):
        y_true = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([2.0, 2.0, 5.0])

        assert ForecastMetrics.rmse(y_true, y_pred) == pytest.approx(np.sqrt(5 / 3))
        assert ForecastMetrics.mae(y_true, y_pred) == pytest.approx(1.0)

    def test_nan_predictions_masked(self):
        y_true = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([np.nan, 2.0, 3.0])
        assert ForecastMetrics.rmse(y_true, y_pred) == 0.0

    def test_all_nan_returns_nan(self):
        y_true = np.array([1.0, 2.0])
        y_pred = np.full(2, np.nan)

        assert np.isnan(ForecastMetrics.rmse(y_true, y_pred))
        assert np.isnan(ForecastMetrics.mape(y_true, y_pred))

    def test_mape_skips_zero_actuals(self):
        y_true = np.array([0.0, 100.0])
        y_pred = np.array([5.0, 110.0])
        assert ForecastMetrics.mape(y_true, y_pred) == pytest.approx(10.0)

    def test_mase_of_naive_forecast(self):
        y_train = np.array([1.0, 2.0, 3.0, 4.0])  # in-sample naive MAE = 1
        y_true = np.array([5.0, 6.0])
        y_pred = np.array([4.0, 4.0])  # naive forecast, MAE = 1.5

        assert ForecastMetrics.mase(y_true, y_pred, y_train) == pytest.approx(1.5)

    def test_mase_flat_training_is_nan(self):
        assert np.isnan(ForecastMetrics.mase(np.ones(3), np.ones(3), np.ones(10)))

    def test_mase_short_training_is_nan(self):
        assert np.isnan(ForecastMetrics.mase(np.ones(3), np.ones(3), np.ones(1)))

    def test_coverage(self):
        y_true = np.array([1.0, 5.0, 3.0, np.nan])
        lower = np.zeros(4)
        upper = np.full(4, 4.0)
        assert ForecastMetrics.coverage(y_true, lower, upper) == pytest.approx(100 * 2 / 3)


class TestSeriesMetrics:
    def test_includes_valid_count_and_mase(self):
        metrics = compute_series_metrics([1.0, 2.0], [1.0, 3.0])

        assert metrics["valid_count"] == 2
        assert np.isnan(metrics["mase"])
        assert "error" not in metrics

    @pytest.mark.fail_loud
    def test_below_threshold_reports_error(self):
        metrics = compute_series_metrics([1.0, 2.0], [np.nan, np.nan], valid_threshold=1)

        assert metrics["valid_count"] == 0
        assert np.isnan(metrics["rmse"])
        assert "Insufficient" in metrics["error"]

    def test_aggregate_by_model(self):
        results = pd.DataFrame({
            "model_name": ["a", "a", "b"],
            "rmse": [1.0, 3.0, 2.0],
            "mae": [1.0, 1.0, 1.0],
            "mape": [1.0, 1.0, 1.0],
            "mase": [1.0, 1.0, 1.0],
        })
        table = aggregate_metrics(results, by="model_name")

        assert table.loc["a", ("rmse", "mean")] == 2.0
        assert table.loc["b", ("rmse", "count")] == 1
