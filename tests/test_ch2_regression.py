"""
Chapter 2: Regression Tests

Known-answer fits on synthetic curves, plus the fail-loud paths.
"""

import numpy as np
import pandas as pd
import pytest

from workshop.chapter1 import add_lag_features, chronological_split
from workshop.chapter2 import (LagRegression, RegressionMetrics,
                               TrendRegression, compare_regressions,
                               evaluate_regression, fit_lag_regression,
                               fit_trend_regression, ols_summary,
                               polynomial_pipeline, select_polynomial_degree)


def curve_frame(n: int = 200, quadratic: float = 0.0) -> pd.DataFrame:
    """y = 10 + 0.5 t + quadratic * t^2 on consecutive calendar days"""
    t = np.arange(n, dtype=float)
    return pd.DataFrame({
        "unique_id": "TEST",
        "ds": pd.date_range("2020-01-01", periods=n, freq="D"),
        "y": 10 + 0.5 * t + quadratic * t ** 2,
    })


class TestRegressionMetrics:
    def test_perfect_fit(self):
        y = np.array([1.0, 2.0, 3.0, 4.0])
        metrics = RegressionMetrics.compute_all(y, y)

        assert metrics["rmse"] == 0.0
        assert metrics["r2"] == 1.0
        assert metrics["valid_count"] == 4

    def test_nan_predictions_masked(self):
        y_true = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([np.nan, 2.0, 4.0])

        assert RegressionMetrics.rmse(y_true, y_pred) == pytest.approx(np.sqrt(0.5))
        assert RegressionMetrics.compute_all(y_true, y_pred)["valid_count"] == 2

    def test_constant_target_r2_nan(self):
        assert np.isnan(RegressionMetrics.r2(np.ones(5), np.ones(5)))

    def test_all_nan_returns_nan(self):
        assert np.isnan(RegressionMetrics.mae(np.ones(3), np.full(3, np.nan)))


class TestTrendRegression:
    def test_straight_line_recovered(self):
        df = curve_frame()
        train, test = chronological_split(df, test_size=20)

        model = fit_trend_regression(train, degree=1)
        metrics = evaluate_regression(model, train, test)

        assert metrics["test_rmse"] < 1e-6
        assert model.get_name() == "trend_poly1"
        assert len(model.coefficients) == 2

    def test_quadratic_needs_degree_two(self):
        df = curve_frame(quadratic=0.01)
        train, test = chronological_split(df, test_size=20)

        line = evaluate_regression(fit_trend_regression(train, degree=1), train, test)
        parabola = evaluate_regression(fit_trend_regression(train, degree=2), train, test)

        assert parabola["test_rmse"] < 1e-4
        assert line["test_rmse"] > 1.0

    @pytest.mark.fail_loud
    def test_degree_zero_raises(self):
        with pytest.raises(ValueError, match="degree"):
            polynomial_pipeline(0)

    @pytest.mark.fail_loud
    def test_predict_before_fit_raises(self):
        with pytest.raises(ValueError, match="not fitted"):
            TrendRegression(degree=2).predict(curve_frame())


class TestLagRegression:
    def test_random_walk_coefficients(self):
        df = add_lag_features(curve_frame(), lags=(1,))
        model = fit_lag_regression(df, lags=(1,))

        assert model.coefficients["y_lag_1"] == pytest.approx(1.0)
        assert model.coefficients["intercept"] == pytest.approx(0.5)
        assert model.n_obs == len(df) - 1

    def test_predict_nan_without_history(self):
        df = add_lag_features(curve_frame(), lags=(1,))
        preds = LagRegression(lags=(1,)).fit(df).predict(df)

        assert np.isnan(preds[0])
        assert np.isfinite(preds[1:]).all()

    @pytest.mark.fail_loud
    def test_missing_lag_columns_raise(self):
        with pytest.raises(ValueError, match="add_lag_features"):
            LagRegression(lags=(1, 2)).fit(curve_frame())

    @pytest.mark.fail_loud
    def test_no_lags_raises(self):
        with pytest.raises(ValueError):
            LagRegression(lags=())


class TestOLS:
    def test_ols_summary_has_intercept(self):
        df = add_lag_features(curve_frame(), lags=(1,))
        df["y"] = df["y"] + np.random.default_rng(0).normal(0, 0.1, len(df))

        results = ols_summary(df, features=["y_lag_1"])

        assert list(results.params.index) == ["const", "y_lag_1"]
        assert results.params["y_lag_1"] == pytest.approx(1.0, abs=0.05)
        assert results.nobs == len(df) - 1

    @pytest.mark.fail_loud
    def test_too_few_rows_raises(self):
        df = add_lag_features(curve_frame(n=3), lags=(1,))
        with pytest.raises(ValueError, match="complete rows"):
            ols_summary(df, features=["y_lag_1"])


class TestDegreeSelection:
    def test_selects_quadratic(self):
        scores = select_polynomial_degree(curve_frame(quadratic=0.01), degrees=(1, 2), n_splits=4)

        assert list(scores.columns) == ["degree", "rmse_mean", "rmse_std", "fold_rmse"]
        assert scores.loc[0, "degree"] == 2
        assert scores["rmse_mean"].is_monotonic_increasing
        assert len(scores.loc[0, "fold_rmse"]) == 4

    @pytest.mark.fail_loud
    def test_too_few_rows_raises(self):
        with pytest.raises(ValueError, match="folds"):
            select_polynomial_degree(curve_frame(n=4), n_splits=5)

    def test_compare_regressions_sorted(self):
        df = add_lag_features(curve_frame(quadratic=0.01), lags=(1,))
        train, test = chronological_split(df, test_size=20)

        table = compare_regressions(
            [TrendRegression(degree=1), TrendRegression(degree=2), LagRegression(lags=(1,))],
            train,
            test,
        )

        assert table["test_rmse"].is_monotonic_increasing
        assert {"model_name", "target", "train_rmse", "test_r2"}.issubset(table.columns)
        assert table.loc[0, "model_name"] == "trend_poly2"
