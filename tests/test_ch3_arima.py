"""
Chapter 3: ARIMA Tests

Stationarity, order selection, forecasts and residual diagnostics on
seeded synthetic series.
"""

import warnings
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest

from workshop.chapter3 import (auto_arima_forecast, fit_arima, forecast_arima,
                               forecast_dates, residual_diagnostics,
                               select_arima_order, stationarity_test,
                               suggest_differencing)


def random_walk_with_drift(n: int = 400, seed: int = 1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return 100 + np.cumsum(0.5 + rng.normal(0, 1, n))


class _FakeFit:
    def __init__(self, aic, converged):
        self.aic = aic
        self.bic = aic + 5.0
        self.mle_retvals = {"converged": converged}


class _FakeARIMA:
    """(0, 1, 1) scores best but did not converge"""

    def __init__(self, values, order):
        self.order = order

    def fit(self):
        if self.order == (0, 1, 1):
            return _FakeFit(aic=10.0, converged=False)
        return _FakeFit(aic=20.0 + sum(self.order), converged=True)


class TestStationarity:
    def test_white_noise_is_stationary(self):
        noise = np.random.default_rng(0).normal(0, 1, 400)
        result = stationarity_test(noise)

        assert result.is_stationary
        assert result.p_value < 0.05
        assert "5%" in result.critical_values

    def test_trending_walk_is_not_stationary(self):
        result = stationarity_test(random_walk_with_drift())
        assert not result.is_stationary

    def test_one_difference_suggested(self):
        assert suggest_differencing(random_walk_with_drift(), max_d=2) == 1

    def test_constant_series_is_stationary(self):
        result = stationarity_test(np.full(50, 3.0))

        assert result.is_stationary
        assert result.n_obs == 50

    def test_linear_series_needs_one_difference(self):
        assert suggest_differencing(100 + 0.5 * np.arange(200), max_d=2) == 1

    def test_adf_call_is_warning_free(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", FutureWarning)
            stationarity_test(random_walk_with_drift())

    @pytest.mark.fail_loud
    def test_nan_raises(self):
        values = random_walk_with_drift()
        values[10] = np.nan

        with pytest.raises(ValueError, match="NaN"):
            stationarity_test(values)


class TestOrderSelection:
    def test_grid_sorted_by_aic(self):
        grid = select_arima_order(random_walk_with_drift(), p_values=(0, 1), d_values=(1,),
                                  q_values=(0, 1))

        assert len(grid) == 4
        assert list(grid.columns) == ["order", "p", "d", "q", "aic", "bic", "converged"]
        converged = grid[grid["converged"]]
        assert converged["aic"].is_monotonic_increasing
        assert (grid["d"] == 1).all()

    def test_bic_criterion(self):
        grid = select_arima_order(random_walk_with_drift(), p_values=(0, 1), d_values=(1,),
                                  q_values=(0,), criterion="bic")
        assert grid[grid["converged"]]["bic"].is_monotonic_increasing

    def test_converged_fits_rank_first(self):
        with patch("workshop.chapter3.arima.ARIMA", _FakeARIMA):
            grid = select_arima_order(np.arange(10.0), p_values=(0, 1), d_values=(1,),
                                      q_values=(0, 1))

        assert grid.loc[0, "order"] == "(0, 1, 0)"
        assert grid["converged"].tolist() == [True, True, True, False]
        assert grid.iloc[-1]["order"] == "(0, 1, 1)"

    @pytest.mark.fail_loud
    def test_unknown_criterion_raises(self):
        with pytest.raises(ValueError, match="criterion"):
            select_arima_order(random_walk_with_drift(), criterion="hqic")


class TestForecast:
    @pytest.fixture
    def fitted(self):
        return fit_arima(random_walk_with_drift(), order=(1, 1, 0))

    def test_interval_contains_mean(self, fitted):
        forecast = forecast_arima(fitted, horizon=10, confidence_level=95)

        assert list(forecast.columns) == ["step", "mean", "lower", "upper"]
        assert len(forecast) == 10
        assert (forecast["lower"] <= forecast["mean"]).all()
        assert (forecast["mean"] <= forecast["upper"]).all()

    def test_interval_widens_with_horizon(self, fitted):
        forecast = forecast_arima(fitted, horizon=10)
        width = forecast["upper"] - forecast["lower"]
        assert width.iloc[-1] > width.iloc[0]

    def test_wider_level_gives_wider_interval(self, fitted):
        narrow = forecast_arima(fitted, horizon=5, confidence_level=80)
        wide = forecast_arima(fitted, horizon=5, confidence_level=95)
        assert ((wide["upper"] - wide["lower"]) > (narrow["upper"] - narrow["lower"])).all()

    def test_dates_skip_weekend(self, fitted):
        friday = pd.Timestamp("2024-01-05")
        forecast = forecast_arima(fitted, horizon=3, last_date=friday)

        assert forecast["ds"].tolist() == list(pd.to_datetime(["2024-01-08", "2024-01-09",
                                                               "2024-01-10"]))
        assert forecast_dates(friday, 1)[0].dayofweek == 0

    @pytest.mark.fail_loud
    def test_zero_horizon_raises(self, fitted):
        with pytest.raises(ValueError, match="horizon"):
            forecast_arima(fitted, horizon=0)

    def test_residual_diagnostics(self, fitted):
        diagnostics = residual_diagnostics(fitted, lags=5)

        assert len(diagnostics["ljung_box"]) == 5
        assert "lb_pvalue" in diagnostics["ljung_box"].columns
        assert isinstance(diagnostics["residuals_white"], bool)
        assert len(diagnostics["residuals"]) == 399
        assert abs(diagnostics["resid_mean"]) < 0.5


class TestAutoArima:
    @pytest.mark.fail_loud
    def test_missing_columns_raise(self):
        with pytest.raises(ValueError, match="unique_id/ds/y"):
            auto_arima_forecast(pd.DataFrame({"ds": [], "y": []}))

    @pytest.mark.fail_loud
    def test_multiple_series_raise(self, price_frame):
        other = price_frame.assign(unique_id="OTHER")
        with pytest.raises(ValueError, match="single series"):
            auto_arima_forecast(pd.concat([price_frame, other], ignore_index=True))

    @pytest.mark.fail_loud
    def test_unknown_criterion_raises(self, price_frame):
        with pytest.raises(ValueError, match="criterion"):
            auto_arima_forecast(price_frame, criterion="hqic")

    @pytest.mark.smoke
    def test_auto_arima_forecast(self, price_frame):
        history = price_frame.tail(300)
        forecast, order = auto_arima_forecast(history, horizon=10, confidence_level=90,
                                              max_p=2, max_q=2)

        assert list(forecast.columns) == ["unique_id", "ds", "mean", "lower", "upper"]
        assert len(forecast) == 10
        assert forecast["ds"].min() > history["ds"].max()
        assert (forecast["lower"] <= forecast["upper"]).all()
        assert len(order) == 3
        assert all(isinstance(k, int) for k in order)

    def test_walk_with_drift_differenced_once(self):
        df = pd.DataFrame({
            "unique_id": "X",
            "ds": pd.bdate_range("2020-01-01", periods=400),
            "y": random_walk_with_drift(),
        })
        _, order = auto_arima_forecast(df, horizon=5, max_p=1, max_q=1)
        assert order[1] == 1

    def test_linear_prices_forecast_exactly(self):
        df = pd.DataFrame({
            "unique_id": "LINE",
            "ds": pd.bdate_range("2020-01-01", periods=200),
            "y": 100 + 0.5 * np.arange(200),
        })
        forecast, order = auto_arima_forecast(df, horizon=5)

        assert order == (0, 1, 0)
        np.testing.assert_allclose(forecast["mean"], 100 + 0.5 * np.arange(200, 205))
        assert (forecast["lower"] == forecast["upper"]).all()
        assert forecast["ds"].min() > df["ds"].max()
