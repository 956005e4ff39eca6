"""
Chapter 3: ARIMA Forecasting

Implements the forecasting lesson:
- Stationarity (ADF) and differencing
- ARIMA order selection (AIC grid and automatic search, statsmodels)
- Forecasts with prediction intervals and residual diagnostics
- Backtesting against naive baselines
- Evaluation metrics (RMSE, MAE, MAPE, MASE, coverage)
"""

from .arima import (StationarityResult, auto_arima_forecast, fit_arima,
                    forecast_arima, forecast_dates, residual_diagnostics,
                    select_arima_order, stationarity_test,
                    suggest_differencing)
from .backtesting import (BacktestingStrategy, BacktestSplit,
                          ExpandingWindowBacktest, RollingWindowBacktest,
                          validate_backtesting_splits)
from .evaluation import (ForecastMetrics, aggregate_metrics,
                         compute_series_metrics)
from .models import (ARIMAModel, DriftModel, ForecastModel, ForecastResult,
                     MeanModel, ModelFactory, NaiveModel)
from .training import BacktestPipeline, ModelSelector, run_backtest

__all__ = [
    # ARIMA
    "StationarityResult",
    "stationarity_test",
    "suggest_differencing",
    "select_arima_order",
    "fit_arima",
    "forecast_arima",
    "forecast_dates",
    "residual_diagnostics",
    "auto_arima_forecast",
    # Backtesting
    "BacktestSplit",
    "RollingWindowBacktest",
    "ExpandingWindowBacktest",
    "BacktestingStrategy",
    "validate_backtesting_splits",
    # Models
    "ForecastModel",
    "NaiveModel",
    "DriftModel",
    "MeanModel",
    "ARIMAModel",
    "ModelFactory",
    "ForecastResult",
    # Evaluation
    "ForecastMetrics",
    "compute_series_metrics",
    "aggregate_metrics",
    # Training
    "BacktestPipeline",
    "ModelSelector",
    "run_backtest",
]
