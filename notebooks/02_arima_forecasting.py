# ---
# jupyter:
#   jupytext:
#     cell_metadata_filter: -all
#     formats: ipynb,py:percent
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.17.3
# ---

# %% [markdown]
# # Lesson 2: ARIMA Forecasting
#
# An ARIMA(p, d, q) model differences the series *d* times, then explains what
# is left with *p* autoregressive and *q* moving-average terms. In this lesson
# we:
#
# 1. test for stationarity to choose *d*,
# 2. read ACF/PACF plots and search a grid of orders by AIC,
# 3. let an automatic search choose the order,
# 4. check the residuals,
# 5. forecast the held-out month and backtest against naive baselines.

# %% [markdown]
# ## Setup

# %%
# %matplotlib inline
import numpy as np

from workshop import plotting
from workshop.chapter1 import (chronological_split, load_fund_prices,
                               load_settings, prepare_prices)
from workshop.chapter3 import (BacktestPipeline, ForecastMetrics,
                               ModelSelector, auto_arima_forecast, fit_arima,
                               forecast_arima, residual_diagnostics,
                               select_arima_order, stationarity_test,
                               suggest_differencing,
                               validate_backtesting_splits)

settings = load_settings()
prices = prepare_prices(load_fund_prices(settings), ticker=settings.ticker)

HORIZON = 30
train, test = chronological_split(prices, test_size=HORIZON)
y_train = train["y"].to_numpy()
y_test = test["y"].to_numpy()

# %% [markdown]
# ## Step 1: Is the price stationary?
#
# The augmented Dickey-Fuller test has the null hypothesis "there is a unit
# root". A large p-value means we cannot reject it, so we difference.

# %%
adf = stationarity_test(y_train)
print(f"ADF statistic={adf.statistic:.3f}, p-value={adf.p_value:.4f}, stationary={adf.is_stationary}")

# %%
d = suggest_differencing(y_train, max_d=2)
d

# %% [markdown]
# ## Step 2: ACF and PACF of the differenced series

# %%
plotting.plot_acf_pacf(np.diff(y_train, n=max(d, 1)), lags=40)

# %% [markdown]
# Almost every bar sits inside the confidence band: daily price changes have
# very little memory. Expect small p and q.
#
# ## Step 3: Grid search by AIC
#
# AIC values are only comparable between models fitted to the same data, and
# each d differences the data differently. So d stays at the ADF choice and
# only p and q are searched.

# %%
grid = select_arima_order(y_train, p_values=range(4), d_values=(d,), q_values=range(4))
grid.head(10)

# %%
best = grid.iloc[0]
order = (int(best["p"]), int(best["d"]), int(best["q"]))
fitted = fit_arima(y_train, order=order)
print(fitted.summary())

# %% [markdown]
# ## Step 4: Automatic order selection
#
# `auto_arima_forecast` repeats steps 1-3 without us: ADF tests pick d, an
# information-criterion search over the differenced series picks p and q,
# and a drift term is added when d is 1.

# %%
auto_fc, auto_order = auto_arima_forecast(train, horizon=HORIZON, confidence_level=95)
print("Automatic search chose", auto_order, "- grid search chose", order)
auto_fc.head()

# %% [markdown]
# ## Step 5: Residual diagnostics
#
# If the model captured the structure, the residuals should look like white
# noise: Ljung-Box p-values above 0.05 at every lag.

# %%
diagnostics = residual_diagnostics(fitted, lags=10)
print("Residuals white:", diagnostics["residuals_white"])
diagnostics["ljung_box"]

# %%
plotting.plot_residuals(diagnostics["residuals"])

# %% [markdown]
# The histogram has heavier tails than a normal curve: market crashes. The
# prediction intervals below assume normal errors, so they will be too narrow
# in turbulent months.
#
# ## Step 6: Forecast the held-out month

# %%
forecast = forecast_arima(fitted, horizon=HORIZON, confidence_level=95)
forecast.insert(1, "ds", test["ds"].to_numpy())

plotting.plot_forecast(train, forecast, actual=test, title=f"ARIMA{order} forecast")

# %%
metrics = ForecastMetrics.compute_all(y_test, forecast["mean"].to_numpy(), y_train)
metrics["coverage"] = ForecastMetrics.coverage(y_test, forecast["lower"].to_numpy(),
                                               forecast["upper"].to_numpy())
metrics

# %% [markdown]
# MASE compares our error with the in-sample error of the naive forecast
# "tomorrow equals today". Values near 1 mean ARIMA adds little.
#
# ## Step 7: Backtest against the baselines
#
# One month is one draw. A rolling backtest repeats the exercise at several
# forecast origins.

# %%
pipeline = BacktestPipeline(
    models=["naive", "drift", "mean", ("arima", {"order": order})],
    strategy="rolling",
    min_train_size=500,
    test_size=HORIZON,
    step_size=60,
    n_splits=5,
)
splits = pipeline.backtest.generate_splits(prices)
validate_backtesting_splits(splits, min_train_size=500, test_size=HORIZON)

# %%
results = pipeline.run(prices)
ModelSelector(primary_metric="rmse").generate_leaderboard(results)

# %% [markdown]
# ## Takeaways
# - Prices need one difference; returns are already close to stationary.
# - The chosen ARIMA rarely beats the random walk by much on a liquid fund.
#   That matches the efficient-market intuition from Lesson 1.
# - Always compare against naive baselines before trusting a fancier model.
