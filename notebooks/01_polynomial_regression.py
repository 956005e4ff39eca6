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
# # Lesson 1: Linear and Polynomial Regression on Fund Prices
#
# We download the daily closing prices of a mutual fund, derive a few columns
# from them (lagged prices, relative differences) and ask two questions:
#
# 1. How well does a straight line, or a polynomial, in *time* describe the price?
# 2. How much does yesterday's price (or yesterday's return) tell us about today's?
#
# Every model here is fitted by scikit-learn or statsmodels. Our job is to set
# up the data correctly and read the results critically.

# %% [markdown]
# ## Setup

# %%
# %matplotlib inline
from workshop import plotting
from workshop.chapter0 import assert_price_contract
from workshop.chapter1 import (add_lag_features, add_reldiff_lags,
                               chronological_split, load_fund_prices,
                               load_settings, prepare_prices,
                               print_validation_report, validate_price_series)
from workshop.chapter2 import (LagRegression, TrendRegression,
                               compare_regressions, evaluate_regression,
                               fit_lag_regression, fit_trend_regression,
                               ols_summary, select_polynomial_degree)

settings = load_settings()
settings

# %% [markdown]
# ## Step 1: Fetch the prices
#
# `load_fund_prices` queries Yahoo Finance the first time and caches the raw
# table under `data/`. Set `WORKSHOP_TICKER` in `.env` to try another fund.

# %%
raw = load_fund_prices(settings)
raw.tail()

# %%
prices = prepare_prices(raw, ticker=settings.ticker)
print_validation_report(validate_price_series(prices))
assert_price_contract(prices)

# %%
plotting.plot_price_history(prices)

# %% [markdown]
# ## Step 2: Derived columns
#
# - `y_lag_k`: the price *k* trading days earlier
# - `y_reldiff`: the relative difference (daily return), `(y_t - y_{t-1}) / y_{t-1}`
#
# The first rows have no history, so their lags are NaN. We keep them in the
# table and let each model drop what it cannot use.

# %%
features = add_lag_features(prices, lags=(1, 2, 5))
features = add_reldiff_lags(features, lags=(1, 2, 5))
features.head(7)

# %% [markdown]
# Hold out the last year (about 250 trading days). With time series we never
# shuffle: the test set must lie entirely *after* the training set.

# %%
train, test = chronological_split(features, test_size=250)
test_start = test["ds"].min()
plotting.plot_price_history(features, test_start=test_start)

# %% [markdown]
# ## Step 3: A straight line in time

# %%
line = fit_trend_regression(train, degree=1)
print("intercept, slope:", line.coefficients)
evaluate_regression(line, train, test)

# %% [markdown]
# ## Step 4: Polynomials, and how to choose the degree
#
# A higher degree always fits the training range better. Whether it predicts
# the *next* stretch of prices is a different question, which
# `TimeSeriesSplit` cross-validation answers: each fold trains on the past and
# scores on the block that follows.

# %%
scores = select_polynomial_degree(train, degrees=(1, 2, 3, 4, 5, 6), n_splits=5)
scores

# %%
plotting.plot_degree_scores(scores)

# %%
best_degree = int(scores.loc[0, "degree"])
poly = fit_trend_regression(train, degree=best_degree)
high = fit_trend_regression(train, degree=6)

plotting.plot_regression_fit(
    features,
    {
        "degree 1": line.predict(features),
        f"degree {best_degree}": poly.predict(features),
        "degree 6": high.predict(features),
    },
    test_start=test_start,
)

# %% [markdown]
# Look at the right-hand side of the plot: past the split, high-degree
# polynomials shoot off. Extrapolating a polynomial in time is rarely a good
# forecast.

# %% [markdown]
# ## Step 5: Regressing on yesterday's price

# %%
plotting.plot_lag_scatter(train, y_col="y", lags=(1, 5))

# %%
lag_model = fit_lag_regression(train, lags=(1,), target="y")
lag_model.coefficients

# %% [markdown]
# The slope on `y_lag_1` is almost exactly 1 and the intercept almost 0:
# "today's price is yesterday's price". The statsmodels summary shows the
# same fit with standard errors and p-values.

# %%
print(ols_summary(train, features=["y_lag_1"], target="y").summary())

# %% [markdown]
# ## Step 6: Relative differences
#
# Prices wander; returns are much closer to stationary. Is yesterday's return
# informative about today's?

# %%
plotting.plot_lag_scatter(train, y_col="y_reldiff", lags=(1, 2, 5))

# %%
print(ols_summary(train, features=["y_reldiff_lag_1", "y_reldiff_lag_2", "y_reldiff_lag_5"],
                  target="y_reldiff").summary())

# %% [markdown]
# ## Step 7: Compare everything on the test year

# %%
comparison = compare_regressions(
    [
        TrendRegression(degree=1),
        TrendRegression(degree=best_degree),
        LagRegression(lags=(1, 2, 5), target="y"),
        LagRegression(lags=(1, 2, 5), target="y_reldiff"),
    ],
    train,
    test,
)
comparison[["model_name", "target", "train_rmse", "test_rmse", "test_r2"]]

# %% [markdown]
# ## Takeaways
# - A trend line summarizes the past; it is not a forecast.
# - The lag-1 regression "wins" on price RMSE because it is the random walk.
# - On returns, R² near zero is the expected result for a liquid fund.
#
# Next lesson: ARIMA models, which make these observations systematic.
