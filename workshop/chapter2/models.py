"""
Chapter 2: Regression Models

Two ways to regress a fund's closing price:
1. Polynomial trend: y ~ poly(t, degree), t = time since the first date
2. Lag regression: y_t ~ y_{t-1}, y_{t-2}, ... (or the same on relative differences)

Both wrap a scikit-learn Pipeline; ols_summary gives the statsmodels view
(coefficient table, p-values) of the same design.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import PolynomialFeatures

logger = logging.getLogger(__name__)


def polynomial_pipeline(degree: int) -> Pipeline:
    """PolynomialFeatures + LinearRegression; degree 1 is the straight line"""
    if degree < 1:
        raise ValueError(f"degree must be >= 1, got {degree}")
    return Pipeline([
        ("poly", PolynomialFeatures(degree=degree, include_bias=False)),
        ("linear", LinearRegression()),
    ])


def time_index(ds: pd.Series, origin: pd.Timestamp, span_days: float) -> np.ndarray:
    """Days since origin scaled by span_days, as a single-column matrix"""
    days = (pd.to_datetime(ds) - origin).dt.days.to_numpy(dtype=float)
    return (days / span_days).reshape(-1, 1)


class RegressionModel(ABC):
    """Base class for the Chapter 2 regressions"""

    target: str = "y"

    @abstractmethod
    def fit(self, df: pd.DataFrame) -> "RegressionModel":
        """Fit model to a training frame"""
        pass

    @abstractmethod
    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """Predict target for every row of df (NaN where inputs are missing)"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Model name"""
        pass


class TrendRegression(RegressionModel):
    """Polynomial regression of price on time"""

    def __init__(self, degree: int = 1, target: str = "y"):
        self.degree = degree
        self.target = target
        self.pipeline = polynomial_pipeline(degree)
        self.origin: Optional[pd.Timestamp] = None
        self.span_days: Optional[float] = None

    def fit(self, df: pd.DataFrame) -> "TrendRegression":
        ds = pd.to_datetime(df["ds"])
        self.origin = ds.min()
        # t is 0 at the first training date and 1 at the last
        self.span_days = max(float((ds.max() - self.origin).days), 1.0)

        X = time_index(ds, self.origin, self.span_days)
        y = df[self.target].to_numpy(dtype=float)
        self.pipeline.fit(X, y)

        logger.debug(f"{self.get_name()} fitted on {len(df)} rows")
        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        if self.origin is None:
            raise ValueError("TrendRegression is not fitted")
        X = time_index(df["ds"], self.origin, self.span_days)
        return self.pipeline.predict(X)

    @property
    def coefficients(self) -> np.ndarray:
        """Intercept followed by the coefficients of t, t^2, ..."""
        linear = self.pipeline.named_steps["linear"]
        return np.concatenate([[linear.intercept_], linear.coef_])

    def get_name(self) -> str:
        return f"trend_poly{self.degree}"


class LagRegression(RegressionModel):
    """Linear regression of the target on its own lag columns"""

    def __init__(self, lags: Sequence[int] = (1,), target: str = "y"):
        if not lags:
            raise ValueError("LagRegression needs at least one lag")
        self.lags = tuple(lags)
        self.target = target
        self.features = [f"{target}_lag_{lag}" for lag in self.lags]
        self.pipeline = polynomial_pipeline(1)
        self.n_obs = 0

    def _check_columns(self, df: pd.DataFrame) -> None:
        missing = [c for c in self.features if c not in df.columns]
        if missing:
            raise ValueError(f"Missing lag columns: {missing} (run add_lag_features first)")

    def fit(self, df: pd.DataFrame) -> "LagRegression":
        self._check_columns(df)
        rows = df.dropna(subset=self.features + [self.target])
        if rows.empty:
            raise ValueError("No complete rows to fit after dropping NaN lags")

        self.pipeline.fit(rows[self.features].to_numpy(dtype=float),
                          rows[self.target].to_numpy(dtype=float))
        self.n_obs = len(rows)

        logger.debug(f"{self.get_name()} fitted on {self.n_obs} rows "
                     f"({len(df) - self.n_obs} dropped for NaN)")
        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        self._check_columns(df)
        X = df[self.features].to_numpy(dtype=float)
        complete = np.isfinite(X).all(axis=1)

        preds = np.full(len(df), np.nan)
        if complete.any():
            preds[complete] = self.pipeline.predict(X[complete])
        return preds

    @property
    def coefficients(self) -> pd.Series:
        linear = self.pipeline.named_steps["linear"]
        return pd.Series(
            np.concatenate([[linear.intercept_], linear.coef_]),
            index=["intercept"] + self.features,
        )

    def get_name(self) -> str:
        return f"{self.target}_lag_regression{list(self.lags)}"


def fit_trend_regression(df: pd.DataFrame, degree: int = 1, target: str = "y") -> TrendRegression:
    """Fit y ~ poly(t, degree) on df"""
    return TrendRegression(degree=degree, target=target).fit(df)


def fit_lag_regression(
    df: pd.DataFrame,
    lags: Iterable[int] = (1,),
    target: str = "y",
) -> LagRegression:
    """Fit target ~ target_lag_1 + ... on df (rows with NaN lags dropped)"""
    return LagRegression(lags=list(lags), target=target).fit(df)


def ols_summary(df: pd.DataFrame, features: List[str], target: str = "y"):
    """
    Ordinary least squares with an intercept, via statsmodels.

    Returns the fitted RegressionResults; call .summary() in the notebook
    for the coefficient table with standard errors and p-values.
    """
    missing = [c for c in features + [target] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns: {missing}")

    rows = df.dropna(subset=features + [target])
    if len(rows) <= len(features) + 1:
        raise ValueError(
            f"Need more than {len(features) + 1} complete rows for OLS, got {len(rows)}"
        )

    X = sm.add_constant(rows[features].astype(float), has_constant="add")
    return sm.OLS(rows[target].astype(float), X).fit()
