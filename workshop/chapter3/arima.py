"""
Chapter 3: ARIMA on Fund Prices

Step by step:
1. stationarity_test / suggest_differencing - ADF test picks d
2. select_arima_order - AIC/BIC grid over (p, d, q) with statsmodels
3. fit_arima / forecast_arima - fit the chosen order, forecast with intervals
4. residual_diagnostics - Ljung-Box: are the residuals white noise?
5. auto_arima_forecast - the same choices made automatically (unit-root test
   for d, information-criterion search for p and q)

Prices are traded on business days; forecasts are dated on the business-day
calendar after the last observation (exchange holidays are not modeled).
"""

import itertools
import logging
import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np
import pandas as pd
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.stattools import adfuller, arma_order_select_ic

logger = logging.getLogger(__name__)


@dataclass
class StationarityResult:
    """Augmented Dickey-Fuller test outcome"""
    statistic: float
    p_value: float
    used_lags: int
    n_obs: int
    critical_values: Dict[str, float]
    alpha: float

    @property
    def is_stationary(self) -> bool:
        """Unit root rejected at alpha"""
        return self.p_value < self.alpha


def _values(series) -> np.ndarray:
    values = np.asarray(series, dtype=float)
    if not np.isfinite(values).all():
        raise ValueError(f"Series contains {int((~np.isfinite(values)).sum())} NaN/inf values")
    return values


def stationarity_test(series, alpha: float = 0.05) -> StationarityResult:
    """
    Augmented Dickey-Fuller test (lag length chosen by AIC).

    H0: the series has a unit root. A small p-value means stationary.
    A constant series has no unit root to test and is reported stationary.
    """
    values = _values(series)
    if np.ptp(values) == 0:
        return StationarityResult(statistic=-np.inf, p_value=0.0, used_lags=0,
                                  n_obs=len(values), critical_values={}, alpha=alpha)

    statistic, p_value, used_lags, n_obs, critical_values, _ = adfuller(
        values, autolag="AIC", result_object=False)

    return StationarityResult(
        statistic=float(statistic),
        p_value=float(p_value),
        used_lags=int(used_lags),
        n_obs=int(n_obs),
        critical_values={k: float(v) for k, v in critical_values.items()},
        alpha=alpha,
    )


def suggest_differencing(series, max_d: int = 2, alpha: float = 0.05) -> int:
    """
    Smallest d in 0..max_d whose d-times differenced series passes ADF.

    Returns max_d when none passes.
    """
    values = _values(series)
    for d in range(max_d + 1):
        differenced = np.diff(values, n=d) if d else values
        result = stationarity_test(differenced, alpha=alpha)
        print(f"  d={d}: ADF={result.statistic:.3f}, p={result.p_value:.4f}")
        if result.is_stationary:
            return d
    return max_d


def fit_arima(series, order: Tuple[int, int, int] = (1, 1, 1), trend: Optional[str] = None):
    """
    Fit a statsmodels ARIMA of the given order.

    The fit is on positional values (no date index), so statsmodels does not
    need a regular frequency. trend=None keeps the statsmodels default
    (constant when d == 0, none otherwise). Returns ARIMAResults.
    """
    values = _values(series)
    model = ARIMA(values, order=tuple(order), trend=trend)
    fitted = model.fit()
    logger.debug(f"ARIMA{tuple(order)} fitted: aic={fitted.aic:.2f}")
    return fitted


def select_arima_order(
    series,
    p_values: Iterable[int] = (0, 1, 2, 3),
    d_values: Iterable[int] = (0, 1, 2),
    q_values: Iterable[int] = (0, 1, 2, 3),
    criterion: str = "aic",
) -> pd.DataFrame:
    """
    Grid search ARIMA orders and rank them by information criterion.

    Orders that fail to fit are logged and kept with NaN scores. Converged
    fits rank ahead of non-converged ones. Criteria are only comparable at
    one d, so pass the ADF-suggested d alone in d_values.

    Returns:
        DataFrame [order, p, d, q, aic, bic, converged] sorted by
        converged, then criterion
    """
    if criterion not in ("aic", "bic"):
        raise ValueError(f"criterion must be 'aic' or 'bic', got {criterion}")

    values = _values(series)

    rows = []
    for p, d, q in itertools.product(p_values, d_values, q_values):
        order = (int(p), int(d), int(q))
        row = {"order": str(order), "p": order[0], "d": order[1], "q": order[2],
               "aic": np.nan, "bic": np.nan, "converged": False}
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                fitted = ARIMA(values, order=order).fit()
            row["aic"] = float(fitted.aic)
            row["bic"] = float(fitted.bic)
            row["converged"] = bool(fitted.mle_retvals.get("converged", True)) \
                if fitted.mle_retvals else True
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"ARIMA{order} failed: {e}")
        rows.append(row)

    grid = (pd.DataFrame(rows)
            .sort_values(["converged", criterion], ascending=[False, True], na_position="last")
            .reset_index(drop=True))

    if grid[criterion].isna().all():
        raise ValueError("No ARIMA order in the grid could be fitted")

    best = grid.iloc[0]
    print(f"Best order by {criterion.upper()}: {best['order']} ({criterion}={best[criterion]:.2f})")
    return grid


def forecast_dates(last_date: pd.Timestamp, horizon: int) -> pd.DatetimeIndex:
    """Next horizon business days after last_date"""
    return pd.bdate_range(start=pd.Timestamp(last_date) + pd.offsets.BDay(1), periods=horizon)


def forecast_arima(
    fitted,
    horizon: int,
    confidence_level: int = 95,
    last_date: Optional[pd.Timestamp] = None,
) -> pd.DataFrame:
    """
    Forecast mean and prediction interval from a fitted ARIMA.

    Returns:
        DataFrame [step, ds (if last_date given), mean, lower, upper]
    """
    if horizon < 1:
        raise ValueError(f"horizon must be >= 1, got {horizon}")

    alpha = 1 - confidence_level / 100
    frame = fitted.get_forecast(steps=horizon).summary_frame(alpha=alpha)

    out = pd.DataFrame({
        "step": np.arange(1, horizon + 1),
        "mean": np.asarray(frame["mean"], dtype=float),
        "lower": np.asarray(frame["mean_ci_lower"], dtype=float),
        "upper": np.asarray(frame["mean_ci_upper"], dtype=float),
    })
    if last_date is not None:
        out.insert(1, "ds", forecast_dates(last_date, horizon))
    return out


def residual_diagnostics(fitted, lags: int = 10, alpha: float = 0.05) -> Dict:
    """
    Ljung-Box test on the ARIMA residuals.

    Returns:
        Dict with the Ljung-Box table, residual summary and residuals_white
        (no autocorrelation left at any tested lag)
    """
    resid = np.asarray(fitted.resid, dtype=float)
    # The first residual of a differenced model is the undifferenced level
    d = fitted.model.order[1] if hasattr(fitted.model, "order") else 0
    resid = resid[d:]

    table = acorr_ljungbox(resid, lags=list(range(1, lags + 1)))

    return {
        "ljung_box": table,
        "residuals_white": bool((table["lb_pvalue"] > alpha).all()),
        "resid_mean": float(np.mean(resid)),
        "resid_std": float(np.std(resid)),
        "residuals": resid,
    }


def _exact_polynomial_forecast(series: pd.DataFrame, values: np.ndarray, d: int,
                               horizon: int) -> pd.DataFrame:
    """
    Constant d-th difference: the prices are an exact degree-d polynomial in
    time, so the forecast is its continuation with a zero-width interval.
    """
    t = np.arange(len(values))
    coefs = np.polyfit(t, values, deg=d)
    mean = np.polyval(coefs, np.arange(len(values), len(values) + horizon))
    print(f"  [OK] Differenced series is constant; ARIMA(0, {d}, 0) has no noise to model")
    return pd.DataFrame({
        "unique_id": series["unique_id"].iloc[0],
        "ds": forecast_dates(series["ds"].iloc[-1], horizon),
        "mean": mean,
        "lower": mean,
        "upper": mean,
    })


def auto_arima_forecast(
    df: pd.DataFrame,
    horizon: int = 30,
    confidence_level: int = 95,
    max_p: int = 3,
    max_d: int = 2,
    max_q: int = 3,
    criterion: str = "aic",
    alpha: float = 0.05,
) -> Tuple[pd.DataFrame, Tuple[int, int, int]]:
    """
    Automatic ARIMA order selection + forecast.

    1. d: fewest differences that pass the ADF test
    2. (p, q): information-criterion search on the differenced series
    3. Refit ARIMA(p, d, q), with drift when d == 1

    Args:
        df: Price frame [unique_id, ds, y]
        horizon: Steps to forecast
        confidence_level: Prediction interval level
        max_p, max_d, max_q: Search bounds
        criterion: "aic" or "bic"

    Returns:
        (forecast_df, order): forecast_df has columns
        [unique_id, ds, mean, lower, upper] dated on business days after the
        last observation; order is the selected (p, d, q)
    """
    if not {"unique_id", "ds", "y"}.issubset(df.columns):
        raise ValueError(f"Expected unique_id/ds/y, got {df.columns.tolist()}")
    if df["unique_id"].nunique() != 1:
        raise ValueError("auto_arima_forecast expects a single series")
    if criterion not in ("aic", "bic"):
        raise ValueError(f"criterion must be 'aic' or 'bic', got {criterion}")

    series = df.sort_values("ds")
    values = _values(series["y"])

    print(f"Automatic ARIMA: {len(values)} observations, horizon={horizon}, "
          f"level={confidence_level}%")

    d = max_d
    for candidate in range(max_d + 1):
        differenced = np.diff(values, n=candidate) if candidate else values
        if stationarity_test(differenced, alpha=alpha).is_stationary:
            d = candidate
            break

    differenced = np.diff(values, n=d) if d else values
    if np.ptp(differenced) == 0:
        return _exact_polynomial_forecast(series, values, d, horizon), (0, d, 0)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        search = arma_order_select_ic(differenced, max_ar=max_p, max_ma=max_q,
                                      ic=criterion, trend="c")
    p, q = (int(k) for k in getattr(search, f"{criterion}_min_order"))
    order = (p, d, q)

    # drift is a linear trend once the series is differenced
    trend = "t" if d == 1 else None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        fitted = fit_arima(values, order=order, trend=trend)

    forecast_df = forecast_arima(fitted, horizon=horizon, confidence_level=confidence_level,
                                 last_date=series["ds"].iloc[-1])
    forecast_df = forecast_df.drop(columns=["step"])
    forecast_df.insert(0, "unique_id", series["unique_id"].iloc[0])

    print(f"  [OK] Selected order: ARIMA{order}" + (" with drift" if trend else ""))
    return forecast_df, order
