# file: workshop/chapter0/objects.py
"""
Chapter 0: the price-series objects every lesson passes around.

A price frame is a tidy table with columns [unique_id, ds, y]:
- unique_id: ticker symbol
- ds: timezone-naive trading date
- y: adjusted closing price
"""

from __future__ import annotations

from typing import Tuple

import pandas as pd

from workshop.chapter1.validate import validate_price_series


def normalize_dates(df: pd.DataFrame, ds_col: str = "ds") -> pd.DataFrame:
    """
    Normalize a datetime column to timezone-naive dates (time of day dropped).

    Providers return exchange-local timestamps; the lessons only need the day.
    """
    if ds_col not in df.columns:
        raise ValueError(f"Missing required datetime column: {ds_col}")

    normalized = df.copy()
    ds = pd.to_datetime(normalized[ds_col], errors="raise")
    if ds.dt.tz is not None:
        ds = ds.dt.tz_localize(None)
    normalized[ds_col] = ds.dt.normalize()
    return normalized


def to_price_frame(
    df: pd.DataFrame,
    unique_id: str,
    ds_col: str = "ds",
    y_col: str = "y",
) -> pd.DataFrame:
    """
    Create a tidy price table with columns [unique_id, ds, y], sorted by date.
    """
    missing = [col for col in (ds_col, y_col) if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    tidy = pd.DataFrame({
        "unique_id": unique_id,
        "ds": df[ds_col].to_numpy(),
        "y": pd.to_numeric(df[y_col], errors="raise").to_numpy(dtype=float),
    })
    tidy = normalize_dates(tidy, ds_col="ds")
    return tidy.sort_values("ds").reset_index(drop=True)


def to_ts_series(df: pd.DataFrame, ds_col: str = "ds", y_col: str = "y") -> pd.Series:
    """
    Create a single-series object: pd.Series indexed by trading date.
    """
    if ds_col not in df.columns or y_col not in df.columns:
        raise ValueError(f"Expected columns: {ds_col}, {y_col}")

    series = pd.Series(
        df[y_col].to_numpy(dtype=float),
        index=pd.DatetimeIndex(pd.to_datetime(df[ds_col], errors="raise")),
        name=y_col,
    )
    return series.sort_index()


def validate_price_frame(df: pd.DataFrame) -> Tuple[bool, str]:
    """
    Validate the price-frame contract using the Chapter 1 integrity check.
    """
    result = validate_price_series(df)
    if result.is_valid:
        return True, "valid"
    return False, "invalid"


def assert_price_contract(df: pd.DataFrame) -> None:
    """
    Raise a ValueError if the price-frame contract is violated.
    """
    result = validate_price_series(df)
    if not result.is_valid:
        raise ValueError(
            f"Invalid price frame: duplicates={result.n_duplicates}, "
            f"nulls={result.n_nulls}, non_positive={result.n_non_positive}, "
            f"monotonic={result.is_monotonic}"
        )
