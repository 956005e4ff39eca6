"""
Chapter 1 Step 3: Prepare the datasets

Prices:
- pick the adjusted close, build the canonical [unique_id, ds, y] frame
- derive lagged values and relative differences (past values only)
- split chronologically (no shuffling for time series)

Toxicity:
- map the positive/negative label to a boolean target
- split with stratification so both partitions keep the class balance
"""

from typing import Iterable, Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

LABEL_MAP = {"positive": True, "negative": False}


def prepare_prices(raw: pd.DataFrame, ticker: str) -> pd.DataFrame:
    """
    Normalize raw provider prices to the canonical price frame.

    Steps:
    1. Pick "Adj Close" (falls back to "Close")
    2. Parse dates, drop the time of day and timezone
    3. Convert prices to numeric (fail loud, no coercion)
    4. Sort by date

    Args:
        raw: Frame from fetch_fund_prices (Date + OHLCV columns)
        ticker: Series identifier

    Returns:
        DataFrame with columns [unique_id, ds, y]
    """
    if "Date" not in raw.columns:
        raise ValueError(f"Missing Date column, got {raw.columns.tolist()}")

    price_col = "Adj Close" if "Adj Close" in raw.columns else "Close"
    if price_col not in raw.columns:
        raise ValueError(f"Missing Close/Adj Close column, got {raw.columns.tolist()}")

    ds = pd.to_datetime(raw["Date"], errors="raise")
    if ds.dt.tz is not None:
        ds = ds.dt.tz_localize(None)

    df = pd.DataFrame({
        "unique_id": ticker,
        "ds": ds.dt.normalize(),
        "y": pd.to_numeric(raw[price_col], errors="raise").astype(float),
    })
    df = df.sort_values("ds").reset_index(drop=True)

    print(f"Prepared: {len(df)} rows, {df['ds'].min():%Y-%m-%d} to {df['ds'].max():%Y-%m-%d}")
    print(f"  Price column: {price_col}")

    return df


def add_lag_features(
    df: pd.DataFrame,
    y_col: str = "y",
    lags: Iterable[int] = (1, 2, 5),
) -> pd.DataFrame:
    """
    Add lag features using past values only.
    """
    features = df.copy()
    if y_col not in features.columns:
        raise ValueError(f"Missing value column: {y_col}")

    for lag in lags:
        if lag < 1:
            raise ValueError(f"Lags must be >= 1, got {lag}")
        features[f"{y_col}_lag_{lag}"] = features[y_col].shift(lag)
    return features


def add_relative_difference(df: pd.DataFrame, y_col: str = "y") -> pd.DataFrame:
    """
    Add the one-step relative difference (y_t - y_{t-1}) / y_{t-1}.

    The first row is NaN: there is no previous price.
    """
    features = df.copy()
    if y_col not in features.columns:
        raise ValueError(f"Missing value column: {y_col}")

    previous = features[y_col].shift(1)
    features[f"{y_col}_reldiff"] = (features[y_col] - previous) / previous
    return features


def add_reldiff_lags(
    df: pd.DataFrame,
    y_col: str = "y",
    lags: Iterable[int] = (1, 2, 5),
) -> pd.DataFrame:
    """
    Relative difference plus its lags, for the returns regression.
    """
    features = add_relative_difference(df, y_col=y_col)
    return add_lag_features(features, y_col=f"{y_col}_reldiff", lags=lags)


def chronological_split(
    df: pd.DataFrame,
    test_size: int,
    ds_col: str = "ds",
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a time series into train (head) and test (last test_size rows).
    """
    n = len(df)
    if not 0 < test_size < n:
        raise ValueError(f"test_size must be in 1..{n - 1}, got {test_size}")

    ordered = df.sort_values(ds_col).reset_index(drop=True)
    train = ordered.iloc[: n - test_size].copy()
    test = ordered.iloc[n - test_size:].copy()

    print(f"Split: train={len(train)} rows (to {train[ds_col].max():%Y-%m-%d}), "
          f"test={len(test)} rows (from {test[ds_col].min():%Y-%m-%d})")
    return train, test


def prepare_toxicity(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Map the text label to the boolean modeling target is_toxic.

    Args:
        raw: Frame from download_toxicity (fp_* columns + label)

    Returns:
        Feature columns as int8 plus is_toxic (label column removed)
    """
    if "label" not in raw.columns:
        raise ValueError("Missing label column")

    labels = raw["label"].astype(str).str.strip().str.lower()
    unknown = sorted(set(labels) - set(LABEL_MAP))
    if unknown:
        raise ValueError(f"Unknown labels: {unknown[:5]}")

    feature_cols = [c for c in raw.columns if c != "label"]
    df = raw[feature_cols].astype("int8")
    df["is_toxic"] = labels.map(LABEL_MAP).astype(bool)

    positives = int(df["is_toxic"].sum())
    print(f"Prepared: {len(df)} molecules, {len(feature_cols)} features, "
          f"{positives} toxic ({positives / len(df):.1%})")
    return df


def stratified_split(
    df: pd.DataFrame,
    target: str = "is_toxic",
    test_size: float = 0.25,
    random_state: int = 42,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Random train/test split that preserves the class balance of target.
    """
    if target not in df.columns:
        raise ValueError(f"Missing target column: {target}")

    train, test = train_test_split(
        df,
        test_size=test_size,
        stratify=df[target],
        random_state=random_state,
    )
    return train.copy(), test.copy()


def split_features_target(df: pd.DataFrame, target: str = "is_toxic") -> Tuple[pd.DataFrame, pd.Series]:
    """Separate the feature matrix from the target column"""
    if target not in df.columns:
        raise ValueError(f"Missing target column: {target}")
    return df.drop(columns=[target]), df[target]
