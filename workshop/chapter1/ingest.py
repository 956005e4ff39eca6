"""
Chapter 1 Step 2: Ingest the lesson datasets

Two remote sources:
- Fund closing prices from the Yahoo Finance provider (yfinance)
- QSAR oral toxicity table: a zipped, semicolon separated CSV over HTTP

Raw frames are cached as parquet under data_dir so reruns stay offline.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Callable

import pandas as pd
import requests
import yfinance as yf
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import WorkshopSettings

logger = logging.getLogger(__name__)

N_FINGERPRINT_BITS = 1024


def create_session() -> requests.Session:
    """Create session with retry logic"""
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=[500, 502, 503, 504])
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.mount("http://", HTTPAdapter(max_retries=retries))
    return session


def fingerprint_columns(n_bits: int = N_FINGERPRINT_BITS) -> list:
    """Column names for the molecular fingerprint bits: fp_0000 .. fp_1023"""
    return [f"fp_{i:04d}" for i in range(n_bits)]


def fetch_fund_prices(settings: WorkshopSettings) -> pd.DataFrame:
    """
    Query daily prices for settings.ticker from the financial-data provider.

    Returns:
        Raw provider frame with a "Date" column and flat OHLCV column names
        (Open, High, Low, Close, Adj Close, Volume)
    """
    print(f"Querying {settings.ticker}: {settings.start_date} to {settings.end_date}")

    raw = yf.download(
        settings.ticker,
        start=settings.start_date,
        end=settings.end_date,
        progress=False,
        auto_adjust=False,
    )

    if raw is None or raw.empty:
        raise ValueError(
            f"No price data returned for {settings.ticker} "
            f"({settings.start_date} to {settings.end_date})"
        )

    # Recent yfinance releases return (field, ticker) MultiIndex columns
    if isinstance(raw.columns, pd.MultiIndex):
        raw.columns = raw.columns.get_level_values(0)

    raw = raw.reset_index()
    raw = raw.rename(columns={raw.columns[0]: "Date"})
    raw.columns = [str(col) for col in raw.columns]

    print(f"  Total: {len(raw)} trading days")
    return raw


def read_toxicity_zip(payload: bytes) -> pd.DataFrame:
    """
    Parse the zipped toxicity CSV (no header, ';' separated).

    Returns:
        DataFrame with fp_0000..fp_1023 columns and a string "label" column
    """
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        members = [name for name in archive.namelist() if name.lower().endswith(".csv")]
        if not members:
            raise ValueError(f"No CSV member in archive: {archive.namelist()}")
        if len(members) > 1:
            logger.warning(f"Archive holds {len(members)} CSV files, using {members[0]}")

        with archive.open(members[0]) as handle:
            raw = pd.read_csv(handle, sep=";", header=None)

    n_features = raw.shape[1] - 1
    if n_features < 1:
        raise ValueError(f"Expected feature columns plus a label, got {raw.shape[1]} columns")

    raw.columns = fingerprint_columns(n_features) + ["label"]
    return raw


def download_toxicity(settings: WorkshopSettings) -> pd.DataFrame:
    """
    HTTP-fetch the zipped toxicity dataset and parse it.

    HTTP failures propagate (raise_for_status).
    """
    session = create_session()

    print(f"Downloading toxicity dataset: {settings.toxicity_url}")
    response = session.get(settings.toxicity_url, timeout=60)
    response.raise_for_status()

    raw = read_toxicity_zip(response.content)
    print(f"  Total: {len(raw)} molecules, {raw.shape[1] - 1} features")
    return raw


def load_cached_or_fetch(
    path: Path,
    fetch: Callable[[], pd.DataFrame],
    overwrite: bool = False,
) -> pd.DataFrame:
    """
    Return the parquet cache at path, or call fetch() and cache its result.
    """
    path = Path(path)
    if path.exists() and not overwrite:
        logger.info(f"[ingest] cache hit, skipping download: {path}")
        return pd.read_parquet(path)

    df = fetch()
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False)
    logger.info(f"[ingest] cached {len(df)} rows to {path}")
    return df


def load_fund_prices(settings: WorkshopSettings) -> pd.DataFrame:
    """Raw provider prices, cached under data_dir"""
    return load_cached_or_fetch(
        settings.prices_path(),
        lambda: fetch_fund_prices(settings),
        overwrite=settings.overwrite,
    )


def load_toxicity(settings: WorkshopSettings) -> pd.DataFrame:
    """Raw toxicity table, cached under data_dir"""
    return load_cached_or_fetch(
        settings.toxicity_path(),
        lambda: download_toxicity(settings),
        overwrite=settings.overwrite,
    )
