"""
Chapter 1 Step 1: Configuration

Every lesson reads the same WorkshopSettings so a rerun sees the same
ticker, date range and dataset URL. Overrides live in env (CI) / .env (local).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

TOXICITY_URL = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/00508/"
    "qsar_oral_toxicity.zip"
)


@dataclass(frozen=True)
class WorkshopSettings:
    """Shared settings for all workshop lessons"""
    ticker: str = "VFINX"
    start_date: str = "2015-01-01"
    end_date: str = "2024-12-31"
    toxicity_url: str = TOXICITY_URL

    # IO
    data_dir: str = "data"
    artifacts_dir: str = "artifacts"
    overwrite: bool = False

    # Compute
    n_jobs: int = -1
    random_state: int = 42

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def prices_path(self) -> Path:
        return self.data_path() / f"prices_{self.ticker.lower()}.parquet"

    def toxicity_path(self) -> Path:
        return self.data_path() / "qsar_oral_toxicity.parquet"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env_file: Optional[str] = None, **overrides) -> WorkshopSettings:
    """
    Load settings from environment.

    Reads WORKSHOP_* variables from a .env file or the environment; keyword
    overrides win over both.
    """
    load_dotenv(env_file)

    defaults = WorkshopSettings()
    settings = WorkshopSettings(
        ticker=os.getenv("WORKSHOP_TICKER", defaults.ticker),
        start_date=os.getenv("WORKSHOP_START_DATE", defaults.start_date),
        end_date=os.getenv("WORKSHOP_END_DATE", defaults.end_date),
        toxicity_url=os.getenv("WORKSHOP_TOXICITY_URL", defaults.toxicity_url),
        data_dir=os.getenv("WORKSHOP_DATA_DIR", defaults.data_dir),
        artifacts_dir=os.getenv("WORKSHOP_ARTIFACTS_DIR", defaults.artifacts_dir),
        n_jobs=_env_int("WORKSHOP_N_JOBS", defaults.n_jobs),
        random_state=_env_int("WORKSHOP_RANDOM_STATE", defaults.random_state),
    )
    if overrides:
        settings = replace(settings, **overrides)
    return settings


@dataclass(frozen=True)
class RegressionConfig:
    # Derived columns
    lags: tuple = (1, 2, 5)
    reldiff_lags: tuple = (1, 2, 5)

    # Polynomial trend
    degrees: tuple = (1, 2, 3, 4, 5)
    cv_splits: int = 5

    # Holdout
    test_size: int = 250

    artifacts_dir: str = "artifacts/regression"

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def degree_scores_path(self) -> Path:
        return self.artifacts_path() / "degree_scores.parquet"

    def metrics_path(self) -> Path:
        return self.artifacts_path() / "metrics.json"


@dataclass(frozen=True)
class ArimaConfig:
    # Order grid
    p_values: tuple = (0, 1, 2, 3)
    d_values: tuple = (0, 1, 2)
    q_values: tuple = (0, 1, 2, 3)
    criterion: str = "aic"

    # Stationarity / diagnostics
    adf_alpha: float = 0.05
    ljung_box_lags: int = 10

    # Forecast
    horizon: int = 30
    confidence_level: int = 95
    season_length: int = 1

    # Backtest
    strategy: str = "rolling"
    min_train_size: int = 500
    step_size: int = 60
    n_splits: int = 5

    artifacts_dir: str = "artifacts/arima"

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def order_grid_path(self) -> Path:
        return self.artifacts_path() / "order_grid.parquet"

    def forecast_path(self) -> Path:
        return self.artifacts_path() / "forecast.parquet"

    def backtest_path(self) -> Path:
        return self.artifacts_path() / "backtest.parquet"


@dataclass(frozen=True)
class ClassificationConfig:
    models: tuple = ("random_forest", "svm", "elastic_net")

    # Resampling
    test_size: float = 0.25
    cv_folds: int = 5
    cv_repeats: int = 1
    scoring: str = "roc_auc"
    decision_threshold: float = 0.5

    # Parallel worker pool for the CV loop
    n_jobs: int = -1
    backend: str = "loky"
    random_state: int = 42

    artifacts_dir: str = "artifacts/classification"

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def cv_results_path(self) -> Path:
        return self.artifacts_path() / "cv_results.parquet"

    def leaderboard_path(self) -> Path:
        return self.artifacts_path() / "leaderboard.parquet"
