"""
Chapter 3: Backtest Pipeline

Fits every model on every backtesting split, forecasts the test window and
scores it. ModelSelector turns the per-split table into a leaderboard.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .backtesting import BacktestingStrategy
from .evaluation import compute_series_metrics
from .models import ForecastResult, ModelFactory

logger = logging.getLogger(__name__)

ModelSpec = Union[str, Tuple[str, Dict]]


def _normalize_specs(models: Sequence[ModelSpec]) -> List[Tuple[str, Dict]]:
    specs = []
    for spec in models:
        if isinstance(spec, str):
            specs.append((spec, {}))
        else:
            name, kwargs = spec
            specs.append((name, dict(kwargs)))
    return specs


class BacktestPipeline:
    """Trains models across all backtesting splits"""

    def __init__(
        self,
        models: Optional[Sequence[ModelSpec]] = None,
        strategy: str = "rolling",
        min_train_size: int = 500,
        test_size: int = 30,
        step_size: int = 60,
        n_splits: int = 5,
        season_length: int = 1,
    ):
        """
        Args:
            models: Model names or (name, kwargs) pairs for ModelFactory,
                e.g. ["naive", "drift", ("arima", {"order": (1, 1, 1)})]
            strategy: "rolling" or "expanding"
            season_length: Naive lag for MASE
        """
        if models is None:
            models = ["naive", "drift", ("arima", {"order": (1, 1, 1)})]

        self.model_specs = _normalize_specs(models)
        self.backtest = BacktestingStrategy(
            strategy=strategy,
            min_train_size=min_train_size,
            test_size=test_size,
            step_size=step_size,
            n_splits=n_splits,
        )
        self.season_length = season_length
        self.results: List[ForecastResult] = []

    def run(self, data: pd.DataFrame) -> pd.DataFrame:
        """
        Run the backtest

        Args:
            data: DataFrame with columns [unique_id, ds, y]

        Returns:
            One row per (series, split, model) with metrics and timings
        """
        logger.info(f"Starting backtest with {len(self.model_specs)} models "
                    f"({self.backtest.strategy_name} strategy)")

        splits_by_series = self.backtest.generate_splits(data)
        self.results = []

        rows = []
        for unique_id, splits in splits_by_series.items():
            for split in splits:
                train_df, test_df = self.backtest.get_split_data(data, unique_id, split)
                y_train = train_df["y"].to_numpy(dtype=float)
                y_test = test_df["y"].to_numpy(dtype=float)

                for name, kwargs in self.model_specs:
                    result = self._train_and_forecast(name, kwargs, unique_id, split.split_id,
                                                      y_train, y_test)
                    self.results.append(result)

                    metrics = compute_series_metrics(
                        y_true=y_test,
                        y_pred=result.forecast,
                        y_train=y_train,
                        season_length=self.season_length,
                    )
                    rows.append({
                        "unique_id": unique_id,
                        "split_id": split.split_id,
                        "cutoff": split.train_end,
                        "model_name": result.model_name,
                        "rmse": metrics["rmse"],
                        "mae": metrics["mae"],
                        "mape": metrics["mape"],
                        "mase": metrics["mase"],
                        "valid_count": metrics["valid_count"],
                        "train_time": result.train_time,
                        "forecast_time": result.forecast_time,
                    })

        logger.info(f"Backtest complete: {len(rows)} model/split results")
        return pd.DataFrame(rows)

    def _train_and_forecast(
        self,
        model_name: str,
        kwargs: Dict,
        unique_id: str,
        split_id: int,
        y_train: np.ndarray,
        y_test: np.ndarray,
    ) -> ForecastResult:
        model = ModelFactory.create(model_name, **kwargs)

        start_time = time.time()
        model.fit(y_train)
        train_time = time.time() - start_time

        start_time = time.time()
        forecast = model.predict(horizon=len(y_test))
        forecast_time = time.time() - start_time

        return ForecastResult(
            unique_id=unique_id,
            split_id=split_id,
            model_name=model.get_name(),
            forecast=forecast,
            actual=y_test,
            train_time=train_time,
            forecast_time=forecast_time,
        )

    def forecasts_frame(self) -> pd.DataFrame:
        """Long table of step-level forecasts vs actuals from the last run"""
        rows = []
        for result in self.results:
            for step, (pred, true) in enumerate(zip(result.forecast, result.actual), start=1):
                rows.append({
                    "unique_id": result.unique_id,
                    "split_id": result.split_id,
                    "model_name": result.model_name,
                    "step": step,
                    "forecast": pred,
                    "actual": true,
                })
        return pd.DataFrame(rows)


def run_backtest(
    data: pd.DataFrame,
    models: Optional[Sequence[ModelSpec]] = None,
    strategy: str = "rolling",
    **kwargs,
) -> pd.DataFrame:
    """Convenience wrapper around BacktestPipeline(...).run(data)"""
    return BacktestPipeline(models=models, strategy=strategy, **kwargs).run(data)


class ModelSelector:
    """Select best model based on backtest performance"""

    def __init__(self, primary_metric: str = "rmse", min_valid: int = 1):
        """
        Args:
            primary_metric: Metric for ranking ("rmse", "mae", "mape", "mase")
            min_valid: Minimum valid predictions for a split to count
        """
        self.primary_metric = primary_metric
        self.min_valid = min_valid

    def generate_leaderboard(self, results: pd.DataFrame) -> pd.DataFrame:
        """
        Mean/std of every metric per model, ranked by the primary metric
        """
        valid_results = results[results["valid_count"] >= self.min_valid]
        if valid_results.empty:
            raise ValueError("No backtest results with enough valid predictions")

        leaderboard = valid_results.groupby("model_name").agg({
            "rmse": ["mean", "std"],
            "mae": ["mean", "std"],
            "mape": ["mean", "std"],
            "mase": ["mean", "std"],
            "valid_count": "sum",
            "train_time": "mean",
        })

        # Flatten column names
        leaderboard.columns = ["_".join(col).strip() for col in leaderboard.columns.values]
        leaderboard = leaderboard.sort_values(f"{self.primary_metric}_mean")
        leaderboard["rank"] = np.arange(1, len(leaderboard) + 1)

        return leaderboard.reset_index()

    def select_best_model(self, results: pd.DataFrame) -> Dict:
        """Best model info (lowest mean primary metric)"""
        leaderboard = self.generate_leaderboard(results)
        best = leaderboard.iloc[0]

        return {
            "model_name": best["model_name"],
            "primary_metric": self.primary_metric,
            "primary_metric_mean": float(best[f"{self.primary_metric}_mean"]),
            "rmse_mean": float(best["rmse_mean"]),
            "mae_mean": float(best["mae_mean"]),
            "mase_mean": float(best["mase_mean"]),
            "ranking": leaderboard,
        }
