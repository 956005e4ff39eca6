"""
Chapter 3: Time Series Backtesting

A single train/test split judges a model on one stretch of the market.
Backtesting repeats the split at several forecast origins:
1. Rolling Window: fixed-length training window slides forward
2. Expanding Window: training always starts at the first observation

Both strategies refuse splits where training data touches the test period.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class BacktestSplit:
    """One forecast origin: positional train/test rows plus their date bounds"""
    split_id: int
    train_start: pd.Timestamp
    train_end: pd.Timestamp
    test_start: pd.Timestamp
    test_end: pd.Timestamp
    train_indices: np.ndarray
    test_indices: np.ndarray

    def __post_init__(self):
        if self.train_end >= self.test_start:
            raise ValueError(
                f"Split {self.split_id} leakage: training ends {self.train_end.date()} "
                f"but testing starts {self.test_start.date()}"
            )

    @property
    def train_size(self) -> int:
        return len(self.train_indices)

    @property
    def test_size(self) -> int:
        return len(self.test_indices)

    @property
    def info(self) -> Dict:
        bounds = {
            name: getattr(self, name).isoformat()
            for name in ("train_start", "train_end", "test_start", "test_end")
        }
        return {"split_id": self.split_id, **bounds,
                "train_size": self.train_size, "test_size": self.test_size}


def _series(data: pd.DataFrame, unique_id: str) -> pd.DataFrame:
    return data[data["unique_id"] == unique_id].sort_values("ds").reset_index(drop=True)


class _WindowBacktest:
    """Shared window bookkeeping; subclasses choose origins and window starts"""

    kind = ""

    def __init__(
        self,
        min_train_size: int = 500,
        test_size: int = 30,
        step_size: int = 60,
        n_splits: int = 5,
    ):
        if min(min_train_size, test_size, step_size, n_splits) < 1:
            raise ValueError("Backtest sizes must all be positive integers")
        self.min_train_size = min_train_size
        self.test_size = test_size
        self.step_size = step_size
        self.n_splits = n_splits

    def origins(self, n: int) -> List[int]:
        raise NotImplementedError

    def train_start(self, origin: int) -> int:
        raise NotImplementedError

    def generate_splits(self, data: pd.DataFrame, unique_id: str) -> List[BacktestSplit]:
        """Splits for one series, ordered by forecast origin"""
        series = _series(data, unique_id)
        n = len(series)
        needed = self.min_train_size + self.test_size
        if n < needed:
            raise ValueError(f"Series {unique_id} too short for backtesting: {n} rows, need {needed}")

        dates = series["ds"]
        splits = []
        for split_id, origin in enumerate(self.origins(n)):
            train_idx = np.arange(self.train_start(origin), origin)
            test_idx = np.arange(origin, origin + self.test_size)
            splits.append(BacktestSplit(
                split_id=split_id,
                train_start=dates.iloc[train_idx[0]],
                train_end=dates.iloc[train_idx[-1]],
                test_start=dates.iloc[test_idx[0]],
                test_end=dates.iloc[test_idx[-1]],
                train_indices=train_idx,
                test_indices=test_idx,
            ))

        logger.info(f"{unique_id}: {len(splits)} {self.kind} splits "
                    f"(test_size={self.test_size}, step={self.step_size})")
        return splits


class RollingWindowBacktest(_WindowBacktest):
    """
    Fixed-length training window (min_train_size rows).

    The last origin sits test_size rows before the end of the series so the
    most recent market is always tested; earlier origins step back by
    step_size until n_splits are found or the window would start before row 0.
    """

    kind = "rolling"

    def origins(self, n: int) -> List[int]:
        last = n - self.test_size
        candidates = range(last, self.min_train_size - 1, -self.step_size)
        return sorted(list(candidates)[:self.n_splits])

    def train_start(self, origin: int) -> int:
        return origin - self.min_train_size


class ExpandingWindowBacktest(_WindowBacktest):
    """Training starts at row 0 and grows by step_size per origin"""

    kind = "expanding"

    def origins(self, n: int) -> List[int]:
        starts = (self.min_train_size + i * self.step_size for i in range(self.n_splits))
        return [origin for origin in starts if origin + self.test_size <= n]

    def train_start(self, origin: int) -> int:
        return 0


_STRATEGIES = {
    RollingWindowBacktest.kind: RollingWindowBacktest,
    ExpandingWindowBacktest.kind: ExpandingWindowBacktest,
}


class BacktestingStrategy:
    """Runs one window strategy over every series in a price frame"""

    def __init__(
        self,
        strategy: str = "rolling",
        min_train_size: int = 500,
        test_size: int = 30,
        step_size: int = 60,
        n_splits: int = 5,
    ):
        if strategy not in _STRATEGIES:
            raise ValueError(f"Unknown strategy: {strategy}. Choose from {sorted(_STRATEGIES)}")
        self.strategy_name = strategy
        self.strategy = _STRATEGIES[strategy](min_train_size, test_size, step_size, n_splits)

    def generate_splits(self, data: pd.DataFrame) -> Dict[str, List[BacktestSplit]]:
        """unique_id -> splits"""
        return {uid: self.strategy.generate_splits(data, uid) for uid in data["unique_id"].unique()}

    def get_split_data(
        self,
        data: pd.DataFrame,
        unique_id: str,
        split: BacktestSplit,
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        series = _series(data, unique_id)
        return series.iloc[split.train_indices].copy(), series.iloc[split.test_indices].copy()

    def serialize_splits(self, splits_by_series: Dict[str, List[BacktestSplit]]) -> Dict:
        """JSON-ready view of the splits, for the run artifacts"""
        return {
            uid: {"strategy": self.strategy_name, "n_splits": len(splits),
                  "splits": [split.info for split in splits]}
            for uid, splits in splits_by_series.items()
        }


def _split_problems(split: BacktestSplit, min_train_size: int, test_size: int) -> List[str]:
    problems = []
    if split.train_end >= split.test_start:
        problems.append("training dates reach into the test period")
    if np.intersect1d(split.train_indices, split.test_indices).size:
        problems.append("train and test share rows")
    if split.train_size < min_train_size:
        problems.append(f"train size {split.train_size} < {min_train_size}")
    if split.test_size != test_size:
        problems.append(f"test size {split.test_size} != {test_size}")
    return problems


def validate_backtesting_splits(
    splits_by_series: Dict[str, List[BacktestSplit]],
    min_train_size: int,
    test_size: int,
) -> Dict[str, bool]:
    """
    Check every split for leakage and size, per series.

    A series with no splits is invalid. Problems are logged, not raised, so
    the whole report is visible in one run.
    """
    results = {}
    for unique_id, splits in splits_by_series.items():
        valid = bool(splits)
        for split in splits:
            for problem in _split_problems(split, min_train_size, test_size):
                logger.error(f"{unique_id} split {split.split_id}: {problem}")
                valid = False
        results[unique_id] = valid
        logger.info(f"{unique_id}: {len(splits)} splits {'VALID' if valid else 'INVALID'}")
    return results
