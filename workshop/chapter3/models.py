"""
Chapter 3: Forecast Models for the Backtest

ARIMA only earns its complexity if it beats the simple baselines:
1. Naive (random walk): tomorrow = today
2. Drift: random walk plus the average historical change
3. Historic mean
4. ARIMA(p, d, q) via statsmodels
"""

import logging
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .arima import fit_arima

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """Result from model forecast"""
    unique_id: str
    split_id: int
    model_name: str
    forecast: np.ndarray
    actual: np.ndarray
    train_time: float
    forecast_time: float

    @property
    def valid_mask(self) -> np.ndarray:
        """Mask of valid (non-NaN) predictions"""
        return np.isfinite(self.forecast) & np.isfinite(self.actual)

    @property
    def valid_count(self) -> int:
        return int(self.valid_mask.sum())


class ForecastModel(ABC):
    """Base class for forecasting models"""

    @abstractmethod
    def fit(self, y: np.ndarray) -> "ForecastModel":
        """Fit model to training data"""
        pass

    @abstractmethod
    def predict(self, horizon: int) -> np.ndarray:
        """Generate forecast for given horizon"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Model name"""
        pass


class NaiveModel(ForecastModel):
    """Random walk: repeat the last observation"""

    def __init__(self):
        self.last_value: Optional[float] = None

    def fit(self, y: np.ndarray) -> "NaiveModel":
        self.last_value = float(y[-1]) if len(y) else None
        return self

    def predict(self, horizon: int) -> np.ndarray:
        if self.last_value is None:
            return np.full(horizon, np.nan)
        return np.full(horizon, self.last_value)

    def get_name(self) -> str:
        return "naive"


class DriftModel(ForecastModel):
    """Random walk with drift: the line through the first and last observation"""

    def __init__(self):
        self.last_value: Optional[float] = None
        self.slope = 0.0

    def fit(self, y: np.ndarray) -> "DriftModel":
        if len(y) == 0:
            self.last_value = None
            return self
        self.last_value = float(y[-1])
        self.slope = float((y[-1] - y[0]) / (len(y) - 1)) if len(y) > 1 else 0.0
        return self

    def predict(self, horizon: int) -> np.ndarray:
        if self.last_value is None:
            return np.full(horizon, np.nan)
        return self.last_value + self.slope * np.arange(1, horizon + 1)

    def get_name(self) -> str:
        return "drift"


class MeanModel(ForecastModel):
    """Historic mean of the training window"""

    def __init__(self):
        self.mean: Optional[float] = None

    def fit(self, y: np.ndarray) -> "MeanModel":
        self.mean = float(np.mean(y)) if len(y) else None
        return self

    def predict(self, horizon: int) -> np.ndarray:
        if self.mean is None:
            return np.full(horizon, np.nan)
        return np.full(horizon, self.mean)

    def get_name(self) -> str:
        return "mean"


class ARIMAModel(ForecastModel):
    """statsmodels ARIMA wrapper; a failed fit forecasts NaN"""

    def __init__(self, order: Tuple[int, int, int] = (1, 1, 1)):
        self.order = tuple(order)
        self.fitted = None

    def fit(self, y: np.ndarray) -> "ARIMAModel":
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                self.fitted = fit_arima(y, order=self.order)
        except (ValueError, np.linalg.LinAlgError) as e:
            logger.warning(f"ARIMA{self.order} fitting failed: {e}")
            self.fitted = None
        return self

    def predict(self, horizon: int) -> np.ndarray:
        if self.fitted is None:
            return np.full(horizon, np.nan)
        return np.asarray(self.fitted.forecast(steps=horizon), dtype=float)

    def get_name(self) -> str:
        p, d, q = self.order
        return f"arima({p},{d},{q})"


class ModelFactory:
    """Factory for creating model instances"""

    _models = {
        "naive": NaiveModel,
        "drift": DriftModel,
        "mean": MeanModel,
        "arima": ARIMAModel,
    }

    @classmethod
    def create(cls, model_name: str, **kwargs) -> ForecastModel:
        """Create model by name"""
        if model_name not in cls._models:
            raise ValueError(f"Unknown model: {model_name}")

        return cls._models[model_name](**kwargs)

    @classmethod
    def list_models(cls) -> List[str]:
        return list(cls._models.keys())
