"""Shared synthetic data: no test touches the network."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


def make_price_frame(n: int = 800, seed: int = 0, unique_id: str = "VFINX") -> pd.DataFrame:
    """Random walk with drift on business days, strictly positive"""
    rng = np.random.default_rng(seed)
    y = 100 + np.cumsum(0.05 + rng.normal(0, 1, n))
    y = y - min(0, y.min()) + 10
    return pd.DataFrame({
        "unique_id": unique_id,
        "ds": pd.bdate_range("2015-01-02", periods=n),
        "y": y,
    })


def make_toxicity_raw(n: int = 300, n_features: int = 30, seed: int = 0) -> pd.DataFrame:
    """
    Fingerprint bits + positive/negative label.

    A molecule is toxic when bits 0 and 1 are both set (3% of labels flipped).
    The last bit is constant.
    """
    rng = np.random.default_rng(seed)
    X = (rng.random((n, n_features)) < 0.3).astype(int)
    X[:, -1] = 0

    toxic = (X[:, 0] == 1) & (X[:, 1] == 1)
    flip = rng.random(n) < 0.03
    toxic = toxic ^ flip

    raw = pd.DataFrame(X, columns=[f"fp_{i:04d}" for i in range(n_features)])
    raw["label"] = np.where(toxic, "positive", "negative")
    return raw


@pytest.fixture
def price_frame() -> pd.DataFrame:
    return make_price_frame()


@pytest.fixture
def toxicity_raw() -> pd.DataFrame:
    return make_toxicity_raw()
