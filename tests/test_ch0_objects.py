"""
Chapter 0: Price Frame Contract

The canonical [unique_id, ds, y] frame must be tidy, sorted and timezone-naive.
"""

import numpy as np
import pandas as pd
import pytest

from workshop.chapter0 import (assert_price_contract, normalize_dates,
                               to_price_frame, to_ts_series,
                               validate_price_frame)


class TestPriceFrame:
    def test_normalize_dates_drops_tz_and_time(self):
        df = pd.DataFrame({
            "ds": pd.date_range("2024-01-02 09:30", periods=3, freq="D", tz="America/New_York"),
        })
        out = normalize_dates(df)

        assert out["ds"].dt.tz is None
        assert (out["ds"].dt.hour == 0).all()
        assert out["ds"].iloc[0] == pd.Timestamp("2024-01-02")

    def test_normalize_dates_missing_column_raises(self):
        with pytest.raises(ValueError, match="datetime column"):
            normalize_dates(pd.DataFrame({"date": []}))

    def test_to_price_frame_sorts(self):
        df = pd.DataFrame({
            "Date": ["2024-01-04", "2024-01-02", "2024-01-03"],
            "Close": [3.0, 1.0, 2.0],
        })
        frame = to_price_frame(df, unique_id="VFINX", ds_col="Date", y_col="Close")

        assert list(frame.columns) == ["unique_id", "ds", "y"]
        assert frame["y"].tolist() == [1.0, 2.0, 3.0]
        assert (frame["unique_id"] == "VFINX").all()

    def test_to_price_frame_missing_columns_raises(self):
        with pytest.raises(ValueError, match="Missing required columns"):
            to_price_frame(pd.DataFrame({"ds": []}), unique_id="X")

    def test_to_ts_series(self, price_frame):
        series = to_ts_series(price_frame)

        assert isinstance(series.index, pd.DatetimeIndex)
        assert series.index.is_monotonic_increasing
        assert len(series) == len(price_frame)
        np.testing.assert_allclose(series.to_numpy(), price_frame["y"].to_numpy())


@pytest.mark.fail_loud
class TestPriceContract:
    def test_valid_frame_passes(self, price_frame):
        assert validate_price_frame(price_frame) == (True, "valid")
        assert_price_contract(price_frame)

    def test_duplicate_dates_raise(self, price_frame):
        broken = pd.concat([price_frame, price_frame.tail(1)], ignore_index=True)

        assert validate_price_frame(broken)[0] is False
        with pytest.raises(ValueError, match="duplicates=2"):
            assert_price_contract(broken)

    def test_non_positive_price_raises(self, price_frame):
        broken = price_frame.copy()
        broken.loc[10, "y"] = 0.0

        with pytest.raises(ValueError, match="non_positive=1"):
            assert_price_contract(broken)

    def test_unsorted_dates_raise(self, price_frame):
        broken = price_frame.iloc[::-1].reset_index(drop=True)

        with pytest.raises(ValueError, match="monotonic=False"):
            assert_price_contract(broken)
