# file: workshop/chapter0/__init__.py
"""
Chapter 0: Price Series Objects and Contracts
"""

from .objects import (
    assert_price_contract,
    normalize_dates,
    to_price_frame,
    to_ts_series,
    validate_price_frame,
)

__all__ = [
    "assert_price_contract",
    "normalize_dates",
    "to_price_frame",
    "to_ts_series",
    "validate_price_frame",
]
