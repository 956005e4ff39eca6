"""
Chapter 1 Step 4: Validate the datasets

Hard gates for the price series:
- Uniqueness: no duplicate trading dates per ticker
- Monotonic: increasing dates
- Values: no nulls, strictly positive prices

Hard gates for the toxicity table:
- Features are binary (0/1) with no nulls
- Both classes present
"""

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import pandas as pd


@dataclass
class ValidationResult:
    """Results of price-series validation"""
    is_valid: bool
    n_rows: int
    n_duplicates: int
    n_nulls: int
    n_non_positive: int
    value_min: float
    value_max: float
    is_monotonic: bool
    largest_gap_days: int = 0


@dataclass
class ToxicityValidation:
    """Results of toxicity-table validation"""
    is_valid: bool
    n_rows: int
    n_features: int
    n_nulls: int
    n_non_binary: int
    class_counts: Dict[str, int] = field(default_factory=dict)
    constant_features: List[str] = field(default_factory=list)

    @property
    def positive_rate(self) -> float:
        total = sum(self.class_counts.values())
        if total == 0:
            return float("nan")
        return self.class_counts.get("positive", 0) / total


def validate_price_series(df: pd.DataFrame) -> ValidationResult:
    """
    Validate price-series integrity before modeling.

    Checks:
    1. No duplicates on [unique_id, ds]
    2. Monotonic increasing dates
    3. No null prices
    4. Strictly positive prices (relative differences divide by y)

    Trading calendars have weekends and holidays, so gaps are reported
    (largest_gap_days) but do not fail validation.

    Args:
        df: DataFrame with columns [unique_id, ds, y]

    Returns:
        ValidationResult with detailed findings
    """
    missing = [col for col in ("unique_id", "ds", "y") if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    # Check 1: Duplicates
    n_duplicates = int(df.duplicated(subset=["unique_id", "ds"], keep=False).sum())

    # Check 2: Monotonic (as stored, not after sorting)
    is_monotonic = bool(df["ds"].is_monotonic_increasing)

    # Check 3 + 4: Values
    n_nulls = int(df["y"].isna().sum())
    n_non_positive = int((df["y"] <= 0).sum())

    gaps = pd.to_datetime(df["ds"]).sort_values().diff().dropna()
    largest_gap_days = int(gaps.max().days) if len(gaps) else 0

    is_valid = (
        len(df) > 0
        and n_duplicates == 0
        and is_monotonic
        and n_nulls == 0
        and n_non_positive == 0
    )

    return ValidationResult(
        is_valid=is_valid,
        n_rows=len(df),
        n_duplicates=n_duplicates,
        n_nulls=n_nulls,
        n_non_positive=n_non_positive,
        value_min=float(df["y"].min()) if len(df) else float("nan"),
        value_max=float(df["y"].max()) if len(df) else float("nan"),
        is_monotonic=is_monotonic,
        largest_gap_days=largest_gap_days,
    )


def validate_toxicity_table(df: pd.DataFrame, label_col: str = "label") -> ToxicityValidation:
    """
    Validate the raw toxicity table (fp_* features + text label).
    """
    if label_col not in df.columns:
        raise ValueError(f"Missing label column: {label_col}")

    features = df.drop(columns=[label_col])
    values = features.to_numpy()

    n_nulls = int(pd.isna(values).sum())
    n_non_binary = int((~np.isin(values, (0, 1)) & ~pd.isna(values)).sum())

    labels = df[label_col].astype(str).str.strip().str.lower()
    class_counts = {str(k): int(v) for k, v in labels.value_counts().items()}

    constant_features = [c for c in features.columns if features[c].nunique(dropna=True) <= 1]

    is_valid = (
        len(df) > 0
        and n_nulls == 0
        and n_non_binary == 0
        and set(class_counts) == {"positive", "negative"}
    )

    return ToxicityValidation(
        is_valid=is_valid,
        n_rows=len(df),
        n_features=features.shape[1],
        n_nulls=n_nulls,
        n_non_binary=n_non_binary,
        class_counts=class_counts,
        constant_features=constant_features,
    )


def print_validation_report(result) -> None:
    """Print a human-readable validation report"""
    status = "PASS" if result.is_valid else "FAIL"
    print(f"\n=== Validation Report: {status} ===")
    print(f"Rows: {result.n_rows}")

    if isinstance(result, ToxicityValidation):
        print(f"Features: {result.n_features}")
        print(f"Null cells: {result.n_nulls}")
        print(f"Non-binary cells: {result.n_non_binary}")
        print(f"Classes: {result.class_counts}")
        print(f"Positive rate: {result.positive_rate:.1%}")
        print(f"Constant features: {len(result.constant_features)}")
        return

    print(f"Duplicates: {result.n_duplicates}")
    print(f"Null values: {result.n_nulls}")
    print(f"Non-positive prices: {result.n_non_positive}")
    print(f"Value range: {result.value_min:.2f} to {result.value_max:.2f}")
    print(f"Monotonic: {result.is_monotonic}")
    print(f"Largest gap: {result.largest_gap_days} days")
