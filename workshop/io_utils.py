# file: workshop/io_utils.py
"""
Lesson artifacts on disk.

Each lesson writes a few parquet tables and one JSON summary. Writes go to a
temp file in the target directory and are then swapped in, so a crashed run
never leaves half a file behind. JSON is strict: NaN/inf become null.
"""

from __future__ import annotations

import json
import math
import os
from pathlib import Path
from typing import Any, Dict, Mapping

import numpy as np
import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _replace_into(path: Path, write) -> None:
    path = Path(path)
    ensure_dir(path.parent)
    tmp = path.with_name(f".{path.name}.tmp")
    write(tmp)
    os.replace(tmp, path)


def to_jsonable(value: Any) -> Any:
    """Plain-Python copy of a lesson summary (numpy scalars, tuples, timestamps)"""
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, np.ndarray)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (pd.Timestamp, Path)):
        return str(value)
    return value


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> None:
    # parquet column names must be strings
    table = df.rename(columns=str)
    _replace_into(path, lambda tmp: table.to_parquet(tmp, index=False))


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    text = json.dumps(to_jsonable(payload), indent=2, default=str, allow_nan=False)
    _replace_into(path, lambda tmp: Path(tmp).write_text(text, encoding="utf-8"))


def write_lesson_artifacts(
    tables: Mapping[Path, pd.DataFrame],
    summary_path: Path,
    summary: Dict[str, Any],
) -> Dict[str, int]:
    """
    Write every table, then the summary with a manifest of table row counts.

    Returns:
        The manifest {file name: rows}
    """
    manifest = {}
    for path, df in tables.items():
        atomic_write_parquet(df, path)
        manifest[Path(path).name] = len(df)

    atomic_write_json({**summary, "tables": manifest}, summary_path)
    return manifest
