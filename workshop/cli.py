# file: workshop/cli.py
from __future__ import annotations

import logging
import sys
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from workshop.chapter1.config import load_settings
from workshop.tasks import (run_all_lessons, run_arima_lesson,
                            run_classification_lesson, run_regression_lesson)

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False, help="Run the workshop lessons headless.")
console = Console()


def _strip_ipykernel_args(argv: list[str]) -> list[str]:
    """Jupyter/ipykernel injects `-f <connection_file>` into sys.argv."""
    out = [argv[0]]
    i = 1
    while i < len(argv):
        a = argv[i]
        if a in ("-f", "--f"):
            i += 2  # skip flag + value
            continue
        if a.startswith("--f="):
            i += 1
            continue
        out.append(a)
        i += 1
    return out


def _print_results(title: str, results: Dict) -> None:
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in results.items():
        table.add_row(str(k), str(v))

    console.print(table)


def _settings(ticker: Optional[str], start_date: Optional[str], end_date: Optional[str],
              overwrite: bool, n_jobs: Optional[int] = None):
    overrides = {"overwrite": overwrite}
    if ticker:
        overrides["ticker"] = ticker
    if start_date:
        overrides["start_date"] = start_date
    if end_date:
        overrides["end_date"] = end_date
    if n_jobs is not None:
        overrides["n_jobs"] = n_jobs
    return load_settings(**overrides)


@app.command()
def regression(
    ticker: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    overwrite: bool = False,
):
    """Lesson 1: linear / polynomial regression on fund prices."""
    settings = _settings(ticker, start_date, end_date, overwrite)
    _print_results("Regression Lesson", run_regression_lesson(settings))


@app.command()
def arima(
    ticker: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    overwrite: bool = False,
):
    """Lesson 2: ARIMA order selection, forecast and backtest."""
    settings = _settings(ticker, start_date, end_date, overwrite)
    _print_results("ARIMA Lesson", run_arima_lesson(settings))


@app.command()
def classify(
    n_jobs: Optional[int] = None,
    overwrite: bool = False,
):
    """Lesson 3: toxicity classification with cross-validation and ROC."""
    settings = _settings(None, None, None, overwrite, n_jobs=n_jobs)
    _print_results("Classification Lesson", run_classification_lesson(settings))


@app.command(name="all")
def run_all(
    ticker: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    n_jobs: Optional[int] = None,
    overwrite: bool = False,
):
    """Run every lesson in order."""
    settings = _settings(ticker, start_date, end_date, overwrite, n_jobs=n_jobs)
    _print_results("Workshop Results", run_all_lessons(settings))


def main() -> None:
    sys.argv = _strip_ipykernel_args(sys.argv)
    app()


if __name__ == "__main__":
    sys.argv = _strip_ipykernel_args(sys.argv)
    app(standalone_mode=False)  # <-- prevents SystemExit in Jupyter
