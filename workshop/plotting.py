"""
Figures for the workshop notebooks.

Every function returns the matplotlib Figure so a notebook cell renders it
inline. With output_path set, the figure is also written as PNG and closed
(the CLI runs headless).
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Dict, Iterable, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

# Suppress matplotlib warnings for cleaner notebook output
warnings.filterwarnings('ignore', category=UserWarning, module='matplotlib')

plt.rcParams['figure.figsize'] = (12, 6)
plt.rcParams['figure.dpi'] = 100


def _finish(fig, output_path: Optional[Path]):
    fig.tight_layout()
    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
    return fig


def plot_price_history(
    df: pd.DataFrame,
    test_start: Optional[pd.Timestamp] = None,
    title: Optional[str] = None,
    output_path: Optional[Path] = None,
):
    """Closing prices, with the test period shaded when test_start is given"""
    fig, ax = plt.subplots()
    ax.plot(df['ds'], df['y'], color='steelblue', linewidth=1)

    if test_start is not None:
        ax.axvspan(test_start, df['ds'].max(), color='orange', alpha=0.15, label='test period')
        ax.legend()

    uid = df['unique_id'].iloc[0] if 'unique_id' in df.columns and len(df) else ''
    ax.set_title(title or f'{uid} closing price')
    ax.set_xlabel('Date')
    ax.set_ylabel('Price')
    return _finish(fig, output_path)


def plot_regression_fit(
    df: pd.DataFrame,
    predictions: Dict[str, np.ndarray],
    target: str = 'y',
    test_start: Optional[pd.Timestamp] = None,
    output_path: Optional[Path] = None,
):
    """Actual target vs one or more fitted curves over time"""
    fig, ax = plt.subplots()
    ax.plot(df['ds'], df[target], color='grey', linewidth=1, label='actual')

    for name, values in predictions.items():
        ax.plot(df['ds'], values, linewidth=2, label=name)

    if test_start is not None:
        ax.axvline(test_start, color='red', linestyle='--', label='train/test split')

    ax.set_title(f'{target}: fitted vs actual')
    ax.set_xlabel('Date')
    ax.set_ylabel(target)
    ax.legend()
    return _finish(fig, output_path)


def plot_lag_scatter(
    df: pd.DataFrame,
    y_col: str = 'y',
    lags: Iterable[int] = (1,),
    output_path: Optional[Path] = None,
):
    """y_t against y_{t-k} for each lag (columns from add_lag_features)"""
    lags = list(lags)
    fig, axes = plt.subplots(1, len(lags), figsize=(5 * len(lags), 5), squeeze=False)

    for ax, lag in zip(axes[0], lags):
        col = f'{y_col}_lag_{lag}'
        ax.scatter(df[col], df[y_col], s=4, alpha=0.4)
        ax.set_xlabel(col)
        ax.set_ylabel(y_col)
        ax.set_title(f'lag {lag}: corr={df[[col, y_col]].corr().iloc[0, 1]:.3f}')

    return _finish(fig, output_path)


def plot_degree_scores(scores: pd.DataFrame, output_path: Optional[Path] = None):
    """Cross-validated RMSE by polynomial degree"""
    ordered = scores.sort_values('degree')
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.errorbar(ordered['degree'], ordered['rmse_mean'], yerr=ordered['rmse_std'],
                marker='o', capsize=4)
    ax.set_xlabel('Polynomial degree')
    ax.set_ylabel('CV RMSE')
    ax.set_title('TimeSeriesSplit cross-validation by degree')
    ax.set_xticks(ordered['degree'])
    return _finish(fig, output_path)


def plot_acf_pacf(series, lags: int = 40, output_path: Optional[Path] = None):
    """Autocorrelation and partial autocorrelation side by side"""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    values = np.asarray(series, dtype=float)
    plot_acf(values, lags=lags, ax=axes[0])
    plot_pacf(values, lags=lags, ax=axes[1], method='ywm')
    return _finish(fig, output_path)


def plot_forecast(
    history: pd.DataFrame,
    forecast: pd.DataFrame,
    actual: Optional[pd.DataFrame] = None,
    mean_col: str = 'mean',
    lower_col: str = 'lower',
    upper_col: str = 'upper',
    history_tail: int = 250,
    title: str = 'ARIMA forecast',
    output_path: Optional[Path] = None,
):
    """Recent history, forecast mean with interval band, and held-out actuals"""
    fig, ax = plt.subplots()
    recent = history.tail(history_tail)
    ax.plot(recent['ds'], recent['y'], color='steelblue', linewidth=1, label='history')

    if actual is not None and len(actual):
        ax.plot(actual['ds'], actual['y'], color='black', linewidth=1, label='actual')

    ax.plot(forecast['ds'], forecast[mean_col], color='red', linewidth=2, label='forecast')
    if lower_col in forecast.columns and upper_col in forecast.columns:
        ax.fill_between(forecast['ds'], forecast[lower_col], forecast[upper_col],
                        color='red', alpha=0.2, label='prediction interval')

    ax.set_title(title)
    ax.set_xlabel('Date')
    ax.set_ylabel('Price')
    ax.legend()
    return _finish(fig, output_path)


def plot_residuals(residuals, lags: int = 40, output_path: Optional[Path] = None):
    """Residuals over time, their histogram and ACF"""
    residuals = np.asarray(residuals, dtype=float)
    fig, axes = plt.subplots(1, 3, figsize=(16, 4))

    axes[0].plot(residuals, linewidth=0.8)
    axes[0].axhline(0, color='black', linewidth=0.8)
    axes[0].set_title('Residuals')

    axes[1].hist(residuals, bins=50, color='steelblue')
    axes[1].set_title('Residual distribution')

    plot_acf(residuals, lags=min(lags, len(residuals) // 2 - 1), ax=axes[2])
    axes[2].set_title('Residual ACF')
    return _finish(fig, output_path)


def plot_cv_scores(cv_table: pd.DataFrame, output_path: Optional[Path] = None):
    """Best cross-validated score per model with its fold standard deviation"""
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.bar(cv_table['model_name'], cv_table['cv_mean'], yerr=cv_table['cv_std'],
           capsize=6, color='steelblue')
    ax.set_ylabel('CV ROC AUC')
    ax.set_ylim(0.5, 1.0)
    ax.set_title('Cross-validated AUC by model')
    return _finish(fig, output_path)


def plot_roc_curves(roc_results: Dict, output_path: Optional[Path] = None):
    """Overlaid ROC curves with AUC in the legend"""
    fig, ax = plt.subplots(figsize=(7, 7))
    for name, result in roc_results.items():
        ax.plot(result.fpr, result.tpr, linewidth=2, label=f'{name} (AUC={result.auc:.3f})')

    ax.plot([0, 1], [0, 1], color='grey', linestyle='--', label='chance')
    ax.set_xlabel('False positive rate (1 - specificity)')
    ax.set_ylabel('True positive rate (sensitivity)')
    ax.set_title('ROC curves on the test set')
    ax.legend(loc='lower right')
    return _finish(fig, output_path)
