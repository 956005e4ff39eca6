# file: workshop/tasks.py
"""
Headless lesson runners.

Each runner performs the same steps as its notebook, writes the artifacts
(parquet, json, png) under artifacts_dir/<lesson>/ and returns a flat
summary dict for the CLI table. Pass a prepared frame to skip the download.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd

from workshop import plotting
from workshop.chapter0 import assert_price_contract
from workshop.chapter1.config import (ArimaConfig, ClassificationConfig,
                                      RegressionConfig, WorkshopSettings)
from workshop.chapter1.ingest import load_fund_prices, load_toxicity
from workshop.chapter1.prepare import (add_lag_features, add_reldiff_lags,
                                       chronological_split, prepare_prices,
                                       prepare_toxicity, split_features_target,
                                       stratified_split)
from workshop.chapter1.validate import (print_validation_report,
                                        validate_toxicity_table)
from workshop.chapter2 import (LagRegression, TrendRegression,
                               compare_regressions, select_polynomial_degree)
from workshop.chapter3 import (BacktestPipeline, ForecastMetrics,
                               ModelSelector, auto_arima_forecast, fit_arima,
                               forecast_arima, residual_diagnostics,
                               select_arima_order, stationarity_test,
                               suggest_differencing)
from workshop.chapter4 import (classification_report_frame,
                               cross_validate_models, cv_results_frame,
                               leaderboard, roc_analysis)
from workshop.io_utils import write_lesson_artifacts

logger = logging.getLogger(__name__)


def load_prices(settings: WorkshopSettings) -> pd.DataFrame:
    """Cached provider query -> validated price frame"""
    raw = load_fund_prices(settings)
    prices = prepare_prices(raw, ticker=settings.ticker)
    assert_price_contract(prices)
    return prices


def run_regression_lesson(
    settings: WorkshopSettings,
    config: Optional[RegressionConfig] = None,
    prices: Optional[pd.DataFrame] = None,
) -> Dict:
    """
    Lesson 1: linear and polynomial regression on closing prices.
    """
    config = config or RegressionConfig(artifacts_dir=str(settings.artifacts_path() / "regression"))
    out = config.artifacts_path()

    if prices is None:
        prices = load_prices(settings)
    else:
        assert_price_contract(prices)

    logger.info(f"[regression] {len(prices)} rows for {prices['unique_id'].iloc[0]}")

    features = add_lag_features(prices, lags=config.lags)
    features = add_reldiff_lags(features, lags=config.reldiff_lags)
    train, test = chronological_split(features, test_size=config.test_size)

    scores = select_polynomial_degree(train, degrees=config.degrees, n_splits=config.cv_splits)
    best_degree = int(scores.loc[0, "degree"])

    models = [TrendRegression(degree=1)]
    if best_degree != 1:
        models.append(TrendRegression(degree=best_degree))
    models += [
        LagRegression(lags=config.lags, target="y"),
        LagRegression(lags=config.reldiff_lags, target="y_reldiff"),
    ]
    comparison = compare_regressions(models, train, test)

    write_lesson_artifacts(
        {config.degree_scores_path(): scores, out / "comparison.parquet": comparison},
        config.metrics_path(),
        {"best_degree": best_degree, "models": comparison.to_dict(orient="records")},
    )

    test_start = test["ds"].min()
    plotting.plot_price_history(features, test_start=test_start, output_path=out / "prices.png")
    plotting.plot_degree_scores(scores, output_path=out / "degree_scores.png")
    plotting.plot_regression_fit(
        features,
        {m.get_name(): m.predict(features) for m in models if m.target == "y"},
        test_start=test_start,
        output_path=out / "price_fits.png",
    )
    plotting.plot_lag_scatter(features, y_col="y_reldiff", lags=config.reldiff_lags[:3],
                              output_path=out / "reldiff_lags.png")

    price_models = comparison[comparison["target"] == "y"].reset_index(drop=True)
    return {
        "lesson": "regression",
        "rows": len(prices),
        "best_degree": best_degree,
        "best_price_model": price_models.loc[0, "model_name"],
        "best_price_test_rmse": round(float(price_models.loc[0, "test_rmse"]), 4),
        "artifacts": str(out),
    }


def run_arima_lesson(
    settings: WorkshopSettings,
    config: Optional[ArimaConfig] = None,
    prices: Optional[pd.DataFrame] = None,
) -> Dict:
    """
    Lesson 2: ARIMA order selection, forecast and backtest.
    """
    config = config or ArimaConfig(artifacts_dir=str(settings.artifacts_path() / "arima"))
    out = config.artifacts_path()

    if prices is None:
        prices = load_prices(settings)
    else:
        assert_price_contract(prices)

    train, test = chronological_split(prices, test_size=config.horizon)
    y_train = train["y"].to_numpy(dtype=float)
    y_test = test["y"].to_numpy(dtype=float)

    adf = stationarity_test(y_train, alpha=config.adf_alpha)
    d = suggest_differencing(y_train, max_d=max(config.d_values), alpha=config.adf_alpha)
    logger.info(f"[arima] ADF p={adf.p_value:.4f}, suggested d={d}")

    grid = select_arima_order(
        y_train,
        p_values=config.p_values,
        d_values=(d,),
        q_values=config.q_values,
        criterion=config.criterion,
    )
    best = grid.iloc[0]
    order = (int(best["p"]), int(best["d"]), int(best["q"]))

    fitted = fit_arima(y_train, order=order)
    forecast = forecast_arima(fitted, horizon=config.horizon,
                              confidence_level=config.confidence_level)
    forecast.insert(1, "ds", test["ds"].to_numpy())

    diagnostics = residual_diagnostics(fitted, lags=config.ljung_box_lags)

    metrics = ForecastMetrics.compute_all(
        y_test, forecast["mean"].to_numpy(), y_train, season_length=config.season_length
    )
    metrics["coverage"] = ForecastMetrics.coverage(
        y_test, forecast["lower"].to_numpy(), forecast["upper"].to_numpy()
    )

    auto_fc, auto_order = auto_arima_forecast(
        train,
        horizon=config.horizon,
        confidence_level=config.confidence_level,
        max_p=max(config.p_values),
        max_d=max(config.d_values),
        max_q=max(config.q_values),
        criterion=config.criterion,
        alpha=config.adf_alpha,
    )
    auto_rmse = ForecastMetrics.rmse(y_test, auto_fc["mean"].to_numpy(dtype=float))

    pipeline = BacktestPipeline(
        models=["naive", "drift", ("arima", {"order": order})],
        strategy=config.strategy,
        min_train_size=config.min_train_size,
        test_size=config.horizon,
        step_size=config.step_size,
        n_splits=config.n_splits,
        season_length=config.season_length,
    )
    backtest = pipeline.run(prices)
    board = ModelSelector(primary_metric="rmse").generate_leaderboard(backtest)

    write_lesson_artifacts(
        {
            config.order_grid_path(): grid,
            config.forecast_path(): forecast,
            config.backtest_path(): backtest,
            out / "leaderboard.parquet": board,
        },
        out / "summary.json",
        {
            "order": order,
            "auto_order": auto_order,
            "adf_p_value": adf.p_value,
            "suggested_d": d,
            "residuals_white": diagnostics["residuals_white"],
            "metrics": metrics,
            "auto_arima_rmse": auto_rmse,
        },
    )

    plotting.plot_acf_pacf(np.diff(y_train, n=max(d, 1)), output_path=out / "acf_pacf.png")
    plotting.plot_forecast(train, forecast, actual=test,
                           title=f"ARIMA{order} forecast, {config.confidence_level}% interval",
                           output_path=out / "forecast.png")
    plotting.plot_residuals(diagnostics["residuals"], output_path=out / "residuals.png")

    return {
        "lesson": "arima",
        "rows": len(prices),
        "order": str(order),
        "auto_order": str(auto_order),
        "suggested_d": d,
        "test_rmse": round(float(metrics["rmse"]), 4),
        "test_mase": round(float(metrics["mase"]), 4),
        "coverage_pct": round(float(metrics["coverage"]), 1),
        "residuals_white": diagnostics["residuals_white"],
        "backtest_winner": board.loc[0, "model_name"],
        "artifacts": str(out),
    }


def run_classification_lesson(
    settings: WorkshopSettings,
    config: Optional[ClassificationConfig] = None,
    raw: Optional[pd.DataFrame] = None,
) -> Dict:
    """
    Lesson 3: toxicity classification with cross-validation and ROC.
    """
    config = config or ClassificationConfig(
        n_jobs=settings.n_jobs,
        random_state=settings.random_state,
        artifacts_dir=str(settings.artifacts_path() / "classification"),
    )
    out = config.artifacts_path()

    if raw is None:
        raw = load_toxicity(settings)

    validation = validate_toxicity_table(raw)
    print_validation_report(validation)
    if not validation.is_valid:
        raise ValueError(
            f"Toxicity table failed validation: nulls={validation.n_nulls}, "
            f"non_binary={validation.n_non_binary}, classes={validation.class_counts}"
        )

    df = prepare_toxicity(raw)
    train, test = stratified_split(df, test_size=config.test_size, random_state=config.random_state)
    X_train, y_train = split_features_target(train)
    X_test, y_test = split_features_target(test)

    cv_results = cross_validate_models(X_train, y_train, models=config.models, config=config)

    roc_results, reports = {}, {}
    for name, result in cv_results.items():
        roc_results[name] = roc_analysis(result.best_estimator, X_test, y_test, model_name=name)
        reports[name] = classification_report_frame(
            result.best_estimator, X_test, y_test, threshold=config.decision_threshold
        )

    board = leaderboard(cv_results, roc_results, reports)

    write_lesson_artifacts(
        {config.cv_results_path(): cv_results_frame(cv_results), config.leaderboard_path(): board},
        out / "best_params.json",
        {name: result.info for name, result in cv_results.items()},
    )

    plotting.plot_cv_scores(board, output_path=out / "cv_scores.png")
    plotting.plot_roc_curves(roc_results, output_path=out / "roc_curves.png")

    winner = board.iloc[0]
    return {
        "lesson": "classification",
        "rows": len(df),
        "train_rows": len(train),
        "test_rows": len(test),
        "best_model": winner["model_name"],
        "best_test_auc": round(float(winner["test_auc"]), 4),
        "best_cv_auc": round(float(winner["cv_mean"]), 4),
        "artifacts": str(out),
    }


def run_all_lessons(settings: WorkshopSettings) -> Dict:
    """All three lessons; the price download is shared"""
    prices = load_prices(settings)
    results = {}
    for key, value in run_regression_lesson(settings, prices=prices).items():
        results[f"regression.{key}"] = value
    for key, value in run_arima_lesson(settings, prices=prices).items():
        results[f"arima.{key}"] = value
    for key, value in run_classification_lesson(settings).items():
        results[f"classification.{key}"] = value
    return results
