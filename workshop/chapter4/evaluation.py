# file: workshop/chapter4/evaluation.py
"""
Chapter 4: Classification Evaluation

Confusion-matrix metrics at a decision threshold and the model leaderboard.
The toxicity classes are imbalanced, so sensitivity and specificity are
reported next to accuracy.
"""

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (accuracy_score, confusion_matrix, f1_score,
                             precision_score, recall_score)

from .pipelines import CVResult
from .roc import RocResult, positive_scores

logger = logging.getLogger(__name__)


def margin_cut(threshold: float) -> float:
    """Probability threshold as a cut on a decision_function margin (logit)"""
    t = float(np.clip(threshold, 1e-6, 1 - 1e-6))
    return float(np.log(t / (1 - t)))


def predict_labels(model, X, threshold: float = 0.5) -> np.ndarray:
    """
    Class predictions at a probability threshold.

    Models without predict_proba (the SVM) are cut on their margin at the
    logit of the threshold; 0.5 is the margin's own zero.
    """
    scores = positive_scores(model, X)
    if not hasattr(model, "predict_proba"):
        threshold = margin_cut(threshold)
        logger.debug(f"{type(model).__name__}: threshold applied as margin cut {threshold:.3f}")
    return (scores >= threshold).astype(int)


def classification_report_frame(model, X_test, y_test, threshold: float = 0.5) -> Dict:
    """
    Threshold metrics of a fitted classifier on test data.

    Returns:
        Dict with accuracy, sensitivity (recall of toxic), specificity,
        precision, f1 and the 2x2 confusion matrix as a DataFrame
    """
    y_true = np.asarray(y_test).astype(int)
    y_pred = predict_labels(model, X_test, threshold=threshold)

    matrix = confusion_matrix(y_true, y_pred, labels=[0, 1])
    tn, fp = matrix[0]
    specificity = tn / (tn + fp) if (tn + fp) else np.nan

    return {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "sensitivity": float(recall_score(y_true, y_pred, zero_division=0)),
        "specificity": float(specificity),
        "precision": float(precision_score(y_true, y_pred, zero_division=0)),
        "f1": float(f1_score(y_true, y_pred, zero_division=0)),
        "confusion_matrix": pd.DataFrame(
            matrix,
            index=["actual_negative", "actual_positive"],
            columns=["pred_negative", "pred_positive"],
        ),
    }


def leaderboard(
    cv_results: Dict[str, CVResult],
    roc_results: Dict[str, RocResult],
    reports: Optional[Dict[str, Dict]] = None,
) -> pd.DataFrame:
    """
    One row per model: CV score, test AUC and threshold metrics, ranked by test AUC
    """
    reports = reports or {}

    rows = []
    for name, cv_result in cv_results.items():
        row = {
            "model_name": name,
            "cv_mean": cv_result.mean_score,
            "cv_std": cv_result.std_score,
            "test_auc": roc_results[name].auc if name in roc_results else np.nan,
            "fit_time": cv_result.fit_time,
        }
        report = reports.get(name, {})
        for key in ("accuracy", "sensitivity", "specificity", "f1"):
            row[key] = report.get(key, np.nan)
        rows.append(row)

    if not rows:
        raise ValueError("No cross-validation results to rank")

    board = pd.DataFrame(rows).sort_values("test_auc", ascending=False, na_position="last")
    board["rank"] = np.arange(1, len(board) + 1)
    return board.reset_index(drop=True)
