"""
Chapter 4: ROC / AUC on the held-out test set
"""

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import roc_auc_score, roc_curve


@dataclass
class RocResult:
    """ROC curve and area for one model"""
    model_name: str
    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    auc: float

    @property
    def youden_threshold(self) -> float:
        """Score threshold maximizing sensitivity + specificity - 1"""
        idx = int(np.argmax(self.tpr - self.fpr))
        return float(self.thresholds[idx])


def positive_scores(model, X) -> np.ndarray:
    """
    Score of the positive class: predict_proba where the model has it,
    decision_function otherwise (SVC without probability calibration).
    """
    if hasattr(model, "predict_proba"):
        return np.asarray(model.predict_proba(X))[:, 1]
    if hasattr(model, "decision_function"):
        return np.asarray(model.decision_function(X), dtype=float)
    raise TypeError(f"{type(model).__name__} has neither predict_proba nor decision_function")


def roc_analysis(model, X_test, y_test, model_name: str = "") -> RocResult:
    """
    ROC curve + AUC of a fitted classifier on test data.

    Raises:
        ValueError: test labels contain a single class (AUC undefined)
    """
    y_test = np.asarray(y_test).astype(int)
    if np.unique(y_test).size < 2:
        raise ValueError("ROC needs both classes in y_test")

    scores = positive_scores(model, X_test)
    fpr, tpr, thresholds = roc_curve(y_test, scores)

    return RocResult(
        model_name=model_name or type(model).__name__,
        fpr=fpr,
        tpr=tpr,
        thresholds=thresholds,
        auc=float(roc_auc_score(y_test, scores)),
    )
