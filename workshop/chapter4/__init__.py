"""
Chapter 4: Toxicity Classification

- Pipelines: random forest, SVM, elastic-net logistic regression
- Cross-validated tuning on a parallel joblib worker pool
- ROC/AUC and threshold metrics on the held-out test set
"""

from .evaluation import (classification_report_frame, leaderboard,
                         margin_cut, predict_labels)
from .pipelines import (CVResult, ModelFactory, build_cv,
                        cross_validate_models, cv_results_frame)
from .roc import RocResult, positive_scores, roc_analysis

__all__ = [
    # Pipelines
    "CVResult",
    "ModelFactory",
    "build_cv",
    "cross_validate_models",
    "cv_results_frame",
    # ROC
    "RocResult",
    "positive_scores",
    "roc_analysis",
    # Evaluation
    "classification_report_frame",
    "predict_labels",
    "margin_cut",
    "leaderboard",
]
