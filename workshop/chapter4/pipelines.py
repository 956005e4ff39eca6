"""
Chapter 4: Classification Pipelines

Three classifiers for the toxicity fingerprints, each a scikit-learn
Pipeline so preprocessing is refit inside every cross-validation fold:
1. random_forest - VarianceThreshold + RandomForestClassifier
2. svm - VarianceThreshold + StandardScaler + SVC (RBF kernel)
3. elastic_net - VarianceThreshold + StandardScaler + LogisticRegression
   with an elastic-net penalty

cross_validate_models tunes each grid with GridSearchCV. The folds are
dispatched to the joblib worker pool registered by parallel_backend.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import parallel_backend
from sklearn.ensemble import RandomForestClassifier
from sklearn.feature_selection import VarianceThreshold
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import (GridSearchCV, RepeatedStratifiedKFold,
                                     StratifiedKFold)
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC

from workshop.chapter1.config import ClassificationConfig

logger = logging.getLogger(__name__)


@dataclass
class CVResult:
    """Cross-validated tuning result for one model"""
    model_name: str
    best_params: Dict[str, Any]
    mean_score: float
    std_score: float
    fit_time: float
    best_estimator: Pipeline
    scoring: str = "roc_auc"
    cv_table: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def info(self) -> Dict:
        return {
            "model_name": self.model_name,
            "scoring": self.scoring,
            "cv_mean": self.mean_score,
            "cv_std": self.std_score,
            "fit_time": self.fit_time,
            "best_params": {k: str(v) for k, v in self.best_params.items()},
        }


def _random_forest(random_state: int) -> Tuple[Pipeline, Dict[str, List]]:
    pipeline = Pipeline([
        ("nzv", VarianceThreshold()),
        ("clf", RandomForestClassifier(n_estimators=300, random_state=random_state, n_jobs=1)),
    ])
    grid = {
        "clf__max_features": ["sqrt", 0.1],
        "clf__min_samples_leaf": [1, 5],
    }
    return pipeline, grid


def _svm(random_state: int) -> Tuple[Pipeline, Dict[str, List]]:
    pipeline = Pipeline([
        ("nzv", VarianceThreshold()),
        ("scale", StandardScaler()),
        ("clf", SVC(kernel="rbf", random_state=random_state)),
    ])
    grid = {
        "clf__C": [0.1, 1.0, 10.0],
        "clf__gamma": ["scale"],
    }
    return pipeline, grid


def _elastic_net(random_state: int) -> Tuple[Pipeline, Dict[str, List]]:
    pipeline = Pipeline([
        ("nzv", VarianceThreshold()),
        ("scale", StandardScaler()),
        ("clf", LogisticRegression(
            penalty="elasticnet",
            solver="saga",
            max_iter=5000,
            random_state=random_state,
        )),
    ])
    grid = {
        "clf__C": [0.01, 0.1, 1.0],
        "clf__l1_ratio": [0.2, 0.5, 0.8],
    }
    return pipeline, grid


class ModelFactory:
    """Factory for classification pipelines and their tuning grids"""

    _models = {
        "random_forest": _random_forest,
        "svm": _svm,
        "elastic_net": _elastic_net,
    }

    @classmethod
    def create(cls, model_name: str, random_state: int = 42) -> Tuple[Pipeline, Dict[str, List]]:
        """(pipeline, param_grid) for model_name"""
        if model_name not in cls._models:
            raise ValueError(f"Unknown model: {model_name}")
        return cls._models[model_name](random_state)

    @classmethod
    def list_models(cls) -> List[str]:
        return list(cls._models.keys())


def build_cv(config: ClassificationConfig):
    """Stratified K-fold splitter (repeated when cv_repeats > 1)"""
    if config.cv_repeats > 1:
        return RepeatedStratifiedKFold(
            n_splits=config.cv_folds,
            n_repeats=config.cv_repeats,
            random_state=config.random_state,
        )
    return StratifiedKFold(n_splits=config.cv_folds, shuffle=True, random_state=config.random_state)


def cross_validate_models(
    X: pd.DataFrame,
    y: pd.Series,
    models: Optional[Sequence[str]] = None,
    config: Optional[ClassificationConfig] = None,
    param_grids: Optional[Dict[str, Dict[str, List]]] = None,
) -> Dict[str, CVResult]:
    """
    Tune every model with cross-validated grid search.

    Args:
        X: Feature matrix
        y: Boolean/binary target
        models: Model names (default: config.models)
        config: Resampling and worker-pool settings
        param_grids: Optional per-model grid overrides

    Returns:
        Dictionary mapping model name to CVResult (best estimator refit on X)
    """
    config = config or ClassificationConfig()
    models = list(models or config.models)
    param_grids = param_grids or {}

    y = np.asarray(y).astype(int)
    class_counts = np.bincount(y, minlength=2)
    if class_counts.min() < config.cv_folds:
        raise ValueError(
            f"Each class needs at least {config.cv_folds} rows for {config.cv_folds}-fold CV, "
            f"got counts {class_counts.tolist()}"
        )

    cv = build_cv(config)
    results = {}

    print(f"Cross-validating {len(models)} models: {', '.join(models)}")
    print(f"  Folds: {config.cv_folds} x {config.cv_repeats}, scoring={config.scoring}, "
          f"workers={config.n_jobs} ({config.backend})")

    with parallel_backend(config.backend, n_jobs=config.n_jobs):
        for name in models:
            pipeline, grid = ModelFactory.create(name, random_state=config.random_state)
            grid = param_grids.get(name, grid)

            search = GridSearchCV(
                pipeline,
                param_grid=grid,
                scoring=config.scoring,
                cv=cv,
                refit=True,
            )

            start_time = time.time()
            search.fit(X, y)
            fit_time = time.time() - start_time

            best = search.best_index_
            cv_table = pd.DataFrame(search.cv_results_)
            results[name] = CVResult(
                model_name=name,
                best_params=search.best_params_,
                mean_score=float(cv_table.loc[best, "mean_test_score"]),
                std_score=float(cv_table.loc[best, "std_test_score"]),
                fit_time=fit_time,
                best_estimator=search.best_estimator_,
                scoring=config.scoring,
                cv_table=cv_table,
            )

            logger.info(f"{name}: CV {config.scoring}={results[name].mean_score:.4f} "
                        f"+/- {results[name].std_score:.4f} ({fit_time:.1f}s)")
            print(f"  [OK] {name}: {config.scoring}={results[name].mean_score:.4f} "
                  f"best={search.best_params_}")

    return results


def cv_results_frame(cv_results: Dict[str, CVResult]) -> pd.DataFrame:
    """Every grid point of every model in one long table"""
    frames = []
    for name, result in cv_results.items():
        table = result.cv_table[["params", "mean_test_score", "std_test_score",
                                 "mean_fit_time", "rank_test_score"]].copy()
        table["params"] = table["params"].astype(str)
        table.insert(0, "model_name", name)
        frames.append(table)

    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)
