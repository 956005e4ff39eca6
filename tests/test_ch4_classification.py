"""
Chapter 4: Classification Tests

Small synthetic fingerprint tables, mostly single-worker pools and reduced grids
keep these fast; the pipelines and resampling are the real ones.
"""

from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest
from joblib import parallel_backend
from sklearn.model_selection import RepeatedStratifiedKFold, StratifiedKFold

from workshop.chapter1 import (ClassificationConfig, prepare_toxicity,
                               split_features_target, stratified_split)
from workshop.chapter4 import (ModelFactory, RocResult, build_cv,
                               classification_report_frame,
                               cross_validate_models, cv_results_frame,
                               leaderboard, margin_cut, positive_scores,
                               predict_labels, roc_analysis)

SMALL_GRIDS = {
    "random_forest": {"clf__max_features": ["sqrt"], "clf__min_samples_leaf": [1, 5]},
    "svm": {"clf__C": [1.0], "clf__gamma": ["scale"]},
    "elastic_net": {"clf__C": [1.0], "clf__l1_ratio": [0.5]},
}


@pytest.fixture
def config(tmp_path):
    return ClassificationConfig(cv_folds=3, n_jobs=1, random_state=0,
                                artifacts_dir=str(tmp_path))


@pytest.fixture
def split(toxicity_raw):
    train, test = stratified_split(prepare_toxicity(toxicity_raw), test_size=0.25,
                                   random_state=0)
    X_train, y_train = split_features_target(train)
    X_test, y_test = split_features_target(test)
    return X_train, y_train, X_test, y_test


@pytest.fixture
def cv_results(split, config):
    X_train, y_train, _, _ = split
    return cross_validate_models(X_train, y_train, config=config, param_grids=SMALL_GRIDS)


class TestModelFactory:
    @pytest.mark.parametrize("name", ["random_forest", "svm", "elastic_net"])
    def test_pipelines_drop_constant_bits_first(self, name):
        pipeline, grid = ModelFactory.create(name, random_state=0)

        assert pipeline.steps[0][0] == "nzv"
        assert pipeline.steps[-1][0] == "clf"
        assert all(key.startswith("clf__") for key in grid)

    def test_elastic_net_penalty(self):
        pipeline, _ = ModelFactory.create("elastic_net")
        clf = pipeline.named_steps["clf"]

        assert clf.penalty == "elasticnet"
        assert clf.solver == "saga"

    @pytest.mark.fail_loud
    def test_unknown_model_raises(self):
        with pytest.raises(ValueError, match="Unknown model"):
            ModelFactory.create("xgboost")

    def test_build_cv(self):
        assert isinstance(build_cv(ClassificationConfig()), StratifiedKFold)
        assert isinstance(build_cv(ClassificationConfig(cv_repeats=2)), RepeatedStratifiedKFold)


@pytest.mark.smoke
class TestCrossValidation:
    def test_every_model_tuned(self, cv_results):
        assert set(cv_results) == {"random_forest", "svm", "elastic_net"}
        for result in cv_results.values():
            assert 0.0 <= result.mean_score <= 1.0
            assert result.scoring == "roc_auc"
            assert result.best_estimator is not None

    def test_informative_bits_are_learned(self, cv_results):
        assert cv_results["random_forest"].mean_score > 0.75

    def test_cv_table_has_every_grid_point(self, cv_results):
        table = cv_results_frame(cv_results)

        assert len(table[table["model_name"] == "random_forest"]) == 2
        assert len(table[table["model_name"] == "svm"]) == 1
        assert table["params"].map(type).eq(str).all()

    def test_info_is_serializable(self, cv_results):
        info = cv_results["elastic_net"].info
        assert set(info["best_params"]) == {"clf__C", "clf__l1_ratio"}
        assert all(isinstance(v, str) for v in info["best_params"].values())

    def test_two_worker_pool_matches_single_worker(self, split, cv_results, tmp_path):
        X_train, y_train, _, _ = split
        config = ClassificationConfig(cv_folds=3, n_jobs=2, backend="loky", random_state=0,
                                      artifacts_dir=str(tmp_path))

        with patch("workshop.chapter4.pipelines.parallel_backend",
                   wraps=parallel_backend) as backend:
            pooled = cross_validate_models(X_train, y_train, config=config,
                                           param_grids=SMALL_GRIDS)

        backend.assert_called_once_with("loky", n_jobs=2)
        for name, result in pooled.items():
            assert result.mean_score == pytest.approx(cv_results[name].mean_score)
            assert result.best_params == cv_results[name].best_params

    @pytest.mark.fail_loud
    def test_too_few_minority_rows_raises(self, config):
        X = pd.DataFrame(np.random.default_rng(0).integers(0, 2, (20, 5)))
        y = pd.Series([True] * 2 + [False] * 18)

        with pytest.raises(ValueError, match="at least 3 rows"):
            cross_validate_models(X, y, config=config)


@pytest.mark.smoke
class TestRocAndReports:
    def test_roc_for_every_model(self, cv_results, split):
        _, _, X_test, y_test = split

        for name, result in cv_results.items():
            roc = roc_analysis(result.best_estimator, X_test, y_test, model_name=name)
            assert isinstance(roc, RocResult)
            assert 0.0 <= roc.auc <= 1.0
            assert roc.fpr[0] == 0.0 and roc.tpr[-1] == 1.0

    def test_svm_scored_by_decision_function(self, cv_results, split):
        _, _, X_test, _ = split
        svm = cv_results["svm"].best_estimator

        assert not hasattr(svm, "predict_proba")
        scores = positive_scores(svm, X_test)
        assert scores.shape == (len(X_test),)

    def test_positive_scores_needs_a_score(self):
        with pytest.raises(TypeError):
            positive_scores(object(), np.zeros((2, 2)))

    @pytest.mark.fail_loud
    def test_single_class_roc_raises(self, cv_results, split):
        _, _, X_test, y_test = split
        with pytest.raises(ValueError, match="both classes"):
            roc_analysis(cv_results["random_forest"].best_estimator, X_test,
                         np.zeros(len(y_test)))

    def test_report_confusion_matrix(self, cv_results, split):
        _, _, X_test, y_test = split
        report = classification_report_frame(cv_results["random_forest"].best_estimator,
                                             X_test, y_test, threshold=0.5)

        matrix = report["confusion_matrix"]
        assert matrix.to_numpy().sum() == len(y_test)
        assert matrix.loc["actual_positive"].sum() == int(np.asarray(y_test).sum())
        for key in ("accuracy", "sensitivity", "specificity", "precision", "f1"):
            assert 0.0 <= report[key] <= 1.0

    def test_lower_threshold_raises_sensitivity(self, cv_results, split):
        _, _, X_test, y_test = split
        model = cv_results["random_forest"].best_estimator

        strict = classification_report_frame(model, X_test, y_test, threshold=0.9)
        lenient = classification_report_frame(model, X_test, y_test, threshold=0.1)
        assert lenient["sensitivity"] >= strict["sensitivity"]

    def test_margin_cut_is_logit(self):
        assert margin_cut(0.5) == 0.0
        assert margin_cut(0.9) == pytest.approx(np.log(9.0))
        assert margin_cut(0.1) == pytest.approx(-margin_cut(0.9))

    def test_svm_threshold_moves_margin_cut(self, cv_results, split):
        _, _, X_test, _ = split
        svm = cv_results["svm"].best_estimator
        margins = positive_scores(svm, X_test)

        default = predict_labels(svm, X_test, threshold=0.5)
        lenient = predict_labels(svm, X_test, threshold=0.05)
        strict = predict_labels(svm, X_test, threshold=0.95)

        assert default.tolist() == (margins >= 0).astype(int).tolist()
        assert lenient.sum() > strict.sum()

    def test_leaderboard_ranked_by_test_auc(self, cv_results, split):
        _, _, X_test, y_test = split
        rocs = {name: roc_analysis(r.best_estimator, X_test, y_test, model_name=name)
                for name, r in cv_results.items()}

        board = leaderboard(cv_results, rocs)

        assert board["test_auc"].is_monotonic_decreasing
        assert board["rank"].tolist() == [1, 2, 3]
        assert board["accuracy"].isna().all()

    @pytest.mark.fail_loud
    def test_empty_leaderboard_raises(self):
        with pytest.raises(ValueError, match="No cross-validation results"):
            leaderboard({}, {})
