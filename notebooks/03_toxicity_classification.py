# ---
# jupyter:
#   jupytext:
#     cell_metadata_filter: -all
#     formats: ipynb,py:percent
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.17.3
# ---

# %% [markdown]
# # Lesson 3: Classifying Oral Toxicity
#
# The QSAR oral toxicity dataset describes ~9000 molecules by 1024 binary
# fingerprint bits (is a given substructure present?) and labels each molecule
# as toxic ("positive") or not. We compare three classifiers:
#
# - random forest
# - support vector machine (RBF kernel)
# - elastic-net logistic regression
#
# Hyperparameters are tuned by stratified cross-validation on a pool of
# parallel workers, and the winners are judged by ROC/AUC on a held-out test set.

# %% [markdown]
# ## Setup

# %%
# %matplotlib inline
from workshop import plotting
from workshop.chapter1 import (ClassificationConfig, load_settings,
                               load_toxicity, prepare_toxicity,
                               print_validation_report, split_features_target,
                               stratified_split, validate_toxicity_table)
from workshop.chapter4 import (classification_report_frame,
                               cross_validate_models, cv_results_frame,
                               leaderboard, roc_analysis)

settings = load_settings()

# %% [markdown]
# ## Step 1: Download and inspect
#
# The dataset ships as a zipped, semicolon separated CSV without a header.

# %%
raw = load_toxicity(settings)
validation = validate_toxicity_table(raw)
print_validation_report(validation)

# %% [markdown]
# Only about 8% of molecules are toxic. Accuracy would reward a model that
# always answers "not toxic", which is why we score by ROC AUC and look at
# sensitivity and specificity separately.

# %%
df = prepare_toxicity(raw)
train, test = stratified_split(df, test_size=0.25, random_state=settings.random_state)
X_train, y_train = split_features_target(train)
X_test, y_test = split_features_target(test)
print(f"train: {y_train.mean():.1%} toxic, test: {y_test.mean():.1%} toxic")

# %% [markdown]
# ## Step 2: Cross-validate on a worker pool
#
# `cross_validate_models` registers a joblib worker pool (`n_jobs=-1` uses
# every core) and runs `GridSearchCV` inside it. Each pipeline drops constant
# fingerprint bits first; the SVM and elastic net also standardize.
#
# This is the slow cell: expect several minutes.

# %%
config = ClassificationConfig(n_jobs=settings.n_jobs, random_state=settings.random_state)
cv_results = cross_validate_models(X_train, y_train, config=config)

# %%
cv_results_frame(cv_results).sort_values(["model_name", "rank_test_score"])

# %% [markdown]
# ## Step 3: ROC on the test set

# %%
roc_results = {
    name: roc_analysis(result.best_estimator, X_test, y_test, model_name=name)
    for name, result in cv_results.items()
}
plotting.plot_roc_curves(roc_results)

# %% [markdown]
# ## Step 4: Metrics at a threshold
#
# The ROC curve covers every threshold. A deployed model needs one; at 0.5
# most models miss a large share of toxic molecules.

# %%
reports = {
    name: classification_report_frame(result.best_estimator, X_test, y_test, threshold=0.5)
    for name, result in cv_results.items()
}
reports["random_forest"]["confusion_matrix"]

# %%
best_rf = roc_results["random_forest"]
threshold = best_rf.youden_threshold
print(f"Youden threshold for the random forest: {threshold:.3f}")
classification_report_frame(cv_results["random_forest"].best_estimator, X_test, y_test,
                            threshold=threshold)

# %% [markdown]
# ## Step 5: Leaderboard

# %%
board = leaderboard(cv_results, roc_results, reports)
plotting.plot_cv_scores(board)
board

# %% [markdown]
# ## Takeaways
# - Cross-validated AUC and test AUC should agree; a large gap means the
#   tuning overfit the folds.
# - Threshold choice is a business decision (missing a toxic molecule costs
#   more than a false alarm), separate from model selection.
