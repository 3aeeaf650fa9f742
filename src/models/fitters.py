"""Logistic regression fitters: full, backward stepwise (AIC/BIC) and LASSO."""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
import sklearn
import statsmodels.api as sm
from packaging.version import Version
from sklearn.exceptions import ConvergenceWarning as SklearnConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.model_selection import StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from src.config.constants import COVARIATE_COLUMNS, DEFAULT_RANDOM_SEED, TARGET_COLUMN
from src.exceptions import FittingError

logger = logging.getLogger(__name__)


# Release segment only, so 1.8.0rc1 counts as 1.8
L1_RATIO_ONLY = Version(sklearn.__version__).release[:2] >= (1, 8)


@dataclass(frozen=True)
class FittedModel:
    """Logistic model as an intercept plus weights on raw covariates.

    Attributes:
        name: Estimator name (one of MODEL_NAMES)
        covariates: Candidate covariates the estimator was given
        coefficients: Covariate -> weight; covariates absent or at exactly
            zero are excluded from the model
        intercept: Intercept on the logit scale
        metadata: Estimator-specific details (criterion, trace, lambda path)
    """

    name: str
    covariates: tuple
    coefficients: Dict[str, float]
    intercept: float
    metadata: Dict = field(default_factory=dict)

    @property
    def selected_covariates(self) -> List[str]:
        return [c for c in self.covariates if self.coefficients.get(c, 0.0) != 0.0]

    def linear_predictor(self, df: pd.DataFrame) -> np.ndarray:
        eta = np.full(len(df), self.intercept, dtype=float)
        selected = self.selected_covariates
        if selected:
            weights = np.array([self.coefficients[c] for c in selected], dtype=float)
            eta = eta + df[selected].to_numpy(dtype=float) @ weights
        return eta

    def predict_proba(self, df: pd.DataFrame) -> np.ndarray:
        """Probability of Outcome = 1 for each row of df."""
        eta = self.linear_predictor(df)
        return np.exp(-np.logaddexp(0.0, -eta))

    def odds_ratios(self) -> Dict[str, float]:
        return {c: float(np.exp(self.coefficients[c])) for c in self.selected_covariates}

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "intercept": float(self.intercept),
            "coefficients": {c: float(self.coefficients[c]) for c in self.selected_covariates},
        }


def _design_matrix(df: pd.DataFrame, covariates: Sequence[str]) -> pd.DataFrame:
    X = df[list(covariates)].astype(float)
    X.insert(0, "const", 1.0)
    return X


def _fit_logit(train: pd.DataFrame, covariates: Sequence[str], max_iter: int = 100):
    """Maximum-likelihood logistic fit with statsmodels.

    Args:
        train: Training records
        covariates: Covariates to include (may be empty for intercept only)
        max_iter: Newton iteration limit

    Returns:
        statsmodels results object

    Raises:
        FittingError: On non-convergence, perfect separation or a singular Hessian
    """
    X = _design_matrix(train, covariates)
    y = train[TARGET_COLUMN].astype(float)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            warnings.simplefilter("error", PerfectSeparationWarning)
            result = sm.Logit(y, X).fit(disp=0, method="newton", maxiter=max_iter)
    except (
        ConvergenceWarning,
        PerfectSeparationError,
        PerfectSeparationWarning,
        np.linalg.LinAlgError,
    ) as e:
        raise FittingError(f"Logistic fit on {list(covariates)} failed: {e}") from e

    if not result.mle_retvals.get("converged", True):
        raise FittingError(f"Logistic fit on {list(covariates)} did not converge")

    return result


def information_criterion(result, penalty: float) -> float:
    """-2 * log-likelihood + penalty * number of parameters (intercept included)."""
    return float(-2.0 * result.llf + penalty * len(result.params))


def _from_statsmodels(name: str, covariates: Sequence[str], result, metadata: Dict) -> FittedModel:
    params = result.params
    return FittedModel(
        name=name,
        covariates=tuple(covariates),
        coefficients={c: float(params[c]) for c in params.index if c != "const"},
        intercept=float(params["const"]),
        metadata=metadata,
    )


def fit_full_model(
    train: pd.DataFrame, covariates: Sequence[str] = COVARIATE_COLUMNS, max_iter: int = 100
) -> FittedModel:
    """Fit an unpenalized logistic regression on all given covariates.

    Args:
        train: Training records
        covariates: Covariates to include
        max_iter: Newton iteration limit

    Returns:
        FittedModel named "full"
    """
    result = _fit_logit(train, covariates, max_iter)
    n = len(train)

    metadata = {
        "log_likelihood": float(result.llf),
        "aic": information_criterion(result, 2.0),
        "bic": information_criterion(result, np.log(n)),
        "p_values": {c: float(p) for c, p in result.pvalues.items() if c != "const"},
    }

    logger.info(f"Full model: AIC={metadata['aic']:.2f}, BIC={metadata['bic']:.2f}")

    return _from_statsmodels("full", covariates, result, metadata)


def backward_eliminate(
    train: pd.DataFrame,
    covariates: Sequence[str],
    penalty: float,
    name: str,
    max_iter: int = 100,
) -> FittedModel:
    """Backward stepwise elimination on an information criterion.

    Starting from all covariates, drop at each step the covariate whose
    removal yields the lowest criterion, as long as that strictly improves on
    the current model. On equal criteria the earliest covariate in the given
    order is dropped.

    Args:
        train: Training records
        covariates: Starting covariate set, in tie-break order
        penalty: Per-parameter penalty (2 for AIC, ln(n) for BIC)
        name: Name of the resulting model
        max_iter: Newton iteration limit for each fit

    Returns:
        FittedModel on the surviving covariates
    """
    current = list(covariates)
    result = _fit_logit(train, current, max_iter)
    score = information_criterion(result, penalty)
    trace = [{"dropped": None, "criterion": score}]

    while current:
        best = None
        for candidate in current:
            remaining = [c for c in current if c != candidate]
            candidate_result = _fit_logit(train, remaining, max_iter)
            candidate_score = information_criterion(candidate_result, penalty)
            if candidate_score < score and (best is None or candidate_score < best[1]):
                best = (candidate, candidate_score, candidate_result, remaining)

        if best is None:
            break

        dropped, score, result, current = best
        trace.append({"dropped": dropped, "criterion": score})
        logger.debug(f"{name}: dropped {dropped} (criterion {score:.4f})")

    logger.info(f"{name}: kept {current} (criterion {score:.2f})")

    metadata = {"criterion": score, "penalty": float(penalty), "trace": trace}
    return _from_statsmodels(name, covariates, result, metadata)


def fit_aic_backward(
    train: pd.DataFrame, covariates: Sequence[str] = COVARIATE_COLUMNS, max_iter: int = 100
) -> FittedModel:
    return backward_eliminate(train, covariates, 2.0, "aic_backward", max_iter)


def fit_bic_backward(
    train: pd.DataFrame, covariates: Sequence[str] = COVARIATE_COLUMNS, max_iter: int = 100
) -> FittedModel:
    return backward_eliminate(train, covariates, float(np.log(len(train))), "bic_backward", max_iter)


def _l1_pipeline(max_iter: int, tol: float, seed: int) -> Pipeline:
    lr_common = dict(
        solver="saga",
        max_iter=max_iter,
        tol=tol,
        random_state=seed,
        warm_start=True,
    )

    # scikit-learn >=1.8 deprecates `penalty`; l1_ratio=1.0 selects the L1 penalty.
    if L1_RATIO_ONLY:
        classifier = LogisticRegression(l1_ratio=1.0, **lr_common)
    else:
        classifier = LogisticRegression(penalty="l1", **lr_common)

    return Pipeline([("scaler", StandardScaler()), ("classifier", classifier)])


def _fit_l1(model: Pipeline, X: np.ndarray, y: np.ndarray, lam: float) -> Pipeline:
    """Fit an L1 pipeline at penalty lam, raising FittingError if the solver stops early."""
    model.set_params(classifier__C=1.0 / (len(y) * lam))
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", SklearnConvergenceWarning)
            model.fit(X, y)
    except SklearnConvergenceWarning as e:
        raise FittingError(f"L1 logistic fit at lambda={lam:.4g} did not converge: {e}") from e
    return model


def lambda_path(X: np.ndarray, y: np.ndarray, n_lambdas: int = 50, lambda_min_ratio: float = 1e-3) -> np.ndarray:
    """Descending penalty grid on standardized covariates.

    The first value is the smallest penalty at which every coefficient is zero.

    Args:
        X: Raw covariate matrix
        y: Binary labels
        n_lambdas: Number of grid points
        lambda_min_ratio: Smallest penalty as a fraction of the largest

    Returns:
        Array of penalties, largest first
    """
    X_std = StandardScaler().fit_transform(X)
    lambda_max = np.max(np.abs(X_std.T @ (y - y.mean()))) / len(y)
    if not lambda_max > 0:
        raise FittingError("Covariates carry no signal: penalty path is degenerate")
    return np.geomspace(lambda_max, lambda_max * lambda_min_ratio, n_lambdas)


def fit_lasso_cv(
    train: pd.DataFrame,
    covariates: Sequence[str] = COVARIATE_COLUMNS,
    n_folds: int = 5,
    seed: int = DEFAULT_RANDOM_SEED,
    n_lambdas: int = 50,
    lambda_min_ratio: float = 1e-3,
    max_iter: int = 10000,
    tol: float = 1e-4,
) -> FittedModel:
    """L1-penalized logistic regression with penalty chosen by cross-validated AUC.

    A penalty path is scored by stratified k-fold AUC. The chosen penalty is
    the largest one whose mean AUC lies within one standard error of the best
    mean AUC. The model is then refit on all training rows at that penalty and
    its coefficients are mapped back to the raw covariate scale.

    Penalties follow the mean-loss convention, lambda = 1 / (C * n).

    Args:
        train: Training records
        covariates: Candidate covariates
        n_folds: Number of CV folds
        seed: Seed for fold assignment and the solver
        n_lambdas: Number of penalties on the path
        lambda_min_ratio: Smallest penalty as a fraction of the largest
        max_iter: Solver iteration limit
        tol: Solver tolerance

    Returns:
        FittedModel named "lasso"; covariates shrunk to zero are excluded

    Raises:
        FittingError: If any fold fit or the final refit does not converge
    """
    covariates = list(covariates)
    X = train[covariates].to_numpy(dtype=float)
    y = train[TARGET_COLUMN].to_numpy(dtype=int)

    lambdas = lambda_path(X, y, n_lambdas, lambda_min_ratio)

    folds = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=seed)
    fold_auc = np.empty((n_folds, len(lambdas)))

    for f, (train_idx, val_idx) in enumerate(folds.split(X, y)):
        model = _l1_pipeline(max_iter, tol, seed)
        for j, lam in enumerate(lambdas):
            _fit_l1(model, X[train_idx], y[train_idx], lam)
            fold_auc[f, j] = roc_auc_score(y[val_idx], model.predict_proba(X[val_idx])[:, 1])

    mean_auc = fold_auc.mean(axis=0)
    se_auc = fold_auc.std(axis=0, ddof=1) / np.sqrt(n_folds)

    best_idx = int(np.argmax(mean_auc))
    # Path is descending, so the lowest index within one SE is the largest penalty
    within_one_se = np.flatnonzero(mean_auc >= mean_auc[best_idx] - se_auc[best_idx])
    chosen_idx = int(within_one_se.min())
    chosen_lambda = float(lambdas[chosen_idx])

    final = _fit_l1(_l1_pipeline(max_iter, tol, seed), X, y, chosen_lambda)

    classifier = final.named_steps["classifier"]
    scaler = final.named_steps["scaler"]
    coef = classifier.coef_.ravel() / scaler.scale_
    intercept = float(classifier.intercept_[0] - np.sum(coef * scaler.mean_))

    metadata = {
        "lambda_1se": chosen_lambda,
        "lambda_min": float(lambdas[best_idx]),
        "cv_auc_1se": float(mean_auc[chosen_idx]),
        "cv_auc_max": float(mean_auc[best_idx]),
        "n_folds": n_folds,
        "lambdas": lambdas.tolist(),
        "cv_auc_mean": mean_auc.tolist(),
        "cv_auc_se": se_auc.tolist(),
    }

    fitted = FittedModel(
        name="lasso",
        covariates=tuple(covariates),
        coefficients={c: float(w) for c, w in zip(covariates, coef)},
        intercept=intercept,
        metadata=metadata,
    )

    logger.info(
        f"lasso: lambda_1se={chosen_lambda:.4g} (CV AUC {mean_auc[chosen_idx]:.4f}), "
        f"lambda_min={lambdas[best_idx]:.4g} (CV AUC {mean_auc[best_idx]:.4f}), "
        f"kept {fitted.selected_covariates}"
    )

    return fitted


def fit_candidate_models(
    train: pd.DataFrame,
    covariates: Sequence[str] = COVARIATE_COLUMNS,
    seed: int = DEFAULT_RANDOM_SEED,
    max_iter: int = 100,
    lasso_options: Dict = None,
) -> Dict[str, FittedModel]:
    """Fit the four candidate models in evaluation order.

    Args:
        train: Training records
        covariates: Candidate covariates
        seed: Seed for LASSO cross-validation
        max_iter: Newton iteration limit for the unpenalized fits
        lasso_options: Keyword overrides for fit_lasso_cv

    Returns:
        Ordered mapping of model name to FittedModel
    """
    lasso_options = lasso_options or {}

    return {
        "full": fit_full_model(train, covariates, max_iter),
        "aic_backward": fit_aic_backward(train, covariates, max_iter),
        "bic_backward": fit_bic_backward(train, covariates, max_iter),
        "lasso": fit_lasso_cv(train, covariates, seed=seed, **lasso_options),
    }
