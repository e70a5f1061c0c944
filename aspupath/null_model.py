# File: aspupath/null_model.py
# Location: aspupath/aspupath/null_model.py
"""
Covariate-adjusted score vectors for the SPU statistics.

Without covariates the score of predictor j is ``X[:, j]ᵀ (Y - mean(Y))``.

With covariates two kinds of fit are made, both against ``[1, covariates]``:

- the trait model, a statsmodels GLM of Y (Binomial for binary traits,
  Gaussian for continuous ones) whose fitted values ``p̂`` replace the mean;
- one OLS fit per predictor column, whose residuals replace the column.

The score is then ``Rᵀ (Y - p̂)``. Only the phenotype changes between
permutation replicates, so ``build_score_model`` runs every fit exactly once
and ``ScoreModel.score`` recomputes just the outcome residual. Permutation
replicates must never refit these models.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger("aspupath")


def _design_matrix(covariates: np.ndarray) -> np.ndarray:
    import statsmodels.api as sm

    return sm.add_constant(covariates, prepend=True, has_constant="add")


def has_covariates(covariates: np.ndarray | None) -> bool:
    """True when *covariates* is a non-empty 2-D matrix."""
    return covariates is not None and covariates.ndim == 2 and covariates.shape[1] > 0


def fit_trait_model(
    phenotype: np.ndarray,
    covariates: np.ndarray,
    trait_kind: str,
) -> np.ndarray:
    """
    Fit the phenotype on covariates and return the fitted values.

    Parameters
    ----------
    phenotype : np.ndarray, shape (n_samples,)
    covariates : np.ndarray, shape (n_samples, k)
        No intercept column; one is added.
    trait_kind : str
        ``"binary"`` -> Binomial GLM (logit link);
        ``"continuous"`` -> Gaussian GLM (identity link).

    Returns
    -------
    np.ndarray, shape (n_samples,)
        Fitted mean ``p̂`` per subject.
    """
    import statsmodels.api as sm

    family = sm.families.Binomial() if trait_kind == "binary" else sm.families.Gaussian()
    fit_result = sm.GLM(phenotype, _design_matrix(covariates), family=family).fit()
    fitted = np.asarray(fit_result.fittedvalues, dtype=np.float64)
    logger.debug(
        f"Trait model fit: trait_kind={trait_kind}, n_samples={len(phenotype)}, "
        f"mean fitted={fitted.mean():.6f}"
    )
    return fitted


def residualize_predictors(predictors: np.ndarray, covariates: np.ndarray) -> np.ndarray:
    """
    Regress every predictor column on ``[1, covariates]`` and return the residuals.

    Each column gets its own OLS fit (identity link). The result does not
    depend on the phenotype.
    """
    import statsmodels.api as sm

    design = _design_matrix(covariates)
    residuals = np.empty_like(predictors, dtype=np.float64)
    for j in range(predictors.shape[1]):
        fit_result = sm.OLS(predictors[:, j], design).fit()
        residuals[:, j] = predictors[:, j] - np.asarray(fit_result.fittedvalues)
    return residuals


@dataclass
class ScoreModel:
    """
    Phenotype-independent half of the score computation.

    Fields
    ------
    predictors : np.ndarray, shape (n_samples, n_units)
        Gene-ordered (possibly PCA-reduced) predictors, residualized on the
        covariates when covariates are present.
    fitted : np.ndarray | None, shape (n_samples,)
        Trait-model fitted values ``p̂``; None when there are no covariates.
    trait_kind : str
        ``"binary"`` or ``"continuous"``.
    """

    predictors: np.ndarray
    fitted: np.ndarray | None
    trait_kind: str

    @property
    def n_units(self) -> int:
        return int(self.predictors.shape[1])

    def residuals(self, phenotype: np.ndarray) -> np.ndarray:
        """Outcome residual: ``Y - mean(Y)`` or ``Y - p̂``."""
        if self.fitted is None:
            return phenotype - phenotype.mean()
        return phenotype - self.fitted

    def score(self, phenotype: np.ndarray) -> np.ndarray:
        """Score vector ``Rᵀ r`` for one (observed or permuted) phenotype."""
        return self.predictors.T @ self.residuals(np.asarray(phenotype, dtype=np.float64))


def build_score_model(
    phenotype: np.ndarray,
    predictors: np.ndarray,
    covariates: np.ndarray | None,
    trait_kind: str,
) -> ScoreModel:
    """
    Run every phenotype-independent fit once and return a ScoreModel.

    Parameters
    ----------
    phenotype : np.ndarray, shape (n_samples,)
        Observed phenotype. Used for the trait model only.
    predictors : np.ndarray, shape (n_samples, n_units)
        Gene-ordered predictors (after optional PCA reduction).
    covariates : np.ndarray | None, shape (n_samples, k)
    trait_kind : str

    Returns
    -------
    ScoreModel
    """
    predictors = np.asarray(predictors, dtype=np.float64)
    if not has_covariates(covariates):
        return ScoreModel(predictors=predictors, fitted=None, trait_kind=trait_kind)

    if covariates.shape[1] >= 2:
        cond_num = np.linalg.cond(covariates)
        if cond_num > 1000:
            logger.warning(
                "High multicollinearity in covariate matrix "
                "(condition number: %.1f). Results may be unreliable.",
                cond_num,
            )

    fitted = fit_trait_model(phenotype, covariates, trait_kind)
    residual_predictors = residualize_predictors(predictors, covariates)
    logger.debug(
        f"Residualized {predictors.shape[1]} predictor columns on {covariates.shape[1]} covariates"
    )
    return ScoreModel(predictors=residual_predictors, fitted=fitted, trait_kind=trait_kind)
