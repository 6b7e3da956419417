"""
Gene-wise linear models with empirical Bayes moderated statistics.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.linear_model import LinearRegression

from ..preprocessing.matrix import INTERCEPT, MatrixBuilder
from .ebayes import squeeze_var

logger = logging.getLogger(__name__)


@dataclass
class LinearModelFit:
    """
    Fitted-model bundle: one row per gene, one column per model term.

    Per-gene arrays have shape ``(n_genes,)``; per-coefficient arrays have
    shape ``(n_genes, n_terms)``.
    """

    genes: pd.Index
    terms: List[str]
    design: pd.DataFrame
    coefficients: np.ndarray
    stdev_unscaled: np.ndarray
    sigma: np.ndarray
    df_residual: np.ndarray
    cov_unscaled: np.ndarray
    intercept_term: str = INTERCEPT
    s2_prior: float = np.nan
    df_prior: float = np.nan
    s2_post: np.ndarray = field(default_factory=lambda: np.empty(0))
    df_total: np.ndarray = field(default_factory=lambda: np.empty(0))
    t: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    p_value: np.ndarray = field(default_factory=lambda: np.empty((0, 0)))
    F: np.ndarray = field(default_factory=lambda: np.empty(0))
    F_p_value: np.ndarray = field(default_factory=lambda: np.empty(0))

    @property
    def n_genes(self) -> int:
        return len(self.genes)

    @property
    def std_error(self) -> np.ndarray:
        """Moderated standard errors of the coefficients."""
        return self.stdev_unscaled * np.sqrt(self.s2_post)[:, None]

    def coefficient_table(self, values: str = "coefficients") -> pd.DataFrame:
        """One of the per-coefficient arrays as a genes x terms DataFrame."""
        data = self.std_error if values == "std_error" else getattr(self, values)
        return pd.DataFrame(data, index=self.genes, columns=self.terms)


class ModeratedLinearModel(BaseEstimator):
    """
    Fit ``expression ~ rate`` for every row of an expression matrix.

    All rows share one design matrix, so the least-squares fit is done once
    as a multi-output regression. Residual variances are then moderated with
    empirical Bayes before computing t statistics and p-values.
    """

    def __init__(self, intercept_name: str = INTERCEPT):
        """
        Initialize model.

        Args:
            intercept_name: Name used for the intercept term
        """
        self.intercept_name = intercept_name
        self.regressor_ = None
        self.fit_ = None

    def fit(self, expression: pd.DataFrame, design: pd.Series) -> "ModeratedLinearModel":
        """
        Fit the moderated linear model.

        Args:
            expression: Matrix with genes as rows and samples as columns
            design: Covariate value of every column, in column order

        Returns:
            Self
        """
        design_df = MatrixBuilder.design_matrix(design)
        design_df = design_df.rename(columns={INTERCEPT: self.intercept_name})
        X = design_df.to_numpy(dtype=float)
        Y = expression.to_numpy(dtype=float)

        n_obs, n_terms = X.shape
        if Y.shape[1] != n_obs:
            raise ValueError(
                f"Design has {n_obs} values but matrix has {Y.shape[1]} columns"
            )
        if n_obs <= n_terms:
            raise ValueError(
                f"Need more than {n_terms} samples per gene to estimate residual variance"
            )
        if np.linalg.matrix_rank(X) < n_terms:
            raise ValueError("Design matrix is rank deficient")
        if np.isnan(Y).any():
            raise ValueError("Expression matrix contains missing values")

        n_genes = Y.shape[0]
        df_residual = n_obs - n_terms
        cov_unscaled = np.linalg.inv(X.T @ X)

        if n_genes:
            self.regressor_ = LinearRegression(fit_intercept=False)
            self.regressor_.fit(X, Y.T)
            coefficients = np.atleast_2d(self.regressor_.coef_)
            residuals = Y.T - self.regressor_.predict(X).reshape(n_obs, n_genes)
            s2 = np.sum(residuals ** 2, axis=0) / df_residual
        else:
            coefficients = np.empty((0, n_terms))
            s2 = np.empty(0)

        fit = LinearModelFit(
            genes=pd.Index(expression.index, name="gene"),
            terms=list(design_df.columns),
            design=design_df,
            coefficients=coefficients,
            stdev_unscaled=np.tile(np.sqrt(np.diag(cov_unscaled)), (n_genes, 1)),
            sigma=np.sqrt(s2),
            df_residual=np.full(n_genes, float(df_residual)),
            cov_unscaled=cov_unscaled,
            intercept_term=self.intercept_name,
        )
        self.fit_ = self._moderate(fit)

        logger.info(
            f"Fitted {n_genes} linear models with {n_terms} terms; "
            f"prior df = {self.fit_.df_prior:.3g}"
        )
        return self

    def _moderate(self, fit: LinearModelFit) -> LinearModelFit:
        """Apply empirical Bayes shrinkage and compute moderated statistics."""
        s2 = fit.sigma ** 2
        s2_prior, df_prior, s2_post = squeeze_var(s2, fit.df_residual)

        df_pooled = float(np.sum(fit.df_residual))
        df_total = np.minimum(fit.df_residual + df_prior, df_pooled)

        t = fit.coefficients / fit.stdev_unscaled / np.sqrt(s2_post)[:, None]
        p_value = 2 * stats.t.sf(np.abs(t), df_total[:, None])

        F, F_p_value = self._moderated_f(fit, t, df_total)

        fit.s2_prior = s2_prior
        fit.df_prior = df_prior
        fit.s2_post = s2_post
        fit.df_total = df_total
        fit.t = t
        fit.p_value = p_value
        fit.F = F
        fit.F_p_value = F_p_value
        return fit

    def _moderated_f(self, fit: LinearModelFit, t: np.ndarray, df_total: np.ndarray):
        """Moderated F statistic over all terms except the intercept."""
        idx = [i for i, term in enumerate(fit.terms) if term != self.intercept_name]
        q = len(idx)

        cov = fit.cov_unscaled[np.ix_(idx, idx)]
        sd = np.sqrt(np.diag(cov))
        cor = cov / np.outer(sd, sd)

        tq = t[:, idx]
        F = np.einsum("gi,ij,gj->g", tq, np.linalg.inv(cor), tq) / q
        F_p_value = stats.f.sf(F, q, df_total)
        return F, F_p_value

    def get_fit(self) -> LinearModelFit:
        """Get the fitted-model bundle."""
        if self.fit_ is None:
            raise RuntimeError("Model has not been fitted yet")
        return self.fit_

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        """Get parameters for this estimator."""
        return {"intercept_name": self.intercept_name}

    def set_params(self, **params) -> "ModeratedLinearModel":
        """Set parameters for this estimator."""
        for key, value in params.items():
            setattr(self, key, value)
        return self
