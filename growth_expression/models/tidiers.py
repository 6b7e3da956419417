"""
Tidiers: turn a fitted-model bundle into row-oriented tables.
"""

import logging

import numpy as np
import pandas as pd

from .linear_model import LinearModelFit

logger = logging.getLogger(__name__)

TIDY_COLUMNS = ["gene", "term", "estimate", "std.error", "statistic", "p.value"]


def tidy_fit(fit: LinearModelFit, intercept: bool = False) -> pd.DataFrame:
    """
    One row per (gene, term) with standardized column names.

    Args:
        fit: Moderated fit from ``ModeratedLinearModel``
        intercept: Whether to keep the intercept term

    Returns:
        DataFrame with columns ``gene, term, estimate, std.error, statistic,
        p.value``, ordered by term (design order) then gene (matrix order)
    """
    std_error = fit.std_error
    genes = np.asarray(fit.genes, dtype=object)

    frames = []
    for j, term in enumerate(fit.terms):
        if term == fit.intercept_term and not intercept:
            continue
        frames.append(pd.DataFrame({
            "gene": genes,
            "term": np.repeat(term, len(genes)).astype(object),
            "estimate": fit.coefficients[:, j],
            "std.error": std_error[:, j],
            "statistic": fit.t[:, j],
            "p.value": fit.p_value[:, j],
        }))

    if frames:
        td = pd.concat(frames, ignore_index=True)
    else:
        td = pd.DataFrame({col: pd.Series(dtype=object if col in ("gene", "term") else float)
                           for col in TIDY_COLUMNS})

    logger.debug(f"Tidied fit into {len(td)} gene-term rows")
    return td[TIDY_COLUMNS]


def glance_fit(fit: LinearModelFit) -> pd.DataFrame:
    """One-row summary of the fit and its variance prior."""
    return pd.DataFrame([{
        "n_genes": fit.n_genes,
        "n_terms": len(fit.terms),
        "df_residual": float(fit.df_residual[0]) if fit.n_genes else np.nan,
        "df_prior": fit.df_prior,
        "s2_prior": fit.s2_prior,
    }])
