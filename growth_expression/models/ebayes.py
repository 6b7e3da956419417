"""
Empirical Bayes moderation of per-gene residual variances.

The residual variances of many genes are modelled as draws from a scaled
inverse-chi-square prior. Fitting that prior by the method of moments on
``log(s2)`` and combining it with each gene's own estimate gives posterior
variances that borrow strength across genes (Smyth, 2004).
"""

import logging
from typing import Tuple, Union

import numpy as np
from scipy.special import digamma, polygamma

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


def trigamma_inverse(x: ArrayLike, tol: float = 1e-8, max_iter: int = 50) -> np.ndarray:
    """
    Solve ``trigamma(y) = x`` for ``y`` by Newton iteration.

    Args:
        x: Positive target value(s)
        tol: Relative convergence tolerance
        max_iter: Maximum number of Newton steps

    Returns:
        Array of solutions with the shape of ``x``
    """
    x = np.atleast_1d(np.asarray(x, dtype=float))
    y = np.full_like(x, np.nan)

    if np.any(x <= 0):
        raise ValueError("trigamma_inverse requires positive input")

    # Asymptotic regimes where Newton is unnecessary
    large = x > 1e7
    small = x < 1e-6
    y[large] = 1.0 / np.sqrt(x[large])
    y[small] = 1.0 / x[small]

    todo = ~(large | small)
    if todo.any():
        xt = x[todo]
        yt = 0.5 + 1.0 / xt
        for _ in range(max_iter):
            tri = polygamma(1, yt)
            step = tri * (1.0 - tri / xt) / polygamma(2, yt)
            yt = yt + step
            if np.max(-step / yt) < tol:
                break
        else:
            logger.warning("trigamma_inverse: iteration limit exceeded")
        y[todo] = yt

    return y


def fit_f_dist(x: np.ndarray, df1: ArrayLike) -> Tuple[float, float]:
    """
    Moment estimation of the scaled F distribution for sample variances.

    Args:
        x: Sample variances, one per gene
        df1: Residual degrees of freedom of each variance

    Returns:
        Tuple of (scale, df2): the prior variance ``s0^2`` and the prior
        degrees of freedom ``d0``. ``d0`` is infinite when the variances are
        no more dispersed than sampling error alone would explain.
    """
    x = np.asarray(x, dtype=float)
    df1 = np.broadcast_to(np.asarray(df1, dtype=float), x.shape)

    ok = np.isfinite(x) & np.isfinite(df1) & (df1 > 1e-15)
    n = int(ok.sum())
    if n == 0:
        return np.nan, np.nan
    if n == 1:
        return float(x[ok][0]), 0.0

    x = np.maximum(x[ok], 0.0)
    df1 = df1[ok]

    m = np.median(x)
    if m == 0:
        logger.warning("More than half of residual variances are exactly zero: eBayes unreliable")
        m = 1.0
    elif np.any(x == 0):
        logger.warning("Zero sample variances detected, have been offset away from zero")
    x = np.maximum(x, 1e-5 * m)

    z = np.log(x)
    e = z - digamma(df1 / 2) + np.log(df1 / 2)
    emean = e.mean()
    evar = np.sum((e - emean) ** 2) / (n - 1)
    evar = evar - np.mean(polygamma(1, df1 / 2))

    if evar > 0:
        df2 = 2 * trigamma_inverse(evar)[0]
        s20 = np.exp(emean + digamma(df2 / 2) - np.log(df2 / 2))
    else:
        df2 = np.inf
        # No-covariate branch of limma fitFDist: pooled variance is the MLE
        # of the scale when d0 is infinite
        s20 = np.mean(x)

    return float(s20), float(df2)


def squeeze_var(var: np.ndarray, df: ArrayLike) -> Tuple[float, float, np.ndarray]:
    """
    Shrink sample variances toward the fitted prior.

    Args:
        var: Sample variances, one per gene
        df: Residual degrees of freedom

    Returns:
        Tuple of (var_prior, df_prior, var_post)
    """
    var = np.asarray(var, dtype=float)
    n = var.shape[0]
    if n == 0:
        return np.nan, np.nan, var.copy()
    if n == 1:
        return float(var[0]), 0.0, var.copy()

    var_prior, df_prior = fit_f_dist(var, df)
    df = np.broadcast_to(np.asarray(df, dtype=float), var.shape)

    if np.isinf(df_prior):
        var_post = np.full_like(var, var_prior)
    else:
        var_post = (df_prior * var_prior + df * var) / (df_prior + df)

    logger.debug(f"Variance prior: s0^2 = {var_prior:.4g}, d0 = {df_prior:.4g}")
    return var_prior, df_prior, var_post
