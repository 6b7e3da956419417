"""
Linear models and tidiers for growth-rate expression analysis.
"""

from .ebayes import fit_f_dist, squeeze_var, trigamma_inverse
from .linear_model import LinearModelFit, ModeratedLinearModel
from .tidiers import TIDY_COLUMNS, glance_fit, tidy_fit

__all__ = [
    "LinearModelFit",
    "ModeratedLinearModel",
    "TIDY_COLUMNS",
    "fit_f_dist",
    "glance_fit",
    "squeeze_var",
    "tidy_fit",
    "trigamma_inverse",
]
