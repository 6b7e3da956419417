"""
Preprocessing modules for growth-rate expression analysis.
"""

from .matrix import INTERCEPT, MatrixBuilder

__all__ = ["INTERCEPT", "MatrixBuilder"]
