"""
Data loading modules for growth-rate expression analysis.

This module provides loaders that handle:
- The published wide expression table (local file or URL)
- The gene-set annotation table derived from it
"""

from .annotations import AnnotationLoader
from .base import DataLoader
from .expression import ExpressionDataLoader

__all__ = ["DataLoader", "ExpressionDataLoader", "AnnotationLoader"]
