"""
Downstream analysis of the tidy model table.
"""

from .significance import (
    adjust_pvalues,
    join_expression,
    significant_genes,
    split_gene_key,
    top_by_effect,
)

__all__ = [
    "adjust_pvalues",
    "join_expression",
    "significant_genes",
    "split_gene_key",
    "top_by_effect",
]
