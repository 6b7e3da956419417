"""
Significance, ranking and joins on the tidy model table.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd
from statsmodels.stats.multitest import multipletests

from ..preprocessing.matrix import MatrixBuilder

logger = logging.getLogger(__name__)

GroupKeys = Optional[Union[str, Sequence[str]]]


def _as_list(by: GroupKeys):
    if by is None:
        return []
    if isinstance(by, str):
        return [by]
    return list(by)


def split_gene_key(td: pd.DataFrame, separator: str = "_") -> pd.DataFrame:
    """
    Add ``systematic_name`` and ``nutrient`` columns recovered from ``gene``.

    Args:
        td: Tidy table with a ``gene`` column of composite keys
        separator: Separator used when the keys were composed

    Returns:
        Copy of ``td`` with the two key columns inserted after ``gene``
    """
    parts = MatrixBuilder(separator).split_key(td["gene"])
    parts.index = td.index

    out = td.copy()
    position = out.columns.get_loc("gene") + 1
    out.insert(position, "systematic_name", parts["systematic_name"])
    out.insert(position + 1, "nutrient", parts["nutrient"])
    return out


def adjust_pvalues(
    td: pd.DataFrame,
    by: GroupKeys = ("term", "nutrient"),
    method: str = "fdr_bh",
    pvalue_col: str = "p.value",
    out_col: str = "fdr"
) -> pd.DataFrame:
    """
    Multiple-testing adjusted p-values, computed independently per group.

    Args:
        td: Tidy table with a p-value column
        by: Grouping column(s); None adjusts across the whole table
        method: Any method accepted by ``statsmodels`` ``multipletests``
        pvalue_col: Column holding raw p-values
        out_col: Name of the new column

    Returns:
        Copy of ``td`` with the adjusted p-values in ``out_col``
    """
    out = td.copy()
    out[out_col] = np.nan
    keys = _as_list(by)

    missing = [k for k in keys if k not in out.columns]
    if missing:
        raise ValueError(f"Cannot group by missing columns: {missing}")

    if out.empty:
        return out

    if keys:
        groups = list(out.groupby(keys, sort=False).indices.values())
    else:
        groups = [np.arange(len(out))]

    pvalues = out[pvalue_col].to_numpy(dtype=float)
    adjusted = np.full_like(pvalues, np.nan)
    for positions in groups:
        pvals = pvalues[positions]
        ok = ~np.isnan(pvals)
        if ok.any():
            adjusted[positions[ok]] = multipletests(pvals[ok], method=method)[1]
    out[out_col] = adjusted

    logger.info(
        f"Adjusted p-values ({method}) within "
        f"{len(groups) if keys else 1} group(s)"
    )
    return out


def top_by_effect(
    td: pd.DataFrame,
    n: int,
    by: GroupKeys = "nutrient",
    column: str = "estimate"
) -> pd.DataFrame:
    """
    The ``n`` rows with the largest absolute effect in each group.

    Ties keep their original row order, so at most ``n`` rows are returned
    per group, and fewer only when the group itself is smaller.

    Args:
        td: Tidy table
        n: Rows to keep per group
        by: Grouping column(s); None ranks the whole table
        column: Effect-size column to rank on

    Returns:
        Selected rows, ordered by group appearance then decreasing effect
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    keys = _as_list(by)
    group_ids = td.groupby(keys, sort=False).ngroup().to_numpy() if keys else 0
    ranked = td.assign(_abs_effect=td[column].abs().to_numpy(), _group=group_ids)

    # Two stable sorts: groups in order of first appearance, effects descending
    ranked = ranked.sort_values("_abs_effect", ascending=False, kind="mergesort")
    ranked = ranked.sort_values("_group", kind="mergesort")

    if keys:
        top = ranked.groupby(keys, sort=False).head(n)
    else:
        top = ranked.head(n)

    return top.drop(columns=["_abs_effect", "_group"])


def significant_genes(
    td: pd.DataFrame,
    fdr_threshold: float = 0.05,
    fdr_col: str = "fdr"
) -> pd.DataFrame:
    """Rows whose adjusted p-value is below the threshold."""
    if fdr_col not in td.columns:
        raise ValueError(f"Column '{fdr_col}' not found; run adjust_pvalues first")
    hits = td[td[fdr_col] < fdr_threshold].copy()
    logger.info(f"{len(hits)} of {len(td)} rows have {fdr_col} < {fdr_threshold}")
    return hits


def join_expression(
    hits: pd.DataFrame,
    long_df: pd.DataFrame,
    on: Sequence[str] = ("systematic_name", "nutrient")
) -> pd.DataFrame:
    """
    Attach replicate-level expression to selected model rows.

    Args:
        hits: Tidy rows with ``systematic_name`` and ``nutrient`` columns
        long_df: Cleaned long expression table
        on: Join keys

    Returns:
        Inner join with one row per hit per growth rate
    """
    on = list(on)
    right = long_df.drop(columns=[c for c in hits.columns if c in long_df.columns and c not in on])
    joined = hits.merge(right, on=on, how="inner")

    if joined["expression"].isna().any():
        raise ValueError("Joined table contains missing expression values")

    logger.info(f"Joined {len(hits)} model rows to {len(joined)} expression rows")
    return joined
