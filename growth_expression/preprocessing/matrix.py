"""
Pivot the long expression table into a gene-condition by growth-rate matrix.
"""

import logging
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

INTERCEPT = "(Intercept)"


class MatrixBuilder:
    """
    Build the numeric matrix and design vector for model fitting.

    Rows are keyed by ``<systematic_name><sep><nutrient>`` and columns by
    growth rate. ``split_key`` is the exact inverse of ``compose_key``.
    """

    def __init__(self, separator: str = "_"):
        """
        Initialize builder.

        Args:
            separator: String placed between systematic name and nutrient
        """
        if not separator:
            raise ValueError("Key separator must be a non-empty string")
        self.separator = separator

    def compose_key(
        self,
        systematic_name: pd.Series,
        nutrient: pd.Series
    ) -> pd.Series:
        """
        Join systematic names and nutrients into row keys.

        Raises:
            ValueError: If a nutrient contains the separator, since the key
                could then not be split back unambiguously
        """
        nutrient = nutrient.astype(str)
        clash = nutrient.str.contains(self.separator, regex=False)
        if clash.any():
            raise ValueError(
                f"Nutrient names contain the key separator {self.separator!r}: "
                f"{sorted(nutrient[clash].unique())}"
            )
        return systematic_name.astype(str) + self.separator + nutrient

    def split_key(self, keys: Iterable[str]) -> pd.DataFrame:
        """
        Split row keys back into ``systematic_name`` and ``nutrient``.

        The split happens on the last separator, so systematic names that
        themselves contain it are recovered intact.
        """
        keys = pd.Series(list(keys), dtype=object)
        if keys.empty:
            return pd.DataFrame(columns=["systematic_name", "nutrient"], dtype=object)

        unsplittable = ~keys.astype(str).str.contains(self.separator, regex=False)
        if unsplittable.any():
            raise ValueError(
                f"Keys without separator {self.separator!r}: "
                f"{keys[unsplittable].head().tolist()}"
            )

        parts = keys.astype(str).str.rsplit(self.separator, n=1, expand=True)
        parts.columns = ["systematic_name", "nutrient"]
        return parts

    def build(self, long_df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Pivot the long table into an expression matrix.

        Args:
            long_df: Cleaned long table with ``systematic_name``, ``nutrient``,
                ``rate`` and ``expression`` columns

        Returns:
            Tuple of (matrix, design) where ``matrix`` has one row per
            gene-nutrient key and one column per growth rate, and ``design``
            holds the growth rate of every column

        Raises:
            ValueError: On duplicate cells or gaps after pivoting
        """
        keyed = pd.DataFrame({
            "gene": self.compose_key(long_df["systematic_name"], long_df["nutrient"]),
            "rate": long_df["rate"].astype(float),
            "expression": long_df["expression"].astype(float),
        })

        duplicated = keyed.duplicated(["gene", "rate"], keep=False)
        if duplicated.any():
            raise ValueError(
                f"{int(duplicated.sum())} rows share a gene/rate cell, "
                f"e.g. {keyed.loc[duplicated, 'gene'].iloc[0]!r}"
            )

        matrix = keyed.pivot(index="gene", columns="rate", values="expression")
        matrix = matrix.sort_index(axis=1)
        matrix.columns.name = "rate"

        n_missing = int(matrix.isna().sum().sum())
        if n_missing:
            raise ValueError(
                f"Expression matrix has {n_missing} missing cells; "
                "every gene/nutrient group must cover every rate"
            )

        design = pd.Series(matrix.columns.to_numpy(dtype=float), name="rate")

        logger.info(
            f"Built expression matrix: {matrix.shape[0]} gene-nutrient rows "
            f"x {matrix.shape[1]} rates"
        )
        return matrix, design

    @staticmethod
    def design_matrix(design: pd.Series) -> pd.DataFrame:
        """Two-column design matrix ``[1, rate]`` for the linear model."""
        values = np.asarray(design, dtype=float)
        name = design.name if getattr(design, "name", None) else "rate"
        return pd.DataFrame({INTERCEPT: np.ones_like(values), name: values})
