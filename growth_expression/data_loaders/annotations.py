"""
Gene annotation (gene-set) loader.
"""

import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from .base import DataLoader

logger = logging.getLogger(__name__)

GENE_SET_COLUMNS = ["systematic_name", "BP", "MF"]


class AnnotationLoader(DataLoader):
    """
    Build and query the gene-set table.

    Each systematic name maps to one biological-process (BP) and one
    molecular-function (MF) annotation. The table is derived from the cleaned
    long data, or read back from a saved CSV.
    """

    def load(self, source: Union[str, Path], **kwargs) -> pd.DataFrame:
        """
        Load a saved gene-set table from CSV.

        Args:
            source: Path or URL of the gene-set CSV

        Returns:
            DataFrame with ``systematic_name, BP, MF`` columns
        """
        location = self._resolve_source(source)

        logger.info(f"Loading gene sets from {location}...")
        df = pd.read_csv(location, **kwargs)

        missing = [c for c in GENE_SET_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Gene-set table is missing columns: {missing}")

        logger.info(f"Loaded annotations for {len(df)} genes")
        return df[GENE_SET_COLUMNS]

    def gene_sets(self, long_df: pd.DataFrame) -> pd.DataFrame:
        """
        Distinct gene-to-annotation mapping from the long expression table.

        Args:
            long_df: Cleaned long table from ``ExpressionDataLoader``

        Returns:
            One row per distinct ``systematic_name, BP, MF`` combination
        """
        genes = (
            long_df[GENE_SET_COLUMNS]
            .drop_duplicates()
            .sort_values("systematic_name", kind="mergesort")
            .reset_index(drop=True)
        )
        logger.info(f"Built gene-set table for {len(genes)} genes")
        return genes

    def filter_by_process(
        self,
        df: pd.DataFrame,
        process: Union[str, List[str]],
        process_col: str = "BP"
    ) -> pd.DataFrame:
        """
        Filter genes by biological process.

        Args:
            df: Gene-set DataFrame
            process: Process name(s) to keep
            process_col: Name of process column

        Returns:
            Filtered DataFrame
        """
        return self._filter_annotation(df, process, process_col)

    def filter_by_function(
        self,
        df: pd.DataFrame,
        function: Union[str, List[str]],
        function_col: str = "MF"
    ) -> pd.DataFrame:
        """
        Filter genes by molecular function.

        Args:
            df: Gene-set DataFrame
            function: Function name(s) to keep
            function_col: Name of function column

        Returns:
            Filtered DataFrame
        """
        return self._filter_annotation(df, function, function_col)

    def _filter_annotation(
        self,
        df: pd.DataFrame,
        values: Union[str, List[str]],
        column: str
    ) -> pd.DataFrame:
        if isinstance(values, str):
            values = [values]

        # Handle case-insensitive matching
        column_lower = df[column].astype(str).str.lower().str.strip()
        values_lower = [v.lower().strip() for v in values]

        mask = column_lower.isin(values_lower)
        filtered = df[mask].copy()

        logger.info(f"Filtered to {len(filtered)} genes for {column}: {values}")
        return filtered

    def get_gene_list(
        self,
        df: pd.DataFrame,
        gene_col: str = "systematic_name"
    ) -> List[str]:
        """Get list of systematic names."""
        return df[gene_col].tolist()
