"""
Expression data loader for the Brauer (2008) growth-rate dataset.

The raw table has one row per gene. The ``NAME`` column packs five fields
separated by ``||`` and every sample column is named by a one-letter nutrient
code followed by the growth rate, e.g. ``G0.05``. Loading produces the long
form used by every later stage: one row per gene, nutrient and growth rate.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from .base import DataLoader

logger = logging.getLogger(__name__)

SAMPLE_PATTERN = re.compile(r"^(?P<nutrient>[A-Za-z])(?P<rate>\d*\.?\d+)$")

LONG_COLUMNS = [
    "name", "BP", "MF", "systematic_name", "number",
    "nutrient", "rate", "expression"
]


class ExpressionDataLoader(DataLoader):
    """
    Load and clean growth-rate expression data.

    Handles:
    - Splitting the composite ``NAME`` column into annotation fields
    - Dropping bookkeeping columns (GID, YORF, GWEIGHT)
    - Reshaping nutrient/rate sample columns to long form
    - Removing missing values and incomplete gene/nutrient groups
    """

    def __init__(self, config):
        super().__init__(config)
        params = config.data_params
        self.sep = params["sep"]
        self.name_column = params["name_column"]
        self.name_delimiter = params["name_delimiter"]
        self.name_fields: List[str] = list(params["name_fields"])
        self.drop_columns: List[str] = list(params["drop_columns"])
        self.nutrient_names: Dict[str, str] = dict(params["nutrient_names"])
        self.expected_replicates = int(params["expected_replicates"])

    def load(
        self,
        source: Optional[Union[str, Path]] = None,
        **kwargs
    ) -> pd.DataFrame:
        """
        Load the dataset and return the cleaned long table.

        Args:
            source: URL or path of the delimited table. Defaults to the
                configured dataset URL.
            **kwargs: Passed through to ``pandas.read_csv``

        Returns:
            Long DataFrame with columns ``name, BP, MF, systematic_name,
            number, nutrient, rate, expression``
        """
        raw = self.read_raw(source, **kwargs)
        return self.clean(raw)

    def read_raw(
        self,
        source: Optional[Union[str, Path]] = None,
        **kwargs
    ) -> pd.DataFrame:
        """Read the wide table exactly as published."""
        if source is None:
            source = self.config.data_params["url"]
        location = self._resolve_source(source)

        if location in self._cache:
            logger.debug(f"Loading from cache: {location}")
            return self._cache[location].copy()

        logger.info(f"Loading expression data from {location}...")
        df = pd.read_csv(location, sep=self.sep, **kwargs)
        self._cache[location] = df.copy()

        logger.info(f"Loaded {df.shape[0]} genes x {df.shape[1]} columns")
        return df

    def clean(self, raw: pd.DataFrame) -> pd.DataFrame:
        """
        Turn the wide table into the filtered long table.

        Raises:
            ValueError: If the layout does not match the expected format
        """
        sample_cols = self.sample_columns(raw)

        df = self.split_name_column(raw)
        df = df.drop(columns=[c for c in self.drop_columns if c in df.columns])

        long_df = self.melt_samples(df, sample_cols)
        long_df = self.drop_missing(long_df)
        long_df = self.filter_complete_groups(long_df)

        logger.info(
            f"Cleaned data: {len(long_df)} rows, "
            f"{long_df['systematic_name'].nunique()} genes, "
            f"{long_df['nutrient'].nunique()} nutrients"
        )
        return long_df[LONG_COLUMNS].reset_index(drop=True)

    def sample_columns(self, df: pd.DataFrame) -> List[str]:
        """
        Identify expression columns and check their nutrient codes.

        Every column other than the name column and the dropped bookkeeping
        columns must be a sample column.
        """
        if self.name_column not in df.columns:
            raise ValueError(
                f"Expected a '{self.name_column}' column, found: {list(df.columns)}"
            )

        skip = set(self.drop_columns) | {self.name_column}
        candidates = [c for c in df.columns if c not in skip]

        bad = [c for c in candidates if not SAMPLE_PATTERN.match(str(c))]
        if bad:
            raise ValueError(f"Unrecognised sample columns: {bad}")

        codes = {SAMPLE_PATTERN.match(str(c)).group("nutrient") for c in candidates}
        unknown = sorted(codes - set(self.nutrient_names))
        if unknown:
            raise ValueError(f"Unknown nutrient codes: {unknown}")

        if not candidates:
            raise ValueError("No sample columns found")
        return candidates

    def split_name_column(self, df: pd.DataFrame) -> pd.DataFrame:
        """Split ``NAME`` into its annotation fields and drop it."""
        parts = df[self.name_column].astype(str).str.split(
            self.name_delimiter, regex=False
        )
        n_fields = parts.str.len()
        malformed = n_fields != len(self.name_fields)
        if malformed.any():
            example = df.loc[malformed, self.name_column].iloc[0]
            raise ValueError(
                f"{int(malformed.sum())} '{self.name_column}' values do not split into "
                f"{len(self.name_fields)} fields, e.g. {example!r}"
            )

        fields = pd.DataFrame(parts.tolist(), index=df.index, columns=self.name_fields)
        fields = fields.apply(lambda col: col.str.strip())

        df = pd.concat([fields, df.drop(columns=[self.name_column])], axis=1)
        return df

    def melt_samples(self, df: pd.DataFrame, sample_cols: List[str]) -> pd.DataFrame:
        """Gather sample columns into nutrient, rate and expression columns."""
        id_cols = [c for c in df.columns if c not in sample_cols]
        long_df = df.melt(
            id_vars=id_cols,
            value_vars=sample_cols,
            var_name="sample",
            value_name="expression"
        )

        sample_parts = long_df["sample"].astype(str).str.extract(SAMPLE_PATTERN.pattern)
        long_df["nutrient"] = sample_parts["nutrient"].map(self.nutrient_names)
        long_df["rate"] = sample_parts["rate"].astype(float)
        long_df["expression"] = pd.to_numeric(long_df["expression"], errors="coerce")

        return long_df.drop(columns=["sample"])

    def drop_missing(self, long_df: pd.DataFrame) -> pd.DataFrame:
        """Drop rows without an expression value or a systematic name."""
        systematic = long_df["systematic_name"].replace({"": np.nan, "nan": np.nan})
        mask = long_df["expression"].notna() & systematic.notna()

        removed = int((~mask).sum())
        if removed:
            logger.info(f"Dropped {removed} rows missing expression or systematic name")
        return long_df[mask].copy()

    def filter_complete_groups(self, long_df: pd.DataFrame) -> pd.DataFrame:
        """Keep only gene/nutrient groups with the expected number of rates."""
        sizes = long_df.groupby(
            ["systematic_name", "nutrient"], sort=False
        )["expression"].transform("size")
        mask = sizes == self.expected_replicates

        n_groups = long_df.loc[~mask, ["systematic_name", "nutrient"]].drop_duplicates().shape[0]
        if n_groups:
            logger.info(
                f"Dropped {n_groups} gene/nutrient groups without exactly "
                f"{self.expected_replicates} rows"
            )
        return long_df[mask].copy()
