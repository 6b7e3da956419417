"""
Straight-line pipeline: load -> matrix -> model -> tidy -> analyze.

Each stage consumes only the previous stage's output. Nothing is retried; an
exception in any stage stops the run.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .analysis import adjust_pvalues, join_expression, split_gene_key, top_by_effect
from .data_loaders import AnnotationLoader, ExpressionDataLoader
from .models import LinearModelFit, ModeratedLinearModel, glance_fit, tidy_fit
from .preprocessing import MatrixBuilder
from .utils.config import Config

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Every intermediate artifact of one pipeline run."""

    long_data: pd.DataFrame
    gene_sets: pd.DataFrame
    matrix: pd.DataFrame
    design: pd.Series
    fit: LinearModelFit
    tidy: pd.DataFrame
    top_hits: pd.DataFrame
    trends: pd.DataFrame


def annotate_tidy(td: pd.DataFrame, config: Config) -> pd.DataFrame:
    """Split gene keys and add per-group FDR to a tidy table."""
    td = split_gene_key(td, separator=config.data_params["key_separator"])
    return adjust_pvalues(
        td,
        by=config.model_params["fdr_by"],
        method=config.model_params["fdr_method"]
    )


def run_pipeline(
    config: Config,
    source: Optional[Union[str, Path]] = None,
    intercept: Optional[bool] = None,
    top_n: Optional[int] = None
) -> PipelineResult:
    """
    Run all stages once.

    Args:
        config: Pipeline configuration
        source: URL or path of the expression table (default: configured URL)
        intercept: Keep the intercept term in the tidy table
        top_n: Genes per nutrient to keep for the trend plot

    Returns:
        PipelineResult with all intermediate tables
    """
    params = config.model_params
    if intercept is None:
        intercept = params["intercept"]
    if top_n is None:
        top_n = params["top_n"]
    separator = config.data_params["key_separator"]

    # [1] Load and clean
    loader = ExpressionDataLoader(config)
    long_data = loader.load(source)
    gene_sets = AnnotationLoader(config).gene_sets(long_data)

    # [2] Matrix
    builder = MatrixBuilder(separator)
    matrix, design = builder.build(long_data)

    # [3] Moderated linear model
    model = ModeratedLinearModel().fit(matrix, design)
    fit = model.get_fit()
    logger.info(f"Fit summary:\n{glance_fit(fit).to_string(index=False)}")

    # [4] Tidy
    td = tidy_fit(fit, intercept=intercept)

    # [5] Analyze
    td = annotate_tidy(td, config)

    slope = td[td["term"] != fit.intercept_term]
    top_hits = top_by_effect(slope, top_n, by="nutrient")
    trends = join_expression(top_hits, long_data)

    return PipelineResult(
        long_data=long_data,
        gene_sets=gene_sets,
        matrix=matrix,
        design=design,
        fit=fit,
        tidy=td,
        top_hits=top_hits,
        trends=trends,
    )
