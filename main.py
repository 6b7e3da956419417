#!/usr/bin/env python3
"""
Growth-Rate Expression Pipeline

Main entry point: fits gene-wise moderated linear models of expression on
growth rate, tidies the results and draws the summary charts.

Usage:
    python main.py                          # Run full pipeline
    python main.py --skip-plots             # Tables only
    python main.py --include-intercept      # Keep intercept rows in the tidy table
    python main.py --data-url data.tds      # Use a local copy of the dataset
    python main.py --top-n 5                # More genes per nutrient in trend plot

Examples:
    # Look at leucine biosynthesis genes in the intercept plot
    python main.py --gene-set "leucine biosynthesis"

    # Custom configuration, verbose logging
    python main.py --config configs/custom.yaml -v
"""

import argparse
import logging
import sys
import traceback
from pathlib import Path

from growth_expression.analysis import significant_genes
from growth_expression.data_loaders import AnnotationLoader
from growth_expression.models import tidy_fit
from growth_expression.pipeline import PipelineResult, annotate_tidy, run_pipeline
from growth_expression.utils.config import Config, load_config
from growth_expression.utils.logging_utils import set_verbosity, setup_logger

logger = setup_logger("growth_expression", level=logging.INFO)


def save_tables(result: PipelineResult, config: Config) -> None:
    """Write tidy model table, top hits and significant rows as CSV."""
    tables = {
        "tidy_model.csv": result.tidy,
        "top_hits.csv": result.top_hits,
        "significant_rows.csv": significant_genes(
            result.tidy, fdr_threshold=config.model_params["fdr_threshold"]
        ),
        "gene_sets.csv": result.gene_sets,
    }
    for filename, table in tables.items():
        path = config.get_output_path(filename, subdir="tables")
        table.to_csv(path, index=False)
        logger.info(f"Saved {len(table)} rows to {path}")


def make_plots(result: PipelineResult, config: Config, gene_set: str) -> bool:
    """
    Draw the summary charts.

    Returns:
        True if successful, False otherwise
    """
    from growth_expression.visualization import PlotGenerator

    fmt = config.viz_params.get("format", "pdf")
    plotter = PlotGenerator(config)

    try:
        # Both terms are needed for the faceted histogram and the intercept plot
        td_all = annotate_tidy(tidy_fit(result.fit, intercept=True), config)

        plotter.plot_pvalue_histograms(
            td_all, config.get_output_path(f"pvalue_histograms.{fmt}")
        )
        plotter.plot_volcano(
            td_all,
            config.get_output_path(f"volcano_rate.{fmt}"),
            fdr_threshold=config.model_params["fdr_threshold"],
        )
        plotter.plot_top_gene_trends(
            result.trends, config.get_output_path(f"top_gene_trends.{fmt}")
        )

        annotations = AnnotationLoader(config)
        genes = annotations.filter_by_process(result.gene_sets, gene_set)
        if genes.empty:
            logger.warning(f"No genes annotated with '{gene_set}'; skipping intercept plot")
        else:
            plotter.plot_intercepts(
                td_all,
                annotations.get_gene_list(genes),
                config.get_output_path(f"intercepts_{gene_set.replace(' ', '_')}.{fmt}"),
                intercept_term=result.fit.intercept_term,
                title=f"Intercepts: {gene_set}",
            )
        return True

    except Exception as e:
        logger.error(f"Plotting failed: {e}")
        logger.error(traceback.format_exc())
        return False


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Growth-rate expression pipeline (moderated linear models)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        "--dataset",
        default="Brauer2008",
        help="Dataset to analyze (default: Brauer2008)"
    )
    parser.add_argument(
        "--data-url",
        help="URL or path of the expression table (default: from configuration)"
    )
    parser.add_argument(
        "--config",
        help="Path to custom configuration file"
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for tables and plots (default: results/)"
    )
    parser.add_argument(
        "--top-n",
        type=int,
        help="Genes per nutrient with the largest growth-rate effect"
    )
    parser.add_argument(
        "--gene-set",
        help="Biological process whose genes go in the intercept plot"
    )
    parser.add_argument(
        "--include-intercept",
        action="store_true",
        help="Keep intercept rows in the saved tidy table"
    )
    parser.add_argument(
        "--skip-plots",
        action="store_true",
        help="Skip chart generation"
    )
    parser.add_argument(
        "--log-file",
        help="Also write the log to this file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    if args.log_file:
        setup_logger("growth_expression", level=logging.INFO, log_file=args.log_file)
    if args.verbose:
        set_verbosity(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("Growth-Rate Expression Pipeline")
    logger.info("=" * 60)
    logger.info(f"Dataset: {args.dataset}")

    config = load_config(config_file=args.config, dataset=args.dataset)
    if args.output_dir:
        config.set_output_dir(Path(args.output_dir))
    config.ensure_output_dirs()

    gene_set = args.gene_set or config.model_params["gene_set_process"]
    intercept = True if args.include_intercept else None

    logger.info("")
    logger.info("[Step 1-5] Load, model, tidy and analyze")
    logger.info("-" * 40)
    try:
        result = run_pipeline(
            config,
            source=args.data_url,
            intercept=intercept,
            top_n=args.top_n
        )
        save_tables(result, config)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        logger.error(traceback.format_exc())
        return 1

    success = True
    if not args.skip_plots:
        logger.info("")
        logger.info("[Step 6] Plots")
        logger.info("-" * 40)
        success = make_plots(result, config, gene_set)

    logger.info("")
    logger.info("=" * 60)
    if success:
        logger.info("Pipeline completed successfully!")
    else:
        logger.warning("Pipeline completed with some errors.")
    logger.info("=" * 60)
    logger.info(f"Results saved to: {config.output_dir}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
