"""
Plotting functions for growth-rate model results.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .style import get_color_palette, setup_publication_style

logger = logging.getLogger(__name__)


class PlotGenerator:
    """
    Generate publication-ready plots from tidy model tables.
    """

    def __init__(self, config: Optional[Any] = None):
        """
        Initialize plot generator.

        Args:
            config: Configuration object with visualization parameters
        """
        self.config = config
        self.colors = get_color_palette(config)

        self.fig_sizes = {
            "single": (6, 5),
            "wide": (10, 6),
            "tall": (6, 8)
        }
        self.dpi = 300
        self.format = "pdf"

        if config is not None and hasattr(config, "viz_params"):
            self.fig_sizes.update(config.viz_params.get("figure_sizes", {}))
            self.dpi = config.viz_params.get("dpi", self.dpi)
            self.format = config.viz_params.get("format", self.format)

        setup_publication_style(config)

    def _save(self, fig: plt.Figure, output_path: Path) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, format=self.format, dpi=self.dpi)
        plt.close(fig)

    @staticmethod
    def _require(df: pd.DataFrame, columns: Iterable[str], what: str) -> None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"{what} requires columns {missing}")
        if df.empty:
            raise ValueError(f"No rows to plot for {what}")

    def plot_pvalue_histograms(
        self,
        td: pd.DataFrame,
        output_path: Union[str, Path],
        bins: int = 50,
        title: Optional[str] = None
    ) -> None:
        """
        Histogram of p-values faceted by term (rows) and nutrient (columns).

        Args:
            td: Tidy table with ``term``, ``nutrient`` and ``p.value``
            output_path: Path to save figure
            bins: Number of histogram bins
            title: Optional custom title
        """
        output_path = Path(output_path)
        self._require(td, ["term", "nutrient", "p.value"], "p-value histogram")
        logger.info(f"Generating p-value histograms -> {output_path}")

        grid = sns.FacetGrid(
            td, row="term", col="nutrient",
            sharey=False, margin_titles=True, height=2.2, aspect=1.0
        )
        grid.map_dataframe(
            sns.histplot, x="p.value", bins=bins, binrange=(0, 1),
            color="#34495e", edgecolor="white"
        )
        grid.set_axis_labels("p-value", "Count")
        grid.set_titles(row_template="{row_name}", col_template="{col_name}")

        if title is None:
            title = "Distribution of p-values by term and nutrient"
        grid.figure.suptitle(title, y=1.02)

        self._save(grid.figure, output_path)
        logger.info("  P-value histograms saved")

    def plot_volcano(
        self,
        td: pd.DataFrame,
        output_path: Union[str, Path],
        term: str = "rate",
        fdr_threshold: Optional[float] = 0.05,
        title: Optional[str] = None
    ) -> None:
        """
        Effect size against p-value for one term, one panel per nutrient.

        Args:
            td: Tidy table with ``term``, ``nutrient``, ``estimate`` and
                ``p.value`` (and ``fdr`` for highlighting)
            output_path: Path to save figure
            term: Model term to plot
            fdr_threshold: Highlight rows below this FDR, when ``fdr`` exists
            title: Optional custom title
        """
        output_path = Path(output_path)
        self._require(td, ["term", "nutrient", "estimate", "p.value"], "volcano plot")
        data = td[td["term"] == term].copy()
        self._require(data, [], f"volcano plot of '{term}'")
        logger.info(f"Generating volcano plot -> {output_path}")

        data["neg_log10_p"] = -np.log10(data["p.value"].clip(lower=np.finfo(float).tiny))
        if fdr_threshold is not None and "fdr" in data.columns:
            data["significant"] = data["fdr"] < fdr_threshold
            hue, palette = "significant", {True: "#e74c3c", False: "#95a5a6"}
        else:
            hue, palette = None, None

        grid = sns.FacetGrid(data, col="nutrient", col_wrap=3, height=2.8)
        grid.map_dataframe(
            sns.scatterplot, x="estimate", y="neg_log10_p",
            hue=hue, palette=palette, s=6, alpha=0.6, linewidth=0
        )
        if hue is not None:
            grid.add_legend(title=f"FDR < {fdr_threshold}")
        grid.set_axis_labels(f"Estimated effect of {term}", "-log10(p-value)")
        grid.set_titles(col_template="{col_name}")
        for ax in grid.axes.flat:
            ax.axvline(0, color="gray", lw=0.8, linestyle="--")

        if title is None:
            title = f"Effect size vs significance ({term})"
        grid.figure.suptitle(title, y=1.02)

        self._save(grid.figure, output_path)
        logger.info("  Volcano plot saved")

    def plot_intercepts(
        self,
        td: pd.DataFrame,
        genes: Iterable[str],
        output_path: Union[str, Path],
        intercept_term: str = "(Intercept)",
        title: Optional[str] = None
    ) -> None:
        """
        Boxplot with jittered points of intercept estimates per nutrient.

        Args:
            td: Tidy table that includes the intercept term
            genes: Systematic names of the gene set to show
            output_path: Path to save figure
            intercept_term: Name of the intercept term
            title: Optional custom title
        """
        output_path = Path(output_path)
        genes = set(genes)
        self._require(td, ["term", "systematic_name", "nutrient", "estimate"], "intercept plot")
        data = td[(td["term"] == intercept_term) & td["systematic_name"].isin(genes)]
        self._require(data, [], "intercept plot")
        logger.info(f"Generating intercept plot for {len(genes)} genes -> {output_path}")

        order = sorted(data["nutrient"].unique())
        palette = get_color_palette(self.config, order)

        fig, ax = plt.subplots(figsize=self.fig_sizes["single"])
        sns.boxplot(
            data=data, x="nutrient", y="estimate", order=order,
            hue="nutrient", palette=palette, legend=False,
            showfliers=False, ax=ax
        )
        sns.stripplot(
            data=data, x="nutrient", y="estimate", order=order,
            color="black", size=3, alpha=0.7, jitter=0.2, ax=ax
        )
        ax.axhline(0, color="gray", lw=1, linestyle="--")
        ax.set_xlabel("Limiting nutrient")
        ax.set_ylabel("Intercept (expression at rate 0)")

        if title is None:
            title = "Intercept estimates for selected genes"
        ax.set_title(title)

        self._save(fig, output_path)
        logger.info("  Intercept plot saved")

    def plot_top_gene_trends(
        self,
        joined: pd.DataFrame,
        output_path: Union[str, Path],
        title: Optional[str] = None
    ) -> None:
        """
        Expression against growth rate for top genes, one panel per nutrient.

        Args:
            joined: Output of ``join_expression`` with ``nutrient``,
                ``systematic_name``, ``rate`` and ``expression``
            output_path: Path to save figure
            title: Optional custom title
        """
        output_path = Path(output_path)
        self._require(
            joined, ["nutrient", "systematic_name", "rate", "expression"], "trend plot"
        )
        logger.info(f"Generating top gene trends -> {output_path}")

        nutrients = list(dict.fromkeys(joined["nutrient"]))
        n_cols = min(3, len(nutrients))
        n_rows = int(np.ceil(len(nutrients) / n_cols))

        fig, axes = plt.subplots(
            n_rows, n_cols,
            figsize=(4 * n_cols, 3.2 * n_rows),
            squeeze=False, sharex=True
        )

        for ax, nutrient in zip(axes.flat, nutrients):
            subset = joined[joined["nutrient"] == nutrient].sort_values("rate")
            for gene, rows in subset.groupby("systematic_name", sort=False):
                name = rows["name"].iloc[0] if "name" in rows.columns else None
                label = f"{name} ({gene})" if isinstance(name, str) and name else gene
                ax.plot(rows["rate"], rows["expression"], marker="o", ms=3, lw=1.2, label=label)

            ax.axhline(0, color="gray", lw=0.8, linestyle="--")
            ax.set_title(nutrient, color=self.colors.get(nutrient, "black"))
            ax.set_xlabel("Growth rate")
            ax.set_ylabel("Expression (log2 ratio)")
            ax.legend(loc="best", frameon=False, fontsize=7)

        for ax in axes.flat[len(nutrients):]:
            ax.set_visible(False)

        if title is None:
            title = "Genes with the strongest growth-rate effect"
        fig.suptitle(title)
        fig.tight_layout()

        self._save(fig, output_path)
        logger.info("  Trend plot saved")
