"""
Tests for the summary charts.
"""

import matplotlib
import pytest

from growth_expression.analysis import join_expression, split_gene_key, top_by_effect
from growth_expression.models import ModeratedLinearModel, tidy_fit
from growth_expression.preprocessing import INTERCEPT, MatrixBuilder
from growth_expression.visualization import (
    PlotGenerator,
    get_color_palette,
    setup_publication_style,
)


@pytest.fixture
def tidy(long_data):
    matrix, design = MatrixBuilder().build(long_data)
    fit = ModeratedLinearModel().fit(matrix, design).get_fit()
    return split_gene_key(tidy_fit(fit, intercept=True))


@pytest.fixture
def plotter(config):
    return PlotGenerator(config)


class TestPlotGenerator:

    def test_pvalue_histograms(self, plotter, tidy, tmp_path):
        path = tmp_path / "plots" / "pvalues.pdf"
        plotter.plot_pvalue_histograms(tidy, path)
        assert path.exists() and path.stat().st_size > 0

    def test_volcano_without_fdr(self, plotter, tidy, tmp_path):
        path = tmp_path / "volcano.pdf"
        plotter.plot_volcano(tidy, path)
        assert path.exists()

    def test_volcano_unknown_term(self, plotter, tidy, tmp_path):
        with pytest.raises(ValueError, match="No rows"):
            plotter.plot_volcano(tidy, tmp_path / "volcano.pdf", term="temperature")

    def test_intercepts(self, plotter, tidy, tmp_path):
        path = tmp_path / "intercepts.pdf"
        plotter.plot_intercepts(tidy, ["YGL009C", "YCL018W"], path, intercept_term=INTERCEPT)
        assert path.exists()

    def test_intercepts_need_matching_genes(self, plotter, tidy, tmp_path):
        with pytest.raises(ValueError, match="No rows"):
            plotter.plot_intercepts(tidy, ["YXX000W"], tmp_path / "none.pdf")

    def test_top_gene_trends(self, plotter, tidy, long_data, tmp_path):
        top = top_by_effect(tidy[tidy["term"] == "rate"], 2)
        joined = join_expression(top, long_data)

        path = tmp_path / "trends.pdf"
        plotter.plot_top_gene_trends(joined, path)
        assert path.exists()

    def test_missing_columns(self, plotter, tidy, tmp_path):
        with pytest.raises(ValueError, match="requires columns"):
            plotter.plot_pvalue_histograms(tidy.drop(columns=["p.value"]), tmp_path / "x.pdf")

    def test_empty_input(self, plotter, tidy, tmp_path):
        with pytest.raises(ValueError, match="No rows"):
            plotter.plot_top_gene_trends(tidy.iloc[:0].assign(rate=[], expression=[]), tmp_path / "x.pdf")


class TestColorPalette:

    def test_configured_colors(self, config):
        config.viz_params["colors"]["Glucose"] = "#000000"
        palette = get_color_palette(config, ["Glucose", "Leucine"])

        assert palette["Glucose"] == "#000000"
        assert palette["Leucine"] == config.viz_params["colors"]["Leucine"]

    def test_unknown_nutrients_get_a_color(self, config):
        palette = get_color_palette(config, ["Glucose", "Ethanol"])
        assert {"Glucose", "Ethanol"} <= set(palette)
        assert palette["Ethanol"] != palette["Glucose"]


class TestPublicationStyle:

    def test_font_sizes_and_dpi_come_from_config(self, config):
        config.viz_params["font_sizes"] = {"title": 15, "label": 13, "tick": 8}
        config.viz_params["dpi"] = 150

        setup_publication_style(config)
        rc = matplotlib.rcParams

        assert rc["axes.titlesize"] == 15
        assert rc["axes.labelsize"] == 13
        assert rc["xtick.labelsize"] == 8
        # Unset sizes keep their defaults
        assert rc["legend.fontsize"] == 9
        assert rc["savefig.dpi"] == 150
        assert rc["axes.spines.right"] is False

    def test_without_config(self):
        setup_publication_style()
        assert matplotlib.rcParams["axes.titlesize"] == 12
