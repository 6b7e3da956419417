"""
Tests for pivoting the long table into the expression matrix.
"""

import numpy as np
import pandas as pd
import pytest

from growth_expression.preprocessing import INTERCEPT, MatrixBuilder

from .conftest import GENES, RATES


class TestMatrixBuilder:

    def test_shape_and_design(self, long_data):
        matrix, design = MatrixBuilder().build(long_data)

        assert matrix.shape == (len(GENES) * 2, len(RATES))
        assert list(matrix.columns) == RATES
        assert design.name == "rate"
        assert design.tolist() == RATES
        assert matrix.index.name == "gene"
        assert "YGL009C_Glucose" in matrix.index

    def test_no_value_lost_or_duplicated(self, long_data):
        matrix, _ = MatrixBuilder().build(long_data)

        stacked = matrix.stack().rename("expression").reset_index()
        assert len(stacked) == len(long_data)
        assert np.isclose(stacked["expression"].sum(), long_data["expression"].sum())

        cell = long_data[
            (long_data["systematic_name"] == "YOR063W")
            & (long_data["nutrient"] == "Leucine")
            & (long_data["rate"] == 0.15)
        ]["expression"].item()
        assert matrix.loc["YOR063W_Leucine", 0.15] == cell

    def test_split_inverts_compose(self, long_data):
        builder = MatrixBuilder()
        keys = builder.compose_key(long_data["systematic_name"], long_data["nutrient"])
        parts = builder.split_key(keys)

        assert parts["systematic_name"].tolist() == long_data["systematic_name"].tolist()
        assert parts["nutrient"].tolist() == long_data["nutrient"].tolist()

    def test_split_keeps_separator_inside_gene_name(self):
        builder = MatrixBuilder()
        keys = builder.compose_key(pd.Series(["tRNA_A1"]), pd.Series(["Uracil"]))

        parts = builder.split_key(keys)
        assert parts.iloc[0].tolist() == ["tRNA_A1", "Uracil"]

    def test_compose_rejects_separator_in_nutrient(self):
        with pytest.raises(ValueError, match="separator"):
            MatrixBuilder().compose_key(pd.Series(["YAL001C"]), pd.Series(["Low_N"]))

    def test_split_rejects_key_without_separator(self):
        with pytest.raises(ValueError, match="without separator"):
            MatrixBuilder().split_key(["YAL001C"])

    def test_split_empty(self):
        parts = MatrixBuilder().split_key([])
        assert list(parts.columns) == ["systematic_name", "nutrient"]
        assert parts.empty

    def test_custom_separator(self, long_data):
        builder = MatrixBuilder(separator="|")
        matrix, _ = builder.build(long_data)

        assert "YGL009C|Glucose" in matrix.index
        assert builder.split_key(matrix.index).shape == (len(matrix), 2)

    def test_missing_cell_fails(self, long_data):
        gapped = long_data.drop(index=long_data.index[3])

        with pytest.raises(ValueError, match="missing cells"):
            MatrixBuilder().build(gapped)

    def test_duplicate_cell_fails(self, long_data):
        duplicated = pd.concat([long_data, long_data.iloc[[0]]], ignore_index=True)

        with pytest.raises(ValueError, match="share a gene/rate cell"):
            MatrixBuilder().build(duplicated)

    def test_design_matrix(self):
        design = pd.Series(RATES, name="rate")
        X = MatrixBuilder.design_matrix(design)

        assert list(X.columns) == [INTERCEPT, "rate"]
        assert (X[INTERCEPT] == 1).all()
        assert X["rate"].tolist() == RATES
