"""
Tests for the batched, moderated linear model.
"""

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

from growth_expression.models import ModeratedLinearModel
from growth_expression.preprocessing import INTERCEPT, MatrixBuilder

from .conftest import RATES


@pytest.fixture
def matrix_and_design(long_data):
    return MatrixBuilder().build(long_data)


@pytest.fixture
def fit(matrix_and_design):
    matrix, design = matrix_and_design
    return ModeratedLinearModel().fit(matrix, design).get_fit()


class TestModeratedLinearModel:

    def test_coefficients_match_per_row_least_squares(self, matrix_and_design, fit):
        matrix, design = matrix_and_design

        for i, (_, row) in enumerate(matrix.iterrows()):
            slope, intercept = np.polyfit(design.to_numpy(), row.to_numpy(), 1)
            assert fit.coefficients[i, 0] == pytest.approx(intercept, abs=1e-8)
            assert fit.coefficients[i, 1] == pytest.approx(slope, abs=1e-8)

    def test_bundle_layout(self, matrix_and_design, fit):
        matrix, _ = matrix_and_design

        assert fit.terms == [INTERCEPT, "rate"]
        assert list(fit.genes) == list(matrix.index)
        assert fit.coefficients.shape == (len(matrix), 2)
        assert fit.t.shape == fit.p_value.shape == (len(matrix), 2)
        assert np.all(fit.df_residual == len(RATES) - 2)

    def test_moderated_statistics_are_consistent(self, fit):
        d = fit.df_residual
        s2 = fit.sigma ** 2
        if np.isinf(fit.df_prior):
            expected_post = np.full_like(s2, fit.s2_prior)
        else:
            expected_post = (fit.df_prior * fit.s2_prior + d * s2) / (fit.df_prior + d)

        np.testing.assert_allclose(fit.s2_post, expected_post)
        np.testing.assert_allclose(fit.t, fit.coefficients / fit.std_error)
        assert np.all(fit.df_total <= d.sum())
        assert np.all((fit.p_value >= 0) & (fit.p_value <= 1))

    def test_strong_slopes_are_significant(self, fit):
        slopes = fit.coefficient_table("p_value")["rate"]
        steep = slopes[slopes.index.str.startswith("YOR063W")]
        flat = slopes[slopes.index.str.startswith("YNL049C")]

        assert (steep < 1e-4).all()
        assert steep.max() < flat.min()

    def test_f_statistic_equals_squared_slope_t(self, fit):
        np.testing.assert_allclose(fit.F, fit.t[:, 1] ** 2)
        assert np.all((fit.F_p_value >= 0) & (fit.F_p_value <= 1))

    def test_single_row_matches_ordinary_least_squares(self, matrix_and_design):
        matrix, design = matrix_and_design
        one = matrix.iloc[[0]]

        fit = ModeratedLinearModel().fit(one, design).get_fit()
        ols = sm.OLS(one.iloc[0].to_numpy(), sm.add_constant(design.to_numpy())).fit()

        assert fit.df_prior == 0.0
        np.testing.assert_allclose(fit.coefficients[0], ols.params)
        np.testing.assert_allclose(fit.std_error[0], ols.bse)
        np.testing.assert_allclose(fit.t[0], ols.tvalues)
        np.testing.assert_allclose(fit.p_value[0], ols.pvalues)

    def test_empty_matrix(self, matrix_and_design):
        matrix, design = matrix_and_design

        fit = ModeratedLinearModel().fit(matrix.iloc[:0], design).get_fit()

        assert fit.n_genes == 0
        assert fit.coefficients.shape == (0, 2)
        assert fit.t.shape == (0, 2)

    def test_constant_rows_are_not_dropped(self, matrix_and_design):
        matrix, design = matrix_and_design
        flat = pd.DataFrame(
            [[0.5] * len(RATES)], columns=matrix.columns, index=["YFLAT1_Glucose"]
        )

        fit = ModeratedLinearModel().fit(pd.concat([matrix, flat]), design).get_fit()

        assert fit.n_genes == len(matrix) + 1
        assert np.isfinite(fit.t[-1]).all()
        assert fit.s2_post[-1] > 0

    def test_too_few_columns(self, matrix_and_design):
        matrix, design = matrix_and_design

        with pytest.raises(ValueError, match="samples per gene"):
            ModeratedLinearModel().fit(matrix.iloc[:, :2], design.iloc[:2])

    def test_design_length_mismatch(self, matrix_and_design):
        matrix, design = matrix_and_design

        with pytest.raises(ValueError, match="Design has"):
            ModeratedLinearModel().fit(matrix, design.iloc[:4])

    def test_rank_deficient_design(self, matrix_and_design):
        matrix, _ = matrix_and_design
        design = pd.Series([0.1] * len(RATES), name="rate")

        with pytest.raises(ValueError, match="rank deficient"):
            ModeratedLinearModel().fit(matrix, design)

    def test_missing_values(self, matrix_and_design):
        matrix, design = matrix_and_design
        gapped = matrix.copy()
        gapped.iloc[0, 0] = np.nan

        with pytest.raises(ValueError, match="missing values"):
            ModeratedLinearModel().fit(gapped, design)

    def test_get_fit_before_fit(self):
        with pytest.raises(RuntimeError, match="not been fitted"):
            ModeratedLinearModel().get_fit()

    def test_params(self):
        model = ModeratedLinearModel(intercept_name="const")
        assert model.get_params() == {"intercept_name": "const"}
        assert model.set_params(intercept_name="(Intercept)").intercept_name == "(Intercept)"
