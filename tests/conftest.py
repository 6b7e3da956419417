"""
Shared fixtures: a small synthetic dataset in the published Brauer layout.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from growth_expression.utils.config import Config

RATES = [0.05, 0.1, 0.15, 0.2, 0.25, 0.3]

GENES = [
    # name, BP, MF, systematic_name, intercept, slope
    ("LEU1", "leucine biosynthesis", "isomerase activity", "YGL009C", 1.0, -4.0),
    ("LEU2", "leucine biosynthesis", "dehydrogenase activity", "YCL018W", -0.5, 3.0),
    ("SFB2", "ER to Golgi transport", "molecular function unknown", "YNL049C", 0.2, 0.0),
    ("RPL3", "protein biosynthesis", "structural constituent of ribosome", "YOR063W", -1.0, 6.0),
]


def make_wide_table(nutrients=("G", "L"), genes=GENES, seed=0, noise=0.05) -> pd.DataFrame:
    """Wide table with GID, YORF, NAME, GWEIGHT and one column per sample."""
    rng = np.random.default_rng(seed)
    rates = np.array(RATES)

    rows = []
    for i, (name, bp, mf, systematic, intercept, slope) in enumerate(genes):
        row = {
            "GID": f"GENE{i}X",
            "YORF": systematic,
            "NAME": f"{name:<11}|| {bp} || {mf} || {systematic} || {1082129 + i}",
            "GWEIGHT": 1,
        }
        for k, code in enumerate(nutrients):
            values = intercept + k * 0.3 + slope * rates + rng.normal(0, noise, len(rates))
            for rate, value in zip(RATES, values):
                row[f"{code}{rate}"] = round(float(value), 4)
        rows.append(row)

    return pd.DataFrame(rows)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def wide_table():
    return make_wide_table()


@pytest.fixture
def wide_tds(tmp_path, wide_table):
    path = tmp_path / "synthetic.tds"
    wide_table.to_csv(path, sep="\t", index=False)
    return path


@pytest.fixture
def messy_tds(tmp_path, wide_table):
    """Synthetic table with the defects the loader must clean away."""
    table = wide_table.copy()

    # One missing value: YNL049C/Leucine loses a replicate
    table.loc[table["YORF"] == "YNL049C", "L0.2"] = np.nan

    # A gene with no systematic name
    blank = table.iloc[[0]].copy()
    blank["NAME"] = "XYZ1 || unknown || unknown ||  || 99"
    blank["YORF"] = ""

    # A duplicated gene: its groups have twelve rows, not six
    duplicate = table[table["YORF"] == "YOR063W"].copy()

    table = pd.concat([table, blank, duplicate], ignore_index=True)
    path = tmp_path / "messy.tds"
    table.to_csv(path, sep="\t", index=False)
    return path


@pytest.fixture
def long_data(config, wide_tds):
    from growth_expression.data_loaders import ExpressionDataLoader

    return ExpressionDataLoader(config).load(wide_tds)
