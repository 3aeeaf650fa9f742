"""Shared fixtures: a synthetic Pima-like dataset with a known signal."""

import numpy as np
import pandas as pd
import pytest

from src.config.constants import REQUIRED_COLUMNS


def make_synthetic_records(n: int = 400, seed: int = 0) -> pd.DataFrame:
    """Records with no zero sentinels.

    Outcome depends on Glucose, BMI, Age and DiabetesPedigreeFunction only;
    the remaining covariates are independent noise.
    """
    rng = np.random.default_rng(seed)

    df = pd.DataFrame(
        {
            "Pregnancies": rng.poisson(3, n),
            "Glucose": np.clip(rng.normal(120, 30, n), 50, 250).round(),
            "BloodPressure": np.clip(rng.normal(70, 12, n), 40, 120).round(),
            "SkinThickness": np.clip(rng.normal(29, 10, n), 7, 60).round(),
            "Insulin": np.clip(rng.normal(150, 90, n), 15, 800).round(),
            "BMI": np.clip(rng.normal(32, 6, n), 18, 60).round(1),
            "DiabetesPedigreeFunction": np.clip(rng.lognormal(-0.8, 0.5, n), 0.08, 2.5).round(3),
            "Age": rng.integers(21, 70, n),
        }
    )

    eta = (
        -10.8
        + 0.04 * df["Glucose"]
        + 0.08 * df["BMI"]
        + 0.05 * df["Age"]
        + 2.0 * df["DiabetesPedigreeFunction"]
    )
    df["Outcome"] = (rng.random(n) < 1.0 / (1.0 + np.exp(-eta))).astype(int)

    return df[REQUIRED_COLUMNS]


@pytest.fixture
def synthetic_records():
    return make_synthetic_records()


@pytest.fixture
def synthetic_csv(tmp_path, synthetic_records):
    """Synthetic records written to CSV with three sentinel-zero rows appended."""
    zero_rows = synthetic_records.head(3).copy()
    zero_rows["Glucose"] = [0, 110, 120]
    zero_rows["Insulin"] = [80, 0, 90]
    zero_rows["BMI"] = [25.0, 30.0, 0.0]

    path = tmp_path / "diabetes.csv"
    pd.concat([synthetic_records, zero_rows], ignore_index=True).to_csv(path, index=False)
    return path
