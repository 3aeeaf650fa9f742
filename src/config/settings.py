"""Configuration loading for the analysis pipeline."""

import copy
from pathlib import Path

import yaml

from src.config.constants import (
    COVARIATE_COLUMNS,
    DEFAULT_RANDOM_SEED,
    DEFAULT_THRESHOLD,
    DEFAULT_TRAIN_FRACTION,
)

DEFAULT_CONFIG = {
    "data": {
        "raw_path": "data/raw/diabetes.csv",
        "train_fraction": DEFAULT_TRAIN_FRACTION,
        "random_seed": DEFAULT_RANDOM_SEED,
    },
    "models": {
        "covariates": list(COVARIATE_COLUMNS),
        "max_iter": 100,
        "lasso": {
            "n_folds": 5,
            "n_lambdas": 50,
            "lambda_min_ratio": 0.001,
            "max_iter": 10000,
            "tol": 1e-4,
        },
    },
    "evaluation": {
        "threshold": DEFAULT_THRESHOLD,
    },
    "output": {
        "dir": "reports/analysis",
    },
    "mlflow": {
        "enabled": False,
        "tracking_uri": "sqlite:///mlflow.db",
        "experiment_name": "pima-logistic-comparison",
    },
    "logging": {
        "log_level": "INFO",
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path = None) -> dict:
    """Load analysis configuration.

    Values in the YAML file override the built-in defaults key by key, so a
    config file only needs to list what it changes.

    Args:
        config_path: Path to YAML config, or None for defaults only

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r") as f:
        overrides = yaml.safe_load(f) or {}

    return _merge(DEFAULT_CONFIG, overrides)
