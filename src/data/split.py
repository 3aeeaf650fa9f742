"""Stratified train/test partitioning."""

import logging

import pandas as pd
from sklearn.model_selection import train_test_split

from src.config.constants import DEFAULT_RANDOM_SEED, DEFAULT_TRAIN_FRACTION, TARGET_COLUMN

logger = logging.getLogger(__name__)


def stratified_split(
    df: pd.DataFrame,
    train_fraction: float = DEFAULT_TRAIN_FRACTION,
    seed: int = DEFAULT_RANDOM_SEED,
) -> tuple:
    """Split records into training and test partitions, stratified on outcome.

    Args:
        df: Cleaned dataset
        train_fraction: Share of rows assigned to training, in (0, 1)
        seed: Random seed; identical seed and input give identical partitions

    Returns:
        Tuple of (train, test) dataframes
    """
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    train, test = train_test_split(
        df,
        train_size=train_fraction,
        random_state=seed,
        stratify=df[TARGET_COLUMN],
    )

    logger.info(f"Train size: {len(train)}, Test size: {len(test)}")
    logger.info(f"Train positive rate: {train[TARGET_COLUMN].mean():.3f}")
    logger.info(f"Test positive rate: {test[TARGET_COLUMN].mean():.3f}")

    return train, test
