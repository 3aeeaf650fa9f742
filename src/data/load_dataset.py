"""Loading and cleaning of the Pima diabetes dataset."""

import logging
from pathlib import Path
from typing import Dict

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema

from src.config.constants import REQUIRED_COLUMNS, SENTINEL_ZERO_COLUMNS, TARGET_COLUMN
from src.exceptions import FormatError

logger = logging.getLogger(__name__)


class DiabetesDatasetReader:
    """Reads the raw dataset and checks that every value is parsable."""

    REQUIRED_COLUMNS = REQUIRED_COLUMNS

    def __init__(self):
        """Initialize reader with schema.

        Only presence, parsability and the binary outcome are checked. Ranges
        (negative values, implausible BMI, ...) are left alone.
        """
        self.schema = DataFrameSchema(
            {
                "Pregnancies": Column(int, nullable=False),
                "Glucose": Column(float, nullable=False),
                "BloodPressure": Column(float, nullable=False),
                "SkinThickness": Column(float, nullable=False),
                "Insulin": Column(float, nullable=False),
                "BMI": Column(float, nullable=False),
                "DiabetesPedigreeFunction": Column(float, nullable=False),
                "Age": Column(int, nullable=False),
                TARGET_COLUMN: Column(int, checks=[pa.Check.isin([0, 1])], nullable=False),
            },
            strict=False,
            coerce=True,
        )

    def validate_schema(self, df: pd.DataFrame) -> pd.DataFrame:
        """Validate and coerce dataframe columns.

        Args:
            df: Raw dataframe as read from CSV

        Returns:
            Dataframe restricted to the required columns, with coerced dtypes

        Raises:
            FormatError: If a column is missing or a value cannot be parsed
        """
        missing_cols = [col for col in self.REQUIRED_COLUMNS if col not in df.columns]
        if missing_cols:
            raise FormatError(f"Missing required columns: {missing_cols}")

        try:
            return self.schema.validate(df[self.REQUIRED_COLUMNS], lazy=True)
        except pa.errors.SchemaErrors as e:
            errors = []
            for _, row in e.failure_cases.iterrows():
                errors.append(
                    f"Column '{row['column']}' failed check '{row['check']}' "
                    f"at index {row['index']}"
                )
            raise FormatError(f"Invalid values in input: {errors}") from e

    def read(self, file_path: Path) -> pd.DataFrame:
        """Read and validate a CSV file.

        Args:
            file_path: Path to input CSV file

        Returns:
            Validated dataframe indexed by source row number
        """
        try:
            df = pd.read_csv(file_path)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise FormatError(f"Failed to read file {file_path}: {e}") from e

        if df.empty:
            raise FormatError(f"No records in {file_path}")

        return self.validate_schema(df)


def read_records(file_path: Path) -> pd.DataFrame:
    """Read the raw dataset without cleaning."""
    return DiabetesDatasetReader().read(Path(file_path))


def drop_sentinel_zeros(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows where any physiologically required field equals exactly 0.

    Args:
        df: Raw records

    Returns:
        New dataframe containing only rows without zero sentinels
    """
    has_zero = (df[SENTINEL_ZERO_COLUMNS] == 0).any(axis=1)
    return df.loc[~has_zero].copy()


def cleaning_summary(raw: pd.DataFrame, cleaned: pd.DataFrame) -> Dict:
    """Summarize zero sentinels found and rows retained.

    Args:
        raw: Records before cleaning
        cleaned: Records after cleaning

    Returns:
        Dictionary with totals and per-column zero counts
    """
    return {
        "rows_read": int(len(raw)),
        "rows_dropped": int(len(raw) - len(cleaned)),
        "rows_retained": int(len(cleaned)),
        "zero_counts": {col: int((raw[col] == 0).sum()) for col in SENTINEL_ZERO_COLUMNS},
        "positive_rate": float(cleaned[TARGET_COLUMN].mean()) if len(cleaned) else float("nan"),
    }


def load_dataset(file_path: Path, return_summary: bool = False):
    """Read the dataset and drop rows with zero sentinels.

    Args:
        file_path: Path to input CSV file
        return_summary: Also return the cleaning summary

    Returns:
        Cleaned dataset, or tuple of (cleaned dataset, cleaning summary)
        when return_summary is True

    Raises:
        FormatError: If the file is invalid or no records survive cleaning
    """
    raw = read_records(file_path)
    cleaned = drop_sentinel_zeros(raw)

    logger.info(
        f"Loaded {len(raw)} records from {file_path}: "
        f"dropped {len(raw) - len(cleaned)} with zero sentinels, retained {len(cleaned)}"
    )

    if cleaned.empty:
        raise FormatError(f"No records in {file_path} without zero sentinels")

    if return_summary:
        return cleaned, cleaning_summary(raw, cleaned)
    return cleaned
