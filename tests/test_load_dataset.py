"""Tests for dataset loading and cleaning."""

import pandas as pd
import pytest

from src.config.constants import SENTINEL_ZERO_COLUMNS
from src.data.load_dataset import (
    DiabetesDatasetReader,
    cleaning_summary,
    drop_sentinel_zeros,
    load_dataset,
    read_records,
)
from src.exceptions import FormatError


def _records(**overrides):
    data = {
        "Pregnancies": [1, 2],
        "Glucose": [100, 120],
        "BloodPressure": [70, 80],
        "SkinThickness": [20, 30],
        "Insulin": [80, 100],
        "BMI": [25.0, 30.0],
        "DiabetesPedigreeFunction": [0.5, 0.6],
        "Age": [35, 45],
        "Outcome": [0, 1],
    }
    data.update(overrides)
    return pd.DataFrame(data)


class TestDiabetesDatasetReader:
    """Test schema checks on raw records."""

    def test_valid_data_passes(self):
        """Test that integer columns are coerced and valid data passes."""
        validated = DiabetesDatasetReader().validate_schema(_records())

        assert len(validated) == 2
        assert validated["Glucose"].dtype == float

    def test_missing_columns_rejected(self):
        """Test that missing required columns raise FormatError."""
        df = pd.DataFrame({"Pregnancies": [1, 2], "Glucose": [100, 120]})

        with pytest.raises(FormatError, match="Missing required columns"):
            DiabetesDatasetReader().validate_schema(df)

    def test_unparsable_value_rejected(self):
        """Test that a non-numeric measurement raises FormatError."""
        df = _records(Glucose=["100", "abc"])

        with pytest.raises(FormatError):
            DiabetesDatasetReader().validate_schema(df)

    def test_non_binary_outcome_rejected(self):
        """Test that outcome values outside {0, 1} raise FormatError."""
        with pytest.raises(FormatError):
            DiabetesDatasetReader().validate_schema(_records(Outcome=[0, 2]))

    def test_negative_values_not_checked(self):
        """Test that ranges are not validated."""
        validated = DiabetesDatasetReader().validate_schema(_records(Pregnancies=[1, -1], BMI=[25.0, 95.0]))

        assert len(validated) == 2

    def test_blank_value_rejected(self, tmp_path):
        """Test that an empty field in the CSV raises FormatError."""
        path = tmp_path / "blank.csv"
        _records().to_csv(path, index=False)
        lines = path.read_text().splitlines()
        lines[1] = lines[1].replace("100", "", 1)
        path.write_text("\n".join(lines) + "\n")

        with pytest.raises(FormatError):
            read_records(path)

    def test_missing_file_rejected(self, tmp_path):
        """Test that an unreadable file raises FormatError."""
        with pytest.raises(FormatError, match="Failed to read file"):
            read_records(tmp_path / "does_not_exist.csv")

    def test_empty_file_rejected(self, tmp_path):
        """Test that an empty file raises FormatError."""
        path = tmp_path / "empty.csv"
        path.write_text("")

        with pytest.raises(FormatError):
            read_records(path)


class TestSentinelCleaning:
    """Test dropping of zero-sentinel rows."""

    def test_rows_with_zero_sentinels_dropped(self):
        """Test that a zero in any required field drops the row."""
        df = _records(
            Glucose=[100, 120, 0, 110],
            BloodPressure=[70, 80, 75, 72],
            Pregnancies=[1, 2, 3, 4],
            SkinThickness=[20, 30, 25, 0],
            Insulin=[80, 100, 90, 85],
            BMI=[25.0, 30.0, 28.0, 27.0],
            DiabetesPedigreeFunction=[0.5, 0.6, 0.7, 0.4],
            Age=[35, 45, 50, 40],
            Outcome=[0, 1, 1, 0],
        )

        cleaned = drop_sentinel_zeros(df)

        assert cleaned.index.tolist() == [0, 1]
        assert not (cleaned[SENTINEL_ZERO_COLUMNS] == 0).any().any()

    def test_zero_pregnancies_retained(self):
        """Test that zero pregnancies is a valid value."""
        cleaned = drop_sentinel_zeros(_records(Pregnancies=[0, 0]))

        assert len(cleaned) == 2

    def test_cleaning_does_not_modify_input(self):
        """Test that the raw frame is left untouched."""
        df = _records(Insulin=[0, 100])
        drop_sentinel_zeros(df)

        assert len(df) == 2

    def test_load_dataset_drops_sentinels(self, synthetic_csv):
        """Test loading and cleaning from CSV."""
        cleaned = load_dataset(synthetic_csv)

        assert len(cleaned) == 400
        assert not (cleaned[SENTINEL_ZERO_COLUMNS] == 0).any().any()

    def test_load_dataset_with_summary(self, synthetic_csv):
        """Test that the summary describes the returned dataset."""
        cleaned, summary = load_dataset(synthetic_csv, return_summary=True)

        assert summary["rows_retained"] == len(cleaned) == 400
        assert summary["rows_dropped"] == 3

    def test_header_only_file_rejected(self, tmp_path):
        """Test that a file without records raises FormatError."""
        path = tmp_path / "header_only.csv"
        _records().head(0).to_csv(path, index=False)

        with pytest.raises(FormatError, match="No records"):
            read_records(path)

    def test_all_rows_sentinel_rejected(self, tmp_path):
        """Test that a dataset emptied by cleaning raises FormatError."""
        path = tmp_path / "all_zero.csv"
        _records(Insulin=[0, 0]).to_csv(path, index=False)

        with pytest.raises(FormatError, match="without zero sentinels"):
            load_dataset(path)

    def test_cleaning_summary(self, synthetic_csv):
        """Test per-column zero counts and totals."""
        raw = read_records(synthetic_csv)
        summary = cleaning_summary(raw, drop_sentinel_zeros(raw))

        assert summary["rows_read"] == 403
        assert summary["rows_dropped"] == 3
        assert summary["rows_retained"] == 400
        assert summary["zero_counts"]["Glucose"] == 1
        assert summary["zero_counts"]["Insulin"] == 1
        assert summary["zero_counts"]["BMI"] == 1
        assert summary["zero_counts"]["Age"] == 0
