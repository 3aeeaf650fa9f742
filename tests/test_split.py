"""Tests for stratified partitioning."""

import pytest

from src.data.split import stratified_split


class TestStratifiedSplit:
    """Test train/test split properties."""

    def test_partitions_disjoint_and_complete(self, synthetic_records):
        """Test that partitions do not overlap and cover the dataset."""
        train, test = stratified_split(synthetic_records, 0.7, seed=42)

        assert set(train.index).isdisjoint(test.index)
        assert set(train.index) | set(test.index) == set(synthetic_records.index)

    def test_split_is_deterministic(self, synthetic_records):
        """Test that the same seed gives the same partitions."""
        train_a, test_a = stratified_split(synthetic_records, 0.7, seed=7)
        train_b, test_b = stratified_split(synthetic_records, 0.7, seed=7)

        assert train_a.index.tolist() == train_b.index.tolist()
        assert test_a.index.tolist() == test_b.index.tolist()

    def test_different_seeds_differ(self, synthetic_records):
        """Test that the seed controls the assignment."""
        train_a, _ = stratified_split(synthetic_records, 0.7, seed=1)
        train_b, _ = stratified_split(synthetic_records, 0.7, seed=2)

        assert set(train_a.index) != set(train_b.index)

    def test_class_balance_preserved(self, synthetic_records):
        """Test that each partition approximates the overall positive rate."""
        train, test = stratified_split(synthetic_records, 0.7, seed=42)
        overall = synthetic_records["Outcome"].mean()

        assert len(train) == 280
        assert abs(train["Outcome"].mean() - overall) < 0.01
        assert abs(test["Outcome"].mean() - overall) < 0.02

    @pytest.mark.parametrize("fraction", [0.0, 1.0, 1.5])
    def test_invalid_fraction_rejected(self, synthetic_records, fraction):
        """Test that fractions outside (0, 1) raise ValueError."""
        with pytest.raises(ValueError):
            stratified_split(synthetic_records, fraction, seed=42)
