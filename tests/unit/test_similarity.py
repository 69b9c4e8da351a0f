"""Unit tests for the field and metadata similarity scorers."""

from datetime import datetime

import pytest

from dupscan.dedup.models import FileMetadata, Period
from dupscan.dedup.similarity import (
    dice_coefficient,
    field_similarity,
    is_absent,
    metadata_similarity,
)


class TestDiceCoefficient:
    def test_identical_strings(self):
        assert dice_coefficient("alice", "alice") == 1.0

    def test_disjoint_bigrams(self):
        assert dice_coefficient("alice", "bob") == 0.0

    def test_partial_overlap(self):
        # ni ig gh ht / na ac ch ht share only "ht"
        assert dice_coefficient("night", "nacht") == pytest.approx(0.25)

    def test_bigrams_are_a_multiset(self):
        assert dice_coefficient("aaaa", "aa") == pytest.approx(0.5)

    def test_whitespace_is_ignored(self):
        assert dice_coefficient("new york", "newyork") == 1.0

    def test_short_strings(self):
        assert dice_coefficient("a", "a") == 1.0
        assert dice_coefficient("a", "b") == 0.0
        assert dice_coefficient("a", "ab") == 0.0

    def test_symmetric(self):
        assert dice_coefficient("jonathan", "jonathon") == dice_coefficient("jonathon", "jonathan")


class TestFieldSimilarity:
    def test_case_insensitive(self):
        assert field_similarity("ALICE", "alice") == 1.0

    def test_typo_scores_high(self):
        assert field_similarity("Jonathan Smith", "Jonathon Smith") == pytest.approx(10 / 12)

    def test_absent_values_are_not_comparable(self):
        assert field_similarity(None, "Alice") is None
        assert field_similarity("Alice", "") is None
        assert field_similarity(None, None) is None

    def test_non_string_scalars_compare_as_text(self):
        assert field_similarity(30, "30") == 1.0

    @pytest.mark.parametrize("a, b", [
        ("Lisbon", "Porto"),
        ("maria.g@example.com", "jsmith@example.com"),
        ("x", "xy"),
    ])
    def test_bounded_and_symmetric(self, a, b):
        forward = field_similarity(a, b)
        assert 0.0 <= forward <= 1.0
        assert forward == field_similarity(b, a)

    def test_is_absent(self):
        assert is_absent(None)
        assert is_absent("")
        assert not is_absent(0)
        assert not is_absent(" ")


class TestMetadataSimilarity:
    def test_no_comparable_factor_scores_zero(self):
        assert metadata_similarity(None, None) == 0.0
        assert metadata_similarity(FileMetadata(size=10), FileMetadata(type="text/csv")) == 0.0

    def test_size_factor(self):
        score = metadata_similarity(FileMetadata(size=100), FileMetadata(size=105))
        assert score == pytest.approx(1 - 5 / 105)

    def test_both_sizes_zero(self):
        assert metadata_similarity({"size": 0}, {"size": 0}) == 1.0

    def test_mean_of_present_factors(self):
        a = FileMetadata(size=100, type="text/csv", spatial_domain="PT")
        b = FileMetadata(size=100, type="application/json", spatial_domain="PT")
        assert metadata_similarity(a, b) == pytest.approx(2 / 3)

    def test_period_overlap(self):
        year_2020 = Period(datetime(2020, 1, 1), datetime(2020, 12, 31))
        mid_2020 = Period(datetime(2020, 6, 1), datetime(2021, 6, 1))
        year_2022 = Period(datetime(2022, 1, 1), datetime(2022, 12, 31))

        assert metadata_similarity(FileMetadata(period=year_2020), FileMetadata(period=mid_2020)) == 1.0
        assert metadata_similarity(FileMetadata(period=year_2020), FileMetadata(period=year_2022)) == 0.0

    def test_accepts_mappings(self):
        a = {"type": "text/csv", "spatialDomain": "PT", "period": {"start": "2020-01-01", "end": "2020-12-31"}}
        b = {"type": "text/csv", "spatial_domain": "PT", "period": {"start": "2020-06-01", "end": "2020-07-01"}}
        assert metadata_similarity(a, b) == 1.0

    def test_malformed_period_is_ignored(self):
        a = {"type": "text/csv", "period": {"start": "2020-01-01"}}
        b = {"type": "text/csv", "period": {"start": "not a date", "end": "2020-01-01"}}
        assert metadata_similarity(a, b) == 1.0

    def test_non_numeric_size_is_not_comparable(self):
        a = {"size": "100", "type": "text/csv"}
        b = {"size": 100, "type": "text/csv"}
        assert metadata_similarity(a, b) == 1.0
        assert metadata_similarity(b, a) == 1.0

    @pytest.mark.parametrize("size", [True, -5, float("nan"), [100]])
    def test_invalid_sizes_are_ignored(self, size):
        assert metadata_similarity(FileMetadata(size=size), FileMetadata(size=100)) == 0.0

    @pytest.mark.parametrize("value", [["x"], "text/csv", 42])
    def test_unknown_argument_counts_as_empty(self, value):
        assert metadata_similarity(value, {"size": 1}) == 0.0
        assert metadata_similarity({"size": 1}, value) == 0.0

    def test_period_of_wrong_type_is_ignored(self):
        a = FileMetadata(type="text/csv", period={"start": "2020-01-01", "end": "2020-12-31"})
        b = FileMetadata(type="text/csv", period=Period(datetime(2020, 1, 1), datetime(2020, 2, 1)))
        assert metadata_similarity(a, b) == 1.0

    def test_symmetric(self):
        a = FileMetadata(size=90, type="text/csv")
        b = FileMetadata(size=120, type="text/csv", spatial_domain="ES")
        assert metadata_similarity(a, b) == metadata_similarity(b, a)
