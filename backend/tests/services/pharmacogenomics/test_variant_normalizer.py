"""
Unit tests for the genotype canonicalization boundary.
"""

import pytest
from pgx_engine.services.pharmacogenomics.models import ObservedGenotype
from pgx_engine.services.pharmacogenomics.variant_normalizer import (
    normalize_genotype,
    normalize_genotype_detailed,
    normalize_observations,
    to_observations,
)


class TestNormalizeGenotype:
    """Test single-genotype canonicalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("AG", "AG"),
        ("GA", "AG"),
        ("ga", "AG"),
        ("G/A", "AG"),
        ("G|A", "AG"),
        (" c t ", "CT"),
        ("TT", "TT"),
    ])
    def test_canonical_forms(self, raw, expected):
        assert normalize_genotype(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "--", "II", "DD", "DI", "NN", "00"])
    def test_no_calls_become_none(self, raw):
        assert normalize_genotype(raw) is None

    @pytest.mark.parametrize("raw", ["A", "AGT", "AX", "12", "A/G/T"])
    def test_malformed_becomes_none(self, raw):
        assert normalize_genotype(raw) is None

    def test_detailed_result(self):
        result = normalize_genotype_detailed("T/C")
        assert result.raw_input == "T/C"
        assert result.normalized == "CT"
        assert result.is_valid
        assert not result.is_malformed

    @pytest.mark.parametrize("raw", [None, "", "--", "NN"])
    def test_detailed_no_call(self, raw):
        result = normalize_genotype_detailed(raw)

        assert result.no_call
        assert not result.is_valid
        assert not result.is_malformed

    @pytest.mark.parametrize("raw", ["??", "AX", "AGT"])
    def test_detailed_malformed(self, raw):
        result = normalize_genotype_detailed(raw)

        assert result.is_malformed
        assert not result.no_call


class TestNormalizeObservations:
    """Test whole-sample normalization."""

    def test_accepts_mapping_pairs_and_models(self):
        expected = [ObservedGenotype(rsid="rs1", genotype="GA")]
        assert to_observations({"rs1": "GA"}) == expected
        assert to_observations([("rs1", "GA")]) == expected
        assert to_observations(expected) == expected
        assert to_observations(None) == []

    @pytest.mark.parametrize("observed", [
        [("rs1", "AG", "extra")],
        [("rs1",)],
        ["rs1"],
        [42],
        [(None, "AG")],
        "rs1AG",
        42,
    ])
    def test_skips_items_that_are_not_pairs(self, observed):
        assert to_observations(observed) == []

    def test_keeps_valid_pairs_beside_bad_items(self):
        observed = [("rs1", "AG"), ("rs2", "AG", "extra"), ["rs3", "CT"]]

        assert [obs.rsid for obs in to_observations(observed)] == ["rs1", "rs3"]

    def test_rejects_no_calls_and_orders_alleles(self):
        result = normalize_observations([("rs1", "GA"), ("rs2", "--"), ("rs3", "xyz")])

        assert result.observations == [ObservedGenotype(rsid="rs1", genotype="AG")]
        assert result.rejected == [("rs2", "--"), ("rs3", "xyz")]
        assert result.malformed == [("rs3", "xyz")]
        assert result.malformed_rsids == ["rs3"]

    def test_collapses_exact_duplicates_only(self):
        result = normalize_observations([("rs1", "AG"), ("rs1", "GA"), ("rs1", "GG")])

        assert result.duplicates_removed == 1
        assert [obs.genotype for obs in result.observations] == ["AG", "GG"]
