"""
Unit tests for activity-score and direct-lookup phenotype mapping.
"""

import pytest
from conftest import make_marker
from pgx_engine.services.pharmacogenomics.models import (
    AlleleDefinition,
    CallState,
    ConfidenceLevel,
    Diplotype,
    FunctionalStatus,
    GeneProfile,
    LookupEntry,
    LookupPhenotype,
    MetabolicPhenotype,
    PhenotypeModel,
)
from pgx_engine.services.pharmacogenomics.phenotype_mapper import PhenotypeMapper, classify_phenotype


class TestAdditiveModel:
    """activity_score = score(allele1) + score(allele2), bucketed per gene."""

    @pytest.fixture
    def mapper(self, two_marker_profile):
        return PhenotypeMapper(two_marker_profile)

    @pytest.mark.parametrize("allele1, allele2, score, phenotype", [
        ("*1", "*1", 2.0, MetabolicPhenotype.NORMAL_METABOLIZER),
        ("*1", "*2", 1.5, MetabolicPhenotype.INTERMEDIATE_METABOLIZER),
        ("*2", "*2", 1.0, MetabolicPhenotype.INTERMEDIATE_METABOLIZER),
        ("*1", "*3", 1.0, MetabolicPhenotype.INTERMEDIATE_METABOLIZER),
        ("*2", "*3", 0.5, MetabolicPhenotype.POOR_METABOLIZER),
        ("*3", "*3", 0.0, MetabolicPhenotype.POOR_METABOLIZER),
    ])
    def test_score_and_band(self, mapper, allele1, allele2, score, phenotype):
        result = mapper.map_alleles(allele1, allele2)

        assert result.activity_score == score
        assert result.phenotype == phenotype
        assert result.model == PhenotypeModel.ADDITIVE
        assert result.recognized

    def test_unknown_allele_is_unknown_not_defaulted(self, mapper):
        result = mapper.map_alleles("*1", "*99")

        assert result.phenotype == MetabolicPhenotype.UNKNOWN
        assert result.activity_score is None
        assert not result.recognized

    def test_score_between_bands_is_unrecognized(self, gapped_profile):
        """GIVEN *1/*2 (score 1.5) and no band covering 1.5, THEN Unknown is not a recognized call."""
        result = PhenotypeMapper(gapped_profile).map_alleles("*1", "*2")

        assert result.phenotype == MetabolicPhenotype.UNKNOWN
        assert result.activity_score is None
        assert not result.recognized

    def test_boundaries_are_gene_specific(self, registry):
        """The same score of 1.5 lands in different categories for different genes."""
        cyp2c9 = PhenotypeMapper(registry["CYP2C9"]).map_alleles("*1", "*2")
        cyp3a5 = PhenotypeMapper(registry["CYP3A5"]).map_alleles("*1", "*1")
        cyp2d6 = PhenotypeMapper(registry["CYP2D6"]).map_alleles("*1", "*41")

        assert cyp2c9.activity_score == 1.5
        assert cyp2c9.phenotype == MetabolicPhenotype.INTERMEDIATE_METABOLIZER
        assert cyp2d6.activity_score == 1.5
        assert cyp2d6.phenotype == MetabolicPhenotype.INTERMEDIATE_METABOLIZER
        assert cyp3a5.activity_score == 2.0
        assert cyp3a5.phenotype == MetabolicPhenotype.EXPRESSOR

    def test_increased_function_reaches_ultrarapid(self, registry):
        mapper = PhenotypeMapper(registry["CYP2C19"])

        assert mapper.map_alleles("*17", "*17").activity_score == 3.0
        assert mapper.map_alleles("*17", "*17").phenotype == MetabolicPhenotype.ULTRARAPID_METABOLIZER
        assert mapper.map_alleles("*1", "*17").phenotype == MetabolicPhenotype.RAPID_METABOLIZER
        assert mapper.map_alleles("*2", "*17").phenotype == MetabolicPhenotype.INTERMEDIATE_METABOLIZER

    def test_fractional_scores_do_not_drift(self, registry):
        result = PhenotypeMapper(registry["CYP2D6"]).map_alleles("*10", "*10")

        assert result.activity_score == 0.5
        assert result.phenotype == MetabolicPhenotype.INTERMEDIATE_METABOLIZER


class TestLookupModel:
    """Direct diplotype -> phenotype table, no score arithmetic."""

    @pytest.fixture
    def mapper(self, registry):
        return PhenotypeMapper(registry["VKORC1"])

    def test_table_value_returned_unchanged(self, mapper, registry):
        result = mapper.map_alleles("*2", "*2")
        entry = registry["VKORC1"].lookup("*2/*2")

        assert result.phenotype == LookupPhenotype.HIGH_SENSITIVITY
        assert result.lookup_score == entry.score == 3.0
        assert result.activity_score is None
        assert result.model == PhenotypeModel.LOOKUP
        assert result.lookup_score_scale == registry["VKORC1"].lookup_score_scale

    def test_allele_order_is_not_significant(self, mapper):
        assert mapper.map_alleles("*2", "*1") == mapper.map_alleles("*1", "*2")

    def test_missing_table_entry_is_unrecognized(self):
        profile = GeneProfile(
            gene="TESTL",
            model=PhenotypeModel.LOOKUP,
            reference_allele=AlleleDefinition(name="*1"),
            markers=(make_marker("L1", "G", "A", "*2", FunctionalStatus.DECREASED, None, gene="TESTL"),),
            lookup_table=(
                LookupEntry(diplotype="*1/*1", phenotype=LookupPhenotype.LOW_SENSITIVITY, score=1.0),
                LookupEntry(diplotype="*1/*2", phenotype=LookupPhenotype.HIGH_SENSITIVITY, score=2.0),
            ),
        )
        result = PhenotypeMapper(profile).map_alleles("*2", "*2")

        assert result.phenotype == LookupPhenotype.UNKNOWN
        assert not result.recognized

    def test_unknown_allele_in_lookup_gene(self, registry):
        result = PhenotypeMapper(registry["F5"]).map_alleles("WT", "XYZ")

        assert result.phenotype == LookupPhenotype.UNKNOWN
        assert not result.recognized

    def test_unknown_uses_lookup_vocabulary(self, mapper):
        result = mapper.unknown()

        assert result.phenotype == LookupPhenotype.UNKNOWN
        assert result.is_unknown


class TestClassifyPhenotype:

    def test_from_diplotype(self, two_marker_profile):
        diplotype = Diplotype(
            allele1="*1",
            allele2="*2",
            confidence=ConfidenceLevel.HIGH,
            call_state=CallState.SINGLE_VARIANT_HETEROZYGOUS,
        )
        result = classify_phenotype(two_marker_profile, diplotype)

        assert result.activity_score == 1.5
        assert result.phenotype == MetabolicPhenotype.INTERMEDIATE_METABOLIZER
