"""
Tests for result packaging.
"""

from pgx_engine.services.pharmacogenomics.confidence import grade_confidence
from pgx_engine.services.pharmacogenomics.diplotype_caller import call_diplotype
from pgx_engine.services.pharmacogenomics.models import (
    CallState,
    ConfidenceLevel,
    LimitationType,
    MetabolicPhenotype,
)
from pgx_engine.services.pharmacogenomics.phenotype_mapper import PhenotypeMapper
from pgx_engine.services.pharmacogenomics.result_assembler import (
    assemble_result,
    collect_limitations,
    unsupported_gene_result,
)
from pgx_engine.services.pharmacogenomics.zygosity import resolve_zygosity


def _stages(profile, observed):
    report = resolve_zygosity(profile, observed)
    diplotype = call_diplotype(profile, report)
    mapper = PhenotypeMapper(profile)
    phenotype = mapper.map_diplotype(diplotype) if report.is_complete else mapper.unknown()
    return report, diplotype, phenotype, grade_confidence(profile, report, diplotype, phenotype)


class TestAssembleResult:

    def test_packages_every_stage(self, two_marker_profile):
        report, diplotype, phenotype, breakdown = _stages(two_marker_profile, {"M1": "CT", "M2": "AC"})
        result = assemble_result(two_marker_profile, report, diplotype, phenotype, breakdown)

        assert result.gene == "TESTG"
        assert (result.allele1, result.allele2) == ("*2", "*3")
        assert result.activity_score == phenotype.activity_score
        assert result.confidence == breakdown.final == ConfidenceLevel.MEDIUM
        assert result.candidate_diplotypes == diplotype.candidate_diplotypes
        assert result.confidence_breakdown == breakdown.to_dict()
        assert len(result.limitations) == len(result.limitation_types)

    def test_withholds_diplotype_when_marker_missing(self, two_marker_profile):
        report, diplotype, phenotype, breakdown = _stages(two_marker_profile, {"M1": "TT"})
        result = assemble_result(two_marker_profile, report, diplotype, phenotype, breakdown)

        assert result.diplotype == "Unknown/Unknown"
        assert result.call_state == CallState.INDETERMINATE
        assert result.candidate_diplotypes == ()
        assert result.limitation_types[:2] == (
            LimitationType.MISSING_MARKER_DATA,
            LimitationType.MISSING_MARKER_DATA,
        )
        assert "*2/*2" in result.limitations[1]

    def test_gene_caveats_come_last(self, registry):
        profile = registry["CYP3A5"]
        report, diplotype, phenotype, breakdown = _stages(profile, {"rs776746": "AG"})
        limitations = collect_limitations(profile, report, diplotype, breakdown)

        assert [lim.type for lim in limitations] == [LimitationType.GENE_CAVEAT]
        assert limitations[0].message == profile.limitations[0]

    def test_assembly_is_pure(self, two_marker_profile):
        stages = _stages(two_marker_profile, {"M1": "CT", "M2": "AA"})

        assert assemble_result(two_marker_profile, *stages) == assemble_result(two_marker_profile, *stages)


class TestUnsupportedGene:

    def test_shape(self):
        result = unsupported_gene_result("XYZ")

        assert result.gene == "XYZ"
        assert result.phenotype == MetabolicPhenotype.UNKNOWN
        assert result.confidence == ConfidenceLevel.LOW
        assert result.limitations == ("Gene XYZ is not supported",)
        assert result.confidence_breakdown is None
