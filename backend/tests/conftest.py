"""Shared fixtures: a small two-marker gene and the built-in registry."""

import pytest

from pgx_engine.services.pharmacogenomics.config import EngineConfig
from pgx_engine.services.pharmacogenomics.engine import PharmacogenomicEngine
from pgx_engine.services.pharmacogenomics.gene_definitions import (
    GeneProfileRegistry,
    build_default_registry,
)
from pgx_engine.services.pharmacogenomics.models import (
    FunctionalStatus,
    GeneProfile,
    MarkerDefinition,
    MetabolicPhenotype,
    PhenotypeBand,
)


def make_marker(rsid, ref, alt, star, status, score, gene="TESTG", required=True):
    return MarkerDefinition(
        rsid=rsid,
        gene=gene,
        reference_allele=ref,
        variant_allele=alt,
        star_allele=star,
        functional_status=status,
        activity_score=score,
        required=required,
    )


THREE_BANDS = (
    PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, upper=1.0),
    PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_METABOLIZER, lower=1.0, upper=1.5,
                  upper_inclusive=True),
    PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=1.5, lower_inclusive=False),
)

# 1.0 and 1.5 fall between the bands.
GAPPED_BANDS = (
    PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, upper=1.0),
    PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=1.75),
)


@pytest.fixture
def two_marker_profile():
    """M1 C>T *2 (0.5) and M2 A>C *3 (0.0); Poor <1.0, Intermediate 1.0-1.5, Normal >1.5."""
    return GeneProfile(
        gene="TESTG",
        markers=(
            make_marker("M1", "C", "T", "*2", FunctionalStatus.DECREASED, 0.5),
            make_marker("M2", "A", "C", "*3", FunctionalStatus.NO_FUNCTION, 0.0),
        ),
        bands=THREE_BANDS,
    )


@pytest.fixture
def shared_marker_profile():
    """Two star alleles explained by the same variant at M1."""
    return GeneProfile(
        gene="TESTG",
        markers=(
            make_marker("M1", "C", "T", "*2", FunctionalStatus.DECREASED, 0.5),
            make_marker("M1", "C", "T", "*4", FunctionalStatus.NO_FUNCTION, 0.0),
            make_marker("M2", "A", "C", "*3", FunctionalStatus.NO_FUNCTION, 0.0),
        ),
        bands=THREE_BANDS,
    )


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def engine(registry):
    return PharmacogenomicEngine(registry=registry, config=EngineConfig())


@pytest.fixture
def testg_engine(two_marker_profile):
    return PharmacogenomicEngine(
        registry=GeneProfileRegistry([two_marker_profile]),
        config=EngineConfig(),
    )


@pytest.fixture
def gapped_profile(two_marker_profile):
    """TESTG with bands that leave scores 1.0 and 1.5 uncovered (skips validation)."""
    return two_marker_profile.model_copy(update={"bands": GAPPED_BANDS})
