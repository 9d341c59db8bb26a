"""
Gene Definition Table - static star-allele panels for every supported gene.

Each gene is described declaratively by a GeneProfile; the diplotype caller
and phenotype mapper are written once and read everything gene-specific
(markers, activity scores, phenotype bands, lookup tables) from here.

Activity scores and phenotype boundaries follow CPIC guidance for the
SNP-array-detectable subset of each gene's star alleles.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .models import (
    AlleleDefinition,
    FunctionalStatus,
    GeneProfile,
    LookupEntry,
    LookupPhenotype,
    MarkerDefinition,
    MetabolicPhenotype,
    PhenotypeBand,
    PhenotypeModel,
)

logger = logging.getLogger(__name__)


class GeneProfileRegistry(Mapping[str, GeneProfile]):
    """
    Read-only gene -> GeneProfile mapping.
    Built once at startup and shared by every classification call.
    """

    __slots__ = ("_profiles",)

    def __init__(self, profiles: Iterable[GeneProfile]):
        index: Dict[str, GeneProfile] = {}
        for profile in profiles:
            key = profile.gene.upper()
            if key in index:
                raise ValueError(f"Duplicate gene profile: {profile.gene}")
            index[key] = profile
        object.__setattr__(self, "_profiles", MappingProxyType(index))

    def __setattr__(self, name, value):
        raise AttributeError("GeneProfileRegistry is immutable")

    def __delattr__(self, name):
        raise AttributeError("GeneProfileRegistry is immutable")

    def __getitem__(self, gene: str) -> GeneProfile:
        return self._profiles[gene.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def get_profile(self, gene: str) -> Optional[GeneProfile]:
        """Get the profile for a gene, or None if unsupported."""
        return self._profiles.get(gene.upper())

    def is_gene_supported(self, gene: str) -> bool:
        return gene.upper() in self._profiles

    @property
    def genes(self) -> List[str]:
        return [profile.gene for profile in self._profiles.values()]

    def to_dict(self) -> Dict[str, object]:
        return {"genes": [profile.model_dump(mode="json") for profile in self._profiles.values()]}


def _marker(gene, rsid, ref, alt, star, status, score, required=True, description=None):
    return MarkerDefinition(
        rsid=rsid,
        gene=gene,
        reference_allele=ref,
        variant_allele=alt,
        star_allele=star,
        functional_status=status,
        activity_score=score,
        required=required,
        description=description,
    )


# ===== CYP2C9 =====
# Warfarin, NSAIDs, phenytoin. *1/*2 (1.5) is Intermediate: the Normal
# boundary sits strictly above 1.5.

CYP2C9 = GeneProfile(
    gene="CYP2C9",
    description="Cytochrome P450 2C9 (warfarin, NSAIDs, phenytoin)",
    markers=(
        _marker("CYP2C9", "rs1799853", "C", "T", "*2", FunctionalStatus.DECREASED, 0.5,
                description="R144C"),
        _marker("CYP2C9", "rs1057910", "A", "C", "*3", FunctionalStatus.NO_FUNCTION, 0.0,
                description="I359L"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, upper=1.0),
        PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_METABOLIZER, lower=1.0, upper=1.5,
                      upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=1.5, lower_inclusive=False),
    ),
)


# ===== CYP2C19 =====
# *17 is an increased-function allele (1.5), so scores above the nominal
# two-allele maximum of 2.0 reach the Rapid/Ultrarapid categories.

CYP2C19 = GeneProfile(
    gene="CYP2C19",
    description="Cytochrome P450 2C19 (clopidogrel, SSRIs, PPIs)",
    markers=(
        _marker("CYP2C19", "rs4244285", "G", "A", "*2", FunctionalStatus.NO_FUNCTION, 0.0,
                description="c.681G>A splicing defect"),
        _marker("CYP2C19", "rs4986893", "G", "A", "*3", FunctionalStatus.NO_FUNCTION, 0.0,
                description="W212X"),
        _marker("CYP2C19", "rs12248560", "C", "T", "*17", FunctionalStatus.INCREASED, 1.5,
                description="-806C>T promoter"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, upper=1.0),
        PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_METABOLIZER, lower=1.0, upper=2.0),
        PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=2.0, upper=2.5),
        PhenotypeBand(phenotype=MetabolicPhenotype.RAPID_METABOLIZER, lower=2.5, upper=3.0),
        PhenotypeBand(phenotype=MetabolicPhenotype.ULTRARAPID_METABOLIZER, lower=3.0),
    ),
)


# ===== CYP2D6 =====
# Boundary between Intermediate and Normal is 1.5, not 1.0:
# *1/*4 (1.0) and *1/*10 (1.25) are IM.

CYP2D6 = GeneProfile(
    gene="CYP2D6",
    description="Cytochrome P450 2D6 (codeine, tramadol, tamoxifen, antidepressants)",
    markers=(
        _marker("CYP2D6", "rs3892097", "G", "A", "*4", FunctionalStatus.NO_FUNCTION, 0.0,
                description="1846G>A splicing defect"),
        _marker("CYP2D6", "rs5030655", "G", "A", "*6", FunctionalStatus.NO_FUNCTION, 0.0,
                description="1707delT frameshift"),
        _marker("CYP2D6", "rs1065852", "C", "T", "*10", FunctionalStatus.DECREASED, 0.25,
                description="P34S"),
        _marker("CYP2D6", "rs28371706", "C", "T", "*17", FunctionalStatus.DECREASED, 0.5,
                description="T107I"),
        _marker("CYP2D6", "rs28371725", "C", "T", "*41", FunctionalStatus.DECREASED, 0.5,
                description="2988G>A splicing defect"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, lower=0.0, upper=0.0,
                      upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_METABOLIZER, lower=0.0, upper=1.5,
                      lower_inclusive=False, upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=1.5, upper=2.0,
                      lower_inclusive=False, upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.ULTRARAPID_METABOLIZER, lower=2.0,
                      lower_inclusive=False),
    ),
    limitations=(
        "SNP array data cannot detect CYP2D6 gene deletions (*5) or duplications (*1xN, *2xN)",
        "This panel covers major star alleles but not all known CYP2D6 variants",
    ),
)


# ===== CYP3A5 =====

CYP3A5 = GeneProfile(
    gene="CYP3A5",
    description="Cytochrome P450 3A5 (tacrolimus)",
    markers=(
        _marker("CYP3A5", "rs776746", "A", "G", "*3", FunctionalStatus.NO_FUNCTION, 0.0,
                description="6986A>G splicing defect"),
        _marker("CYP3A5", "rs10264272", "C", "T", "*6", FunctionalStatus.NO_FUNCTION, 0.0,
                required=False, description="14690G>A exon 7 skipping"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.NON_EXPRESSOR, upper=0.5),
        PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_EXPRESSOR, lower=0.5, upper=1.5),
        PhenotypeBand(phenotype=MetabolicPhenotype.EXPRESSOR, lower=1.5),
    ),
    limitations=(
        "CYP3A5*7 (rs41303343, insertion) is not detectable from biallelic SNP calls",
    ),
)


# ===== SLCO1B1 =====
# Only *5 is called; *15 needs rs2306283 phasing that SNP arrays cannot provide.
# *1/*5 (1.5) is Decreased Function and *5/*5 (1.0) is Poor Function.

SLCO1B1 = GeneProfile(
    gene="SLCO1B1",
    description="Organic anion transporting polypeptide 1B1 (statins)",
    markers=(
        _marker("SLCO1B1", "rs4149056", "T", "C", "*5", FunctionalStatus.DECREASED, 0.5,
                description="V174A"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.POOR_FUNCTION, upper=1.0, upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.DECREASED_FUNCTION, lower=1.0, upper=1.5,
                      lower_inclusive=False, upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_FUNCTION, lower=1.5, lower_inclusive=False),
    ),
    limitations=(
        "SLCO1B1*15 cannot be distinguished from *5 without rs2306283 phasing",
    ),
)


# ===== UGT1A1 =====

UGT1A1 = GeneProfile(
    gene="UGT1A1",
    description="UDP glucuronosyltransferase 1A1 (irinotecan, atazanavir)",
    markers=(
        _marker("UGT1A1", "rs4148323", "G", "A", "*6", FunctionalStatus.DECREASED, 0.3,
                description="G71R"),
        _marker("UGT1A1", "rs887829", "C", "T", "*27", FunctionalStatus.DECREASED, 0.5,
                description="-364C>T, tags *80/*28"),
    ),
    bands=(
        PhenotypeBand(phenotype=MetabolicPhenotype.POOR_METABOLIZER, upper=1.0),
        PhenotypeBand(phenotype=MetabolicPhenotype.INTERMEDIATE_METABOLIZER, lower=1.0, upper=1.5,
                      upper_inclusive=True),
        PhenotypeBand(phenotype=MetabolicPhenotype.NORMAL_METABOLIZER, lower=1.5, lower_inclusive=False),
    ),
    limitations=(
        "UGT1A1*28 (TA repeat, rs8175347) is not reliably detected on SNP arrays",
    ),
)


# ===== VKORC1 =====
# Non-additive: phenotype is read straight from the diplotype.
# Sensitivity score scale: 1 = low, 3 = high.

VKORC1 = GeneProfile(
    gene="VKORC1",
    description="Vitamin K epoxide reductase complex subunit 1 (warfarin sensitivity)",
    model=PhenotypeModel.LOOKUP,
    reference_allele=AlleleDefinition(name="*1"),
    markers=(
        _marker("VKORC1", "rs9923231", "G", "A", "*2", FunctionalStatus.DECREASED, None,
                description="-1639G>A promoter, reduced expression"),
    ),
    lookup_table=(
        LookupEntry(diplotype="*1/*1", phenotype=LookupPhenotype.LOW_SENSITIVITY, score=1.0),
        LookupEntry(diplotype="*1/*2", phenotype=LookupPhenotype.INTERMEDIATE_SENSITIVITY, score=2.0),
        LookupEntry(diplotype="*2/*2", phenotype=LookupPhenotype.HIGH_SENSITIVITY, score=3.0),
    ),
    lookup_score_scale="warfarin sensitivity (1=low, 3=high)",
)


# ===== F5 =====
# Factor V Leiden (rs6025) drives the call; rs6027 (HR2) only raises risk
# when Leiden is absent.

F5 = GeneProfile(
    gene="F5",
    description="Coagulation factor V (thrombophilia risk with estrogens)",
    model=PhenotypeModel.LOOKUP,
    reference_allele=AlleleDefinition(name="WT"),
    markers=(
        _marker("F5", "rs6025", "G", "A", "FVL", FunctionalStatus.INCREASED, None,
                description="R506Q, Factor V Leiden"),
        _marker("F5", "rs6027", "C", "T", "HR2", FunctionalStatus.INCREASED, None,
                required=False, description="H1299R"),
    ),
    lookup_table=(
        LookupEntry(diplotype="WT/WT", phenotype=LookupPhenotype.NORMAL_THROMBOPHILIA_RISK, score=1.0),
        LookupEntry(diplotype="WT/FVL", phenotype=LookupPhenotype.ELEVATED_THROMBOPHILIA_RISK, score=5.0),
        LookupEntry(diplotype="FVL/FVL", phenotype=LookupPhenotype.VERY_HIGH_THROMBOPHILIA_RISK, score=50.0),
        LookupEntry(diplotype="WT/HR2", phenotype=LookupPhenotype.ELEVATED_THROMBOPHILIA_RISK, score=3.0),
        LookupEntry(diplotype="HR2/HR2", phenotype=LookupPhenotype.HIGH_THROMBOPHILIA_RISK, score=20.0),
        LookupEntry(diplotype="FVL/HR2", phenotype=LookupPhenotype.ELEVATED_THROMBOPHILIA_RISK, score=5.0),
    ),
    lookup_score_scale="approximate VTE relative risk (x baseline)",
)


DEFAULT_PROFILES = (CYP2C9, CYP2C19, CYP2D6, CYP3A5, SLCO1B1, UGT1A1, VKORC1, F5)


def build_default_registry() -> GeneProfileRegistry:
    """Build the registry of built-in gene profiles."""
    return GeneProfileRegistry(DEFAULT_PROFILES)


def load_registry_from_file(filepath: str) -> GeneProfileRegistry:
    """
    Load gene profiles from a JSON file.

    Expected shape: {"genes": [<GeneProfile>, ...]} (the output of
    GeneProfileRegistry.to_dict()).
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Gene profile file not found at {path}")

    with open(path, "r") as f:
        data = json.load(f)

    profiles = [GeneProfile.model_validate(item) for item in data.get("genes", [])]
    registry = GeneProfileRegistry(profiles)
    logger.info("Loaded %d gene profiles from %s", len(registry), path)
    return registry


def save_registry_to_file(registry: GeneProfileRegistry, filepath: str):
    """Write a registry to a JSON file readable by load_registry_from_file."""
    with open(filepath, "w") as f:
        json.dump(registry.to_dict(), f, indent=2)
