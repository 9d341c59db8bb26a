"""
Internal data models for the pharmacogenomics service.
These models represent the marker definitions, gene profiles and the
intermediate/final results produced while resolving diplotypes and phenotypes.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from itertools import combinations_with_replacement
from typing import Any, Dict, List, Optional, Tuple, Union
from enum import Enum


UNKNOWN_ALLELE = "Unknown"
SCORE_PRECISION = 4  # decimal places kept on summed activity scores


class Zygosity(str, Enum):
    """Variant-allele count at a single marker."""
    ABSENT = "absent"  # Marker not observed (or unusable call)
    HOMOZYGOUS_REFERENCE = "homozygous_reference"  # 0 variant alleles
    HETEROZYGOUS = "heterozygous"  # 1 variant allele
    HOMOZYGOUS_VARIANT = "homozygous_variant"  # 2 variant alleles

    @property
    def variant_count(self) -> Optional[int]:
        return _VARIANT_COUNTS[self]


_VARIANT_COUNTS = {
    Zygosity.ABSENT: None,
    Zygosity.HOMOZYGOUS_REFERENCE: 0,
    Zygosity.HETEROZYGOUS: 1,
    Zygosity.HOMOZYGOUS_VARIANT: 2,
}


class FunctionalStatus(str, Enum):
    NORMAL = "Normal"
    DECREASED = "Decreased"
    NO_FUNCTION = "No-function"
    INCREASED = "Increased"

    @property
    def severity(self) -> int:
        """Higher means greater loss of function."""
        return _SEVERITY[self]


_SEVERITY = {
    FunctionalStatus.INCREASED: 0,
    FunctionalStatus.NORMAL: 1,
    FunctionalStatus.DECREASED: 2,
    FunctionalStatus.NO_FUNCTION: 3,
}


class ConfidenceLevel(str, Enum):
    """Ordered confidence grade: LOW < MEDIUM < HIGH."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def lowest(cls, *levels: "ConfidenceLevel") -> "ConfidenceLevel":
        return min(levels, key=lambda level: level.rank)


_RANKS = {
    ConfidenceLevel.LOW: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.HIGH: 2,
}


class PhenotypeModel(str, Enum):
    ADDITIVE = "additive"  # Activity score = sum of allele scores
    LOOKUP = "lookup"  # Diplotype read directly from a table


class CallState(str, Enum):
    """Terminal state of one diplotype call."""
    REFERENCE = "reference"
    SINGLE_VARIANT_HOMOZYGOUS = "single_variant_homozygous"
    SINGLE_VARIANT_HETEROZYGOUS = "single_variant_heterozygous"
    PHASE_AMBIGUOUS = "phase_ambiguous"
    INDETERMINATE = "indeterminate"
    SUPPLIED = "supplied"  # Diplotype given directly, not called from markers


class LimitationType(str, Enum):
    """Non-fatal conditions surfaced alongside a result."""
    MISSING_MARKER_DATA = "missing_marker_data"
    MALFORMED_GENOTYPE = "malformed_genotype"
    PHASE_AMBIGUITY = "phase_ambiguity"
    ALLELE_AMBIGUITY = "allele_ambiguity"
    UNRECOGNIZED_ALLELE_COMBINATION = "unrecognized_allele_combination"
    UNSUPPORTED_GENE = "unsupported_gene"
    GENE_CAVEAT = "gene_caveat"


class MetabolicPhenotype(str, Enum):
    """Phenotype vocabulary for additive (activity-score) genes."""
    POOR_METABOLIZER = "Poor Metabolizer"
    INTERMEDIATE_METABOLIZER = "Intermediate Metabolizer"
    NORMAL_METABOLIZER = "Normal Metabolizer"
    RAPID_METABOLIZER = "Rapid Metabolizer"
    ULTRARAPID_METABOLIZER = "Ultrarapid Metabolizer"
    POOR_FUNCTION = "Poor Function"
    DECREASED_FUNCTION = "Decreased Function"
    NORMAL_FUNCTION = "Normal Function"
    NON_EXPRESSOR = "Non-expressor"
    INTERMEDIATE_EXPRESSOR = "Intermediate Expressor"
    EXPRESSOR = "Expressor"
    UNKNOWN = "Unknown"


class LookupPhenotype(str, Enum):
    """Phenotype vocabulary for direct-lookup genes."""
    LOW_SENSITIVITY = "Low Sensitivity"
    INTERMEDIATE_SENSITIVITY = "Intermediate Sensitivity"
    HIGH_SENSITIVITY = "High Sensitivity"
    NORMAL_THROMBOPHILIA_RISK = "Normal Thrombophilia Risk"
    ELEVATED_THROMBOPHILIA_RISK = "Elevated Thrombophilia Risk"
    HIGH_THROMBOPHILIA_RISK = "High Thrombophilia Risk"
    VERY_HIGH_THROMBOPHILIA_RISK = "Very High Thrombophilia Risk"
    UNKNOWN = "Unknown"


Phenotype = Union[MetabolicPhenotype, LookupPhenotype]


def diplotype_name(allele1: str, allele2: str) -> str:
    return f"{allele1}/{allele2}"


# ---------------------------------------------------------------------------
# Gene definitions
# ---------------------------------------------------------------------------

class AlleleDefinition(BaseModel):
    """A named star allele with its function (used for the reference allele)."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Star allele name (e.g., *1)")
    functional_status: FunctionalStatus = Field(default=FunctionalStatus.NORMAL)
    activity_score: Optional[float] = Field(None, description="Per-allele activity score")


class MarkerDefinition(BaseModel):
    """One marker whose variant allele is diagnostic of one star allele."""
    model_config = ConfigDict(frozen=True)

    rsid: str = Field(..., description="dbSNP reference ID")
    gene: str = Field(..., description="Gene symbol")
    reference_allele: str = Field(..., min_length=1, max_length=1, description="Reference nucleotide")
    variant_allele: str = Field(..., min_length=1, max_length=1, description="Variant nucleotide")
    star_allele: str = Field(..., description="Star allele indicated by the variant")
    functional_status: FunctionalStatus = Field(..., description="Function of the star allele")
    activity_score: Optional[float] = Field(None, description="Activity score (None for lookup genes)")
    required: bool = Field(default=True, description="Whether a missing call blocks the phenotype")
    description: Optional[str] = Field(None, description="Variant description (e.g., -1639G>A)")

    @model_validator(mode="after")
    def _check_alleles(self) -> "MarkerDefinition":
        for base in (self.reference_allele, self.variant_allele):
            if base not in "ACGT":
                raise ValueError(f"{self.rsid}: invalid nucleotide {base!r}")
        if self.reference_allele == self.variant_allele:
            raise ValueError(f"{self.rsid}: reference and variant alleles are identical")
        return self


class PhenotypeBand(BaseModel):
    """Activity-score interval mapped to one phenotype. None bounds are open."""
    model_config = ConfigDict(frozen=True)

    phenotype: MetabolicPhenotype
    lower: Optional[float] = None
    upper: Optional[float] = None
    lower_inclusive: bool = True
    upper_inclusive: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "PhenotypeBand":
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError(f"Band for {self.phenotype.value}: lower bound exceeds upper bound")
        return self

    def contains(self, score: float) -> bool:
        if self.lower is not None:
            if score < self.lower or (score == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if score > self.upper or (score == self.upper and not self.upper_inclusive):
                return False
        return True


class LookupEntry(BaseModel):
    """Direct diplotype -> phenotype mapping for lookup genes."""
    model_config = ConfigDict(frozen=True)

    diplotype: str = Field(..., description="Diplotype key (e.g., *1/*2)")
    phenotype: LookupPhenotype
    score: Optional[float] = Field(None, description="Score on the gene's own lookup scale")


class GeneProfile(BaseModel):
    """Declarative definition of one gene: alleles, markers and phenotype rules."""
    model_config = ConfigDict(frozen=True)

    gene: str = Field(..., description="Gene symbol")
    description: Optional[str] = None
    model: PhenotypeModel = Field(default=PhenotypeModel.ADDITIVE)
    reference_allele: AlleleDefinition = Field(
        default_factory=lambda: AlleleDefinition(name="*1", activity_score=1.0)
    )
    markers: Tuple[MarkerDefinition, ...] = Field(..., min_length=1)
    bands: Tuple[PhenotypeBand, ...] = Field(default=())
    lookup_table: Tuple[LookupEntry, ...] = Field(default=())
    lookup_score_scale: Optional[str] = Field(None, description="Label of the lookup score scale")
    limitations: Tuple[str, ...] = Field(default=(), description="Static gene-level caveats")

    @model_validator(mode="after")
    def _check_profile(self) -> "GeneProfile":
        for marker in self.markers:
            if marker.gene != self.gene:
                raise ValueError(f"Marker {marker.rsid} belongs to {marker.gene}, not {self.gene}")
            if marker.star_allele == self.reference_allele.name:
                raise ValueError(f"Marker {marker.rsid} cannot indicate the reference allele")
        seen: Dict[str, str] = {}
        for marker in self.markers:
            previous = seen.setdefault(marker.rsid, marker.variant_allele)
            if previous != marker.variant_allele:
                raise ValueError(f"Marker {marker.rsid} defined with conflicting variant alleles")

        if self.model == PhenotypeModel.ADDITIVE:
            if not self.bands:
                raise ValueError(f"{self.gene}: additive genes require phenotype bands")
            if self.reference_allele.activity_score is None:
                raise ValueError(f"{self.gene}: reference allele requires an activity score")
            missing = [m.rsid for m in self.markers if m.activity_score is None]
            if missing:
                raise ValueError(f"{self.gene}: markers without activity score: {missing}")
            uncovered = [
                score for score in self.reachable_scores()
                if not any(band.contains(score) for band in self.bands)
            ]
            if uncovered:
                raise ValueError(f"{self.gene}: activity scores {uncovered} fall outside every phenotype band")
        else:
            if not self.lookup_table:
                raise ValueError(f"{self.gene}: lookup genes require a lookup table")
        return self

    @property
    def alleles(self) -> Tuple[str, ...]:
        """Known star alleles, reference first, then in marker order."""
        names = [self.reference_allele.name]
        for marker in self.markers:
            if marker.star_allele not in names:
                names.append(marker.star_allele)
        return tuple(names)

    @property
    def required_rsids(self) -> Tuple[str, ...]:
        rsids: List[str] = []
        for marker in self.markers:
            if marker.required and marker.rsid not in rsids:
                rsids.append(marker.rsid)
        return tuple(rsids)

    def reachable_scores(self) -> Tuple[float, ...]:
        """Every diplotype activity score this profile can produce (additive genes)."""
        scores = []
        for allele in self.alleles:
            definition = self.allele_definition(allele)
            if definition is not None and definition.activity_score is not None:
                scores.append(definition.activity_score)
        totals = {
            round(first + second, SCORE_PRECISION)
            for first, second in combinations_with_replacement(scores, 2)
        }
        return tuple(sorted(totals))

    def allele_definition(self, allele: str) -> Optional[AlleleDefinition]:
        if allele == self.reference_allele.name:
            return self.reference_allele
        for marker in self.markers:
            if marker.star_allele == allele:
                return AlleleDefinition(
                    name=marker.star_allele,
                    functional_status=marker.functional_status,
                    activity_score=marker.activity_score,
                )
        return None

    def lookup(self, diplotype: str) -> Optional[LookupEntry]:
        """Find the lookup entry for a diplotype; allele order is not significant."""
        alleles = sorted(diplotype.split("/"))
        for entry in self.lookup_table:
            if sorted(entry.diplotype.split("/")) == alleles:
                return entry
        return None


# ---------------------------------------------------------------------------
# Observations and results
# ---------------------------------------------------------------------------

class ObservedGenotype(BaseModel):
    """One sample's call for one marker, as supplied by the normalizer."""
    model_config = ConfigDict(frozen=True)

    rsid: str = Field(..., description="dbSNP reference ID")
    genotype: Optional[str] = Field(None, description="Canonical two-letter genotype (e.g., AG)")


class Limitation(BaseModel):
    """A non-fatal condition that lowered or qualified a result."""
    model_config = ConfigDict(frozen=True)

    type: LimitationType
    message: str
    rsids: Tuple[str, ...] = Field(default=())


class Diplotype(BaseModel):
    """Result of diplotype inference for one gene on one sample."""
    model_config = ConfigDict(frozen=True)

    allele1: str
    allele2: str
    confidence: ConfidenceLevel
    call_state: CallState
    phase_ambiguous: bool = False
    allele_ambiguous: bool = False
    candidate_diplotypes: Tuple[str, ...] = Field(default=())
    variant_markers: Tuple[str, ...] = Field(
        default=(), description="rsids carrying variant alleles (retained for audit)"
    )
    notes: Optional[str] = None

    @property
    def name(self) -> str:
        return diplotype_name(self.allele1, self.allele2)

    @property
    def alleles(self) -> Tuple[str, str]:
        return (self.allele1, self.allele2)


class PhenotypeResult(BaseModel):
    """Phenotype derived from a diplotype and its gene profile."""
    model_config = ConfigDict(frozen=True)

    phenotype: Phenotype
    model: PhenotypeModel
    activity_score: Optional[float] = None
    lookup_score: Optional[float] = None
    lookup_score_scale: Optional[str] = None
    recognized: bool = True

    @property
    def is_unknown(self) -> bool:
        return self.phenotype.value == "Unknown"


class ClassificationResult(BaseModel):
    """Unit handed to the recommendation layer for one gene on one sample."""
    model_config = ConfigDict(frozen=True)

    gene: str = Field(..., description="Gene symbol")
    diplotype: str = Field(..., description="Diplotype (e.g., *1/*2)")
    allele1: str
    allele2: str
    phenotype: Phenotype = Field(..., description="Phenotype (e.g., Intermediate Metabolizer)")
    activity_score: Optional[float] = Field(None, description="Sum of allele activity scores")
    lookup_score: Optional[float] = Field(None, description="Score on the lookup gene's own scale")
    lookup_score_scale: Optional[str] = None
    confidence: ConfidenceLevel
    call_state: CallState
    phase_ambiguous: bool = False
    candidate_diplotypes: Tuple[str, ...] = Field(default=())
    missing_markers: Tuple[str, ...] = Field(default=())
    limitations: Tuple[str, ...] = Field(default=())
    limitation_types: Tuple[LimitationType, ...] = Field(default=())
    confidence_breakdown: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible plain data."""
        return self.model_dump(mode="json")


class PanelResult(BaseModel):
    """All gene classifications for one sample."""
    sample_id: Optional[str] = None
    results: Dict[str, ClassificationResult] = Field(default_factory=dict)

    @property
    def genes(self) -> List[str]:
        return list(self.results)
