"""
Result Assembler - packages diplotype, phenotype and confidence into the
ClassificationResult consumed by the recommendation layer.

Pure functions only: no I/O and no logging.
"""

from typing import List, Optional, Tuple

from .confidence import ConfidenceBreakdown
from .models import (
    UNKNOWN_ALLELE,
    CallState,
    ClassificationResult,
    ConfidenceLevel,
    Diplotype,
    GeneProfile,
    Limitation,
    LimitationType,
    MetabolicPhenotype,
    PhenotypeResult,
    diplotype_name,
)
from .zygosity import ZygosityReport


def _partial_call_limitation(diplotype: Diplotype, report: ZygosityReport) -> Limitation:
    missing = ", ".join(report.missing_rsids)
    verb = "is" if len(report.missing_rsids) == 1 else "are"
    return Limitation(
        type=LimitationType.MISSING_MARKER_DATA,
        message=(
            f"Partial call from observed markers would be {diplotype.name}; "
            f"not reported because {missing} {verb} missing"
        ),
        rsids=tuple(report.missing_rsids),
    )


def collect_limitations(
    profile: GeneProfile,
    report: Optional[ZygosityReport],
    diplotype: Diplotype,
    breakdown: ConfidenceBreakdown,
) -> List[Limitation]:
    """Data limitations first, then grading limitations, then static gene caveats."""
    limitations: List[Limitation] = []
    if report is not None:
        limitations.extend(report.limitations)
        if not report.is_complete:
            limitations.append(_partial_call_limitation(diplotype, report))
    limitations.extend(breakdown.limitations)
    for caveat in profile.limitations:
        limitations.append(Limitation(type=LimitationType.GENE_CAVEAT, message=caveat))
    return limitations


def _split(limitations: List[Limitation]) -> Tuple[Tuple[str, ...], Tuple[LimitationType, ...]]:
    return tuple(lim.message for lim in limitations), tuple(lim.type for lim in limitations)


def assemble_result(
    profile: GeneProfile,
    report: Optional[ZygosityReport],
    diplotype: Diplotype,
    phenotype: PhenotypeResult,
    breakdown: ConfidenceBreakdown,
    include_breakdown: bool = True,
) -> ClassificationResult:
    """
    Build the ClassificationResult for one gene on one sample.

    When a required marker is missing the called diplotype is withheld
    (reported as Unknown/Unknown) and kept only in a limitation message;
    ``phenotype`` is expected to be Unknown in that case.
    """
    messages, types = _split(collect_limitations(profile, report, diplotype, breakdown))

    withheld = report is not None and not report.is_complete
    if withheld:
        allele1 = allele2 = UNKNOWN_ALLELE
        call_state = CallState.INDETERMINATE
        phase_ambiguous = False
        candidates: Tuple[str, ...] = ()
    else:
        allele1, allele2 = diplotype.alleles
        call_state = diplotype.call_state
        phase_ambiguous = diplotype.phase_ambiguous
        candidates = diplotype.candidate_diplotypes

    return ClassificationResult(
        gene=profile.gene,
        diplotype=diplotype_name(allele1, allele2),
        allele1=allele1,
        allele2=allele2,
        phenotype=phenotype.phenotype,
        activity_score=phenotype.activity_score,
        lookup_score=phenotype.lookup_score,
        lookup_score_scale=phenotype.lookup_score_scale,
        confidence=breakdown.final,
        call_state=call_state,
        phase_ambiguous=phase_ambiguous,
        candidate_diplotypes=candidates,
        missing_markers=tuple(report.missing_rsids) if report is not None else (),
        limitations=messages,
        limitation_types=types,
        confidence_breakdown=breakdown.to_dict() if include_breakdown else None,
    )


def unsupported_gene_result(gene_id: str) -> ClassificationResult:
    """Non-fatal result for a gene with no profile."""
    limitation = Limitation(
        type=LimitationType.UNSUPPORTED_GENE,
        message=f"Gene {gene_id} is not supported",
    )
    return ClassificationResult(
        gene=gene_id,
        diplotype=diplotype_name(UNKNOWN_ALLELE, UNKNOWN_ALLELE),
        allele1=UNKNOWN_ALLELE,
        allele2=UNKNOWN_ALLELE,
        phenotype=MetabolicPhenotype.UNKNOWN,
        confidence=ConfidenceLevel.LOW,
        call_state=CallState.INDETERMINATE,
        limitations=(limitation.message,),
        limitation_types=(limitation.type,),
    )
