"""
Confidence Grading - deterministic, never boosted.

Grades a diplotype/phenotype call from three independent checks and follows
the principle: "Final confidence = min(component confidences)."

  - marker_completeness: every required marker observed, else LOW
  - call_resolution:     phase or allele ambiguity caps at MEDIUM
  - allele_recognition:  unrecognized alleles/combinations cap at LOW

A passing check never lifts a failing one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import (
    CallState,
    ConfidenceLevel,
    Diplotype,
    GeneProfile,
    Limitation,
    LimitationType,
    PhenotypeResult,
)
from .zygosity import ZygosityReport


# ---------------------------------------------------------------------------
# Confidence Breakdown: every component tracked independently
# ---------------------------------------------------------------------------

@dataclass
class ConfidenceBreakdown:
    """
    Itemised confidence components.

    ``final`` is always ``min(all components)`` and is computed lazily so
    that callers can inspect individual fields.
    """

    marker_completeness: ConfidenceLevel = ConfidenceLevel.HIGH
    call_resolution: ConfidenceLevel = ConfidenceLevel.HIGH
    allele_recognition: ConfidenceLevel = ConfidenceLevel.HIGH

    # Penalty log (human-readable audit trail)
    penalties_applied: List[str] = field(default_factory=list)
    limitations: List[Limitation] = field(default_factory=list)

    def all_levels(self) -> List[ConfidenceLevel]:
        return [
            self.marker_completeness,
            self.call_resolution,
            self.allele_recognition,
        ]

    @property
    def final(self) -> ConfidenceLevel:
        """Never exceeds the weakest component."""
        return ConfidenceLevel.lowest(*self.all_levels())

    def cap(self, component: str, level: ConfidenceLevel, reason: str):
        current = getattr(self, component)
        setattr(self, component, ConfidenceLevel.lowest(current, level))
        self.penalties_applied.append(f"{reason} ({component} ≤ {level.value})")

    def to_dict(self) -> Dict[str, object]:
        return {
            "marker_completeness": self.marker_completeness.value,
            "call_resolution": self.call_resolution.value,
            "allele_recognition": self.allele_recognition.value,
            "final": self.final.value,
            "penalties_applied": list(self.penalties_applied),
        }


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class ConfidenceCalculator:
    """
    Deterministic confidence grading.

    Usage::

        calc = ConfidenceCalculator()
        bd = ConfidenceBreakdown()

        calc.apply_completeness_penalties(bd, report)
        calc.apply_phase_penalties(bd, diplotype)
        calc.apply_recognition_penalties(bd, profile, diplotype, phenotype)

        final = bd.final   #  min(components)
    """

    # -- Marker Completeness -----------------------------------------------

    @staticmethod
    def apply_completeness_penalties(bd: ConfidenceBreakdown, report: ZygosityReport) -> None:
        """A missing required marker caps confidence at LOW."""
        if report.missing_rsids:
            bd.cap(
                "marker_completeness",
                ConfidenceLevel.LOW,
                f"{len(report.missing_rsids)} required marker(s) missing for {report.gene}",
            )

    # -- Phase Resolution --------------------------------------------------

    @staticmethod
    def apply_phase_penalties(bd: ConfidenceBreakdown, diplotype: Diplotype) -> None:
        """Phase ambiguity or a tie-broken allele caps confidence at MEDIUM."""
        if diplotype.phase_ambiguous:
            bd.cap("call_resolution", ConfidenceLevel.MEDIUM, "Unphased compound heterozygote")
            bd.limitations.append(Limitation(
                type=LimitationType.PHASE_AMBIGUITY,
                message=(
                    f"Phase ambiguity: {', '.join(diplotype.variant_markers)} are both heterozygous; "
                    f"{diplotype.name} assumes the variants lie on different chromosomes. "
                    f"Alternatives: {', '.join(diplotype.candidate_diplotypes[1:])}"
                ),
                rsids=diplotype.variant_markers,
            ))

        if diplotype.allele_ambiguous:
            bd.cap("call_resolution", ConfidenceLevel.MEDIUM, "Multiple star alleles explain the same marker")
            bd.limitations.append(Limitation(
                type=LimitationType.ALLELE_AMBIGUITY,
                message=(
                    f"More than one star allele matches the observed variant(s); "
                    f"the most severe ({diplotype.name}) was called. "
                    f"Candidates: {', '.join(diplotype.candidate_diplotypes)}"
                ),
                rsids=diplotype.variant_markers,
            ))

    # -- Allele Recognition ------------------------------------------------

    @staticmethod
    def apply_recognition_penalties(
        bd: ConfidenceBreakdown,
        profile: GeneProfile,
        diplotype: Diplotype,
        phenotype: Optional[PhenotypeResult] = None,
    ) -> None:
        """Unresolvable marker patterns and unrecognized alleles cap confidence at LOW."""
        unknown = [a for a in diplotype.alleles if a not in profile.alleles]
        if unknown:
            bd.cap("allele_recognition", ConfidenceLevel.LOW, f"Unrecognized allele(s) {', '.join(unknown)}")
            bd.limitations.append(Limitation(
                type=LimitationType.UNRECOGNIZED_ALLELE_COMBINATION,
                message=f"{', '.join(unknown)} not defined for {profile.gene}; phenotype cannot be determined",
            ))
            return

        if diplotype.call_state == CallState.INDETERMINATE:
            bd.cap("allele_recognition", ConfidenceLevel.LOW, "Unrecognized variant combination")
            bd.limitations.append(Limitation(
                type=LimitationType.UNRECOGNIZED_ALLELE_COMBINATION,
                message=diplotype.notes or "Unrecognized variant combination",
                rsids=diplotype.variant_markers,
            ))

        if phenotype is not None and not phenotype.recognized:
            bd.cap("allele_recognition", ConfidenceLevel.LOW, f"Unrecognized diplotype {diplotype.name}")
            bd.limitations.append(Limitation(
                type=LimitationType.UNRECOGNIZED_ALLELE_COMBINATION,
                message=f"Diplotype {diplotype.name} is not a recognized combination for this gene",
            ))


def grade_confidence(
    profile: GeneProfile,
    report: Optional[ZygosityReport],
    diplotype: Diplotype,
    phenotype: Optional[PhenotypeResult] = None,
) -> ConfidenceBreakdown:
    """Run every check and return the itemised breakdown.

    ``report`` is None when the diplotype was supplied directly rather than
    called from marker data; completeness is then not assessed.
    """
    calc = ConfidenceCalculator()
    bd = ConfidenceBreakdown()
    if report is not None:
        calc.apply_completeness_penalties(bd, report)
    calc.apply_phase_penalties(bd, diplotype)
    calc.apply_recognition_penalties(bd, profile, diplotype, phenotype)
    return bd
