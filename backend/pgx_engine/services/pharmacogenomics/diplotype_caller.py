"""
Diplotype Caller - star allele calling from unphased marker zygosity.

Rules are applied in order and exactly one terminal state is reached:

  1. No variant anywhere                       -> ref/ref            (high)
  2. One marker homozygous variant, rest ref   -> X/X                (high)
  3. One marker heterozygous, rest ref         -> ref/X              (high)
  4. Two markers heterozygous, rest ref        -> X/Y compound het   (medium, phase ambiguous)
  5. Anything else                             -> ref/ref            (low, indeterminate)

When several star alleles share a marker's variant allele, the allele with
the more severe functional impact is the primary call and the milder
alternatives are listed as candidates.

No confidence boosting. No population priors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .models import (
    CallState,
    ConfidenceLevel,
    Diplotype,
    GeneProfile,
    MarkerDefinition,
    Zygosity,
    diplotype_name,
)
from .zygosity import ZygosityReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantSite:
    """One observed marker position carrying variant alleles."""
    rsid: str
    zygosity: Zygosity
    alleles: Tuple[str, ...]  # most severe first

    @property
    def primary(self) -> str:
        return self.alleles[0]

    @property
    def is_ambiguous(self) -> bool:
        return len(self.alleles) > 1


def _severity_key(marker: MarkerDefinition, order: int):
    # Most severe first: larger loss of function, then lower activity.
    activity = marker.activity_score if marker.activity_score is not None else 0.0
    return (-marker.functional_status.severity, activity, order)


def collect_variant_sites(report: ZygosityReport) -> List[VariantSite]:
    """Group variant-carrying markers by rsid, preserving profile order."""
    grouped = {}
    for order, call in enumerate(report.calls):
        if not call.has_variant:
            continue
        entry = grouped.setdefault(call.rsid, (call.zygosity, []))
        entry[1].append((_severity_key(call.marker, order), call.marker.star_allele))

    sites: List[VariantSite] = []
    for rsid, (zygosity, keyed) in grouped.items():
        alleles: List[str] = []
        for _, allele in sorted(keyed):
            if allele not in alleles:
                alleles.append(allele)
        sites.append(VariantSite(rsid=rsid, zygosity=zygosity, alleles=tuple(alleles)))
    return sites


def _unique(names: Sequence[str]) -> Tuple[str, ...]:
    seen: List[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return tuple(seen)


class DiplotypeCaller:
    """Resolves a diplotype for one gene from a ZygosityReport."""

    def __init__(self, profile: GeneProfile):
        self.profile = profile
        self.reference = profile.reference_allele.name

    def call(self, report: ZygosityReport) -> Diplotype:
        sites = collect_variant_sites(report)
        het_sites = [s for s in sites if s.zygosity == Zygosity.HETEROZYGOUS]
        hom_sites = [s for s in sites if s.zygosity == Zygosity.HOMOZYGOUS_VARIANT]

        if not sites:
            diplotype = self._reference_call()
        elif len(sites) == 1 and hom_sites:
            diplotype = self._homozygous_call(hom_sites[0])
        elif len(sites) == 1 and het_sites:
            diplotype = self._heterozygous_call(het_sites[0])
        elif len(sites) == 2 and len(het_sites) == 2:
            diplotype = self._compound_heterozygous_call(het_sites[0], het_sites[1])
        else:
            diplotype = self._indeterminate_call(het_sites, hom_sites)

        logger.debug("%s call state: %s", self.profile.gene, diplotype.call_state.value)
        return diplotype

    # -- terminal states ---------------------------------------------------

    def _reference_call(self) -> Diplotype:
        return Diplotype(
            allele1=self.reference,
            allele2=self.reference,
            confidence=ConfidenceLevel.HIGH,
            call_state=CallState.REFERENCE,
            notes="No variant alleles detected",
        )

    def _homozygous_call(self, site: VariantSite) -> Diplotype:
        allele = site.primary
        candidates: Tuple[str, ...] = ()
        if site.is_ambiguous:
            pairs = []
            for i, first in enumerate(site.alleles):
                for second in site.alleles[i:]:
                    pairs.append(diplotype_name(first, second))
            candidates = _unique(pairs)

        return Diplotype(
            allele1=allele,
            allele2=allele,
            confidence=ConfidenceLevel.MEDIUM if site.is_ambiguous else ConfidenceLevel.HIGH,
            call_state=CallState.SINGLE_VARIANT_HOMOZYGOUS,
            allele_ambiguous=site.is_ambiguous,
            candidate_diplotypes=candidates,
            variant_markers=(site.rsid,),
            notes="Homozygous variant allele",
        )

    def _heterozygous_call(self, site: VariantSite) -> Diplotype:
        candidates: Tuple[str, ...] = ()
        if site.is_ambiguous:
            candidates = _unique([diplotype_name(self.reference, a) for a in site.alleles])

        return Diplotype(
            allele1=self.reference,
            allele2=site.primary,
            confidence=ConfidenceLevel.MEDIUM if site.is_ambiguous else ConfidenceLevel.HIGH,
            call_state=CallState.SINGLE_VARIANT_HETEROZYGOUS,
            allele_ambiguous=site.is_ambiguous,
            candidate_diplotypes=candidates,
            variant_markers=(site.rsid,),
            notes="Heterozygous with reference",
        )

    def _compound_heterozygous_call(self, first: VariantSite, second: VariantSite) -> Diplotype:
        """
        Two heterozygous markers cannot be phased from per-marker calls.
        Assume trans (compound heterozygote) as the primary call and keep the
        single-variant alternatives as candidates.
        """
        a, b = first.primary, second.primary
        names = [
            diplotype_name(a, b),
            diplotype_name(self.reference, a),
            diplotype_name(self.reference, b),
        ]
        for x in first.alleles:
            for y in second.alleles:
                names.append(diplotype_name(x, y))
        for x in first.alleles + second.alleles:
            names.append(diplotype_name(self.reference, x))

        return Diplotype(
            allele1=a,
            allele2=b,
            confidence=ConfidenceLevel.MEDIUM,
            call_state=CallState.PHASE_AMBIGUOUS,
            phase_ambiguous=True,
            allele_ambiguous=first.is_ambiguous or second.is_ambiguous,
            candidate_diplotypes=_unique(names),
            variant_markers=(first.rsid, second.rsid),
            notes="Compound heterozygote assumed (unphased, trans)",
        )

    def _indeterminate_call(
        self, het_sites: List[VariantSite], hom_sites: List[VariantSite]
    ) -> Diplotype:
        rsids = tuple(s.rsid for s in sorted(
            het_sites + hom_sites, key=lambda s: self._marker_order(s.rsid)
        ))
        listed = ", ".join(rsids)

        if len(hom_sites) >= 2 and not het_sites:
            notes = f"{len(hom_sites)} conflicting homozygous variant markers detected ({listed})"
        elif hom_sites:
            hom = ", ".join(s.rsid for s in hom_sites)
            notes = (
                f"Homozygous variant at {hom} co-occurs with variants at other markers ({listed})"
            )
        else:
            notes = f"{len(het_sites)} heterozygous variant markers detected ({listed}); phase cannot be resolved"

        return Diplotype(
            allele1=self.reference,
            allele2=self.reference,
            confidence=ConfidenceLevel.LOW,
            call_state=CallState.INDETERMINATE,
            variant_markers=rsids,
            notes=f"{notes}; defaulting to {diplotype_name(self.reference, self.reference)}",
        )

    def _marker_order(self, rsid: str) -> int:
        for index, marker in enumerate(self.profile.markers):
            if marker.rsid == rsid:
                return index
        return len(self.profile.markers)


def call_diplotype(profile: GeneProfile, report: ZygosityReport) -> Diplotype:
    """Convenience wrapper around DiplotypeCaller."""
    return DiplotypeCaller(profile).call(report)
