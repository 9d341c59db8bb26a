"""
Marker Zygosity Resolver.

Turns one sample's observed genotypes into per-marker variant-allele counts
for a single gene. Unusable calls are treated as absent, never as errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    GeneProfile,
    Limitation,
    LimitationType,
    MarkerDefinition,
    ObservedGenotype,
    Zygosity,
)
from .variant_normalizer import GenotypeInput, to_observations

logger = logging.getLogger(__name__)

_NUCLEOTIDES = frozenset("ACGT")


@dataclass(frozen=True)
class MarkerZygosity:
    """Zygosity call for one MarkerDefinition."""
    marker: MarkerDefinition
    zygosity: Zygosity
    genotype: Optional[str] = None

    @property
    def rsid(self) -> str:
        return self.marker.rsid

    @property
    def has_variant(self) -> bool:
        return self.zygosity in (Zygosity.HETEROZYGOUS, Zygosity.HOMOZYGOUS_VARIANT)


@dataclass
class ZygosityReport:
    """Per-marker zygosity for one gene on one sample."""
    gene: str
    calls: List[MarkerZygosity] = field(default_factory=list)
    missing_rsids: List[str] = field(default_factory=list)
    malformed_rsids: List[str] = field(default_factory=list)
    limitations: List[Limitation] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every required marker was observed."""
        return not self.missing_rsids

    def zygosity_of(self, rsid: str) -> Zygosity:
        for call in self.calls:
            if call.rsid == rsid:
                return call.zygosity
        return Zygosity.ABSENT

    def variant_calls(self) -> List[MarkerZygosity]:
        return [call for call in self.calls if call.has_variant]

    def variant_rsids(self) -> List[str]:
        rsids: List[str] = []
        for call in self.variant_calls():
            if call.rsid not in rsids:
                rsids.append(call.rsid)
        return rsids


def count_variant_alleles(genotype: Optional[str], marker: MarkerDefinition) -> Optional[int]:
    """
    Count copies of the marker's variant allele.
    Returns None when the genotype is unusable for this marker.
    """
    if not isinstance(genotype, str) or len(genotype) != 2:
        return None
    if not set(genotype) <= _NUCLEOTIDES:
        return None
    expected = {marker.reference_allele, marker.variant_allele}
    if not set(genotype) <= expected:
        return None
    return genotype.count(marker.variant_allele)


def zygosity_from_count(count: Optional[int]) -> Zygosity:
    if count is None:
        return Zygosity.ABSENT
    if count == 0:
        return Zygosity.HOMOZYGOUS_REFERENCE
    if count == 1:
        return Zygosity.HETEROZYGOUS
    return Zygosity.HOMOZYGOUS_VARIANT


def _collect_genotypes(
    profile: GeneProfile, observations: List[ObservedGenotype]
) -> Tuple[Dict[str, Optional[str]], List[str]]:
    """Index observations by rsid for this gene; conflicting duplicates are dropped."""
    wanted = {marker.rsid for marker in profile.markers}
    genotypes: Dict[str, Optional[str]] = {}
    conflicting: List[str] = []

    for obs in observations:
        if obs.rsid not in wanted:
            continue
        if obs.rsid in genotypes and genotypes[obs.rsid] != obs.genotype:
            if obs.rsid not in conflicting:
                conflicting.append(obs.rsid)
            continue
        genotypes[obs.rsid] = obs.genotype

    for rsid in conflicting:
        genotypes.pop(rsid, None)
    return genotypes, conflicting


def resolve_zygosity(
    profile: GeneProfile,
    observed: GenotypeInput,
    malformed_rsids: Iterable[str] = (),
) -> ZygosityReport:
    """
    Resolve every marker of a gene profile against a sample's genotypes.

    Genotypes are expected in canonical form. Anything that is not exactly
    two nucleotides drawn from the marker's reference/variant alleles is
    reported as a malformed call and treated as absent.

    ``malformed_rsids`` names calls the normalizer already rejected as
    unparseable; they are reported the same way.
    """
    observations = to_observations(observed)
    genotypes, conflicting = _collect_genotypes(profile, observations)
    report = ZygosityReport(gene=profile.gene)

    for rsid in conflicting:
        report.malformed_rsids.append(rsid)
        report.limitations.append(Limitation(
            type=LimitationType.MALFORMED_GENOTYPE,
            message=f"Conflicting duplicate calls for {rsid}; treated as missing",
            rsids=(rsid,),
        ))

    wanted = {marker.rsid for marker in profile.markers}
    for rsid in malformed_rsids:
        if rsid not in wanted or rsid in report.malformed_rsids:
            continue
        # A parseable call for the same rsid conflicts with the rejected one.
        genotypes.pop(rsid, None)
        report.malformed_rsids.append(rsid)
        report.limitations.append(Limitation(
            type=LimitationType.MALFORMED_GENOTYPE,
            message=f"Unparseable genotype for {rsid}; treated as missing",
            rsids=(rsid,),
        ))

    for marker in profile.markers:
        genotype = genotypes.get(marker.rsid)
        count = count_variant_alleles(genotype, marker)
        zygosity = zygosity_from_count(count)
        report.calls.append(MarkerZygosity(marker=marker, zygosity=zygosity, genotype=genotype))

        if zygosity != Zygosity.ABSENT:
            continue

        if marker.rsid in genotypes and marker.rsid not in report.malformed_rsids:
            report.malformed_rsids.append(marker.rsid)
            report.limitations.append(Limitation(
                type=LimitationType.MALFORMED_GENOTYPE,
                message=(
                    f"Unusable genotype for {marker.rsid} "
                    f"(expected two of {marker.reference_allele}/{marker.variant_allele}); "
                    "treated as missing"
                ),
                rsids=(marker.rsid,),
            ))

        if marker.required and marker.rsid not in report.missing_rsids:
            report.missing_rsids.append(marker.rsid)

    if report.missing_rsids:
        report.limitations.append(Limitation(
            type=LimitationType.MISSING_MARKER_DATA,
            message=(
                f"Required {profile.gene} marker(s) not observed: "
                f"{', '.join(report.missing_rsids)}; phenotype cannot be determined"
            ),
            rsids=tuple(report.missing_rsids),
        ))

    logger.debug(
        "Resolved %d %s markers (%d missing, %d malformed)",
        len(report.calls), profile.gene, len(report.missing_rsids), len(report.malformed_rsids),
    )
    return report
