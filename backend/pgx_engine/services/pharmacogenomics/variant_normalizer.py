"""
Genotype Normalizer - canonicalization boundary for raw marker calls.

Handles:
  1. Case normalisation (ct → CT)
  2. Separator and whitespace removal (C/T, C T → CT)
  3. Alphabetical ordering (GA → AG)
  4. No-call handling (--, II, DD, empty → None)
  5. Duplicate rsid detection

Does NOT reverse-complement. Strand handling belongs to the file parsers.
The zygosity resolver only ever sees the canonical form produced here.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import ObservedGenotype

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class GenotypeNormalizationResult:
    """Per-call normalisation outcome."""
    raw_input: Optional[str]
    normalized: Optional[str] = None
    no_call: bool = False

    @property
    def is_valid(self) -> bool:
        return self.normalized is not None

    @property
    def is_malformed(self) -> bool:
        """Something was called, but it is not a two-nucleotide genotype."""
        return not self.is_valid and not self.no_call


@dataclass
class NormalizationPipelineResult:
    """Result of normalising a whole sample."""
    observations: List[ObservedGenotype] = field(default_factory=list)
    rejected: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    malformed: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    duplicates_removed: int = 0

    @property
    def malformed_rsids(self) -> List[str]:
        rsids: List[str] = []
        for rsid, _ in self.malformed:
            if rsid not in rsids:
                rsids.append(rsid)
        return rsids


# ---------------------------------------------------------------------------
# Single genotype
# ---------------------------------------------------------------------------

_SEPARATOR_RE = re.compile(r"[\s/|\-]")
_CANONICAL_RE = re.compile(r"^[ACGT]{2}$")
_NO_CALLS = {"--", "II", "DD", "DI", "ID", "00", "NN"}


def normalize_genotype(genotype: Optional[str]) -> Optional[str]:
    """
    Canonicalise a raw two-allele genotype.

    Examples:
      "ct"  -> "CT"
      "C/T" -> "CT"
      "GA"  -> "AG"
      "--"  -> None
    """
    return normalize_genotype_detailed(genotype).normalized


def normalize_genotype_detailed(genotype: Optional[str]) -> GenotypeNormalizationResult:
    """Canonicalise one call, telling no-calls apart from garbage."""
    result = GenotypeNormalizationResult(raw_input=genotype)
    if genotype is None:
        result.no_call = True
        return result

    trimmed = str(genotype).strip().upper()
    if not trimmed or trimmed in _NO_CALLS:
        result.no_call = True
        return result

    cleaned = _SEPARATOR_RE.sub("", trimmed)
    if _CANONICAL_RE.match(cleaned):
        result.normalized = "".join(sorted(cleaned))
    return result


# ---------------------------------------------------------------------------
# Whole sample
# ---------------------------------------------------------------------------

GenotypeInput = Union[
    Mapping[str, Optional[str]],
    Iterable[Tuple[str, Optional[str]]],
    Iterable[ObservedGenotype],
]


def to_observations(observed: GenotypeInput) -> List[ObservedGenotype]:
    """
    Coerce a mapping, (rsid, genotype) pairs, or ObservedGenotype list into observations.

    Items that are not an (rsid, genotype) pair are skipped, as is a bare
    string or any other non-collection passed as the whole sample.
    """
    if observed is None or isinstance(observed, (str, bytes)):
        if observed:
            logger.warning("Ignoring genotype input given as a bare string")
        return []
    if isinstance(observed, Mapping):
        items = observed.items()
    elif isinstance(observed, Iterable):
        items = observed
    else:
        logger.warning("Ignoring genotype input of type %s", type(observed).__name__)
        return []

    observations: List[ObservedGenotype] = []
    skipped = 0
    for item in items:
        if isinstance(item, ObservedGenotype):
            observations.append(item)
            continue
        if isinstance(item, (str, bytes)) or not isinstance(item, Sequence) or len(item) != 2:
            skipped += 1
            continue
        rsid, genotype = item
        if rsid is None:
            skipped += 1
            continue
        if genotype is not None and not isinstance(genotype, str):
            genotype = str(genotype)
        observations.append(ObservedGenotype(rsid=str(rsid), genotype=genotype))

    if skipped:
        logger.warning("Skipped %d genotype entries that are not (rsid, genotype) pairs", skipped)
    return observations


def normalize_observations(observed: GenotypeInput) -> NormalizationPipelineResult:
    """
    Normalise every call in a sample.

    No-calls and unparseable genotypes are dropped (reported in ``rejected``);
    the unparseable ones are also listed in ``malformed`` so the resolver can
    flag them rather than report a plain missing marker. Exact duplicates are
    collapsed; conflicting duplicates are passed through for the resolver
    to flag.
    """
    result = NormalizationPipelineResult()
    seen = set()

    for obs in to_observations(observed):
        detailed = normalize_genotype_detailed(obs.genotype)
        normalized = detailed.normalized
        if normalized is None:
            result.rejected.append((obs.rsid, obs.genotype))
            if detailed.is_malformed:
                result.malformed.append((obs.rsid, obs.genotype))
            continue

        key = (obs.rsid, normalized)
        if key in seen:
            result.duplicates_removed += 1
            continue
        seen.add(key)
        result.observations.append(ObservedGenotype(rsid=obs.rsid, genotype=normalized))

    return result
