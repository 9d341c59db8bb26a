"""
Phenotype Mapper - activity score and direct-lookup phenotype determination.

Two strategies, chosen per GeneProfile:
  - ADDITIVE: activity score = score(allele1) + score(allele2), bucketed by the
    gene's own phenotype bands (no shared global thresholds).
  - LOOKUP: the diplotype is the key into the gene's phenotype table; no score
    arithmetic, the table's score is reported on its own scale.

Unrecognized alleles never fall back to a default score: they map to Unknown.
"""

from typing import Optional
import logging

from .models import (
    Diplotype,
    GeneProfile,
    LookupPhenotype,
    MetabolicPhenotype,
    PhenotypeModel,
    PhenotypeResult,
    SCORE_PRECISION,
    diplotype_name,
)

logger = logging.getLogger(__name__)


class PhenotypeMapper:
    """Maps diplotypes to phenotypes for one gene profile."""

    def __init__(self, profile: GeneProfile):
        self.profile = profile

    def map_alleles(self, allele1: str, allele2: str) -> PhenotypeResult:
        if not self._recognized(allele1, allele2):
            return self.unknown(recognized=False)

        if self.profile.model == PhenotypeModel.LOOKUP:
            return self._lookup_phenotype(allele1, allele2)
        return self._additive_phenotype(allele1, allele2)

    def map_diplotype(self, diplotype: Diplotype) -> PhenotypeResult:
        return self.map_alleles(diplotype.allele1, diplotype.allele2)

    def unknown(self, recognized: bool = True) -> PhenotypeResult:
        """Unknown phenotype in this gene's vocabulary."""
        if self.profile.model == PhenotypeModel.LOOKUP:
            return PhenotypeResult(
                phenotype=LookupPhenotype.UNKNOWN,
                model=PhenotypeModel.LOOKUP,
                lookup_score_scale=self.profile.lookup_score_scale,
                recognized=recognized,
            )
        return PhenotypeResult(
            phenotype=MetabolicPhenotype.UNKNOWN,
            model=PhenotypeModel.ADDITIVE,
            recognized=recognized,
        )

    # -- strategies --------------------------------------------------------

    def _additive_phenotype(self, allele1: str, allele2: str) -> PhenotypeResult:
        score1 = self.profile.allele_definition(allele1).activity_score
        score2 = self.profile.allele_definition(allele2).activity_score
        if score1 is None or score2 is None:
            return self.unknown(recognized=False)

        total_score = round(score1 + score2, SCORE_PRECISION)
        phenotype = self._activity_score_to_phenotype(total_score)
        if phenotype is None:
            logger.warning("%s activity score falls outside every phenotype band", self.profile.gene)
            return self.unknown(recognized=False)

        return PhenotypeResult(
            phenotype=phenotype,
            model=PhenotypeModel.ADDITIVE,
            activity_score=total_score,
        )

    def _activity_score_to_phenotype(self, total_score: float) -> Optional[MetabolicPhenotype]:
        for band in self.profile.bands:
            if band.contains(total_score):
                return band.phenotype
        return None

    def _lookup_phenotype(self, allele1: str, allele2: str) -> PhenotypeResult:
        entry = self.profile.lookup(diplotype_name(allele1, allele2))
        if entry is None:
            return self.unknown(recognized=False)

        return PhenotypeResult(
            phenotype=entry.phenotype,
            model=PhenotypeModel.LOOKUP,
            lookup_score=entry.score,
            lookup_score_scale=self.profile.lookup_score_scale,
        )

    def _recognized(self, *alleles: str) -> bool:
        known = self.profile.alleles
        return all(allele in known for allele in alleles)


def classify_phenotype(profile: GeneProfile, diplotype: Diplotype) -> PhenotypeResult:
    """Derive the phenotype for a called diplotype."""
    return PhenotypeMapper(profile).map_diplotype(diplotype)
