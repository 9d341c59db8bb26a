"""
Pharmacogenomic Engine - classify(gene_id, observed_genotypes).

Chains the stateless stages for one gene on one sample:

    observed genotypes -> zygosity -> diplotype -> phenotype -> confidence -> result

The only shared state is the read-only GeneProfileRegistry, so any number of
samples can be classified concurrently without locking.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import EngineConfig, get_config
from .confidence import grade_confidence
from .diplotype_caller import call_diplotype
from .gene_definitions import (
    GeneProfileRegistry,
    build_default_registry,
    load_registry_from_file,
)
from .models import (
    CallState,
    ClassificationResult,
    ConfidenceLevel,
    Diplotype,
    GeneProfile,
    ObservedGenotype,
    PanelResult,
)
from .phenotype_mapper import PhenotypeMapper
from .result_assembler import assemble_result, unsupported_gene_result
from .variant_normalizer import GenotypeInput, normalize_observations, to_observations
from .zygosity import resolve_zygosity

logger = logging.getLogger(__name__)


class PharmacogenomicEngine:
    """
    Deterministic gene classification over an immutable gene registry.

    Usage::

        engine = PharmacogenomicEngine()
        result = engine.classify("CYP2C19", {"rs4244285": "AG", "rs4986893": "GG", "rs12248560": "CC"})
        result.diplotype   # "*1/*2"
    """

    def __init__(
        self,
        registry: Optional[GeneProfileRegistry] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or get_config()
        if registry is None:
            if self.config.gene_profiles_path:
                registry = load_registry_from_file(self.config.gene_profiles_path)
            else:
                registry = build_default_registry()
        self.registry = registry
        logger.info("Pharmacogenomic engine ready with %d genes", len(self.registry))

    # -- single gene -------------------------------------------------------

    def classify(
        self,
        gene_id: str,
        observed: GenotypeInput,
        normalize: bool = False,
    ) -> ClassificationResult:
        """
        Classify one gene for one sample.

        ``observed`` must hold canonical genotypes unless ``normalize`` is set,
        in which case raw calls go through the canonicalization boundary first.
        Never raises for bad data: every problem becomes a lower-confidence
        result with limitations.
        """
        profile = self.registry.get_profile(gene_id)
        if profile is None:
            logger.warning("Classification requested for unsupported gene %s", gene_id)
            return unsupported_gene_result(gene_id)

        observations, malformed = self._prepare(observed, normalize)
        return self._classify_profile(profile, observations, malformed)

    def classify_diplotype(self, gene_id: str, allele1: str, allele2: str) -> ClassificationResult:
        """Phenotype for a diplotype supplied directly (no marker data)."""
        profile = self.registry.get_profile(gene_id)
        if profile is None:
            logger.warning("Phenotype requested for unsupported gene %s", gene_id)
            return unsupported_gene_result(gene_id)

        diplotype = Diplotype(
            allele1=allele1,
            allele2=allele2,
            confidence=ConfidenceLevel.HIGH,
            call_state=CallState.SUPPLIED,
            notes="Diplotype supplied by caller",
        )
        phenotype = PhenotypeMapper(profile).map_diplotype(diplotype)
        breakdown = grade_confidence(profile, None, diplotype, phenotype)
        return assemble_result(
            profile, None, diplotype, phenotype, breakdown,
            include_breakdown=self.config.include_confidence_breakdown,
        )

    # -- whole sample ------------------------------------------------------

    def classify_panel(
        self,
        observed: GenotypeInput,
        genes: Optional[Iterable[str]] = None,
        sample_id: Optional[str] = None,
        normalize: bool = False,
    ) -> PanelResult:
        """Classify every requested gene (default: the whole registry) for one sample."""
        observations, malformed = self._prepare(observed, normalize)
        gene_ids = list(genes) if genes is not None else self.registry.genes

        panel = PanelResult(sample_id=sample_id)
        for gene_id in gene_ids:
            profile = self.registry.get_profile(gene_id)
            if profile is None:
                logger.warning("Panel requested unsupported gene %s", gene_id)
                panel.results[gene_id] = unsupported_gene_result(gene_id)
            else:
                panel.results[profile.gene] = self._classify_profile(profile, observations, malformed)
        return panel

    def classify_batch(
        self,
        samples: Sequence[GenotypeInput],
        gene_ids: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
        sample_ids: Optional[Sequence[str]] = None,
        normalize: bool = False,
    ) -> List[PanelResult]:
        """
        Classify many samples concurrently.
        Results are returned in input order.
        """
        if sample_ids is not None and len(sample_ids) != len(samples):
            raise ValueError("sample_ids must match samples in length")

        genes = list(gene_ids) if gene_ids is not None else None
        ids = list(sample_ids) if sample_ids is not None else [None] * len(samples)
        workers = max_workers or self.config.batch_max_workers

        logger.debug("Classifying batch of %d samples with %d workers", len(samples), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(
                lambda args: self.classify_panel(args[0], genes=genes, sample_id=args[1], normalize=normalize),
                zip(samples, ids),
            ))

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _prepare(observed: GenotypeInput, normalize: bool) -> Tuple[List[ObservedGenotype], List[str]]:
        """Observations for the resolver, plus rsids whose raw call could not be parsed."""
        if normalize:
            normalized = normalize_observations(observed)
            if normalized.rejected:
                logger.debug(
                    "Normalizer rejected %d calls (%d malformed)",
                    len(normalized.rejected), len(normalized.malformed),
                )
            return normalized.observations, normalized.malformed_rsids
        return to_observations(observed), []

    def _classify_profile(
        self,
        profile: GeneProfile,
        observations: List[ObservedGenotype],
        malformed_rsids: Sequence[str] = (),
    ) -> ClassificationResult:
        mapper = PhenotypeMapper(profile)
        report = resolve_zygosity(profile, observations, malformed_rsids)
        diplotype = call_diplotype(profile, report)

        if report.is_complete:
            phenotype = mapper.map_diplotype(diplotype)
        else:
            phenotype = mapper.unknown()

        breakdown = grade_confidence(profile, report, diplotype, phenotype)
        result = assemble_result(
            profile, report, diplotype, phenotype, breakdown,
            include_breakdown=self.config.include_confidence_breakdown,
        )
        logger.debug(
            "%s classified: state=%s confidence=%s",
            profile.gene, result.call_state.value, result.confidence.value,
        )
        return result


def create_engine(
    registry: Optional[GeneProfileRegistry] = None,
    config: Optional[EngineConfig] = None,
) -> PharmacogenomicEngine:
    """Factory function to create a PharmacogenomicEngine instance."""
    return PharmacogenomicEngine(registry=registry, config=config)


# Global singleton instance
_engine_instance: Optional[PharmacogenomicEngine] = None


def get_engine() -> PharmacogenomicEngine:
    """Get the global engine instance, building it on first use."""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = PharmacogenomicEngine()
    return _engine_instance


def reload_engine() -> PharmacogenomicEngine:
    """Rebuild the global engine (after a config or profile change)."""
    global _engine_instance
    _engine_instance = PharmacogenomicEngine()
    return _engine_instance


def classify(gene_id: str, observed: GenotypeInput, normalize: bool = False) -> ClassificationResult:
    """Classify one gene on the default engine."""
    return get_engine().classify(gene_id, observed, normalize=normalize)


def classify_diplotype(gene_id: str, allele1: str, allele2: str) -> ClassificationResult:
    """Phenotype for a supplied diplotype on the default engine."""
    return get_engine().classify_diplotype(gene_id, allele1, allele2)
