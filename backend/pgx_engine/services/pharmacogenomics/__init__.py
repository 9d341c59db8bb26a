"""
Pharmacogenomics Service

Deterministic star-allele diplotype calling and phenotype classification
from unphased per-marker genotypes. Every bad-data condition becomes a
lower-confidence result with limitations, never an exception.
"""

from .models import (
    CallState,
    ClassificationResult,
    ConfidenceLevel,
    Diplotype,
    FunctionalStatus,
    GeneProfile,
    Limitation,
    LimitationType,
    LookupPhenotype,
    MarkerDefinition,
    MetabolicPhenotype,
    ObservedGenotype,
    PanelResult,
    PhenotypeModel,
    PhenotypeResult,
    Zygosity,
)
from .gene_definitions import (
    GeneProfileRegistry,
    build_default_registry,
    load_registry_from_file,
    save_registry_to_file,
)
from .variant_normalizer import normalize_genotype, normalize_observations
from .zygosity import ZygosityReport, resolve_zygosity
from .diplotype_caller import DiplotypeCaller, call_diplotype
from .phenotype_mapper import PhenotypeMapper, classify_phenotype
from .confidence import ConfidenceBreakdown, ConfidenceCalculator, grade_confidence
from .result_assembler import assemble_result
from .engine import (
    PharmacogenomicEngine,
    classify,
    classify_diplotype,
    create_engine,
    get_engine,
    reload_engine,
)
from .config import (
    EngineConfig,
    get_config,
    update_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Models
    'CallState',
    'ClassificationResult',
    'ConfidenceLevel',
    'Diplotype',
    'FunctionalStatus',
    'GeneProfile',
    'Limitation',
    'LimitationType',
    'LookupPhenotype',
    'MarkerDefinition',
    'MetabolicPhenotype',
    'ObservedGenotype',
    'PanelResult',
    'PhenotypeModel',
    'PhenotypeResult',
    'Zygosity',

    # Gene definitions
    'GeneProfileRegistry',
    'build_default_registry',
    'load_registry_from_file',
    'save_registry_to_file',

    # Pipeline stages
    'normalize_genotype',
    'normalize_observations',
    'ZygosityReport',
    'resolve_zygosity',
    'DiplotypeCaller',
    'call_diplotype',
    'PhenotypeMapper',
    'classify_phenotype',
    'ConfidenceBreakdown',
    'ConfidenceCalculator',
    'grade_confidence',
    'assemble_result',

    # Engine
    'PharmacogenomicEngine',
    'classify',
    'classify_diplotype',
    'create_engine',
    'get_engine',
    'reload_engine',

    # Config
    'EngineConfig',
    'get_config',
    'update_config',
    'load_config_from_file',
    'save_config_to_file',
]
