from fastapi import APIRouter, HTTPException
from typing import Any, Dict, List

from pgx_engine.schemas.pharmacogenomics import (
    ClassifyRequest,
    GeneListResponse,
    GeneSummary,
    GenotypeCall,
    PanelRequest,
    PanelResponse,
    PhenotypeRequest,
)
from pgx_engine.services.pharmacogenomics.engine import get_engine
from pgx_engine.services.pharmacogenomics.models import ClassificationResult, GeneProfile

router = APIRouter()


def _pairs(genotypes: List[GenotypeCall]):
    return [(call.rsid, call.genotype) for call in genotypes]


def _summary(profile: GeneProfile) -> GeneSummary:
    rsids: List[str] = []
    for marker in profile.markers:
        if marker.rsid not in rsids:
            rsids.append(marker.rsid)
    return GeneSummary(
        gene=profile.gene,
        description=profile.description,
        model=profile.model.value,
        reference_allele=profile.reference_allele.name,
        alleles=list(profile.alleles),
        markers=rsids,
    )


@router.get("/genes", response_model=GeneListResponse)
async def list_genes():
    """List every supported gene with its model and genotyped markers."""
    registry = get_engine().registry
    return GeneListResponse(genes=[_summary(registry[gene]) for gene in registry.genes])


@router.get("/genes/{gene_id}")
async def get_gene(gene_id: str) -> Dict[str, Any]:
    """Full gene profile: markers, phenotype bands or lookup table, caveats."""
    profile = get_engine().registry.get_profile(gene_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Gene {gene_id} is not supported")
    return profile.model_dump(mode="json")


@router.post("/classify", response_model=ClassificationResult)
async def classify_gene(request: ClassifyRequest):
    """
    Classify one gene for one sample.

    Incomplete or malformed genotype data never fails the request: the result
    carries confidence "low" and the reasons in ``limitations``.
    """
    return get_engine().classify(request.gene, _pairs(request.genotypes), normalize=request.normalize)


@router.post("/panel", response_model=PanelResponse)
async def classify_panel(request: PanelRequest):
    """Classify all (or the requested) genes for one sample."""
    panel = get_engine().classify_panel(
        _pairs(request.genotypes),
        genes=request.genes,
        sample_id=request.sample_id,
        normalize=request.normalize,
    )
    return PanelResponse(sample_id=panel.sample_id, results=panel.results)


@router.post("/phenotype", response_model=ClassificationResult)
async def phenotype_for_diplotype(request: PhenotypeRequest):
    """Phenotype for a known diplotype, without marker data."""
    return get_engine().classify_diplotype(request.gene, request.allele1, request.allele2)
