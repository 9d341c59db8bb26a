from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from pgx_engine.services.pharmacogenomics.models import ClassificationResult


class GenotypeCall(BaseModel):
    rsid: str = Field(..., description="dbSNP reference ID (e.g., rs4244285)")
    genotype: Optional[str] = Field(None, description="Two-allele genotype (e.g., AG); null for a no-call")


class ClassifyRequest(BaseModel):
    gene: str = Field(..., description="Gene symbol (e.g., CYP2C19)")
    genotypes: List[GenotypeCall] = Field(default_factory=list)
    normalize: bool = Field(
        True, description="Canonicalize raw genotypes (case, separators, allele order) before classification"
    )


class PanelRequest(BaseModel):
    sample_id: Optional[str] = Field(None, description="Sample identifier echoed back in the response")
    genotypes: List[GenotypeCall] = Field(default_factory=list)
    genes: Optional[List[str]] = Field(None, description="Genes to classify; all supported genes if omitted")
    normalize: bool = Field(True)


class PhenotypeRequest(BaseModel):
    gene: str = Field(..., description="Gene symbol")
    allele1: str = Field(..., description="First star allele (e.g., *1)")
    allele2: str = Field(..., description="Second star allele (e.g., *17)")


class PanelResponse(BaseModel):
    sample_id: Optional[str] = None
    results: Dict[str, ClassificationResult]


class GeneSummary(BaseModel):
    gene: str
    description: Optional[str] = None
    model: str = Field(..., description="additive or lookup")
    reference_allele: str
    alleles: List[str]
    markers: List[str] = Field(..., description="rsids genotyped for this gene")


class GeneListResponse(BaseModel):
    genes: List[GeneSummary]
