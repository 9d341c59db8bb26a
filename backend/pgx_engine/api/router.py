from fastapi import APIRouter
from pgx_engine.api.routes import pharmacogenomics

api_router = APIRouter()

api_router.include_router(pharmacogenomics.router, prefix="/pharmacogenomics", tags=["Pharmacogenomics"])
