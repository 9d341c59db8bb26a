import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pgx_engine.api.router import api_router
from pgx_engine.core import logging as _logging  # noqa: F401  Initialize logging
from pgx_engine.services.pharmacogenomics.config import get_config
from pgx_engine.services.pharmacogenomics.engine import get_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build the gene registry once, before the first request
    logger.info("Preloading gene profiles...")
    get_engine()
    yield


app = FastAPI(
    title="PGx Engine API",
    description="Deterministic star-allele diplotype and phenotype classification",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "pgx-engine", "genes": len(get_engine().registry)}


def serve(host: str = "0.0.0.0", port: int = 8000):
    """Run the API with uvicorn."""
    import uvicorn
    uvicorn.run(app, host=host, port=port, log_level=get_config().log_level.lower())


if __name__ == "__main__":
    serve()
