"""
Configuration for pharmacogenomics service.
Centralizes the runtime settings of the classification engine.

Values come from environment variables (optionally via a .env file) and can
be overridden at runtime or from a JSON file.
"""

import json
import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv(find_dotenv())

ENV_GENE_PROFILES = "PGX_GENE_PROFILES"
ENV_BATCH_MAX_WORKERS = "PGX_BATCH_MAX_WORKERS"
ENV_LOG_LEVEL = "PGX_LOG_LEVEL"
ENV_INCLUDE_CONFIDENCE_BREAKDOWN = "PGX_INCLUDE_CONFIDENCE_BREAKDOWN"

_TRUTHY = {"1", "true", "yes", "on"}


class EngineConfig(BaseModel):
    """Main configuration for the classification engine."""

    # Data paths
    gene_profiles_path: Optional[str] = Field(
        default=None,
        description="JSON gene profile registry replacing the built-in panel"
    )

    # Batch execution
    batch_max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads used by classify_batch"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level for the pgx_engine package"
    )

    # Output
    include_confidence_breakdown: bool = Field(
        default=True,
        description="Attach the itemised confidence breakdown to each result"
    )

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


def config_from_env() -> EngineConfig:
    """Build a configuration from PGX_* environment variables."""
    values = {}
    if os.getenv(ENV_GENE_PROFILES):
        values["gene_profiles_path"] = os.getenv(ENV_GENE_PROFILES)
    if os.getenv(ENV_BATCH_MAX_WORKERS):
        values["batch_max_workers"] = int(os.getenv(ENV_BATCH_MAX_WORKERS))
    if os.getenv(ENV_LOG_LEVEL):
        values["log_level"] = os.getenv(ENV_LOG_LEVEL)
    if os.getenv(ENV_INCLUDE_CONFIDENCE_BREAKDOWN):
        values["include_confidence_breakdown"] = (
            os.getenv(ENV_INCLUDE_CONFIDENCE_BREAKDOWN).strip().lower() in _TRUTHY
        )
    return EngineConfig(**values)


# Global configuration instance
_config: EngineConfig = config_from_env()


def get_config() -> EngineConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs):
    """Update configuration parameters."""
    global _config
    current_dict = _config.model_dump()
    current_dict.update(kwargs)
    _config = EngineConfig(**current_dict)
    return _config


def reset_config():
    """Rebuild the configuration from the environment."""
    global _config
    _config = config_from_env()
    return _config


def load_config_from_file(filepath: str):
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = EngineConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file."""
    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)
