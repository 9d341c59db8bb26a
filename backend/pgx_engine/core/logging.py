"""
Logging setup for the pgx_engine package.
Importing this module configures logging once at the configured level.
"""

import logging

from pgx_engine.services.pharmacogenomics.config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_HANDLER_NAME = "pgx_engine"


def configure_logging(level=None) -> logging.Logger:
    """Attach a single stream handler to the pgx_engine logger."""
    level = level or get_config().log_level
    logger = logging.getLogger("pgx_engine")
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


configure_logging()
