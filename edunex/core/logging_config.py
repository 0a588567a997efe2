"""Logging configuration."""
import logging
import sys

from edunex.core import config

NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "uvicorn.access",
)


def setup_logging(verbose: bool | None = None) -> None:
    """Configure root logging once for the API process."""
    if verbose is None:
        verbose = config.LOG_VERBOSE

    level = getattr(logging, config.LOG_LEVEL, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if not verbose:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
