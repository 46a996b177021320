"""
Logger factory.

Every area of the backend logs through its own named logger with a console
handler and a short prefix, e.g. ``[ORCHESTRATOR] Resume processed``.
"""

import logging

from app.core.config import settings


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching the console handler on first use."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            f"%(asctime)s [{name.upper()}] %(levelname)s %(message)s"
        ))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
