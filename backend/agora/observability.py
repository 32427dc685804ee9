"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from agora import __version__
from agora.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> bool:
    """
    Initialize Logfire when a token is configured.

    Instruments:
    - HTTPX clients (chart quote API)
    - PyMongo (game store queries and settlement commits)
    - Python logging (bridged to Logfire)

    Observability is optional: failures are logged and the worker carries on.

    Returns:
        True if Logfire was configured.
    """
    if not settings.logfire_token:
        logger.debug("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="agora-settlement",
            service_version=__version__,
        )

        logfire.instrument_httpx()
        logfire.instrument_pymongo()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("Logfire cloud tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        return False
