"""
MongoDB connection helpers.

This module provides:
- Motor client construction from settings
- Credential-safe URL formatting for logs
- Health check utilities
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from agora import __version__
from agora.config import Settings

logger = logging.getLogger(__name__)


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    """Build a Motor client. Call ``settings.require_store_credentials()`` first."""
    client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        appname=f"agora-settlement/{__version__}",
        tz_aware=True,
    )
    logger.info(
        f"Created MongoDB client for {sanitize_mongodb_url(settings.mongodb_url)} "
        f"(database={settings.mongodb_database})"
    )
    return client


async def check_db_connection(client: AsyncIOMotorClient) -> bool:
    """
    Check if MongoDB connection is healthy.
    """
    try:
        await client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


def sanitize_mongodb_url(url: str) -> str:
    """
    Hide password in MongoDB URL for safe logging.
    """
    if "@" not in url or "://" not in url:
        return url

    protocol, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        username = credentials.split(":", 1)[0]
        return f"{protocol}://{username}:***@{host}"
    return url
