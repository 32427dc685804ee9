"""Storage layer for Agora - the community games document store.

This package provides:
- The GameStore contract the settlement worker depends on
- A MongoDB implementation with transactional, state-gated commits
- Client construction and health checks
"""

from .base import GameStore
from .connection import check_db_connection, create_mongo_client, sanitize_mongodb_url
from .mongo import MongoGameStore

__all__ = [
    "GameStore",
    "MongoGameStore",
    "create_mongo_client",
    "check_db_connection",
    "sanitize_mongodb_url",
]
