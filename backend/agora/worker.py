"""Wiring of a settlement run: settings -> store + quote client -> scheduler."""

import logging

from agora.config import Settings
from agora.services.quotes import QuoteClient
from agora.settlement.models import SettlementOutcome, SettlementSummary
from agora.settlement.scheduler import SettlementScheduler
from agora.storage import MongoGameStore, create_mongo_client

logger = logging.getLogger(__name__)


def _create_store(settings: Settings) -> MongoGameStore:
    settings.require_store_credentials()
    client = create_mongo_client(settings)
    return MongoGameStore(
        client,
        settings.mongodb_database,
        games_collection=settings.settlement.games_collection,
        participants_collection=settings.settlement.participants_collection,
    )


async def run_settlement(settings: Settings) -> SettlementSummary:
    """Run one settlement batch. Raises ConfigurationError before touching the store."""
    store = _create_store(settings)
    try:
        async with QuoteClient(settings.quotes) as quotes:
            scheduler = SettlementScheduler(store, quotes, settings.settlement)
            return await scheduler.run()
    finally:
        store.client.close()


async def settle_game(settings: Settings, game_id: str) -> SettlementOutcome:
    """Settle one game by id. Raises GameNotFound for an unknown id."""
    store = _create_store(settings)
    try:
        async with QuoteClient(settings.quotes) as quotes:
            scheduler = SettlementScheduler(store, quotes, settings.settlement)
            return await scheduler.settle_one(game_id)
    finally:
        store.client.close()
