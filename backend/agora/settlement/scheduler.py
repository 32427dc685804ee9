"""Batch settlement of every eligible game."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from agora.config import SettlementConfig
from agora.services.quotes import QuoteClient
from agora.storage.base import GameStore

from .exceptions import GameNotFound
from .models import SettlementOutcome, SettlementSummary
from .transaction import SettlementTransaction

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettlementScheduler:
    """Selects open games past their deadline and settles them one by one.

    Each game runs in its own SettlementTransaction, so one game's failure is
    recorded in the summary and the batch moves on. Stopping between games is
    always safe: settled games stay settled, the rest stay open for the next run.
    """

    def __init__(
        self,
        store: GameStore,
        quotes: QuoteClient,
        config: SettlementConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.quotes = quotes
        self.config = config or SettlementConfig()
        self.clock = clock

    async def run(self) -> SettlementSummary:
        now = self.clock()
        documents = await self.store.fetch_eligible_games(now, self.config.batch_size)
        summary = SettlementSummary(selected=len(documents))

        if not documents:
            logger.info("No games to settle.")
            return summary

        logger.info(f"Settling {len(documents)} games (deadline <= {now.isoformat()})")
        for i, document in enumerate(documents, 1):
            transaction = SettlementTransaction(self.store, self.quotes, document, self.config)
            logger.debug(f"Processing game {i}/{len(documents)}: {transaction.game_id}")
            summary.record(await transaction.run())

        logger.info(
            "Settlement run complete: selected=%d settled=%d skipped=%d conflicts=%d errored=%d",
            summary.selected,
            summary.settled,
            summary.skipped,
            summary.conflicts,
            summary.errored,
        )
        return summary

    async def settle_one(self, game_id: str) -> SettlementOutcome:
        """Settle a single game regardless of its deadline."""
        document = await self.store.get_game(game_id)
        if document is None:
            raise GameNotFound(game_id)
        return await SettlementTransaction(self.store, self.quotes, document, self.config).run()
