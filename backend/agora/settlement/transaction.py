"""Settlement of a single game.

    selected -> price_fetched -> outcome_resolved -> payouts_computed -> persisted

A failed price fetch or an undecidable outcome stops the run before anything
is written, leaving the game open. The only write is the store's atomic,
state-gated commit, so a game can be closed at most once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from agora.config import SettlementConfig
from agora.services.quotes import PriceUnavailable, QuoteClient
from agora.storage.base import GameStore

from .exceptions import ParticipantAlreadySettled, PersistenceConflict, UndecidableGame
from .models import (
    OutcomeStatus,
    Participant,
    SettlementOutcome,
    SettlementResult,
    SettlementStage,
    parse_game,
)
from .payouts import compute_payouts, verify_conservation
from .resolver import resolve_outcome

logger = logging.getLogger(__name__)


class SettlementTransaction:
    """Owns the settlement of exactly one game for the duration of ``run``."""

    def __init__(
        self,
        store: GameStore,
        quotes: QuoteClient,
        document: Mapping[str, Any],
        config: SettlementConfig | None = None,
    ):
        self.store = store
        self.quotes = quotes
        self.document = document
        self.config = config or SettlementConfig()
        self.game_id = str(document.get("_id", document.get("id", "<unknown>")))
        self.stage = SettlementStage.SELECTED

    def _outcome(
        self,
        status: OutcomeStatus,
        reason: str = "",
        result: SettlementResult | None = None,
    ) -> SettlementOutcome:
        return SettlementOutcome(
            game_id=self.game_id,
            status=status,
            stage=self.stage,
            reason=reason,
            result=result,
        )

    async def run(self) -> SettlementOutcome:
        """Settle the game. Per-game failures are returned, never raised."""
        try:
            return await self._settle()
        except Exception as e:
            failed_stage = self.stage
            self.stage = SettlementStage.ERRORED
            logger.error(
                f"Error settling game {self.game_id} after {failed_stage.value}: {e}",
                exc_info=True,
            )
            return self._outcome(
                "errored", f"{type(e).__name__} after {failed_stage.value}: {e}"
            )

    async def _settle(self) -> SettlementOutcome:
        game = parse_game(self.document)
        self.game_id = game.id

        if not game.is_open:
            self.stage = SettlementStage.ALREADY_CLOSED
            logger.info(f"Game {game.id} is already {game.state}, nothing to do")
            return self._outcome("skipped", f"game is {game.state}")

        try:
            price = await self.quotes.fetch_price(game.ticker)
        except PriceUnavailable as e:
            self.stage = SettlementStage.PRICE_FAILED
            logger.warning(f"Price fetch failed for game {game.id} ({game.ticker}): {e}")
            return self._outcome("skipped", str(e))
        self.stage = SettlementStage.PRICE_FETCHED

        try:
            winner = resolve_outcome(game, price, self.config.default_band_pct)
        except UndecidableGame as e:
            self.stage = SettlementStage.OUTCOME_FAILED
            # Will never resolve by itself; the game needs fixing.
            logger.error(f"No winner computed for game {game.id}: {e.reason}")
            return self._outcome("skipped", e.reason)
        self.stage = SettlementStage.OUTCOME_RESOLVED

        participants = [
            Participant.from_document(doc)
            for doc in await self.store.list_participants(game.id)
        ]
        plan = compute_payouts(participants, winner, game.total_pool)
        verify_conservation(plan)
        self.stage = SettlementStage.PAYOUTS_COMPUTED

        result = SettlementResult(
            settlement_price=price,
            winning_side=winner,
            total_pool=game.total_pool,
            total_distributed=plan.total_distributed,
            winners_count=plan.winners_count,
            losers_count=plan.losers_count,
        )

        try:
            settled_at = await asyncio.wait_for(
                self.store.commit_settlement(game.id, plan.entries, result),
                timeout=self.config.commit_timeout_seconds,
            )
        except PersistenceConflict as e:
            self.stage = SettlementStage.CONFLICT
            logger.info(f"Game {game.id} was settled concurrently, leaving it as is: {e.reason}")
            return self._outcome("conflict", e.reason)
        except ParticipantAlreadySettled as e:
            self.stage = SettlementStage.ERRORED
            # Stays open and fails again on every run until the data is repaired.
            logger.error(f"Refusing to settle game {game.id}: {e.reason}")
            return self._outcome("errored", e.reason)
        self.stage = SettlementStage.PERSISTED

        result = result.model_copy(update={"settled_at": settled_at})
        logger.info(
            f"Settled game {game.id} ({game.ticker}) winner={winner} price={price} "
            f"pool={game.total_pool} winners={plan.winners_count} losers={plan.losers_count}"
        )
        return self._outcome("settled", result=result)
