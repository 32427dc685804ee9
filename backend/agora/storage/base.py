"""
GameStore Abstract Class

Document store contract used by the settlement worker.

Methods:
- fetch_eligible_games(now, limit) -> list[dict]: open games past their deadline
- get_game(game_id) -> Optional[dict]: one game document
- list_participants(game_id) -> list[dict]: the game's participant documents
- commit_settlement(game_id, payouts, result) -> Optional[datetime]: atomic close

Implementations must make commit_settlement all-or-nothing and conditional on
the game still being open, raising PersistenceConflict otherwise. A participant
that already carries a result aborts the commit with ParticipantAlreadySettled.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from agora.settlement.models import SettlementResult
from agora.settlement.payouts import ParticipantPayout


class GameStore(ABC):
    @abstractmethod
    async def fetch_eligible_games(self, now: datetime, limit: int) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    async def get_game(self, game_id: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    async def list_participants(self, game_id: str) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    async def commit_settlement(
        self,
        game_id: str,
        payouts: list[ParticipantPayout],
        result: SettlementResult,
    ) -> Optional[datetime]:
        """Close the game and write every participant payout in one transaction.

        Returns the store-assigned settlement timestamp.
        """
        ...
