"""MongoDB implementation of the game store.

Games live in one collection keyed by ``_id``. Participants live in a second
collection and point at their game through ``gameId``; together they form the
game's participant subcollection.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument, UpdateOne
from pymongo.errors import OperationFailure

from agora.settlement.exceptions import ParticipantAlreadySettled, PersistenceConflict
from agora.settlement.models import SettlementResult
from agora.settlement.payouts import ParticipantPayout

from .base import GameStore

logger = logging.getLogger(__name__)

WRITE_CONFLICT = 112


def _id_filter(value: str) -> Any:
    """Match a document id stored either as a string or as an ObjectId."""
    if ObjectId.is_valid(value):
        return {"$in": [value, ObjectId(value)]}
    return value


class MongoGameStore(GameStore):
    def __init__(
        self,
        client: AsyncIOMotorClient,
        database: str,
        games_collection: str = "community_games",
        participants_collection: str = "community_game_participants",
    ):
        self.client = client
        self.db = client[database]
        self.games = self.db[games_collection]
        self.participants = self.db[participants_collection]

    async def fetch_eligible_games(self, now: datetime, limit: int) -> list[dict[str, Any]]:
        cursor = self.games.find(
            {"state": "open", "deadline": {"$lte": now}},
        ).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_game(self, game_id: str) -> Optional[dict[str, Any]]:
        return await self.games.find_one({"_id": _id_filter(game_id)})

    async def list_participants(self, game_id: str) -> list[dict[str, Any]]:
        cursor = self.participants.find({"gameId": _id_filter(game_id)})
        return await cursor.to_list(length=None)

    async def commit_settlement(
        self,
        game_id: str,
        payouts: list[ParticipantPayout],
        result: SettlementResult,
    ) -> Optional[datetime]:
        participant_updates = [
            UpdateOne(
                {
                    "_id": _id_filter(entry.participant_id),
                    "gameId": _id_filter(game_id),
                    "result": {"$nin": ["win", "lose"]},
                },
                {"$set": {"payout": entry.payout, "result": entry.result}},
            )
            for entry in payouts
        ]

        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    closed = await self.games.find_one_and_update(
                        {"_id": _id_filter(game_id), "state": "open"},
                        {
                            "$set": {"state": "closed", **result.to_document()},
                            "$currentDate": {"settledAt": True},
                        },
                        projection={"settledAt": True},
                        return_document=ReturnDocument.AFTER,
                        session=session,
                    )
                    if closed is None:
                        raise PersistenceConflict(game_id)

                    if participant_updates:
                        written = await self.participants.bulk_write(
                            participant_updates, ordered=True, session=session
                        )
                        if written.matched_count != len(participant_updates):
                            raise ParticipantAlreadySettled(
                                game_id,
                                f"only {written.matched_count} of "
                                f"{len(participant_updates)} participants were unsettled",
                            )
        except OperationFailure as e:
            if e.code == WRITE_CONFLICT:
                raise PersistenceConflict(game_id, f"write conflict: {e}") from e
            raise

        logger.debug(f"Committed settlement of game {game_id} ({len(payouts)} participants)")
        return closed.get("settledAt")
