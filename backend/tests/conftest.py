"""Shared fixtures: an in-memory game store and a faked chart quote API."""

import asyncio
import copy
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import pytest

from agora.services.quotes import QuoteClient, QuoteConfig
from agora.settlement.exceptions import ParticipantAlreadySettled, PersistenceConflict
from agora.settlement.models import SettlementResult
from agora.settlement.payouts import ParticipantPayout
from agora.storage.base import GameStore

NOW = datetime(2026, 10, 16, 21, 0, tzinfo=timezone.utc)
PAST_DEADLINE = NOW - timedelta(hours=1)
FUTURE_DEADLINE = NOW + timedelta(days=1)


class InMemoryGameStore(GameStore):
    """GameStore double with the same all-or-nothing, state-gated commit."""

    def __init__(self) -> None:
        self.games: dict[str, dict[str, Any]] = {}
        self.participants: dict[str, dict[str, dict[str, Any]]] = {}
        self.commits = 0
        self.commit_error: Optional[Exception] = None
        self.commit_delay: float = 0.0

    def add_game(
        self,
        game_id: str,
        participants: tuple[dict[str, Any], ...] = (),
        **fields: Any,
    ) -> dict[str, Any]:
        document = {"_id": game_id, "state": "open", "deadline": PAST_DEADLINE, **fields}
        self.games[game_id] = document
        self.participants[game_id] = {
            p["_id"]: {"gameId": game_id, **p} for p in participants
        }
        return copy.deepcopy(document)

    def participant(self, game_id: str, participant_id: str) -> dict[str, Any]:
        return self.participants[game_id][participant_id]

    async def fetch_eligible_games(self, now: datetime, limit: int) -> list[dict[str, Any]]:
        eligible = [
            copy.deepcopy(game)
            for game in self.games.values()
            if game.get("state") == "open"
            and game.get("deadline") is not None
            and game["deadline"] <= now
        ]
        return eligible[:limit]

    async def get_game(self, game_id: str) -> Optional[dict[str, Any]]:
        game = self.games.get(game_id)
        return copy.deepcopy(game) if game is not None else None

    async def list_participants(self, game_id: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(p) for p in self.participants.get(game_id, {}).values()]

    async def commit_settlement(
        self,
        game_id: str,
        payouts: list[ParticipantPayout],
        result: SettlementResult,
    ) -> Optional[datetime]:
        if self.commit_delay:
            await asyncio.sleep(self.commit_delay)
        if self.commit_error is not None:
            raise self.commit_error

        game = self.games.get(game_id)
        if game is None or game.get("state") != "open":
            raise PersistenceConflict(game_id)

        rows = self.participants.get(game_id, {})
        for entry in payouts:
            row = rows.get(entry.participant_id)
            if row is None or row.get("result") in ("win", "lose"):
                raise ParticipantAlreadySettled(
                    game_id, f"participant {entry.participant_id} is already settled"
                )

        settled_at = NOW
        game.update({"state": "closed", "settledAt": settled_at, **result.to_document()})
        for entry in payouts:
            rows[entry.participant_id].update({"payout": entry.payout, "result": entry.result})
        self.commits += 1
        return settled_at


def chart_payload(*closes: Any, currency: str = "USD") -> dict[str, Any]:
    """Minimal chart API body with the given daily closes."""
    return {
        "chart": {
            "result": [
                {
                    "meta": {"currency": currency, "regularMarketTime": 1792184400},
                    "timestamp": list(range(len(closes))),
                    "indicators": {"quote": [{"close": list(closes)}]},
                }
            ],
            "error": None,
        }
    }


class QuoteServer:
    """Routes chart requests by ticker to prices or HTTP error statuses."""

    def __init__(
        self,
        prices: Mapping[str, float],
        statuses: Optional[Mapping[str, int]] = None,
    ):
        self.prices = dict(prices)
        self.statuses = dict(statuses or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        ticker = request.url.path.rsplit("/", 1)[-1]
        if ticker in self.statuses:
            return httpx.Response(self.statuses[ticker], json={"chart": {"result": None}})
        if ticker not in self.prices:
            return httpx.Response(404, json={"chart": {"result": None}})
        return httpx.Response(200, json=chart_payload(99.0, None, self.prices[ticker]))


@pytest.fixture
def store() -> InMemoryGameStore:
    return InMemoryGameStore()


@pytest.fixture
def quote_client() -> Callable[..., QuoteClient]:
    """Build a QuoteClient backed by a handler (a QuoteServer or any callable)."""

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> QuoteClient:
        config = QuoteConfig(base_url="https://quotes.test", timeout_seconds=1.0)
        return QuoteClient(config, transport=httpx.MockTransport(handler))

    return _build
