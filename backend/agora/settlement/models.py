"""Game, participant and settlement records.

Store documents use camelCase keys (``longPool``, ``targetPrice``); the models
accept either those aliases or the Python field names.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Side = Literal["long", "short"]
ParticipantResult = Literal["win", "lose"]
GameState = Literal["open", "closed"]
OutcomeStatus = Literal["settled", "skipped", "conflict", "errored"]


class StoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _with_document_id(document: Mapping[str, Any]) -> dict[str, Any]:
    data = dict(document)
    if "_id" in data:
        document_id = data.pop("_id")
        data.setdefault("id", str(document_id))
    return data


# ============================================================================
# Games
# ============================================================================


class GameBase(StoreModel):
    """Fields shared by every game type."""

    id: str
    type: str | None = None
    ticker: str = ""
    long_pool: float = Field(default=0.0, ge=0)
    short_pool: float = Field(default=0.0, ge=0)
    state: GameState = "open"
    deadline: datetime | None = None

    @field_validator("long_pool", "short_pool", mode="before")
    @classmethod
    def default_missing_pool(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @property
    def total_pool(self) -> float:
        return self.long_pool + self.short_pool

    @property
    def is_open(self) -> bool:
        return self.state == "open"


class TargetGame(GameBase):
    """Long wins when the price lands inside a band around the target."""

    type: Literal["target"] = "target"
    target_price: float | None = None
    band_pct: float | None = None


class DuelGame(GameBase):
    """Long wins when the price finishes at or above the entry price."""

    type: Literal["duel"] = "duel"
    entry_price: float | None = None
    target_price: float | None = None


class RangeGame(GameBase):
    """Long wins when the price finishes inside [range_low, range_high]."""

    type: Literal["range"] = "range"
    range_low: float | None = None
    range_high: float | None = None


class UnsupportedGame(GameBase):
    """A game whose type has no settlement rule."""

    pass


Game = TargetGame | DuelGame | RangeGame | UnsupportedGame

_GAME_VARIANTS: dict[str, type[GameBase]] = {
    "target": TargetGame,
    "duel": DuelGame,
    "range": RangeGame,
}


def parse_game(document: Mapping[str, Any]) -> Game:
    """Build the game variant matching the document's ``type``."""
    data = _with_document_id(document)
    game_type = data.get("type")
    variant = _GAME_VARIANTS.get(game_type) if isinstance(game_type, str) else None
    return (variant or UnsupportedGame).model_validate(data)


# ============================================================================
# Participants
# ============================================================================


class Participant(StoreModel):
    """A stake on one side of a game."""

    id: str
    side: Side | None = None
    stake: float = Field(default=0.0, ge=0)
    payout: float | None = None
    result: ParticipantResult | None = None

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, v: Any) -> Any:
        # An unknown side can never match the winning side.
        return v if v in ("long", "short") else None

    @field_validator("stake", mode="before")
    @classmethod
    def default_missing_stake(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("result", mode="before")
    @classmethod
    def normalize_result(cls, v: Any) -> Any:
        return v if v in ("win", "lose") else None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Participant:
        return cls.model_validate(_with_document_id(document))


# ============================================================================
# Settlement
# ============================================================================


class SettlementResult(StoreModel):
    """Settlement fields written onto the closed game."""

    settlement_price: float
    winning_side: Side
    total_pool: float
    total_distributed: float
    winners_count: int
    losers_count: int
    settled_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        """Store fields for the game update. ``settledAt`` is assigned by the store."""
        return self.model_dump(by_alias=True, exclude={"settled_at"})


class SettlementStage(str, Enum):
    SELECTED = "selected"
    PRICE_FETCHED = "price_fetched"
    PRICE_FAILED = "price_failed"
    OUTCOME_RESOLVED = "outcome_resolved"
    OUTCOME_FAILED = "outcome_failed"
    PAYOUTS_COMPUTED = "payouts_computed"
    PERSISTED = "persisted"
    ALREADY_CLOSED = "already_closed"
    CONFLICT = "conflict"
    ERRORED = "errored"


class SettlementOutcome(BaseModel):
    """What happened to one game during a settlement run."""

    game_id: str
    status: OutcomeStatus
    stage: SettlementStage
    reason: str = ""
    result: SettlementResult | None = None


class SettlementSummary(BaseModel):
    """Counts for one scheduler run."""

    selected: int = 0
    settled: int = 0
    skipped: int = 0
    conflicts: int = 0
    errored: int = 0
    outcomes: list[SettlementOutcome] = Field(default_factory=list)

    def record(self, outcome: SettlementOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == "settled":
            self.settled += 1
        elif outcome.status == "skipped":
            self.skipped += 1
        elif outcome.status == "conflict":
            self.conflicts += 1
        else:
            self.errored += 1
