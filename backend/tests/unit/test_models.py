"""Tests for game and participant record parsing."""

import pytest
from bson import ObjectId
from pydantic import ValidationError

from agora.settlement import (
    DuelGame,
    Participant,
    RangeGame,
    SettlementResult,
    SettlementSummary,
    TargetGame,
    UnsupportedGame,
    parse_game,
)
from agora.settlement.models import SettlementOutcome, SettlementStage


def test_parse_game_selects_variant_by_type() -> None:
    assert isinstance(parse_game({"_id": "a", "type": "target"}), TargetGame)
    assert isinstance(parse_game({"_id": "b", "type": "duel"}), DuelGame)
    assert isinstance(parse_game({"_id": "c", "type": "range"}), RangeGame)
    assert isinstance(parse_game({"_id": "d", "type": "lottery"}), UnsupportedGame)
    assert isinstance(parse_game({"_id": "e"}), UnsupportedGame)


def test_parse_game_reads_store_field_names() -> None:
    game = parse_game(
        {
            "_id": "G1",
            "type": "target",
            "ticker": "AAPL",
            "targetPrice": 100,
            "bandPct": 0.02,
            "longPool": 300,
            "shortPool": 200,
            "state": "open",
        }
    )

    assert game.id == "G1"
    assert game.target_price == 100
    assert game.band_pct == 0.02
    assert game.total_pool == 500
    assert game.is_open


def test_parse_game_accepts_object_ids() -> None:
    oid = ObjectId()

    assert parse_game({"_id": oid, "type": "duel"}).id == str(oid)


def test_missing_pools_default_to_zero() -> None:
    game = parse_game({"_id": "G", "type": "range", "longPool": None})

    assert game.long_pool == 0
    assert game.short_pool == 0
    assert game.total_pool == 0


def test_negative_pool_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_game({"_id": "G", "type": "range", "longPool": -5})


def test_closed_game_is_not_open() -> None:
    assert not parse_game({"_id": "G", "type": "duel", "state": "closed"}).is_open


def test_participant_normalizes_unknown_values() -> None:
    participant = Participant.from_document(
        {"_id": "P", "side": "up", "stake": None, "result": "unset", "gameId": "G"}
    )

    assert participant.side is None
    assert participant.stake == 0
    assert participant.result is None


def test_settlement_result_document_uses_store_names() -> None:
    result = SettlementResult(
        settlement_price=101.0,
        winning_side="long",
        total_pool=500,
        total_distributed=500,
        winners_count=1,
        losers_count=1,
    )

    assert result.to_document() == {
        "settlementPrice": 101.0,
        "winningSide": "long",
        "totalPool": 500,
        "totalDistributed": 500,
        "winnersCount": 1,
        "losersCount": 1,
    }


def test_summary_counts_outcomes_by_status() -> None:
    summary = SettlementSummary(selected=4)
    for status, stage in [
        ("settled", SettlementStage.PERSISTED),
        ("skipped", SettlementStage.PRICE_FAILED),
        ("conflict", SettlementStage.CONFLICT),
        ("errored", SettlementStage.ERRORED),
    ]:
        summary.record(SettlementOutcome(game_id=status, status=status, stage=stage))

    assert (summary.settled, summary.skipped, summary.conflicts, summary.errored) == (1, 1, 1, 1)
    assert len(summary.outcomes) == 4
