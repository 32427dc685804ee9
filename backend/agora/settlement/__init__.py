"""Settlement rules for community games: outcomes, payouts and the error taxonomy.

The store-facing orchestration lives in ``agora.settlement.transaction`` and
``agora.settlement.scheduler``.
"""

from .exceptions import (
    ConfigurationError,
    ConservationError,
    GameNotFound,
    ParticipantAlreadySettled,
    PersistenceConflict,
    SettlementError,
    UndecidableGame,
)
from .models import (
    DuelGame,
    Game,
    Participant,
    RangeGame,
    SettlementOutcome,
    SettlementResult,
    SettlementStage,
    SettlementSummary,
    Side,
    TargetGame,
    UnsupportedGame,
    parse_game,
)
from .payouts import ParticipantPayout, PayoutPlan, compute_payouts, verify_conservation
from .resolver import DEFAULT_BAND_PCT, resolve_outcome

__all__ = [
    # Errors
    "SettlementError",
    "ConfigurationError",
    "ConservationError",
    "GameNotFound",
    "ParticipantAlreadySettled",
    "PersistenceConflict",
    "UndecidableGame",
    # Records
    "Game",
    "TargetGame",
    "DuelGame",
    "RangeGame",
    "UnsupportedGame",
    "Participant",
    "Side",
    "SettlementResult",
    "SettlementOutcome",
    "SettlementStage",
    "SettlementSummary",
    "parse_game",
    # Rules
    "DEFAULT_BAND_PCT",
    "resolve_outcome",
    "ParticipantPayout",
    "PayoutPlan",
    "compute_payouts",
    "verify_conservation",
]
