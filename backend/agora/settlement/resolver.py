"""
Outcome Resolver

Decides the winning side of a game from the observed settlement price.

Rules:
- target: long wins iff target * (1 - band) <= price <= target * (1 + band)
- duel:   long wins iff price >= entry price (target price as fallback)
- range:  long wins iff range_low <= price <= range_high

Every boundary is inclusive and goes to long. Participants rely on this
tie-break, so it must not change.
"""

from .exceptions import UndecidableGame
from .models import DuelGame, Game, RangeGame, Side, TargetGame

DEFAULT_BAND_PCT = 0.01


def _resolve_target(game: TargetGame, price: float, default_band_pct: float) -> Side:
    if game.target_price is None:
        raise UndecidableGame(game.id, "target game has no targetPrice")

    band_pct = game.band_pct if game.band_pct is not None else default_band_pct
    lower = game.target_price * (1 - band_pct)
    upper = game.target_price * (1 + band_pct)
    return "long" if lower <= price <= upper else "short"


def _duel_reference(game: DuelGame) -> float | None:
    if game.entry_price is not None:
        return game.entry_price
    # A zero target price is not a usable fallback
    if game.target_price:
        return game.target_price
    return None


def _resolve_duel(game: DuelGame, price: float) -> Side:
    reference = _duel_reference(game)
    if reference is None:
        raise UndecidableGame(game.id, "duel game has neither entryPrice nor targetPrice")
    if reference == 0:
        raise UndecidableGame(game.id, "duel game has a zero reference price")
    return "long" if price >= reference else "short"


def _resolve_range(game: RangeGame, price: float) -> Side:
    if game.range_low is None or game.range_high is None:
        raise UndecidableGame(game.id, "range game is missing rangeLow or rangeHigh")
    return "long" if game.range_low <= price <= game.range_high else "short"


def resolve_outcome(
    game: Game,
    price: float,
    default_band_pct: float = DEFAULT_BAND_PCT,
) -> Side:
    """Return the winning side, or raise UndecidableGame."""
    if isinstance(game, TargetGame):
        return _resolve_target(game, price, default_band_pct)
    if isinstance(game, DuelGame):
        return _resolve_duel(game, price)
    if isinstance(game, RangeGame):
        return _resolve_range(game, price)
    raise UndecidableGame(game.id, f"unsupported game type {game.type!r}")
