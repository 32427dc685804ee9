"""Error taxonomy for game settlement."""


class SettlementError(Exception):
    """Base exception for settlement errors."""

    pass


class ConfigurationError(SettlementError):
    """Required configuration is missing. Fatal before any store access."""

    pass


class UndecidableGame(SettlementError):
    """The game's rules cannot produce a winner for the observed price."""

    def __init__(self, game_id: str, reason: str):
        super().__init__(f"Game {game_id} is undecidable: {reason}")
        self.game_id = game_id
        self.reason = reason


class PersistenceConflict(SettlementError):
    """The settlement commit lost a race with another settlement of the same game."""

    def __init__(self, game_id: str, reason: str = "game is no longer open"):
        super().__init__(f"Settlement commit for game {game_id} rejected: {reason}")
        self.game_id = game_id
        self.reason = reason


class ConservationError(SettlementError):
    """Computed payouts do not add up to the pool being distributed."""

    def __init__(self, expected: float, distributed: float):
        super().__init__(
            f"Payouts do not conserve the pool: expected {expected}, distributed {distributed}"
        )
        self.expected = expected
        self.distributed = distributed


class GameNotFound(SettlementError):
    """No game exists with the requested id."""

    def __init__(self, game_id: str):
        super().__init__(f"Game {game_id} not found")
        self.game_id = game_id


class ParticipantAlreadySettled(SettlementError):
    """An open game has participants that already carry a result. Needs repair by hand."""

    def __init__(self, game_id: str, reason: str):
        super().__init__(f"Game {game_id} has inconsistent participants: {reason}")
        self.game_id = game_id
        self.reason = reason
