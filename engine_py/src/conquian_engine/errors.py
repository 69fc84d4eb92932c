# engine_py/src/conquian_engine/errors.py

from enum import Enum


class ErrorCode(str, Enum):
    """Failure codes surfaced to callers."""
    # Phase mismatch
    NOT_PLAYING = "NOT_PLAYING"
    NOT_EXCHANGING = "NOT_EXCHANGING"
    ALREADY_STARTED = "ALREADY_STARTED"
    # Turn / ownership
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    CARDS_NOT_IN_HAND = "CARDS_NOT_IN_HAND"
    # Exhaustion
    PILE_EMPTY = "PILE_EMPTY"
    INSUFFICIENT_CARDS = "INSUFFICIENT_CARDS"
    # Rule violations
    INVALID_MELD = "INVALID_MELD"
    CARD_CANNOT_EXTEND_MELD = "CARD_CANNOT_EXTEND_MELD"
    SEAT_TAKEN = "SEAT_TAKEN"
    ALL_SEATS_TAKEN = "ALL_SEATS_TAKEN"
    INVALID_SEAT = "INVALID_SEAT"
    MUST_SEAT_FIRST = "MUST_SEAT_FIRST"
    CANNOT_START = "CANNOT_START"
    INCOMPLETE_SELECTIONS = "INCOMPLETE_SELECTIONS"
    # Not found
    MELD_NOT_FOUND = "MELD_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    # Store / transport
    VERSION_CONFLICT = "VERSION_CONFLICT"
    INVALID_EVENT = "INVALID_EVENT"
    INTERNAL = "INTERNAL"


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")


class PhaseError(GameError):
    """Operation is not valid for the current game status."""


class TurnError(GameError):
    """Actor lacks authority over the turn or the referenced cards."""


class ExhaustionError(GameError):
    """More cards were requested than are available."""


class RuleViolation(GameError):
    """Action breaks a game rule."""


class NotFoundError(GameError):
    """Referenced game, player or meld does not exist."""


class ConflictError(GameError):
    """Stored document changed since it was read."""


_CATEGORY = {
    ErrorCode.NOT_PLAYING: PhaseError,
    ErrorCode.NOT_EXCHANGING: PhaseError,
    ErrorCode.ALREADY_STARTED: PhaseError,
    ErrorCode.NOT_YOUR_TURN: TurnError,
    ErrorCode.CARD_NOT_IN_HAND: TurnError,
    ErrorCode.CARDS_NOT_IN_HAND: TurnError,
    ErrorCode.PILE_EMPTY: ExhaustionError,
    ErrorCode.INSUFFICIENT_CARDS: ExhaustionError,
    ErrorCode.MELD_NOT_FOUND: NotFoundError,
    ErrorCode.PLAYER_NOT_FOUND: NotFoundError,
    ErrorCode.GAME_NOT_FOUND: NotFoundError,
    ErrorCode.VERSION_CONFLICT: ConflictError,
}


# Helper function to raise common errors
def raise_error(code: ErrorCode, message: str):
    raise _CATEGORY.get(code, RuleViolation)(code, message)
