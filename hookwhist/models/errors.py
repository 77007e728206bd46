"""Errors raised by the game engine."""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Error codes for i18n translation on the frontend."""

    # Game state errors
    GAME_ALREADY_STARTED = "error.gameAlreadyStarted"
    GAME_IS_FULL = "error.gameIsFull"
    NOT_ENOUGH_PLAYERS = "error.notEnoughPlayers"
    WRONG_PHASE = "error.wrongPhase"

    # Turn errors
    NOT_YOUR_TURN = "error.notYourTurn"

    # Declaration errors
    INVALID_DECLARATION = "error.invalidDeclaration"
    FORBIDDEN_DECLARATION = "error.forbiddenDeclaration"

    # Card errors
    INVALID_CARD = "error.invalidCard"
    CARD_NOT_IN_HAND = "error.cardNotInHand"
    MUST_FOLLOW_SUIT = "error.mustFollowSuit"


class GameError(Exception):
    """Base class for rejected game actions."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ProtocolViolation(GameError):
    """An action the client should never have sent; ignored without reply."""


class NotYourTurnError(ProtocolViolation):
    def __init__(self, player_id: str) -> None:
        super().__init__(ErrorCode.NOT_YOUR_TURN, f"It is not {player_id}'s turn")


class WrongPhaseError(ProtocolViolation):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.WRONG_PHASE, message)


class RuleViolationError(GameError):
    """A legal-looking action that breaks a game rule; reported to the sender."""


class CapacityError(GameError):
    """Join refused because the game is running or full."""
