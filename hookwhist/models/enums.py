"""Enums and constants for the game."""

from enum import Enum


class Suit(str, Enum):
    """Card suits, in display order."""

    HEARTS = "HEARTS"
    CLUBS = "CLUBS"
    DIAMONDS = "DIAMONDS"
    SPADES = "SPADES"


class GamePhase(str, Enum):
    """Session lifecycle."""

    LOBBY = "LOBBY"
    IN_PROGRESS = "IN_PROGRESS"
    GAME_OVER = "GAME_OVER"


class RoundPhase(str, Enum):
    """Phases of a single round after the deal."""

    DECLARING = "DECLARING"
    PLAYING = "PLAYING"
    SCORING = "SCORING"
    FINISHED = "FINISHED"


class PlayerStatus(str, Enum):
    """Seat status within a running game."""

    ACTIVE = "ACTIVE"
    ELIMINATED = "ELIMINATED"


class DeckPolicy(str, Enum):
    """Behavior once the deck can no longer deal a round to every active player."""

    # Drop lowest scorers one at a time, repeating within the same deal until
    # the deck covers every remaining player, then keep playing
    ELIMINATE = "ELIMINATE"
    # End the game after the last no-trump round
    STOP = "STOP"


class Command(str, Enum):
    """WebSocket commands."""

    # Commands sent to players
    INIT = "INIT"
    ROSTER = "ROSTER"
    CAN_START = "CAN_START"
    NEW_ROUND = "NEW_ROUND"
    STATUS = "STATUS"
    DECLARE_TURN = "DECLARE_TURN"
    DECLARED = "DECLARED"
    ALL_DECLARED = "ALL_DECLARED"
    PLAY_TURN = "PLAY_TURN"
    CARD_PLAYED = "CARD_PLAYED"
    TRICK_WON = "TRICK_WON"
    ROUND_OVER = "ROUND_OVER"
    GAME_OVER = "GAME_OVER"
    PLAYER_ELIMINATED = "PLAYER_ELIMINATED"
    YOU_ARE_ELIMINATED = "YOU_ARE_ELIMINATED"
    REPORT_ERROR = "REPORT_ERROR"
    GAME_RESET = "GAME_RESET"
    NEW_MESSAGE = "NEW_MESSAGE"
    GAME_STATE = "GAME_STATE"

    # Commands from client
    START_GAME = "START_GAME"
    DECLARE = "DECLARE"
    PLAY_CARD = "PLAY_CARD"
    CHAT = "CHAT"
    SYNC_STATE = "SYNC_STATE"
