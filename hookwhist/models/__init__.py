"""Game domain models."""

from hookwhist.models.card import Card
from hookwhist.models.deck import Deck
from hookwhist.models.enums import Command, GamePhase, PlayerStatus, RoundPhase, Suit
from hookwhist.models.game import Game
from hookwhist.models.player import Player
from hookwhist.models.round import PlayResult, Round
from hookwhist.models.trick import Trick

__all__ = [
    "Card",
    "Command",
    "Deck",
    "Game",
    "GamePhase",
    "PlayResult",
    "Player",
    "PlayerStatus",
    "Round",
    "RoundPhase",
    "Suit",
    "Trick",
]
