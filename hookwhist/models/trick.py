"""Trick model for a single trick within a round."""

from dataclasses import dataclass, field

from hookwhist.models.card import Card
from hookwhist.models.enums import Suit
from hookwhist.models.ranking import determine_winner


@dataclass
class PlayedCard:
    """Represents a card played by a player in a trick."""

    player_id: str
    card: Card

    def to_dict(self) -> dict[str, object]:
        return {"player_id": self.player_id, "card": self.card.to_dict()}


@dataclass
class Trick:
    """Represents a single trick within a round.

    A trick consists of each active player playing one card in turn order.
    The suit of the first card is the lead suit that the others must follow
    when they can.

    Attributes:
        played_cards: Cards played so far, in order
        winner_player_id: ID of player who won this trick, once complete

    """

    played_cards: list[PlayedCard] = field(default_factory=list)
    winner_player_id: str | None = None

    @property
    def lead_suit(self) -> Suit | None:
        """Suit of the first card played, None before any card is played."""
        if not self.played_cards:
            return None
        return self.played_cards[0].card.suit

    def has_player_played(self, player_id: str) -> bool:
        """Check if a player has already played a card in this trick."""
        return any(pc.player_id == player_id for pc in self.played_cards)

    def add_card(self, player_id: str, card: Card) -> bool:
        """Add a played card to this trick.

        Returns:
            True if card was added, False if player already played.

        """
        if self.has_player_played(player_id):
            return False
        self.played_cards.append(PlayedCard(player_id, card))
        return True

    def is_complete(self, num_players: int) -> bool:
        """Check if all players have played a card."""
        return len(self.played_cards) == num_players

    def determine_winner(self, trump_suit: Suit | None) -> PlayedCard:
        """Determine and record the winner of this trick."""
        cards = [pc.card for pc in self.played_cards]
        winner = self.played_cards[determine_winner(cards, trump_suit)]
        self.winner_player_id = winner.player_id
        return winner

    def get_valid_cards(self, hand: list[Card]) -> list[Card]:
        """Get the cards from hand that may legally be played now.

        Leading, any card can be played. Following, a player holding the
        lead suit must play it; otherwise anything goes, trump included.
        """
        lead_suit = self.lead_suit
        if lead_suit is None:
            return list(hand)
        suit_cards = [c for c in hand if c.suit == lead_suit]
        return suit_cards or list(hand)

    def __str__(self) -> str:
        """Return string representation of the trick."""
        if self.winner_player_id:
            return f"Trick: Winner {self.winner_player_id}"
        return f"Trick: {len(self.played_cards)} cards played"
