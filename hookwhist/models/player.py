"""Player model."""

from dataclasses import dataclass, field

from hookwhist.models.card import Card
from hookwhist.models.enums import PlayerStatus, Suit


@dataclass
class Player:
    """Represents a player in the game.

    Attributes:
        id: Unique player identifier (one per connection)
        username: Player's display name
        score: Current total score, never reset mid-game
        join_index: Order of arrival in the room
        status: Whether the player is still dealt in
        is_connected: Whether player is currently connected
        hand: Current cards in hand, sorted for display

    """

    id: str
    username: str
    score: int = 0
    join_index: int = 0
    status: PlayerStatus = PlayerStatus.ACTIVE
    is_connected: bool = True
    hand: list[Card] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """Check if player is still dealt in."""
        return self.status == PlayerStatus.ACTIVE

    def has_card(self, card: Card) -> bool:
        """Check if player has a card in their hand."""
        return card in self.hand

    def has_suit(self, suit: Suit) -> bool:
        """Check if player holds at least one card of a suit."""
        return any(c.suit == suit for c in self.hand)

    def remove_card(self, card: Card) -> None:
        """Remove a card from player's hand."""
        if card in self.hand:
            self.hand.remove(card)

    def update_score(self, points: int) -> None:
        """Update player's score."""
        self.score += points

    def eliminate(self) -> None:
        """Take the player out of future rounds."""
        self.status = PlayerStatus.ELIMINATED
        self.hand = []

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.username} - Score: {self.score}"
