"""Card model."""

from dataclasses import dataclass
from typing import Any

from hookwhist.constants import NO_TRUMP
from hookwhist.models.enums import Suit

# Ascending order: 2 is the lowest value, A the highest
VALUES: tuple[str, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")

SUIT_ORDER: tuple[Suit, ...] = (Suit.HEARTS, Suit.CLUBS, Suit.DIAMONDS, Suit.SPADES)


@dataclass(frozen=True)
class Card:
    """A playing card from a standard 52-card deck.

    Attributes:
        suit: One of the four suits
        value: Face value, "2" through "10", "J", "Q", "K" or "A"

    """

    suit: Suit
    value: str

    def __post_init__(self) -> None:
        """Reject values outside the standard deck."""
        if self.value not in VALUES:
            raise ValueError(f"Invalid card value: {self.value!r}")

    @property
    def rank(self) -> int:
        """Position of the value in ascending order (0 for a 2, 12 for an ace)."""
        return VALUES.index(self.value)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"suit": self.suit.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any) -> "Card":
        """Create a card from its wire form.

        Raises:
            ValueError: If the payload is not a known suit/value pair

        """
        if not isinstance(data, dict):
            raise ValueError("Card must be an object with suit and value")
        try:
            suit = Suit(data.get("suit"))
        except ValueError as e:
            raise ValueError(f"Invalid card suit: {data.get('suit')!r}") from e
        value = data.get("value")
        if not isinstance(value, str):
            raise ValueError(f"Invalid card value: {value!r}")
        return cls(suit, value)

    def __str__(self) -> str:
        """Return string representation of card."""
        return f"{self.value}{self.suit.value[0]}"


def trump_to_dict(trump_card: Card | None) -> dict[str, str]:
    """Serialize a trump card, using the no-trump sentinel when there is none."""
    if trump_card is None:
        return {"suit": NO_TRUMP, "value": ""}
    return trump_card.to_dict()


def build_cards() -> list[Card]:
    """Return all 52 cards, one of each suit/value combination."""
    return [Card(suit, value) for suit in SUIT_ORDER for value in VALUES]
