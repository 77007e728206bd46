"""Deck model for shuffling and dealing cards."""

import random

from hookwhist.models.card import Card, build_cards


class Deck:
    """
    Represents a standard deck of 52 playing cards.

    Cards are dealt and drawn from the end of the list, so a freshly
    shuffled deck is consumed from its top.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize an empty deck."""
        self.cards: list[Card] = []
        self._rng = rng or random.Random()  # noqa: S311

    def __len__(self) -> int:
        return len(self.cards)

    def fill(self) -> None:
        """Fill the deck with all 52 cards."""
        self.cards = build_cards()

    def shuffle(self) -> None:
        """Fill and shuffle the deck (Fisher-Yates, in place)."""
        self.fill()
        self._rng.shuffle(self.cards)

    def draw(self) -> Card | None:
        """Draw the top card, or None when the deck is exhausted."""
        if not self.cards:
            return None
        return self.cards.pop()

    def deal(self, num_players: int, cards_per_player: int) -> list[list[Card]]:
        """
        Deal cards to players.

        Args:
            num_players: Number of players to deal to
            cards_per_player: Number of cards per player

        Returns:
            List of hands, one per player, in dealing order

        Raises:
            ValueError: If the deck cannot supply every hand

        """
        if num_players * cards_per_player > len(self.cards):
            raise ValueError(
                f"Cannot deal {cards_per_player} cards to {num_players} players "
                f"from {len(self.cards)} cards"
            )

        hands: list[list[Card]] = [[] for _ in range(num_players)]
        for hand in hands:
            for _ in range(cards_per_player):
                hand.append(self.cards.pop())
        return hands
