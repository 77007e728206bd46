"""Card ordering: display order for hands and trick resolution under trump."""

from collections.abc import Iterable, Sequence

from hookwhist.models.card import SUIT_ORDER, Card
from hookwhist.models.enums import Suit


def display_key(card: Card) -> tuple[int, int]:
    """Sort key placing cards by suit, then by value."""
    return SUIT_ORDER.index(card.suit), card.rank


def compare_for_display(a: Card, b: Card) -> int:
    """Three-way comparison by suit rank then value rank.

    Only used for presenting a hand; it never affects legality or
    who wins a trick.
    """
    key_a, key_b = display_key(a), display_key(b)
    return (key_a > key_b) - (key_a < key_b)


def sort_hand(cards: Iterable[Card]) -> list[Card]:
    """Return the cards sorted for display."""
    return sorted(cards, key=display_key)


def beats(candidate: Card, incumbent: Card, trump_suit: Suit | None = None) -> bool:
    """Check whether candidate takes over as the best card of the trick.

    Rules, in order of precedence:
    1. With a trump suit in play, a trump beats any non-trump incumbent.
    2. Otherwise a card of the incumbent's suit wins if its value is higher.
    3. Anything else cannot beat the incumbent.

    The first card played is the initial incumbent, so off-suit
    non-trump plays never win.
    """
    if trump_suit is not None and candidate.suit == trump_suit and incumbent.suit != trump_suit:
        return True
    if candidate.suit == incumbent.suit:
        return candidate.rank > incumbent.rank
    return False


def determine_winner(cards: Sequence[Card], trump_suit: Suit | None = None) -> int:
    """Determine which play wins a trick.

    Args:
        cards: Cards in the order they were played
        trump_suit: Trump suit of the round, None when playing without trump

    Returns:
        Index into cards of the winning play

    Raises:
        ValueError: If no cards were played

    """
    if not cards:
        raise ValueError("Cannot determine the winner of an empty trick")

    winner_index = 0
    for index in range(1, len(cards)):
        if beats(cards[index], cards[winner_index], trump_suit):
            winner_index = index
    return winner_index
