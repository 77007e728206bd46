"""Round model representing one round of the game."""

import logging
import random
from dataclasses import dataclass, field

from hookwhist.constants import NO_TRUMP_FROM_ROUND
from hookwhist.models.card import Card
from hookwhist.models.deck import Deck
from hookwhist.models.enums import RoundPhase, Suit
from hookwhist.models.errors import (
    ErrorCode,
    NotYourTurnError,
    RuleViolationError,
    WrongPhaseError,
)
from hookwhist.models.player import Player
from hookwhist.models.ranking import sort_hand
from hookwhist.models.trick import Trick

logger = logging.getLogger(__name__)


@dataclass
class PlayResult:
    """Outcome of an accepted card play.

    Attributes:
        player_id: Who played
        card: The card played
        trick: The trick the card completed, None while it is still open
        round_over: Whether the last trick of the round was just played

    """

    player_id: str
    card: Card
    trick: Trick | None = None
    round_over: bool = False

    @property
    def winner_id(self) -> str | None:
        return self.trick.winner_player_id if self.trick else None


@dataclass
class Round:
    """Represents a single round.

    In round N, each dealt-in player receives N cards, declares how many
    tricks they will win, and N tricks are played. The round moves through
    DECLARING, PLAYING and SCORING; every action is checked against the
    current phase.

    Attributes:
        number: Round number, also the number of cards dealt to each player
        players: Dealt-in players keyed by id
        turn_order: Active player ids; rotated so the last trick's winner leads
        dealer_id: The player who dealt this round
        deck: Cards left after dealing and drawing the trump
        trump_card: Card setting the trump suit, None for a no-trump round
        declarations: Declared trick counts, in declaration order
        tricks_won: Tricks taken so far by each player
        current_trick: Trick in progress
        turn: Player whose action is awaited
        phase: Current phase of the round
        scores: Points gained by each player, filled in at scoring

    """

    number: int
    players: dict[str, Player]
    turn_order: list[str]
    dealer_id: str
    deck: Deck = field(default_factory=Deck)
    trump_card: Card | None = None
    declarations: dict[str, int] = field(default_factory=dict)
    tricks_won: dict[str, int] = field(default_factory=dict)
    current_trick: Trick = field(default_factory=Trick)
    turn: str | None = None
    phase: RoundPhase = RoundPhase.DECLARING
    scores: dict[str, int] = field(default_factory=dict)

    @classmethod
    def deal(
        cls,
        number: int,
        players: dict[str, Player],
        turn_order: list[str],
        dealer_id: str,
        rng: random.Random | None = None,
        no_trump_from_round: int = NO_TRUMP_FROM_ROUND,
    ) -> "Round":
        """Shuffle a fresh deck, deal the hands and turn up the trump.

        Each player in turn_order receives `number` cards, sorted for
        display. A trump card is drawn from the rest of the deck unless
        the round is played without trump or nothing is left to draw.
        """
        deck = Deck(rng)
        deck.shuffle()
        hands = deck.deal(len(turn_order), number)

        for player_id, hand in zip(turn_order, hands, strict=True):
            players[player_id].hand = sort_hand(hand)

        trump_card = deck.draw() if number < no_trump_from_round else None

        round_obj = cls(
            number=number,
            players={pid: players[pid] for pid in turn_order},
            turn_order=list(turn_order),
            dealer_id=dealer_id,
            deck=deck,
            trump_card=trump_card,
            tricks_won=dict.fromkeys(turn_order, 0),
            turn=turn_order[0],
        )
        logger.info(
            "Dealt round %d to %d players, trump %s",
            number,
            len(turn_order),
            trump_card or "none",
        )
        return round_obj

    @property
    def trump_suit(self) -> Suit | None:
        """Trump suit, None when playing without trump."""
        return self.trump_card.suit if self.trump_card else None

    @property
    def trick_lead_suit(self) -> Suit | None:
        """Lead suit of the trick in progress."""
        return self.current_trick.lead_suit

    @property
    def tricks_played(self) -> int:
        """Number of completed tricks so far."""
        return sum(self.tricks_won.values())

    def all_declared(self) -> bool:
        """Check if every player has declared."""
        return len(self.declarations) == len(self.turn_order)

    def is_last_to_declare(self) -> bool:
        """Check if the next declaration closes the declaring phase."""
        return len(self.declarations) == len(self.turn_order) - 1

    def forbidden_declaration(self) -> int | None:
        """The one value the last bidder may not declare.

        Declaring it would make the total pledged tricks equal the number
        of tricks in the round. None while the next bidder is not the last.
        """
        if self.phase != RoundPhase.DECLARING or not self.is_last_to_declare():
            return None
        return self.number - sum(self.declarations.values())

    def _next_in_turn_order(self, player_id: str) -> str:
        index = self.turn_order.index(player_id)
        return self.turn_order[(index + 1) % len(self.turn_order)]

    def expect_turn(self, player_id: str, phase: RoundPhase) -> None:
        """Raise unless the round is in phase and awaiting player_id."""
        if self.phase != phase:
            raise WrongPhaseError(f"Round {self.number} is {self.phase.value}, not {phase.value}")
        if player_id != self.turn:
            raise NotYourTurnError(player_id)

    def declare(self, player_id: str, declaration: int) -> None:
        """Record a player's declaration.

        Raises:
            WrongPhaseError: If the round is not declaring
            NotYourTurnError: If it is not the player's turn
            RuleViolationError: If the value is out of range or is the
                forbidden last declaration

        """
        self.expect_turn(player_id, RoundPhase.DECLARING)

        # bool is an int subclass but never a valid declaration
        if (
            not isinstance(declaration, int)
            or isinstance(declaration, bool)
            or not 0 <= declaration <= self.number
        ):
            raise RuleViolationError(
                ErrorCode.INVALID_DECLARATION,
                f"Declaration must be a number between 0 and {self.number}",
            )

        if declaration == self.forbidden_declaration():
            raise RuleViolationError(
                ErrorCode.FORBIDDEN_DECLARATION, f"You cannot declare {declaration}."
            )

        self.declarations[player_id] = declaration

        if self.all_declared():
            self.turn = self.turn_order[0]
            self.phase = RoundPhase.PLAYING
        else:
            self.turn = self._next_in_turn_order(player_id)

    def play(self, player_id: str, card: Card) -> PlayResult:
        """Play a card from the player's hand into the current trick.

        Raises:
            WrongPhaseError: If the round is not in the playing phase
            NotYourTurnError: If it is not the player's turn
            RuleViolationError: If the card is not held or the player
                must follow the lead suit

        """
        self.expect_turn(player_id, RoundPhase.PLAYING)
        player = self.players[player_id]

        if not player.has_card(card):
            raise RuleViolationError(ErrorCode.CARD_NOT_IN_HAND, "You do not hold that card.")

        lead_suit = self.trick_lead_suit
        if lead_suit is not None and card.suit != lead_suit and player.has_suit(lead_suit):
            raise RuleViolationError(ErrorCode.MUST_FOLLOW_SUIT, "You must follow suit!")

        player.remove_card(card)
        self.current_trick.add_card(player_id, card)
        result = PlayResult(player_id=player_id, card=card)

        if not self.current_trick.is_complete(len(self.turn_order)):
            self.turn = self._next_in_turn_order(player_id)
            return result

        trick = self.current_trick
        winner_id = trick.determine_winner(self.trump_suit).player_id
        self.tricks_won[winner_id] += 1
        self.current_trick = Trick()

        # Winner leads the next trick, seating order otherwise preserved
        winner_index = self.turn_order.index(winner_id)
        self.turn_order = self.turn_order[winner_index:] + self.turn_order[:winner_index]
        self.turn = winner_id

        result.trick = trick
        if not player.hand:
            self.phase = RoundPhase.SCORING
            result.round_over = True
        logger.debug("Trick %d of round %d won by %s", self.tricks_played, self.number, winner_id)
        return result

    def calculate_scores(self) -> dict[str, int]:
        """Calculate the points each player gains this round.

        A player whose tricks won match their declaration gains the round
        number plus the declaration; anyone else gains nothing.
        """
        if self.phase != RoundPhase.SCORING:
            raise WrongPhaseError(f"Round {self.number} cannot be scored while {self.phase.value}")

        for player_id in self.turn_order:
            declared = self.declarations.get(player_id)
            won = self.tricks_won.get(player_id, 0)
            self.scores[player_id] = self.number + declared if declared == won else 0

        self.phase = RoundPhase.FINISHED
        return dict(self.scores)

    def __str__(self) -> str:
        """Return string representation."""
        return f"Round {self.number}: {len(self.declarations)} declarations, {self.phase.value}"
