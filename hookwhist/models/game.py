"""Game model for managing game state across rounds."""

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from hookwhist.constants import DECK_SIZE, MAX_PLAYERS, MIN_PLAYERS, NO_TRUMP_FROM_ROUND
from hookwhist.models.enums import DeckPolicy, GamePhase, PlayerStatus
from hookwhist.models.errors import CapacityError, ErrorCode, RuleViolationError
from hookwhist.models.player import Player
from hookwhist.models.round import Round

logger = logging.getLogger(__name__)


@dataclass
class Game:
    """Represents a complete game in one room.

    Players join in the lobby; once started the seating is fixed and rounds
    are dealt with one more card each time, until fewer than the minimum
    number of players remain or the deck can no longer supply a round.

    Attributes:
        id: Room identifier
        phase: Current lifecycle phase
        players: Players in join order
        current_round_number: Number of the round being played (0 before start)
        table_order: Seating order fixed at game start
        dealer_index: Dealer position among active players (-1 before the first deal)
        current_round: Round in progress, replaced every round
        eliminated_ids: Players eliminated before the current round, in order
        min_players: Players needed to start and to keep playing
        max_players: Roster capacity
        deck_policy: What to do once the deck runs short
        no_trump_from_round: First round played without trump

    """

    id: str
    phase: GamePhase = GamePhase.LOBBY
    players: list[Player] = field(default_factory=list)
    current_round_number: int = 0
    table_order: list[str] = field(default_factory=list)
    dealer_index: int = -1
    current_round: Round | None = None
    eliminated_ids: list[str] = field(default_factory=list)
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS
    deck_policy: DeckPolicy = DeckPolicy.ELIMINATE
    no_trump_from_round: int = NO_TRUMP_FROM_ROUND
    rng: random.Random = field(default_factory=random.Random, repr=False)

    @property
    def started(self) -> bool:
        return self.phase != GamePhase.LOBBY

    def add_player(self, player: Player) -> None:
        """Add a player to the game.

        Raises:
            CapacityError: If the game has started or the roster is full

        """
        if self.started:
            raise CapacityError(ErrorCode.GAME_ALREADY_STARTED, "Game already started.")
        if self.is_full():
            raise CapacityError(ErrorCode.GAME_IS_FULL, "Game is full.")
        if self.get_player(player.id):
            raise CapacityError(ErrorCode.GAME_IS_FULL, "Player already seated.")

        player.join_index = len(self.players)
        self.players.append(player)

    def remove_player(self, player_id: str) -> bool:
        """Remove a player from the game."""
        for i, player in enumerate(self.players):
            if player.id == player_id:
                self.players.pop(i)
                for j in range(i, len(self.players)):
                    self.players[j].join_index = j
                return True
        return False

    def get_player(self, player_id: str) -> Player | None:
        """Get a player by ID."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def is_full(self) -> bool:
        """Check if game is at max capacity."""
        return len(self.players) >= self.max_players

    def can_start(self) -> bool:
        """Check if game has enough players to start."""
        return len(self.players) >= self.min_players

    def first_player(self) -> Player | None:
        """The earliest player still in the room."""
        return self.players[0] if self.players else None

    def active_player_ids(self) -> list[str]:
        """Active players in table order."""
        by_id = {p.id: p for p in self.players}
        return [pid for pid in self.table_order if pid in by_id and by_id[pid].is_active]

    def start(self) -> Round | None:
        """Fix the seating and deal the first round.

        Returns:
            The first round, or None when the game ended immediately

        Raises:
            RuleViolationError: If not enough players have joined

        """
        if not self.can_start():
            raise RuleViolationError(
                ErrorCode.NOT_ENOUGH_PLAYERS,
                f"At least {self.min_players} players are needed to start.",
            )

        self.phase = GamePhase.IN_PROGRESS
        self.table_order = [p.id for p in self.players]
        self.rng.shuffle(self.table_order)
        for player in self.players:
            player.status = PlayerStatus.ACTIVE
        self.dealer_index = -1
        self.current_round_number = 0

        logger.info("Game %s started with %d players", self.id, len(self.players))
        return self.start_new_round()

    def _deck_supports(self, round_number: int, num_players: int) -> bool:
        return round_number * num_players <= DECK_SIZE

    def player_to_eliminate(self) -> Player | None:
        """Lowest scoring active player, ties going to the first in table order."""
        active = [p for pid in self.active_player_ids() if (p := self.get_player(pid))]
        if not active:
            return None
        return min(active, key=lambda p: p.score)

    def _apply_deck_policy(self) -> None:
        """Eliminate lowest scorers until the deck can deal the upcoming round."""
        self.eliminated_ids = []
        if self.deck_policy != DeckPolicy.ELIMINATE:
            return

        while (
            not self._deck_supports(self.current_round_number, len(self.active_player_ids()))
            and len(self.active_player_ids()) > self.min_players
        ):
            player = self.player_to_eliminate()
            if player is None:
                break
            player.eliminate()
            self.eliminated_ids.append(player.id)
            logger.info(
                "Eliminated %s (score %d) before round %d in game %s",
                player.username,
                player.score,
                self.current_round_number,
                self.id,
            )

    def _should_end(self, active_ids: list[str]) -> bool:
        if len(active_ids) < self.min_players:
            return True
        if not self._deck_supports(self.current_round_number, len(active_ids)):
            return True
        return (
            self.deck_policy == DeckPolicy.STOP
            and self.current_round_number > self.no_trump_from_round
        )

    def start_new_round(self) -> Round | None:
        """Advance to the next round and deal it.

        Returns:
            The new round, or None if the game is over

        """
        self.current_round_number += 1
        self._apply_deck_policy()

        active_ids = self.active_player_ids()
        if self._should_end(active_ids):
            self.end()
            return None

        self.dealer_index = (self.dealer_index + 1) % len(active_ids)
        dealer_id = active_ids[self.dealer_index]
        first = (self.dealer_index + 1) % len(active_ids)
        turn_order = active_ids[first:] + active_ids[:first]

        for player in self.players:
            player.hand = []

        self.current_round = Round.deal(
            number=self.current_round_number,
            players={p.id: p for p in self.players},
            turn_order=turn_order,
            dealer_id=dealer_id,
            rng=self.rng,
            no_trump_from_round=self.no_trump_from_round,
        )
        return self.current_round

    def apply_round_scores(self) -> dict[str, int]:
        """Score the current round and add the points to each player."""
        if self.current_round is None:
            return {}
        scores = self.current_round.calculate_scores()
        for player_id, points in scores.items():
            player = self.get_player(player_id)
            if player:
                player.update_score(points)
        return scores

    def end(self) -> None:
        """Mark the game as over."""
        self.phase = GamePhase.GAME_OVER
        self.current_round = None
        logger.info("Game %s over after %d rounds", self.id, self.current_round_number - 1)

    def get_leaderboard(self) -> list[dict[str, Any]]:
        """Get sorted leaderboard."""
        sorted_players = sorted(self.players, key=lambda p: p.score, reverse=True)
        return [
            {
                "player_id": p.id,
                "username": p.username,
                "score": p.score,
                "status": p.status.value,
            }
            for p in sorted_players
        ]

    def get_winner(self) -> Player | None:
        """Get the winning player once the game is over."""
        if self.phase != GamePhase.GAME_OVER or not self.players:
            return None
        return max(self.players, key=lambda p: p.score)

    def __str__(self) -> str:
        """Return string representation."""
        return (
            f"Game {self.id}: {len(self.players)} players, "
            f"Round {self.current_round_number}, Phase: {self.phase.value}"
        )
