"""Game logic handler for WebSocket commands."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from hookwhist.api.responses import Command, ScoreInfo, ServerMessage, game_info, player_info
from hookwhist.config import settings
from hookwhist.models.card import Card, trump_to_dict
from hookwhist.models.enums import GamePhase, RoundPhase
from hookwhist.models.errors import (
    ErrorCode,
    GameError,
    ProtocolViolation,
    RuleViolationError,
    WrongPhaseError,
)
from hookwhist.models.game import Game
from hookwhist.models.player import Player

if TYPE_CHECKING:
    from hookwhist.api.websocket import ConnectionManager
    from hookwhist.models.round import PlayResult, Round

logger = logging.getLogger(__name__)

GAME_RESET_CLOSE_CODE = 4010
GAME_OVER_CLOSE_CODE = 4011


class GameHandler:
    """Handles game logic for WebSocket commands.

    Processes client commands (START_GAME, DECLARE, PLAY_CARD, CHAT) and
    generates the server events. Every state transition completes on the
    models before any event is sent.
    """

    def __init__(self, manager: "ConnectionManager") -> None:
        """Initialize handler with connection manager."""
        self.manager = manager
        # Paused continuations run detached from the receive loop that triggered them
        self._pending: set[asyncio.Task[None]] = set()

    async def handle_command(self, game: Game, player_id: str, command: str, content: Any) -> None:
        """Route incoming command to appropriate handler.

        Protocol violations are dropped without a reply; rule violations are
        reported to the sender only.
        """
        handlers = {
            Command.START_GAME.value: self._handle_start_game,
            Command.DECLARE.value: self._handle_declare,
            Command.PLAY_CARD.value: self._handle_play_card,
            Command.CHAT.value: self._handle_chat,
            Command.SYNC_STATE.value: self._handle_sync_state,
        }

        handler = handlers.get(command)
        if handler is None:
            logger.warning("Unknown command: %s", command)
            return

        if not isinstance(content, dict):
            content = {}

        try:
            await handler(game, player_id, content)
        except ProtocolViolation as e:
            logger.debug("Ignored %s from %s: %s", command, player_id, e.message)
        except RuleViolationError as e:
            logger.info("Rejected %s from %s: %s", command, player_id, e.message)
            await self._send_error(game.id, player_id, e)

    def _schedule(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        """Run a continuation in the background so the sender's socket keeps being read."""
        task = asyncio.create_task(coro, name=name)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Continuation %s failed", task.get_name(), exc_info=exc)

    async def wait_for_pending(self) -> None:
        """Wait until every scheduled continuation has finished."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def cancel_pending(self) -> None:
        """Cancel scheduled continuations, used on shutdown."""
        for task in list(self._pending):
            task.cancel()

    async def handle_join(self, game: Game, player: Player) -> None:
        """Announce a newly seated player."""
        logger.info("Player %s joined game %s as %s", player.id, game.id, player.username)
        await self._broadcast_roster(game)
        await self._offer_start(game)

    async def _offer_start(self, game: Game) -> None:
        """Tell the earliest player in the room that the game can be started."""
        first = game.first_player()
        if game.can_start() and first:
            await self.manager.send_personal_message(
                ServerMessage(command=Command.CAN_START, game_id=game.id, content={}),
                game.id,
                first.id,
            )

    async def handle_disconnect(self, game: Game, player_id: str) -> None:
        """React to a lost connection.

        In the lobby the seat is simply freed. Once the game has started a
        lost seat cannot be recovered, so the whole session is reset.
        """
        player = game.get_player(player_id)
        if player is None:
            return

        player.is_connected = False

        if game.phase == GamePhase.LOBBY:
            game.remove_player(player_id)
            logger.info("Player %s left the lobby of game %s", player.username, game.id)
            await self._broadcast_roster(game)
            await self._offer_start(game)
            return

        logger.info("Player %s left game %s, resetting", player.username, game.id)
        self.manager.reset_game(game.id)
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.GAME_RESET,
                game_id=game.id,
                content={"message": "A player left. The game has been reset."},
            ),
            game.id,
        )
        await self.manager.close_game_connections(game.id, GAME_RESET_CLOSE_CODE, "Game reset")

    async def _handle_start_game(
        self, game: Game, player_id: str, _content: dict[str, Any]
    ) -> None:
        """Handle START_GAME command - fixes the seating and deals round 1."""
        if game.started:
            raise WrongPhaseError("Game already started")
        if game.get_player(player_id) is None:
            raise WrongPhaseError("Only seated players can start the game")

        game.start()
        logger.info("Game %s started by %s", game.id, player_id)
        await self._announce_round(game)

    async def _handle_declare(self, game: Game, player_id: str, content: dict[str, Any]) -> None:
        """Handle DECLARE command from a player.

        Args:
            game: Game instance
            player_id: ID of declaring player
            content: Must contain 'declaration' key with the number of tricks

        """
        current_round = self._require_round(game)
        declaration = content.get("declaration")
        current_round.declare(player_id, declaration)

        logger.info("Player %s declared %s in game %s", player_id, declaration, game.id)

        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.DECLARED,
                game_id=game.id,
                content={"player_id": player_id, "declaration": declaration},
            ),
            game.id,
        )

        if current_round.phase == RoundPhase.PLAYING:
            await self._broadcast_status(game, current_round, "play")
            await self.manager.broadcast_to_game(
                ServerMessage(
                    command=Command.ALL_DECLARED,
                    game_id=game.id,
                    content={"declarations": dict(current_round.declarations)},
                ),
                game.id,
            )
            await self._prompt_play(game, current_round)
        else:
            await self._prompt_declare(game, current_round)

    async def _handle_play_card(
        self, game: Game, player_id: str, content: dict[str, Any]
    ) -> None:
        """Handle PLAY_CARD command from a player.

        Args:
            game: Game instance
            player_id: ID of playing player
            content: Must contain 'card' with 'suit' and 'value'

        """
        current_round = self._require_round(game)
        current_round.expect_turn(player_id, RoundPhase.PLAYING)

        try:
            card = Card.from_dict(content.get("card"))
        except ValueError as e:
            raise RuleViolationError(ErrorCode.INVALID_CARD, str(e)) from e

        result = current_round.play(player_id, card)
        logger.info("Player %s played %s in game %s", player_id, card, game.id)

        await self._announce_card_played(game, result)

        if result.trick is None:
            await self._broadcast_status(game, current_round, "play")
            await self._prompt_play(game, current_round)
            return

        winner = game.get_player(result.winner_id) if result.winner_id else None
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.TRICK_WON,
                game_id=game.id,
                content={
                    "winner_id": result.winner_id,
                    "winner_name": winner.username if winner else None,
                    "cards": [pc.to_dict() for pc in result.trick.played_cards],
                    "tricks_won": dict(current_round.tricks_won),
                },
            ),
            game.id,
        )

        if result.round_over:
            self._schedule(
                self._complete_round(game, current_round),
                f"complete-round-{game.id}-{current_round.number}",
            )
            return

        await self._broadcast_status(game, current_round, "play")
        self._schedule(
            self._prompt_trick_leader(game, current_round, result.winner_id),
            f"next-trick-{game.id}-{current_round.number}",
        )

    async def _prompt_trick_leader(
        self, game: Game, current_round: "Round", winner_id: str | None
    ) -> None:
        """After the trick pause, ask the winner to lead unless they already did."""
        if not await self._pause(game, settings.trick_pause_seconds):
            return
        if current_round.turn != winner_id or current_round.current_trick.played_cards:
            return
        await self._prompt_play(game, current_round)

    async def _handle_chat(self, game: Game, player_id: str, content: dict[str, Any]) -> None:
        """Relay a chat message to the whole room."""
        message = content.get("message")
        if not isinstance(message, str) or not message.strip():
            return

        player = game.get_player(player_id)
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.NEW_MESSAGE,
                game_id=game.id,
                content={
                    "name": player.username if player else "Spectator",
                    "message": message,
                },
            ),
            game.id,
        )

    async def _handle_sync_state(
        self, game: Game, player_id: str, _content: dict[str, Any]
    ) -> None:
        """Handle SYNC_STATE command - sends full game state to requesting player."""
        await self.manager.send_personal_message(
            ServerMessage(
                command=Command.GAME_STATE,
                game_id=game.id,
                content=self._build_game_state(game, player_id),
            ),
            game.id,
            player_id,
        )

    def _require_round(self, game: Game) -> "Round":
        if game.phase != GamePhase.IN_PROGRESS or game.current_round is None:
            raise WrongPhaseError("No round in progress")
        return game.current_round

    async def _pause(self, game: Game, seconds: float) -> bool:
        """Wait for a presentation delay.

        Returns:
            False if the game was reset meanwhile and the caller must stop

        """
        if seconds > 0:
            await asyncio.sleep(seconds)
        if self.manager.get_game(game.id) is not game:
            logger.info("Game %s was reset during a pause, dropping continuation", game.id)
            return False
        return True

    async def _announce_round(self, game: Game) -> None:
        """Announce eliminations and the freshly dealt round, or the end of the game."""
        for eliminated_id in game.eliminated_ids:
            player = game.get_player(eliminated_id)
            if player is None:
                continue
            await self.manager.broadcast_to_game(
                ServerMessage(
                    command=Command.PLAYER_ELIMINATED,
                    game_id=game.id,
                    content={"player_id": player.id, "name": player.username},
                ),
                game.id,
            )
            await self.manager.send_personal_message(
                ServerMessage(command=Command.YOU_ARE_ELIMINATED, game_id=game.id, content={}),
                game.id,
                player.id,
            )

        if game.eliminated_ids and not await self._pause(
            game, settings.elimination_pause_seconds
        ):
            return

        current_round = game.current_round
        if game.phase == GamePhase.GAME_OVER or current_round is None:
            await self._end_game(game)
            return

        # Everyone in the room gets the roster, but only their own hand
        for player in game.players:
            await self.manager.send_personal_message(
                ServerMessage(
                    command=Command.NEW_ROUND,
                    game_id=game.id,
                    content={
                        "round": current_round.number,
                        "trump_card": trump_to_dict(current_round.trump_card),
                        "dealer_id": current_round.dealer_id,
                        "turn_order": list(current_round.turn_order),
                        "players": [player_info(p, player.id) for p in game.players],
                    },
                ),
                game.id,
                player.id,
            )

        await self._broadcast_status(game, current_round, "declare")
        await self._prompt_declare(game, current_round)

    async def _announce_card_played(self, game: Game, result: "PlayResult") -> None:
        """Broadcast the play; only the player who played sees their new hand."""
        player = game.get_player(result.player_id)
        if player is None:
            return

        public_content: dict[str, Any] = {
            "player_id": player.id,
            "name": player.username,
            "card": result.card.to_dict(),
            "hand_size": len(player.hand),
        }
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.CARD_PLAYED,
                game_id=game.id,
                content=public_content,
            ),
            game.id,
            player.id,
        )
        await self.manager.send_personal_message(
            ServerMessage(
                command=Command.CARD_PLAYED,
                game_id=game.id,
                content={**public_content, "hand": [c.to_dict() for c in player.hand]},
            ),
            game.id,
            player.id,
        )

    async def _prompt_declare(self, game: Game, current_round: "Round") -> None:
        """Ask the player on turn to declare, telling the last bidder what is forbidden."""
        if current_round.turn is None:
            return
        content: dict[str, Any] = {"round": current_round.number}
        forbidden = current_round.forbidden_declaration()
        if forbidden is not None:
            content["forbidden_number"] = forbidden

        await self.manager.send_personal_message(
            ServerMessage(command=Command.DECLARE_TURN, game_id=game.id, content=content),
            game.id,
            current_round.turn,
        )

    async def _prompt_play(self, game: Game, current_round: "Round") -> None:
        """Ask the player on turn to play a card."""
        if current_round.turn is None:
            return
        lead_suit = current_round.trick_lead_suit
        await self.manager.send_personal_message(
            ServerMessage(
                command=Command.PLAY_TURN,
                game_id=game.id,
                content={"lead_suit": lead_suit.value if lead_suit else None},
            ),
            game.id,
            current_round.turn,
        )

    async def _broadcast_status(self, game: Game, current_round: "Round", action: str) -> None:
        player = game.get_player(current_round.turn) if current_round.turn else None
        if player is None:
            return
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.STATUS,
                game_id=game.id,
                content={
                    "turn": player.id,
                    "message": f"Waiting for {player.username} to {action}...",
                },
            ),
            game.id,
        )

    async def _broadcast_roster(self, game: Game) -> None:
        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.ROSTER,
                game_id=game.id,
                content={"players": [player_info(p) for p in game.players]},
            ),
            game.id,
        )

    async def _complete_round(self, game: Game, current_round: "Round") -> None:
        """Score the round after a pause, then deal the next one."""
        if not await self._pause(game, settings.trick_pause_seconds):
            return

        deltas = game.apply_round_scores()
        logger.info("Round %d complete in game %s", current_round.number, game.id)

        scores = []
        for player_id in current_round.turn_order:
            player = game.get_player(player_id)
            if player is None:
                continue
            scores.append(
                ScoreInfo(
                    player_id=player.id,
                    username=player.username,
                    declared=current_round.declarations.get(player.id),
                    tricks_won=current_round.tricks_won.get(player.id, 0),
                    score_delta=deltas.get(player.id, 0),
                    total_score=player.score,
                ).model_dump()
            )

        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.ROUND_OVER,
                game_id=game.id,
                content={"round": current_round.number, "scores": scores},
            ),
            game.id,
        )

        if not await self._pause(game, settings.round_pause_seconds):
            return

        game.start_new_round()
        await self._announce_round(game)

    async def _end_game(self, game: Game) -> None:
        """End the game and announce final scores."""
        leaderboard = game.get_leaderboard()
        winner = game.get_winner()

        logger.info("Game %s ended. Winner: %s", game.id, winner.username if winner else None)

        await self.manager.broadcast_to_game(
            ServerMessage(
                command=Command.GAME_OVER,
                game_id=game.id,
                content={
                    "leaderboard": leaderboard,
                    "winner_id": winner.id if winner else None,
                },
            ),
            game.id,
        )

        # The finished room is replaced so a new game can gather in it
        self.manager.reset_game(game.id)
        await self.manager.close_game_connections(game.id, GAME_OVER_CLOSE_CODE, "Game over")

    async def _send_error(self, game_id: str, player_id: str, error: GameError) -> None:
        """Send error message to a specific player."""
        await self.manager.send_personal_message(
            ServerMessage(
                command=Command.REPORT_ERROR,
                game_id=game_id,
                content={"code": error.code.value, "error": error.message},
            ),
            game_id,
            player_id,
        )

    def _build_game_state(self, game: Game, player_id: str) -> dict[str, Any]:
        """Build complete game state for a player.

        Includes all public information plus the player's private hand.
        """
        state: dict[str, Any] = game_info(game).model_dump()
        state["players"] = [player_info(p, player_id) for p in game.players]

        current_round = game.current_round
        if current_round is not None:
            lead_suit = current_round.trick_lead_suit
            trick = current_round.current_trick
            state["round"] = {
                "number": current_round.number,
                "phase": current_round.phase.value,
                "trump_card": trump_to_dict(current_round.trump_card),
                "dealer_id": current_round.dealer_id,
                "turn_order": list(current_round.turn_order),
                "turn": current_round.turn,
                "declarations": dict(current_round.declarations),
                "tricks_won": dict(current_round.tricks_won),
                "current_trick": [pc.to_dict() for pc in trick.played_cards],
                "lead_suit": lead_suit.value if lead_suit else None,
            }
        return state
