"""WebSocket connection manager and room registry."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from hookwhist.api.game_handler import GameHandler
from hookwhist.config import settings
from hookwhist.models.game import Game

if TYPE_CHECKING:
    from hookwhist.api.responses import ServerMessage

logger = logging.getLogger(__name__)

_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, ConnectionError, OSError)


class ConnectionManager:
    """Manages WebSocket connections and the games they play in.

    Handles:
    - Room registry (game_id -> Game)
    - Player connections per game
    - Personal messages and broadcasts
    - Connection lifecycle
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        # game_id -> player_id -> WebSocket
        self.active_connections: dict[str, dict[str, WebSocket]] = {}
        self.games: dict[str, Game] = {}
        self.game_handler: GameHandler

    def set_game_handler(self, game_handler: GameHandler) -> None:
        """Set the game handler after initialization to avoid circular imports."""
        self.game_handler = game_handler

    def create_game(self, game_id: str) -> Game:
        """Register a fresh game built from the current settings."""
        game = Game(
            id=game_id,
            min_players=settings.min_players,
            max_players=settings.max_players,
            deck_policy=settings.deck_policy,
            no_trump_from_round=settings.no_trump_from_round,
        )
        self.games[game_id] = game
        return game

    def get_game(self, game_id: str) -> Game | None:
        """Get game by ID."""
        return self.games.get(game_id)

    def get_or_create_game(self, game_id: str) -> Game:
        """Get a game, creating the room on first use."""
        return self.get_game(game_id) or self.create_game(game_id)

    def reset_game(self, game_id: str) -> Game:
        """Discard a game's state and replace it with a fresh one.

        Connections stay open; the old Game object is no longer reachable
        through the registry, so pending continuations can detect the reset.
        """
        logger.info("Resetting game %s", game_id)
        return self.create_game(game_id)

    async def connect(self, websocket: WebSocket, game_id: str, player_id: str) -> None:
        """Register an accepted WebSocket connection for a player."""
        await websocket.accept()

        if game_id not in self.active_connections:
            self.active_connections[game_id] = {}

        self.active_connections[game_id][player_id] = websocket
        logger.info("Player %s connected to game %s", player_id, game_id)

    def disconnect(self, game_id: str, player_id: str) -> None:
        """Remove a player WebSocket connection."""
        if game_id in self.active_connections and player_id in self.active_connections[game_id]:
            del self.active_connections[game_id][player_id]
            logger.info("Player %s disconnected from game %s", player_id, game_id)

            if not self.active_connections[game_id]:
                del self.active_connections[game_id]

    async def send_personal_message(
        self, message: ServerMessage, game_id: str, player_id: str
    ) -> None:
        """Send message to specific player."""
        websocket = self.active_connections.get(game_id, {}).get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message.to_dict())
        except _SEND_ERRORS:
            logger.warning("Connection lost to %s", player_id)
            self.disconnect(game_id, player_id)

    async def broadcast_to_game(
        self,
        message: ServerMessage,
        game_id: str,
        excluded_player_id: str | None = None,
    ) -> None:
        """Broadcast message to every connection in a game.

        Args:
            message: Message to broadcast
            game_id: Game identifier
            excluded_player_id: Player to exclude from broadcast

        """
        disconnected_players = []

        for player_id, websocket in list(self.active_connections.get(game_id, {}).items()):
            if excluded_player_id and player_id == excluded_player_id:
                continue

            try:
                await websocket.send_json(message.to_dict())
            except _SEND_ERRORS:
                logger.warning("Connection lost to player %s", player_id)
                disconnected_players.append(player_id)

        for player_id in disconnected_players:
            self.disconnect(game_id, player_id)

    async def close_game_connections(self, game_id: str, code: int, reason: str) -> None:
        """Close every connection of a game."""
        for player_id, websocket in list(self.active_connections.get(game_id, {}).items()):
            self.disconnect(game_id, player_id)
            try:
                await websocket.close(code=code, reason=reason)
            except _SEND_ERRORS:
                logger.debug("Connection to %s already closed", player_id)

    async def handle_player_message(
        self, websocket: WebSocket, game_id: str, player_id: str
    ) -> None:
        """Handle incoming messages from a player until the connection drops.

        The game is looked up for every message, so a player whose game was
        reset talks to the fresh game, where they hold no seat.
        """
        try:
            while True:
                data = await websocket.receive_text()
                message = json.loads(data)
                if not isinstance(message, dict):
                    logger.warning("Ignoring malformed message from %s", player_id)
                    continue

                command = message.get("command", "")
                content = message.get("content") or {}

                logger.info("Received %s from player %s in game %s", command, player_id, game_id)

                game = self.get_game(game_id)
                if game is None:
                    logger.warning("Game %s not found", game_id)
                    continue

                await self.game_handler.handle_command(game, player_id, command, content)

        except WebSocketDisconnect:
            logger.info("Player %s disconnected from game %s", player_id, game_id)

        except (RuntimeError, ConnectionError, OSError, json.JSONDecodeError) as e:
            logger.warning("Error handling message from %s: %s", player_id, e)

        await self.handle_disconnect(game_id, player_id)

    async def handle_disconnect(self, game_id: str, player_id: str) -> None:
        """Drop the connection and let the game react to the lost seat."""
        self.disconnect(game_id, player_id)
        game = self.get_game(game_id)
        if game is not None:
            await self.game_handler.handle_disconnect(game, player_id)


# Global WebSocket manager instance
websocket_manager = ConnectionManager()

# Initialize game handler to resolve circular dependency
websocket_manager.set_game_handler(GameHandler(websocket_manager))
