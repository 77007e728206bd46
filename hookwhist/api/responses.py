"""Response models and DTOs."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from hookwhist.models.enums import Command
from hookwhist.models.errors import ErrorCode
from hookwhist.models.game import Game
from hookwhist.models.player import Player

__all__ = [
    "Command",
    "ErrorCode",
    "GameInfo",
    "game_info",
    "PlayerInfo",
    "ScoreInfo",
    "ServerMessage",
    "player_info",
]


class PlayerInfo(BaseModel):
    """Public player information; carries the hand only for its owner."""

    id: str
    username: str
    score: int
    status: str
    is_connected: bool
    hand_size: int
    hand: list[dict[str, str]] | None = None


class ScoreInfo(BaseModel):
    """Round result for a player."""

    player_id: str
    username: str
    declared: int | None
    tricks_won: int
    score_delta: int
    total_score: int


class GameInfo(BaseModel):
    """Public game information response."""

    id: str
    phase: str
    current_round: int
    players: list[PlayerInfo]


def player_info(player: Player, receiver_id: str | None = None) -> dict[str, Any]:
    """Serialize a player, revealing the hand only to the player themself."""
    info = PlayerInfo(
        id=player.id,
        username=player.username,
        score=player.score,
        status=player.status.value,
        is_connected=player.is_connected,
        hand_size=len(player.hand),
        hand=[c.to_dict() for c in player.hand] if player.id == receiver_id else None,
    )
    return info.model_dump()


def game_info(game: Game) -> GameInfo:
    """Public view of a game, without any hand."""
    return GameInfo(
        id=game.id,
        phase=game.phase.value,
        current_round=game.current_round_number,
        players=[PlayerInfo(**player_info(p)) for p in game.players],
    )


@dataclass
class ServerMessage:
    """Message sent from server to clients via WebSocket.

    Attributes:
        command: Command type
        game_id: Game identifier
        content: Message payload (varies by command)

    """

    command: Command
    game_id: str
    content: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "command": self.command.value,
            "content": self.content,
        }
