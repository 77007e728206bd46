"""API routes."""

import uuid

from fastapi import APIRouter, HTTPException, Query, WebSocket

from hookwhist.api.responses import Command, GameInfo, ServerMessage, game_info
from hookwhist.api.websocket import websocket_manager
from hookwhist.config import settings
from hookwhist.models.errors import CapacityError, ErrorCode
from hookwhist.models.player import Player

router = APIRouter()

# Close codes for refused joins
CLOSE_GAME_FULL = 4003
CLOSE_GAME_STARTED = 4005


@router.get("/games/{game_id}")
async def get_game(game_id: str) -> GameInfo:
    """Get the public state of a game, without any hand."""
    game = websocket_manager.get_game(game_id)
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game_info(game)


@router.websocket("/games/join")
async def join_game(
    websocket: WebSocket,
    username: str = Query(default="Player", description="Player display name"),
    game_id: str | None = Query(default=None, description="Game ID to join"),
) -> None:
    """WebSocket endpoint to join a game.

    Each connection gets its own player seat. A refused join receives a
    REPORT_ERROR and the connection is closed.

    Args:
        websocket: WebSocket connection
        username: Player display name
        game_id: Game to join, the default room when omitted

    """
    actual_game_id = game_id or settings.default_game_id
    game = websocket_manager.get_or_create_game(actual_game_id)

    player = Player(id=uuid.uuid4().hex, username=username.strip() or "Player")

    try:
        game.add_player(player)
    except CapacityError as e:
        # Must accept before closing to avoid HTTP 403
        await websocket.accept()
        await websocket.send_json(
            ServerMessage(
                command=Command.REPORT_ERROR,
                game_id=actual_game_id,
                content={"code": e.code.value, "error": e.message},
            ).to_dict()
        )
        close_code = (
            CLOSE_GAME_STARTED if e.code == ErrorCode.GAME_ALREADY_STARTED else CLOSE_GAME_FULL
        )
        await websocket.close(code=close_code, reason=e.message)
        return

    await websocket_manager.connect(websocket, actual_game_id, player.id)

    await websocket_manager.send_personal_message(
        ServerMessage(
            command=Command.INIT,
            game_id=actual_game_id,
            content={"player_id": player.id, "game": game_info(game).model_dump()},
        ),
        actual_game_id,
        player.id,
    )

    await websocket_manager.game_handler.handle_join(game, player)

    # Handle incoming messages
    await websocket_manager.handle_player_message(websocket, actual_game_id, player.id)
