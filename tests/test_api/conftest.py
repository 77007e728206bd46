"""Pytest configuration for API tests."""

import pytest

from hookwhist.api.websocket import websocket_manager
from hookwhist.config import settings


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def no_pauses(monkeypatch):
    """Skip presentation delays so game flow runs straight through."""
    monkeypatch.setattr(settings, "trick_pause_seconds", 0)
    monkeypatch.setattr(settings, "round_pause_seconds", 0)
    monkeypatch.setattr(settings, "elimination_pause_seconds", 0)


@pytest.fixture(autouse=True)
def reset_rooms():
    """Clear the room registry between tests to avoid state pollution."""
    websocket_manager.games.clear()
    websocket_manager.active_connections.clear()

    yield

    websocket_manager.games.clear()
    websocket_manager.active_connections.clear()
