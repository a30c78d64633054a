"""Lobby system for lobbyhub.

Lobbies are waiting rooms where players gather, using a short join code,
before a game session starts.
"""

from lobbyhub.lobby.codes import JoinCodeGenerator
from lobbyhub.lobby.coordinator import LobbyCoordinator
from lobbyhub.lobby.errors import ErrorKind, LobbyError
from lobbyhub.lobby.guard import AccessGuard
from lobbyhub.lobby.models import (
    Caller,
    Lobby,
    LobbyConfig,
    LobbyDetail,
    LobbyStatus,
    Membership,
)
from lobbyhub.lobby.store import LobbyStore, LobbyTransaction

__all__ = [
    "AccessGuard",
    "Caller",
    "ErrorKind",
    "JoinCodeGenerator",
    "Lobby",
    "LobbyConfig",
    "LobbyCoordinator",
    "LobbyDetail",
    "LobbyError",
    "LobbyStatus",
    "LobbyStore",
    "LobbyTransaction",
    "Membership",
]
