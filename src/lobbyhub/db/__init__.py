"""Database layer."""

from lobbyhub.db.models import Base, Lobby, LobbyMember, User
from lobbyhub.db.repositories import LobbyRepository, SqlLobbyStore
from lobbyhub.db.session import create_engine_from_settings, create_session_factory

__all__ = [
    "Base",
    "Lobby",
    "LobbyMember",
    "LobbyRepository",
    "SqlLobbyStore",
    "User",
    "create_engine_from_settings",
    "create_session_factory",
]
