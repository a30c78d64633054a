"""Database repositories."""

from lobbyhub.db.repositories.lobbies import LobbyRepository, SqlLobbyStore

__all__ = ["LobbyRepository", "SqlLobbyStore"]
