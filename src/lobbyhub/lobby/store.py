"""Storage capabilities the lobby coordinator depends on.

Any storage engine providing these methods can back the coordinator. The
SQLAlchemy implementation lives in ``lobbyhub.db.repositories.lobbies``.
"""

from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from lobbyhub.lobby.models import Lobby, LobbyDetail


class LobbyTransaction(Protocol):
    """Primitives available inside one store transaction."""

    async def upsert_user(self, user_id: UUID, username: str) -> None: ...

    async def create_lobby(self, join_code: str, leader_id: UUID) -> Lobby: ...

    async def add_member(self, lobby_id: UUID, user_id: UUID) -> tuple[UUID, datetime]: ...

    async def get_lobby_by_code(self, join_code: str, for_update: bool = False) -> Lobby | None: ...

    async def join_code_exists(self, join_code: str) -> bool: ...

    async def active_member_count(self, lobby_id: UUID) -> int: ...

    async def is_active_member(self, lobby_id: UUID, user_id: UUID) -> bool: ...

    async def has_membership(self, lobby_id: UUID, user_id: UUID) -> bool: ...

    async def is_active_membership(self, lobby_id: UUID, membership_id: UUID) -> bool: ...

    async def deactivate_member(self, lobby_id: UUID, user_id: UUID) -> int: ...

    async def set_member_active(self, lobby_id: UUID, membership_id: UUID, active: bool) -> bool: ...

    async def get_lobby_detail(self, lobby_id: UUID) -> LobbyDetail | None: ...

    async def get_leader_id(self, lobby_id: UUID) -> UUID | None: ...


class LobbyStore(Protocol):
    """Transaction factory plus reads that may run outside a transaction."""

    def transaction(self) -> AbstractAsyncContextManager[LobbyTransaction]:
        """Open a transaction that commits on clean exit and rolls back on error."""
        ...

    async def get_lobby_by_code(self, join_code: str) -> Lobby | None: ...

    async def get_lobby_detail(self, lobby_id: UUID) -> LobbyDetail | None: ...

    async def get_leader_id(self, lobby_id: UUID) -> UUID | None: ...
