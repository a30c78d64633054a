"""Lobby coordinator.

This module provides the LobbyCoordinator class which runs the lobby
operations: create, join, get, kick and set-active. Each operation runs
its reads, checks and writes inside one store transaction. Any error rolls
the transaction back, so no partial state is ever visible.
"""

import asyncio
import logging
from uuid import UUID

from lobbyhub.lobby.codes import JoinCodeGenerator
from lobbyhub.lobby.errors import (
    AlreadyInLobbyError,
    CannotKickSelfError,
    InvalidJoinCodeError,
    LobbyFullError,
    LobbyNotFoundError,
    LobbyNotJoinableError,
    PlayerNotFoundError,
    PlayerNotInLobbyError,
)
from lobbyhub.lobby.guard import AccessGuard
from lobbyhub.lobby.models import JOIN_CODE_LENGTH, Caller, LobbyConfig, LobbyDetail
from lobbyhub.lobby.store import LobbyStore

logger = logging.getLogger(__name__)


def normalize_join_code(join_code: str) -> str:
    """Check a typed join code's length, then uppercase it.

    The length is taken on the raw input; uppercasing can change it
    (``"ß"`` becomes ``"SS"``).

    Raises:
        InvalidJoinCodeError: If the code is not exactly 6 characters
    """
    if len(join_code) != JOIN_CODE_LENGTH:
        raise InvalidJoinCodeError()
    return join_code.upper()


class LobbyCoordinator:
    """Runs lobby operations against a LobbyStore.

    This class is responsible for:
    - Creating lobbies with a fresh join code and the creator as leader
    - Joining lobbies by code, enforcing status and capacity
    - Returning lobby details to members
    - Kicking players (leader only)
    - Updating a membership's active flag
    """

    def __init__(
        self,
        store: LobbyStore,
        config: LobbyConfig | None = None,
        guard: AccessGuard | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Storage backend
            config: Lobby rules (defaults if None)
            guard: Authorization checks (default AccessGuard if None)
        """
        self.store = store
        self.config = config or LobbyConfig()
        self.guard = guard or AccessGuard()

    def _deadline(self) -> asyncio.Timeout:
        return asyncio.timeout(self.config.operation_timeout_seconds)

    async def create_lobby(self, caller: Caller) -> LobbyDetail:
        """Create a new lobby led by the caller.

        The caller becomes the leader and the only active member.

        Returns:
            The new lobby with its single membership

        Raises:
            JoinCodeError: If no free join code could be generated
            DuplicateJoinCodeError: If the code was claimed concurrently
        """
        async with self._deadline(), self.store.transaction() as tx:
            await tx.upsert_user(caller.user_id, caller.username)

            generator = JoinCodeGenerator(
                tx.join_code_exists, max_retries=self.config.join_code_max_retries
            )
            code = await generator.generate()

            lobby = await tx.create_lobby(code, caller.user_id)
            await tx.add_member(lobby.id, caller.user_id)

            detail = await tx.get_lobby_detail(lobby.id)

        if detail is None:
            raise LobbyNotFoundError()

        logger.info(f"Lobby {code} ({lobby.id}) created by {caller.username} ({caller.user_id})")
        return detail

    async def join_lobby(self, caller: Caller, join_code: str) -> LobbyDetail:
        """Join a lobby by its join code.

        Checks run in order: lobby exists, lobby is waiting, lobby has room,
        caller is not already an active member. The first failing check
        determines the error.

        Returns:
            The lobby detail read after the join committed

        Raises:
            InvalidJoinCodeError: If the code is not 6 characters
            LobbyNotFoundError: If no lobby has this code
            LobbyNotJoinableError: If the lobby is not waiting
            LobbyFullError: If the lobby is at capacity
            AlreadyInLobbyError: If the caller is already an active member
        """
        code = normalize_join_code(join_code)

        async with self._deadline():
            async with self.store.transaction() as tx:
                lobby = await tx.get_lobby_by_code(code, for_update=True)
                if lobby is None:
                    logger.info(f"No lobby found with join code {code}")
                    raise LobbyNotFoundError(f"No lobby found with join code: {code}")

                if not lobby.is_joinable:
                    logger.info(f"Lobby {lobby.id} not joinable (status={lobby.status.value})")
                    raise LobbyNotJoinableError()

                count = await tx.active_member_count(lobby.id)
                if count >= self.config.max_players:
                    logger.info(f"Lobby {lobby.id} is full ({count} players)")
                    raise LobbyFullError(
                        f"Lobby has reached maximum capacity ({self.config.max_players} players)"
                    )

                if await tx.is_active_member(lobby.id, caller.user_id):
                    logger.info(f"User {caller.user_id} already in lobby {lobby.id}")
                    raise AlreadyInLobbyError()

                await tx.upsert_user(caller.user_id, caller.username)
                await tx.add_member(lobby.id, caller.user_id)

            detail = await self.store.get_lobby_detail(lobby.id)

        if detail is None:
            raise LobbyNotFoundError()

        logger.info(f"{caller.username} ({caller.user_id}) joined lobby {code}")
        return detail

    async def get_lobby_detail(self, caller: Caller, lobby_id: UUID) -> LobbyDetail:
        """Get a lobby's detail for its leader or one of its members.

        Raises:
            LobbyNotFoundError: If the lobby does not exist
            ForbiddenError: If the caller never held a membership and is not leader
        """
        async with self._deadline(), self.store.transaction() as tx:
            await self.guard.require_member(tx, caller, lobby_id)
            detail = await tx.get_lobby_detail(lobby_id)

        if detail is None:
            raise LobbyNotFoundError()
        return detail

    async def kick_player(self, caller: Caller, lobby_id: UUID, target_user_id: UUID) -> None:
        """Deactivate another player's membership (leader only).

        Raises:
            CannotKickSelfError: If the caller targets themselves
            LobbyNotFoundError: If the lobby does not exist
            ForbiddenError: If the caller is not the leader
            PlayerNotInLobbyError: If the target is not an active member
        """
        if target_user_id == caller.user_id:
            logger.warning(f"User {caller.user_id} tried to kick themselves")
            raise CannotKickSelfError()

        async with self._deadline(), self.store.transaction() as tx:
            await self.guard.require_leader(tx, caller, lobby_id)

            if not await tx.is_active_member(lobby_id, target_user_id):
                logger.warning(f"User {target_user_id} is not in lobby {lobby_id}")
                raise PlayerNotInLobbyError()

            await tx.deactivate_member(lobby_id, target_user_id)

        logger.info(f"User {target_user_id} kicked from lobby {lobby_id} by {caller.user_id}")

    async def set_member_active(self, lobby_id: UUID, membership_id: UUID, active: bool) -> None:
        """Set the active flag of a membership.

        Only memberships that are currently active can be updated.

        Raises:
            LobbyNotFoundError: If the lobby does not exist
            PlayerNotFoundError: If the membership is not active in the lobby
        """
        async with self._deadline(), self.store.transaction() as tx:
            if await tx.get_leader_id(lobby_id) is None:
                logger.warning(f"Lobby {lobby_id} not found")
                raise LobbyNotFoundError()

            if not await tx.is_active_membership(lobby_id, membership_id):
                logger.warning(f"Membership {membership_id} not active in lobby {lobby_id}")
                raise PlayerNotFoundError()

            if not await tx.set_member_active(lobby_id, membership_id, active):
                raise PlayerNotFoundError()

        logger.info(f"Membership {membership_id} in lobby {lobby_id} set active={active}")
