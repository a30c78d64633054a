"""Authorization checks for lobby operations."""

import logging
from uuid import UUID

from lobbyhub.lobby.errors import ForbiddenError, LobbyNotFoundError
from lobbyhub.lobby.models import Caller
from lobbyhub.lobby.store import LobbyTransaction

logger = logging.getLogger(__name__)


class AccessGuard:
    """Read-only membership and leadership checks.

    The checks run against the caller's open transaction so they see the
    same state as the mutation that follows.
    """

    async def require_member(self, tx: LobbyTransaction, caller: Caller, lobby_id: UUID) -> UUID:
        """Require the caller to lead the lobby or appear in its membership list.

        The membership list keeps deactivated rows, so a kicked player still
        passes. Only users who never joined are refused.

        Returns:
            The lobby's leader ID

        Raises:
            LobbyNotFoundError: If the lobby does not exist
            ForbiddenError: If the caller is neither leader nor member
        """
        leader_id = await self._resolve_leader(tx, lobby_id)
        if caller.user_id == leader_id:
            return leader_id

        if not await tx.has_membership(lobby_id, caller.user_id):
            logger.warning(f"User {caller.user_id} is not a member of lobby {lobby_id}")
            raise ForbiddenError("You are not a member of this lobby")

        return leader_id

    async def require_leader(self, tx: LobbyTransaction, caller: Caller, lobby_id: UUID) -> UUID:
        """Require the caller to be the lobby leader.

        Returns:
            The lobby's leader ID

        Raises:
            LobbyNotFoundError: If the lobby does not exist
            ForbiddenError: If the caller is not the leader
        """
        leader_id = await self._resolve_leader(tx, lobby_id)
        if caller.user_id != leader_id:
            logger.warning(
                f"User {caller.user_id} is not the leader of lobby {lobby_id} (leader={leader_id})"
            )
            raise ForbiddenError("Only the lobby leader can do this")

        return leader_id

    async def _resolve_leader(self, tx: LobbyTransaction, lobby_id: UUID) -> UUID:
        leader_id = await tx.get_leader_id(lobby_id)
        if leader_id is None:
            logger.info(f"Lobby {lobby_id} not found")
            raise LobbyNotFoundError()
        return leader_id
