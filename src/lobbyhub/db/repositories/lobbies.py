"""Lobby repository for database operations."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import exists, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lobbyhub.db.models import Lobby as LobbyModel
from lobbyhub.db.models import LobbyMember as LobbyMemberModel
from lobbyhub.db.models import User as UserModel
from lobbyhub.lobby.errors import DuplicateJoinCodeError
from lobbyhub.lobby.models import Lobby, LobbyDetail, LobbyStatus, Membership, utcnow

logger = logging.getLogger(__name__)


class LobbyRepository:
    """Repository for lobbies, memberships and users within one session.

    The repository never commits. Callers own the transaction boundary.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: The database session to use
        """
        self.session = session

    async def upsert_user(self, user_id: uuid.UUID, username: str) -> None:
        """Insert a user unless one with this ID already exists.

        An existing row is left untouched, so a later display name change is
        ignored.

        Args:
            user_id: The user ID
            username: Display name to store on first insert
        """
        insert = sqlite_insert if self.session.bind.dialect.name == "sqlite" else pg_insert
        stmt = (
            insert(UserModel)
            .values(id=user_id, username=username, created_at=utcnow())
            .on_conflict_do_nothing(index_elements=[UserModel.id])
        )
        await self.session.execute(stmt)

    async def create_lobby(self, join_code: str, leader_id: uuid.UUID) -> Lobby:
        """Insert a new lobby in the waiting state.

        Args:
            join_code: The join code to claim
            leader_id: User ID of the leader

        Returns:
            The created Lobby

        Raises:
            DuplicateJoinCodeError: If the join code is already taken
        """
        now = utcnow()
        record = LobbyModel(
            id=uuid.uuid4(),
            join_code=join_code,
            leader_id=leader_id,
            status=LobbyStatus.WAITING.value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)

        try:
            await self.session.flush()
        except IntegrityError as e:
            if "join_code" in str(e.orig):
                logger.warning(f"Join code {join_code} rejected by unique constraint")
                raise DuplicateJoinCodeError() from e
            raise

        logger.debug(f"Inserted lobby {record.id} with code {join_code}")
        return self._model_to_lobby(record)

    async def add_member(
        self, lobby_id: uuid.UUID, user_id: uuid.UUID
    ) -> tuple[uuid.UUID, datetime]:
        """Add an active membership row.

        Args:
            lobby_id: The lobby ID
            user_id: The joining user's ID

        Returns:
            Tuple of (membership ID, joined_at)
        """
        record = LobbyMemberModel(
            id=uuid.uuid4(),
            lobby_id=lobby_id,
            user_id=user_id,
            joined_at=utcnow(),
            is_active=True,
        )
        self.session.add(record)
        await self.session.flush()
        return record.id, record.joined_at

    async def get_lobby_by_code(self, join_code: str, for_update: bool = False) -> Lobby | None:
        """Get a lobby by join code.

        Args:
            join_code: The join code
            for_update: Lock the lobby row until the transaction ends

        Returns:
            Lobby or None if not found
        """
        query = select(LobbyModel).where(LobbyModel.join_code == join_code)
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        record = result.scalar_one_or_none()

        if record is None:
            return None

        return self._model_to_lobby(record)

    async def join_code_exists(self, join_code: str) -> bool:
        """Check if a join code is already used by a lobby."""
        result = await self.session.execute(
            select(exists().where(LobbyModel.join_code == join_code))
        )
        return bool(result.scalar())

    async def active_member_count(self, lobby_id: uuid.UUID) -> int:
        """Count active memberships in a lobby."""
        result = await self.session.execute(
            select(func.count())
            .select_from(LobbyMemberModel)
            .where(LobbyMemberModel.lobby_id == lobby_id)
            .where(LobbyMemberModel.is_active.is_(True))
        )
        return result.scalar_one()

    async def is_active_member(self, lobby_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Check if a user holds an active membership in a lobby."""
        result = await self.session.execute(
            select(
                exists()
                .where(LobbyMemberModel.lobby_id == lobby_id)
                .where(LobbyMemberModel.user_id == user_id)
                .where(LobbyMemberModel.is_active.is_(True))
            )
        )
        return bool(result.scalar())

    async def has_membership(self, lobby_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Check if a user has ever held a membership in a lobby, active or not."""
        result = await self.session.execute(
            select(
                exists()
                .where(LobbyMemberModel.lobby_id == lobby_id)
                .where(LobbyMemberModel.user_id == user_id)
            )
        )
        return bool(result.scalar())

    async def is_active_membership(self, lobby_id: uuid.UUID, membership_id: uuid.UUID) -> bool:
        """Check if a membership row belongs to a lobby and is active."""
        result = await self.session.execute(
            select(
                exists()
                .where(LobbyMemberModel.id == membership_id)
                .where(LobbyMemberModel.lobby_id == lobby_id)
                .where(LobbyMemberModel.is_active.is_(True))
            )
        )
        return bool(result.scalar())

    async def deactivate_member(self, lobby_id: uuid.UUID, user_id: uuid.UUID) -> int:
        """Deactivate a user's active memberships in a lobby.

        Only rows that are currently active are touched.

        Args:
            lobby_id: The lobby ID
            user_id: The user to deactivate

        Returns:
            Number of rows updated
        """
        result = await self.session.execute(
            update(LobbyMemberModel)
            .where(LobbyMemberModel.lobby_id == lobby_id)
            .where(LobbyMemberModel.user_id == user_id)
            .where(LobbyMemberModel.is_active.is_(True))
            .values(is_active=False, left_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def set_member_active(
        self, lobby_id: uuid.UUID, membership_id: uuid.UUID, active: bool
    ) -> bool:
        """Set the active flag of one membership row.

        Deactivating stamps ``left_at``; reactivating clears it.

        Args:
            lobby_id: The lobby ID
            membership_id: The membership row ID
            active: New active flag

        Returns:
            True if updated, False if no such membership in the lobby
        """
        result = await self.session.execute(
            update(LobbyMemberModel)
            .where(LobbyMemberModel.id == membership_id)
            .where(LobbyMemberModel.lobby_id == lobby_id)
            .values(is_active=active, left_at=None if active else utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def get_lobby_detail(self, lobby_id: uuid.UUID) -> LobbyDetail | None:
        """Get a lobby with its memberships ordered by join time.

        Args:
            lobby_id: The lobby ID

        Returns:
            LobbyDetail or None if the lobby does not exist
        """
        result = await self.session.execute(
            select(LobbyModel).where(LobbyModel.id == lobby_id)
        )
        record = result.scalar_one_or_none()

        if record is None:
            return None

        rows = await self.session.execute(
            select(LobbyMemberModel, UserModel.username)
            .join(UserModel, UserModel.id == LobbyMemberModel.user_id)
            .where(LobbyMemberModel.lobby_id == lobby_id)
            .order_by(LobbyMemberModel.joined_at.asc(), LobbyMemberModel.id.asc())
        )

        players = [
            Membership(
                id=member.id,
                user_id=member.user_id,
                display_name=username,
                joined_at=member.joined_at,
                is_active=member.is_active,
                left_at=member.left_at,
            )
            for member, username in rows.all()
        ]

        return LobbyDetail(lobby=self._model_to_lobby(record), players=players)

    async def get_leader_id(self, lobby_id: uuid.UUID) -> uuid.UUID | None:
        """Get the leader's user ID, or None if the lobby does not exist."""
        result = await self.session.execute(
            select(LobbyModel.leader_id).where(LobbyModel.id == lobby_id)
        )
        return result.scalar_one_or_none()

    def _model_to_lobby(self, record: LobbyModel) -> Lobby:
        """Convert a database record to a Lobby domain object."""
        return Lobby(
            id=record.id,
            join_code=record.join_code,
            leader_id=record.leader_id,
            status=LobbyStatus(record.status),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SqlLobbyStore:
    """Lobby store backed by an async SQLAlchemy session factory.

    Each transaction gets its own session. Reads outside a transaction open
    a short-lived session and only see committed state.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[LobbyRepository]:
        """Open a transaction.

        Commits when the block exits cleanly and rolls back on any exception,
        including cancellation.
        """
        async with self._session_factory() as session, session.begin():
            yield LobbyRepository(session)

    async def get_lobby_by_code(self, join_code: str) -> Lobby | None:
        async with self._session_factory() as session:
            return await LobbyRepository(session).get_lobby_by_code(join_code)

    async def get_lobby_detail(self, lobby_id: uuid.UUID) -> LobbyDetail | None:
        async with self._session_factory() as session:
            return await LobbyRepository(session).get_lobby_detail(lobby_id)

    async def get_leader_id(self, lobby_id: uuid.UUID) -> uuid.UUID | None:
        async with self._session_factory() as session:
            return await LobbyRepository(session).get_leader_id(lobby_id)
