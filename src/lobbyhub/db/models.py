"""Database models for lobbyhub."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class User(Base):
    """A player identity.

    Rows are created the first time an identity touches a lobby and are never
    updated afterwards.

    Attributes:
        id: Identifier supplied by the gateway
        username: Display name at first contact
        created_at: When the row was inserted
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    username: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )


class Lobby(Base):
    """Database model for lobbies.

    Attributes:
        id: Unique identifier
        join_code: Short join code (e.g., "ABC123")
        leader_id: User ID of the lobby leader
        status: Lobby lifecycle status ("waiting", "in_game", "finished", "closed")
        created_at: When the lobby was created
        updated_at: When the lobby row last changed
    """

    __tablename__ = "lobbies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    join_code: Mapped[str] = mapped_column(String(6), nullable=False)
    leader_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="waiting", index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    leader: Mapped["User"] = relationship("User", foreign_keys=[leader_id])
    members: Mapped[list["LobbyMember"]] = relationship(
        "LobbyMember", back_populates="lobby", order_by="LobbyMember.joined_at"
    )

    # Final arbiter of join code uniqueness
    __table_args__ = (UniqueConstraint("join_code", name="uq_lobbies_join_code"),)


class LobbyMember(Base):
    """One user's participation episode in a lobby.

    A user may hold several rows for the same lobby over time. At most one
    of them is meant to be active, which the join operation checks before
    inserting; there is no unique constraint backing it.

    Attributes:
        id: Unique identifier (the membership id)
        lobby_id: Foreign key to the lobby
        user_id: Foreign key to the user
        joined_at: When the user joined
        is_active: False once kicked or deactivated
        left_at: When the membership was deactivated
    """

    __tablename__ = "lobby_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lobby_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("lobbies.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    left_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    lobby: Mapped["Lobby"] = relationship("Lobby", back_populates="members")
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        Index("ix_lobby_members_lobby_id", "lobby_id"),
        Index("ix_lobby_members_user_id", "user_id"),
    )
