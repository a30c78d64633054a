"""Create users, lobbies and lobby_members tables.

Revision ID: 001_create_lobby_schema
Revises:
Create Date: 2025-11-02

Membership rows are never deleted; kicked or disconnected players are
marked inactive with left_at set. (lobby_id, user_id) is not unique: a user
may rejoin.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_create_lobby_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create lobby tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "lobbies",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("join_code", sa.String(6), nullable=False),
        sa.Column("leader_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["leader_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("join_code", name="uq_lobbies_join_code"),
    )
    op.create_index("ix_lobbies_status", "lobbies", ["status"])

    op.create_table(
        "lobby_members",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("lobby_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["lobby_id"], ["lobbies.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_lobby_members_lobby_id", "lobby_members", ["lobby_id"])
    op.create_index("ix_lobby_members_user_id", "lobby_members", ["user_id"])


def downgrade() -> None:
    """Drop lobby tables in reverse dependency order."""
    op.drop_index("ix_lobby_members_user_id", "lobby_members")
    op.drop_index("ix_lobby_members_lobby_id", "lobby_members")
    op.drop_table("lobby_members")
    op.drop_index("ix_lobbies_status", "lobbies")
    op.drop_table("lobbies")
    op.drop_table("users")
