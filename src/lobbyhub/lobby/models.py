"""Domain models for lobbies."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

MAX_PLAYERS = 6
JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
JOIN_CODE_MAX_RETRIES = 5


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (matches the DB columns)."""
    return datetime.now(UTC).replace(tzinfo=None)


class LobbyStatus(Enum):
    """Lobby lifecycle status.

    Only WAITING is produced here. The other values are set by the game
    service once a session starts.
    """

    WAITING = "waiting"
    IN_GAME = "in_game"
    FINISHED = "finished"
    CLOSED = "closed"


@dataclass(frozen=True)
class Caller:
    """A pre-verified identity attached to an inbound request."""

    user_id: UUID
    username: str


@dataclass(frozen=True)
class LobbyConfig:
    """Rules the coordinator enforces."""

    max_players: int = MAX_PLAYERS
    join_code_max_retries: int = JOIN_CODE_MAX_RETRIES
    operation_timeout_seconds: float | None = 10.0


@dataclass
class Lobby:
    """A lobby row.

    Attributes:
        id: Unique identifier
        join_code: 6-character code players type to join
        leader_id: User who created the lobby
        status: Lifecycle status
        created_at: When the lobby was created
        updated_at: When the lobby row last changed
    """

    id: UUID
    join_code: str
    leader_id: UUID
    status: LobbyStatus
    created_at: datetime
    updated_at: datetime

    @property
    def is_joinable(self) -> bool:
        return self.status == LobbyStatus.WAITING


@dataclass
class Membership:
    """One user's participation episode in a lobby."""

    id: UUID
    user_id: UUID
    display_name: str
    joined_at: datetime
    is_active: bool = True
    left_at: datetime | None = None


@dataclass
class LobbyDetail:
    """A lobby together with its memberships ordered by join time."""

    lobby: Lobby
    players: list[Membership] = field(default_factory=list)

    @property
    def active_players(self) -> list[Membership]:
        return [p for p in self.players if p.is_active]
