"""Errors raised by lobby operations.

Every rejected operation raises a ``LobbyError`` subclass. The error carries a
machine-readable ``code`` and a human-readable ``message`` plus the
``ErrorKind`` the HTTP layer uses to pick a status.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a lobby error."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class LobbyError(Exception):
    """Base error for lobby operations."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "internal_error"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(LobbyError):
    kind = ErrorKind.VALIDATION
    code = "bad_request"
    message = "Invalid request"


class InvalidJoinCodeError(ValidationError):
    message = "Join code must be exactly 6 characters"


class CannotKickSelfError(ValidationError):
    code = "cannot_kick_self"
    message = "Cannot kick yourself"


class UnauthorizedError(LobbyError):
    kind = ErrorKind.UNAUTHORIZED
    code = "unauthorized"
    message = "Missing authentication headers"


class ForbiddenError(LobbyError):
    kind = ErrorKind.FORBIDDEN
    code = "forbidden"
    message = "Forbidden"


class LobbyNotFoundError(LobbyError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    message = "Lobby not found"


class PlayerNotInLobbyError(LobbyError):
    kind = ErrorKind.NOT_FOUND
    code = "player_not_in_lobby"
    message = "Target user is not in the lobby"


class PlayerNotFoundError(LobbyError):
    kind = ErrorKind.NOT_FOUND
    code = "player_not_found"
    message = "Player not found in lobby"


class LobbyNotJoinableError(LobbyError):
    kind = ErrorKind.CONFLICT
    code = "lobby_not_joinable"
    message = "Cannot join lobby - game already started"


class LobbyFullError(LobbyError):
    kind = ErrorKind.CONFLICT
    code = "lobby_full"
    message = "Lobby has reached maximum capacity"


class AlreadyInLobbyError(LobbyError):
    kind = ErrorKind.CONFLICT
    code = "already_in_lobby"
    message = "You are already in this lobby"


class DuplicateJoinCodeError(LobbyError):
    """The join code uniqueness constraint rejected a new lobby."""

    kind = ErrorKind.CONFLICT
    code = "duplicate_join_code"
    message = "Join code already in use, please retry"


class JoinCodeError(LobbyError):
    """Join code generation failed."""

    message = "Failed to generate join code"


class JoinCodeCollisionError(JoinCodeError):
    """Every generated candidate collided with an existing code."""


class JoinCodeOracleError(JoinCodeError):
    """The existence check for a candidate code failed."""
