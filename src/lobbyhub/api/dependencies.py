"""FastAPI dependencies for the lobby API."""

import logging
import uuid
from typing import Annotated

from fastapi import Depends, Request

from lobbyhub.lobby.coordinator import LobbyCoordinator
from lobbyhub.lobby.errors import UnauthorizedError, ValidationError
from lobbyhub.lobby.models import Caller
from lobbyhub.settings import Settings

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 20


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_coordinator(request: Request) -> LobbyCoordinator:
    """Get the application's lobby coordinator."""
    return request.app.state.coordinator


def get_caller(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Caller:
    """Extract the caller identity the gateway attached to the request.

    Raises:
        UnauthorizedError: If either identity header is missing
        ValidationError: If the user ID is not a UUID or the name is too long
    """
    user_id_raw = request.headers.get(settings.user_id_header, "")
    username = request.headers.get(settings.username_header, "").strip()

    if not user_id_raw or not username:
        logger.warning(f"Missing identity headers on {request.url.path}")
        raise UnauthorizedError(
            f"Missing required headers: {settings.user_id_header} and {settings.username_header}"
        )

    try:
        user_id = uuid.UUID(user_id_raw)
    except ValueError as e:
        logger.warning(f"Invalid user ID {user_id_raw!r}: {e}")
        raise ValidationError("Invalid user ID format") from e

    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")

    return Caller(user_id=user_id, username=username)


CallerDep = Annotated[Caller, Depends(get_caller)]
CoordinatorDep = Annotated[LobbyCoordinator, Depends(get_coordinator)]
