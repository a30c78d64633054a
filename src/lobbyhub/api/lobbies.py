"""Lobby API endpoints."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from lobbyhub.api.dependencies import CallerDep, CoordinatorDep
from lobbyhub.api.rate_limit import create_lobby_rate_limit, join_lobby_rate_limit
from lobbyhub.lobby.models import LobbyDetail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lobbies", tags=["lobbies"])


class PlayerResponse(BaseModel):
    """A membership in the lobby detail response."""

    membership_id: uuid.UUID = Field(alias="membershipId")
    user_id: uuid.UUID = Field(alias="userId")
    display_name: str = Field(alias="displayName")
    joined_at: datetime = Field(alias="joinedAt")
    is_active: bool = Field(alias="isActive")
    left_at: datetime | None = Field(default=None, alias="leftAt")

    model_config = {"populate_by_name": True}


class LobbyDetailResponse(BaseModel):
    """Lobby detail with players ordered by join time."""

    lobby_id: uuid.UUID = Field(alias="lobbyId")
    join_code: str = Field(alias="joinCode")
    leader_id: uuid.UUID = Field(alias="leaderId")
    status: str
    players: list[PlayerResponse]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_detail(cls, detail: LobbyDetail) -> "LobbyDetailResponse":
        lobby = detail.lobby
        return cls(
            lobby_id=lobby.id,
            join_code=lobby.join_code,
            leader_id=lobby.leader_id,
            status=lobby.status.value,
            players=[
                PlayerResponse(
                    membership_id=p.id,
                    user_id=p.user_id,
                    display_name=p.display_name,
                    joined_at=p.joined_at,
                    is_active=p.is_active,
                    left_at=p.left_at,
                )
                for p in detail.players
            ],
        )


class JoinLobbyRequest(BaseModel):
    """Request body for joining a lobby."""

    join_code: str = Field(alias="joinCode")

    model_config = {"populate_by_name": True}


class KickPlayerRequest(BaseModel):
    """Request body for kicking a player."""

    target_user_id: uuid.UUID = Field(alias="targetUserId")

    model_config = {"populate_by_name": True}


@router.post(
    "",
    response_model=LobbyDetailResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(create_lobby_rate_limit)],
)
async def create_lobby(caller: CallerDep, coordinator: CoordinatorDep) -> LobbyDetailResponse:
    """Create a new lobby.

    The caller becomes the leader and first player.
    """
    detail = await coordinator.create_lobby(caller)
    return LobbyDetailResponse.from_detail(detail)


@router.post(
    "/join",
    response_model=LobbyDetailResponse,
    dependencies=[Depends(join_lobby_rate_limit)],
)
async def join_lobby(
    request: JoinLobbyRequest, caller: CallerDep, coordinator: CoordinatorDep
) -> LobbyDetailResponse:
    """Join a waiting lobby by its join code."""
    detail = await coordinator.join_lobby(caller, request.join_code)
    return LobbyDetailResponse.from_detail(detail)


@router.get("/{lobby_id}", response_model=LobbyDetailResponse)
async def get_lobby(
    lobby_id: uuid.UUID, caller: CallerDep, coordinator: CoordinatorDep
) -> LobbyDetailResponse:
    """Get lobby details (leader or members only)."""
    detail = await coordinator.get_lobby_detail(caller, lobby_id)
    return LobbyDetailResponse.from_detail(detail)


@router.post("/{lobby_id}/kick", status_code=status.HTTP_204_NO_CONTENT)
async def kick_player(
    lobby_id: uuid.UUID,
    request: KickPlayerRequest,
    caller: CallerDep,
    coordinator: CoordinatorDep,
) -> Response:
    """Kick a player from the lobby (leader only)."""
    await coordinator.kick_player(caller, lobby_id, request.target_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
