"""Service-to-service endpoints.

These routes are called by other backend services (for example when a
player's realtime connection drops) and carry no caller identity.
"""

import uuid

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from lobbyhub.api.dependencies import CoordinatorDep

router = APIRouter(prefix="/internal/lobbies", tags=["internal"])


class UpdatePlayerActiveStatusRequest(BaseModel):
    """Request body for updating a membership's active flag."""

    is_active: bool = Field(alias="isActive")

    model_config = {"populate_by_name": True}


@router.patch("/{lobby_id}/players/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_player_active_status(
    lobby_id: uuid.UUID,
    membership_id: uuid.UUID,
    request: UpdatePlayerActiveStatusRequest,
    coordinator: CoordinatorDep,
) -> Response:
    """Set a membership's active flag."""
    await coordinator.set_member_active(lobby_id, membership_id, request.is_active)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
