import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.profiles import Client
from fitlink.models.user import User
from fitlink.routers.coaches import list_clients_for_coach
from fitlink.schemas import ClientResponse, ClientUpdate
from fitlink.services.audit_service import AuditService
from fitlink.services.profile_service import ProfileService

router = APIRouter()


@router.get("/user/{user_id}", response_model=StandardResponse[ClientResponse])
async def get_client_by_user(
    user_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """A client record is visible to the client and to their coach."""
    client = await ProfileService.get_client_by_user_id(db, user_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    if client.user_id != current_user.id:
        coach = await ProfileService.get_coach_by_user_id(db, current_user.id)
        if coach is None or client.coach_id != coach.id:
            raise HTTPException(status_code=403, detail="Cannot view another client's profile")
    return StandardResponse(data=ClientResponse.model_validate(client))


@router.get("/coach/{coach_id}", response_model=StandardResponse[List[ClientResponse]])
async def list_clients_by_coach(
    coach_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    clients = await list_clients_for_coach(db, coach_id, current_user)
    return StandardResponse(data=[ClientResponse.model_validate(c) for c in clients])


@router.patch("/me", response_model=StandardResponse[ClientResponse])
async def update_my_client_profile(
    data: ClientUpdate,
    client: Annotated[Client, Depends(dependencies.get_current_client_record)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(client, key, value)

    await AuditService.log_action(
        db,
        user_id=client.user_id,
        action="UPDATE_CLIENT_PROFILE",
        target_id=str(client.id),
        details=f"Updated client fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.commit()
    client = await ProfileService.get_client_or_404(db, client.id)
    return StandardResponse(data=ClientResponse.model_validate(client), message="Client profile updated")
