from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.user import User
from fitlink.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("", response_model=StandardResponse)
async def get_dashboard(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Role-specific summary: coach, client or gym."""
    stats = await DashboardService.get_dashboard(db, current_user)
    return StandardResponse(data=stats)
