"""Own profile API endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.dependencies import get_current_user
from travelcrm.db import get_db
from travelcrm.models import User
from travelcrm.schemas.dashboard import (
    ClientStatisticsResponse,
    ProfileResponse,
    SalarySummaryResponse,
)
from travelcrm.schemas.user import UserResponse
from travelcrm.services import store
from travelcrm.services.statistics import compute_client_statistics, compute_salary_summary
from travelcrm.utils.clock import business_now

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Statistics over the clients assigned to the current user, with salary."""
    clients = await store.list_clients(db, assigned_to=current_user.id)
    stats = compute_client_statistics(clients, business_now())

    return ProfileResponse(
        user=UserResponse.model_validate(current_user),
        statistics=ClientStatisticsResponse.from_stats(stats),
        salary=SalarySummaryResponse.from_summary(compute_salary_summary(current_user, stats)),
    )
