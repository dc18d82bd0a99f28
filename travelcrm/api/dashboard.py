"""Manager dashboard API endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.dependencies import require_manager
from travelcrm.db import get_db
from travelcrm.models import User
from travelcrm.schemas.dashboard import (
    ClientStatisticsResponse,
    DashboardResponse,
    EmployeeSummaryResponse,
    SalarySummaryResponse,
)
from travelcrm.schemas.user import UserResponse
from travelcrm.services import store
from travelcrm.services.statistics import (
    compute_client_statistics,
    employee_rollups,
    split_by_assignment,
)
from travelcrm.utils.clock import business_now

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """
    Global statistics.

    Every client is read and reduced in memory; monthly profit uses the
    current month in the business timezone.
    """
    now = business_now()
    clients = await store.list_clients(db)
    employees = await store.list_employees(db)
    assigned, unassigned = split_by_assignment(clients)

    return DashboardResponse(
        statistics=ClientStatisticsResponse.from_stats(compute_client_statistics(clients, now)),
        assigned_count=len(assigned),
        unassigned_count=len(unassigned),
        employees=[
            EmployeeSummaryResponse(
                employee=UserResponse.model_validate(rollup.employee),
                statistics=ClientStatisticsResponse.from_stats(rollup.statistics),
                salary=SalarySummaryResponse.from_summary(rollup.salary),
            )
            for rollup in employee_rollups(employees, assigned, now)
        ],
    )
