"""Employee management API endpoints (manager only)."""

from typing import Callable, List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.api.clients import client_response
from travelcrm.auth.dependencies import require_manager
from travelcrm.db import get_db, get_session_factory
from travelcrm.errors import NotFound
from travelcrm.models import ASSIGNABLE_ROLES, AuditAction, User, UserRole
from travelcrm.schemas.dashboard import (
    ClientStatisticsResponse,
    EmployeeDetailResponse,
    EmployeeSummaryResponse,
    SalarySummaryResponse,
)
from travelcrm.schemas.user import (
    EmployeeCreate,
    EmployeeCreatedResponse,
    SalaryUpdate,
    UserResponse,
)
from travelcrm.services import accounts, lifecycle, store
from travelcrm.services.statistics import (
    compute_client_statistics,
    compute_salary_summary,
    employee_rollups,
)
from travelcrm.utils.audit import get_client_ip
from travelcrm.utils.clock import business_now

router = APIRouter(prefix="/employees", tags=["Employees"])


async def _get_employee_or_404(db: AsyncSession, user_id: int) -> User:
    user = await store.get_user_or_404(db, user_id)
    if UserRole(user.role) not in ASSIGNABLE_ROLES:
        raise NotFound("الموظف غير موجود", user_id=user_id)
    return user


@router.get("", response_model=List[EmployeeSummaryResponse])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Employees with their client statistics and salary for this month."""
    employees = await store.list_employees(db)
    clients = await store.list_clients(db)

    return [
        EmployeeSummaryResponse(
            employee=UserResponse.model_validate(rollup.employee),
            statistics=ClientStatisticsResponse.from_stats(rollup.statistics),
            salary=SalarySummaryResponse.from_summary(rollup.salary),
        )
        for rollup in employee_rollups(employees, clients, business_now())
    ]


@router.post("", response_model=EmployeeCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    request: Request,
    data: EmployeeCreate,
    current_user: User = Depends(require_manager),
    session_factory: Callable = Depends(get_session_factory),
):
    """
    Create a dataentry or sales account.

    The account is written in its own session; the manager stays logged
    in as themselves.
    """
    employee = await accounts.create_employee(
        current_user,
        email=data.email,
        password=data.password,
        name=data.name,
        role=data.role,
        salary=data.salary,
        ip_address=get_client_ip(request),
        session_factory=session_factory,
    )
    return EmployeeCreatedResponse(id=employee.id)


@router.get("/{user_id}", response_model=EmployeeDetailResponse)
async def get_employee(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Employee account, assigned clients, statistics and salary breakdown."""
    employee = await _get_employee_or_404(db, user_id)
    clients = await store.list_clients(db, assigned_to=employee.id)
    stats = compute_client_statistics(clients, business_now())
    names = {employee.id: employee}

    return EmployeeDetailResponse(
        employee=UserResponse.model_validate(employee),
        statistics=ClientStatisticsResponse.from_stats(stats),
        salary=SalarySummaryResponse.from_summary(compute_salary_summary(employee, stats)),
        clients=[client_response(client, names) for client in clients],
    )


@router.post("/{user_id}/toggle", response_model=UserResponse)
async def toggle_employee(
    request: Request,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Enable or disable an employee account."""
    actor_id = current_user.id
    employee = await _get_employee_or_404(db, user_id)
    patch = lifecycle.toggle_employee_enabled(employee, current_user)
    await store.apply_user_patch(
        db, patch, actor_id, AuditAction.TOGGLE_EMPLOYEE, get_client_ip(request)
    )
    return UserResponse.model_validate(await store.get_user_or_404(db, user_id))


@router.put("/{user_id}/salary", response_model=UserResponse)
async def update_salary(
    request: Request,
    user_id: int,
    data: SalaryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Set the employee's fixed monthly salary."""
    actor_id = current_user.id
    employee = await _get_employee_or_404(db, user_id)
    patch = lifecycle.set_employee_salary(employee, data.salary, current_user)
    await store.apply_user_patch(
        db, patch, actor_id, AuditAction.UPDATE_SALARY, get_client_ip(request)
    )
    return UserResponse.model_validate(await store.get_user_or_404(db, user_id))
