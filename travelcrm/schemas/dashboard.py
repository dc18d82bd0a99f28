"""Dashboard, statistics and salary schemas."""

from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field

from travelcrm.schemas.client import ClientResponse
from travelcrm.schemas.user import UserResponse


class ClientStatisticsResponse(BaseModel):
    """Counts and profit over a set of clients."""

    total_clients: int
    status_counts: Dict[str, int]
    sold_count: int
    total_profit: Decimal
    average_profit: Decimal
    monthly_profit: Decimal

    @classmethod
    def from_stats(cls, stats) -> "ClientStatisticsResponse":
        return cls(
            total_clients=stats.total_clients,
            status_counts={status.value: count for status, count in stats.status_counts.items()},
            sold_count=stats.sold_count,
            total_profit=stats.total_profit,
            average_profit=stats.average_profit,
            monthly_profit=stats.monthly_profit,
        )


class SalarySummaryResponse(BaseModel):
    """Monthly salary breakdown; commission_rate is a fraction (0.10 = 10%)."""

    monthly_profit: Decimal
    commission_rate: Decimal
    commission: Decimal
    fixed_salary: Decimal
    total_salary: Decimal

    @classmethod
    def from_summary(cls, summary) -> "SalarySummaryResponse":
        return cls(
            monthly_profit=summary.monthly_profit,
            commission_rate=summary.commission_rate,
            commission=summary.commission,
            fixed_salary=summary.fixed_salary,
            total_salary=summary.total_salary,
        )


class EmployeeSummaryResponse(BaseModel):
    """One row of the employees table."""

    employee: UserResponse
    statistics: ClientStatisticsResponse
    salary: SalarySummaryResponse


class EmployeeDetailResponse(EmployeeSummaryResponse):
    clients: List[ClientResponse] = Field(default_factory=list)


class DashboardResponse(BaseModel):
    """Manager dashboard."""

    statistics: ClientStatisticsResponse
    assigned_count: int
    unassigned_count: int
    employees: List[EmployeeSummaryResponse] = Field(default_factory=list)


class ProfileResponse(BaseModel):
    """The current user's own page."""

    user: UserResponse
    statistics: ClientStatisticsResponse
    salary: SalarySummaryResponse
