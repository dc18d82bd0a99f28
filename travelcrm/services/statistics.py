"""
Client statistics and salary summaries.

Everything here is a read-only reduce over client snapshots already
loaded by the caller. Timestamps read back from SQLite are naive; they
are treated as UTC.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from travelcrm.models.base import utcnow
from travelcrm.models.client import ClientStatus
from travelcrm.services.calculator import (
    ZERO,
    calculate_commission,
    commission_rate,
    parse_amount,
)


@dataclass
class ClientStatistics:
    total_clients: int = 0
    status_counts: Dict[ClientStatus, int] = field(
        default_factory=lambda: {status: 0 for status in ClientStatus}
    )
    sold_count: int = 0
    total_profit: Decimal = ZERO
    average_profit: Decimal = ZERO
    monthly_profit: Decimal = ZERO

    def count(self, status: ClientStatus) -> int:
        return self.status_counts.get(ClientStatus(status), 0)


@dataclass
class SalarySummary:
    monthly_profit: Decimal
    commission_rate: Decimal
    commission: Decimal
    fixed_salary: Decimal
    total_salary: Decimal


@dataclass
class EmployeeRollup:
    employee: object
    statistics: ClientStatistics
    salary: SalarySummary


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_start(now: datetime) -> datetime:
    """Midnight on the first day of now's month, in now's timezone."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def compute_client_statistics(clients: Iterable, now: Optional[datetime] = None) -> ClientStatistics:
    """
    Aggregate counts and profit over a set of clients.

    Args:
        clients: Client snapshots (status, profit, updated_at)
        now: Evaluation time; the current month is taken from it, in its
            timezone (defaults to current UTC time)

    Returns:
        ClientStatistics. Missing or unparseable profits count as 0;
        average_profit is 0 when nothing is sold.
    """
    now = now or utcnow()
    window_start = _as_utc(month_start(now))
    window_end = _as_utc(now)

    stats = ClientStatistics()
    for client in clients:
        stats.total_clients += 1
        try:
            status = ClientStatus(client.status)
        except ValueError:
            continue
        stats.status_counts[status] += 1

        if status is not ClientStatus.SOLD:
            continue

        profit = parse_amount(client.profit)
        stats.sold_count += 1
        stats.total_profit += profit

        updated_at = getattr(client, "updated_at", None)
        if updated_at is not None and window_start <= _as_utc(updated_at) <= window_end:
            stats.monthly_profit += profit

    if stats.sold_count:
        stats.average_profit = stats.total_profit / stats.sold_count
    return stats


def compute_salary_summary(user, stats: ClientStatistics) -> SalarySummary:
    """Salary breakdown for one employee from their own statistics."""
    fixed_salary = parse_amount(getattr(user, "salary", None))
    commission = calculate_commission(stats.monthly_profit)
    return SalarySummary(
        monthly_profit=stats.monthly_profit,
        commission_rate=commission_rate(stats.monthly_profit),
        commission=commission,
        fixed_salary=fixed_salary,
        total_salary=fixed_salary + commission,
    )


def employee_rollups(
    employees: Iterable,
    clients: Iterable,
    now: Optional[datetime] = None,
) -> List[EmployeeRollup]:
    """Per-employee statistics over the clients assigned to each one."""
    now = now or utcnow()
    by_employee = defaultdict(list)
    for client in clients:
        if client.assigned_to is not None:
            by_employee[client.assigned_to].append(client)

    rollups = []
    for employee in employees:
        stats = compute_client_statistics(by_employee.get(employee.id, []), now)
        rollups.append(
            EmployeeRollup(
                employee=employee,
                statistics=stats,
                salary=compute_salary_summary(employee, stats),
            )
        )
    return rollups


def filter_by_created_range(
    clients: Iterable,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> List:
    """
    Clients created between two calendar days, both days included.

    Days are read in tz (UTC when omitted). An open bound is unbounded.
    """
    tz = tz or timezone.utc
    selected = []
    for client in clients:
        created_at = getattr(client, "created_at", None)
        if created_at is None:
            continue
        day = _as_utc(created_at).astimezone(tz).date()
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        selected.append(client)
    return selected


def split_by_assignment(clients: Iterable) -> Tuple[List, List]:
    """(assigned, unassigned) preserving input order."""
    assigned, unassigned = [], []
    for client in clients:
        (assigned if client.assigned_to is not None else unassigned).append(client)
    return assigned, unassigned
