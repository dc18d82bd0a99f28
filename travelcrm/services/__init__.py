"""Business logic services."""

from travelcrm.services.calculator import (
    ExchangeRates,
    Money,
    calculate_commission,
    compute_profit,
    convert_to_base_currency,
    total_salary,
)
from travelcrm.services.lifecycle import (
    ClientPatch,
    UserPatch,
    ensure_can_view,
    request_assignment,
    request_bulk_assignment,
    request_status_change,
    toggle_employee_enabled,
)
from travelcrm.services.statistics import compute_client_statistics, compute_salary_summary

__all__ = [
    "ExchangeRates",
    "Money",
    "calculate_commission",
    "compute_profit",
    "convert_to_base_currency",
    "total_salary",
    "ClientPatch",
    "UserPatch",
    "ensure_can_view",
    "request_assignment",
    "request_bulk_assignment",
    "request_status_change",
    "toggle_employee_enabled",
    "compute_client_statistics",
    "compute_salary_summary",
]
