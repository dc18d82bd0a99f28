"""Pydantic schemas for request/response validation."""

from travelcrm.schemas.auth import LoginRequest, LoginResponse
from travelcrm.schemas.client import (
    AssignRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    ClientCreate,
    ClientDetailResponse,
    ClientListResponse,
    ClientResponse,
    NoteCreate,
    NoteResponse,
    StatusChangeRequest,
)
from travelcrm.schemas.dashboard import (
    ClientStatisticsResponse,
    DashboardResponse,
    EmployeeDetailResponse,
    EmployeeSummaryResponse,
    ProfileResponse,
    SalarySummaryResponse,
)
from travelcrm.schemas.settings import ExchangeRatesResponse, ExchangeRatesUpdate
from travelcrm.schemas.user import (
    EmployeeCreate,
    EmployeeCreatedResponse,
    SalaryUpdate,
    UserResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    # User
    "EmployeeCreate",
    "EmployeeCreatedResponse",
    "SalaryUpdate",
    "UserResponse",
    # Client
    "ClientCreate",
    "ClientResponse",
    "ClientDetailResponse",
    "ClientListResponse",
    "StatusChangeRequest",
    "NoteCreate",
    "NoteResponse",
    "AssignRequest",
    "BulkAssignRequest",
    "BulkAssignResponse",
    # Dashboard
    "ClientStatisticsResponse",
    "SalarySummaryResponse",
    "EmployeeSummaryResponse",
    "EmployeeDetailResponse",
    "DashboardResponse",
    "ProfileResponse",
    # Settings
    "ExchangeRatesResponse",
    "ExchangeRatesUpdate",
]
