"""Employee account schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from travelcrm.models.user import UserRole


class EmployeeCreate(BaseModel):
    """
    Create an employee account.

    Fields are optional at the schema level so that missing values are
    reported by the account service with its own message.
    """

    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=100)
    role: Optional[str] = None
    salary: Optional[Decimal] = None


class SalaryUpdate(BaseModel):
    """Set the fixed monthly salary (null clears it)."""

    salary: Optional[Decimal] = None


class UserResponse(BaseModel):
    """Account information."""

    id: int
    email: str
    name: str
    role: UserRole
    salary: Optional[Decimal] = None
    disabled: bool = False
    login_count: int = 0
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EmployeeCreatedResponse(BaseModel):
    success: bool = True
    id: int
