"""
User model: manager and employee accounts.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, false
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from travelcrm.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from travelcrm.models.audit import AuditLog
    from travelcrm.models.client import Client


class UserRole(str, Enum):
    """User roles for access control."""
    MANAGER = "manager"
    DATAENTRY = "dataentry"
    SALES = "sales"


# Roles a client may be assigned to
ASSIGNABLE_ROLES = (UserRole.SALES, UserRole.DATAENTRY)


class User(Base, TimestampMixin):
    """
    Account record.

    - manager: assigns clients, sees everything, manages employees and rates
    - dataentry: records new clients
    - sales: works the clients assigned to them through the status pipeline
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    salary: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Fixed monthly salary in base currency",
    )
    disabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    # Login tracking
    login_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    assigned_clients: Mapped[List["Client"]] = relationship(
        "Client",
        back_populates="employee",
        foreign_keys="Client.assigned_to",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    @property
    def display_label(self) -> str:
        return self.name or self.email

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
