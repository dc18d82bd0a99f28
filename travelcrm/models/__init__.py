"""
Database models.

All models are exported here for convenient imports:
    from travelcrm.models import Client, User, ClientNote, etc.
"""

from travelcrm.models.audit import AuditAction, AuditLog
from travelcrm.models.base import Base, TimestampMixin, utcnow
from travelcrm.models.client import (
    BASE_CURRENCY,
    FINANCIAL_FIELDS,
    Client,
    ClientStatus,
    Currency,
)
from travelcrm.models.note import ClientNote
from travelcrm.models.settings import EXCHANGE_RATES_KEY, SystemSetting
from travelcrm.models.user import ASSIGNABLE_ROLES, User, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utcnow",
    # User
    "User",
    "UserRole",
    "ASSIGNABLE_ROLES",
    # Client
    "Client",
    "ClientStatus",
    "Currency",
    "BASE_CURRENCY",
    "FINANCIAL_FIELDS",
    "ClientNote",
    # Settings
    "SystemSetting",
    "EXCHANGE_RATES_KEY",
    # Audit
    "AuditLog",
    "AuditAction",
]
