"""
Privileged account operations.

Employee accounts are created server-side in a dedicated session. The
calling manager's session and token are never touched, so creating an
employee cannot log the manager in as someone else.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.db import get_db_context, with_retry
from travelcrm.db.retry import TRANSIENT_ERRORS
from travelcrm.errors import (
    AlreadyExists,
    Internal,
    InvalidArgument,
    PermissionDenied,
    Unauthenticated,
)
from travelcrm.models import ASSIGNABLE_ROLES, AuditAction, User, UserRole
from travelcrm.services.lifecycle import parse_required_amount
from travelcrm.utils.audit import log_action
from travelcrm.utils.password import hash_password, validate_password

logger = logging.getLogger(__name__)


def _ensure_can_create(actor) -> None:
    if actor is None:
        raise Unauthenticated()
    if actor.disabled or UserRole(actor.role) is not UserRole.MANAGER:
        raise PermissionDenied("ليس لديك صلاحية لإضافة موظفين", actor_id=actor.id)


def _parse_role(value: Any) -> UserRole:
    try:
        role = UserRole(value)
    except ValueError:
        raise InvalidArgument("الدور غير صحيح", role=value)
    if role not in ASSIGNABLE_ROLES:
        raise InvalidArgument("الدور غير صحيح", role=value)
    return role


@with_retry()
async def _insert_employee(
    db: AsyncSession,
    email: str,
    password_hash: str,
    name: str,
    role: UserRole,
    salary: Optional[Decimal],
    actor_id: int,
    ip_address: Optional[str],
) -> User:
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise AlreadyExists(email=email)

    employee = User(
        email=email,
        password_hash=password_hash,
        name=name,
        role=role,
        salary=salary,
        disabled=False,
        created_by=actor_id,
        login_count=0,
    )
    db.add(employee)
    await db.flush()

    await log_action(
        db,
        user_id=actor_id,
        action=AuditAction.CREATE_EMPLOYEE,
        target_type="user",
        target_id=employee.id,
        action_metadata={"email": email, "role": role.value},
        ip_address=ip_address,
    )
    await db.commit()
    return employee


async def create_employee(
    actor,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
    role: Any,
    salary: Any = None,
    ip_address: Optional[str] = None,
    session_factory: Callable = get_db_context,
) -> User:
    """
    Create a dataentry or sales account.

    Args:
        actor: Calling user; must be an enabled manager
        email, password, name, role: All required
        salary: Optional fixed monthly salary
        ip_address: For the audit log
        session_factory: Async context manager yielding a fresh session

    Raises:
        Unauthenticated: no actor
        PermissionDenied: actor is not an enabled manager
        InvalidArgument: missing field, bad role, weak password
        AlreadyExists: email already registered
        Internal: account could not be written
    """
    _ensure_can_create(actor)

    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email or not password or not name or not role:
        raise InvalidArgument("جميع الحقول مطلوبة")

    employee_role = _parse_role(role)
    validate_password(password)
    salary_value = None if salary in (None, "") else parse_required_amount(salary, "salary")

    try:
        async with session_factory() as db:
            employee = await _insert_employee(
                db,
                email,
                hash_password(password),
                name,
                employee_role,
                salary_value,
                actor.id,
                ip_address,
            )
    except IntegrityError as e:
        # Concurrent create with the same email
        raise AlreadyExists(email=email) from e
    except TRANSIENT_ERRORS:
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Failed to create employee {email}")
        raise Internal("فشل إضافة الموظف") from e

    logger.info(f"Employee {employee.id} ({employee_role.value}) created by manager {actor.id}")
    return employee
