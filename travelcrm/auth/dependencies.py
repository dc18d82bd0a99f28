"""
FastAPI dependencies for authentication and role checks.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.jwt import get_token_from_request, verify_token
from travelcrm.db import get_db
from travelcrm.errors import PermissionDenied, Unauthenticated
from travelcrm.models import User, UserRole
from travelcrm.services import store


async def _load_user(request: Request, db: AsyncSession) -> Optional[User]:
    token = get_token_from_request(request)
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        return None

    return await store.find_user(db, payload["user_id"])


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Current user if a valid session is present, else None.

    Disabled accounts are returned as None too.
    """
    user = await _load_user(request, db)
    if not user or user.disabled:
        return None
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Current authenticated user.

    The disabled flag is read from the database on every request, so a
    disabled employee is rejected even with a token issued earlier.
    """
    user = await _load_user(request, db)
    if not user:
        raise Unauthenticated()

    if user.disabled:
        raise PermissionDenied("هذا الحساب معطل", user_id=user.id)

    return user


def require_roles(*roles: UserRole):
    """Dependency factory accepting only the given roles."""

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise PermissionDenied(user_id=current_user.id, role=current_user.role.value)
        return current_user

    return dependency


require_manager = require_roles(UserRole.MANAGER)
require_sales = require_roles(UserRole.SALES, UserRole.MANAGER)
require_intake = require_roles(UserRole.DATAENTRY, UserRole.MANAGER)
