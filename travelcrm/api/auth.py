"""
Authentication API endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.dependencies import get_current_user, get_current_user_optional
from travelcrm.auth.jwt import COOKIE_NAME, create_access_token
from travelcrm.config import settings
from travelcrm.db import get_db
from travelcrm.errors import PermissionDenied, Unauthenticated
from travelcrm.models import AuditAction, User
from travelcrm.schemas.auth import LoginRequest, LoginResponse
from travelcrm.schemas.user import UserResponse
from travelcrm.services import store
from travelcrm.utils.audit import get_client_ip, log_action
from travelcrm.utils.password import check_login_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate by email and password and set the session cookie.

    Disabled accounts are refused even with the right password.
    """
    user = await store.get_user_by_email(db, credentials.email)

    if not check_login_password(user, credentials.password):
        raise Unauthenticated("البريد الإلكتروني أو كلمة المرور غير صحيحة")

    if user.disabled:
        raise PermissionDenied("هذا الحساب معطل، يرجى التواصل مع المدير", user_id=user.id)

    user_id, name, role = user.id, user.name, user.role.value
    token = create_access_token(user_id, role)

    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.jwt_expire_hours * 3600,
    )

    await store.record_login(db, user_id, get_client_ip(request))
    logger.info(f"User {user_id} ({role}) logged in")

    return LoginResponse(
        success=True,
        message="تم تسجيل الدخول بنجاح",
        user_id=user_id,
        name=name,
        role=role,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Clear the session cookie."""
    if current_user:
        await log_action(
            db=db,
            user_id=current_user.id,
            action=AuditAction.LOGOUT,
            target_type="user",
            target_id=current_user.id,
            ip_address=get_client_ip(request),
        )
        await db.commit()

    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return {"success": True, "message": "تم تسجيل الخروج"}


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """The logged-in account."""
    return UserResponse.model_validate(current_user)
