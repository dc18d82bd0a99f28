"""
Tests for privileged employee account creation.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from travelcrm.errors import AlreadyExists, InvalidArgument, PermissionDenied, Unauthenticated
from travelcrm.models import AuditAction, AuditLog, User, UserRole
from travelcrm.services.accounts import create_employee
from travelcrm.utils.password import verify_password


async def _create(actor, session_factory, **kwargs):
    values = {
        "email": "new.sales@example.com",
        "password": "secret123",
        "name": "New Sales",
        "role": "sales",
    }
    values.update(kwargs)
    return await create_employee(actor, session_factory=session_factory, **values)


class TestCreateEmployee:
    async def test_manager_creates_sales(self, db_session, make_user, session_factory):
        manager = await make_user(UserRole.MANAGER)

        employee = await _create(manager, session_factory, email=" New.Sales@Example.com ", salary="3000")

        saved = (
            await db_session.execute(select(User).where(User.id == employee.id))
        ).scalar_one()
        assert saved.email == "new.sales@example.com"
        assert saved.role == UserRole.SALES
        assert saved.salary == Decimal("3000")
        assert saved.created_by == manager.id
        assert saved.disabled is False
        assert verify_password("secret123", saved.password_hash)

        log = (await db_session.execute(select(AuditLog))).scalar_one()
        assert log.action == AuditAction.CREATE_EMPLOYEE
        assert log.target_id == employee.id

    async def test_duplicate_email(self, make_user, session_factory):
        manager = await make_user(UserRole.MANAGER)
        await make_user(UserRole.SALES, email="taken@example.com")

        with pytest.raises(AlreadyExists):
            await _create(manager, session_factory, email="taken@example.com")

    @pytest.mark.parametrize("missing", ["email", "password", "name", "role"])
    async def test_all_fields_required(self, make_user, session_factory, missing):
        manager = await make_user(UserRole.MANAGER)
        with pytest.raises(InvalidArgument) as exc_info:
            await _create(manager, session_factory, **{missing: ""})
        assert exc_info.value.message == "جميع الحقول مطلوبة"

    @pytest.mark.parametrize("role", ["manager", "owner"])
    async def test_only_employee_roles(self, make_user, session_factory, role):
        manager = await make_user(UserRole.MANAGER)
        with pytest.raises(InvalidArgument) as exc_info:
            await _create(manager, session_factory, role=role)
        assert exc_info.value.message == "الدور غير صحيح"

    async def test_short_password(self, make_user, session_factory):
        manager = await make_user(UserRole.MANAGER)
        with pytest.raises(InvalidArgument):
            await _create(manager, session_factory, password="123")

    async def test_employee_cannot_create(self, make_user, session_factory):
        sales = await make_user(UserRole.SALES)
        with pytest.raises(PermissionDenied):
            await _create(sales, session_factory)

    async def test_disabled_manager_cannot_create(self, make_user, session_factory):
        manager = await make_user(UserRole.MANAGER, disabled=True)
        with pytest.raises(PermissionDenied):
            await _create(manager, session_factory)

    async def test_requires_actor(self, session_factory):
        with pytest.raises(Unauthenticated):
            await _create(None, session_factory)
