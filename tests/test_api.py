"""
HTTP API tests.

Runs the FastAPI app over httpx's ASGI transport against a file-backed
SQLite database so that standalone sessions see the same data.
"""

from contextlib import asynccontextmanager
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from passlib.hash import bcrypt
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from travelcrm.auth.jwt import create_access_token
from travelcrm.db import get_db, get_session_factory
from travelcrm.db.retry import with_retry
from travelcrm.main import app
from travelcrm.models import Base, User, UserRole
from travelcrm.services import store
from travelcrm.utils import password

PASSWORD = "secret123"
PASSWORD_HASH = bcrypt.using(rounds=4).hash(PASSWORD)


@pytest_asyncio.fixture
async def api(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def standalone():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_db():
        async with standalone() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: standalone

    async with standalone() as db:
        users = {
            "manager": User(email="manager@example.com", name="Mona", role=UserRole.MANAGER),
            "sales": User(email="sales@example.com", name="Sara", role=UserRole.SALES),
            "other": User(email="other@example.com", name="Omar", role=UserRole.SALES),
            "dataentry": User(email="entry@example.com", name="Dina", role=UserRole.DATAENTRY),
        }
        for user in users.values():
            user.password_hash = PASSWORD_HASH
            user.disabled = False
            user.login_count = 0
            db.add(user)
        await store.ensure_exchange_rates(db)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield SimpleNamespace(client=client, maker=maker, **users)

    app.dependency_overrides.clear()
    await engine.dispose()


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


async def _new_client(api, **kwargs) -> dict:
    body = {"source": "facebook", "client_name": "Ahmed", "whatsapp_number": "+201000000001"}
    body.update(kwargs)
    response = await api.client.post("/api/clients", json=body, headers=auth(api.dataentry))
    assert response.status_code == 201
    return response.json()


async def _assign(api, client_id: int, user: User) -> None:
    response = await api.client.post(
        f"/api/clients/{client_id}/assign",
        json={"employee_id": user.id},
        headers=auth(api.manager),
    )
    assert response.status_code == 200


# ── Health and auth ───────────────────────────────────────


class TestAuth:
    async def test_health(self, api):
        response = await api.client.get("/api/health")
        assert response.json()["status"] == "healthy"

    async def test_login_sets_cookie_and_counts(self, api):
        response = await api.client.post(
            "/api/auth/login", json={"email": "SALES@example.com", "password": PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "sales"
        assert "access_token" in response.cookies

        me = await api.client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["login_count"] == 1

    async def test_wrong_password(self, api):
        response = await api.client.post(
            "/api/auth/login", json={"email": "sales@example.com", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    async def test_requires_session(self, api):
        response = await api.client.get("/api/clients")
        assert response.status_code == 401
        assert response.json() == {"detail": "يجب تسجيل الدخول أولاً", "code": "unauthenticated"}

    async def test_malformed_body_is_invalid_argument(self, api):
        response = await api.client.post(
            "/api/clients/assign", json={"client_ids": "abc"}, headers=auth(api.manager)
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"


# ── Client pipeline ───────────────────────────────────────


class TestClientPipeline:
    async def test_intake_assign_sell(self, api):
        created = await _new_client(api)
        assert created["status"] == "new"
        assert created["assigned_to"] is None

        await _assign(api, created["id"], api.sales)

        rates = await api.client.put(
            "/api/settings/exchange-rates",
            json={"buy_rate": "8.0", "sell_rate": "8.5"},
            headers=auth(api.manager),
        )
        assert rates.json()["version"] == 1

        sold = await api.client.post(
            f"/api/clients/{created['id']}/status",
            json={
                "status": "sold",
                "note": "paid",
                "cost_price": "100",
                "cost_currency": "SAR",
                "sell_price": "1200",
                "sell_currency": "EGP",
            },
            headers=auth(api.sales),
        )
        assert sold.status_code == 200
        body = sold.json()
        assert body["status"] == "sold"
        assert Decimal(body["profit"]) == Decimal("400")
        assert body["employee_name"] == "Sara"
        assert [note["text"] for note in body["note_log"]] == ["paid"]

        profile = await api.client.get("/api/profile", headers=auth(api.sales))
        stats = profile.json()["statistics"]
        assert stats["sold_count"] == 1
        assert Decimal(stats["monthly_profit"]) == Decimal("400")

        dashboard = await api.client.get("/api/dashboard", headers=auth(api.manager))
        assert Decimal(dashboard.json()["statistics"]["total_profit"]) == Decimal("400")
        assert dashboard.json()["assigned_count"] == 1

    async def test_unassigned_sales_denied(self, api):
        created = await _new_client(api)
        await _assign(api, created["id"], api.sales)

        response = await api.client.post(
            f"/api/clients/{created['id']}/status",
            json={"status": "followUp"},
            headers=auth(api.other),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"

        detail = await api.client.get(f"/api/clients/{created['id']}", headers=auth(api.other))
        assert detail.status_code == 403

    async def test_sold_without_prices_changes_nothing(self, api):
        created = await _new_client(api)
        await _assign(api, created["id"], api.sales)

        response = await api.client.post(
            f"/api/clients/{created['id']}/status",
            json={"status": "sold"},
            headers=auth(api.sales),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"

        detail = await api.client.get(f"/api/clients/{created['id']}", headers=auth(api.sales))
        assert detail.json()["status"] == "new"
        assert detail.json()["profit"] is None

    async def test_sales_sees_only_own_clients(self, api):
        mine = await _new_client(api, client_name="Mine")
        await _new_client(api, client_name="Not mine")
        await _assign(api, mine["id"], api.sales)

        response = await api.client.get("/api/clients", headers=auth(api.sales))
        assert [item["client_name"] for item in response.json()["items"]] == ["Mine"]

        unassigned = await api.client.get("/api/clients/unassigned", headers=auth(api.manager))
        assert [item["client_name"] for item in unassigned.json()["items"]] == ["Not mine"]

    async def test_add_note(self, api):
        created = await _new_client(api)
        await _assign(api, created["id"], api.sales)

        response = await api.client.post(
            f"/api/clients/{created['id']}/notes",
            json={"text": "called, no answer"},
            headers=auth(api.sales),
        )
        assert response.status_code == 200
        assert response.json()["note_log"][0]["author_name"] == "Sara"


# ── Bulk assignment ───────────────────────────────────────


class TestBulkAssign:
    async def test_invalid_id_assigns_nothing(self, api):
        ids = [(await _new_client(api, client_name=f"C{i}"))["id"] for i in range(4)]

        response = await api.client.post(
            "/api/clients/assign",
            json={"client_ids": ids + [9999], "employee_id": api.sales.id},
            headers=auth(api.manager),
        )
        assert response.status_code == 404

        listing = await api.client.get("/api/clients/unassigned", headers=auth(api.manager))
        assert listing.json()["total"] == 4

    async def test_assigns_all(self, api):
        ids = [(await _new_client(api, client_name=f"C{i}"))["id"] for i in range(3)]

        response = await api.client.post(
            "/api/clients/assign",
            json={"client_ids": ids, "employee_id": api.sales.id},
            headers=auth(api.manager),
        )
        assert response.json() == {"success": True, "assigned": 3}

    async def test_manager_only(self, api):
        created = await _new_client(api)
        response = await api.client.post(
            "/api/clients/assign",
            json={"client_ids": [created["id"]], "employee_id": api.sales.id},
            headers=auth(api.sales),
        )
        assert response.status_code == 403

    async def test_cannot_assign_to_manager(self, api):
        created = await _new_client(api)
        response = await api.client.post(
            f"/api/clients/{created['id']}/assign",
            json={"employee_id": api.manager.id},
            headers=auth(api.manager),
        )
        assert response.status_code == 400


# ── Employees and settings ────────────────────────────────


class TestEmployees:
    async def test_create_and_duplicate(self, api):
        body = {"email": "new@example.com", "password": "secret123", "name": "Nour", "role": "dataentry"}
        created = await api.client.post("/api/employees", json=body, headers=auth(api.manager))
        assert created.status_code == 201

        duplicate = await api.client.post("/api/employees", json=body, headers=auth(api.manager))
        assert duplicate.status_code == 409
        assert duplicate.json()["code"] == "already_exists"

    async def test_sales_cannot_create(self, api):
        body = {"email": "x@example.com", "password": "secret123", "name": "X", "role": "sales"}
        response = await api.client.post("/api/employees", json=body, headers=auth(api.sales))
        assert response.status_code == 403

    async def test_disable_blocks_existing_token(self, api):
        headers = auth(api.sales)
        assert (await api.client.get("/api/profile", headers=headers)).status_code == 200

        toggled = await api.client.post(
            f"/api/employees/{api.sales.id}/toggle", headers=auth(api.manager)
        )
        assert toggled.json()["disabled"] is True

        assert (await api.client.get("/api/profile", headers=headers)).status_code == 403
        login = await api.client.post(
            "/api/auth/login", json={"email": "sales@example.com", "password": PASSWORD}
        )
        assert login.status_code == 403

    async def test_salary_in_details(self, api):
        response = await api.client.put(
            f"/api/employees/{api.sales.id}/salary",
            json={"salary": "3000"},
            headers=auth(api.manager),
        )
        assert Decimal(response.json()["salary"]) == Decimal("3000")

        details = await api.client.get(f"/api/employees/{api.sales.id}", headers=auth(api.manager))
        salary = details.json()["salary"]
        assert Decimal(salary["total_salary"]) == Decimal("3000")
        assert Decimal(salary["commission"]) == Decimal("0")

        listing = await api.client.get("/api/employees", headers=auth(api.manager))
        assert len(listing.json()) == 3

    async def test_manager_is_not_an_employee(self, api):
        response = await api.client.get(f"/api/employees/{api.manager.id}", headers=auth(api.manager))
        assert response.status_code == 404


class TestExchangeRates:
    async def test_read_defaults(self, api):
        response = await api.client.get("/api/settings/exchange-rates", headers=auth(api.sales))
        body = response.json()
        assert Decimal(body["buy_rate"]) == Decimal("0")
        assert body["version"] == 0

    async def test_negative_rejected(self, api):
        response = await api.client.put(
            "/api/settings/exchange-rates",
            json={"buy_rate": "-1", "sell_rate": "8"},
            headers=auth(api.manager),
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("role", ["sales", "dataentry"])
    async def test_manager_only(self, api, role):
        response = await api.client.put(
            "/api/settings/exchange-rates",
            json={"buy_rate": "8", "sell_rate": "8"},
            headers=auth(getattr(api, role)),
        )
        assert response.status_code == 403


# ── Store failures ────────────────────────────────────────


def _connection_lost():
    return OperationalError("SELECT clients", {}, ConnectionError("connection reset"))


class TestStoreFailures:
    async def test_transient_failure_is_unavailable(self, api, monkeypatch):
        async def failing_list_clients(*args, **kwargs):
            raise _connection_lost()

        monkeypatch.setattr(store, "list_clients", failing_list_clients)

        response = await api.client.get("/api/dashboard", headers=auth(api.manager))
        assert response.status_code == 503
        assert response.json()["code"] == "unavailable"

    async def test_read_retried_once(self, api, monkeypatch):
        list_clients = store.list_clients
        calls = []

        @with_retry(delay=0)
        async def flaky_list_clients(db, *args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise _connection_lost()
            return await list_clients(db, *args, **kwargs)

        monkeypatch.setattr(store, "list_clients", flaky_list_clients)

        response = await api.client.get("/api/profile", headers=auth(api.sales))
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Sara"
        assert len(calls) == 2


class TestLoginTiming:
    async def test_unknown_email_still_verifies_a_hash(self, api, monkeypatch):
        calls = []
        monkeypatch.setattr(password.pwd_context, "dummy_verify", lambda *args: calls.append(1))

        response = await api.client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert calls == [1]
