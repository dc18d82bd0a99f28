"""
Persistence for clients, employees and exchange rates.

Reads return ORM snapshots; writes take the patches produced by
services/lifecycle.py and apply them in one transaction each, together
with the audit log entry. Every call gets one retry on a transient
database failure and then surfaces as Unavailable.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from travelcrm.db.retry import with_retry
from travelcrm.errors import NotFound
from travelcrm.models import (
    ASSIGNABLE_ROLES,
    EXCHANGE_RATES_KEY,
    AuditAction,
    Client,
    ClientNote,
    ClientStatus,
    SystemSetting,
    User,
    utcnow,
)
from travelcrm.services.calculator import ExchangeRates, parse_amount
from travelcrm.services.lifecycle import ClientPatch, UserPatch
from travelcrm.utils.audit import log_action

logger = logging.getLogger(__name__)


# ── Reads ─────────────────────────────────────────────────


@with_retry()
async def get_client_or_404(db: AsyncSession, client_id: int, with_notes: bool = False) -> Client:
    query = select(Client).where(Client.id == client_id).execution_options(populate_existing=True)
    if with_notes:
        query = query.options(selectinload(Client.note_log))
    client = (await db.execute(query)).scalar_one_or_none()
    if client is None:
        raise NotFound("العميل غير موجود", client_id=client_id)
    return client


@with_retry()
async def get_clients_or_404(db: AsyncSession, client_ids: Iterable[int]) -> List[Client]:
    """Load every requested client or fail without loading any."""
    ids = list(dict.fromkeys(client_ids))
    result = await db.execute(select(Client).where(Client.id.in_(ids)))
    found = {client.id: client for client in result.scalars().all()}
    missing = [client_id for client_id in ids if client_id not in found]
    if missing:
        raise NotFound("بعض العملاء غير موجودين", client_ids=missing)
    return [found[client_id] for client_id in ids]


@with_retry()
async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = (
        await db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if user is None:
        raise NotFound("الموظف غير موجود", user_id=user_id)
    return user


@with_retry()
async def find_user(db: AsyncSession, user_id: int) -> Optional[User]:
    """User by id, or None; used to resolve the session token."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


@with_retry()
async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


@with_retry()
async def get_users_by_ids(db: AsyncSession, user_ids: Iterable[int]) -> Dict[int, User]:
    """Resolve many user ids with a single IN query."""
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {user.id: user for user in result.scalars().all()}


@with_retry()
async def list_clients(
    db: AsyncSession,
    status: Optional[ClientStatus] = None,
    assigned_to: Optional[int] = None,
    unassigned_only: bool = False,
) -> List[Client]:
    """Full scan of clients, newest first, with optional filters."""
    query = select(Client)
    if status is not None:
        query = query.where(Client.status == status)
    if assigned_to is not None:
        query = query.where(Client.assigned_to == assigned_to)
    if unassigned_only:
        query = query.where(Client.assigned_to.is_(None))
    query = query.order_by(Client.created_at.desc(), Client.id.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


@with_retry()
async def list_employees(db: AsyncSession) -> List[User]:
    result = await db.execute(
        select(User).where(User.role.in_(ASSIGNABLE_ROLES)).order_by(User.name)
    )
    return list(result.scalars().all())


# ── Exchange rates ────────────────────────────────────────


def _rates_from_value(value: Any) -> ExchangeRates:
    value = value or {}
    return ExchangeRates(
        buy_rate=parse_amount(value.get("buy_rate")),
        sell_rate=parse_amount(value.get("sell_rate")),
        version=int(value.get("version") or 0),
    )


def _rates_to_value(rates: ExchangeRates) -> dict:
    return {
        "buy_rate": str(rates.buy_rate),
        "sell_rate": str(rates.sell_rate),
        "version": rates.version,
    }


@with_retry()
async def load_exchange_rates(db: AsyncSession) -> ExchangeRates:
    """Current rates; zero rates when the record was never written."""
    setting = await db.get(SystemSetting, EXCHANGE_RATES_KEY, populate_existing=True)
    if setting is None:
        return ExchangeRates(buy_rate=Decimal("0"), sell_rate=Decimal("0"))
    return _rates_from_value(setting.get_value())


async def ensure_exchange_rates(db: AsyncSession) -> None:
    """Create the zero-rate record if it does not exist yet."""
    setting = await db.get(SystemSetting, EXCHANGE_RATES_KEY)
    if setting is None:
        setting = SystemSetting(key=EXCHANGE_RATES_KEY, value={})
        setting.set_value(
            _rates_to_value(ExchangeRates(buy_rate=Decimal("0"), sell_rate=Decimal("0")))
        )
        db.add(setting)
        await db.flush()
        logger.info("Exchange rates initialised with zero values")


@with_retry()
async def save_exchange_rates(
    db: AsyncSession,
    rates: ExchangeRates,
    actor_id: int,
    ip_address: Optional[str] = None,
) -> ExchangeRates:
    setting = await db.get(SystemSetting, EXCHANGE_RATES_KEY)
    if setting is None:
        setting = SystemSetting(key=EXCHANGE_RATES_KEY, value={})
        db.add(setting)
    setting.set_value(_rates_to_value(rates))

    await log_action(
        db,
        user_id=actor_id,
        action=AuditAction.UPDATE_RATES,
        target_type="settings",
        action_metadata=_rates_to_value(rates),
        ip_address=ip_address,
    )
    await db.commit()

    logger.info(
        f"Exchange rates updated to buy={rates.buy_rate} sell={rates.sell_rate} "
        f"(version {rates.version}) by user {actor_id}"
    )
    return rates


# ── Client writes ─────────────────────────────────────────


@with_retry()
async def create_client(
    db: AsyncSession,
    values: Dict[str, Any],
    actor_id: int,
    ip_address: Optional[str] = None,
) -> Client:
    client = Client(**values)
    db.add(client)
    await db.flush()

    await log_action(
        db,
        user_id=actor_id,
        action=AuditAction.CREATE_CLIENT,
        target_type="client",
        target_id=client.id,
        action_metadata={"source": client.source},
        ip_address=ip_address,
    )
    await db.commit()

    logger.info(f"Client {client.id} created by user {actor_id}")
    return client


@with_retry()
async def apply_client_patches(
    db: AsyncSession,
    patches: List[ClientPatch],
    actor_id: int,
    action: AuditAction,
    ip_address: Optional[str] = None,
    action_metadata: Optional[dict] = None,
) -> None:
    """
    Apply client patches atomically.

    One UPDATE per client plus one INSERT per note, all committed
    together with the audit entry. If any target id is unknown nothing
    is written.
    """
    if not patches:
        return

    ids = [patch.client_id for patch in patches]
    existing = set(
        (await db.execute(select(Client.id).where(Client.id.in_(ids)))).scalars().all()
    )
    missing = [client_id for client_id in ids if client_id not in existing]
    if missing:
        raise NotFound("بعض العملاء غير موجودين", client_ids=missing)

    for patch in patches:
        if patch.changes:
            await db.execute(
                update(Client).where(Client.id == patch.client_id).values(**patch.changes)
            )
        for note in patch.notes:
            db.add(
                ClientNote(
                    client_id=patch.client_id,
                    text=note.text,
                    author_id=note.author_id,
                    author_name=note.author_name,
                    status=note.status,
                    created_at=note.created_at,
                )
            )

    metadata = dict(action_metadata or {})
    if len(patches) > 1:
        metadata["client_ids"] = ids

    await log_action(
        db,
        user_id=actor_id,
        action=action,
        target_type="client",
        target_id=ids[0] if len(ids) == 1 else None,
        action_metadata=metadata or None,
        ip_address=ip_address,
    )
    await db.commit()

    logger.info(f"{action.value} applied to {len(ids)} client(s) by user {actor_id}")


async def apply_client_patch(
    db: AsyncSession,
    patch: ClientPatch,
    actor_id: int,
    action: AuditAction,
    ip_address: Optional[str] = None,
    action_metadata: Optional[dict] = None,
) -> None:
    await apply_client_patches(db, [patch], actor_id, action, ip_address, action_metadata)


# ── User writes ───────────────────────────────────────────


@with_retry()
async def apply_user_patch(
    db: AsyncSession,
    patch: UserPatch,
    actor_id: int,
    action: AuditAction,
    ip_address: Optional[str] = None,
) -> None:
    result = await db.execute(
        update(User).where(User.id == patch.user_id).values(**patch.changes)
    )
    if result.rowcount == 0:
        raise NotFound("الموظف غير موجود", user_id=patch.user_id)

    await log_action(
        db,
        user_id=actor_id,
        action=action,
        target_type="user",
        target_id=patch.user_id,
        action_metadata={key: value for key, value in patch.changes.items() if key != "updated_at"},
        ip_address=ip_address,
    )
    await db.commit()

    logger.info(f"{action.value} applied to user {patch.user_id} by user {actor_id}")


@with_retry()
async def record_login(db: AsyncSession, user_id: int, ip_address: Optional[str] = None) -> None:
    """Bump the login counter and last login time."""
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(login_count=User.login_count + 1, last_login_at=utcnow())
    )
    await log_action(
        db,
        user_id=user_id,
        action=AuditAction.LOGIN,
        target_type="user",
        target_id=user_id,
        ip_address=ip_address,
    )
    await db.commit()
