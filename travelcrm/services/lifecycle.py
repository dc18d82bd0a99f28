"""
Client lifecycle rules.

Every function here takes snapshots (ORM objects or anything with the same
attributes), validates the request and returns a patch describing exactly
the fields to persist. Snapshots are never mutated; applying a patch is
the store's job (services/store.py).

Status pipeline:
    new -> waitingOffer -> followUp -> sold | postponed | rejected
Transitions are unrestricted in direction. Entering "sold" requires a
cost/sell breakdown and sets the financial fields; leaving "sold" clears
them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from travelcrm.errors import InvalidArgument, PermissionDenied, Unauthenticated
from travelcrm.models.base import utcnow
from travelcrm.models.client import FINANCIAL_FIELDS, ClientStatus, Currency
from travelcrm.models.user import ASSIGNABLE_ROLES, UserRole
from travelcrm.services.calculator import ExchangeRates, Money, compute_profit

logger = logging.getLogger(__name__)

# Money columns are Numeric(12, 2)
CENTS = Decimal("0.01")
MAX_MONEY = Decimal("9999999999.99")

INTAKE_REQUIRED_FIELDS = ("source", "client_name", "whatsapp_number")
INTAKE_OPTIONAL_FIELDS = (
    "travel_date",
    "departure_airport",
    "arrival_airport",
    "follow_up_date",
    "passport_url",
    "bnr_number",
    "notes",
)


@dataclass(frozen=True)
class NoteEntry:
    text: str
    author_id: Optional[int]
    author_name: str
    status: ClientStatus
    created_at: datetime


@dataclass
class ClientPatch:
    """Fields to write on one client plus notes to append to its log."""

    client_id: int
    changes: Dict[str, Any] = field(default_factory=dict)
    notes: List[NoteEntry] = field(default_factory=list)


@dataclass
class UserPatch:
    user_id: int
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SaleBreakdown:
    """Prices entered when a client is marked as sold."""

    cost_price: Any = None
    sell_price: Any = None
    cost_currency: Any = Currency.EGP
    sell_currency: Any = Currency.EGP


@dataclass
class StatusChangePayload:
    note: Optional[str] = None
    sale: Optional[SaleBreakdown] = None


# ── Actor checks ──────────────────────────────────────────


def _actor_role(actor) -> UserRole:
    if actor is None:
        raise Unauthenticated()
    if getattr(actor, "disabled", False):
        raise PermissionDenied("هذا الحساب معطل", actor_id=actor.id)
    try:
        return UserRole(actor.role)
    except ValueError:
        raise PermissionDenied(actor_id=actor.id, role=actor.role)


def _author_label(actor) -> str:
    return getattr(actor, "name", None) or getattr(actor, "email", None) or str(actor.id)


def _can_work_pipeline(role: UserRole) -> bool:
    match role:
        case UserRole.MANAGER:
            return True
        case UserRole.SALES:
            return True
        case UserRole.DATAENTRY:
            return False


def _can_record_clients(role: UserRole) -> bool:
    match role:
        case UserRole.MANAGER:
            return True
        case UserRole.DATAENTRY:
            return True
        case UserRole.SALES:
            return False


def ensure_manager(actor) -> None:
    """Raise PermissionDenied unless the actor is an enabled manager."""
    match _actor_role(actor):
        case UserRole.MANAGER:
            return
        case UserRole.SALES | UserRole.DATAENTRY:
            raise PermissionDenied(actor_id=actor.id)


def ensure_can_view(client, actor) -> None:
    """
    Read-side authorization.

    A manager sees every client; anyone else only the clients assigned
    to them.
    """
    match _actor_role(actor):
        case UserRole.MANAGER:
            return
        case UserRole.SALES | UserRole.DATAENTRY:
            if client.assigned_to is None or client.assigned_to != actor.id:
                raise PermissionDenied(
                    "هذا العميل غير مسند إليك",
                    actor_id=actor.id,
                    client_id=client.id,
                )


def _ensure_can_work(client, actor) -> None:
    role = _actor_role(actor)
    if not _can_work_pipeline(role):
        raise PermissionDenied(actor_id=actor.id, role=role.value)
    ensure_can_view(client, actor)


# ── Value parsing ─────────────────────────────────────────


def parse_status(value: Any) -> ClientStatus:
    try:
        return ClientStatus(value)
    except ValueError:
        raise InvalidArgument("الحالة غير صحيحة", status=value)


def parse_currency(value: Any) -> Currency:
    if value is None or value == "":
        return Currency.EGP
    try:
        return Currency(value)
    except ValueError:
        raise InvalidArgument("العملة غير صحيحة", currency=value)


def parse_required_amount(value: Any, field_name: str) -> Decimal:
    """
    Strict parse for amounts the operation cannot proceed without.

    Missing, non-numeric, non-finite or negative values are rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgument(f"الحقل {field_name} مطلوب", field=field_name)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"قيمة {field_name} غير صحيحة", field=field_name)
    if not amount.is_finite() or amount < 0:
        raise InvalidArgument(f"قيمة {field_name} غير صحيحة", field=field_name)
    return amount


def to_money(amount: Decimal, field_name: str) -> Decimal:
    """Round to whole piasters; reject amounts the money columns cannot hold."""
    if abs(amount) >= MAX_MONEY + CENTS / 2:
        raise InvalidArgument(f"قيمة {field_name} كبيرة جداً", field=field_name)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


# ── Status transitions ────────────────────────────────────


def request_status_change(
    client,
    new_status: Any,
    actor,
    payload: Optional[StatusChangePayload] = None,
    rates: Optional[ExchangeRates] = None,
    now: Optional[datetime] = None,
) -> ClientPatch:
    """
    Validate a status change and describe the resulting write.

    Args:
        client: Current client snapshot
        new_status: Requested status (one of ClientStatus values)
        actor: User performing the change (sales or manager)
        payload: Optional note; sale breakdown when new_status is sold
        rates: Exchange rates read for this computation (required for sold)
        now: Timestamp to record (defaults to current UTC time)

    Raises:
        PermissionDenied: actor role or assignment does not allow it
        InvalidArgument: bad status, missing or invalid sale breakdown
    """
    _ensure_can_work(client, actor)
    status = parse_status(new_status)
    payload = payload or StatusChangePayload()
    now = now or utcnow()

    changes: Dict[str, Any] = {"status": status, "updated_at": now}

    if status is ClientStatus.SOLD:
        sale = payload.sale
        if sale is None:
            raise InvalidArgument("يجب إدخال سعر التكلفة وسعر البيع", client_id=client.id)
        if rates is None:
            raise InvalidArgument("أسعار الصرف غير متوفرة", client_id=client.id)

        cost_price = to_money(parse_required_amount(sale.cost_price, "cost_price"), "cost_price")
        sell_price = to_money(parse_required_amount(sale.sell_price, "sell_price"), "sell_price")
        cost_currency = parse_currency(sale.cost_currency)
        sell_currency = parse_currency(sale.sell_currency)

        breakdown = compute_profit(
            Money(cost_price, cost_currency),
            Money(sell_price, sell_currency),
            rates,
        )
        changes.update(
            cost_price=cost_price,
            sell_price=sell_price,
            cost_currency=cost_currency,
            sell_currency=sell_currency,
            profit=to_money(breakdown.profit, "profit"),
        )
    elif any(getattr(client, name, None) is not None for name in FINANCIAL_FIELDS):
        changes.update({name: None for name in FINANCIAL_FIELDS})

    notes = []
    text = (payload.note or "").strip()
    if text:
        notes.append(
            NoteEntry(
                text=text,
                author_id=actor.id,
                author_name=_author_label(actor),
                status=status,
                created_at=now,
            )
        )

    return ClientPatch(client_id=client.id, changes=changes, notes=notes)


def append_note(client, text: str, actor, now: Optional[datetime] = None) -> ClientPatch:
    """
    Add a note without changing status.

    updated_at is left alone so a note on an old sale does not move it
    into the current month's profit.
    """
    _ensure_can_work(client, actor)
    text = (text or "").strip()
    if not text:
        raise InvalidArgument("نص الملاحظة مطلوب", client_id=client.id)

    return ClientPatch(
        client_id=client.id,
        notes=[
            NoteEntry(
                text=text,
                author_id=actor.id,
                author_name=_author_label(actor),
                status=ClientStatus(client.status),
                created_at=now or utcnow(),
            )
        ],
    )


# ── Assignment ────────────────────────────────────────────


def _ensure_assignable(employee) -> None:
    if employee is None:
        return
    if UserRole(employee.role) not in ASSIGNABLE_ROLES:
        raise InvalidArgument("لا يمكن إسناد العميل لهذا المستخدم", employee_id=employee.id)
    if getattr(employee, "disabled", False):
        raise InvalidArgument("حساب الموظف معطل", employee_id=employee.id)


def request_assignment(client, employee, actor, now: Optional[datetime] = None) -> ClientPatch:
    """
    Assign a client to an employee, or unassign with employee=None.

    Only a manager may assign. The employee must be an enabled sales or
    dataentry user.
    """
    ensure_manager(actor)
    _ensure_assignable(employee)
    now = now or utcnow()

    return ClientPatch(
        client_id=client.id,
        changes={
            "assigned_to": employee.id if employee is not None else None,
            "assigned_at": now if employee is not None else None,
            "updated_at": now,
        },
    )


def request_bulk_assignment(
    clients: Iterable,
    employee,
    actor,
    now: Optional[datetime] = None,
) -> List[ClientPatch]:
    """One patch per client, all sharing the same timestamp."""
    ensure_manager(actor)
    clients = list(clients)
    if not clients:
        raise InvalidArgument("يرجى اختيار موظف وعملاء")
    now = now or utcnow()
    return [request_assignment(client, employee, actor, now) for client in clients]


# ── Intake ────────────────────────────────────────────────


def build_new_client(data: Mapping[str, Any], actor, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Column values for a newly recorded client.

    New clients always start as status "new" and unassigned.
    """
    role = _actor_role(actor)
    if not _can_record_clients(role):
        raise PermissionDenied(actor_id=actor.id, role=role.value)

    values: Dict[str, Any] = {}
    for name in INTAKE_REQUIRED_FIELDS:
        value = data.get(name)
        if value is None or not str(value).strip():
            raise InvalidArgument(f"الحقل {name} مطلوب", field=name)
        values[name] = str(value).strip()

    for name in INTAKE_OPTIONAL_FIELDS:
        value = data.get(name)
        if isinstance(value, str):
            value = value.strip() or None
        values[name] = value

    now = now or utcnow()
    values.update(
        status=ClientStatus.NEW,
        assigned_to=None,
        assigned_at=None,
        created_by=actor.id,
        created_at=now,
        updated_at=now,
    )
    return values


# ── Employees and settings ────────────────────────────────


def _ensure_employee(user) -> None:
    if UserRole(user.role) not in ASSIGNABLE_ROLES:
        raise InvalidArgument("المستخدم ليس موظفاً", user_id=user.id)


def toggle_employee_enabled(user, actor, now: Optional[datetime] = None) -> UserPatch:
    """
    Flip an employee's disabled flag.

    Sessions already issued keep their token; every permission check
    after this reads the flag and rejects the account.
    """
    ensure_manager(actor)
    if user.id == actor.id:
        raise InvalidArgument("لا يمكنك تعطيل حسابك", user_id=user.id)
    _ensure_employee(user)
    return UserPatch(
        user_id=user.id,
        changes={
            "disabled": not bool(user.disabled),
            "updated_at": now or utcnow(),
        },
    )


def set_employee_salary(user, salary: Any, actor, now: Optional[datetime] = None) -> UserPatch:
    """Set (or clear with None) an employee's fixed monthly salary."""
    ensure_manager(actor)
    _ensure_employee(user)
    value = None if salary is None else to_money(parse_required_amount(salary, "salary"), "salary")
    return UserPatch(
        user_id=user.id,
        changes={"salary": value, "updated_at": now or utcnow()},
    )


def validate_exchange_rates(
    buy_rate: Any,
    sell_rate: Any,
    actor,
    current: Optional[ExchangeRates] = None,
) -> ExchangeRates:
    """New rates record; negative or non-numeric rates are rejected."""
    ensure_manager(actor)
    current = current or ExchangeRates(buy_rate=Decimal("0"), sell_rate=Decimal("0"))
    return ExchangeRates(
        buy_rate=parse_required_amount(buy_rate, "buy_rate"),
        sell_rate=parse_required_amount(sell_rate, "sell_rate"),
        version=current.version + 1,
    )
