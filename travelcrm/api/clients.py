"""
Client API endpoints.

Handlers only load snapshots, call the lifecycle rules and hand the
resulting patches to the store.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.dependencies import (
    get_current_user,
    require_intake,
    require_manager,
    require_sales,
)
from travelcrm.db import get_db
from travelcrm.errors import InvalidArgument
from travelcrm.models import AuditAction, Client, ClientStatus, User, UserRole
from travelcrm.schemas.client import (
    AssignRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    ClientCreate,
    ClientDetailResponse,
    ClientListResponse,
    ClientResponse,
    NoteCreate,
    StatusChangeRequest,
)
from travelcrm.services import lifecycle, store
from travelcrm.services.statistics import filter_by_created_range
from travelcrm.utils.audit import get_client_ip
from travelcrm.utils.clock import business_timezone

router = APIRouter(prefix="/clients", tags=["Clients"])


def client_response(client: Client, names: Dict[int, User]) -> ClientResponse:
    employee = names.get(client.assigned_to) if client.assigned_to is not None else None
    return ClientResponse.model_validate(client).model_copy(
        update={"employee_name": employee.display_label if employee else None}
    )


async def client_responses(db: AsyncSession, clients: Iterable[Client]) -> List[ClientResponse]:
    """Serialize clients, resolving employee names with one query."""
    clients = list(clients)
    names = await store.get_users_by_ids(db, [client.assigned_to for client in clients])
    return [client_response(client, names) for client in clients]


async def _client_detail(db: AsyncSession, client_id: int) -> ClientDetailResponse:
    client = await store.get_client_or_404(db, client_id, with_notes=True)
    names = await store.get_users_by_ids(db, [client.assigned_to])
    employee = names.get(client.assigned_to)
    return ClientDetailResponse.model_validate(client).model_copy(
        update={"employee_name": employee.display_label if employee else None}
    )


async def _resolve_employee(db: AsyncSession, employee_id: Optional[int]) -> Optional[User]:
    if employee_id is None:
        return None
    users = await store.get_users_by_ids(db, [employee_id])
    if employee_id not in users:
        raise InvalidArgument("الموظف غير موجود", employee_id=employee_id)
    return users[employee_id]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    request: Request,
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_intake),
):
    """Record a new client. It starts as "new" and unassigned."""
    values = lifecycle.build_new_client(data.model_dump(), current_user)
    client = await store.create_client(db, values, current_user.id, get_client_ip(request))
    return ClientResponse.model_validate(client)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[ClientStatus] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    assigned_to: Optional[int] = Query(None),
):
    """
    List clients, newest first.

    The manager sees every client and may filter by employee; everyone
    else only sees the clients assigned to them.
    """
    if current_user.role != UserRole.MANAGER:
        assigned_to = current_user.id

    clients = await store.list_clients(db, status=status_filter, assigned_to=assigned_to)
    if date_from or date_to:
        clients = filter_by_created_range(clients, date_from, date_to, business_timezone())

    items = await client_responses(db, clients)
    return ClientListResponse(items=items, total=len(items))


@router.get("/unassigned", response_model=ClientListResponse)
async def list_unassigned_clients(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Clients waiting for assignment."""
    clients = await store.list_clients(db, unassigned_only=True)
    items = [ClientResponse.model_validate(client) for client in clients]
    return ClientListResponse(items=items, total=len(items))


@router.post("/assign", response_model=BulkAssignResponse)
async def bulk_assign_clients(
    request: Request,
    data: BulkAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """
    Assign many clients to one employee in a single transaction.

    If any id is unknown nothing is assigned.
    """
    actor_id = current_user.id
    employee = await _resolve_employee(db, data.employee_id)
    clients = await store.get_clients_or_404(db, data.client_ids)
    patches = lifecycle.request_bulk_assignment(clients, employee, current_user)

    await store.apply_client_patches(
        db,
        patches,
        actor_id,
        AuditAction.BULK_ASSIGN,
        get_client_ip(request),
        {"employee_id": data.employee_id},
    )
    return BulkAssignResponse(assigned=len(patches))


@router.get("/{client_id}", response_model=ClientDetailResponse)
async def get_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Client with its note log and assigned employee's name."""
    client = await store.get_client_or_404(db, client_id)
    lifecycle.ensure_can_view(client, current_user)
    return await _client_detail(db, client_id)


@router.post("/{client_id}/status", response_model=ClientDetailResponse)
async def change_status(
    request: Request,
    client_id: int,
    data: StatusChangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_sales),
):
    """
    Move a client to another status.

    Marking a client as sold requires cost and sell prices; profit is
    computed with the exchange rates read for this request.
    """
    actor_id = current_user.id
    client = await store.get_client_or_404(db, client_id)
    previous_status = ClientStatus(client.status).value

    rates = None
    if data.status == ClientStatus.SOLD.value:
        rates = await store.load_exchange_rates(db)

    patch = lifecycle.request_status_change(
        client,
        data.status,
        current_user,
        lifecycle.StatusChangePayload(
            note=data.note,
            sale=lifecycle.SaleBreakdown(
                cost_price=data.cost_price,
                sell_price=data.sell_price,
                cost_currency=data.cost_currency,
                sell_currency=data.sell_currency,
            ),
        ),
        rates,
    )

    metadata = {"from": previous_status, "to": data.status}
    if rates is not None:
        metadata["rates_version"] = rates.version
    await store.apply_client_patch(
        db, patch, actor_id, AuditAction.CHANGE_STATUS, get_client_ip(request), metadata
    )
    return await _client_detail(db, client_id)


@router.post("/{client_id}/notes", response_model=ClientDetailResponse)
async def add_note(
    request: Request,
    client_id: int,
    data: NoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_sales),
):
    """Append a note to the client's log."""
    actor_id = current_user.id
    client = await store.get_client_or_404(db, client_id)
    patch = lifecycle.append_note(client, data.text, current_user)
    await store.apply_client_patch(
        db, patch, actor_id, AuditAction.ADD_NOTE, get_client_ip(request)
    )
    return await _client_detail(db, client_id)


@router.post("/{client_id}/assign", response_model=ClientDetailResponse)
async def assign_client(
    request: Request,
    client_id: int,
    data: AssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Assign the client to an employee, or unassign it."""
    actor_id = current_user.id
    client = await store.get_client_or_404(db, client_id)
    employee = await _resolve_employee(db, data.employee_id)
    patch = lifecycle.request_assignment(client, employee, current_user)
    await store.apply_client_patch(
        db,
        patch,
        actor_id,
        AuditAction.ASSIGN_CLIENT,
        get_client_ip(request),
        {"employee_id": data.employee_id},
    )
    return await _client_detail(db, client_id)
