"""Client schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from travelcrm.models.client import ClientStatus, Currency


class ClientCreate(BaseModel):
    """Intake form submitted by data entry."""

    source: Optional[str] = Field(None, max_length=100)
    client_name: Optional[str] = Field(None, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=50)
    travel_date: Optional[date] = None
    departure_airport: Optional[str] = Field(None, max_length=100)
    arrival_airport: Optional[str] = Field(None, max_length=100)
    follow_up_date: Optional[date] = None
    passport_url: Optional[str] = Field(None, max_length=1000)
    bnr_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)


class StatusChangeRequest(BaseModel):
    """
    Move a client along the pipeline.

    Prices and currencies are only read when status is "sold".
    """

    status: str
    note: Optional[str] = Field(None, max_length=5000)
    cost_price: Optional[Decimal] = None
    sell_price: Optional[Decimal] = None
    cost_currency: Optional[str] = None
    sell_currency: Optional[str] = None


class NoteCreate(BaseModel):
    text: str = Field(..., max_length=5000)


class AssignRequest(BaseModel):
    """employee_id null unassigns the client."""

    employee_id: Optional[int] = None


class BulkAssignRequest(BaseModel):
    client_ids: List[int] = Field(default_factory=list)
    employee_id: Optional[int] = None


class NoteResponse(BaseModel):
    id: int
    text: str
    author_id: Optional[int]
    author_name: str
    status: ClientStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class ClientResponse(BaseModel):
    """Client record as shown in lists and details."""

    id: int
    source: str
    client_name: str
    whatsapp_number: str
    travel_date: Optional[date] = None
    departure_airport: Optional[str] = None
    arrival_airport: Optional[str] = None
    follow_up_date: Optional[date] = None
    passport_url: Optional[str] = None
    bnr_number: Optional[str] = None
    notes: Optional[str] = None

    status: ClientStatus
    assigned_to: Optional[int] = None
    assigned_at: Optional[datetime] = None
    employee_name: Optional[str] = None

    cost_price: Optional[Decimal] = None
    sell_price: Optional[Decimal] = None
    cost_currency: Optional[Currency] = None
    sell_currency: Optional[Currency] = None
    profit: Optional[Decimal] = None

    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClientDetailResponse(ClientResponse):
    note_log: List[NoteResponse] = Field(default_factory=list)


class ClientListResponse(BaseModel):
    items: List[ClientResponse]
    total: int


class BulkAssignResponse(BaseModel):
    success: bool = True
    assigned: int
