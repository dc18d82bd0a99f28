"""
Client model: a prospect / booking record.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from travelcrm.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from travelcrm.models.note import ClientNote
    from travelcrm.models.user import User


class ClientStatus(str, Enum):
    """Position of the client in the sales pipeline."""
    NEW = "new"
    WAITING_OFFER = "waitingOffer"
    FOLLOW_UP = "followUp"
    SOLD = "sold"
    POSTPONED = "postponed"
    REJECTED = "rejected"


class Currency(str, Enum):
    """Currencies a sale can be priced in. EGP is the base currency."""
    SAR = "SAR"
    EGP = "EGP"


BASE_CURRENCY = Currency.EGP

CURRENCY_TYPE = SQLAlchemyEnum(
    Currency,
    name="currency",
    values_callable=lambda x: [e.value for e in x],
)

# Columns that only exist while the client is sold
FINANCIAL_FIELDS = ("cost_price", "sell_price", "cost_currency", "sell_currency", "profit")


class Client(Base, TimestampMixin):
    """
    A prospect recorded by data entry and worked by sales.

    Rules:
    - financial fields are set only while status == sold
    - assigned_to, when set, points at a sales or dataentry user
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Intake
    source: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Channel the lead came from",
    )
    client_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    whatsapp_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    travel_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    departure_airport: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    arrival_airport: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    follow_up_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    passport_url: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        comment="URL returned by the external upload widget",
    )
    bnr_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Booking reference",
    )
    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Free-text note captured at intake",
    )

    # Pipeline
    status: Mapped[ClientStatus] = mapped_column(
        SQLAlchemyEnum(
            ClientStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ClientStatus.NEW,
        nullable=False,
        index=True,
    )

    # Assignment
    assigned_to: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Financial data (only once sold)
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    sell_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    cost_currency: Mapped[Optional[Currency]] = mapped_column(
        CURRENCY_TYPE,
        nullable=True,
    )
    sell_currency: Mapped[Optional[Currency]] = mapped_column(
        CURRENCY_TYPE,
        nullable=True,
    )
    profit: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="Profit in base currency",
    )

    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )

    # Relationships
    employee: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="assigned_clients",
        foreign_keys=[assigned_to],
    )
    note_log: Mapped[List["ClientNote"]] = relationship(
        "ClientNote",
        back_populates="client",
        order_by="ClientNote.id",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.client_name}', status={self.status})>"
