"""
Append-only note log for clients.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from travelcrm.models.base import Base
from travelcrm.models.client import ClientStatus

if TYPE_CHECKING:
    from travelcrm.models.client import Client


class ClientNote(Base):
    """
    One entry in a client's note log.

    Rows are only ever inserted. Concurrent notes from different actors
    never overwrite each other.
    """

    __tablename__ = "client_notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ClientStatus] = mapped_column(
        SQLAlchemyEnum(
            ClientStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        comment="Client status at the time of the note",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    client: Mapped["Client"] = relationship("Client", back_populates="note_log")

    def __repr__(self) -> str:
        return f"<ClientNote(id={self.id}, client_id={self.client_id}, status={self.status})>"
