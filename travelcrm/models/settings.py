"""
SystemSetting model for singleton configuration records.
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from travelcrm.models.base import Base

EXCHANGE_RATES_KEY = "exchange_rates"


class SystemSetting(Base):
    """
    Key-value store for configuration records.

    Values are JSON wrapped as {"v": ...}. Known keys:
    - exchange_rates: {"buy_rate": str, "sell_rate": str, "version": int}
    """

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    value: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SystemSetting(key='{self.key}')>"

    def get_value(self):
        if isinstance(self.value, dict) and "v" in self.value:
            return self.value["v"]
        return self.value

    def set_value(self, val):
        # Reassign so the JSON column is flagged dirty
        self.value = {"v": val}
