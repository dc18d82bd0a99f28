"""Exchange rate settings schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ExchangeRatesResponse(BaseModel):
    """Current SAR -> EGP rates."""

    buy_rate: Decimal
    sell_rate: Decimal
    version: int = 0


class ExchangeRatesUpdate(BaseModel):
    """Both rates are required; negative values are rejected by the service."""

    buy_rate: Optional[Decimal] = None
    sell_rate: Optional[Decimal] = None
