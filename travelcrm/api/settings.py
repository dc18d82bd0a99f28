"""Exchange rate settings API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.auth.dependencies import get_current_user, require_manager
from travelcrm.db import get_db
from travelcrm.models import User
from travelcrm.schemas.settings import ExchangeRatesResponse, ExchangeRatesUpdate
from travelcrm.services import lifecycle, store
from travelcrm.utils.audit import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/exchange-rates", response_model=ExchangeRatesResponse)
async def get_exchange_rates(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Current SAR buy/sell rates."""
    rates = await store.load_exchange_rates(db)
    return ExchangeRatesResponse(
        buy_rate=rates.buy_rate,
        sell_rate=rates.sell_rate,
        version=rates.version,
    )


@router.put("/exchange-rates", response_model=ExchangeRatesResponse)
async def update_exchange_rates(
    request: Request,
    data: ExchangeRatesUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """
    Replace both rates.

    Sales already recorded keep the profit computed with the old rates.
    """
    actor_id = current_user.id
    current = await store.load_exchange_rates(db)
    rates = lifecycle.validate_exchange_rates(data.buy_rate, data.sell_rate, current_user, current)
    await store.save_exchange_rates(db, rates, actor_id, get_client_ip(request))
    return ExchangeRatesResponse(
        buy_rate=rates.buy_rate,
        sell_rate=rates.sell_rate,
        version=rates.version,
    )
