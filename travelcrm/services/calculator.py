"""
Profit and commission calculation.

Rules:
- EGP is the base currency; SAR amounts are multiplied by a rate
- The cost leg always converts with buy_rate and the sell leg with
  sell_rate, whatever currency each leg is priced in
- Commission is ONE tier rate applied to the whole monthly profit
  (cliff edges at every tier boundary, not a progressive bracket sum)

Nothing here raises on bad numbers: optional numeric input that does not
parse is treated as zero.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Tuple

from travelcrm.models.client import BASE_CURRENCY, Currency

ZERO = Decimal("0")

# (lower bound, rate) checked from the top; first bound <= profit wins
COMMISSION_TIERS: List[Tuple[Decimal, Decimal]] = [
    (Decimal("25000"), Decimal("0.25")),
    (Decimal("20000"), Decimal("0.20")),
    (Decimal("15000"), Decimal("0.15")),
    (Decimal("10000"), Decimal("0.10")),
    (Decimal("5000"), Decimal("0.05")),
]


@dataclass(frozen=True)
class ExchangeRates:
    """Snapshot of the exchange rate settings taken at computation start."""

    buy_rate: Decimal
    sell_rate: Decimal
    version: int = 0


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency


@dataclass(frozen=True)
class ProfitBreakdown:
    cost_base: Decimal
    sell_base: Decimal
    profit: Decimal


def parse_amount(value: Any) -> Decimal:
    """
    Parse a numeric value, defaulting to zero.

    Accepts Decimal, int, float and numeric strings. None, empty or
    non-numeric strings, NaN and infinities all become 0.
    """
    if value is None:
        return ZERO

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO

    if not result.is_finite():
        return ZERO
    return result


def convert_to_base_currency(amount: Any, currency: Currency, rate: Any) -> Decimal:
    """
    Convert an amount to the base currency.

    EGP amounts are returned unchanged (the rate is ignored).
    SAR amounts are multiplied by the rate. Negative amounts propagate.
    """
    value = parse_amount(amount)
    if Currency(currency) is BASE_CURRENCY:
        return value
    return value * parse_amount(rate)


def compute_profit(cost: Money, sell: Money, rates: ExchangeRates) -> ProfitBreakdown:
    """
    Convert both legs of a sale and derive the profit.

    Args:
        cost: What the agency paid (converted with rates.buy_rate)
        sell: What the client paid (converted with rates.sell_rate)
        rates: Exchange rates fetched for this computation

    Returns:
        ProfitBreakdown; profit may be negative
    """
    cost_base = convert_to_base_currency(cost.amount, cost.currency, rates.buy_rate)
    sell_base = convert_to_base_currency(sell.amount, sell.currency, rates.sell_rate)
    return ProfitBreakdown(
        cost_base=cost_base,
        sell_base=sell_base,
        profit=sell_base - cost_base,
    )


def commission_rate(monthly_profit: Any) -> Decimal:
    """Tier rate matched by the monthly profit (0 below the first tier)."""
    profit = parse_amount(monthly_profit)
    for lower_bound, rate in COMMISSION_TIERS:
        if profit >= lower_bound:
            return rate
    return ZERO


def calculate_commission(monthly_profit: Any) -> Decimal:
    """
    Commission for one employee's cumulative monthly profit.

    The matched tier rate multiplies the entire profit:
    4999.99 -> 0, 5000 -> 250, 25000 -> 6250.
    """
    profit = parse_amount(monthly_profit)
    return profit * commission_rate(profit)


def total_salary(fixed_salary: Any, monthly_profit: Any) -> Decimal:
    """Fixed salary (0 when unset) plus the month's commission."""
    return parse_amount(fixed_salary) + calculate_commission(monthly_profit)
