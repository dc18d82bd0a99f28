"""
Tests for currency conversion, profit and tiered commission.

Covers:
- convert_to_base_currency for EGP and SAR
- compute_profit leg/rate pairing
- calculate_commission tier boundaries (single rate on the whole profit)
- total_salary and parse_amount defaults
"""

from decimal import Decimal

import pytest

from travelcrm.models import Currency
from travelcrm.services.calculator import (
    ExchangeRates,
    Money,
    calculate_commission,
    commission_rate,
    compute_profit,
    convert_to_base_currency,
    parse_amount,
    total_salary,
)


def _rates(buy="8.0", sell="8.5"):
    return ExchangeRates(buy_rate=Decimal(buy), sell_rate=Decimal(sell), version=1)


# ── convert_to_base_currency ──────────────────────────────


class TestConvertToBaseCurrency:
    def test_egp_ignores_rate(self):
        assert convert_to_base_currency(Decimal("1200"), Currency.EGP, Decimal("99")) == Decimal("1200")

    def test_sar_multiplies_by_rate(self):
        assert convert_to_base_currency(Decimal("100"), Currency.SAR, Decimal("8.0")) == Decimal("800")

    def test_accepts_raw_values(self):
        assert convert_to_base_currency("100", "SAR", "8") == Decimal("800")

    def test_negative_amount_propagates(self):
        assert convert_to_base_currency(Decimal("-50"), Currency.SAR, Decimal("2")) == Decimal("-100")

    def test_missing_rate_is_zero(self):
        assert convert_to_base_currency(Decimal("100"), Currency.SAR, None) == Decimal("0")


# ── compute_profit ────────────────────────────────────────


class TestComputeProfit:
    def test_sar_cost_egp_sell(self):
        breakdown = compute_profit(
            Money(Decimal("100"), Currency.SAR),
            Money(Decimal("1200"), Currency.EGP),
            _rates(buy="8.0"),
        )
        assert breakdown.cost_base == Decimal("800")
        assert breakdown.sell_base == Decimal("1200")
        assert breakdown.profit == Decimal("400")

    def test_sell_leg_uses_sell_rate(self):
        breakdown = compute_profit(
            Money(Decimal("100"), Currency.SAR),
            Money(Decimal("100"), Currency.SAR),
            _rates(buy="8.0", sell="8.5"),
        )
        assert breakdown.profit == Decimal("50")

    def test_loss_is_negative(self):
        breakdown = compute_profit(
            Money(Decimal("1500"), Currency.EGP),
            Money(Decimal("1000"), Currency.EGP),
            _rates(),
        )
        assert breakdown.profit == Decimal("-500")

    def test_rates_ignored_for_egp_only_sale(self):
        breakdown = compute_profit(
            Money(Decimal("700"), Currency.EGP),
            Money(Decimal("1000"), Currency.EGP),
            _rates(buy="0", sell="0"),
        )
        assert breakdown.profit == Decimal("300")


# ── calculate_commission ──────────────────────────────────


class TestCalculateCommission:
    @pytest.mark.parametrize(
        "profit, expected",
        [
            ("0", "0"),
            ("4999.99", "0"),
            ("5000", "250"),
            ("9999.99", "499.9995"),
            ("10000", "1000"),
            ("15000", "2250"),
            ("20000", "4000"),
            ("24999.99", "4999.998"),
            ("25000", "6250"),
            ("30000", "7500"),
        ],
    )
    def test_tier_boundaries(self, profit, expected):
        assert calculate_commission(Decimal(profit)) == Decimal(expected)

    def test_single_rate_applies_to_whole_profit(self):
        """Crossing a tier raises the rate on every pound, not just the excess."""
        assert calculate_commission(Decimal("12000")) == Decimal("1200")

    def test_negative_profit_earns_nothing(self):
        assert calculate_commission(Decimal("-3000")) == Decimal("0")

    def test_rate_lookup(self):
        assert commission_rate(Decimal("4999.99")) == Decimal("0")
        assert commission_rate(Decimal("12000")) == Decimal("0.10")
        assert commission_rate(Decimal("25000")) == Decimal("0.25")


# ── total_salary ──────────────────────────────────────────


class TestTotalSalary:
    def test_salary_plus_commission(self):
        assert total_salary(Decimal("3000"), Decimal("12000")) == Decimal("4200")

    def test_unset_salary_counts_as_zero(self):
        assert total_salary(None, Decimal("5000")) == Decimal("250")

    def test_below_first_tier(self):
        assert total_salary(Decimal("3000"), Decimal("100")) == Decimal("3000")


# ── parse_amount ──────────────────────────────────────────


class TestParseAmount:
    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "NaN", "inf", float("nan")])
    def test_unparseable_is_zero(self, value):
        assert parse_amount(value) == Decimal("0")

    def test_numeric_inputs(self):
        assert parse_amount("12.5") == Decimal("12.5")
        assert parse_amount(7) == Decimal("7")
        assert parse_amount(Decimal("3.25")) == Decimal("3.25")
