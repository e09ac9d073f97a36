from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from perfumaria.services.errors import InstallmentSumMismatch
from perfumaria.services.pricing import (
    CartLine,
    InstallmentPlan,
    cart_totals,
    split_installments,
    validate_installments,
)


def test_cart_totals_with_discount():
    items = [
        CartLine(product_id=1, quantity=2, unit_price=Decimal("450.00")),
        CartLine(product_id=2, quantity=1, unit_price=Decimal("100.00")),
    ]
    t = cart_totals(items, Decimal("10"))
    assert t.subtotal == Decimal("1000.00")
    assert t.discount == Decimal("100.00")
    assert t.total == Decimal("900.00")


def test_cart_totals_rejects_discount_above_100():
    with pytest.raises(ValueError):
        cart_totals([CartLine(product_id=1, quantity=1, unit_price=Decimal("10"))], Decimal("101"))


def test_even_split_monthly_due_dates():
    plan = split_installments(Decimal("900.00"), 3, date(2026, 1, 15))
    assert [p.amount for p in plan] == [Decimal("300.00")] * 3
    assert [p.due_date for p in plan] == [date(2026, 2, 15), date(2026, 3, 15), date(2026, 4, 15)]
    assert [p.number for p in plan] == [1, 2, 3]


def test_split_rounding_goes_to_last_installment():
    plan = split_installments(Decimal("100.00"), 3, date(2026, 1, 15))
    assert [p.amount for p in plan] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(p.amount for p in plan) == Decimal("100.00")


def test_split_month_end():
    # 31/01 + 1 mês -> 28/02
    plan = split_installments(Decimal("200.00"), 2, date(2026, 1, 31))
    assert plan[0].due_date == date(2026, 2, 28)
    assert plan[1].due_date == date(2026, 3, 31)


@pytest.mark.parametrize("count", [0, 13])
def test_split_count_bounds(count):
    with pytest.raises(ValueError):
        split_installments(Decimal("100.00"), count, date(2026, 1, 1))


def test_manual_plan_matching_total_is_valid():
    plan = [
        InstallmentPlan(1, date(2026, 2, 10), Decimal("500.00")),
        InstallmentPlan(2, date(2026, 3, 10), Decimal("400.00")),
    ]
    validate_installments(plan, Decimal("900.00"))


def test_manual_plan_within_tolerance_is_valid():
    plan = [
        InstallmentPlan(1, date(2026, 2, 10), Decimal("450.00")),
        InstallmentPlan(2, date(2026, 3, 10), Decimal("449.99")),
    ]
    validate_installments(plan, Decimal("900.00"))


def test_manual_plan_sum_mismatch():
    plan = [
        InstallmentPlan(1, date(2026, 2, 10), Decimal("500.00")),
        InstallmentPlan(2, date(2026, 3, 10), Decimal("300.00")),
    ]
    with pytest.raises(InstallmentSumMismatch):
        validate_installments(plan, Decimal("900.00"))


def test_manual_plan_rejects_zero_amount():
    plan = [
        InstallmentPlan(1, date(2026, 2, 10), Decimal("900.00")),
        InstallmentPlan(2, date(2026, 3, 10), Decimal("0.00")),
    ]
    with pytest.raises(ValueError):
        validate_installments(plan, Decimal("900.00"))
