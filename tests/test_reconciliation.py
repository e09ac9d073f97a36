from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from perfumaria.infra.models import ReceivableStatus
from perfumaria.services.errors import PaymentExceedsOutstanding
from perfumaria.services.receivables import (
    derive_status,
    ensure_payment_fits,
    outstanding_balance,
)

TODAY = date(2026, 3, 10)
PAST = date(2026, 3, 1)
FUTURE = date(2026, 4, 1)


def test_outstanding_subtracts_payments():
    assert outstanding_balance(Decimal("100.00"), [Decimal("40.00")]) == Decimal("60.00")


def test_outstanding_never_negative():
    assert outstanding_balance(Decimal("100.00"), [Decimal("80.00"), Decimal("30.00")]) == Decimal("0.00")


def test_outstanding_without_payments_is_original():
    assert outstanding_balance(Decimal("126.67"), []) == Decimal("126.67")


def test_paid_in_full_past_due_is_paid_not_overdue():
    # 300 vencida, paga 300 -> paid
    status = derive_status(Decimal("300.00"), [Decimal("300.00")], PAST, TODAY)
    assert status == ReceivableStatus.PAID


def test_partial_payment_before_due_date():
    status = derive_status(Decimal("100.00"), [Decimal("40.00")], FUTURE, TODAY)
    assert status == ReceivableStatus.PARTIAL


def test_partial_payment_after_due_date_is_overdue():
    status = derive_status(Decimal("100.00"), [Decimal("40.00")], PAST, TODAY)
    assert status == ReceivableStatus.OVERDUE


def test_no_payment_not_due_is_open():
    assert derive_status(Decimal("100.00"), [], FUTURE, TODAY) == ReceivableStatus.OPEN


def test_due_today_is_not_overdue():
    assert derive_status(Decimal("100.00"), [], TODAY, TODAY) == ReceivableStatus.OPEN


def test_overpaid_is_paid():
    status = derive_status(Decimal("100.00"), [Decimal("60.00"), Decimal("40.01")], PAST, TODAY)
    assert status == ReceivableStatus.PAID


def test_payment_within_cent_tolerance_is_accepted():
    assert ensure_payment_fits(Decimal("60.00"), Decimal("60.01")) == Decimal("60.01")


def test_payment_above_tolerance_is_rejected():
    with pytest.raises(PaymentExceedsOutstanding):
        ensure_payment_fits(Decimal("60.00"), Decimal("60.02"))


def test_payment_on_settled_receivable_is_rejected():
    with pytest.raises(PaymentExceedsOutstanding):
        ensure_payment_fits(Decimal("0.00"), Decimal("1.00"))


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_payment_must_be_positive(amount):
    with pytest.raises(ValueError):
        ensure_payment_fits(Decimal("60.00"), amount)


def test_sub_cent_payment_is_rejected_before_rounding():
    # 60.014 arredondaria para 60.01 e passaria no teto
    with pytest.raises(ValueError):
        ensure_payment_fits(Decimal("60.00"), Decimal("60.014"))
    with pytest.raises(ValueError):
        ensure_payment_fits(Decimal("100.00"), Decimal("10.005"))
