from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace as NS

from perfumaria.infra.models import ExpenseType, ReceivableStatus, SaleStatus
from perfumaria.services.metrics import (
    break_even,
    cost_of_goods,
    dashboard_metrics,
    expense_summary,
    margin_percent,
    outstanding_by_customer,
    receivable_outstanding,
    receivables_by_status,
    sales_total,
    stock_summary,
)


def _sale(total, status=SaleStatus.OPEN, items=(), customer_id=1):
    return NS(total_amount=Decimal(total), status=status, items=list(items), customer_id=customer_id)


def _item(cost, qty):
    return NS(unit_cost=Decimal(cost), quantity=qty)


def _rec(amount, payments=(), customer_id=1, voided=False):
    return NS(
        amount=Decimal(amount),
        payments=[NS(amount=Decimal(p)) for p in payments],
        customer_id=customer_id,
        voided_at=datetime(2026, 1, 1) if voided else None,
    )


def test_sales_total_ignores_canceled():
    sales = [_sale("900.00"), _sale("340.00"), _sale("500.00", SaleStatus.CANCELED)]
    assert sales_total(sales) == Decimal("1240.00")


def test_cost_of_goods_uses_frozen_unit_cost():
    sales = [
        _sale("900.00", items=[_item("300.00", 2)]),
        _sale("500.00", SaleStatus.CANCELED, items=[_item("300.00", 1)]),
    ]
    assert cost_of_goods(sales) == Decimal("600.00")


def test_margin_percent():
    assert margin_percent(Decimal("300.00"), Decimal("900.00")) == Decimal("33.33")
    assert margin_percent(Decimal("0"), Decimal("0")) == Decimal("0")


def test_receivable_outstanding_voided_is_zero():
    assert receivable_outstanding(_rec("300.00", ["100.00"])) == Decimal("200.00")
    assert receivable_outstanding(_rec("300.00", ["100.00"], voided=True)) == Decimal("0")


def test_outstanding_by_customer():
    recs = [
        _rec("300.00", ["300.00"], customer_id=1),
        _rec("300.00", ["40.00"], customer_id=1),
        _rec("200.00", customer_id=2),
        _rec("100.00", customer_id=3, voided=True),
    ]
    assert outstanding_by_customer(recs) == {
        1: Decimal("260.00"),
        2: Decimal("200.00"),
        3: Decimal("0.00"),
    }


def test_stock_summary():
    products = [
        NS(stock_quantity=10, sale_price=Decimal("500.00"), purchase_price=Decimal("300.00")),
        NS(stock_quantity=0, sale_price=Decimal("340.00"), purchase_price=Decimal("200.00")),
    ]
    s = stock_summary(products)
    assert s.units == 10
    assert s.stock_value == Decimal("5000.00")
    assert s.invested_value == Decimal("3000.00")
    assert s.potential_profit == Decimal("2000.00")


def test_expense_summary_and_break_even():
    expenses = [
        NS(amount=Decimal("1500.00"), type=ExpenseType.FIXED, is_paid=True),
        NS(amount=Decimal("250.50"), type=ExpenseType.VARIABLE, is_paid=False),
    ]
    s = expense_summary(expenses)
    assert s.total == Decimal("1750.50")
    assert s.fixed == Decimal("1500.00")
    assert s.pending == Decimal("250.50")
    assert break_even(expenses) == Decimal("1750.50")


def test_receivables_by_status():
    totals = receivables_by_status([
        (ReceivableStatus.OVERDUE, Decimal("260.00")),
        (ReceivableStatus.OPEN, Decimal("300.00")),
        (ReceivableStatus.OPEN, Decimal("300.00")),
    ])
    assert totals[ReceivableStatus.OPEN] == Decimal("600.00")
    assert totals[ReceivableStatus.OVERDUE] == Decimal("260.00")
    assert totals[ReceivableStatus.PAID] == Decimal("0")


def test_dashboard_metrics():
    m = dashboard_metrics(
        sales=[
            _sale("900.00", items=[_item("300.00", 2)]),
            _sale("340.00", items=[_item("200.00", 1)]),
            _sale("500.00", SaleStatus.CANCELED, items=[_item("300.00", 1)]),
        ],
        payments=[NS(amount=Decimal("340.00")), NS(amount=Decimal("300.00"))],
        receivables=[_rec("300.00", ["300.00"]), _rec("300.00"), _rec("300.00")],
        products=[NS(stock_quantity=5, sale_price=Decimal("500.00"), purchase_price=Decimal("300.00"))],
        expenses=[NS(amount=Decimal("200.00"), type=ExpenseType.FIXED, is_paid=True)],
    )
    assert m.sales_total == Decimal("1240.00")
    assert m.sales_count == 2
    assert m.received_total == Decimal("640.00")
    assert m.receivables_outstanding == Decimal("600.00")
    assert m.cost_of_goods == Decimal("800.00")
    assert m.gross_profit == Decimal("440.00")
    assert m.margin_percent == Decimal("35.48")
    assert m.stock_units == 5
    assert m.stock_value == Decimal("2500.00")
    assert m.break_even == Decimal("200.00")
