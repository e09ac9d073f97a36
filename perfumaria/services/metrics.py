"""
Agregações do dashboard e dos resumos das telas.

Funções puras sobre linhas já carregadas do banco; nada aqui abre sessão.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, Sequence

from perfumaria.infra.models import (
    ExpenseType,
    ReceivableStatus,
    SaleStatus,
)
from perfumaria.services.money import Number, ZERO, money_sum, quantize_money, to_decimal
from perfumaria.services.receivables import outstanding_balance


@dataclass(frozen=True)
class StockSummary:
    product_count: int
    units: int
    stock_value: Decimal
    invested_value: Decimal
    potential_profit: Decimal


@dataclass(frozen=True)
class ExpenseSummary:
    total: Decimal
    fixed: Decimal
    variable: Decimal
    paid: Decimal
    pending: Decimal


@dataclass(frozen=True)
class DashboardMetrics:
    sales_total: Decimal
    sales_count: int
    received_total: Decimal
    receivables_outstanding: Decimal
    stock_units: int
    stock_value: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    margin_percent: Decimal
    break_even: Decimal


def group_sum(
    rows: Iterable[Any],
    key: Callable[[Any], Hashable],
    value: Callable[[Any], Number],
) -> Dict[Hashable, Decimal]:
    acc: Dict[Hashable, Decimal] = defaultdict(lambda: ZERO)
    for row in rows:
        acc[key(row)] += to_decimal(value(row))
    return {k: quantize_money(v) for k, v in acc.items()}


def _active_sales(sales: Iterable[Any]) -> list:
    return [s for s in sales if s.status != SaleStatus.CANCELED]


def sales_total(sales: Iterable[Any]) -> Decimal:
    return money_sum(s.total_amount for s in _active_sales(sales))


def received_total(payments: Iterable[Any]) -> Decimal:
    return money_sum(p.amount for p in payments)


def receivable_outstanding(receivable: Any) -> Decimal:
    if receivable.voided_at is not None:
        return ZERO
    return outstanding_balance(receivable.amount, [p.amount for p in receivable.payments])


def receivables_outstanding_total(receivables: Iterable[Any]) -> Decimal:
    return money_sum(receivable_outstanding(r) for r in receivables)


def outstanding_by_customer(receivables: Iterable[Any]) -> Dict[Hashable, Decimal]:
    return group_sum(
        (r for r in receivables if r.customer_id is not None),
        key=lambda r: r.customer_id,
        value=receivable_outstanding,
    )


def purchases_by_customer(sales: Iterable[Any]) -> Dict[Hashable, Decimal]:
    return group_sum(
        (s for s in _active_sales(sales) if s.customer_id is not None),
        key=lambda s: s.customer_id,
        value=lambda s: s.total_amount,
    )


def stock_summary(products: Sequence[Any]) -> StockSummary:
    units = sum(int(p.stock_quantity or 0) for p in products)
    stock_value = money_sum(to_decimal(p.sale_price) * p.stock_quantity for p in products)
    invested = money_sum(to_decimal(p.purchase_price) * p.stock_quantity for p in products)
    return StockSummary(
        product_count=len(products),
        units=units,
        stock_value=stock_value,
        invested_value=invested,
        potential_profit=quantize_money(stock_value - invested),
    )


def cost_of_goods(sales: Iterable[Any]) -> Decimal:
    return money_sum(
        to_decimal(item.unit_cost) * item.quantity
        for s in _active_sales(sales)
        for item in s.items
    )


def margin_percent(gross_profit: Number, revenue: Number) -> Decimal:
    revenue = to_decimal(revenue)
    if revenue <= 0:
        return ZERO
    return quantize_money(to_decimal(gross_profit) / revenue * Decimal(100))


def expense_summary(expenses: Sequence[Any]) -> ExpenseSummary:
    return ExpenseSummary(
        total=money_sum(e.amount for e in expenses),
        fixed=money_sum(e.amount for e in expenses if e.type == ExpenseType.FIXED),
        variable=money_sum(e.amount for e in expenses if e.type == ExpenseType.VARIABLE),
        paid=money_sum(e.amount for e in expenses if e.is_paid),
        pending=money_sum(e.amount for e in expenses if not e.is_paid),
    )


def break_even(expenses: Iterable[Any]) -> Decimal:
    # ponto de equilíbrio = total de despesas do período
    return money_sum(e.amount for e in expenses)


def receivables_by_status(rows: Iterable[Any]) -> Dict[ReceivableStatus, Decimal]:
    """
    rows: pares (status derivado, saldo em aberto)
    """
    totals = {st: ZERO for st in ReceivableStatus}
    for status, outstanding in rows:
        totals[status] = quantize_money(totals[status] + to_decimal(outstanding))
    return totals


def dashboard_metrics(
    *,
    sales: Sequence[Any],
    payments: Sequence[Any],
    receivables: Sequence[Any],
    products: Sequence[Any],
    expenses: Sequence[Any],
) -> DashboardMetrics:
    revenue = sales_total(sales)
    cogs = cost_of_goods(sales)
    gross = quantize_money(revenue - cogs)
    stock = stock_summary(products)

    return DashboardMetrics(
        sales_total=revenue,
        sales_count=len(_active_sales(sales)),
        received_total=received_total(payments),
        receivables_outstanding=receivables_outstanding_total(receivables),
        stock_units=stock.units,
        stock_value=stock.stock_value,
        cost_of_goods=cogs,
        gross_profit=gross,
        margin_percent=margin_percent(gross, revenue),
        break_even=break_even(expenses),
    )
