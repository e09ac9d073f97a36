# perfumaria/services/catalog_service.py
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.orm import Session, selectinload

from perfumaria.infra.models import (
    CustomerORM,
    ExpenseORM,
    ExpenseType,
    ProductORM,
    ReceivableORM,
    SaleORM,
)
from perfumaria.services.metrics import (
    ExpenseSummary,
    StockSummary,
    expense_summary,
    outstanding_by_customer,
    purchases_by_customer,
    stock_summary,
)
from perfumaria.services.money import ZERO, money_sum

LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))

STOCK_FILTERS = {"all", "in_stock", "low_stock", "out_of_stock"}
PRODUCT_SORTS = {"name", "brand", "stock", "sale_price"}
DEBT_FILTERS = {"all", "with-debt", "no-debt"}
CUSTOMER_SORTS = {"name", "purchases-high", "purchases-low", "pending-high", "pending-low"}


def _check_page(page: int, page_size: int) -> None:
    if page < 1:
        raise ValueError("page deve ser >= 1")
    if page_size < 1 or page_size > 200:
        raise ValueError("page_size deve estar entre 1 e 200")


def _slice(rows: list, page: int, page_size: int) -> list:
    start = (page - 1) * page_size
    return rows[start:start + page_size]


# produtos
def _matches_stock(p: ProductORM, stock_filter: str) -> bool:
    if stock_filter == "in_stock":
        return p.stock_quantity > 0
    if stock_filter == "low_stock":
        return 0 < p.stock_quantity <= LOW_STOCK_THRESHOLD
    if stock_filter == "out_of_stock":
        return p.stock_quantity == 0
    return True


def active_products(db: Session) -> List[ProductORM]:
    stmt = select(ProductORM).where(ProductORM.is_active.is_(True)).order_by(ProductORM.name.asc())
    return list(db.execute(stmt).scalars().all())


def list_products(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 10,
    search: Optional[str] = None,
    stock_filter: str = "all",
    sort_by: str = "name",
) -> Tuple[List[ProductORM], int]:
    _check_page(page, page_size)
    if stock_filter not in STOCK_FILTERS:
        raise ValueError(f"stock_filter inválido ({'|'.join(sorted(STOCK_FILTERS))}).")
    if sort_by not in PRODUCT_SORTS:
        raise ValueError(f"sort_by inválido ({'|'.join(sorted(PRODUCT_SORTS))}).")

    stmt = select(ProductORM).where(ProductORM.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(or_(ProductORM.name.ilike(like), ProductORM.brand.ilike(like)))

    rows = [p for p in db.execute(stmt).scalars().all() if _matches_stock(p, stock_filter)]

    # ordenação
    if sort_by == "name":
        rows.sort(key=lambda p: (p.name.lower(), p.id))
    elif sort_by == "brand":
        rows.sort(key=lambda p: (p.brand.lower(), p.id))
    elif sort_by == "stock":
        rows.sort(key=lambda p: (-p.stock_quantity, p.id))
    elif sort_by == "sale_price":
        rows.sort(key=lambda p: (-p.sale_price, p.id))

    return _slice(rows, page, page_size), len(rows)


def products_summary(db: Session) -> StockSummary:
    return stock_summary(active_products(db))


# clientes
@dataclass(frozen=True)
class CustomerRow:
    customer: CustomerORM
    total_purchases: Decimal
    pending_amount: Decimal


@dataclass(frozen=True)
class CustomersSummary:
    total_to_receive: Decimal
    customers_with_debt: int


def customer_balances(db: Session, customer_ids: Optional[List[int]] = None):
    """
    (compras por cliente, saldo devedor por cliente)
    """
    sales_stmt = select(SaleORM).where(SaleORM.customer_id.is_not(None))
    rec_stmt = (
        select(ReceivableORM)
        .options(selectinload(ReceivableORM.payments))
        .where(ReceivableORM.customer_id.is_not(None))
    )
    if customer_ids is not None:
        sales_stmt = sales_stmt.where(SaleORM.customer_id.in_(customer_ids))
        rec_stmt = rec_stmt.where(ReceivableORM.customer_id.in_(customer_ids))

    purchases = purchases_by_customer(db.execute(sales_stmt).scalars().all())
    pending = outstanding_by_customer(db.execute(rec_stmt).scalars().all())
    return purchases, pending


def list_customers(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 10,
    search: Optional[str] = None,
    debt_filter: str = "all",
    sort_by: str = "name",
) -> Tuple[List[CustomerRow], int, CustomersSummary]:
    _check_page(page, page_size)
    if debt_filter not in DEBT_FILTERS:
        raise ValueError(f"debt_filter inválido ({'|'.join(sorted(DEBT_FILTERS))}).")
    if sort_by not in CUSTOMER_SORTS:
        raise ValueError(f"sort_by inválido ({'|'.join(sorted(CUSTOMER_SORTS))}).")

    customers = db.execute(
        select(CustomerORM).where(CustomerORM.is_active.is_(True))
    ).scalars().all()
    purchases, pending = customer_balances(db)

    all_rows = [
        CustomerRow(c, purchases.get(c.id, ZERO), pending.get(c.id, ZERO))
        for c in customers
    ]

    summary = CustomersSummary(
        total_to_receive=money_sum(r.pending_amount for r in all_rows),
        customers_with_debt=sum(1 for r in all_rows if r.pending_amount > ZERO),
    )

    rows = all_rows
    if search:
        term = search.strip().lower()
        rows = [
            r for r in rows
            if term in r.customer.name.lower()
            or term in (r.customer.phone or "")
            or term in (r.customer.cpf or "")
        ]

    if debt_filter == "with-debt":
        rows = [r for r in rows if r.pending_amount > ZERO]
    elif debt_filter == "no-debt":
        rows = [r for r in rows if r.pending_amount == ZERO]

    if sort_by == "name":
        rows.sort(key=lambda r: (r.customer.name.lower(), r.customer.id))
    elif sort_by == "purchases-high":
        rows.sort(key=lambda r: (-r.total_purchases, r.customer.id))
    elif sort_by == "purchases-low":
        rows.sort(key=lambda r: (r.total_purchases, r.customer.id))
    elif sort_by == "pending-high":
        rows.sort(key=lambda r: (-r.pending_amount, r.customer.id))
    elif sort_by == "pending-low":
        rows.sort(key=lambda r: (r.pending_amount, r.customer.id))

    return _slice(rows, page, page_size), len(rows), summary


# despesas
def _filter_expenses(
    db: Session,
    *,
    search: Optional[str] = None,
    type: Optional[ExpenseType] = None,
    is_paid: Optional[bool] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[ExpenseORM]:
    stmt = select(ExpenseORM)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(or_(ExpenseORM.description.ilike(like), ExpenseORM.category.ilike(like)))
    if type is not None:
        stmt = stmt.where(ExpenseORM.type == type)
    if is_paid is not None:
        stmt = stmt.where(ExpenseORM.is_paid.is_(is_paid))
    if date_from is not None:
        stmt = stmt.where(ExpenseORM.expense_date >= date_from)
    if date_to is not None:
        stmt = stmt.where(ExpenseORM.expense_date <= date_to)

    stmt = stmt.order_by(ExpenseORM.expense_date.desc(), ExpenseORM.id.desc())
    return list(db.execute(stmt).scalars().all())


def list_expenses(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 10,
    **filters,
) -> Tuple[List[ExpenseORM], int]:
    _check_page(page, page_size)
    rows = _filter_expenses(db, **filters)
    return _slice(rows, page, page_size), len(rows)


def expenses_summary(db: Session, **filters) -> ExpenseSummary:
    return expense_summary(_filter_expenses(db, **filters))
