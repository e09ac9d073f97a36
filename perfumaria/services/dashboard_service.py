# perfumaria/services/dashboard_service.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, date
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from perfumaria.infra.models import (
    ExpenseORM,
    PaymentORM,
    ReceivableORM,
    SaleItemORM,
    SaleORM,
    SaleStatus,
)
from perfumaria.services.catalog_service import active_products
from perfumaria.services.metrics import DashboardMetrics, dashboard_metrics
from perfumaria.services.payments_service import ReceivableRow, upcoming_receivables

PERIODS = (
    "current-month",
    "next-month",
    "last-month",
    "current-quarter",
    "current-year",
    "all-time",
)


def _today() -> date:
    return datetime.now().date()


@dataclass(frozen=True)
class Dashboard:
    date_from: Optional[date]
    date_to: Optional[date]
    metrics: DashboardMetrics
    active_customers: int
    recent_sales: List[SaleORM]
    upcoming_receivables: List[ReceivableRow]


def resolve_period(period: str, today: date) -> Tuple[Optional[date], Optional[date]]:
    """
    converte o filtro de período da tela em (início, fim), ambos inclusivos.
    """
    month_start = today.replace(day=1)

    if period == "current-month":
        start = month_start
        return start, start + relativedelta(months=1, days=-1)
    if period == "next-month":
        start = month_start + relativedelta(months=1)
        return start, start + relativedelta(months=1, days=-1)
    if period == "last-month":
        start = month_start - relativedelta(months=1)
        return start, month_start - relativedelta(days=1)
    if period == "current-quarter":
        first_month = 3 * ((today.month - 1) // 3) + 1
        start = date(today.year, first_month, 1)
        return start, start + relativedelta(months=3, days=-1)
    if period == "current-year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if period == "all-time":
        return None, None

    raise ValueError(f"period inválido ({'|'.join(PERIODS)}).")


def build_dashboard(
    db: Session,
    *,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    today: Optional[date] = None,
    recent_limit: int = 5,
) -> Dashboard:
    today = today or _today()

    sales_stmt = select(SaleORM).options(
        selectinload(SaleORM.items).selectinload(SaleItemORM.product),
        selectinload(SaleORM.customer),
    )
    pay_stmt = select(PaymentORM)
    exp_stmt = select(ExpenseORM)

    if date_from is not None:
        sales_stmt = sales_stmt.where(SaleORM.sale_date >= date_from)
        pay_stmt = pay_stmt.where(PaymentORM.payment_date >= date_from)
        exp_stmt = exp_stmt.where(ExpenseORM.expense_date >= date_from)
    if date_to is not None:
        sales_stmt = sales_stmt.where(SaleORM.sale_date <= date_to)
        pay_stmt = pay_stmt.where(PaymentORM.payment_date <= date_to)
        exp_stmt = exp_stmt.where(ExpenseORM.expense_date <= date_to)

    sales = db.execute(
        sales_stmt.order_by(SaleORM.sale_date.desc(), SaleORM.id.desc())
    ).scalars().all()
    payments = db.execute(pay_stmt).scalars().all()
    expenses = db.execute(exp_stmt).scalars().all()

    # saldo a receber não depende do período: tudo que está em aberto hoje
    receivables = db.execute(
        select(ReceivableORM)
        .options(selectinload(ReceivableORM.payments))
        .where(ReceivableORM.voided_at.is_(None))
    ).scalars().all()

    metrics = dashboard_metrics(
        sales=sales,
        payments=payments,
        receivables=receivables,
        products=active_products(db),
        expenses=expenses,
    )

    active = [s for s in sales if s.status != SaleStatus.CANCELED]
    active_customers = len({s.customer_id for s in active if s.customer_id is not None})

    return Dashboard(
        date_from=date_from,
        date_to=date_to,
        metrics=metrics,
        active_customers=active_customers,
        recent_sales=active[:recent_limit],
        upcoming_receivables=upcoming_receivables(db, today=today, limit=recent_limit),
    )
