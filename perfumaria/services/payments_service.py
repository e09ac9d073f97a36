# perfumaria/services/payments_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from perfumaria.infra.models import (
    CustomerORM,
    PaymentMethod,
    PaymentORM,
    ReceivableORM,
    ReceivableStatus,
    SaleItemORM,
    SaleORM,
    SaleStatus,
)
from perfumaria.services.errors import InvalidStateError, NotFoundError
from perfumaria.services.metrics import receivables_by_status
from perfumaria.services.money import ZERO, money_sum
from perfumaria.services.receivables import (
    Reconciliation,
    ensure_payment_fits,
    reconcile,
)
from perfumaria.services.sales_service import refresh_sale_status

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now().date()


@dataclass(frozen=True)
class ReceivableRow:
    receivable: ReceivableORM
    reconciliation: Reconciliation


@dataclass(frozen=True)
class ReceivablesSummary:
    total_open: Decimal
    total_overdue: Decimal
    total_outstanding: Decimal


def _receivable_query():
    return select(ReceivableORM).options(
        selectinload(ReceivableORM.payments),
        selectinload(ReceivableORM.customer),
        selectinload(ReceivableORM.sale),
    )


def receivable_for_update(receivable_id: int):
    # trava a parcela até o commit: dois pagamentos simultâneos leem o saldo em série
    return (
        _receivable_query()
        .where(ReceivableORM.id == receivable_id)
        .with_for_update(of=ReceivableORM)
        .execution_options(populate_existing=True)
    )


def get_receivable(db: Session, receivable_id: int, *, for_update: bool = False) -> ReceivableORM:
    if for_update:
        stmt = receivable_for_update(receivable_id)
    else:
        stmt = _receivable_query().where(ReceivableORM.id == receivable_id)
    r = db.execute(stmt).scalars().first()
    if not r:
        raise NotFoundError("Parcela não encontrada.")
    return r


def get_receivable_details(db: Session, receivable_id: int, today: Optional[date] = None):
    """
    parcela + pagamentos + itens da venda + dados do cliente.
    """
    r = get_receivable(db, receivable_id)
    stmt = (
        select(SaleItemORM)
        .options(selectinload(SaleItemORM.product))
        .where(SaleItemORM.sale_id == r.sale_id)
        .order_by(SaleItemORM.id.asc())
    )
    items = db.execute(stmt).scalars().all()
    return r, reconcile(r, today or _today()), list(items)


def register_payment(
    db: Session,
    receivable_id: int,
    *,
    amount: Decimal,
    payment_date: Optional[date] = None,
    method: PaymentMethod = PaymentMethod.CASH,
    notes: Optional[str] = None,
) -> Tuple[PaymentORM, Reconciliation]:
    """
    registra pagamento (total ou parcial) de uma parcela.
    rules:
      - parcela anulada / venda cancelada não recebe pagamento
      - valor > saldo em aberto + 0.01 é rejeitado
      - atualiza o cache de status da parcela e da venda
    """
    r = get_receivable(db, receivable_id, for_update=True)
    today = _today()

    if r.is_voided or r.sale.status == SaleStatus.CANCELED:
        raise InvalidStateError("Venda cancelada: não é possível pagar parcelas.")

    before = reconcile(r, today)
    value = ensure_payment_fits(before.outstanding, amount)

    payment = PaymentORM(
        receivable=r,
        sale=r.sale,
        customer_id=r.customer_id,
        amount=value,
        payment_date=payment_date or today,
        method=method,
        notes=notes,
    )
    db.add(payment)
    db.flush()

    after = reconcile(r, today)
    r.status = after.status
    refresh_sale_status(r.sale, today)
    db.flush()

    logger.info(
        "pagamento %s na parcela %s (venda %s): valor=%s saldo=%s status=%s",
        payment.id, r.id, r.sale_id, value, after.outstanding, after.status.value,
    )
    return payment, after


def list_receivables(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 10,
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
    status: Optional[ReceivableStatus] = None,
    include_paid: bool = True,
    today: Optional[date] = None,
) -> Tuple[List[ReceivableRow], int, ReceivablesSummary]:
    """
    lista parcelas com status derivado. O filtro por status é aplicado depois
    da conciliação, já que a coluna status é só cache.
    """
    if page < 1:
        raise ValueError("page deve ser >= 1")
    if page_size < 1 or page_size > 200:
        raise ValueError("page_size deve estar entre 1 e 200")

    today = today or _today()

    stmt = (
        _receivable_query()
        .outerjoin(CustomerORM, ReceivableORM.customer_id == CustomerORM.id)
        .where(ReceivableORM.voided_at.is_(None))
    )
    if search:
        stmt = stmt.where(CustomerORM.name.ilike(f"%{search.strip()}%"))
    if customer_id is not None:
        stmt = stmt.where(ReceivableORM.customer_id == customer_id)

    stmt = stmt.order_by(ReceivableORM.due_date.asc(), ReceivableORM.id.asc())
    receivables = db.execute(stmt).scalars().all()

    rows = [ReceivableRow(r, reconcile(r, today)) for r in receivables]

    by_status = receivables_by_status(
        (row.reconciliation.status, row.reconciliation.outstanding) for row in rows
    )
    summary = ReceivablesSummary(
        total_open=money_sum(
            [by_status[ReceivableStatus.OPEN], by_status[ReceivableStatus.PARTIAL]]
        ),
        total_overdue=by_status[ReceivableStatus.OVERDUE],
        total_outstanding=money_sum(by_status.values()),
    )

    if status is not None:
        rows = [row for row in rows if row.reconciliation.status == status]
    elif not include_paid:
        rows = [row for row in rows if row.reconciliation.status != ReceivableStatus.PAID]

    total = len(rows)
    start = (page - 1) * page_size
    return rows[start:start + page_size], total, summary


def upcoming_receivables(db: Session, *, today: Optional[date] = None, limit: int = 5) -> List[ReceivableRow]:
    """
    próximas parcelas em aberto (vencimento >= hoje), para o dashboard.
    """
    today = today or _today()
    stmt = (
        _receivable_query()
        .join(SaleORM, ReceivableORM.sale_id == SaleORM.id)
        .where(
            ReceivableORM.voided_at.is_(None),
            ReceivableORM.due_date >= today,
            SaleORM.status != SaleStatus.CANCELED,
        )
        .order_by(ReceivableORM.due_date.asc(), ReceivableORM.id.asc())
    )
    rows: List[ReceivableRow] = []
    for r in db.execute(stmt).scalars():
        rec = reconcile(r, today)
        if rec.outstanding <= ZERO:
            continue
        rows.append(ReceivableRow(r, rec))
        if len(rows) >= limit:
            break
    return rows


def refresh_receivable_statuses(db: Session, today: Optional[date] = None) -> int:
    """
    recalcula o cache de status das parcelas não quitadas e das vendas abertas.
    Retorna quantas parcelas mudaram de status.
    """
    today = today or _today()
    stmt = (
        _receivable_query()
        .where(
            ReceivableORM.voided_at.is_(None),
            ReceivableORM.status != ReceivableStatus.PAID,
        )
        .order_by(ReceivableORM.id.asc())
    )

    changed = 0
    sales = {}
    for r in db.execute(stmt).scalars():
        new_status = reconcile(r, today).status
        if new_status != r.status:
            r.status = new_status
            changed += 1
        sales[r.sale_id] = r.sale

    for sale in sales.values():
        refresh_sale_status(sale, today)

    db.flush()
    return changed
