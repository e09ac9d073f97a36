from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.api.presenters import receivable_detail_out, receivable_out
from perfumaria.infra.models import ReceivableStatus
from perfumaria.schemas.receivables import (
    PaymentCreate,
    PaymentOut,
    PaymentResultOut,
    ReceivableDetailOut,
    ReceivablesSummaryOut,
)
from perfumaria.services.payments_service import (
    get_receivable_details,
    list_receivables,
    register_payment,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=dict)
def list_receivables_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None, description="nome do cliente"),
    customer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="open|partial|overdue|paid"),
    include_paid: bool = Query(True),
):
    with handle_errors("carregar contas a receber", logger):
        st = ReceivableStatus(status) if status is not None else None
        rows, total, summary = list_receivables(
            db,
            page=page,
            page_size=page_size,
            search=search,
            customer_id=customer_id,
            status=st,
            include_paid=include_paid,
        )

    return {
        "items": [receivable_out(row.receivable, row.reconciliation) for row in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "summary": ReceivablesSummaryOut.model_validate(summary),
    }


@router.get("/{receivable_id}", response_model=ReceivableDetailOut)
def get_receivable_endpoint(receivable_id: int, db: Session = DBSession):
    with handle_errors("carregar detalhes", logger):
        r, rec, items = get_receivable_details(db, receivable_id)
    return receivable_detail_out(r, rec, items)


@router.post("/{receivable_id}/payments", response_model=PaymentResultOut, status_code=201)
def register_payment_endpoint(receivable_id: int, payload: PaymentCreate, db: Session = DBSession):
    with handle_errors("registrar pagamento", logger):
        payment, rec = register_payment(
            db,
            receivable_id,
            amount=payload.amount,
            payment_date=payload.payment_date,
            method=payload.method,
            notes=payload.notes,
        )

    return PaymentResultOut(
        payment=PaymentOut.model_validate(payment),
        receivable=receivable_out(payment.receivable, rec),
    )
