from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.api.presenters import sale_detail_out, sale_out
from perfumaria.infra.models import PaymentType, SaleStatus
from perfumaria.schemas.sales import (
    InstallmentPreviewIn,
    InstallmentPreviewOut,
    ReceiptOut,
    SaleCreate,
    SaleDetailOut,
    SaleOut,
)
from perfumaria.services.pricing import InstallmentPlan
from perfumaria.services.sales_service import (
    SaleLineInput,
    build_receipt,
    cancel_sale,
    create_sale,
    get_sale,
    list_sales,
    preview_installments,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _today() -> date:
    return datetime.now().date()


@router.post("", response_model=SaleDetailOut, status_code=201)
def create_sale_endpoint(payload: SaleCreate, db: Session = DBSession):
    plan = None
    if payload.installments:
        plan = [
            InstallmentPlan(number=n, due_date=inst.due_date, amount=inst.amount)
            for n, inst in enumerate(payload.installments, start=1)
        ]

    with handle_errors("salvar venda", logger):
        sale = create_sale(
            db,
            lines=[
                SaleLineInput(product_id=i.product_id, quantity=i.quantity, unit_price=i.unit_price)
                for i in payload.items
            ],
            customer_id=payload.customer_id,
            discount_percent=payload.discount_percent,
            payment_type=payload.payment_type,
            payment_method=payload.payment_method,
            installments_count=payload.installments_count,
            installments=plan,
            sale_date=payload.sale_date,
        )
        sale = get_sale(db, sale.id)

    return sale_detail_out(sale, _today())


@router.get("", response_model=dict)
def list_sales_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None, description="cliente ou produto"),
    customer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="open|paid|canceled"),
    payment_type: Optional[str] = Query(None, description="cash|credit"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
):
    with handle_errors("carregar vendas", logger):
        st = SaleStatus(status) if status is not None else None
        pt = PaymentType(payment_type) if payment_type is not None else None

        items, total = list_sales(
            db,
            page=page,
            page_size=page_size,
            search=search,
            customer_id=customer_id,
            status=st,
            payment_type=pt,
            date_from=date_from,
            date_to=date_to,
        )

    return {
        "items": [sale_out(s) for s in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("/installments/preview", response_model=list[InstallmentPreviewOut])
def preview_installments_endpoint(payload: InstallmentPreviewIn):
    try:
        plan = preview_installments(payload.total, payload.installments_count, payload.sale_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [InstallmentPreviewOut(number=p.number, due_date=p.due_date, amount=p.amount) for p in plan]


@router.get("/{sale_id}", response_model=SaleDetailOut)
def get_sale_endpoint(sale_id: int, db: Session = DBSession):
    with handle_errors("carregar venda", logger):
        sale = get_sale(db, sale_id)
    return sale_detail_out(sale, _today())


@router.post("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale_endpoint(sale_id: int, db: Session = DBSession):
    with handle_errors("cancelar venda", logger):
        sale = cancel_sale(db, sale_id)
    return sale_out(sale)


@router.get("/{sale_id}/receipt", response_model=ReceiptOut)
def sale_receipt(sale_id: int, db: Session = DBSession):
    with handle_errors("carregar venda", logger):
        sale = get_sale(db, sale_id)
    text, url = build_receipt(sale)
    return ReceiptOut(sale_id=sale.id, text=text, whatsapp_url=url)
