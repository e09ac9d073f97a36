from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.infra.models import CustomerORM
from perfumaria.schemas.customers import (
    CustomerCreate,
    CustomerListItem,
    CustomerOut,
    CustomerUpdate,
)
from perfumaria.services.catalog_service import customer_balances, list_customers
from perfumaria.services.money import ZERO

logger = logging.getLogger(__name__)

router = APIRouter()


def normalize_phone(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def normalize_cpf(cpf: Optional[str]) -> Optional[str]:
    if cpf is None:
        return None
    digits = "".join(ch for ch in cpf if ch.isdigit())
    return digits or None


def _get_or_404(db: Session, customer_id: int) -> CustomerORM:
    row = db.get(CustomerORM, customer_id)
    if not row or not row.is_active:
        raise HTTPException(status_code=404, detail="Cliente não encontrado.")
    return row


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = DBSession):
    with handle_errors("salvar cliente", logger):
        row = CustomerORM(
            name=payload.name.strip(),
            phone=normalize_phone(payload.phone),
            cpf=normalize_cpf(payload.cpf),
            notes=payload.notes,
            is_active=True,
        )
        db.add(row)
        db.flush()
    return row


@router.get("", response_model=dict)
def list_customers_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(None, description="nome, telefone ou CPF"),
    debt: str = Query("all", description="all|with-debt|no-debt"),
    sort_by: str = Query("name", description="name|purchases-high|purchases-low|pending-high|pending-low"),
):
    with handle_errors("carregar clientes", logger):
        rows, total, summary = list_customers(
            db,
            page=page,
            page_size=page_size,
            search=search,
            debt_filter=debt,
            sort_by=sort_by,
        )

    return {
        "items": [
            CustomerListItem(
                **CustomerOut.model_validate(r.customer).model_dump(),
                total_purchases=r.total_purchases,
                pending_amount=r.pending_amount,
            )
            for r in rows
        ],
        "total": total,
        "page": page,
        "page_size": page_size,
        "summary": {
            "total_to_receive": summary.total_to_receive,
            "customers_with_debt": summary.customers_with_debt,
        },
    }


@router.get("/{customer_id}", response_model=CustomerListItem)
def get_customer(customer_id: int, db: Session = DBSession):
    row = _get_or_404(db, customer_id)
    purchases, pending = customer_balances(db, [row.id])
    return CustomerListItem(
        **CustomerOut.model_validate(row).model_dump(),
        total_purchases=purchases.get(row.id, ZERO),
        pending_amount=pending.get(row.id, ZERO),
    )


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = DBSession):
    row = _get_or_404(db, customer_id)

    with handle_errors("salvar cliente", logger):
        if payload.name is not None:
            row.name = payload.name.strip()
        if payload.phone is not None:
            row.phone = normalize_phone(payload.phone)
        if payload.cpf is not None:
            row.cpf = normalize_cpf(payload.cpf)
        if payload.notes is not None:
            row.notes = payload.notes
        db.flush()
    return row


@router.delete("/{customer_id}", status_code=204)
def deactivate_customer(customer_id: int, db: Session = DBSession):
    row = _get_or_404(db, customer_id)
    with handle_errors("desativar cliente", logger):
        row.is_active = False
        db.flush()
