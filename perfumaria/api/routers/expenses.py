from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.infra.models import ExpenseORM, ExpenseType
from perfumaria.schemas.expenses import (
    ExpenseCreate,
    ExpenseOut,
    ExpensePay,
    ExpensesSummaryOut,
    ExpenseUpdate,
)
from perfumaria.services.catalog_service import expenses_summary, list_expenses
from perfumaria.services.money import quantize_money

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_or_404(db: Session, expense_id: int) -> ExpenseORM:
    row = db.get(ExpenseORM, expense_id)
    if not row:
        raise HTTPException(status_code=404, detail="Despesa não encontrada.")
    return row


def _parse_type(type: Optional[str]) -> Optional[ExpenseType]:
    if type is None:
        return None
    try:
        return ExpenseType(type)
    except ValueError:
        raise HTTPException(status_code=400, detail="type inválido (fixed|variable).")


@router.post("", response_model=ExpenseOut, status_code=201)
def create_expense(payload: ExpenseCreate, db: Session = DBSession):
    with handle_errors("salvar despesa", logger):
        row = ExpenseORM(
            expense_date=payload.expense_date,
            category=payload.category.strip(),
            description=payload.description.strip(),
            amount=quantize_money(payload.amount),
            type=payload.type,
            is_paid=payload.is_paid,
            paid_at=datetime.now(timezone.utc) if payload.is_paid else None,
        )
        db.add(row)
        db.flush()
    return row


@router.get("", response_model=dict)
def list_expenses_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=200),
    search: Optional[str] = Query(default=None, description="descrição ou categoria"),
    type: Optional[str] = Query(default=None, description="fixed|variable"),
    is_paid: Optional[bool] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
):
    with handle_errors("carregar despesas", logger):
        items, total = list_expenses(
            db,
            page=page,
            page_size=page_size,
            search=search,
            type=_parse_type(type),
            is_paid=is_paid,
            date_from=date_from,
            date_to=date_to,
        )

    return {
        "items": [ExpenseOut.model_validate(e) for e in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/summary", response_model=ExpensesSummaryOut)
def expenses_summary_endpoint(
    db: Session = DBSession,
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
):
    with handle_errors("carregar despesas", logger):
        summary = expenses_summary(db, date_from=date_from, date_to=date_to)
    return ExpensesSummaryOut.model_validate(summary)


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, db: Session = DBSession):
    return _get_or_404(db, expense_id)


@router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(expense_id: int, payload: ExpenseUpdate, db: Session = DBSession):
    row = _get_or_404(db, expense_id)

    with handle_errors("salvar despesa", logger):
        if payload.expense_date is not None:
            row.expense_date = payload.expense_date
        if payload.category is not None:
            row.category = payload.category.strip()
        if payload.description is not None:
            row.description = payload.description.strip()
        if payload.amount is not None:
            row.amount = quantize_money(payload.amount)
        if payload.type is not None:
            row.type = payload.type
        db.flush()
    return row


@router.post("/{expense_id}/pay", response_model=ExpenseOut)
def pay_expense(expense_id: int, payload: Optional[ExpensePay] = None, db: Session = DBSession):
    row = _get_or_404(db, expense_id)

    # idempotente
    if row.is_paid:
        return row

    with handle_errors("salvar despesa", logger):
        row.is_paid = True
        row.paid_at = (payload.paid_at if payload else None) or datetime.now(timezone.utc)
        db.flush()
    return row


@router.delete("/{expense_id}", status_code=204)
def delete_expense(expense_id: int, db: Session = DBSession):
    row = _get_or_404(db, expense_id)
    with handle_errors("excluir despesa", logger):
        db.delete(row)
        db.flush()
