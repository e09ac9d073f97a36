from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import date

from perfumaria.infra.models import PaymentMethod, ReceivableStatus


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    payment_date: Optional[date] = None
    method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = Field(default=None, max_length=500)


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    receivable_id: Optional[int]
    sale_id: int
    amount: Decimal
    payment_date: date
    method: PaymentMethod


class ReceivableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    sale_id: int
    customer_id: Optional[int]
    customer_name: Optional[str]
    sale_date: Optional[date]
    due_date: date
    installment: str  # "1/3"
    original_amount: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    status: ReceivableStatus
    voided: bool


class ReceivableItemOut(BaseModel):
    product_name: str
    quantity: int
    subtotal: Decimal


class ReceivableDetailOut(ReceivableOut):
    customer_phone: Optional[str]
    customer_cpf: Optional[str]
    sale_total: Optional[Decimal]
    items: List[ReceivableItemOut]
    payments: List[PaymentOut]


class PaymentResultOut(BaseModel):
    payment: PaymentOut
    receivable: ReceivableOut


class ReceivablesSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    total_open: Decimal
    total_overdue: Decimal
    total_outstanding: Decimal
