from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from decimal import Decimal
from datetime import date

from perfumaria.infra.models import PaymentMethod, PaymentType, SaleStatus
from perfumaria.schemas.receivables import PaymentOut, ReceivableOut
from perfumaria.services.pricing import MAX_INSTALLMENTS


class SaleLineIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)


class InstallmentIn(BaseModel):
    amount: Decimal = Field(gt=0)
    due_date: date


class SaleCreate(BaseModel):
    customer_id: Optional[int] = None
    items: List[SaleLineIn] = Field(min_length=1)

    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    payment_type: PaymentType = PaymentType.CASH  # cash e credit
    payment_method: PaymentMethod = PaymentMethod.CASH

    installments_count: Optional[int] = Field(default=None, ge=1, le=MAX_INSTALLMENTS)
    # plano editado manualmente; se vier, substitui a divisão automática
    installments: Optional[List[InstallmentIn]] = None

    sale_date: Optional[date] = None

    @model_validator(mode="after")
    def _credit_needs_installments(self):
        if self.payment_type == PaymentType.CREDIT and not (self.installments_count or self.installments):
            raise ValueError("Para crediário informe installments_count ou installments.")
        return self


class SaleItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    subtotal: Decimal


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    sale_date: date
    customer_id: Optional[int]
    customer_name: Optional[str]
    status: SaleStatus
    payment_type: PaymentType
    subtotal: Decimal
    discount_percent: Decimal
    discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    installments: int
    products: str


class SaleDetailOut(SaleOut):
    items: List[SaleItemOut]
    receivables: List[ReceivableOut]
    payments: List[PaymentOut]


class InstallmentPreviewIn(BaseModel):
    total: Decimal = Field(gt=0)
    installments_count: int = Field(ge=1, le=MAX_INSTALLMENTS)
    sale_date: Optional[date] = None


class InstallmentPreviewOut(BaseModel):
    number: int
    due_date: date
    amount: Decimal


class ReceiptOut(BaseModel):
    sale_id: int
    text: str
    whatsapp_url: Optional[str]
