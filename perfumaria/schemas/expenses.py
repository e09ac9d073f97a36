from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal
from datetime import date, datetime

from perfumaria.infra.models import ExpenseType


class ExpenseCreate(BaseModel):
    expense_date: date
    category: str = Field(min_length=1, max_length=60)
    description: str = Field(min_length=1, max_length=200)
    amount: Decimal = Field(gt=0)
    type: ExpenseType = ExpenseType.VARIABLE
    is_paid: bool = False


class ExpenseUpdate(BaseModel):
    expense_date: Optional[date] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=60)
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    type: Optional[ExpenseType] = None


class ExpensePay(BaseModel):
    paid_at: Optional[datetime] = None


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    expense_date: date
    category: str
    description: str
    amount: Decimal
    type: ExpenseType
    is_paid: bool
    paid_at: Optional[datetime]


class ExpensesSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: Decimal
    fixed: Decimal
    variable: Decimal
    paid: Decimal
    pending: Decimal
