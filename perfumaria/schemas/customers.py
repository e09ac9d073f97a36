from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal


class CustomerCreate(BaseModel):
    name: str = Field(min_length=2, max_length=140)
    phone: str = Field(min_length=8, max_length=20)
    cpf: Optional[str] = Field(default=None, max_length=14)
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=140)
    phone: Optional[str] = Field(default=None, min_length=8, max_length=20)
    cpf: Optional[str] = Field(default=None, max_length=14)
    notes: Optional[str] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    cpf: Optional[str]
    notes: Optional[str]
    is_active: bool


class CustomerListItem(CustomerOut):
    total_purchases: Decimal
    pending_amount: Decimal
