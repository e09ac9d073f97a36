from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=140)
    brand: str = Field(default="", max_length=80)
    size: str = Field(default="", max_length=40)  # ex.: 100ml

    purchase_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    sale_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    stock_quantity: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=140)
    brand: Optional[str] = Field(default=None, max_length=80)
    size: Optional[str] = Field(default=None, max_length=40)

    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    sale_price: Optional[Decimal] = Field(default=None, ge=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    brand: str
    size: str
    purchase_price: Decimal
    sale_price: Decimal
    stock_quantity: int
    is_active: bool


class ProductsSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_count: int
    units: int
    stock_value: Decimal
    invested_value: Decimal
    potential_profit: Decimal
