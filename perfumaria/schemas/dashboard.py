from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import date

from perfumaria.schemas.receivables import ReceivableOut
from perfumaria.schemas.sales import SaleOut


class MetricsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sales_total: Decimal
    sales_count: int
    received_total: Decimal
    receivables_outstanding: Decimal
    stock_units: int
    stock_value: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    margin_percent: Decimal
    break_even: Decimal


class DashboardOut(BaseModel):
    date_from: Optional[date]
    date_to: Optional[date]
    metrics: MetricsOut
    active_customers: int
    recent_sales: List[SaleOut]
    upcoming_receivables: List[ReceivableOut]
