from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Query
from sqlalchemy.orm import Session

from perfumaria.api.deps import DBSession, handle_errors
from perfumaria.api.presenters import receivable_out, sale_out
from perfumaria.schemas.dashboard import DashboardOut, MetricsOut
from perfumaria.services.dashboard_service import build_dashboard, resolve_period

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=DashboardOut)
def dashboard(
    db: Session = DBSession,
    period: str = Query("current-month", description="current-month|next-month|last-month|current-quarter|current-year|all-time"),
    date_from: Optional[date] = Query(None, description="sobrepõe period"),
    date_to: Optional[date] = Query(None, description="sobrepõe period"),
):
    today = datetime.now().date()

    with handle_errors("carregar dashboard", logger):
        if date_from is None and date_to is None:
            date_from, date_to = resolve_period(period, today)
        elif date_from is not None and date_to is not None and date_from > date_to:
            raise ValueError("date_from deve ser <= date_to.")

        data = build_dashboard(db, date_from=date_from, date_to=date_to, today=today)

    return DashboardOut(
        date_from=data.date_from,
        date_to=data.date_to,
        metrics=MetricsOut.model_validate(data.metrics),
        active_customers=data.active_customers,
        recent_sales=[sale_out(s) for s in data.recent_sales],
        upcoming_receivables=[receivable_out(row.receivable, row.reconciliation) for row in data.upcoming_receivables],
    )
