from __future__ import annotations

from datetime import date
from decimal import Decimal

from freezegun import freeze_time
from sqlalchemy import func, select

from perfumaria.infra.models import (
    PaymentType,
    ProductORM,
    ReceivableStatus,
    SaleStatus,
)
from perfumaria.init_db import DEMO_CUSTOMERS, DEMO_PRODUCTS, seed_demo
from perfumaria.services.payments_service import refresh_receivable_statuses, register_payment
from perfumaria.services.sales_service import SaleLineInput, create_sale
from perfumaria.worker import run_once


def _credit_sale(db, product, customer, count=3):
    return create_sale(
        db,
        lines=[SaleLineInput(product_id=product.id, quantity=1)],
        customer_id=customer.id,
        payment_type=PaymentType.CREDIT,
        installments_count=count,
        sale_date=date(2026, 1, 15),
    )


def test_refresh_marks_overdue_and_skips_voided(db_session, make_product, make_customer):
    p = make_product(price="900.00")
    c = make_customer()
    sale = _credit_sale(db_session, p, c)
    r1, r2, r3 = sale.receivables

    with freeze_time("2026-01-20"):
        register_payment(db_session, r2.id, amount=Decimal("100.00"))
    assert r2.status == ReceivableStatus.PARTIAL

    # 1ª vence 15/02, 2ª 15/03
    changed = refresh_receivable_statuses(db_session, date(2026, 2, 20))
    assert changed == 1
    assert r1.status == ReceivableStatus.OVERDUE
    assert r2.status == ReceivableStatus.PARTIAL
    assert r3.status == ReceivableStatus.OPEN

    # nada mudou -> zero
    assert refresh_receivable_statuses(db_session, date(2026, 2, 20)) == 0

    changed = refresh_receivable_statuses(db_session, date(2026, 3, 20))
    assert changed == 1
    assert r2.status == ReceivableStatus.OVERDUE
    assert sale.status == SaleStatus.OPEN


def test_run_once_commits(db_session, make_product, make_customer):
    p = make_product(price="300.00")
    c = make_customer()
    sale = _credit_sale(db_session, p, c, count=1)

    with freeze_time("2026-03-01"):
        assert run_once(db_session) == 1
    assert sale.receivables[0].status == ReceivableStatus.OVERDUE


def test_seed_demo_only_once(db_session):
    created = seed_demo(db_session)
    assert created == len(DEMO_PRODUCTS) + len(DEMO_CUSTOMERS)
    assert seed_demo(db_session) == 0
    assert db_session.scalar(select(func.count(ProductORM.id))) == len(DEMO_PRODUCTS)
