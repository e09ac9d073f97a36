from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.dialects import postgresql

from perfumaria.infra.models import PaymentType
from perfumaria.services.errors import PaymentExceedsOutstanding
from perfumaria.services.payments_service import receivable_for_update, register_payment
from perfumaria.services.sales_service import SaleLineInput, create_sale, products_for_update


def _pg_sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def test_payment_locks_receivable_row():
    sql = _pg_sql(receivable_for_update(1))
    assert "FOR UPDATE OF receivables" in sql


def test_sale_locks_product_rows_in_id_order():
    sql = _pg_sql(products_for_update([2, 1]))
    assert "FOR UPDATE" in sql
    assert "ORDER BY products.id ASC" in sql


def test_locked_loads_see_rows_changed_by_other_requests(db_session, make_product, make_customer):
    p = make_product(price="300.00", stock=5)
    c = make_customer()

    # outra request baixou o estoque; a sessão ainda tem o valor antigo em memória
    db_session.connection().exec_driver_sql(
        "UPDATE products SET stock_quantity = 1 WHERE id = ?", (p.id,)
    )
    assert p.stock_quantity == 5

    sale = create_sale(
        db_session,
        lines=[SaleLineInput(product_id=p.id, quantity=1)],
        customer_id=c.id,
        payment_type=PaymentType.CREDIT,
        installments_count=1,
        sale_date=date(2026, 1, 15),
    )
    assert p.stock_quantity == 0

    # outra request já quitou a parcela
    r = sale.receivables[0]
    db_session.connection().exec_driver_sql(
        "INSERT INTO payments (receivable_id, sale_id, customer_id, amount, payment_date, method)"
        " VALUES (?, ?, ?, 300.00, '2026-01-16', 'cash')",
        (r.id, sale.id, c.id),
    )

    with pytest.raises(PaymentExceedsOutstanding):
        register_payment(db_session, r.id, amount=Decimal("300.00"), payment_date=date(2026, 1, 16))
