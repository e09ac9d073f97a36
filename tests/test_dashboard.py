from __future__ import annotations

from datetime import date

import pytest
from freezegun import freeze_time

from conftest import D
from perfumaria.services.dashboard_service import resolve_period

TODAY = date(2026, 2, 10)


@pytest.mark.parametrize(
    "period, expected",
    [
        ("current-month", (date(2026, 2, 1), date(2026, 2, 28))),
        ("next-month", (date(2026, 3, 1), date(2026, 3, 31))),
        ("last-month", (date(2026, 1, 1), date(2026, 1, 31))),
        ("current-quarter", (date(2026, 1, 1), date(2026, 3, 31))),
        ("current-year", (date(2026, 1, 1), date(2026, 12, 31))),
        ("all-time", (None, None)),
    ],
)
def test_resolve_period(period, expected):
    assert resolve_period(period, TODAY) == expected


def test_resolve_period_invalid():
    with pytest.raises(ValueError):
        resolve_period("yesterday", TODAY)


def test_dashboard_endpoint(client, make_product, make_customer):
    with freeze_time("2026-01-10"):
        p = make_product("Chanel Nº 5", "Chanel", cost="300.00", price="500.00", stock=10)
        c = make_customer()

        # janeiro: crediário 1000 em 2x, à vista 500
        r = client.post("/sales", json={
            "customer_id": c.id,
            "items": [{"product_id": p.id, "quantity": 2}],
            "payment_type": "credit",
            "installments_count": 2,
        })
        assert r.status_code == 201, r.text
        recs = r.json()["receivables"]
        client.post("/sales", json={"items": [{"product_id": p.id, "quantity": 1}], "payment_method": "pix"})

        # venda cancelada não entra nas métricas
        r = client.post("/sales", json={"items": [{"product_id": p.id, "quantity": 1}]})
        client.post(f"/sales/{r.json()['id']}/cancel")

        client.post("/expenses", json={
            "expense_date": "2026-01-05",
            "category": "Aluguel",
            "description": "Aluguel da loja",
            "amount": 400,
            "type": "fixed",
        })

    with freeze_time("2026-02-15"):
        client.post(f"/receivables/{recs[0]['id']}/payments", json={"amount": 500})

        r = client.get("/dashboard", params={"date_from": "2026-01-01", "date_to": "2026-01-31"})
        assert r.status_code == 200, r.text
        body = r.json()
        m = body["metrics"]
        assert D(m["sales_total"]) == D("1500.00")
        assert m["sales_count"] == 2
        # cancelada: o pagamento à vista dela continua registrado
        assert D(m["received_total"]) == D("1000.00")
        assert D(m["receivables_outstanding"]) == D("500.00")
        assert D(m["cost_of_goods"]) == D("900.00")
        assert D(m["gross_profit"]) == D("600.00")
        assert D(m["margin_percent"]) == D("40.00")
        assert D(m["break_even"]) == D("400.00")
        assert m["stock_units"] == 7
        assert body["active_customers"] == 1
        assert len(body["recent_sales"]) == 2
        assert [x["id"] for x in body["upcoming_receivables"]] == [recs[1]["id"]]

        # mês corrente (fevereiro): só o pagamento da parcela
        r = client.get("/dashboard")
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["date_from"] == "2026-02-01"
        assert body["date_to"] == "2026-02-28"
        assert D(body["metrics"]["sales_total"]) == D("0.00")
        assert D(body["metrics"]["received_total"]) == D("500.00")
        assert D(body["metrics"]["margin_percent"]) == D("0")
        assert D(body["metrics"]["receivables_outstanding"]) == D("500.00")

        r = client.get("/dashboard", params={"period": "all-time"})
        assert D(r.json()["metrics"]["sales_total"]) == D("1500.00")

        r = client.get("/dashboard", params={"period": "someday"})
        assert r.status_code == 400

        r = client.get("/dashboard", params={"date_from": "2026-02-01", "date_to": "2026-01-01"})
        assert r.status_code == 400
