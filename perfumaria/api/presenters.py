from __future__ import annotations

from datetime import date
from typing import Iterable

from perfumaria.infra.models import PaymentType, ReceivableORM, SaleItemORM, SaleORM
from perfumaria.schemas.receivables import (
    PaymentOut,
    ReceivableDetailOut,
    ReceivableItemOut,
    ReceivableOut,
)
from perfumaria.schemas.sales import SaleDetailOut, SaleItemOut, SaleOut
from perfumaria.services.receivables import Reconciliation, reconcile
from perfumaria.services.sales_service import sale_outstanding, sale_paid_amount


def _products_label(items: Iterable[SaleItemORM]) -> str:
    return ", ".join(f"{i.product.name} ({i.quantity}x)" for i in items)


def sale_out(sale: SaleORM) -> SaleOut:
    return SaleOut(
        id=sale.id,
        sale_date=sale.sale_date,
        customer_id=sale.customer_id,
        customer_name=sale.customer.name if sale.customer else None,
        status=sale.status,
        payment_type=sale.payment_type,
        subtotal=sale.subtotal,
        discount_percent=sale.discount_percent,
        discount=sale.discount,
        total_amount=sale.total_amount,
        paid_amount=sale_paid_amount(sale),
        outstanding=sale_outstanding(sale),
        installments=len(sale.receivables) if sale.payment_type == PaymentType.CREDIT else 1,
        products=_products_label(sale.items),
    )


def sale_item_out(item: SaleItemORM) -> SaleItemOut:
    return SaleItemOut(
        id=item.id,
        product_id=item.product_id,
        product_name=item.product.name,
        quantity=item.quantity,
        unit_price=item.unit_price,
        unit_cost=item.unit_cost,
        subtotal=item.subtotal,
    )


def receivable_out(r: ReceivableORM, rec: Reconciliation) -> ReceivableOut:
    return ReceivableOut(
        id=r.id,
        sale_id=r.sale_id,
        customer_id=r.customer_id,
        customer_name=r.customer.name if r.customer else None,
        sale_date=r.sale.sale_date if r.sale else None,
        due_date=r.due_date,
        installment=r.installment_label,
        original_amount=rec.amount,
        paid_amount=rec.paid_total,
        outstanding=rec.outstanding,
        status=rec.status,
        voided=r.is_voided,
    )


def sale_detail_out(sale: SaleORM, today: date) -> SaleDetailOut:
    base = sale_out(sale)
    return SaleDetailOut(
        **base.model_dump(),
        items=[sale_item_out(i) for i in sale.items],
        receivables=[receivable_out(r, reconcile(r, today)) for r in sale.receivables],
        payments=[PaymentOut.model_validate(p) for p in sale.payments],
    )


def receivable_detail_out(
    r: ReceivableORM,
    rec: Reconciliation,
    items: Iterable[SaleItemORM],
) -> ReceivableDetailOut:
    base = receivable_out(r, rec)
    customer = r.customer
    return ReceivableDetailOut(
        **base.model_dump(),
        customer_phone=customer.phone if customer else None,
        customer_cpf=customer.cpf if customer else None,
        sale_total=r.sale.total_amount if r.sale else None,
        items=[
            ReceivableItemOut(product_name=i.product.name, quantity=i.quantity, subtotal=i.subtotal)
            for i in items
        ],
        payments=[PaymentOut.model_validate(p) for p in r.payments],
    )
