# perfumaria/services/sales_service.py
from __future__ import annotations

import logging
import os
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from perfumaria.infra.models import (
    SaleORM,
    SaleItemORM,
    ProductORM,
    CustomerORM,
    ReceivableORM,
    PaymentORM,
    SaleStatus,
    PaymentType,
    PaymentMethod,
    ReceivableStatus,
)
from perfumaria.services.errors import (
    InsufficientStock,
    InvalidStateError,
    NotFoundError,
)
from perfumaria.services.money import ZERO, money_sum, quantize_money
from perfumaria.services.pricing import (
    CartLine,
    InstallmentPlan,
    cart_totals,
    split_installments,
    validate_installments,
)
from perfumaria.services.receivables import refresh_cached_status
from perfumaria.services.metrics import receivable_outstanding

logger = logging.getLogger(__name__)


# helpers
def _today() -> date:
    return datetime.now().date()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int
    # se não vier, usa o preço de venda do produto
    unit_price: Optional[Decimal] = None


# use cases - services
ALLOWED_TRANSITIONS: dict[SaleStatus, set[SaleStatus]] = {
    SaleStatus.OPEN: {SaleStatus.PAID, SaleStatus.CANCELED},
    SaleStatus.PAID: {SaleStatus.OPEN, SaleStatus.CANCELED},  # PAID -> OPEN só via recálculo
    SaleStatus.CANCELED: set(),
}


def products_for_update(ids):
    # trava os produtos até o commit: a baixa de estoque parte do valor atual
    return (
        select(ProductORM)
        .where(ProductORM.id.in_(ids))
        .order_by(ProductORM.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def _load_products(db: Session, lines: Sequence[SaleLineInput]) -> Dict[int, ProductORM]:
    ids = sorted({line.product_id for line in lines})
    rows = db.execute(products_for_update(ids)).scalars().all()
    products = {p.id: p for p in rows}

    for pid in ids:
        p = products.get(pid)
        if p is None or not p.is_active:
            raise ValueError(f"product_id inválido: {pid}.")
    return products


def _check_stock(products: Dict[int, ProductORM], lines: Sequence[SaleLineInput]) -> None:
    wanted: Dict[int, int] = defaultdict(int)
    for line in lines:
        if line.quantity < 1:
            raise ValueError("Quantidade deve ser maior que zero.")
        wanted[line.product_id] += line.quantity

    for pid, qty in wanted.items():
        p = products[pid]
        if p.stock_quantity < qty:
            raise InsufficientStock(
                f"Estoque insuficiente para {p.name}: disponível {p.stock_quantity}, pedido {qty}."
            )


def create_sale(
    db: Session,
    *,
    lines: Sequence[SaleLineInput],
    customer_id: Optional[int] = None,
    discount_percent: Decimal = Decimal("0"),
    payment_type: PaymentType = PaymentType.CASH,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    installments_count: Optional[int] = None,
    # plano editado manualmente (valor e vencimento de cada parcela)
    installments: Optional[Sequence[InstallmentPlan]] = None,
    sale_date: Optional[date] = None,
) -> SaleORM:
    """
    registra venda + itens + baixa de estoque + parcelas/pagamento.
    rules:
      - carrinho com ao menos um produto ativo e estoque suficiente
      - à vista: gera um pagamento do total, venda nasce PAID
      - crediário: exige cliente; parcelas somam o total (tolerância 0.01)
        e vencem 1, 2, ... meses após a venda quando não informadas
    """
    if not lines:
        raise ValueError("Adicione pelo menos um produto.")

    customer: Optional[CustomerORM] = None
    if customer_id is not None:
        customer = db.get(CustomerORM, customer_id)
        if not customer or not customer.is_active:
            raise ValueError("customer_id inválido.")

    if payment_type == PaymentType.CREDIT and customer is None:
        raise ValueError("Venda no crediário exige cliente.")

    products = _load_products(db, lines)
    _check_stock(products, lines)

    cart = [
        CartLine(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=quantize_money(
                line.unit_price if line.unit_price is not None else products[line.product_id].sale_price
            ),
        )
        for line in lines
    ]
    for c in cart:
        if c.unit_price < ZERO:
            raise ValueError("Preço unitário não pode ser negativo.")

    totals = cart_totals(cart, discount_percent)
    sale_day = sale_date or _today()

    plan: List[InstallmentPlan] = []
    if payment_type == PaymentType.CREDIT:
        if installments:
            plan = list(installments)
        else:
            if not installments_count:
                raise ValueError("Para crediário informe installments_count (>= 1).")
            plan = split_installments(totals.total, installments_count, sale_day)
        # valida antes de gravar qualquer coisa
        validate_installments(plan, totals.total)

    sale = SaleORM(
        sale_date=sale_day,
        customer_id=customer_id,
        payment_type=payment_type,
        subtotal=totals.subtotal,
        discount_percent=totals.discount_percent,
        discount=totals.discount,
        total_amount=totals.total,
        status=SaleStatus.OPEN,
    )
    db.add(sale)

    for c in cart:
        product = products[c.product_id]
        sale.items.append(
            SaleItemORM(
                product_id=c.product_id,
                quantity=c.quantity,
                unit_price=c.unit_price,
                unit_cost=quantize_money(product.purchase_price),
                subtotal=c.subtotal,
            )
        )
        # baixa de estoque
        product.stock_quantity -= c.quantity

    if payment_type == PaymentType.CREDIT:
        count = len(plan)
        for n, inst in enumerate(sorted(plan, key=lambda i: i.number), start=1):
            sale.receivables.append(
                ReceivableORM(
                    customer_id=customer_id,
                    installment_number=n,
                    installment_count=count,
                    due_date=inst.due_date,
                    amount=quantize_money(inst.amount),
                    status=ReceivableStatus.OPEN,
                )
            )
    elif totals.total > ZERO:
        sale.payments.append(
            PaymentORM(
                customer_id=customer_id,
                amount=totals.total,
                payment_date=sale_day,
                method=payment_method,
            )
        )
        sale.status = SaleStatus.PAID
    else:
        sale.status = SaleStatus.PAID

    db.flush()
    logger.info(
        "venda %s registrada: %s itens, total=%s, tipo=%s, parcelas=%s",
        sale.id, len(cart), sale.total_amount, payment_type.value, len(plan),
    )
    return sale


def get_sale(db: Session, sale_id: int) -> SaleORM:
    stmt = (
        select(SaleORM)
        .options(
            selectinload(SaleORM.customer),
            selectinload(SaleORM.items).selectinload(SaleItemORM.product),
            selectinload(SaleORM.receivables).selectinload(ReceivableORM.payments),
            selectinload(SaleORM.payments),
        )
        .where(SaleORM.id == sale_id)
    )
    sale = db.execute(stmt).scalars().first()
    if not sale:
        raise NotFoundError("Venda não encontrada.")
    return sale


def sale_paid_amount(sale: SaleORM) -> Decimal:
    return money_sum(p.amount for p in sale.payments)


def sale_outstanding(sale: SaleORM) -> Decimal:
    if sale.status == SaleStatus.CANCELED:
        return ZERO
    if sale.payment_type == PaymentType.CREDIT:
        return money_sum(receivable_outstanding(r) for r in sale.receivables)
    remaining = quantize_money(sale.total_amount - sale_paid_amount(sale))
    return remaining if remaining > ZERO else ZERO


def refresh_sale_status(sale: SaleORM, today: Optional[date] = None) -> SaleStatus:
    """
    recalcula o cache de status da venda e das parcelas.
    """
    today = today or _today()
    if sale.status == SaleStatus.CANCELED:
        return sale.status

    for r in sale.receivables:
        if not r.is_voided:
            refresh_cached_status(r, today)

    new_status = SaleStatus.PAID if sale_outstanding(sale) <= ZERO else SaleStatus.OPEN
    if new_status != sale.status:
        allowed = ALLOWED_TRANSITIONS.get(sale.status, set())
        if new_status not in allowed:
            raise InvalidStateError(f"Transição inválida: {sale.status.value} -> {new_status.value}")
        sale.status = new_status
    return sale.status


def cancel_sale(db: Session, sale_id: int) -> SaleORM:
    """
    cancela venda (estado lógico, não apaga):
      - anula as parcelas com saldo em aberto
      - devolve as quantidades ao estoque
      - idempotente
    """
    sale = get_sale(db, sale_id)

    if sale.status == SaleStatus.CANCELED:
        return sale  # idempotente

    allowed = ALLOWED_TRANSITIONS.get(sale.status, set())
    if SaleStatus.CANCELED not in allowed:
        raise InvalidStateError(f"Transição inválida: {sale.status.value} -> canceled")

    now = _now_utc()
    voided = 0
    for r in sale.receivables:
        if r.is_voided:
            continue
        if receivable_outstanding(r) > ZERO:
            r.voided_at = now
            voided += 1

    for item in sale.items:
        item.product.stock_quantity += item.quantity

    sale.status = SaleStatus.CANCELED
    sale.canceled_at = now
    db.flush()

    logger.info("venda %s cancelada: %s parcelas anuladas", sale.id, voided)
    return sale


def list_sales(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 10,
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
    status: Optional[SaleStatus] = None,
    payment_type: Optional[PaymentType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Tuple[List[SaleORM], int]:
    if page < 1:
        raise ValueError("page deve ser >= 1")
    if page_size < 1 or page_size > 200:
        raise ValueError("page_size deve estar entre 1 e 200")

    stmt = select(SaleORM).outerjoin(CustomerORM, SaleORM.customer_id == CustomerORM.id)

    # filtros
    if search:
        like = f"%{search.strip()}%"
        product_match = (
            select(SaleItemORM.id)
            .join(ProductORM, SaleItemORM.product_id == ProductORM.id)
            .where(SaleItemORM.sale_id == SaleORM.id, ProductORM.name.ilike(like))
            .exists()
        )
        stmt = stmt.where(or_(CustomerORM.name.ilike(like), product_match))

    if customer_id is not None:
        stmt = stmt.where(SaleORM.customer_id == customer_id)

    if status is not None:
        stmt = stmt.where(SaleORM.status == status)

    if payment_type is not None:
        stmt = stmt.where(SaleORM.payment_type == payment_type)

    # período
    if date_from is not None:
        stmt = stmt.where(SaleORM.sale_date >= date_from)

    if date_to is not None:
        stmt = stmt.where(SaleORM.sale_date <= date_to)

    # total antes da paginação
    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    # ordenação + paginação
    items = (
        db.execute(
            stmt.options(
                selectinload(SaleORM.customer),
                selectinload(SaleORM.items).selectinload(SaleItemORM.product),
                selectinload(SaleORM.payments),
            )
            .order_by(SaleORM.sale_date.desc(), SaleORM.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        .scalars()
        .all()
    )

    return list(items), total


def preview_installments(total: Decimal, count: int, sale_date: Optional[date] = None) -> List[InstallmentPlan]:
    return split_installments(total, count, sale_date or _today())


def _digits(v: Optional[str]) -> str:
    return "".join(ch for ch in (v or "") if ch.isdigit())


def build_receipt(sale: SaleORM) -> Tuple[str, Optional[str]]:
    """
    comprovante em texto + link wa.me (só quando o cliente tem telefone).
    """
    store = os.getenv("STORE_NAME", "").strip()
    customer = sale.customer

    lines = ["*Comprovante de Venda*"]
    if store:
        lines.append(store)
    lines.append("")
    lines.append(f"Data: {sale.sale_date.strftime('%d/%m/%Y')}")
    if customer:
        lines.append(f"Cliente: {customer.name}")
    lines.append("")
    lines.append("Produtos:")
    for item in sale.items:
        lines.append(f"{item.product.name} ({item.quantity}x) - R$ {quantize_money(item.subtotal)}")
    lines.append("")
    lines.append(f"Subtotal: R$ {quantize_money(sale.subtotal)}")
    lines.append(f"Desconto: R$ {quantize_money(sale.discount)}")
    lines.append(f"Valor Total: R$ {quantize_money(sale.total_amount)}")

    if sale.payment_type == PaymentType.CREDIT:
        lines.append(f"Forma de Pagamento: Parcelado {len(sale.receivables)}x")
        for r in sale.receivables:
            lines.append(f"  {r.installment_label} - {r.due_date.strftime('%d/%m/%Y')} - R$ {quantize_money(r.amount)}")
    else:
        lines.append("Forma de Pagamento: À vista")

    if sale.status == SaleStatus.CANCELED:
        lines.append("")
        lines.append("VENDA CANCELADA")

    lines.append("")
    lines.append("Obrigado pela preferência!")
    text = "\n".join(lines)

    phone = _digits(customer.phone if customer else None)
    url = f"https://wa.me/55{phone}?text={quote(text)}" if phone else None
    return text, url
