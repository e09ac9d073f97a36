from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Sequence

from dateutil.relativedelta import relativedelta

from perfumaria.services.errors import InstallmentSumMismatch
from perfumaria.services.money import (
    Number,
    TOLERANCE,
    ZERO,
    money_sum,
    quantize_money,
    to_decimal,
)

MAX_INSTALLMENTS = 12


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return quantize_money(Decimal(self.quantity) * to_decimal(self.unit_price))


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount_percent: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class InstallmentPlan:
    number: int
    due_date: date
    amount: Decimal


def add_months(d: date, months: int) -> date:
    # resolve fim de mês corretamente (ex.: 31/01 + 1 mês -> 28/02)
    return d + relativedelta(months=months)


def cart_totals(items: Iterable[CartLine], discount_percent: Number = 0) -> CartTotals:
    """
    subtotal = soma(qtd x preço unitário)
    desconto = subtotal x (pct / 100)
    total = subtotal - desconto
    """
    pct = to_decimal(discount_percent)
    if pct < 0 or pct > 100:
        raise ValueError("Desconto deve estar entre 0 e 100%.")

    subtotal = money_sum(line.subtotal for line in items)
    discount = quantize_money(subtotal * pct / Decimal(100))
    return CartTotals(
        subtotal=subtotal,
        discount_percent=quantize_money(pct),
        discount=discount,
        total=quantize_money(subtotal - discount),
    )


def split_installments(total: Number, count: int, sale_date: date) -> List[InstallmentPlan]:
    """
    divide o total em N parcelas iguais, vencendo 1, 2, ... N meses após a venda.
    O resto do arredondamento vai para a última parcela.
    """
    if count < 1 or count > MAX_INSTALLMENTS:
        raise ValueError(f"Número de parcelas deve estar entre 1 e {MAX_INSTALLMENTS}.")

    total = quantize_money(total)
    if total <= ZERO:
        raise ValueError("Total deve ser maior que zero para parcelar.")

    per = quantize_money(total / Decimal(count))
    diff = quantize_money(total - per * Decimal(count))  # pode ser negativo/positivo

    plans: List[InstallmentPlan] = []
    for n in range(1, count + 1):
        amount = per
        if n == count and diff != 0:
            amount = quantize_money(amount + diff)
        plans.append(InstallmentPlan(number=n, due_date=add_months(sale_date, n), amount=amount))
    return plans


def validate_installments(installments: Sequence[InstallmentPlan], total: Number) -> None:
    """
    valida um plano de parcelas (editado manualmente ou não) antes de gravar.
    """
    if not installments:
        raise ValueError("Informe ao menos uma parcela.")
    if len(installments) > MAX_INSTALLMENTS:
        raise ValueError(f"Número de parcelas deve estar entre 1 e {MAX_INSTALLMENTS}.")

    for inst in installments:
        if quantize_money(inst.amount) <= ZERO:
            raise ValueError(f"Parcela {inst.number}: valor deve ser maior que zero.")

    expected = quantize_money(total)
    got = money_sum(inst.amount for inst in installments)
    if abs(got - expected) > TOLERANCE:
        raise InstallmentSumMismatch(
            f"A soma das parcelas (R$ {got}) difere do total da venda (R$ {expected})."
        )
