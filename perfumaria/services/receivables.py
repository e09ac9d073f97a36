"""
Conciliação de parcelas (contas a receber).

O status de uma parcela é sempre derivado de (valor original, pagamentos,
vencimento, hoje). A coluna ``status`` em ``receivables`` é só um cache
atualizado a cada pagamento, cancelamento e pelo worker.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from perfumaria.infra.models import ReceivableORM, ReceivableStatus
from perfumaria.services.errors import PaymentExceedsOutstanding
from perfumaria.services.money import (
    Number,
    TOLERANCE,
    ZERO,
    money_sum,
    quantize_money,
    to_decimal,
)


@dataclass(frozen=True)
class Reconciliation:
    amount: Decimal
    paid_total: Decimal
    outstanding: Decimal
    status: ReceivableStatus


def paid_total(payments: Iterable[Number]) -> Decimal:
    return money_sum(payments)


def outstanding_balance(amount: Number, payments: Iterable[Number]) -> Decimal:
    """
    saldo em aberto = max(valor original - soma dos pagamentos, 0)
    """
    remaining = quantize_money(amount) - paid_total(payments)
    return remaining if remaining > ZERO else ZERO


def derive_status(
    amount: Number,
    payments: Iterable[Number],
    due_date: date,
    today: date,
) -> ReceivableStatus:
    """
    rules:
      - saldo <= 0 -> paid (mesmo vencida)
      - vencimento < hoje e saldo > 0 -> overdue
      - 0 < pago < original -> partial
      - senão -> open
    """
    payments = list(payments)
    paid = paid_total(payments)
    outstanding = outstanding_balance(amount, payments)

    if outstanding <= ZERO:
        return ReceivableStatus.PAID
    if due_date < today:
        return ReceivableStatus.OVERDUE
    if paid > ZERO:
        return ReceivableStatus.PARTIAL
    return ReceivableStatus.OPEN


def ensure_payment_fits(outstanding: Number, amount: Number) -> Decimal:
    """
    valida um pagamento contra o saldo em aberto (tolerância de 1 centavo).
    Retorna o valor quantizado.
    """
    raw = to_decimal(amount)
    value = quantize_money(raw)
    if value <= ZERO:
        raise ValueError("Valor do pagamento deve ser maior que zero.")
    if raw != value:
        raise ValueError("Valor do pagamento deve ter no máximo 2 casas decimais.")
    if value > quantize_money(outstanding) + TOLERANCE:
        raise PaymentExceedsOutstanding(
            f"Pagamento de R$ {value} excede o saldo em aberto de R$ {quantize_money(outstanding)}."
        )
    return value


def reconcile(receivable: ReceivableORM, today: date) -> Reconciliation:
    amounts = [p.amount for p in receivable.payments]
    return Reconciliation(
        amount=quantize_money(receivable.amount),
        paid_total=paid_total(amounts),
        outstanding=outstanding_balance(receivable.amount, amounts),
        status=derive_status(receivable.amount, amounts, receivable.due_date, today),
    )


def refresh_cached_status(receivable: ReceivableORM, today: date) -> Optional[ReceivableStatus]:
    """
    atualiza a coluna status (cache). Retorna o novo status se mudou.
    """
    new_status = reconcile(receivable, today).status
    if receivable.status == new_status:
        return None
    receivable.status = new_status
    return new_status
