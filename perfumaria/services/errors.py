from __future__ import annotations


class NotFoundError(ValueError):
    """Registro não encontrado (vira 404 nos routers)."""


class InvalidStateError(ValueError):
    pass


class InsufficientStock(ValueError):
    pass


class InstallmentSumMismatch(ValueError):
    pass


class PaymentExceedsOutstanding(ValueError):
    pass
