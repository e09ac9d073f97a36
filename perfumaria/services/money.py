from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

# tolerância de arredondamento para comparações de valores
TOLERANCE = CENT


def to_decimal(v: Number) -> Decimal:
    if isinstance(v, Decimal):
        return v
    # float passa por str para não herdar a representação binária
    if isinstance(v, float):
        return Decimal(str(v))
    return Decimal(v)


def quantize_money(v: Number) -> Decimal:
    return to_decimal(v).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Number]) -> Decimal:
    total = ZERO
    for v in values:
        total += to_decimal(v)
    return quantize_money(total)
