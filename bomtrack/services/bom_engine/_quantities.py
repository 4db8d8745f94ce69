"""
Quantity Math

Waste-adjusted requirement math shared by every calculator. Values are
carried as Decimal built from ``str()`` so that e.g. 2 x 1.1 stays 2.2 and
floor(22 / 2.2) is 10, not 9.
"""

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Optional

from .errors import InvalidQuantityError

_HUNDRED = Decimal('100')
_ONE = Decimal('1')
_ZERO = Decimal('0')
_CENTS = Decimal('0.01')


def to_decimal(value) -> Decimal:
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def effective_quantity(quantity_required, waste_percentage=0) -> Decimal:
    """quantity_required x (1 + waste_percentage / 100)"""
    return to_decimal(quantity_required) * (_ONE + to_decimal(waste_percentage) / _HUNDRED)


def producible_units(stock, effective: Decimal) -> Optional[int]:
    """Whole units a stock level covers, or None when the component does not constrain."""
    if effective <= _ZERO:
        return None
    units = (to_decimal(stock) / effective).to_integral_value(rounding=ROUND_FLOOR)
    return max(0, int(units))


def scaled_requirement(effective: Decimal, quantity) -> Decimal:
    return effective * to_decimal(quantity)


def as_float(value: Decimal) -> float:
    return float(value)


def round_money(value) -> float:
    return float(to_decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def round_quantity(value, places: int = 4) -> float:
    return float(to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def require_positive(quantity, field: str = 'quantity') -> Decimal:
    if quantity is None or isinstance(quantity, bool):
        raise InvalidQuantityError(quantity, field)
    value = to_decimal(quantity)
    if not value.is_finite() or value <= 0:
        raise InvalidQuantityError(quantity, field)
    return value
