"""Stock quantities are exact decimals everywhere in the ledger.

Protean ``Decimal`` fields hand back ``decimal.Decimal`` values. Domain
functions are also called directly (tests, startup scripts) with ints,
floats or strings, so every arithmetic entry point runs its inputs through
``as_quantity`` first. Floats are converted through their shortest repr, so
``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
"""

from decimal import Decimal, InvalidOperation

from protean.exceptions import ValidationError

ZERO = Decimal("0")

Quantity = Decimal


def as_quantity(value, default=ZERO) -> Decimal:
    """Coerce ``value`` to a ``Decimal``. ``None`` becomes ``default``."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("A quantity cannot be a boolean")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise TypeError(f"Not a quantity: {value!r}") from exc


def is_finite_quantity(value) -> bool:
    try:
        return as_quantity(value).is_finite()
    except TypeError:
        return False


def require_finite(value, field_name: str, default=ZERO) -> Decimal:
    """``as_quantity`` that turns NaN, infinities and junk into a ValidationError on ``field_name``."""
    try:
        quantity = as_quantity(value, default=default)
    except TypeError:
        quantity = None
    if quantity is None or not quantity.is_finite():
        raise ValidationError({field_name: [f"{field_name} must be a finite number"]})
    return quantity
