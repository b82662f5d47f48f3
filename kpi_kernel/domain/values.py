"""
Value helpers -- decimal-as-text parsing, formatting and display.

Current results store values as text because the unit decides their
meaning.  Arithmetic always goes through ``Decimal``; non-numeric text,
NaN, infinities and numbers whose decimal exponent passes 17 either way
read as zero so a bad entry can never abort a rollup.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

from kpi_kernel.domain.dtos import UnitType

ZERO = Decimal("0")

# Largest adjusted exponent, either sign, a stored value may carry and
# still count as a number.  Keeps displays and sums inside 28 digits.
MAX_EXPONENT = 17

# Context for sums and ratios: overflow yields Infinity instead of raising.
SAFE_CONTEXT = Context(prec=28, traps=[])


def parse_numeric(raw: object) -> Decimal | None:
    """Parse a stored value; None when it is not a finite number."""
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        number = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    if not number.is_finite():
        return None
    if not number.is_zero() and abs(number.adjusted()) > MAX_EXPONENT:
        return None
    return number


def numeric_or_zero(raw: object) -> Decimal:
    number = parse_numeric(raw)
    return ZERO if number is None else number


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_decimal(value: Decimal) -> str:
    """Plain text without exponent or trailing zeros: 8.00 -> '8'."""
    if value.is_zero():
        return "0"
    return format(value.normalize(), "f")


def normalize_value_input(raw: object, unit_type: UnitType) -> str:
    """
    Clean a submitted value.

    Currency input may use a decimal comma with dot thousands separators
    ("1.234,56").  Text that is not a number is kept as typed; it simply
    counts as zero wherever values are summed or scored.
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""
    candidate = text
    if unit_type is UnitType.CURRENCY and "," in candidate:
        candidate = candidate.replace(".", "").replace(",", ".")
    number = parse_numeric(candidate)
    if number is None:
        return text
    return format_decimal(number)


def _group_thousands(number: Decimal) -> str:
    quantized = number.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    integral, fraction = f"{abs(quantized):.2f}".split(".")
    groups = []
    while len(integral) > 3:
        groups.insert(0, integral[-3:])
        integral = integral[:-3]
    groups.insert(0, integral)
    sign = "-" if quantized < 0 else ""
    return f"{sign}{'.'.join(groups)},{fraction}"


def format_value_with_unit(raw: object, unit_type: UnitType) -> str:
    """Display form: ``R$ 1.234,56``, ``85%`` or ``12 unid.``."""
    number = parse_numeric(raw)
    if unit_type is UnitType.CURRENCY:
        if number is None:
            return "R$ 0,00" if raw in (None, "") else str(raw)
        return f"R$ {_group_thousands(number)}"
    text = format_decimal(number) if number is not None else str(raw or "")
    if unit_type is UnitType.PERCENTAGE:
        return f"{text}%"
    return f"{text} unid."
