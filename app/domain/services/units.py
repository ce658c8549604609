from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext

from app.domain.exceptions import ValidationError


def parse_units(amount: str, decimals: int) -> int:
    """Human amount -> raw integer units, truncating digits beyond `decimals`."""
    value = Decimal(amount)
    with localcontext() as ctx:
        # wide enough that shifting the exponent never rounds
        ctx.prec = len(value.as_tuple().digits) + decimals + 1
        raw = int(value.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN))
    if raw <= 0:
        raise ValidationError(f"Amount {amount} is below the token's smallest unit")
    return raw


def format_units(raw: int, decimals: int) -> str:
    """Raw integer units -> plain decimal string without exponent or trailing zeros."""
    if decimals == 0:
        return str(raw)
    negative = raw < 0
    digits = str(abs(raw)).rjust(decimals + 1, "0")
    whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text
