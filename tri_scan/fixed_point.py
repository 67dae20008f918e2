"""
Fixed-point conversions for token amounts.

Every value-bearing quantity in the scanner (amounts, profit, gas cost,
thresholds) is an integer count of a token's smallest unit. This module is
the only place where decimal strings become units and units become
displayable decimals.

Conversion policy:
- Parsing truncates fraction digits beyond the token's decimals (never rounds)
- Display truncates toward zero to the requested places
- A float is accepted only as a price ratio, and only through
  price_to_scaled_int()
"""

import math
import re
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, getcontext

from .exceptions import InvalidDecimal, InvalidInput

# Enough headroom for 36-decimal tokens with large whole parts
getcontext().prec = 100

MAX_DECIMALS = 36
# uint256 needs 78 digits; the rest leaves room for sign, point and fraction
MAX_DECIMAL_LENGTH = 256

_DECIMAL_RE = re.compile(r"^[+-]?[0-9]+(\.[0-9]+)?$")


def _check_decimals(decimals: int) -> None:
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise InvalidDecimal(f"Token decimals must be an integer: {decimals!r}")
    if decimals < 0 or decimals > MAX_DECIMALS:
        raise InvalidDecimal(
            f"Token decimals must be in [0, {MAX_DECIMALS}]: {decimals}"
        )


# ============================================================================
# Parsing and formatting
# ============================================================================


def to_units(value: str, decimals: int) -> int:
    """
    Convert a human decimal string to integer token units.

    Args:
        value: Decimal string such as "100", "-0.5" or "+1.25"
        decimals: Token decimals in [0, 36]

    Returns:
        Integer units, fraction digits beyond `decimals` truncated

    Raises:
        InvalidDecimal: If the string is empty or too long, uses scientific
            notation, or contains anything outside [+-]?digits(.digits)? with
            ASCII digits
    """
    _check_decimals(decimals)
    if not isinstance(value, str):
        raise InvalidDecimal(f"Decimal value must be a string: {value!r}", value=None)

    raw = value.strip()
    if not raw:
        raise InvalidDecimal("Decimal value cannot be empty", value=value)
    if len(raw) > MAX_DECIMAL_LENGTH:
        raise InvalidDecimal(
            f"Decimal value is too long: {len(raw)} characters (max {MAX_DECIMAL_LENGTH})",
            value=value,
        )
    if "e" in raw.lower():
        raise InvalidDecimal(
            f"Scientific notation is not supported: {value}", value=value
        )
    if not _DECIMAL_RE.match(raw):
        raise InvalidDecimal(f"Invalid decimal value: {value}", value=value)

    negative = raw.startswith("-")
    digits = raw.lstrip("+-")
    whole, _, frac = digits.partition(".")

    truncated = frac[:decimals].ljust(decimals, "0")
    units = int(whole) * 10**decimals + (int(truncated) if truncated else 0)
    return -units if negative else units


def from_units(units: int, decimals: int) -> Decimal:
    """Convert integer units to an exact Decimal amount."""
    _check_decimals(decimals)
    return Decimal(int(units)).scaleb(-decimals)


def format_units(units: int, decimals: int, places: int = 6) -> str:
    """
    Format integer units with a fixed number of fraction digits.

    Extra precision is truncated toward zero, so "1.9999999" at 6 places
    renders as "1.999999".
    """
    quantum = Decimal(1).scaleb(-places)
    value = from_units(units, decimals).quantize(quantum, rounding=ROUND_DOWN)
    if value == 0:
        value = abs(value)
    return f"{value:.{places}f}"


def format_signed_units(units: int, decimals: int, places: int = 6) -> str:
    """Format units with an explicit sign prefix ("+1.500000", "-0.250000")."""
    text = format_units(units, decimals, places)
    if text.startswith("-"):
        return text
    return f"+{text}"


# ============================================================================
# Price scaling (the only float entry point)
# ============================================================================


def price_to_scaled_int(price: float, decimals: int) -> int:
    """
    Turn a float price ratio into an integer scaled by 10**decimals.

    Goes through the shortest repr of the float so 3012.45 scales exactly,
    then rounds half-up to the nearest integer.
    """
    _check_decimals(decimals)
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidInput(f"Price must be a number: {price!r}")
    if not math.isfinite(price) or price < 0:
        raise InvalidInput(f"Price must be a finite non-negative number: {price}")

    scaled = Decimal(repr(float(price))).scaleb(decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def gas_cost_in_quote_units(
    gas_units: int,
    gas_price_wei: int,
    native_to_quote_price: float,
    quote_decimals: int,
    native_decimals: int = 18,
) -> int:
    """
    Price a gas spend in the quote token's integer units.

    cost = gas_units * gas_price_wei * scaled_price // 10**native_decimals
    where scaled_price is the native→quote price scaled by 10**quote_decimals.
    """
    if gas_units < 0 or gas_price_wei < 0:
        raise InvalidInput(
            f"Gas units and gas price must be non-negative: {gas_units}, {gas_price_wei}"
        )
    scaled_price = price_to_scaled_int(native_to_quote_price, quote_decimals)
    gas_wei = gas_units * gas_price_wei
    return (gas_wei * scaled_price) // 10**native_decimals
