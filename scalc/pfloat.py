"""
pfloat.py - Precision-tagged floats

A Pfloat pairs a float value with the number of decimal digits written
after the point in the literal that produced it. Arithmetic keeps the
larger precision of its operands; formatting prints exactly that many
digits.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Pfloat:
    """Value with a tracked decimal-digit count."""
    value: float = 0.0
    precision: int = 0

    def __post_init__(self):
        if self.precision < 0:
            raise ValueError(f"ERR_INVALID_PRECISION: {self.precision} < 0")

    def __str__(self) -> str:
        return f"{self.value:.{self.precision}f}"

    @classmethod
    def from_literal(cls, integer: str, fraction: str = None) -> "Pfloat":
        """
        Parse literal text into a Pfloat.

        Args:
            integer: Integer part, optionally signed (e.g. "-3").
            fraction: Decimal fragment including the point (e.g. ".50"), or None.

        Raises:
            ValueError: ERR_INVALID_NUMBER if the text is not a number.

        Examples:
            >>> Pfloat.from_literal("1", ".50")
            Pfloat(value=1.5, precision=2)
            >>> Pfloat.from_literal("7")
            Pfloat(value=7.0, precision=0)
        """
        if not fraction:
            return cls(_parse_float(integer), 0)
        if not fraction.startswith(".") or not fraction[1:].isdigit():
            raise ValueError(f"ERR_INVALID_NUMBER: bad decimal fragment {fraction!r}")
        return cls(_parse_float(integer + fraction), len(fraction) - 1)

    @classmethod
    def parse(cls, text: str) -> "Pfloat":
        """Parse a formatted number such as "3.50" or "-2"."""
        text = text.strip()
        head, dot, tail = text.partition(".")
        return cls.from_literal(head, dot + tail if dot else None)


ZERO = Pfloat()


def _parse_float(text: str) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        raise ValueError(f"ERR_INVALID_NUMBER: {text!r} is not a number")


def max_precision(*pfs: Pfloat) -> int:
    m = 0
    for p in pfs:
        if p.precision > m:
            m = p.precision
    return m


# --- IEEE-754 helpers ---
# Python raises where the float standard yields inf/NaN; these restore
# the standard results.

def ieee_div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and int(x) % 2 == 1


def ieee_pow(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and _is_odd_integer(b):
            return -math.inf
        return math.inf
    except ValueError:
        if a == 0:
            # Zero to a negative power
            if _is_odd_integer(b):
                return math.copysign(math.inf, a)
            return math.inf
        return math.nan


def ieee_mod(a: float, b: float) -> float:
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan
