"""Human readable byte counts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

DECIMAL_SYMBOLS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")
BINARY_SYMBOLS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

# Largest magnitude of a signed 64-bit byte count.
MAX_MAGNITUDE = 2 ** 63 - 1

_ONE_PLACE = Decimal("0.1")


def decimal(size: int) -> str:
    """Formats ``size`` with SI units, e.g. ``1.5 kB``."""

    return _format(size, 1000, DECIMAL_SYMBOLS)


def binary(size: int) -> str:
    """Formats ``size`` with IEC units, e.g. ``1.5 KiB``."""

    return _format(size, 1024, BINARY_SYMBOLS)


def _format(size: int, base: int, symbols: Sequence[str]) -> str:
    if size is None:
        raise ValueError("size should not be None")
    sign = "-" if size < 0 else ""
    magnitude = min(abs(int(size)), MAX_MAGNITUDE)

    if magnitude < base:
        return f"{sign}{magnitude} {symbols[0]}"

    last = len(symbols) - 1
    for exponent in range(1, last):
        scaled = _scale(magnitude, base, exponent)
        # 999.95 kB prints as 1.0 MB rather than 1000.0 kB
        if scaled < base:
            return f"{sign}{scaled} {symbols[exponent]}"
    return f"{sign}{_scale(magnitude, base, last)} {symbols[last]}"


def _scale(magnitude: int, base: int, exponent: int) -> Decimal:
    return (Decimal(magnitude) / Decimal(base) ** exponent).quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)
