"""Standard SCL functions callable from analyzed expressions.

Timers and counters are deliberately absent: the analyzer describes
those instructions instead of running them.
"""

from __future__ import annotations

import math


def _limit(mn: object, val: object, mx: object) -> object:
    """LIMIT(MN, IN, MX): clamp val between mn and mx."""
    return max(mn, min(val, mx))


def _sel(g: object, in0: object, in1: object) -> object:
    """SEL(G, IN0, IN1): select in1 if G is truthy, else in0."""
    return in1 if g else in0


def _mux(k: int, *values: object) -> object:
    """MUX(K, val0, val1, ...): select by index."""
    k = int(k)
    if 0 <= k < len(values):
        return values[k]
    return values[-1] if values else 0


def _shl(value: int, n: int) -> int:
    return int(value) << int(n)


def _shr(value: int, n: int) -> int:
    return int(value) >> int(n)


def _trunc(value: object) -> int:
    return int(value)


def _round_val(value: object) -> int:
    # SCL rounds half away from zero; Python's round() is banker's rounding.
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def _sqr(value: object) -> object:
    return value * value


STDLIB_FUNCTIONS: dict[str, object] = {
    "ABS": abs,
    "SQR": _sqr,
    "SQRT": math.sqrt,
    "MIN": min,
    "MAX": max,
    "LIMIT": _limit,
    "SEL": _sel,
    "MUX": _mux,
    "TRUNC": _trunc,
    "ROUND": _round_val,
    "CEIL": math.ceil,
    "FLOOR": math.floor,
    "SIN": math.sin,
    "COS": math.cos,
    "TAN": math.tan,
    "ASIN": math.asin,
    "ACOS": math.acos,
    "ATAN": math.atan,
    "LN": math.log,
    "LOG": math.log10,
    "EXP": math.exp,
    "EXPT": pow,
    "SHL": _shl,
    "SHR": _shr,
}
