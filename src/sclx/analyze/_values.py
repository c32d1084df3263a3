"""Value system for the analyzer.

Provides tag-value decoding, literal parsing, type inference, type
conversion and display formatting. Everything else builds on these
helpers.
"""

from __future__ import annotations

import math
import re

from sclx.model.types import (
    FLOAT_TYPES,
    INTEGER_TYPES,
    TIME_TYPES,
    DataType,
    InferredType,
    lookup_data_type,
)


class AnalysisError(Exception):
    """Base error raised inside the analyzer."""


class EvaluationError(AnalysisError):
    """An expression could not be parsed or evaluated."""


# ---------------------------------------------------------------------------
# TIME literal regex
# ---------------------------------------------------------------------------

_TIME_RE = re.compile(
    r"^(?:L?TIME#|T#|LT#)"
    r"(?:(-)?)"
    r"(?:(\d+)d)?"
    r"(?:(\d+)h)?"
    r"(?:(\d+)m(?!s))?"
    r"(?:(\d+(?:\.\d+)?)s)?"
    r"(?:(\d+(?:\.\d+)?)ms)?"
    r"(?:(\d+(?:\.\d+)?)us)?"
    r"(?:(\d+)ns)?"
    r"$",
    re.IGNORECASE,
)


def parse_time_literal(value: str) -> int:
    """Parse an IEC TIME/LTIME literal to milliseconds (int)."""
    m = _TIME_RE.match(value.replace("_", ""))
    if m is None or not any(m.groups()[1:]):
        raise EvaluationError(f"Invalid TIME literal: {value!r}")

    sign = -1 if m.group(1) else 1
    days = int(m.group(2)) if m.group(2) else 0
    hours = int(m.group(3)) if m.group(3) else 0
    minutes = int(m.group(4)) if m.group(4) else 0
    seconds = float(m.group(5)) if m.group(5) else 0.0
    ms = float(m.group(6)) if m.group(6) else 0.0
    us = float(m.group(7)) if m.group(7) else 0.0
    # ns ignored for millisecond resolution

    total_ms = (
        days * 86_400_000
        + hours * 3_600_000
        + minutes * 60_000
        + seconds * 1_000
        + ms
        + us / 1_000
    )
    return sign * int(round(total_ms))


# ---------------------------------------------------------------------------
# Number parsing
# ---------------------------------------------------------------------------

_LEADING_INT_RE = re.compile(
    r"^([+-]?)(?:(0[xX])([0-9a-fA-F]+)|(2|8|16)#([0-9a-fA-F_]+)|(\d+))"
)
_LEADING_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_TEXT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_TEXT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def parse_based_int(text: str) -> int:
    """Parse an IEC based literal such as ``16#FF`` or ``2#1010_0001``."""
    base, _, digits = text.partition("#")
    try:
        return int(digits.replace("_", ""), int(base))
    except ValueError:
        raise EvaluationError(f"Invalid based literal: {text!r}") from None


def parse_leading_int(text: str) -> int | None:
    """Parse the leading integer of *text*, or None when there is none."""
    m = _LEADING_INT_RE.match(text.strip())
    if m is None:
        return None
    sign = -1 if m.group(1) == "-" else 1
    try:
        if m.group(3):
            return sign * int(m.group(3), 16)
        if m.group(5):
            return sign * int(m.group(5).replace("_", ""), int(m.group(4)))
    except ValueError:
        return None
    return sign * int(m.group(6))


def parse_leading_float(text: str) -> float | None:
    """Parse the leading floating-point number of *text*, or None."""
    m = _LEADING_FLOAT_RE.match(text.strip())
    if m is None:
        return None
    return float(m.group(0))


# ---------------------------------------------------------------------------
# Tag value decoding
# ---------------------------------------------------------------------------

def decode_tag_value(raw: str, data_type: str) -> bool | int | float | str:
    """Decode a snapshot's raw text according to its declared type.

    - BOOL -> True iff the text is ``TRUE`` or ``1``
    - integer family -> int (0 when unparseable)
    - REAL/LREAL -> float (0.0 when unparseable)
    - TIME/LTIME -> milliseconds (0 when unparseable)
    - anything else -> bool/number when the text looks like one, else text
    """
    text = raw.strip()
    dtype = lookup_data_type(data_type)

    if dtype == DataType.BOOL:
        return text.upper() in ("TRUE", "1")

    if dtype in INTEGER_TYPES:
        parsed = parse_leading_int(text)
        return parsed if parsed is not None else 0

    if dtype in FLOAT_TYPES:
        parsed_float = parse_leading_float(text)
        return parsed_float if parsed_float is not None else 0.0

    if dtype in TIME_TYPES:
        if text.upper().startswith(("T#", "TIME#", "LTIME#", "LT#")):
            try:
                return parse_time_literal(text)
            except EvaluationError:
                return 0
        parsed = parse_leading_int(text)
        return parsed if parsed is not None else 0

    return guess_value(raw)


def guess_value(raw: str) -> bool | int | float | str:
    """Best-effort decoding of untyped text."""
    text = raw.strip()
    if text == "TRUE":
        return True
    if text == "FALSE":
        return False
    if _INT_TEXT_RE.match(text):
        return int(text)
    if _FLOAT_TEXT_RE.match(text):
        return float(text)
    return raw


# ---------------------------------------------------------------------------
# Type inference
# ---------------------------------------------------------------------------

def infer_type(value: object) -> InferredType:
    """Infer the display type of a computed value."""
    if value is None:
        return InferredType.UNKNOWN
    if isinstance(value, bool):
        return InferredType.BOOL
    if isinstance(value, int):
        return InferredType.INT
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return InferredType.INT
        return InferredType.REAL
    if isinstance(value, str):
        return InferredType.STRING
    return InferredType.UNKNOWN


def normalize_number(value: object) -> object:
    """Store integral floats as ints so that 10 / 2 binds 5, not 5.0."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def is_anomalous(value: object) -> bool:
    return isinstance(value, float) and not math.isfinite(value)


# ---------------------------------------------------------------------------
# Type conversion
# ---------------------------------------------------------------------------

def coerce_type(value: object, target: str) -> object:
    """Convert a value for ``<SRC>_TO_<DST>`` calls.

    - int <-> float conversions (float -> int truncates toward zero)
    - bool <-> int conversions
    - anything -> STRING via its display form
    """
    dtype = lookup_data_type(target)
    if dtype is None:
        raise EvaluationError(f"Unknown conversion target: {target}")

    if dtype == DataType.BOOL:
        return bool(value)

    if dtype in INTEGER_TYPES or dtype in TIME_TYPES:
        if isinstance(value, str):
            parsed = parse_leading_int(value)
            if parsed is None:
                raise EvaluationError(f"Cannot convert {value!r} to {target}")
            return parsed
        if isinstance(value, float):
            if not math.isfinite(value):
                raise EvaluationError(f"Cannot convert {value} to {target}")
            return int(value)
        return int(value)

    if dtype in FLOAT_TYPES:
        if isinstance(value, str):
            parsed_float = parse_leading_float(value)
            if parsed_float is None:
                raise EvaluationError(f"Cannot convert {value!r} to {target}")
            return parsed_float
        return float(value)

    return format_value(value)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def format_value(value: object, decimal_places: int = 2) -> str:
    """Render a value for the narrative."""
    if value is None:
        return "?"
    if value is True:
        return "TRUE"
    if value is False:
        return "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN (erro)"
        if value == math.inf:
            return "∞ (div/0)"
        if value == -math.inf:
            return "-∞ (div/0)"
        if value.is_integer():
            return str(int(value))
        return f"{value:.{decimal_places}f}"
    return str(value)


def to_source(value: object) -> str:
    """Render a value as expression text for substitution."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return repr(value)
    if isinstance(value, int):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'
