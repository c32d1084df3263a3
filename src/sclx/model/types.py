"""Type vocabulary shared by the analyzer.

Three distinct concepts:
- DataType: an IEC 61131-3 elementary type as declared for a PLC tag.
  Snapshots may carry type names outside this enum; those are kept as
  plain text and decoded best-effort.
- InferredType: the type the analyzer assigns to a computed value.
- Construct: the dominant control construct detected in a code snippet.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Declared types
# ---------------------------------------------------------------------------

class DataType(str, Enum):
    """IEC 61131-3 elementary types understood by the value decoder."""

    # Boolean
    BOOL = "BOOL"

    # Bit-string
    BYTE = "BYTE"
    WORD = "WORD"
    DWORD = "DWORD"
    LWORD = "LWORD"

    # Signed integer
    SINT = "SINT"
    INT = "INT"
    DINT = "DINT"
    LINT = "LINT"

    # Unsigned integer
    USINT = "USINT"
    UINT = "UINT"
    UDINT = "UDINT"
    ULINT = "ULINT"

    # Floating point
    REAL = "REAL"
    LREAL = "LREAL"

    # Duration
    TIME = "TIME"
    LTIME = "LTIME"

    # Character / text
    CHAR = "CHAR"
    WCHAR = "WCHAR"
    STRING = "STRING"
    WSTRING = "WSTRING"


INTEGER_TYPES = frozenset({
    DataType.SINT, DataType.INT, DataType.DINT, DataType.LINT,
    DataType.USINT, DataType.UINT, DataType.UDINT, DataType.ULINT,
    DataType.BYTE, DataType.WORD, DataType.DWORD, DataType.LWORD,
})

FLOAT_TYPES = frozenset({
    DataType.REAL, DataType.LREAL,
})

TIME_TYPES = frozenset({
    DataType.TIME, DataType.LTIME,
})


def lookup_data_type(name: str) -> DataType | None:
    """Return the DataType for a declared type name, or None if unknown."""
    try:
        return DataType(name.strip().upper())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Inferred types
# ---------------------------------------------------------------------------

class InferredType(str, Enum):
    """Type assigned to a value produced by an executed assignment."""

    BOOL = "BOOL"
    INT = "INT"
    REAL = "REAL"
    STRING = "STRING"
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# Structural classification
# ---------------------------------------------------------------------------

class ConstructKind(str, Enum):
    IF = "IF"
    FOR = "FOR"
    WHILE = "WHILE"
    REPEAT = "REPEAT"
    CASE = "CASE"
    TIMER = "TIMER"
    COUNTER = "COUNTER"
    PLAIN = "PLAIN"


class Construct(BaseModel):
    """The single construct governing dispatch for one snippet.

    *instruction* names the detected TIMER/COUNTER instruction
    (e.g. ``TON`` or ``CTUD``) and is None for every other kind.
    """

    kind: ConstructKind
    instruction: str | None = None
