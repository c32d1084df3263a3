"""Tag extraction: find the identifiers a snippet references and resolve
them against the snapshot."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from sclx.model.results import TagRecord
from sclx.model.snapshot import TagSnapshot, find_tag

from ._builtins import STDLIB_FUNCTIONS


SCL_KEYWORDS = frozenset({
    "IF", "THEN", "ELSIF", "ELSE", "END_IF",
    "CASE", "OF", "END_CASE",
    "FOR", "TO", "BY", "DO", "END_FOR",
    "WHILE", "END_WHILE",
    "REPEAT", "UNTIL", "END_REPEAT",
    "EXIT", "CONTINUE", "RETURN", "GOTO",
    "FUNCTION", "FUNCTION_BLOCK", "END_FUNCTION", "END_FUNCTION_BLOCK",
    "PROGRAM", "END_PROGRAM",
    "VAR", "VAR_INPUT", "VAR_OUTPUT", "VAR_IN_OUT", "VAR_TEMP", "VAR_STATIC", "END_VAR",
    "CONST", "END_CONST", "TYPE", "END_TYPE", "STRUCT", "END_STRUCT",
    "REGION", "END_REGION",
    "BOOL", "BYTE", "WORD", "DWORD", "LWORD",
    "SINT", "INT", "DINT", "LINT", "USINT", "UINT", "UDINT", "ULINT",
    "REAL", "LREAL", "TIME", "DATE", "TIME_OF_DAY", "TOD", "DATE_AND_TIME", "DT",
    "STRING", "WSTRING", "CHAR", "WCHAR", "ARRAY", "POINTER", "REF_TO",
    "AND", "OR", "XOR", "NOT", "TRUE", "FALSE", "NULL", "MOD",
    "ABS", "SQR", "SQRT", "LN", "LOG", "EXP", "SIN", "COS", "TAN",
    "ROUND", "TRUNC", "CEIL", "FLOOR", "MAX", "MIN", "LIMIT", "SEL", "MUX",
    "SHL", "SHR", "ROL", "ROR", "LEN", "LEFT", "RIGHT", "MID", "CONCAT",
    "TON", "TOF", "TP", "TONR", "CTU", "CTD", "CTUD", "R_TRIG", "F_TRIG",
}) | frozenset(STDLIB_FUNCTIONS)

# INT_TO_REAL, REAL_TO_DINT, ...
_CONVERSION_RE = re.compile(r"^[A-Z]+_TO_[A-Z]+$")

_QUOTED_RE = re.compile(r'"([^"]+)"')
_STRING_RE = re.compile(r"'[^']*'")
# Formal parameter names of a call: inst(IN := x, Q => y)
_NAMED_PARAM_RE = re.compile(r"([(,]\s*)[A-Za-z_][A-Za-z0-9_]*(\s*(?::=|=>))")
# Words directly followed by "#" are typed-literal prefixes (T#5s); words
# right after "<digits>#" are based-literal digits (16#FF).  A word after
# "." is a member (Timer.Q), not a tag of its own.
_BARE_RE = re.compile(r"(?<![0-9]#)(?<!\.)\b[A-Za-z_][A-Za-z0-9_]*\b(?!#)")


def is_keyword(word: str) -> bool:
    upper = word.upper()
    return upper in SCL_KEYWORDS or _CONVERSION_RE.match(upper) is not None


def find_identifiers(code: str) -> list[str]:
    """Candidate identifiers in first-occurrence order: quoted ones first,
    then bare words outside quotes.

    Keywords, standard functions, conversions, members after "." and the
    formal parameter names of a call are excluded.
    """
    seen: set[str] = set()
    result: list[str] = []

    def _add(name: str) -> None:
        if name in seen or is_keyword(name):
            return
        seen.add(name)
        result.append(name)

    for m in _QUOTED_RE.finditer(code):
        _add(m.group(1))

    unquoted = _STRING_RE.sub("''", _QUOTED_RE.sub(" ", code))
    unquoted = _NAMED_PARAM_RE.sub(r"\1\2", unquoted)
    for m in _BARE_RE.finditer(unquoted):
        _add(m.group(0))

    return result


@dataclass
class Extraction:
    """Resolved tag records plus the identifiers that did not resolve."""

    records: list[TagRecord] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


def extract_tags(
    code: str,
    snapshot: Mapping[str, TagSnapshot],
    include_unresolved: bool = False,
) -> Extraction:
    """Resolve every identifier of the (comment-stripped) *code*.

    Records are de-duplicated by resolved tag name, case-insensitively, in
    first-occurrence order.  Unresolved identifiers are reported separately
    and only become records when *include_unresolved* is set.
    """
    extraction = Extraction()
    resolved: set[str] = set()
    missing: set[str] = set()

    for name in find_identifiers(code):
        tag = find_tag(snapshot, name)
        if tag is None:
            key = name.casefold()
            if key in missing:
                continue
            missing.add(key)
            extraction.unresolved.append(name)
            if include_unresolved:
                extraction.records.append(
                    TagRecord(
                        name=name,
                        declared_type="UNKNOWN",
                        value="",
                        found_in_snapshot=False,
                    )
                )
            continue

        key = tag.name.casefold()
        if key in resolved:
            continue
        resolved.add(key)
        extraction.records.append(
            TagRecord(
                name=tag.name,
                declared_type=tag.data_type,
                value=tag.value,
                found_in_snapshot=True,
                address=tag.address,
                quality=tag.quality,
            )
        )

    return extraction
