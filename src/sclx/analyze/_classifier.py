"""Comment stripping and structural classification."""

from __future__ import annotations

import re

from sclx.model.types import Construct, ConstructKind


_SOURCE_PART_RE = re.compile(
    r"(?P<string>'[^']*')"
    r"|(?P<comment>//[^\n]*|\(\*[\s\S]*?\*\)|\{[\s\S]*?\})"
)

_IF_RE = re.compile(r"\bIF\b", re.IGNORECASE)
_FOR_RE = re.compile(r"\bFOR\b", re.IGNORECASE)
_WHILE_RE = re.compile(r"\bWHILE\b", re.IGNORECASE)
_REPEAT_RE = re.compile(r"\bREPEAT\b", re.IGNORECASE)
_CASE_RE = re.compile(r"\bCASE\b", re.IGNORECASE)
_TIMER_RE = re.compile(r"\b(TONR|TON|TOF|TP)\b", re.IGNORECASE)
_COUNTER_RE = re.compile(r"\b(CTUD|CTU|CTD)\b", re.IGNORECASE)

# Fixed priority: the first satisfied marker governs dispatch.
_KEYWORD_MARKERS = (
    (ConstructKind.IF, _IF_RE),
    (ConstructKind.FOR, _FOR_RE),
    (ConstructKind.WHILE, _WHILE_RE),
    (ConstructKind.REPEAT, _REPEAT_RE),
    (ConstructKind.CASE, _CASE_RE),
)

_INSTRUCTION_MARKERS = (
    (ConstructKind.TIMER, _TIMER_RE),
    (ConstructKind.COUNTER, _COUNTER_RE),
)


def strip_comments(code: str, keep_strings: bool = False) -> str:
    """Remove comments, and blank out string literals unless *keep_strings*.

    Double-quoted tag names are always kept.  Blanked single-quoted
    literals become ``''`` so their contents never look like keywords or
    identifiers.  Comment markers inside a literal are not comments.
    """
    def _replace(m: re.Match[str]) -> str:
        if m.group("comment") is not None:
            return ""
        return m.group(0) if keep_strings else "''"

    return _SOURCE_PART_RE.sub(_replace, code)


def classify(code: str) -> Construct:
    """Determine the single dominant construct of *code*.

    Nested constructs inside the outer one are not classified separately.
    """
    clean = strip_comments(code)

    for kind, pattern in _KEYWORD_MARKERS:
        if pattern.search(clean):
            return Construct(kind=kind)

    for kind, pattern in _INSTRUCTION_MARKERS:
        m = pattern.search(clean)
        if m is not None:
            return Construct(kind=kind, instruction=m.group(1).upper())

    return Construct(kind=ConstructKind.PLAIN)
