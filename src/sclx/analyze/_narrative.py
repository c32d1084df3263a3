"""Explanation builder: narrative text, summary and code statistics."""

from __future__ import annotations

from sclx.model.results import Diagnostic, LocalBinding, Statistics

from ._values import format_value


WARNING_MARKER = "⚠"


def build_narrative(
    steps: list[str],
    diagnostics: list[Diagnostic],
    bindings: list[LocalBinding],
    decimal_places: int = 2,
) -> str:
    """Concatenate steps, a diagnostics block and a results block.

    Only computed bindings belong in *bindings*; the caller filters.
    """
    sections: list[str] = []

    if steps:
        sections.append("\n".join(steps))

    if diagnostics:
        sections.append(
            "\n".join(["Avisos:"] + [f"{WARNING_MARKER} {d.message}" for d in diagnostics])
        )

    if bindings:
        lines = ["Resultados:"]
        for b in bindings:
            lines.append(
                f"  {b.name} = {format_value(b.value, decimal_places)} [{b.declared_type}]"
            )
        sections.append("\n".join(lines))

    return "\n\n".join(sections).strip()


def summarize(clean_code: str) -> str:
    """One-line summary of comment-stripped code."""
    lines = [line.strip() for line in clean_code.split("\n") if line.strip()]
    if not lines:
        return "Código vazio"
    if len(lines) == 1:
        return lines[0]
    return f"Lógica SCL com {len(lines)} linhas"


def compute_statistics(
    code: str,
    tags_in_snapshot: int,
    tags_not_in_snapshot: int,
) -> Statistics:
    """Count lines by kind.  Lines inside multi-line ``(* *)`` or ``{ }``
    comments count as comment lines."""
    lines = code.split("\n")
    code_lines = comment_lines = empty_lines = 0
    closing: str | None = None

    for line in lines:
        trimmed = line.strip()

        if closing is not None:
            comment_lines += 1
            if closing in trimmed:
                closing = None
            continue

        if not trimmed:
            empty_lines += 1
        elif trimmed.startswith("//"):
            comment_lines += 1
        elif trimmed.startswith("(*"):
            comment_lines += 1
            if "*)" not in trimmed[2:]:
                closing = "*)"
        elif trimmed.startswith("{"):
            comment_lines += 1
            if "}" not in trimmed[1:]:
                closing = "}"
        else:
            code_lines += 1

    return Statistics(
        total_lines=len(lines),
        code_lines=code_lines,
        comment_lines=comment_lines,
        empty_lines=empty_lines,
        tags_found=tags_in_snapshot + tags_not_in_snapshot,
        tags_in_snapshot=tags_in_snapshot,
        tags_not_in_snapshot=tags_not_in_snapshot,
    )
