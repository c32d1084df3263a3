"""Tests for the explanation builder, summary and statistics."""

import math

from sclx.analyze._narrative import build_narrative, compute_statistics, summarize
from sclx.model.results import BindingOrigin, Diagnostic, LocalBinding, Severity


def _binding(name, value, declared_type):
    return LocalBinding(
        name=name, value=value, declared_type=declared_type, origin=BindingOrigin.COMPUTED,
    )


class TestBuildNarrative:
    def test_steps_only(self):
        assert build_narrative(["a", "b"], [], []) == "a\nb"

    def test_all_sections(self):
        narrative = build_narrative(
            ["Rate := 10 / 0 → ∞ (div/0)"],
            [Diagnostic(severity=Severity.WARNING, message="Divisão por zero em: Rate → ∞ (div/0)")],
            [_binding("Rate", math.inf, "REAL")],
        )
        assert narrative == (
            "Rate := 10 / 0 → ∞ (div/0)\n"
            "\n"
            "Avisos:\n"
            "⚠ Divisão por zero em: Rate → ∞ (div/0)\n"
            "\n"
            "Resultados:\n"
            "  Rate = ∞ (div/0) [REAL]"
        )

    def test_results_formatting(self):
        narrative = build_narrative(
            [], [], [_binding("Motor", True, "BOOL"), _binding("Ratio", 1 / 3, "REAL")],
            decimal_places=3,
        )
        assert narrative == "Resultados:\n  Motor = TRUE [BOOL]\n  Ratio = 0.333 [REAL]"

    def test_empty(self):
        assert build_narrative([], [], []) == ""


class TestSummarize:
    def test_empty(self):
        assert summarize("  \n\n ") == "Código vazio"

    def test_single_line(self):
        assert summarize("\n  Motor := Run;  \n") == "Motor := Run;"

    def test_many_lines(self):
        assert summarize("a := 1;\n\nb := 2;\nc := 3;") == "Lógica SCL com 3 linhas"


class TestStatistics:
    def test_line_kinds(self):
        code = "// header\nA := 1;\n\n(* note *)\nB := 2;"
        stats = compute_statistics(code, tags_in_snapshot=1, tags_not_in_snapshot=1)
        assert stats.total_lines == 5
        assert stats.code_lines == 2
        assert stats.comment_lines == 2
        assert stats.empty_lines == 1
        assert stats.tags_found == 2
        assert stats.tags_in_snapshot == 1
        assert stats.tags_not_in_snapshot == 1

    def test_multiline_block_comment(self):
        code = "(* first\nsecond\nthird *)\nA := 1;"
        stats = compute_statistics(code, 0, 0)
        assert stats.comment_lines == 3
        assert stats.code_lines == 1

    def test_multiline_brace_comment(self):
        code = "{\n  note\n}\nA := 1;"
        stats = compute_statistics(code, 0, 0)
        assert stats.comment_lines == 3
