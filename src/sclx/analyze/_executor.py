"""Structural executors: one behavior per classified construct.

Only plain assignments and IF structures are evaluated for real.  Loops,
CASE, timers and counters are described once and their bodies scanned a
single time with the plain-assignment scanner.  This is a simplification
boundary of a read-only diagnostic tool: no loop iterates, no timer runs,
no CASE branch is selected for execution.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from sclx.model.results import AssignmentResult, Severity
from sclx.model.types import Construct, ConstructKind

from ._context import RunContext
from ._evaluator import ExpressionEvaluator
from ._tags import find_identifiers
from ._values import format_value, infer_type, is_anomalous, normalize_number

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# target := expression ;  The right-hand side never spans another ':='
# and may hold ';' or ':' only inside a string literal.
_ASSIGN_RE = re.compile(
    r'#?"?([A-Za-z_][A-Za-z0-9_]*)"?\s*:=\s*'
    r"((?:'[^']*'|[^;:']|:(?!=))+?)\s*;"
)

# inst(P := x, Q => y): parameterised FB call
_CALL_RE = re.compile(
    r'(?P<inst>(?:"[^"]+"|#?[A-Za-z_]\w*)(?:\.(?:"[^"]+"|[A-Za-z_]\w*))*)'
    r"\s*\((?P<params>[^()]*(?::=|=>)[^()]*)\)\s*;?"
)
_PARAM_RE = re.compile(r"^\s*(\w+)\s*(:=|=>)\s*(.*?)\s*$", re.DOTALL)

# String literals are matched so that words inside them are skipped.
_IF_TOKEN_RE = re.compile(
    r"'[^']*'|\b(IF|THEN|ELSIF|ELSE|END_IF)\b", re.IGNORECASE,
)
_LOGIC_SPLIT_RE = re.compile(
    r"""\(|\)|"[^"]*"|'[^']*'|\b(AND|OR)\b""", re.IGNORECASE,
)
_QUOTED_NAME_RE = re.compile(r'"([^"]+)"')

_FOR_RE = re.compile(
    r'\bFOR\s+#?"?(\w+)"?\s*:=\s*(.+?)\s+TO\s+(.+?)(?:\s+BY\s+(.+?))?\s+DO\b',
    re.IGNORECASE | re.DOTALL,
)
_WHILE_RE = re.compile(r"\bWHILE\s+(.+?)\s+DO\b", re.IGNORECASE | re.DOTALL)
_UNTIL_RE = re.compile(
    r"\bUNTIL\s+(.+?)\s*(?:;|\bEND_REPEAT\b|$)", re.IGNORECASE | re.DOTALL,
)
_CASE_RE = re.compile(r'\bCASE\s+(#?"?[\w.]+"?)\s+OF\b', re.IGNORECASE)
_CASE_LABEL_RE = re.compile(
    r"(?:^|;|\bOF\b|\bEND_IF\b)\s*"
    r"(-?\d+(?:\s*\.\.\s*-?\d+)?(?:\s*,\s*-?\d+(?:\s*\.\.\s*-?\d+)?)*)"
    r"\s*:(?!=)",
    re.IGNORECASE | re.MULTILINE,
)
_CASE_ELSE_RE = re.compile(r"\bELSE\b", re.IGNORECASE)


TIMER_DESCRIPTIONS: dict[str, str] = {
    "TON": "Timer TON: liga saída após tempo (delay on)",
    "TOF": "Timer TOF: desliga saída após tempo (delay off)",
    "TP": "Timer TP: gera pulso com duração definida",
    "TONR": "Timer TONR: timer com retenção",
}

COUNTER_DESCRIPTIONS: dict[str, str] = {
    "CTU": "Contador CTU: incrementa a cada pulso",
    "CTD": "Contador CTD: decrementa a cada pulso",
    "CTUD": "Contador CTUD: conta para cima e para baixo",
}


def clean_for_display(text: str) -> str:
    """Unquote tag names and collapse whitespace."""
    return " ".join(_QUOTED_NAME_RE.sub(r"\1", text).split())


def _verdict(value: object) -> str:
    if value is True:
        return "VERDADEIRA"
    if value is False:
        return "FALSA"
    return "indeterminada"


# ---------------------------------------------------------------------------
# IF structure splitting
# ---------------------------------------------------------------------------

@dataclass
class IfBlock:
    """An ``IF … END_IF`` split into its parts.

    *branches* holds ``(condition, body)`` for the IF and every ELSIF, in
    order.  *prefix* and *suffix* are the statements around the structure.
    """

    prefix: str
    branches: list[tuple[str, str]] = field(default_factory=list)
    else_body: str | None = None
    suffix: str = ""


def split_if(code: str) -> IfBlock | None:
    """Split the first top-level IF structure of *code*.

    Nested IFs stay inside their enclosing body.  Returns None when the
    structure is malformed (no THEN, no matching END_IF).
    """
    tokens = [t for t in _IF_TOKEN_RE.finditer(code) if t.group(1)]
    first = next(
        (i for i, t in enumerate(tokens) if t.group(1).upper() == "IF"), None,
    )
    if first is None:
        return None

    block = IfBlock(prefix=code[:tokens[first].start()])
    depth = 0
    cond_start: int | None = None
    body_start: int | None = None
    condition = ""
    in_else = False

    for tok in tokens[first:]:
        word = tok.group(1).upper()

        if word == "IF":
            depth += 1
            if depth == 1:
                cond_start = tok.end()
            continue

        if depth > 1:
            if word == "END_IF":
                depth -= 1
            continue

        if word == "THEN":
            if cond_start is None:
                return None
            condition = code[cond_start:tok.start()].strip()
            if not condition:
                return None
            cond_start = None
            body_start = tok.end()
            continue

        # ELSIF / ELSE / END_IF close the current section
        if cond_start is not None or body_start is None:
            return None
        body = code[body_start:tok.start()]
        if in_else:
            block.else_body = body
        else:
            block.branches.append((condition, body))
        body_start = None

        if word == "ELSIF":
            if in_else:
                return None
            cond_start = tok.end()
        elif word == "ELSE":
            if in_else:
                return None
            in_else = True
            body_start = tok.end()
        else:
            block.suffix = re.sub(r"^\s*;", "", code[tok.end():])
            return block

    return None


def strip_outer_parens(condition: str) -> str:
    """Drop one pair of parentheses enclosing the whole of *condition*."""
    condition = condition.strip()
    if not condition.startswith("("):
        return condition
    depth = 0
    for m in _LOGIC_SPLIT_RE.finditer(condition):
        token = m.group(0)
        if token == "(":
            depth += 1
        elif token == ")":
            depth -= 1
            if depth == 0:
                if m.end() == len(condition):
                    return condition[1:-1].strip()
                return condition
    return condition


def split_logic_operands(condition: str) -> list[str]:
    """Split *condition* at top-level AND/OR operators.

    A single pair of parentheses around the whole condition is ignored.
    """
    condition = strip_outer_parens(condition)
    operands: list[str] = []
    depth = 0
    start = 0
    for m in _LOGIC_SPLIT_RE.finditer(condition):
        token = m.group(0)
        if token == "(":
            depth += 1
        elif token == ")":
            depth -= 1
        elif m.group(1) and depth == 0:
            operands.append(condition[start:m.start()].strip())
            start = m.end()
    operands.append(condition[start:].strip())
    return [op for op in operands if op]


def _case_label_matches(label: str, selector: int) -> bool:
    for part in label.split(","):
        lo, sep, hi = part.partition("..")
        if sep:
            if int(lo) <= selector <= int(hi):
                return True
        elif int(part) == selector:
            return True
    return False


# ---------------------------------------------------------------------------
# ExecutionEngine
# ---------------------------------------------------------------------------

class ExecutionEngine:
    """Run the executor matching a classified construct.

    Parameters
    ----------
    ctx : RunContext
        Per-run state: environment, steps, assignments, diagnostics.
        Mutated in place.
    """

    def __init__(self, ctx: RunContext) -> None:
        self.ctx = ctx
        self.evaluator = ExpressionEvaluator(ctx.env)

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def execute(self, construct: Construct, code: str) -> None:
        """Execute comment-stripped *code* according to *construct*."""
        handler = self._CONSTRUCT_DISPATCH[construct.kind]
        handler(self, construct, code)

    def evaluate(self, expression: str) -> object:
        return self.evaluator.evaluate(expression)

    def fmt(self, value: object) -> str:
        return format_value(value, self.ctx.decimal_places)

    # -----------------------------------------------------------------------
    # PLAIN
    # -----------------------------------------------------------------------

    def execute_assignments(self, code: str) -> None:
        """Execute every ``target := expression;`` in document order."""
        code = self._strip_calls(code)
        for m in _ASSIGN_RE.finditer(code):
            # Named arguments of a function call, not a statement.
            before = code[:m.start()]
            if before.count("(") > before.count(")"):
                continue
            self._assign(m.group(1), m.group(2).strip())

    def _assign(self, target: str, expression: str) -> None:
        value = normalize_number(self.evaluate(expression))
        inferred = infer_type(value)

        if value is None:
            self.ctx.warn(
                f"Expressão não avaliada em: {target}",
                variable=target, severity=Severity.INFO,
            )
        elif is_anomalous(value):
            if math.isnan(value):
                self.ctx.warn(
                    f"Resultado inválido (NaN) em: {target} - possível divisão por zero",
                    variable=target,
                )
            else:
                self.ctx.warn(
                    f"Divisão por zero em: {target} → {self.fmt(value)}",
                    variable=target,
                )

        self.ctx.env.bind_computed(target, value, inferred.value)
        self.ctx.assignments.append(
            AssignmentResult(
                variable_name=target,
                value=value,
                inferred_type=inferred,
                source_expression=expression,
            )
        )
        self.ctx.step(
            f"{target} := {clean_for_display(expression)} → {self.fmt(value)}"
        )

    @staticmethod
    def _strip_calls(code: str) -> str:
        """Drop parameterised FB call statements; their ``P := x`` lists
        are parameters, not assignments."""
        def _drop(m: re.Match[str]) -> str:
            before = code[:m.start()].rstrip()
            if before and before[-1] in "=(,+-*/<>":
                # Call inside an expression; keep it.
                return m.group(0)
            return ""

        return _CALL_RE.sub(_drop, code)

    def _exec_plain(self, _construct: Construct, code: str) -> None:
        self.execute_assignments(code)

    # -----------------------------------------------------------------------
    # IF
    # -----------------------------------------------------------------------

    def _exec_if(self, _construct: Construct, code: str) -> None:
        block = split_if(code)
        if block is None:
            logger.info("IF structure without THEN/END_IF; nothing executed")
            return

        self.execute_assignments(block.prefix)

        executed = False
        for i, (condition, body) in enumerate(block.branches):
            keyword = "IF" if i == 0 else "ELSIF"
            if self._test_condition(keyword, condition):
                self.ctx.step("→ Executa bloco THEN" if i == 0 else "→ Executa bloco ELSIF")
                self.execute_assignments(body)
                executed = True
                break

        if not executed:
            if block.else_body is not None and block.else_body.strip():
                self.ctx.step("→ Executa bloco ELSE")
                self.execute_assignments(block.else_body)
            else:
                self.ctx.step("→ Nenhum bloco executado")

        if block.suffix.strip():
            self.execute_assignments(block.suffix)

    def _test_condition(self, keyword: str, condition: str) -> bool:
        self.ctx.step(f"{keyword} {clean_for_display(condition)}")

        values = self._format_values_used(condition)
        if values:
            self.ctx.step(values)

        operands = split_logic_operands(condition)
        if len(operands) > 1:
            lines = ["Avaliação:"]
            for operand in operands:
                lines.append(
                    f"  {clean_for_display(operand)} → {self.fmt(self.evaluate(operand))}"
                )
            self.ctx.step("\n".join(lines))

        result = self.evaluate(condition)
        self.ctx.step(f"Condição: {'VERDADEIRA' if result is True else 'FALSA'}")
        return result is True

    def _format_values_used(self, expression: str) -> str:
        lines: list[str] = []
        seen: set[str] = set()
        for name in find_identifiers(expression):
            binding = self.ctx.env.lookup(name)
            if binding is None or binding.name.casefold() in seen:
                continue
            seen.add(binding.name.casefold())
            lines.append(
                f"  {binding.name} [{binding.declared_type}] = {self.fmt(binding.value)}"
            )
        if not lines:
            return ""
        return "\n".join(["Valores atuais:"] + lines)

    # -----------------------------------------------------------------------
    # FOR / WHILE / REPEAT
    # -----------------------------------------------------------------------

    def _exec_loop(self, construct: Construct, code: str) -> None:
        description = "Estrutura de repetição"
        body = code

        if construct.kind == ConstructKind.FOR:
            m = _FOR_RE.search(code)
            if m is not None:
                description = (
                    f"Loop FOR: {m.group(1)} de {clean_for_display(m.group(2))} "
                    f"até {clean_for_display(m.group(3))}"
                )
                if m.group(4):
                    description += f" (passo {clean_for_display(m.group(4))})"
                body = code[:m.start()] + code[m.end():]
        elif construct.kind == ConstructKind.WHILE:
            m = _WHILE_RE.search(code)
            if m is not None:
                current = _verdict(self.evaluate(m.group(1)))
                description = (
                    f"Loop WHILE: executa enquanto {clean_for_display(m.group(1))} "
                    f"(atualmente {current})"
                )
                body = code[:m.start()] + code[m.end():]
        else:
            m = _UNTIL_RE.search(code)
            if m is not None:
                current = _verdict(self.evaluate(m.group(1)))
                description = (
                    f"Loop REPEAT: executa até {clean_for_display(m.group(1))} "
                    f"(atualmente {current})"
                )
                body = code[:m.start()] + code[m.end():]

        self.ctx.step(description)
        # Single pass over the body; no iteration.
        self.execute_assignments(body)

    # -----------------------------------------------------------------------
    # CASE
    # -----------------------------------------------------------------------

    def _exec_case(self, _construct: Construct, code: str) -> None:
        m = _CASE_RE.search(code)
        if m is None:
            self.ctx.step("Estrutura CASE")
            self.execute_assignments(code)
            return

        selector = clean_for_display(m.group(1)).lstrip("#")
        binding = self.ctx.env.lookup(selector)
        description = f"Seletor: {selector}"
        if binding is not None:
            description += f" (valor atual: {self.fmt(binding.value)})"
        self.ctx.step(description)

        if binding is not None and type(binding.value) is int:
            self.ctx.step(self._describe_case_branch(code[m.end():], binding.value))

        self.execute_assignments(code[:m.start()] + code[m.end():])

    @staticmethod
    def _describe_case_branch(body: str, selector: int) -> str:
        for label in _CASE_LABEL_RE.finditer(body):
            text = label.group(1)
            if _case_label_matches(text, selector):
                return f"→ Ramo correspondente: {' '.join(text.split())}"
        if _CASE_ELSE_RE.search(body):
            return "→ Nenhum ramo corresponde (ELSE)"
        return "→ Nenhum ramo corresponde"

    # -----------------------------------------------------------------------
    # TIMER / COUNTER
    # -----------------------------------------------------------------------

    def _exec_timer(self, construct: Construct, code: str) -> None:
        self.ctx.step(TIMER_DESCRIPTIONS.get(construct.instruction or "", "Temporizador"))
        self._describe_calls(code)
        self.execute_assignments(code)

    def _exec_counter(self, construct: Construct, code: str) -> None:
        self.ctx.step(COUNTER_DESCRIPTIONS.get(construct.instruction or "", "Contador"))
        self._describe_calls(code)
        self.execute_assignments(code)

    def _describe_calls(self, code: str) -> None:
        for m in _CALL_RE.finditer(code):
            lines = [f"Chamada {clean_for_display(m.group('inst'))}:"]
            for param in m.group("params").split(","):
                pm = _PARAM_RE.match(param)
                if pm is None:
                    continue
                name, arrow, expr = pm.groups()
                if arrow == "=>":
                    lines.append(f"  {name} => {clean_for_display(expr)}")
                else:
                    lines.append(
                        f"  {name} := {clean_for_display(expr)} → {self.fmt(self.evaluate(expr))}"
                    )
            self.ctx.step("\n".join(lines))

    # Construct dispatch table
    _CONSTRUCT_DISPATCH: dict[ConstructKind, Callable[[ExecutionEngine, Construct, str], None]] = {
        ConstructKind.PLAIN: _exec_plain,
        ConstructKind.IF: _exec_if,
        ConstructKind.FOR: _exec_loop,
        ConstructKind.WHILE: _exec_loop,
        ConstructKind.REPEAT: _exec_loop,
        ConstructKind.CASE: _exec_case,
        ConstructKind.TIMER: _exec_timer,
        ConstructKind.COUNTER: _exec_counter,
    }
