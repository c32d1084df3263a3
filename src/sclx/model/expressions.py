"""Expression AST nodes produced by the expression parser."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class BinaryOp(str, Enum):
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    MOD = "MOD"
    AND = "AND"
    OR = "OR"
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GE = "GE"
    LT = "LT"
    LE = "LE"


class UnaryOp(str, Enum):
    NEG = "NEG"
    NOT = "NOT"


class LiteralExpr(BaseModel):
    """A constant already decoded to its runtime value.

    ``None`` stands for a value that could not be computed earlier in the
    run; using it in any operation makes the whole expression fail.
    """

    kind: Literal["literal"] = "literal"
    value: bool | int | float | str | None = None


class VariableRef(BaseModel):
    """Reference to a name that was not substituted before parsing."""

    kind: Literal["variable_ref"] = "variable_ref"
    name: str


class BinaryExpr(BaseModel):
    kind: Literal["binary"] = "binary"
    op: BinaryOp
    left: Expression
    right: Expression


class UnaryExpr(BaseModel):
    kind: Literal["unary"] = "unary"
    op: UnaryOp
    operand: Expression


class FunctionCallExpr(BaseModel):
    """Call to a standard function or a ``<SRC>_TO_<DST>`` conversion."""

    kind: Literal["function_call"] = "function_call"
    function_name: str
    args: list[Expression] = []


Expression = Annotated[
    Union[
        LiteralExpr,
        VariableRef,
        BinaryExpr,
        UnaryExpr,
        FunctionCallExpr,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Expression references.
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()
FunctionCallExpr.model_rebuild()
