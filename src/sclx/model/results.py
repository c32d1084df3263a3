"""Result model of one analysis run.

Python attributes are snake_case; ``model_dump(by_alias=True)`` produces
the camelCase shape consumed by the HMI front end.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .types import Construct, ConstructKind, InferredType


Value = bool | int | float | str | None


class _ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BindingOrigin(str, Enum):
    CACHE = "cache"
    COMPUTED = "computed"


class LocalBinding(_ResultModel):
    """A name resolvable during evaluation."""

    name: str
    value: Value
    declared_type: str
    origin: BindingOrigin


class AssignmentResult(_ResultModel):
    """Outcome of one executed ``target := expression;``."""

    variable_name: str
    value: Value
    inferred_type: InferredType
    source_expression: str


class Severity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Diagnostic(_ResultModel):
    """A non-fatal runtime anomaly."""

    severity: Severity
    message: str
    variable: str | None = None


class TagRecord(_ResultModel):
    """A tag referenced by the code, as found in the snapshot."""

    name: str
    declared_type: str
    value: str
    found_in_snapshot: bool = True
    address: str | None = None
    quality: str | None = None


class Statistics(_ResultModel):
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    empty_lines: int = 0
    tags_found: int = 0
    tags_in_snapshot: int = 0
    tags_not_in_snapshot: int = 0


class AnalysisResult(_ResultModel):
    """Aggregate output of ``analyze()``.  Immutable after return."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True,
    )

    success: bool
    classified_type: ConstructKind
    structure: Construct
    summary: str = ""
    tags_referenced: list[TagRecord] = []
    assignments: list[AssignmentResult] = []
    bindings: list[LocalBinding] = []
    narrative: str = ""
    diagnostics: list[Diagnostic] = []
    statistics: Statistics = Statistics()

    def binding(self, name: str) -> LocalBinding | None:
        """Final computed binding for *name* (case-insensitive), if any."""
        key = name.casefold()
        for b in self.bindings:
            if b.name.casefold() == key:
                return b
        return None

    @property
    def last_assignment(self) -> AssignmentResult | None:
        return self.assignments[-1] if self.assignments else None
