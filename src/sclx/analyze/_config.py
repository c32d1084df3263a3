"""Analyzer configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AnalyzerConfig(BaseModel):
    """Options for ``SclAnalyzer``.

    ``max_execution_time_ms`` is a budget, not a deadline: no executor
    iterates, so runs are never interrupted.  A run that takes longer is
    logged as a warning.  Callers needing a hard deadline must wrap the
    call themselves.
    """

    model_config = ConfigDict(frozen=True)

    max_execution_time_ms: int = Field(default=5000, gt=0)
    report_unresolved_tags: bool = False
    decimal_places: int = Field(default=2, ge=0, le=10)
