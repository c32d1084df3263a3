"""sclx analyzer — explain SCL logic against a live tag snapshot.

Entry point::

    from sclx.analyze import analyze

    result = analyze(
        'Motor := Sensor_1 AND NOT Falha;',
        {"Sensor_1": {"value": "TRUE", "data_type": "BOOL"},
         "Falha": {"value": "FALSE", "data_type": "BOOL"}},
    )
    assert result.binding("Motor").value is True
    print(result.narrative)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sclx.model.results import AnalysisResult
from sclx.model.snapshot import TagSnapshot

from ._analyzer import SclAnalyzer
from ._classifier import classify
from ._config import AnalyzerConfig
from ._values import AnalysisError, EvaluationError


def analyze(
    code: str,
    snapshot: Mapping[str, TagSnapshot | Mapping[str, Any]] | None = None,
    **config: Any,
) -> AnalysisResult:
    """Analyze one SCL snippet.

    Parameters
    ----------
    code
        SCL source text.
    snapshot
        Tag name -> ``TagSnapshot`` or a mapping with ``value``,
        ``data_type`` and optional ``address``/``quality``/``tag_name``.
    **config
        ``AnalyzerConfig`` field overrides, e.g. ``decimal_places=3``.

    Returns
    -------
    AnalysisResult
    """
    return SclAnalyzer(AnalyzerConfig(**config)).analyze(code, snapshot or {})


__all__ = [
    "analyze",
    "classify",
    "SclAnalyzer",
    "AnalyzerConfig",
    "AnalysisResult",
    "AnalysisError",
    "EvaluationError",
]
