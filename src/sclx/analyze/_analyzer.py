"""SclAnalyzer: one full analysis run over a code snippet."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from time import perf_counter
from typing import Any

from sclx.model.results import AnalysisResult, Severity, Statistics
from sclx.model.snapshot import TagSnapshot, build_snapshot
from sclx.model.types import Construct, ConstructKind

from ._classifier import classify, strip_comments
from ._config import AnalyzerConfig
from ._context import RunContext
from ._executor import ExecutionEngine
from ._narrative import build_narrative, compute_statistics, summarize
from ._tags import Extraction, extract_tags

logger = logging.getLogger(__name__)


class SclAnalyzer:
    """Analyze SCL snippets against a tag snapshot.

    The analyzer holds configuration and an optional default tag cache.
    Every ``analyze()`` call builds its own ``RunContext``, so calls never
    share bindings, steps or diagnostics.

    Parameters
    ----------
    config : AnalyzerConfig, optional
        Analysis options.  Defaults to ``AnalyzerConfig()``.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self.config = config or AnalyzerConfig()
        self._tag_cache: dict[str, TagSnapshot] = {}

    def set_tag_cache(
        self, snapshot: Mapping[str, TagSnapshot | Mapping[str, Any]] | None,
    ) -> None:
        """Replace the snapshot used when ``analyze()`` gets none."""
        self._tag_cache = build_snapshot(snapshot)

    def analyze(
        self,
        code: str,
        snapshot: Mapping[str, TagSnapshot | Mapping[str, Any]] | None = None,
    ) -> AnalysisResult:
        """Classify, extract, execute and explain *code*.

        Parameters
        ----------
        code
            SCL source text.  Comments are ignored.
        snapshot
            Tag name -> tag state.  Falls back to the cache installed with
            ``set_tag_cache()``.

        Returns
        -------
        AnalysisResult
            Never raises for malformed code or a malformed snapshot:
            failures are reported through ``success=False`` and an ERROR
            diagnostic.
        """
        started = perf_counter()
        success = True
        snapshot_error: Exception | None = None
        try:
            tags = build_snapshot(snapshot) if snapshot is not None else self._tag_cache
        except (TypeError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning("Ignoring malformed tag snapshot: %s", e)
            snapshot_error = e
            tags = {}
        ctx = RunContext.from_snapshot(tags, self.config.decimal_places)
        if snapshot_error is not None:
            success = False
            ctx.warn(f"Snapshot de tags inválido: {snapshot_error}", severity=Severity.ERROR)

        structure = Construct(kind=ConstructKind.PLAIN)
        clean = ""
        source = ""
        extraction = Extraction()
        statistics = Statistics()

        try:
            structure = classify(code)
            clean = strip_comments(code)
            source = strip_comments(code, keep_strings=True)
            extraction = extract_tags(
                clean, tags, include_unresolved=self.config.report_unresolved_tags,
            )
            statistics = compute_statistics(
                code,
                tags_in_snapshot=sum(1 for r in extraction.records if r.found_in_snapshot),
                tags_not_in_snapshot=len(extraction.unresolved),
            )
            logger.debug(
                "Classified snippet as %s (%d tags, %d unresolved)",
                structure.kind.value, len(extraction.records), len(extraction.unresolved),
            )
            ExecutionEngine(ctx).execute(structure, source)
        except Exception as e:
            logger.exception("Analysis failed")
            success = False
            ctx.warn(f"Erro na análise: {e}", severity=Severity.ERROR)

        bindings = ctx.env.computed()
        narrative = build_narrative(
            ctx.steps, ctx.diagnostics, bindings, self.config.decimal_places,
        )

        elapsed_ms = (perf_counter() - started) * 1000
        if elapsed_ms > self.config.max_execution_time_ms:
            logger.warning(
                "Analysis took %.0f ms (budget %d ms)",
                elapsed_ms, self.config.max_execution_time_ms,
            )

        return AnalysisResult(
            success=success,
            classified_type=structure.kind,
            structure=structure,
            summary=summarize(source),
            tags_referenced=extraction.records,
            assignments=ctx.assignments,
            bindings=bindings,
            narrative=narrative,
            diagnostics=ctx.diagnostics,
            statistics=statistics,
        )
