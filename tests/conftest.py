"""Shared test helpers for the sclx test suite."""

import textwrap

from sclx.analyze._context import RunContext
from sclx.analyze._executor import ExecutionEngine
from sclx.model.snapshot import TagSnapshot, build_snapshot
from sclx.model.types import Construct, ConstructKind


def tag(name, value, data_type="BOOL", **extra):
    """Shorthand for a TagSnapshot."""
    return TagSnapshot(name=name, value=value, data_type=data_type, **extra)


def snapshot(*tags):
    """Build a snapshot keyed by tag name from TagSnapshot objects."""
    return build_snapshot({t.name: t for t in tags})


def scl(source: str) -> str:
    """Dedent an SCL snippet written inline in a test."""
    return textwrap.dedent(source).strip()


def run_engine(code, kind=ConstructKind.PLAIN, tags=(), instruction=None, decimal_places=2):
    """Execute comment-free *code* as *kind* and return the RunContext."""
    ctx = RunContext.from_snapshot(snapshot(*tags), decimal_places)
    ExecutionEngine(ctx).execute(Construct(kind=kind, instruction=instruction), scl(code))
    return ctx


def bound(ctx, name):
    """Value of a binding in *ctx*, or raise KeyError."""
    binding = ctx.env.lookup(name)
    if binding is None:
        raise KeyError(name)
    return binding.value
