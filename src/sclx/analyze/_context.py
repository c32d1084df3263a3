"""Per-run analysis state.

A ``RunContext`` is created at the start of every ``analyze()`` call and
dropped when the call returns.  Nothing in it outlives a run, so separate
runs never observe each other's bindings.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from sclx.model.results import (
    AssignmentResult,
    BindingOrigin,
    Diagnostic,
    LocalBinding,
    Severity,
)
from sclx.model.snapshot import TagSnapshot

from ._values import decode_tag_value, to_source


class LocalEnvironment:
    """Name -> LocalBinding map with case-insensitive lookup.

    Seeded from the tag snapshot (origin ``cache``); assignments create or
    overwrite bindings (origin ``computed``).  Names differing only in case
    share one binding and the last write wins.
    """

    def __init__(self) -> None:
        self._bindings: dict[str, LocalBinding] = {}

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, TagSnapshot]) -> LocalEnvironment:
        env = cls()
        for tag in snapshot.values():
            # Case-variant aliases point at the same tag; the first one wins.
            if env.lookup(tag.name) is not None:
                continue
            env._bindings[tag.name.casefold()] = LocalBinding(
                name=tag.name,
                value=decode_tag_value(tag.value, tag.data_type),
                declared_type=tag.data_type,
                origin=BindingOrigin.CACHE,
            )
        return env

    def lookup(self, name: str) -> LocalBinding | None:
        return self._bindings.get(name.lstrip("#").casefold())

    def bind_computed(self, name: str, value: object, declared_type: str) -> LocalBinding:
        """Create or overwrite a computed binding."""
        key = name.casefold()
        binding = LocalBinding(
            name=name,
            value=value,
            declared_type=declared_type,
            origin=BindingOrigin.COMPUTED,
        )
        previous = self._bindings.get(key)
        if previous is not None and previous.origin == BindingOrigin.CACHE:
            # Move to the end so computed bindings keep first-assignment order.
            del self._bindings[key]
        self._bindings[key] = binding
        return binding

    def names(self) -> list[str]:
        """Bound names, longest first."""
        return sorted((b.name for b in self._bindings.values()), key=len, reverse=True)

    def source_text(self, name: str) -> str:
        """Expression text for *name*'s current value; ``0`` when unbound."""
        binding = self.lookup(name)
        if binding is None:
            return "0"
        return to_source(binding.value)

    def computed(self) -> list[LocalBinding]:
        return [b for b in self._bindings.values() if b.origin == BindingOrigin.COMPUTED]

    def __iter__(self) -> Iterator[LocalBinding]:
        return iter(list(self._bindings.values()))

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None


class RunContext:
    """Everything one analysis run accumulates."""

    def __init__(self, env: LocalEnvironment, decimal_places: int = 2) -> None:
        self.env = env
        self.decimal_places = decimal_places
        self.steps: list[str] = []
        self.assignments: list[AssignmentResult] = []
        self.diagnostics: list[Diagnostic] = []

    @classmethod
    def from_snapshot(
        cls, snapshot: Mapping[str, TagSnapshot], decimal_places: int = 2,
    ) -> RunContext:
        return cls(LocalEnvironment.from_snapshot(snapshot), decimal_places)

    def step(self, text: str) -> None:
        self.steps.append(text)

    def warn(self, message: str, variable: str | None = None,
             severity: Severity = Severity.WARNING) -> None:
        self.diagnostics.append(
            Diagnostic(severity=severity, message=message, variable=variable)
        )
