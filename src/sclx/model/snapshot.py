"""Tag snapshot: the point-in-time PLC tag state supplied by the host.

The hosting application refreshes tag values through its own backend and
hands the analyzer a mapping ``name -> tag info``.  The mapping may contain
several keys (case variants) pointing at the same tag.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TagSnapshot(BaseModel):
    """One PLC tag's last known state.  Immutable."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="tag_name")
    value: str = ""
    data_type: str = "UNKNOWN"
    address: str | None = None
    quality: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, bool):
            return "TRUE" if v else "FALSE"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("data_type")
    @classmethod
    def _normalize_type(cls, v: str) -> str:
        return v.strip().upper() or "UNKNOWN"


def build_snapshot(
    raw: Mapping[str, TagSnapshot | Mapping[str, Any]] | None,
) -> dict[str, TagSnapshot]:
    """Normalize a host-supplied mapping into ``{key: TagSnapshot}``.

    Plain mappings without a ``tag_name``/``name`` entry take the key as
    the tag name.  Keys are preserved, so case-variant aliases survive.
    """
    snapshot: dict[str, TagSnapshot] = {}
    if not raw:
        return snapshot
    if not isinstance(raw, Mapping):
        raise TypeError(f"snapshot must be a mapping, got {type(raw).__name__}")

    for key, entry in raw.items():
        if isinstance(entry, TagSnapshot):
            snapshot[key] = entry
            continue
        if not isinstance(entry, Mapping):
            raise TypeError(
                f"snapshot entry for {key!r} must be a TagSnapshot or mapping, "
                f"got {type(entry).__name__}"
            )
        data = dict(entry)
        if "tag_name" not in data and "name" not in data:
            data["tag_name"] = key
        snapshot[key] = TagSnapshot.model_validate(data)
    return snapshot


def find_tag(snapshot: Mapping[str, TagSnapshot], name: str) -> TagSnapshot | None:
    """Resolve *name* against the snapshot: exact, lower-case, upper-case."""
    for candidate in (name, name.lower(), name.upper()):
        tag = snapshot.get(candidate)
        if tag is not None:
            return tag
    return None
