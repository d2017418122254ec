"""Normalized value model.

The store reports a handful of native value kinds.  Each is mapped to exactly
one variant of the closed ``ValueModel`` union below; a key that does not exist
at fetch time maps to ``Absent``.

Consumers dispatch with ``match`` and finish with ``assert_never`` so that a
new variant fails type checking at every consumption site.
"""

from __future__ import annotations

from typing import Annotated, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field

from keyscope.inspector.models.enums import ValueKind


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Scalar(_Frozen):
    kind: Literal[ValueKind.SCALAR] = ValueKind.SCALAR
    value: str


class ListValue(_Frozen):
    """Ordered list; order is the store's index order."""

    kind: Literal[ValueKind.LIST] = ValueKind.LIST
    items: tuple[str, ...] = ()


class SetValue(_Frozen):
    kind: Literal[ValueKind.SET] = ValueKind.SET
    members: frozenset[str] = frozenset()


class RankedMember(_Frozen):
    member: str
    score: str
    """Score as the store rendered it (kept as text to avoid float drift)."""


class RankedSet(_Frozen):
    """Ranked set members in ascending score order."""

    kind: Literal[ValueKind.RANKED_SET] = ValueKind.RANKED_SET
    members: tuple[RankedMember, ...] = ()


class FieldMap(_Frozen):
    kind: Literal[ValueKind.FIELD_MAP] = ValueKind.FIELD_MAP
    entries: dict[str, str] = Field(default_factory=dict)


class Absent(_Frozen):
    """No value: the key does not exist (or expired before it was fetched)."""

    kind: Literal[ValueKind.ABSENT] = ValueKind.ABSENT


ValueModel = Annotated[
    Scalar | ListValue | SetValue | RankedSet | FieldMap | Absent,
    Field(discriminator="kind"),
]


# -- Helpers -----------------------------------------------------------------


def is_absent(value: ValueModel) -> bool:
    return isinstance(value, Absent)


def value_lines(value: ValueModel) -> list[str]:
    """Flatten a value into display lines.

    Ranked sets yield ``member`` then ``score`` per entry; field maps yield
    ``field`` then ``value``.  Set members are sorted so output is stable.
    """
    match value:
        case Scalar():
            return [value.value]
        case ListValue():
            return list(value.items)
        case SetValue():
            return sorted(value.members)
        case RankedSet():
            lines: list[str] = []
            for entry in value.members:
                lines.extend((entry.member, entry.score))
            return lines
        case FieldMap():
            lines = []
            for name, item in value.entries.items():
                lines.extend((name, item))
            return lines
        case Absent():
            return ["null"]
        case _:
            assert_never(value)


def describe_value(value: ValueModel) -> str:
    """One-line summary, e.g. ``list (3 items)``."""
    match value:
        case Scalar():
            return f"scalar ({len(value.value)} chars)"
        case ListValue():
            return f"list ({len(value.items)} items)"
        case SetValue():
            return f"set ({len(value.members)} members)"
        case RankedSet():
            return f"ranked set ({len(value.members)} members)"
        case FieldMap():
            return f"field map ({len(value.entries)} fields)"
        case Absent():
            return "absent"
        case _:
            assert_never(value)
