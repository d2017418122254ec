"""Namespace grouping -- flat key list -> key tree.

Keys are split on a separator and grouped by shared leading segments.  A key
is attached to the node reached by walking every segment except its last, so
``"a"`` lands on the root and ``"b:c"`` lands on the ``"b"`` node.  A leaf key
``"b"`` and a namespace ``"b"`` coexist without collision.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from keyscope.inspector.models.namespace import Namespace

DEFAULT_SEPARATOR = ":"


@dataclass
class _NodeBuilder:
    """Mutable node used while grouping; frozen into a ``Namespace`` at the end."""

    path: tuple[str, ...] = ()
    keys: dict[str, None] = field(default_factory=dict)
    children: dict[str, _NodeBuilder] = field(default_factory=dict)

    def child(self, segment: str) -> _NodeBuilder:
        node = self.children.get(segment)
        if node is None:
            node = self.children[segment] = _NodeBuilder(path=(*self.path, segment))
        return node

    def freeze(self, separator: str) -> Namespace:
        return Namespace(
            prefix=separator.join(self.path),
            keys=tuple(self.keys),
            children=tuple(child.freeze(separator) for child in self.children.values()),
        )


def group_keys(keys: Iterable[str], separator: str = DEFAULT_SEPARATOR) -> Namespace:
    """Group *keys* into a namespace tree.

    Deterministic for a given iteration order: siblings appear in the order
    their first key was seen.  Duplicate keys are attached once.  Empty input
    yields an empty root.
    """
    if not separator:
        msg = "separator must be a non-empty string"
        raise ValueError(msg)

    root = _NodeBuilder()
    for key in keys:
        *path, _leaf = key.split(separator)
        node = root
        for segment in path:
            node = node.child(segment)
        node.keys.setdefault(key, None)
    return root.freeze(separator)


def render_tree(namespace: Namespace, indent: str = "  ") -> list[str]:
    """Render a namespace as indented lines (namespaces suffixed with their key count)."""
    lines: list[str] = []
    _render(namespace, indent, 0, lines)
    return lines


def _render(node: Namespace, indent: str, depth: int, lines: list[str]) -> None:
    pad = indent * depth
    for key in node.keys:
        lines.append(f"{pad}{key}")
    for child in node.children:
        lines.append(f"{pad}{child.prefix}/ ({child.total_keys})")
        _render(child, indent, depth + 1, lines)
