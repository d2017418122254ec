"""Hierarchical grouping of keys by separator."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict


class Namespace(BaseModel):
    """A node in the key tree.

    ``prefix`` is the full joined path of the node (``""`` for the root).
    ``keys`` holds the full names of keys whose last segment lives directly
    under this node; ``children`` holds nested namespaces.  Both are in
    first-seen order.
    """

    model_config = ConfigDict(frozen=True)

    prefix: str = ""
    keys: tuple[str, ...] = ()
    children: tuple[Namespace, ...] = ()

    def iter_keys(self) -> Iterator[str]:
        """Yield every leaf key, this node's keys first, then depth-first."""
        yield from self.keys
        for child in self.children:
            yield from child.iter_keys()

    def flatten(self) -> list[str]:
        return list(self.iter_keys())

    @property
    def total_keys(self) -> int:
        return len(self.keys) + sum(child.total_keys for child in self.children)

    def find(self, prefix: str) -> Namespace | None:
        """Return the node whose full prefix is *prefix*, if any."""
        if self.prefix == prefix:
            return self
        for child in self.children:
            found = child.find(prefix)
            if found is not None:
                return found
        return None
