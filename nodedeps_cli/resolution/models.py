"""Dependency tree types.

RawTreeNode is what the tree listing declares (``name@version`` plus children).
ResolvedDependency is what the tree builder produces once a node has been
located on disk. The builder is the only place one turns into the other.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field
from typing import Any


@dataclass(frozen=True)
class RawTreeNode:
    """A node as printed by the package manager, before any disk lookup."""

    declared_name: str
    children: tuple[RawTreeNode, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RawTreeNode:
        """Build a node (and its subtree) from a ``{name, children}`` object."""
        return cls(
            declared_name=data["name"],
            children=tuple(cls.from_dict(child) for child in data.get("children") or ()),
        )

    def split_name(self) -> tuple[str, str]:
        """Split ``declared_name`` into (name, version) at the last ``@``.

        Scoped names keep their leading ``@``: ``@types/node@1.0.0`` gives
        ``("@types/node", "1.0.0")``.
        """
        index = self.declared_name.rfind("@")
        if index < 0:
            return "", self.declared_name
        return self.declared_name[:index], self.declared_name[index + 1 :]


@dataclass(frozen=True, eq=False)
class ResolvedDependency:
    """A dependency located on disk.

    Equality and hashing are by identity: the same package name can resolve to
    several install directories, and selection dedups on the object itself.
    """

    name: str
    version: str
    path: str
    children: tuple[ResolvedDependency, ...] = field(default=())

    def iter_paths(self) -> Iterator[str]:
        """Yield this dependency's path, then its descendants' in pre-order."""
        stack: list[ResolvedDependency] = [self]
        while stack:
            dep = stack.pop()
            yield dep.path
            stack.extend(reversed(dep.children))

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested plain dicts for JSON output."""
        return {
            "name": self.name,
            "version": self.version,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }

    def __repr__(self) -> str:
        return f"ResolvedDependency({self.name}@{self.version} at {self.path})"
