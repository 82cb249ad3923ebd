"""Turn a parsed yarn tree into dependencies located on disk.

Each node is resolved through DependencyFinder using the chain of resolved
ancestor names. Nodes that cannot be found are pruned and remembered as
orphans: yarn sometimes prints a hoisted package first without its children
and only later with the full subtree, so a later child with the same declared
name is swapped for the recorded orphan before it is walked.
"""

import logging
import os
import re
from collections.abc import Iterator
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field

from .finder import DependencyFinder
from .models import RawTreeNode
from .models import ResolvedDependency

logger = logging.getLogger(__name__)

# Top-level entries such as "foo@^1.0.0" are range placeholders, not installs.
RANGE_MARKER = re.compile(r"@[\^~]")


class OrphanRegistry:
    """Nodes that could not be located, keyed by exact declared name."""

    def __init__(self):
        self._nodes: dict[str, RawTreeNode] = {}

    def record(self, node: RawTreeNode) -> None:
        self._nodes[node.declared_name] = node

    def substitute(self, node: RawTreeNode) -> RawTreeNode:
        """Return the orphan recorded under node's declared name, else node itself."""
        orphan = self._nodes.get(node.declared_name)
        if orphan is not None and orphan is not node:
            logger.debug(f"[builder] substituting orphan subtree for {node.declared_name}")
            return orphan
        return node

    def __contains__(self, declared_name: object) -> bool:
        return declared_name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass
class _Frame:
    """A node being expanded: located, children still pending."""

    raw: RawTreeNode
    name: str
    version: str
    path: str
    crumbs: list[str]
    pending: Iterator[RawTreeNode]
    children: list[ResolvedDependency] = field(default_factory=list)

    def finish(self) -> ResolvedDependency:
        return ResolvedDependency(
            name=self.name,
            version=self.version,
            path=self.path,
            children=tuple(self.children),
        )


class TreeBuilder:
    """Resolve raw tree nodes against the install directories under a project.

    One builder owns one orphan registry; create a new builder per tree listing.

    Args:
        root: Project directory holding the top-level node_modules
        finder: Lookup strategy (a filesystem-backed DependencyFinder by default)
    """

    def __init__(self, root: str | os.PathLike, finder: DependencyFinder | None = None):
        self.root = os.path.abspath(root)
        self.finder = finder or DependencyFinder()
        self.orphans = OrphanRegistry()

    def build(self, trees: Sequence[RawTreeNode], prune: bool = False) -> list[ResolvedDependency]:
        """Resolve top-level trees, last one first, dropping unresolvable ones.

        Args:
            trees: Top-level nodes in document order
            prune: Drop range placeholder entries (``name@^x``/``name@~x``)

        Returns:
            Resolved top-level dependencies
        """
        result = []
        for tree in reversed(trees):
            dep = self.resolve_top_level(tree, prune)
            if dep is not None:
                result.append(dep)

        logger.debug(f"[builder] resolved {len(result)}/{len(trees)} top-level trees, {len(self.orphans)} orphans")
        return result

    def resolve_top_level(self, tree: RawTreeNode, prune: bool = False) -> ResolvedDependency | None:
        if prune and RANGE_MARKER.search(tree.declared_name):
            logger.debug(f"[builder] pruned range entry {tree.declared_name}")
            return None
        return self.walk([self.root], tree)

    def walk(self, crumbs: list[str], node: RawTreeNode) -> ResolvedDependency | None:
        """Resolve node and its subtree, or None if node itself is not installed.

        Uses an explicit stack; children are finished in document order, so
        orphans recorded while walking one child are visible to its later
        siblings.
        """
        root_frame = self._enter(crumbs, node)
        if root_frame is None:
            return None

        stack = [root_frame]
        while stack:
            frame = stack[-1]
            child = next(frame.pending, None)

            if child is None:
                stack.pop()
                dep = frame.finish()
                if not stack:
                    return dep
                stack[-1].children.append(dep)
                continue

            child = self.orphans.substitute(child)
            if any(open_frame.raw is child for open_frame in stack):
                logger.debug(f"[builder] skipping cyclic reference to {child.declared_name}")
                continue

            child_frame = self._enter([*frame.crumbs, frame.name], child)
            if child_frame is not None:
                stack.append(child_frame)

        return None

    def _enter(self, crumbs: list[str], node: RawTreeNode) -> _Frame | None:
        name, version = node.split_name()
        path = self.finder.find(crumbs, name)
        if path is None:
            logger.debug(f"[builder] orphan {node.declared_name}")
            self.orphans.record(node)
            return None

        return _Frame(
            raw=node,
            name=name,
            version=version,
            path=path,
            crumbs=crumbs,
            pending=iter(node.children),
        )


def build_dependency_tree(
    root: str | os.PathLike, trees: Sequence[RawTreeNode], prune: bool = False
) -> list[ResolvedDependency]:
    """Resolve trees under root with a fresh builder (and orphan registry)."""
    return TreeBuilder(root).build(trees, prune=prune)
