"""Select the dependencies reachable from an allow-list of top-level names."""

import logging
from collections.abc import Iterable
from collections.abc import Sequence

from ..errors import DuplicateNameError
from ..errors import UnknownNameError
from .models import ResolvedDependency

logger = logging.getLogger(__name__)


class DependencyIndex:
    """Top-level dependencies by name. Names must be unique."""

    def __init__(self, deps: Iterable[ResolvedDependency]):
        self._data: dict[str, ResolvedDependency] = {}
        for dep in deps:
            if dep.name in self._data:
                raise DuplicateNameError(f"Dependency seen more than once: {dep.name}", name=dep.name)
            self._data[dep.name] = dep

    def find(self, name: str) -> ResolvedDependency:
        try:
            return self._data[name]
        except KeyError:
            raise UnknownNameError(f"Could not find dependency: {name}", name=name) from None

    def get(self, name: str) -> ResolvedDependency | None:
        return self._data.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __len__(self) -> int:
        return len(self._data)


def select_dependencies(
    deps: Sequence[ResolvedDependency], packaged_dependencies: Sequence[str]
) -> list[ResolvedDependency]:
    """Return the dependencies transitively reachable from packaged_dependencies.

    Traversal is depth-first from each allow-listed name in order. A child is
    followed through its top-level entry when one exists (that copy carries the
    full subtree) and as itself otherwise. Each dependency object appears once,
    in first-visit order; revisits do not descend again, which also stops cycles.

    Raises:
        DuplicateNameError: Two top-level dependencies share a name
        UnknownNameError: An allow-listed name has no top-level dependency
    """
    index = DependencyIndex(deps)
    reached: dict[ResolvedDependency, None] = {}

    for name in packaged_dependencies:
        stack = [index.find(name)]
        while stack:
            dep = stack.pop()
            if dep in reached:
                continue
            reached[dep] = None
            for child in reversed(dep.children):
                stack.append(index.get(child.name) or child)

    logger.debug(f"[selector] {len(reached)} dependencies reachable from {len(packaged_dependencies)} names")
    return list(reached)
