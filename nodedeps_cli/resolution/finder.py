"""Locate a dependency's install directory the way node's module lookup does.

A package declared deep in the tree is often installed (hoisted) closer to the
project root. Starting from the full ancestry chain, we look for
``<a>/node_modules/<b>/node_modules/<name>`` and drop the innermost ancestor
until a directory exists or the chain runs out.
"""

import logging
import os
from collections.abc import Callable
from collections.abc import Sequence

logger = logging.getLogger(__name__)

STORAGE_FOLDER = "node_modules"


class DependencyFinder:
    """Search outward through an ancestry chain for an installed package.

    Args:
        exists: Existence check for a candidate path (os.path.exists by default)
        storage_folder: Folder each ancestry level stores its dependencies in
    """

    def __init__(self, exists: Callable[[str], bool] | None = None, storage_folder: str = STORAGE_FOLDER):
        self.exists = exists or os.path.exists
        self.storage_folder = storage_folder

    def find(self, crumbs: Sequence[str], name: str) -> str | None:
        """Return the absolute directory holding name, or None if it is not installed.

        Args:
            crumbs: Ancestry chain, outermost first; crumbs[0] is the project root
            name: Package name (may be scoped, e.g. ``@types/node``)
        """
        history = list(crumbs)
        while history:
            candidate = self.join(history, name)
            if self.exists(candidate):
                logger.debug(f"[finder] {name} -> {candidate}")
                return candidate
            history.pop()

        logger.debug(f"[finder] {name} not found under {crumbs[0] if crumbs else '(empty chain)'}")
        return None

    def join(self, history: Sequence[str], name: str) -> str:
        """Compose ``history[0]/<storage>/history[1]/.../<storage>/name`` as an absolute path."""
        segments = [*history, name]
        separator = f"/{self.storage_folder}/"
        return os.path.abspath(os.path.normpath(separator.join(segments)))


def find_dependency(crumbs: Sequence[str], name: str) -> str | None:
    """Convenience wrapper using the real filesystem."""
    return DependencyFinder().find(crumbs, name)
