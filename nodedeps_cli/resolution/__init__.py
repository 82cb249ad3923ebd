"""Production dependency resolution for node projects.

Two pipelines share one output (a deduplicated list of absolute directories):
- npm: ``npm list --parseable`` already prints install directories
- yarn: ``yarn list --json`` prints a logical tree that is mapped back onto
  the (possibly hoisted) node_modules layout, then optionally narrowed to what
  an allow-list of top-level names reaches
"""

from .builder import OrphanRegistry
from .builder import TreeBuilder
from .builder import build_dependency_tree
from .finder import DependencyFinder
from .finder import find_dependency
from .models import RawTreeNode
from .models import ResolvedDependency
from .npm import check_npm_version
from .npm import get_npm_dependencies
from .npm import resolve_latest_published_version
from .orchestrator import flatten_paths
from .orchestrator import get_yarn_dependencies
from .orchestrator import get_yarn_production_dependencies
from .orchestrator import resolve_dependency_paths
from .selector import DependencyIndex
from .selector import select_dependencies
from .yarn_tree import parse_yarn_tree

__all__ = [
    "DependencyFinder",
    "DependencyIndex",
    "OrphanRegistry",
    "RawTreeNode",
    "ResolvedDependency",
    "TreeBuilder",
    "build_dependency_tree",
    "check_npm_version",
    "find_dependency",
    "flatten_paths",
    "get_npm_dependencies",
    "get_yarn_dependencies",
    "get_yarn_production_dependencies",
    "parse_yarn_tree",
    "resolve_dependency_paths",
    "resolve_latest_published_version",
    "select_dependencies",
]
