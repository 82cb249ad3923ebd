"""CLI command groups for nodedeps-cli."""

__all__ = [
    "config",
    "latest",
    "paths",
    "tree",
]
