"""Pytest configuration for nodedeps CLI tests."""

from pathlib import Path

import pytest


def make_installed(root: Path, *relative: str) -> list[Path]:
    """Create package directories under root, e.g. ``node_modules/a/node_modules/b``."""
    created = []
    for rel in relative:
        path = root / rel
        path.mkdir(parents=True, exist_ok=True)
        (path / "package.json").write_text("{}")
        created.append(path)
    return created


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory with a yarn.lock marker."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "yarn.lock").write_text("# yarn lockfile v1\n")
    return root


@pytest.fixture
def installed():
    return make_installed
