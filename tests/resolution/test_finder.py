"""Tests for outward-walking dependency lookup."""

import os

from nodedeps_cli.resolution.finder import DependencyFinder
from nodedeps_cli.resolution.finder import find_dependency


def test_finds_nested_install_first(project, installed):
    """Deepest matching location wins when several exist."""
    installed(project, "node_modules/b", "node_modules/a/node_modules/b")

    path = find_dependency([str(project), "a"], "b")

    assert path == str(project / "node_modules" / "a" / "node_modules" / "b")


def test_falls_back_to_hoisted_install(project, installed):
    """Only root/node_modules/b exists: lookup walks outward to it."""
    installed(project, "node_modules/b")

    path = find_dependency([str(project), "a"], "b")

    assert path == str(project / "node_modules" / "b")


def test_walks_several_levels(project, installed):
    installed(project, "node_modules/c", "node_modules/a/node_modules/b")

    path = find_dependency([str(project), "a", "b"], "c")

    assert path == str(project / "node_modules" / "c")


def test_returns_none_when_not_installed(project):
    assert find_dependency([str(project), "a"], "missing") is None


def test_empty_chain_returns_none():
    assert DependencyFinder(exists=lambda _path: True).find([], "a") is None


def test_scoped_package(project, installed):
    installed(project, "node_modules/@types/node")

    path = find_dependency([str(project), "a"], "@types/node")

    assert path == str(project / "node_modules" / "@types" / "node")


def test_probe_order_and_composition():
    """Candidates are tried innermost first, joined through node_modules."""
    probed = []
    finder = DependencyFinder(exists=lambda p: probed.append(p) or False)

    finder.find(["/root", "a", "b"], "c")

    assert probed == [
        os.path.abspath("/root/node_modules/a/node_modules/b/node_modules/c"),
        os.path.abspath("/root/node_modules/a/node_modules/c"),
        os.path.abspath("/root/node_modules/c"),
    ]


def test_custom_storage_folder():
    finder = DependencyFinder(exists=lambda p: True, storage_folder="deps")

    assert finder.find(["/root", "a"], "b") == os.path.abspath("/root/deps/a/deps/b")
