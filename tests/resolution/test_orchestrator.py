"""Tests for pipeline dispatch and path flattening."""

import json
import sys
from unittest.mock import AsyncMock
from unittest.mock import patch

import pytest

from nodedeps_cli.errors import DuplicateNameError
from nodedeps_cli.errors import MalformedOutputError
from nodedeps_cli.resolution.models import ResolvedDependency
from nodedeps_cli.resolution.orchestrator import YARN_LIST_COMMAND
from nodedeps_cli.resolution.orchestrator import flatten_paths
from nodedeps_cli.resolution.orchestrator import get_yarn_production_dependencies
from nodedeps_cli.resolution.orchestrator import resolve_dependency_paths
from nodedeps_cli.utils.process import ExecResult


def yarn_output(trees):
    tree = json.dumps({"type": "tree", "data": {"type": "list", "trees": trees}}, separators=(",", ":"))
    return '{"type":"info","data":"fetching"}\n' + tree + "\n"


def fake_execute(stdout):
    return AsyncMock(return_value=ExecResult(stdout=stdout, stderr=""))


@pytest.fixture
def yarn_project(project, installed):
    """a -> [b, c], b -> [c], c, d; plus a range placeholder entry."""
    installed(project, "node_modules/a", "node_modules/b", "node_modules/c", "node_modules/d")
    installed(project, "node_modules/a/node_modules/c")
    trees = [
        {"name": "a@1.0.0", "children": [{"name": "b@1.0.0"}, {"name": "c@2.0.0"}]},
        {"name": "b@1.0.0", "children": [{"name": "c@1.0.0"}]},
        {"name": "c@1.0.0", "children": []},
        {"name": "d@1.0.0", "children": []},
        {"name": "e@^1.0.0", "children": []},
    ]
    return project, yarn_output(trees)


def nm(project, *names):
    return str(project.joinpath(*[part for name in names for part in ("node_modules", name)]))


@pytest.mark.asyncio
async def test_yarn_all_dependencies(yarn_project):
    project, stdout = yarn_project

    with patch("nodedeps_cli.resolution.orchestrator.execute", fake_execute(stdout)) as fake:
        paths = await resolve_dependency_paths(project, use_yarn=True)

    assert fake.await_args.args[0] == YARN_LIST_COMMAND
    assert paths[0] == str(project)
    assert sorted(paths[1:]) == sorted(
        [nm(project, "a"), nm(project, "b"), nm(project, "c"), nm(project, "d"), nm(project, "a", "c")]
    )
    assert len(paths) == len(set(paths))


@pytest.mark.asyncio
async def test_yarn_allow_list(yarn_project):
    project, stdout = yarn_project

    with patch("nodedeps_cli.resolution.orchestrator.execute", fake_execute(stdout)):
        paths = await resolve_dependency_paths(project, True, ["b"])

    assert paths == [str(project), nm(project, "b"), nm(project, "c")]


@pytest.mark.asyncio
async def test_yarn_allow_list_keeps_range_entries(project, installed):
    installed(project, "node_modules/foo")
    stdout = yarn_output([{"name": "foo@^1.0.0", "children": []}])

    with patch("nodedeps_cli.resolution.orchestrator.execute", fake_execute(stdout)):
        pruned = await get_yarn_production_dependencies(project)
        (kept,) = await get_yarn_production_dependencies(project, ["foo"])

    assert pruned == []
    assert (kept.name, kept.version) == ("foo", "^1.0.0")


@pytest.mark.asyncio
async def test_yarn_without_lockfile_skips_tool(tmp_path):
    fake = fake_execute("")

    with patch("nodedeps_cli.resolution.orchestrator.execute", fake):
        paths = await resolve_dependency_paths(tmp_path, True, ["anything"])

    assert paths == [str(tmp_path)]
    fake.assert_not_awaited()


@pytest.mark.asyncio
async def test_yarn_duplicate_top_level_names(project, installed):
    installed(project, "node_modules/x", "node_modules/y/node_modules/x", "node_modules/y")
    stdout = yarn_output(
        [
            {"name": "x@1.0.0", "children": []},
            {"name": "y@1.0.0", "children": []},
            {"name": "x@2.0.0", "children": []},
        ]
    )

    with patch("nodedeps_cli.resolution.orchestrator.execute", fake_execute(stdout)):
        with pytest.raises(DuplicateNameError):
            await resolve_dependency_paths(project, True, ["x"])


@pytest.mark.asyncio
async def test_yarn_malformed_output(project):
    with patch("nodedeps_cli.resolution.orchestrator.execute", fake_execute("error Command failed\n")):
        with pytest.raises(MalformedOutputError):
            await resolve_dependency_paths(project, True)


@pytest.mark.asyncio
async def test_npm_pipeline_includes_project_once(tmp_path):
    a = str(tmp_path / "node_modules" / "a")

    with patch(
        "nodedeps_cli.resolution.orchestrator.get_npm_dependencies",
        AsyncMock(return_value=[str(tmp_path), a, a]),
    ):
        paths = await resolve_dependency_paths(tmp_path, use_yarn=False)

    assert paths == [str(tmp_path), a]


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
async def test_npm_pipeline_symlinked_project(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    link.symlink_to(real, target_is_directory=True)
    a = str(real / "node_modules" / "a")

    with patch(
        "nodedeps_cli.resolution.orchestrator.get_npm_dependencies",
        AsyncMock(return_value=[str(real), a]),
    ):
        paths = await resolve_dependency_paths(link, use_yarn=False)

    assert paths == [str(link), a]


@pytest.mark.asyncio
async def test_relative_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    paths = await resolve_dependency_paths(".", use_yarn=True)

    assert paths == [str(tmp_path)]


def test_flatten_paths_preorder():
    c = ResolvedDependency("c", "1", "/n/c")
    b = ResolvedDependency("b", "1", "/n/b", (c,))
    d = ResolvedDependency("d", "1", "/n/d")
    a = ResolvedDependency("a", "1", "/n/a", (b, d))

    assert flatten_paths([a, c]) == ["/n/a", "/n/b", "/n/c", "/n/d", "/n/c"]
