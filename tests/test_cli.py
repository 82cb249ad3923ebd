"""Tests for the nodedeps command line."""

import json
from unittest.mock import AsyncMock
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from nodedeps_cli.errors import CancellationError
from nodedeps_cli.errors import IncompatibleToolVersionError
from nodedeps_cli.errors import UnknownNameError
from nodedeps_cli.main import cli
from nodedeps_cli.resolution.models import ResolvedDependency


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("NODEDEPS_USE_YARN", "NODEDEPS_MAX_BUFFER", "NODEDEPS_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


def invoke(runner, tmp_path, *args):
    return runner.invoke(cli, ["--log-file", str(tmp_path / "log.jsonl"), *args])


def test_paths_prints_one_per_line(runner, tmp_path, project):
    resolved = AsyncMock(return_value=[str(project), str(project / "node_modules" / "a")])

    with patch("nodedeps_cli.commands.deps.resolve_dependency_paths", resolved):
        result = invoke(runner, tmp_path, "paths", str(project), "--yarn", "-p", "a", "-p", "b")

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [str(project), str(project / "node_modules" / "a")]
    args = resolved.await_args.args
    assert args[1:] == (True, ["a", "b"])


def test_paths_json_and_settings_defaults(runner, tmp_path, project):
    settings_file = project / ".nodedeps" / "settings.yaml"
    settings_file.parent.mkdir()
    settings_file.write_text("resolution:\n  use_yarn: true\n  dependencies: [x]\n  timeout: 9\n")
    resolved = AsyncMock(return_value=[str(project)])

    with patch("nodedeps_cli.commands.deps.resolve_dependency_paths", resolved):
        result = invoke(runner, tmp_path, "paths", str(project), "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [str(project)]
    assert resolved.await_args.args[1:] == (True, ["x"])
    assert resolved.await_args.kwargs["timeout"] == 9


def test_paths_npm_flag_overrides_settings(runner, tmp_path, project, monkeypatch):
    monkeypatch.setenv("NODEDEPS_USE_YARN", "1")
    resolved = AsyncMock(return_value=[str(project)])

    with patch("nodedeps_cli.commands.deps.resolve_dependency_paths", resolved):
        result = invoke(runner, tmp_path, "paths", str(project), "--npm")

    assert result.exit_code == 0, result.output
    assert resolved.await_args.args[1:] == (False, None)


def test_paths_reports_errors(runner, tmp_path, project):
    error = UnknownNameError("Could not find dependency: nope", name="nope")

    with patch("nodedeps_cli.commands.deps.resolve_dependency_paths", AsyncMock(side_effect=error)):
        result = invoke(runner, tmp_path, "paths", str(project), "--yarn", "-p", "nope")

    assert result.exit_code == 1
    assert "Could not find dependency: nope" in result.output


def test_tree_renders_dependencies(runner, tmp_path, project):
    b = ResolvedDependency("b", "2.0.0", str(project / "node_modules" / "b"))
    a = ResolvedDependency("a", "1.0.0", str(project / "node_modules" / "a"), (b,))

    with patch("nodedeps_cli.commands.deps.get_yarn_production_dependencies", AsyncMock(return_value=[a])):
        result = invoke(runner, tmp_path, "tree", str(project))
        as_json = invoke(runner, tmp_path, "tree", str(project), "--json")

    assert result.exit_code == 0, result.output
    assert "a@1.0.0" in result.output
    assert "b@2.0.0" in result.output
    assert json.loads(as_json.output)[0]["children"][0]["name"] == "b"


def test_tree_without_lockfile(runner, tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()

    result = invoke(runner, tmp_path, "tree", str(plain))

    assert result.exit_code == 0
    assert "No yarn.lock" in result.output


def test_latest(runner, tmp_path):
    latest = AsyncMock(return_value="4.17.21")

    with patch("nodedeps_cli.commands.latest.resolve_latest_published_version", latest):
        result = invoke(runner, tmp_path, "latest", "lodash", "--timeout", "5")

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "4.17.21"
    assert latest.await_args.args[0] == "lodash"
    assert latest.await_args.kwargs == {"timeout": 5.0}


def test_latest_incompatible_npm(runner, tmp_path):
    error = IncompatibleToolVersionError(
        "npm@3.7.2 doesn't work with nodedeps. Please update npm: npm install -g npm", version="3.7.2"
    )

    with patch("nodedeps_cli.commands.latest.resolve_latest_published_version", AsyncMock(side_effect=error)):
        result = invoke(runner, tmp_path, "latest", "lodash")

    assert result.exit_code == 1
    assert "npm install -g npm" in result.output


def test_latest_cancelled(runner, tmp_path):
    with patch(
        "nodedeps_cli.commands.latest.resolve_latest_published_version",
        AsyncMock(side_effect=CancellationError()),
    ):
        result = invoke(runner, tmp_path, "latest", "lodash")

    assert result.exit_code == 1
    assert "Operation was cancelled." in result.output


def test_config_set_and_show(runner, tmp_path, monkeypatch):
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    set_result = invoke(runner, tmp_path, "config", "set", "use_yarn", "true", "--project")
    show_result = invoke(runner, tmp_path, "config", "show")

    assert set_result.exit_code == 0, set_result.output
    assert (workdir / ".nodedeps" / "settings.yaml").exists()
    assert show_result.exit_code == 0, show_result.output
    assert "use_yarn" in show_result.output
    assert "True" in show_result.output


def test_config_set_invalid(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = invoke(runner, tmp_path, "config", "set", "max_buffer", "-5")

    assert result.exit_code == 1
    assert "Invalid resolution settings" in result.output
