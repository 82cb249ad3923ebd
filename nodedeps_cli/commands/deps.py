"""Dependency listing commands: ``paths`` and ``tree``."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.tree import Tree

from ..console import console
from ..errors import NodeDepsError
from ..resolution import ResolvedDependency
from ..resolution import get_yarn_production_dependencies
from ..resolution import resolve_dependency_paths
from ..resolution.orchestrator import YARN_LOCKFILE
from ..resolution.orchestrator import has_yarn_lockfile
from ..utils.error_format import escape_markup
from ._common import fail
from ._common import load_settings
from ._common import run_cancellable

project_dir_argument = click.argument(
    "project_dir",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
package_option = click.option(
    "--package",
    "-p",
    "packages",
    multiple=True,
    metavar="NAME",
    help="Top-level dependency to include (repeatable). Default: all, or settings 'dependencies'.",
)


@click.command(name="paths")
@project_dir_argument
@click.option("--yarn/--npm", "use_yarn", default=None, help="Package manager to resolve with")
@package_option
@click.option("--json", "as_json", is_flag=True, help="Print a JSON array")
def paths_cmd(project_dir: Path, use_yarn: bool | None, packages: tuple[str, ...], as_json: bool):
    """Print the production dependency directories of PROJECT_DIR.

    The project directory itself is always the first entry.
    """
    try:
        settings = load_settings(project_dir)
        if use_yarn is None:
            use_yarn = settings.use_yarn
        allow_list = list(packages) if packages else settings.dependencies

        result = run_cancellable(
            lambda token: resolve_dependency_paths(
                project_dir,
                use_yarn,
                allow_list,
                max_buffer=settings.max_buffer,
                timeout=settings.timeout,
                kill_signal=settings.signum,
                cancellation_token=token,
            )
        )
    except NodeDepsError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return
    for path in result:
        click.echo(path)


@click.command(name="tree")
@project_dir_argument
@package_option
@click.option("--json", "as_json", is_flag=True, help="Print nested JSON objects")
def tree_cmd(project_dir: Path, packages: tuple[str, ...], as_json: bool):
    """Show the resolved yarn production tree of PROJECT_DIR."""
    if not has_yarn_lockfile(project_dir):
        console.print(f"[yellow]No {YARN_LOCKFILE} in {escape_markup(project_dir)}[/yellow]")
        return

    try:
        settings = load_settings(project_dir)
        allow_list = list(packages) if packages else settings.dependencies
        deps = run_cancellable(
            lambda token: get_yarn_production_dependencies(
                project_dir,
                allow_list,
                max_buffer=settings.max_buffer,
                timeout=settings.timeout,
                kill_signal=settings.signum,
                cancellation_token=token,
            )
        )
    except NodeDepsError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps([dep.to_dict() for dep in deps], indent=2))
        return

    root = Tree(f"[bold]{escape_markup(project_dir.resolve())}[/bold]")
    for dep in deps:
        _add_branch(root, dep)
    console.print(root)


def _add_branch(parent: Tree, dep: ResolvedDependency) -> None:
    # Selected graphs can share subtrees; each branch is rendered where it appears.
    pending = [(parent, dep)]
    while pending:
        node, current = pending.pop()
        branch = node.add(
            f"[cyan]{escape_markup(current.name)}[/cyan]@{escape_markup(current.version)} "
            f"[dim]{escape_markup(current.path)}[/dim]"
        )
        pending.extend((branch, child) for child in reversed(current.children))
