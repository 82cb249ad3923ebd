"""``latest`` command: latest published version of a package."""

import click

from ..errors import NodeDepsError
from ..resolution import resolve_latest_published_version
from ._common import fail
from ._common import run_cancellable


@click.command(name="latest")
@click.argument("package_name")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Seconds to wait for npm")
def latest_cmd(package_name: str, timeout: float | None):
    """Print the latest version of PACKAGE_NAME on the npm registry."""
    try:
        version = run_cancellable(
            lambda token: resolve_latest_published_version(package_name, token, timeout=timeout)
        )
    except NodeDepsError as e:
        fail(e)

    click.echo(version)
