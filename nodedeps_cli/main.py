"""nodedeps CLI - production dependency directories of node projects."""

import logging

import click

from .commands.config import config as config_group
from .commands.deps import paths_cmd
from .commands.deps import tree_cmd
from .commands.latest import latest_cmd
from .logging_setup import init_json_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="nodedeps-cli")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log (default: $NODEDEPS_LOG_LEVEL or INFO)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSONL log path (default: $NODEDEPS_LOG_PATH or ~/.nodedeps/nodedeps.log.jsonl)",
)
def cli(log_level: str | None, log_file: str | None):
    """nodedeps - resolve the installed production dependencies of a node project."""
    init_json_logging(log_file, log_level)
    logger.debug("[cli] logging initialised")


cli.add_command(paths_cmd)
cli.add_command(tree_cmd)
cli.add_command(latest_cmd)
cli.add_command(config_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
