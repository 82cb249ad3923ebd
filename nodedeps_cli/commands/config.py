"""Settings commands for nodedeps-cli."""

from __future__ import annotations

import click
import yaml
from rich.table import Table

from ..console import console
from ..errors import ConfigurationError
from ..settings import ResolutionSettings
from ..settings import SettingsManager
from ._common import fail


@click.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context):
    """Inspect and change resolution settings."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@config.command(name="show")
def config_show():
    """Show effective resolution settings."""
    try:
        settings = SettingsManager().get_resolution_settings()
    except ConfigurationError as e:
        fail(e)

    table = Table(title="Resolution Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Description", style="dim")

    for key, field_info in ResolutionSettings.model_fields.items():
        table.add_row(key, str(getattr(settings, key)), field_info.description or "")

    console.print(table)


@config.command(name="set")
@click.argument("key", type=click.Choice(sorted(ResolutionSettings.model_fields)))
@click.argument("value")
@click.option("--local", "scope_flag", flag_value="local", help="Set locally (just you)")
@click.option("--project", "scope_flag", flag_value="project", help="Set for project (team)")
@click.option("--global", "scope_flag", flag_value="global", help="Set globally (all projects)")
def config_set(key: str, value: str, scope_flag: str | None):
    """Set KEY to VALUE (parsed as YAML, e.g. 'true', '30', '[a, b]')."""
    scope = scope_flag or "local"
    manager = SettingsManager()

    try:
        manager.update_resolution({key: yaml.safe_load(value)}, scope=scope)
    except yaml.YAMLError as e:
        fail(ConfigurationError(f"Invalid value for {key}: {e}"))
    except ConfigurationError as e:
        fail(e)

    target = {
        "local": manager.local_settings_file,
        "project": manager.project_settings_file,
        "global": manager.user_settings_file,
    }[scope]
    console.print(f"[green]✓ Set {key} in {target}[/green]")
