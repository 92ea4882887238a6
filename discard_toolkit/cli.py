#!/usr/bin/env python3
"""
Command-line interface for Discard Toolkit.

Provides an installer for the configuration file and a way to inspect the
configuration in effect.
"""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import DiscardConfig, get_config

console = Console()

DEFAULT_CONFIG_PATH = "discard.yaml"

CONFIG_HEADER = """\
# Discard Toolkit configuration.
#
# Load it at application start-up, before your models are imported:
#
#   from discard_toolkit import DiscardConfig, set_config
#   set_config(DiscardConfig.from_file("discard.yaml"))
#
# discard_column: default name of the column that marks a record discarded
# lock_neutral_value: uniqueness-lock value of kept records
# log_level: level of the discard_toolkit logger
"""


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Discard Toolkit - soft deletes for SQLAlchemy models."""
    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                f"[bold blue]Discard Toolkit[/bold blue] v{__version__}\n"
                "[dim]Soft deletes for SQLAlchemy models[/dim]\n\n"
                "Use [bold]discard --help[/bold] to see available commands.",
                border_style="blue",
            )
        )


@cli.command()
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Where to write the configuration file",
)
@click.option("--discard-column", help="Default discard marker column name")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def install(path: str, discard_column: Optional[str], force: bool) -> None:
    """Write a configuration file with the default settings."""
    target = Path(path)
    if target.exists() and not force:
        console.print(
            f"[red]{target} already exists. Use --force to overwrite it.[/red]"
        )
        sys.exit(1)

    overrides = {"discard_column": discard_column} if discard_column else {}
    try:
        config = DiscardConfig(**overrides)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        CONFIG_HEADER + "\n" + yaml.safe_dump(config.to_dict(), sort_keys=False),
        encoding="utf-8",
    )
    console.print(f"[green]✓[/green] Wrote {target}")


@cli.group()
def config() -> None:
    """Inspect Discard Toolkit configuration."""
    pass


@config.command("show")
@click.option(
    "--file",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read configuration from this file instead of the environment",
)
@click.option("--format", type=click.Choice(["table", "json", "yaml"]), default="table")
def config_show(config_file: Optional[str], format: str) -> None:
    """Display the configuration in effect."""
    try:
        if config_file:
            current = DiscardConfig.from_file(config_file)
        else:
            current = get_config()
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    config_dict = current.to_dict()

    if format == "json":
        console.print_json(data=config_dict)
    elif format == "yaml":
        console.print(yaml.safe_dump(config_dict, sort_keys=False))
    else:
        table = Table(title="Discard Configuration", show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        table.add_column("Description", style="dim")

        for name, field_info in DiscardConfig.model_fields.items():
            table.add_row(name, str(config_dict[name]), field_info.description or "")

        console.print(table)


if __name__ == "__main__":
    cli()
