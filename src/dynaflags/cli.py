"""
dynaflags CLI building blocks.

``create_cli`` returns the root ``DynamicGroup`` for a runtime with the
built-in ``flags`` command attached:

* ``<cli> flags COMMAND``   – show the flags plugins contributed to COMMAND
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from .dynamic import DynamicGroup, find_runtime
from .runtime import CLIRuntime

logger = logging.getLogger(__name__)
console = Console(highlight=False)


def _flag_rows(runtime: CLIRuntime, command: str) -> List[Dict[str, Any]]:
    rows = []
    for name, spec in runtime.registry.resolve(command).items():
        rows.append(
            {
                "flag": name,
                "alias": spec.alias,
                "plugin": runtime.registry.owner(command, name),
                "description": spec.metadata.get("help") or spec.metadata.get("description") or "",
            }
        )
    return rows


@click.command(name="flags")
@click.argument("command")
@click.option(
    "--format", "fmt", default="table", type=click.Choice(["table", "json"]), help="Output format"
)
@click.pass_context
def flags_command(ctx: click.Context, command: str, fmt: str) -> None:
    """Show the flags that plugins contributed to COMMAND."""
    runtime = find_runtime(ctx)
    if runtime is None:
        raise click.UsageError("No runtime is available.")

    rows = _flag_rows(runtime, command)
    if fmt == "json":
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        console.print(f"[yellow]⚠️  No flags registered for '{command}'.[/yellow]")
        return

    table = Table(title=f"Flags for '{command}'", box=box.ROUNDED)
    table.add_column("Flag", style="cyan", no_wrap=True)
    table.add_column("Alias", style="magenta")
    table.add_column("Plugin", style="green")
    table.add_column("Description", style="blue")
    for row in rows:
        alias = f"-{row['alias']}" if row["alias"] else ""
        table.add_row(f"--{row['flag']}", alias, row["plugin"] or "", row["description"])
    console.print(table)


def create_cli(runtime: CLIRuntime, help: Optional[str] = None) -> DynamicGroup:
    """Root group for ``runtime`` with version option and ``flags`` command."""
    cli = DynamicGroup(
        name=runtime.name,
        help=help,
        runtime=runtime,
        context_settings={"help_option_names": ["-h", "--help"]},
    )
    click.version_option(version=runtime.version, prog_name=runtime.name)(cli)
    cli.add_command(flags_command)
    return cli


__all__ = ["create_cli", "flags_command"]
