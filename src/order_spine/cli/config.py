"""
CLI: ``order-spine config`` — configuration inspection.
"""

from __future__ import annotations

import typer

from order_spine.cli.utils import console, err_console, settings_table

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the effective settings (defaults, .env and ORDERS_ environment)."""
    from pydantic import ValidationError as SettingsError

    from order_spine.core.settings import OrderSpineSettings

    try:
        settings = OrderSpineSettings()
    except SettingsError as e:
        err_console.print(f"[red]Configuration Error:[/red] {e}")
        raise typer.Exit(1) from e

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            if isinstance(value, dict):
                for inner_key, inner_value in sorted(value.items()):
                    console.print(f"ORDERS_{key.upper()}__{inner_key.upper()}={inner_value}")
            else:
                console.print(f"ORDERS_{key.upper()}={value}")
        return

    if format != "table":
        err_console.print(f"[red]Unknown format:[/red] {format}")
        raise typer.Exit(2)

    console.print(settings_table(settings.model_dump()))
