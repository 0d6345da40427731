"""
Root Typer application for the order-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="order-spine",
    help="order-spine — order history and checkout behind a resilience pipeline.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from order_spine import __version__

        typer.echo(f"order-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """order-spine CLI — run the API and inspect configuration."""


# ── Sub-command registration ─────────────────────────────────────────────

from order_spine.cli.config import app as config_app  # noqa: E402
from order_spine.cli.serve import serve  # noqa: E402

app.command("serve")(serve)
app.add_typer(config_app, name="config", help="Configuration inspection.")


if __name__ == "__main__":
    app()
