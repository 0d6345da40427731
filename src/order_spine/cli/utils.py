"""
CLI utility helpers — consoles and output formatting.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def _flatten(prefix: str, value: Any, rows: list[tuple[str, str]]) -> None:
    if isinstance(value, dict):
        for key, inner in value.items():
            _flatten(f"{prefix}.{key}" if prefix else key, inner, rows)
    else:
        rows.append((prefix, str(value)))


def settings_table(data: dict[str, Any], title: str = "Settings") -> Table:
    """Render a (possibly nested) settings dump as a two-column table."""
    rows: list[tuple[str, str]] = []
    _flatten("", data, rows)

    table = Table(title=title)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in sorted(rows):
        table.add_row(key, value)
    return table
