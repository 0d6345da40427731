"""
CLI: ``order-spine serve`` — start the API server.
"""

from __future__ import annotations

import typer

from order_spine.cli.utils import console


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default from settings)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default from settings)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
) -> None:
    """Start the order REST API server."""
    import uvicorn

    from order_spine.core.logging import configure_logging
    from order_spine.core.settings import OrderSpineSettings

    settings = OrderSpineSettings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.json_logs,
        service=settings.service_name,
    )

    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(f"[bold green]Starting {settings.service_name}[/bold green] on {bind_host}:{bind_port}")
    uvicorn.run(
        "order_spine.api:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )
