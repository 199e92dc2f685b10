"""Serve command implementation."""

import typer
import uvicorn


def serve_command(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8080, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API."""
    uvicorn.run("newsbias.api.app:app", host=host, port=port, reload=reload)
