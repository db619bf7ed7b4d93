"""Main entry point for sqlrev API server."""

import os
import uvicorn
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sqlrev.config import Config


cli = typer.Typer(
    name="sqlrev-server",
    help="sqlrev API server",
    add_completion=False,
)
console = Console()


@cli.callback()
def main():
    """sqlrev API server."""


@cli.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", "-d", help="Project directory"
    ),
):
    """Start the sqlrev API server."""
    config = Config(project_dir)
    if not config.exists:
        console.print("[red]❌ No sqlrev project found[/red]")
        console.print("[yellow]Run 'sqlrev init' to create a project[/yellow]")
        raise typer.Exit(1)

    # The app module opens the project from this variable on first request
    os.environ["SQLREV_PROJECT_DIR"] = str(config.project_dir.resolve())

    console.print("[green]Starting sqlrev API server[/green]")
    console.print(f"Project: {config.project_dir}")
    console.print(f"Host: {host}:{port}")

    uvicorn.run(
        "sqlrev.api.app:app", host=host, port=port, reload=reload, log_level="info"
    )


if __name__ == "__main__":
    cli()
