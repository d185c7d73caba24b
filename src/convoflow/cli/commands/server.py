"""Server command to start API."""

import os
from pathlib import Path

import typer
import uvicorn

from convoflow.config.loader import ConfigLoader
from convoflow.core.errors import ConfigError
from convoflow.server.api import CONFIG_PATH_ENV

app = typer.Typer(help="Start API server")


@app.callback(invoke_without_command=True)
def start_server(
    config: Path = typer.Option(..., "--config", "-c", help="Path to convoflow.yaml", exists=True),
    host: str = typer.Option("0.0.0.0", "--host", "-h"),
    port: int = typer.Option(8000, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Start the convoflow API server."""

    # 1. Validate Config
    try:
        config_path = ConfigLoader.resolve_path(config)
        ConfigLoader.load(config_path)
    except ConfigError as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1)

    # 2. The server process reads its config path from the environment
    os.environ[CONFIG_PATH_ENV] = str(config_path.absolute())

    typer.echo(f"Starting convoflow server on http://{host}:{port}")
    typer.echo(f"   Config: {config_path}")

    try:
        uvicorn.run(
            "convoflow.server.api:app",
            host=host,
            port=port,
            reload=reload,
            log_level="info",
        )
    except Exception as e:
        typer.echo(f"Server failed: {e}", err=True)
        raise typer.Exit(1)
