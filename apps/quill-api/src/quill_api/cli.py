"""Quill CLI: run the server or print the schema."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from quill_gql import build_schema_sdl

from quill_api.config import DEFAULT_CONFIG_PATH, ServerConfig

app = typer.Typer(name="quill", help="Quill blog API server.")


@app.command()
def serve(
    config_path: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="JSON config file."),
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (overrides config)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port number (overrides config)."),
    log_level: str = typer.Option("info", "--log-level", help="uvicorn log level."),
) -> None:
    """Serve GraphQL over HTTP and WebSocket on one port.

    On SIGINT/SIGTERM the server stops accepting connections, lets
    in-flight requests finish for up to ``graceful_shutdown_seconds``,
    then ends every subscription and closes the database.

    Examples:

        quill serve

        quill serve --host 0.0.0.0 --port 9000
    """
    from quill_api import create_app

    config = ServerConfig.from_file(config_path)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    typer.echo(f"Starting Quill at http://{config.host}:{config.port}/graphql ...")
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(config),
            host=config.host,
            port=config.port,
            log_level=log_level,
            timeout_graceful_shutdown=config.graceful_shutdown_seconds,
        )
    )
    server.run()


@app.command()
def schema(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write SDL to this file instead of stdout."),
) -> None:
    """Print the GraphQL schema as SDL."""
    sdl = build_schema_sdl()
    if output is None:
        typer.echo(sdl)
        return
    output.write_text(sdl + "\n")
    typer.echo(f"Schema written to {output}")


def main() -> None:
    app()
