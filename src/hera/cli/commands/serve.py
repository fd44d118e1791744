"""HTTP server command."""

import click
import uvicorn

from hera.api.server import create_app


@click.command()
@click.option("--host", help="Bind address (defaults to HERA_HOST or 127.0.0.1)")
@click.option("--port", type=int, help="Bind port (defaults to HERA_PORT or 8000)")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """Run the HTTP API."""
    settings = ctx.obj["settings"]
    app = create_app(settings=settings, db=ctx.obj["db"])
    # log_config=None keeps the logging set up by the main command
    uvicorn.run(app, host=host or settings.host, port=port or settings.port, log_config=None)


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve, name="serve")
