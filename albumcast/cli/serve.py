"""Serve the pipeline API."""

import logging

import click
import uvicorn

from ..config import settings


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Logging level",
)
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, log_level: str, reload: bool) -> None:
    """Run the albumcast pipeline server."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    click.echo("albumcast pipeline")
    click.echo(f"Store backend: {settings.store_backend}")
    click.echo(f"Bucket: {settings.aws_bucket_name}")
    click.echo(f"Starting web server at http://{host}:{port}")

    uvicorn.run(
        "albumcast.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=log_level.lower(),
        reload=reload,
    )


if __name__ == "__main__":
    serve()
