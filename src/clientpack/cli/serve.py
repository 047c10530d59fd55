"""CLI command: clientpack serve -- preview the built client locally."""

from __future__ import annotations

from pathlib import Path

import click


@click.command()
@click.option("--dist", default="dist.html", type=click.Path(dir_okay=False, path_type=Path), help="Debug HTML to serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def serve(dist: Path, host: str, port: int, debug: bool) -> None:
    """Serve the debug HTML and a stand-in for the device settings endpoint."""
    from clientpack.web.app import create_app

    app = create_app(dist.absolute())
    click.echo(f"Previewing {dist} on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)
