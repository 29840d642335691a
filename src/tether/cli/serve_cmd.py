"""``tether serve``: run the HTTP host."""

from __future__ import annotations

import errno
import logging
import os

import click

from tether.cli.helpers import json_envelope, json_error_obj, require_app
from tether.cli.main import cli

_DEFAULT_PORT = 8790


def _configure_logging() -> None:
    level = logging.DEBUG if os.environ.get("TETHER_DEBUG") == "1" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--port", default=_DEFAULT_PORT, type=int, show_default=True, help="Port to bind to.")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def serve_cmd(host: str, port: int, output_json: bool) -> None:
    """Serve every configured relation's routes over HTTP."""
    _configure_logging()
    app = require_app(output_json)

    from tether.server.http import create_server

    try:
        server = create_server(app, host, port)
    except OSError as exc:
        if exc.errno == errno.EADDRINUSE:
            msg = f"Port {port} is already in use. Pick another with --port."
            code = "PORT_IN_USE"
        else:
            msg = str(exc)
            code = "BIND_ERROR"
        if output_json:
            click.echo(json_envelope(False, error=json_error_obj(code, msg)))
        else:
            click.echo(f"Error: {msg}", err=True)
        raise SystemExit(1)

    url = f"http://{host}:{port}{app.endpoint}"
    if output_json:
        click.echo(json_envelope(True, data={"host": host, "port": port, "url": url}))
    else:
        click.echo(f"tether serving {len(app.routes)} routes at {url}")
        click.echo("Press Ctrl+C to stop.")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        click.echo("Stopped.", err=True)
    finally:
        server.server_close()
