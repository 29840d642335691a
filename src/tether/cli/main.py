"""CLI entry point and commands."""

from __future__ import annotations

from pathlib import Path

import click

from tether.cli.helpers import json_envelope, output_error, require_app, require_relation
from tether.core.config import default_config, serialize_config, validate_config
from tether.core.context import DEFAULT_ENDPOINT
from tether.storage.fs import TETHER_DIR, atomic_write, ensure_tether_dirs
from tether.storage.tokens import generate_secret


@click.group()
def cli() -> None:
    """tether: attach related records to primary records from an editing surface."""


@cli.command()
@click.option(
    "--path",
    "target_path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Directory to initialize tether in (defaults to current directory).",
)
@click.option("--endpoint", default=DEFAULT_ENDPOINT, show_default=True, help="Path every route is served from.")
def init(target_path: str, endpoint: str) -> None:
    """Initialize a new tether project."""
    root = Path(target_path)
    tether_dir = root / TETHER_DIR

    if tether_dir.is_dir():
        click.echo(f"tether already initialized in {TETHER_DIR}/")
        return

    if tether_dir.exists():
        raise click.ClickException(
            f"Cannot initialize: '{TETHER_DIR}' exists but is not a directory. "
            "Remove it and try again."
        )

    config: dict = dict(default_config())
    config["endpoint"] = endpoint
    config["secret"] = generate_secret()
    problems = validate_config(config)
    if problems:
        raise click.ClickException("; ".join(problems))

    try:
        ensure_tether_dirs(root)
        atomic_write(tether_dir / "config.json", serialize_config(config))
    except PermissionError:
        raise click.ClickException(f"Permission denied: cannot create {TETHER_DIR}/ in {root}")
    except OSError as e:
        raise click.ClickException(f"Failed to initialize tether: {e}")

    click.echo(f"tether initialized in {TETHER_DIR}/")
    click.echo("Declare relations under \"relations\" in config.json.")


@cli.command("routes")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def routes_cmd(output_json: bool) -> None:
    """List every route name, grouped by relation."""
    app = require_app(output_json)
    grouped = [
        {
            "instance": relation.descriptor.instance_id,
            "metadata_key": relation.descriptor.metadata_key,
            "routes": relation.descriptor.route_names(),
        }
        for relation in app.relations
    ]
    if output_json:
        click.echo(json_envelope(True, data={"endpoint": app.endpoint, "relations": grouped}))
        return
    if not grouped:
        click.echo("No relations configured.")
        return
    for group in grouped:
        click.echo(f"{group['instance']} ({group['metadata_key']})")
        for name in group["routes"]:
            click.echo(f"  {app.endpoint}?action={name}")


@cli.command("token")
@click.argument("route")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def token_cmd(route: str, output_json: bool) -> None:
    """Issue an integrity token accepted by ROUTE."""
    app = require_app(output_json)
    if route not in app.routes:
        output_error(f"'{route}' is not a route name.", "NOT_FOUND", output_json)
    d = require_relation(app, route, output_json).descriptor
    scope = d.list_scope
    for related_type in d.related_types:
        if route == d.edit_route(related_type):
            scope = d.edit_scope(related_type)
    token = app.tokens.issue(scope)
    if output_json:
        click.echo(json_envelope(True, data={"route": route, "scope": scope, "token": token}))
    else:
        click.echo(token)


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from tether.cli import relation_cmds as _relation_cmds  # noqa: E402, F401
from tether.cli import record_cmds as _record_cmds  # noqa: E402, F401
from tether.cli import serve_cmd as _serve_cmd  # noqa: E402, F401

if __name__ == "__main__":
    cli()
