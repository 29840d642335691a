"""Shared CLI helpers and output utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import click

from tether.core.errors import ConfigError
from tether.engine.handlers import Relation
from tether.engine.routes import Response
from tether.engine.setup import Application, load_application
from tether.storage.fs import TETHER_DIR, TetherRootError, find_root


# ---------------------------------------------------------------------------
# Root & config
# ---------------------------------------------------------------------------


def require_root(is_json: bool = False) -> Path:
    """Find .tether/ directory or exit with error."""
    try:
        root = find_root()
    except TetherRootError as e:
        output_error(str(e), "NOT_INITIALIZED", is_json)
    if root is None:
        output_error(
            "Not a tether project (no .tether/ found). Run 'tether init' first.",
            "NOT_INITIALIZED",
            is_json,
        )
    return root / TETHER_DIR


def require_app(is_json: bool) -> Application:
    """Build the application for the current project or exit with error."""
    tether_dir = require_root(is_json)
    try:
        return load_application(tether_dir)
    except ConfigError as e:
        output_error(e.message, e.code, is_json)


def require_relation(app: Application, selector: str | None, is_json: bool) -> Relation:
    """Pick a relation by instance id or route name; the only one if unset."""
    if selector is None:
        if len(app.relations) == 1:
            return app.relations[0]
        output_error(
            f"{len(app.relations)} relations are configured; choose one with --relation.",
            "AMBIGUOUS_RELATION",
            is_json,
        )
    relation = app.find_relation(selector)
    if relation is None:
        output_error(f"No relation answers '{selector}'.", "NOT_FOUND", is_json)
    return relation


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    """Build an error object for the JSON envelope."""
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(
    *,
    data: object,
    human_message: str,
    quiet_value: str,
    is_json: bool,
    is_quiet: bool,
) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    elif is_quiet:
        click.echo(quiet_value)
    else:
        click.echo(human_message)


def unwrap_response(response: Response, is_json: bool) -> object:
    """Return a handler response's ``data``, or exit with its error."""
    envelope = response.json()
    if envelope.get("ok"):
        return envelope.get("data")
    error = envelope.get("error") or {}
    output_error(error.get("message", "Request failed"), error.get("code", "ERROR"), is_json)


def format_entries(entries: list[dict]) -> str:
    if not entries:
        return "No attached records."
    lines = []
    for entry in entries:
        title = entry.get("title") or ""
        lines.append(f"  {entry.get('type', '?')} {entry['id']}  {title}".rstrip())
    return "\n".join(lines)
