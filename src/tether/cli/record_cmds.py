"""``tether records``: list and create records in the file store."""

from __future__ import annotations

import json

import click

from tether.cli.helpers import json_envelope, output_error, output_result, require_app
from tether.cli.main import cli
from tether.core.errors import StorageError


def _parse_pairs(pairs: tuple[str, ...], output_json: bool) -> dict:
    """``key=value`` options; values that parse as JSON are decoded."""
    result: dict = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            output_error(f"Expected key=value, got '{pair}'.", "INVALID_ARGUMENT", output_json)
        try:
            result[key] = json.loads(value)
        except json.JSONDecodeError:
            result[key] = value
    return result


@cli.group("records")
def records_group() -> None:
    """Inspect and create records."""


@records_group.command("list")
@click.argument("record_type")
@click.option("--where", "where", multiple=True, help="Attribute filter, key=value (repeatable).")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
def records_list(record_type: str, where: tuple[str, ...], output_json: bool) -> None:
    """List records of RECORD_TYPE."""
    app = require_app(output_json)
    found = app.records.query(record_type, _parse_pairs(where, output_json))
    if output_json:
        click.echo(json_envelope(True, data=found))
        return
    if not found:
        click.echo(f"No related records found ({record_type}).")
        return
    for record in found:
        click.echo(f"  {record['id']}  {record.get('title') or ''}".rstrip())


@records_group.command("create")
@click.argument("record_type")
@click.option("--title", default="", help="Record title.")
@click.option("--set", "attrs", multiple=True, help="Extra attribute, key=value (repeatable).")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.option("--quiet", is_flag=True, help="Print only the new id.")
def records_create(
    record_type: str, title: str, attrs: tuple[str, ...], output_json: bool, quiet: bool
) -> None:
    """Create a record of RECORD_TYPE."""
    app = require_app(output_json)
    payload = {**_parse_pairs(attrs, output_json), "type": record_type, "title": title}
    try:
        record = app.records.create(
            payload, allow_empty_title=not app.records.supports_title(record_type)
        )
    except StorageError as e:
        output_error("; ".join(e.messages), e.code, output_json)
    output_result(
        data=record,
        human_message=f"Created {record_type} {record['id']}.",
        quiet_value=str(record["id"]),
        is_json=output_json,
        is_quiet=quiet,
    )
