"""``tether attached``, ``attach`` and ``detach``: relation lists from the shell."""

from __future__ import annotations

import click

from tether.cli.helpers import format_entries, output_result, require_app, require_relation, unwrap_response
from tether.cli.main import cli
from tether.engine.handlers import Relation
from tether.engine.routes import Request


def _signed(relation: Relation, **fields: object) -> Request:
    token = relation.tokens.issue(relation.descriptor.list_scope)
    return Request(form={"token": token, **{k: v for k, v in fields.items() if v is not None}})


_relation_option = click.option(
    "--relation",
    "selector",
    default=None,
    help="Relation instance id or any of its route names (optional with one relation).",
)


@cli.command("attached")
@click.argument("primary_id")
@_relation_option
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.option("--quiet", is_flag=True, help="Print only attached ids.")
def attached_cmd(primary_id: str, selector: str | None, output_json: bool, quiet: bool) -> None:
    """Show the entries attached to PRIMARY_ID."""
    app = require_app(output_json)
    relation = require_relation(app, selector, output_json)
    data = unwrap_response(relation.list_attached(_signed(relation, primary_id=primary_id)), output_json)
    entries = data["entries"]
    output_result(
        data=data,
        human_message=format_entries(entries),
        quiet_value=" ".join(str(e["id"]) for e in entries),
        is_json=output_json,
        is_quiet=quiet,
    )


@cli.command("attach")
@click.argument("primary_id")
@click.argument("related_id")
@_relation_option
@click.option("--title", default=None, help="Title stored with the entry.")
@click.option("--type", "related_type", default=None, help="Related type (required for mixed relations).")
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.option("--quiet", is_flag=True, help="Print only attached ids.")
def attach_cmd(
    primary_id: str,
    related_id: str,
    selector: str | None,
    title: str | None,
    related_type: str | None,
    output_json: bool,
    quiet: bool,
) -> None:
    """Attach RELATED_ID to PRIMARY_ID (replaces an entry with the same id)."""
    app = require_app(output_json)
    relation = require_relation(app, selector, output_json)
    request = _signed(
        relation,
        primary_id=primary_id,
        related_id=related_id,
        related_title=title,
        related_type=related_type,
    )
    data = unwrap_response(relation.attach(request), output_json)
    output_result(
        data=data,
        human_message=f"Attached {related_id} to {primary_id}.\n{format_entries(data['entries'])}",
        quiet_value=" ".join(str(e["id"]) for e in data["entries"]),
        is_json=output_json,
        is_quiet=quiet,
    )


@cli.command("detach")
@click.argument("primary_id")
@click.argument("related_id")
@_relation_option
@click.option("--json", "output_json", is_flag=True, help="Output structured JSON.")
@click.option("--quiet", is_flag=True, help="Print only remaining ids.")
def detach_cmd(primary_id: str, related_id: str, selector: str | None, output_json: bool, quiet: bool) -> None:
    """Detach RELATED_ID from PRIMARY_ID (no-op if it is not attached)."""
    app = require_app(output_json)
    relation = require_relation(app, selector, output_json)
    request = _signed(relation, primary_id=primary_id, related_id=related_id)
    data = unwrap_response(relation.detach(request), output_json)
    output_result(
        data=data,
        human_message=f"Detached {related_id} from {primary_id}.\n{format_entries(data['entries'])}",
        quiet_value=" ".join(str(e["id"]) for e in data["entries"]),
        is_json=output_json,
        is_quiet=quiet,
    )
