"""List rendering: records, field specs and action specs → one document fragment."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from jinja2 import Environment
from markupsafe import Markup

from tether.core.actions import resolve_actions
from tether.core.context import RenderContext
from tether.core.fields import format_row
from tether.core.html import alert, button_group
from tether.core.specs import ActionSpec, CustomFormat, FieldSpec, ListFormat, ListGroup, Table

ACTIONS_COLUMN = "Actions"

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_LISTGROUP_TEMPLATE = _env.from_string(
    """\
<div class="list-group">
{% for item in items %}
<div class="list-group-item">{{ item.actions }}
{% for label, value in item.row.items() %}
<p><strong>{{ label }}</strong>: {{ value }}</p>
{% endfor %}
</div>
{% endfor %}
</div>"""
)

_TABLE_TEMPLATE = _env.from_string(
    """\
<table class="table table-striped">
{% if header %}
<thead>
<tr>{% for column in header %}<th{% if column == actions_column %} class="text-right"{% endif %}>{{ column }}</th>{% endfor %}</tr>
</thead>
{% endif %}
<tbody>
{% for row in rows %}
<tr>{% for column, value in row.items() %}<td{% if column == actions_column %} class="text-right"{% endif %}>{{ value }}</td>{% endfor %}</tr>
{% endfor %}
</tbody>
</table>"""
)


def render_list(
    fmt: ListFormat,
    records: Sequence[dict],
    fields_for: Callable[[str], Sequence[FieldSpec]],
    actions_for: Callable[[str], Sequence[ActionSpec]],
    ctx: RenderContext,
    *,
    show_header: bool = True,
) -> object:
    """Render *records* in *fmt*.

    *fields_for* and *actions_for* map a record's type to its configured
    specs, so heterogeneous records each use their own configuration.  A
    custom format receives the raw records and its result is returned as-is.
    """
    match fmt:
        case CustomFormat(fn=fn):
            return fn(list(records))
        case ListGroup():
            return render_listgroup(records, fields_for, actions_for, ctx)
        case Table():
            return render_table(records, fields_for, actions_for, ctx, show_header=show_header)
        case _:
            raise TypeError(f"Not a list format: {fmt!r}")


def render_listgroup(
    records: Sequence[dict],
    fields_for: Callable[[str], Sequence[FieldSpec]],
    actions_for: Callable[[str], Sequence[ActionSpec]],
    ctx: RenderContext,
) -> Markup:
    items = []
    for record in records:
        record_type = str(record.get("type") or "")
        actions = resolve_actions(actions_for(record_type), record, ctx)
        items.append(
            {
                "actions": button_group(actions),
                "row": format_row(record, fields_for(record_type), ctx),
            }
        )
    return Markup(_LISTGROUP_TEMPLATE.render(items=items))


def render_table(
    records: Sequence[dict],
    fields_for: Callable[[str], Sequence[FieldSpec]],
    actions_for: Callable[[str], Sequence[ActionSpec]],
    ctx: RenderContext,
    *,
    show_header: bool = True,
) -> Markup:
    """One row per record plus an Actions column.

    The header is the first row's labels; pass ``show_header=False`` when
    rows come from different types and cannot share one header.
    """
    rows: list[dict[str, object]] = []
    for record in records:
        record_type = str(record.get("type") or "")
        row = format_row(record, fields_for(record_type), ctx)
        row[ACTIONS_COLUMN] = button_group(resolve_actions(actions_for(record_type), record, ctx))
        rows.append(row)

    header = list(rows[0].keys()) if rows and show_header else None
    return Markup(
        _TABLE_TEMPLATE.render(header=header, rows=rows, actions_column=ACTIONS_COLUMN)
    )


def no_records_notice(related_type: str) -> Markup:
    """Informational notice for an empty browse result."""
    return alert(f"No related records found ({related_type}).", "info")
