"""The inline edit/create form for one related type."""

from __future__ import annotations

from typing import TYPE_CHECKING

from markupsafe import Markup

from tether.core.html import attributes, button, hidden, text_input
from tether.core.registry import FORM_BUTTONS, FORM_FIELDS
from tether.core.specs import (
    CustomButton,
    CustomFormField,
    FormButtonSpec,
    FormFieldSpec,
    FullEditButton,
    SaveButton,
    TitleInput,
)

if TYPE_CHECKING:
    from tether.engine.handlers import Relation

SAVE_LABEL = "Save"
FULL_EDIT_LABEL = "Go to full edit page"

# Submission keys that steer the request rather than describe the record.
CONTROL_KEYS = frozenset({"token", "action", "related_id", "meta"})


def _trusted(value: object) -> Markup:
    # Hooks and custom form parts return developer-built markup.
    return value if isinstance(value, Markup) else Markup(value)


def _field(spec: FormFieldSpec, record: dict | None, relation: Relation) -> Markup:
    match spec:
        case TitleInput():
            return text_input("title", "Title", (record or {}).get("title"))
        case CustomFormField(fn=fn):
            return _trusted(fn(record, relation))
        case _:
            raise TypeError(f"Not a form field spec: {spec!r}")


def _button(spec: FormButtonSpec, record: dict | None, related_type: str, relation: Relation) -> Markup | None:
    match spec:
        case SaveButton():
            return button(SAVE_LABEL, style="primary", submit=True)
        case FullEditButton():
            if record is None:
                return None
            url = relation.full_edit_url.format(type=related_type, id=record["id"])
            return button(FULL_EDIT_LABEL, url=url, attrs={"target": "_top"})
        case CustomButton(fn=fn):
            return _trusted(fn(record, relation))
        case _:
            raise TypeError(f"Not a form button spec: {spec!r}")


def render_edit_form(relation: Relation, related_type: str, record: dict | None, token: str) -> Markup:
    """Form fields, hooked content, then buttons; create mode when *record* is None.

    The token, route name and record id travel as hidden inputs so the
    submission comes back to the same route.
    """
    registry = relation.registry
    descriptor = relation.descriptor
    route = descriptor.edit_route(related_type)
    label = registry.type_label(related_type)

    parts: list[Markup] = [
        Markup("<h3>{}</h3>").format(f"Edit {label}"),
        hidden("token", token),
        hidden("action", route),
        hidden("related_id", record["id"] if record else ""),
    ]
    parts += [_field(spec, record, relation) for spec in registry.get(FORM_FIELDS, related_type)]
    parts += [_trusted(hook(record, relation)) for hook in registry.form_hooks(related_type)]

    buttons = [
        _button(spec, record, related_type, relation)
        for spec in registry.get(FORM_BUTTONS, related_type)
    ]
    parts.append(
        Markup('<div class="form-buttons">{}</div>').format(
            Markup(" ").join(b for b in buttons if b is not None)
        )
    )

    form_attrs = attributes(
        {
            "class": "edit-related-form",
            "method": "post",
            "action": relation.context.route_url(route),
            "data-related-type": related_type,
            "data-related-instance": descriptor.instance_id,
        }
    )
    return Markup("<form{}>\n{}\n</form>").format(form_attrs, Markup("\n").join(parts))
