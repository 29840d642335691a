"""Action controls rendered next to each listed record."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from markupsafe import Markup

from tether.core.context import RenderContext
from tether.core.html import button, icon
from tether.core.specs import ActionSpec, Attach, CustomAction, Detach, Edit, EditInline


def _edit_control(record: Mapping, ctx: RenderContext, *, inline: bool) -> Markup:
    label = ctx.type_label(str(record.get("type") or ""))
    return button(
        icon("pencil"),
        url=ctx.edit_url(record),
        classes=["inline-dialog"] if inline else [],
        attrs={"title": f"Edit {label}", "data-surface": "inline" if inline else "page"},
    )


def resolve_actions(
    specs: Iterable[ActionSpec],
    record: Mapping,
    ctx: RenderContext,
) -> list[Markup]:
    """Build one control per spec, preserving the configured order.

    Attach and detach controls only carry their payload as ``data-*``
    attributes; nothing is mutated until the client posts it back.
    """
    descriptor = ctx.descriptor
    controls: list[Markup] = []
    for spec in specs:
        match spec:
            case Edit():
                controls.append(_edit_control(record, ctx, inline=False))
            case EditInline():
                controls.append(_edit_control(record, ctx, inline=True))
            case Attach():
                label = ctx.type_label(str(record.get("type") or ""))
                controls.append(
                    button(
                        icon("plus"),
                        style="success",
                        classes=["btn-xs"],
                        attrs={
                            "data-toggle": "attach",
                            "data-related-id": record.get("id"),
                            "data-related-title": record.get("title") or "",
                            "data-related-type": record.get("type"),
                            "data-related-instance": descriptor.instance_id,
                            "title": f"Add {label} to {descriptor.primary}",
                        },
                    )
                )
            case Detach():
                label = ctx.type_label(str(record.get("type") or ""))
                controls.append(
                    button(
                        icon("trash"),
                        style="danger",
                        attrs={
                            "data-toggle": "detach",
                            "data-related-id": record.get("id"),
                            "data-related-instance": descriptor.instance_id,
                            "title": f"Remove {label} from {descriptor.primary}",
                        },
                    )
                )
            case CustomAction(fn=fn):
                # Custom controls are developer-built markup and are trusted.
                control = fn(record)
                controls.append(control if isinstance(control, Markup) else Markup(control))
            case _:
                raise TypeError(f"Not an action spec: {spec!r}")
    return controls
