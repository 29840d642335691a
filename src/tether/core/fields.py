"""Row formatting: a record plus field specs becomes an ordered label → value map."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from markupsafe import Markup

from tether.core.context import RenderContext
from tether.core.html import button, image, link
from tether.core.specs import (
    Attr,
    Count,
    CustomField,
    EditLink,
    FieldSpec,
    PermalinkExcerpt,
    Thumbnail,
    YesNo,
)

EXCERPT_WORDS = 55
THUMBNAIL_SIZE = (50, 50)

_TAG_RE = re.compile(r"<[^>]*>")


def humanize(name: str) -> str:
    """``"post_title"`` → ``"Post Title"``; already-capitalised letters are kept."""
    words = str(name).replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def excerpt(body: object, words: int = EXCERPT_WORDS) -> str:
    """Strip tags from *body* and trim it to *words* words, adding an ellipsis."""
    if not body:
        return ""
    tokens = _TAG_RE.sub("", str(body)).split()
    if len(tokens) <= words:
        return " ".join(tokens)
    return " ".join(tokens[:words]) + "…"


def count_of(value: object) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value)
    return 1


def _raw(record: Mapping, attr: str) -> object:
    value = record.get(attr)
    return "" if value is None else value


def format_row(
    record: Mapping,
    specs: Iterable[FieldSpec],
    ctx: RenderContext,
) -> dict[str, object]:
    """Render *record* through *specs*, in order.

    Missing attributes render as an empty value; a later spec producing the
    same label overwrites the earlier one.  Custom resolvers are called with
    the record and their ``label``/``value`` inserted verbatim.
    """
    row: dict[str, object] = {}
    for spec in specs:
        match spec:
            case Attr(name=name):
                row[humanize(name)] = _raw(record, name)
            case PermalinkExcerpt():
                title_link = link(str(record.get("url") or "#"), _raw(record, "title"))
                row["Title"] = title_link + Markup("<p>{}</p>").format(excerpt(record.get("content")))
            case Thumbnail():
                src = record.get("thumbnail")
                row["Image"] = image(str(src), *THUMBNAIL_SIZE, alt=str(_raw(record, "title"))) if src else ""
            case EditLink(attr=attr):
                row[humanize(attr)] = button(
                    _raw(record, attr),
                    style="link",
                    url=ctx.edit_url(record),
                    classes=["inline-dialog"],
                    attrs={"title": f"Edit {ctx.type_label(str(record.get('type') or ''))}"},
                )
            case Count(attr=attr):
                label = f"{humanize(ctx.type_label(attr))}(s)"
                row[label] = f"{count_of(record.get(attr))} {label}"
            case YesNo(attr=attr):
                row[humanize(attr)] = Markup("<strong>Yes</strong>") if record.get(attr) else "No"
            case CustomField(fn=fn):
                resolved = fn(record)
                row[resolved["label"]] = resolved["value"]
            case _:
                raise TypeError(f"Not a field spec: {spec!r}")
    return row
