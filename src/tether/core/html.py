"""Small HTML control builders.

Every builder returns :class:`markupsafe.Markup`; plain-string arguments are
escaped on the way in, ``Markup`` arguments are trusted as-is.  The class
names follow Bootstrap 3, which the editing surface styles against.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from markupsafe import Markup, escape


def attributes(attrs: Mapping[str, object]) -> Markup:
    """Render ``{"name": value}`` as `` name="value"`` pairs, skipping ``None``."""
    parts = [
        Markup(' {}="{}"').format(name, value)
        for name, value in attrs.items()
        if value is not None
    ]
    return Markup("").join(parts)


def icon(name: str) -> Markup:
    return Markup('<i class="glyphicon glyphicon-{}"></i>').format(name)


def link(url: str, text: object, attrs: Mapping[str, object] | None = None) -> Markup:
    return Markup("<a{}>{}</a>").format(attributes({"href": url, **(attrs or {})}), text)


def button(
    label: object,
    *,
    style: str = "default",
    url: str | None = None,
    classes: Iterable[str] = (),
    attrs: Mapping[str, object] | None = None,
    submit: bool = False,
) -> Markup:
    """A ``btn-<style>`` control; an anchor when *url* is given."""
    class_names = " ".join(["btn", f"btn-{style}", *classes])
    extra = dict(attrs or {})
    if url is not None:
        return Markup("<a{}>{}</a>").format(
            attributes({"class": class_names, "href": url, **extra}), label
        )
    kind = "submit" if submit else "button"
    return Markup("<button{}>{}</button>").format(
        attributes({"type": kind, "class": class_names, **extra}), label
    )


def image(src: str, width: int, height: int, alt: str = "") -> Markup:
    return Markup("<img{}/>").format(
        attributes({"src": src, "width": width, "height": height, "alt": alt})
    )


def button_group(controls: Iterable[object], *, size: str = "xs", pull_right: bool = True) -> Markup:
    classes = ["btn-group", f"btn-group-{size}"]
    if pull_right:
        classes.append("pull-right")
    inner = Markup("").join(escape(c) for c in controls)
    return Markup('<div class="{}">{}</div>').format(" ".join(classes), inner)


def alert(message: str, kind: str = "info") -> Markup:
    return Markup('<div class="alert alert-{}">{}</div>').format(kind, message)


def hidden(name: str, value: object) -> Markup:
    return Markup("<input{}/>").format(
        attributes({"type": "hidden", "name": name, "value": "" if value is None else value})
    )


def text_input(name: str, label: str, value: object) -> Markup:
    return Markup(
        '<div class="form-group"><label for="{name}">{label}</label>'
        '<input type="text" class="form-control" id="{name}" name="{name}" value="{value}"/></div>'
    ).format(name=name, label=label, value="" if value is None else value)
