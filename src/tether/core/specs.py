"""Field, action, form, format and validation specs as closed tagged variants.

Configuration files name these with short strings (``"edit_link:title"``,
``"detach"``, ``"call:shop.fields:price_row"``).  The ``parse_*`` functions
turn those strings into variants once, at registration time; the render path
only ever pattern-matches on the variants.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Callable, Union

CALL_PREFIX = "call:"


# ---------------------------------------------------------------------------
# List fields
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attr:
    """Plain attribute passthrough, labelled with the humanized name."""

    name: str


@dataclass(frozen=True)
class PermalinkExcerpt:
    """Title linked to the record's public URL, followed by a body excerpt."""


@dataclass(frozen=True)
class Thumbnail:
    """Small image from the record's associated thumbnail."""


@dataclass(frozen=True)
class EditLink:
    """The value of *attr* as a link that opens the edit dialog."""

    attr: str


@dataclass(frozen=True)
class Count:
    """Number of elements in the record's *attr* collection."""

    attr: str


@dataclass(frozen=True)
class YesNo:
    """Bold "Yes" when *attr* is truthy, otherwise "No"."""

    attr: str


@dataclass(frozen=True)
class CustomField:
    """``fn(record) -> {"label": ..., "value": ...}``"""

    fn: Callable[[dict], dict]


FieldSpec = Union[Attr, PermalinkExcerpt, Thumbnail, EditLink, Count, YesNo, CustomField]


# ---------------------------------------------------------------------------
# List actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Edit:
    pass


@dataclass(frozen=True)
class EditInline:
    pass


@dataclass(frozen=True)
class Attach:
    pass


@dataclass(frozen=True)
class Detach:
    pass


@dataclass(frozen=True)
class CustomAction:
    """``fn(record) -> control``"""

    fn: Callable[[dict], Any]


ActionSpec = Union[Edit, EditInline, Attach, Detach, CustomAction]


# ---------------------------------------------------------------------------
# Edit form
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TitleInput:
    pass


@dataclass(frozen=True)
class CustomFormField:
    """``fn(record_or_none, relation) -> markup``"""

    fn: Callable[[dict | None, Any], Any]


@dataclass(frozen=True)
class SaveButton:
    pass


@dataclass(frozen=True)
class FullEditButton:
    pass


@dataclass(frozen=True)
class CustomButton:
    """``fn(record_or_none, relation) -> markup``"""

    fn: Callable[[dict | None, Any], Any]


FormFieldSpec = Union[TitleInput, CustomFormField]
FormButtonSpec = Union[SaveButton, FullEditButton, CustomButton]


# ---------------------------------------------------------------------------
# List formats
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ListGroup:
    """Flat list: one card per record, actions then ``Label: value`` lines."""


@dataclass(frozen=True)
class Table:
    """Tabular: one row per record with a trailing Actions column."""


@dataclass(frozen=True)
class CustomFormat:
    """``fn(records) -> output``, used verbatim."""

    fn: Callable[[list[dict]], Any]


ListFormat = Union[ListGroup, Table, CustomFormat]


# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AlwaysPass:
    pass


@dataclass(frozen=True)
class Fixed:
    passed: bool


@dataclass(frozen=True)
class Predicate:
    """``fn(context) -> bool``; the context can record a failure message."""

    fn: Callable[[Any], bool]


ValidationRule = Union[AlwaysPass, Fixed, Predicate]


# ---------------------------------------------------------------------------
# Parsing (config boundary)
# ---------------------------------------------------------------------------


def load_callable(path: str) -> Callable:
    """Import ``"package.module:attribute"`` and return the attribute.

    Raises ``ValueError`` if the path is malformed or the attribute is not
    callable.  Import errors propagate unchanged.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid callable path: '{path}' (expected 'module:attribute')")
    module = importlib.import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise ValueError(f"'{path}' is not callable")
    return target


def _callable_from(raw: str) -> Callable:
    return load_callable(raw[len(CALL_PREFIX):])


_FIELD_DIRECTIVES: dict[str, type] = {
    "edit_link": EditLink,
    "count": Count,
    "yesno": YesNo,
}


def parse_field_spec(raw: str | Callable | FieldSpec) -> FieldSpec:
    """Turn a config entry into a :data:`FieldSpec`."""
    if isinstance(raw, (Attr, PermalinkExcerpt, Thumbnail, EditLink, Count, YesNo, CustomField)):
        return raw
    if callable(raw):
        return CustomField(raw)
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"Invalid field spec: {raw!r}")
    if raw.startswith(CALL_PREFIX):
        return CustomField(_callable_from(raw))
    if raw == "permalink_excerpt":
        return PermalinkExcerpt()
    if raw == "thumbnail":
        return Thumbnail()
    directive, sep, attr = raw.partition(":")
    if sep:
        variant = _FIELD_DIRECTIVES.get(directive)
        if variant is None or not attr:
            raise ValueError(f"Invalid field directive: '{raw}'")
        return variant(attr)
    return Attr(raw)


_ACTIONS: dict[str, ActionSpec] = {
    "edit": Edit(),
    "edit_inline": EditInline(),
    "attach": Attach(),
    "detach": Detach(),
}


def parse_action_spec(raw: str | Callable | ActionSpec) -> ActionSpec:
    """Turn a config entry into an :data:`ActionSpec`."""
    if isinstance(raw, (Edit, EditInline, Attach, Detach, CustomAction)):
        return raw
    if callable(raw):
        return CustomAction(raw)
    if isinstance(raw, str) and raw.startswith(CALL_PREFIX):
        return CustomAction(_callable_from(raw))
    try:
        return _ACTIONS[raw]
    except (KeyError, TypeError):
        valid = ", ".join(sorted(_ACTIONS))
        raise ValueError(f"Unknown action: {raw!r}. Valid actions: {valid}.") from None


def parse_form_field(raw: str | Callable | FormFieldSpec) -> FormFieldSpec:
    if isinstance(raw, (TitleInput, CustomFormField)):
        return raw
    if callable(raw):
        return CustomFormField(raw)
    if isinstance(raw, str) and raw.startswith(CALL_PREFIX):
        return CustomFormField(_callable_from(raw))
    if raw == "title":
        return TitleInput()
    raise ValueError(f"Unknown form field: {raw!r}")


def parse_form_button(raw: str | Callable | FormButtonSpec) -> FormButtonSpec:
    if isinstance(raw, (SaveButton, FullEditButton, CustomButton)):
        return raw
    if callable(raw):
        return CustomButton(raw)
    if isinstance(raw, str) and raw.startswith(CALL_PREFIX):
        return CustomButton(_callable_from(raw))
    if raw == "save":
        return SaveButton()
    if raw == "full_edit":
        return FullEditButton()
    raise ValueError(f"Unknown form button: {raw!r}")


def parse_format(raw: str | Callable | ListFormat) -> ListFormat:
    if isinstance(raw, (ListGroup, Table, CustomFormat)):
        return raw
    if callable(raw):
        return CustomFormat(raw)
    if isinstance(raw, str) and raw.startswith(CALL_PREFIX):
        return CustomFormat(_callable_from(raw))
    if raw == "table":
        return Table()
    if raw == "listgroup":
        return ListGroup()
    raise ValueError(f"Unknown list format: {raw!r}. Valid formats: listgroup, table.")


def parse_validation(raw: bool | str | Callable | ValidationRule | None) -> ValidationRule:
    """``None``/``True`` pass, ``False`` rejects, callables become predicates."""
    if isinstance(raw, (AlwaysPass, Fixed, Predicate)):
        return raw
    if raw is None or raw is True:
        return AlwaysPass()
    if raw is False:
        return Fixed(False)
    if callable(raw):
        return Predicate(raw)
    if isinstance(raw, str) and raw.startswith(CALL_PREFIX):
        return Predicate(_callable_from(raw))
    raise ValueError(f"Invalid validation rule: {raw!r}")
