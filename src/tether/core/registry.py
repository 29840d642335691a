"""Per-type relation configuration with a default fallback slot.

Each related type is assigned a small integer index when it is registered;
index 0 is the ``default`` slot.  Every component is a list indexed by that
integer, so a lookup is one dict hit plus one list index, and an unset slot
(``None``) falls through to the default.

The registry is meant to be filled during registration, before any request
is served.  Mutating it while requests are being handled concurrently is
undefined behaviour: readers may observe a half-applied update.
"""

from __future__ import annotations

from typing import Any, Callable

from tether.core.specs import (
    AlwaysPass,
    ListFormat,
    Table,
    parse_action_spec,
    parse_field_spec,
    parse_form_button,
    parse_form_field,
    parse_format,
    parse_validation,
)

DEFAULT = "default"
DEFAULT_INDEX = 0

LIST_FIELDS = "list_fields"
POST_LIST_FIELDS = "post_list_fields"
LIST_ACTIONS = "list_actions"
POST_LIST_ACTIONS = "post_list_actions"
FORM_FIELDS = "form_fields"
FORM_BUTTONS = "form_buttons"
VALIDATION = "validation"

COMPONENTS: tuple[str, ...] = (
    LIST_FIELDS,
    POST_LIST_FIELDS,
    LIST_ACTIONS,
    POST_LIST_ACTIONS,
    FORM_FIELDS,
    FORM_BUTTONS,
    VALIDATION,
)

_SEQUENCE_PARSERS: dict[str, Callable] = {
    LIST_FIELDS: parse_field_spec,
    POST_LIST_FIELDS: parse_field_spec,
    LIST_ACTIONS: parse_action_spec,
    POST_LIST_ACTIONS: parse_action_spec,
    FORM_FIELDS: parse_form_field,
    FORM_BUTTONS: parse_form_button,
}


def default_components() -> dict[str, Any]:
    """Return the parsed contents of the ``default`` slot."""
    return {
        LIST_FIELDS: (parse_field_spec("id"), parse_field_spec("title")),
        POST_LIST_FIELDS: (parse_field_spec("id"), parse_field_spec("title")),
        LIST_ACTIONS: (parse_action_spec("edit"), parse_action_spec("attach")),
        POST_LIST_ACTIONS: (parse_action_spec("edit_inline"), parse_action_spec("detach")),
        FORM_FIELDS: (parse_form_field("title"),),
        FORM_BUTTONS: (parse_form_button("save"), parse_form_button("full_edit")),
        VALIDATION: AlwaysPass(),
    }


def _parse_component(component: str, value: Any) -> Any:
    if component == VALIDATION:
        return parse_validation(value)
    parser = _SEQUENCE_PARSERS[component]
    if isinstance(value, (str, bytes)) or callable(value):
        raise TypeError(f"{component} expects a sequence of specs, got {value!r}")
    return tuple(parser(item) for item in value)


class ConfigRegistry:
    """Component tables indexed by related type."""

    def __init__(self, types: list[str] | tuple[str, ...] = ()) -> None:
        self._index: dict[str, int] = {DEFAULT: DEFAULT_INDEX}
        defaults = default_components()
        self._tables: dict[str, list[Any]] = {c: [defaults[c]] for c in COMPONENTS}
        self._hooks: list[list[Callable]] = [[]]
        self._labels: dict[str, str] = {}
        self.list_format: ListFormat = Table()
        self.post_list_format: ListFormat = Table()
        self.list_query: dict = {}
        for related_type in types:
            self.register_type(related_type)

    # -- arena ---------------------------------------------------------------

    def register_type(self, related_type: str) -> int:
        """Assign *related_type* a slot (idempotent) and return its index."""
        index = self._index.get(related_type)
        if index is not None:
            return index
        index = len(self._hooks)
        self._index[related_type] = index
        for table in self._tables.values():
            table.append(None)
        self._hooks.append([])
        return index

    def index_of(self, related_type: str) -> int | None:
        return self._index.get(related_type)

    @property
    def types(self) -> list[str]:
        """Registered types in index order, excluding ``default``."""
        return [t for t, _ in sorted(self._index.items(), key=lambda kv: kv[1]) if t != DEFAULT]

    # -- generic access ------------------------------------------------------

    def get(self, component: str, related_type: str) -> Any:
        """Return *component* for *related_type*, falling back to ``default``."""
        table = self._tables[component]
        index = self._index.get(related_type)
        if index is not None and table[index] is not None:
            return table[index]
        return table[DEFAULT_INDEX]

    def set(self, component: str, related_type: str, value: Any) -> ConfigRegistry:
        """Parse *value* and store it in *related_type*'s slot for *component*.

        Setting ``list_fields`` also seeds ``post_list_fields`` for the same
        type; ``post_list_fields`` can still be overridden afterwards.
        """
        if component not in self._tables:
            raise KeyError(f"Unknown component: {component!r}")
        parsed = _parse_component(component, value)
        index = self.register_type(related_type)
        self._tables[component][index] = parsed
        if component == LIST_FIELDS:
            self._tables[POST_LIST_FIELDS][index] = parsed
        return self

    def is_set(self, component: str, related_type: str) -> bool:
        index = self._index.get(related_type)
        return index is not None and self._tables[component][index] is not None

    # -- typed setters -------------------------------------------------------

    def set_list_fields(self, related_type: str, fields: list) -> ConfigRegistry:
        return self.set(LIST_FIELDS, related_type, fields)

    def set_post_list_fields(self, related_type: str, fields: list) -> ConfigRegistry:
        return self.set(POST_LIST_FIELDS, related_type, fields)

    def set_list_actions(self, related_type: str, actions: list) -> ConfigRegistry:
        return self.set(LIST_ACTIONS, related_type, actions)

    def set_post_list_actions(self, related_type: str, actions: list) -> ConfigRegistry:
        return self.set(POST_LIST_ACTIONS, related_type, actions)

    def set_form_fields(self, related_type: str, fields: list) -> ConfigRegistry:
        return self.set(FORM_FIELDS, related_type, fields)

    def set_form_buttons(self, related_type: str, buttons: list) -> ConfigRegistry:
        return self.set(FORM_BUTTONS, related_type, buttons)

    def set_validation(self, related_type: str, rule: Any) -> ConfigRegistry:
        return self.set(VALIDATION, related_type, rule)

    # -- relation-wide settings ----------------------------------------------

    def set_list_format(self, fmt: Any) -> ConfigRegistry:
        self.list_format = parse_format(fmt)
        return self

    def set_post_list_format(self, fmt: Any) -> ConfigRegistry:
        self.post_list_format = parse_format(fmt)
        return self

    def set_list_query(self, query: dict) -> ConfigRegistry:
        """Extra filter criteria merged into every browse query."""
        self.list_query = dict(query)
        return self

    # -- labels and form hooks -----------------------------------------------

    def set_type_label(self, name: str, label: str) -> ConfigRegistry:
        self._labels[name] = label
        return self

    def type_label(self, name: str) -> str:
        """Display label for a type or collection attribute (defaults to *name*)."""
        return self._labels.get(name, name)

    def add_form_hook(self, related_type: str, hook: Callable) -> ConfigRegistry:
        """Add ``hook(record_or_none, relation) -> markup`` to the edit form body."""
        index = self.register_type(related_type)
        self._hooks[index].append(hook)
        return self

    def form_hooks(self, related_type: str) -> tuple[Callable, ...]:
        index = self._index.get(related_type)
        if index is None:
            return ()
        return tuple(self._hooks[index])
