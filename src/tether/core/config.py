"""Project config: default generation, serialization and validation."""

from __future__ import annotations

import json
from typing import TypedDict

from tether.core.context import DEFAULT_ENDPOINT
from tether.core.registry import COMPONENTS, VALIDATION
from tether.core.relations import validate_type_name
from tether.core.specs import (
    parse_action_spec,
    parse_field_spec,
    parse_form_button,
    parse_form_field,
    parse_format,
    parse_validation,
)


class TypeComponents(TypedDict, total=False):
    list_fields: list[str]
    post_list_fields: list[str]
    list_actions: list[str]
    post_list_actions: list[str]
    form_fields: list[str]
    form_buttons: list[str]
    validation: bool | str


class RelationDecl(TypedDict, total=False):
    prefix: str
    primary: str
    related: list[str]
    mixed: bool
    list_format: str
    post_list_format: str
    list_query: dict
    types: dict[str, TypeComponents]


class TetherConfig(TypedDict, total=False):
    schema_version: int
    endpoint: str
    secret: str
    token_max_age: int
    full_edit_url: str
    untitled_types: list[str]
    type_labels: dict[str, str]
    relations: list[RelationDecl]


DEFAULT_FULL_EDIT_URL = "/records/{type}/{id}/edit"
DEFAULT_TOKEN_MAX_AGE = 86400


def default_config() -> TetherConfig:
    """Return the default tether configuration (no relations declared)."""
    return {
        "schema_version": 1,
        "endpoint": DEFAULT_ENDPOINT,
        "token_max_age": DEFAULT_TOKEN_MAX_AGE,
        "full_edit_url": DEFAULT_FULL_EDIT_URL,
        "untitled_types": [],
        "type_labels": {},
        "relations": [],
    }


def serialize_config(config: TetherConfig | dict[str, object]) -> str:
    """Serialize a config dict to the canonical JSON format."""
    return json.dumps(config, sort_keys=True, indent=2) + "\n"


def load_config(raw: str) -> dict:
    """Parse a JSON config string (pure; the caller does the I/O)."""
    return json.loads(raw)


_COMPONENT_PARSERS = {
    "list_fields": parse_field_spec,
    "post_list_fields": parse_field_spec,
    "list_actions": parse_action_spec,
    "post_list_actions": parse_action_spec,
    "form_fields": parse_form_field,
    "form_buttons": parse_form_button,
}


def _check_relation(index: int, decl: dict) -> list[str]:
    where = f"relations[{index}]"
    problems: list[str] = []
    for key in ("prefix", "primary"):
        if not validate_type_name(decl.get(key, "")):
            problems.append(f"{where}.{key} must be a lowercase identifier")
    related = decl.get("related")
    if not isinstance(related, list) or not related:
        problems.append(f"{where}.related must be a non-empty list of types")
        related = []
    for name in related:
        if not validate_type_name(name):
            problems.append(f"{where}.related contains an invalid type: {name!r}")
    if not decl.get("mixed") and len(related) > 1:
        problems.append(f"{where} declares several related types; set \"mixed\": true")
    for key in ("list_format", "post_list_format"):
        if key in decl:
            try:
                parse_format(decl[key])
            except (ValueError, ImportError, AttributeError) as exc:
                problems.append(f"{where}.{key}: {exc}")
    if "list_query" in decl and not isinstance(decl["list_query"], dict):
        problems.append(f"{where}.list_query must be an object")

    for type_name, components in (decl.get("types") or {}).items():
        if not isinstance(components, dict):
            problems.append(f"{where}.types.{type_name} must be an object")
            continue
        for component, value in components.items():
            if component not in COMPONENTS:
                problems.append(f"{where}.types.{type_name}: unknown component {component!r}")
                continue
            try:
                if component == VALIDATION:
                    parse_validation(value)
                else:
                    if not isinstance(value, list):
                        raise ValueError("expected a list")
                    for item in value:
                        _COMPONENT_PARSERS[component](item)
            except (ValueError, ImportError, AttributeError) as exc:
                problems.append(f"{where}.types.{type_name}.{component}: {exc}")
    return problems


def validate_config(config: dict) -> list[str]:
    """Return a list of problems with *config*; empty when it is usable."""
    problems: list[str] = []
    relations = config.get("relations", [])
    if not isinstance(relations, list):
        return ["relations must be a list"]
    seen: set[tuple[str, str, tuple]] = set()
    for index, decl in enumerate(relations):
        if not isinstance(decl, dict):
            problems.append(f"relations[{index}] must be an object")
            continue
        problems.extend(_check_relation(index, decl))
        related = decl.get("related")
        ident = (decl.get("prefix"), decl.get("primary"), tuple(related) if isinstance(related, list) else ())
        if ident in seen:
            problems.append(f"relations[{index}] duplicates an earlier relation")
        seen.add(ident)
    endpoint = config.get("endpoint", DEFAULT_ENDPOINT)
    if not isinstance(endpoint, str) or not endpoint.startswith("/"):
        problems.append("endpoint must be an absolute path (e.g. /ajax)")
    return problems
