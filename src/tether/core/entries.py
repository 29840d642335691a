"""Relation list operations: pure functions, no I/O.

A relation list is an ordered list of entry dicts, each with a unique
``id``.  Ids arrive from forms as strings; they are normalised so that
``"7"`` and ``7`` name the same entry.
"""

from __future__ import annotations

from collections.abc import Iterable


def normalize_id(value: object) -> int | str:
    """Return *value* as a record id: digit strings become ints.

    Raises ``ValueError`` for empty, boolean or non-scalar ids.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid record id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        if stripped:
            return stripped
    raise ValueError(f"Invalid record id: {value!r}")


def normalize_list(value: object) -> list[dict]:
    """Coerce a stored value into a relation list.

    Absent or non-list values are an empty list; malformed entries (not a
    dict, or without an ``id``) are dropped.
    """
    if not isinstance(value, list):
        return []
    return [dict(entry) for entry in value if isinstance(entry, dict) and "id" in entry]


def build_entry(payload: dict) -> dict:
    """Copy *payload* into an entry with a normalised ``id``."""
    entry = dict(payload)
    entry["id"] = normalize_id(payload.get("id"))
    return entry


def _same(a: object, b: object) -> bool:
    try:
        return normalize_id(a) == normalize_id(b)
    except ValueError:
        return False


def upsert_entry(entries: list[dict], entry: dict) -> list[dict]:
    """Return a new list with *entry* replacing the one with the same id, or appended."""
    updated: list[dict] = []
    replaced = False
    for existing in entries:
        if not replaced and _same(existing.get("id"), entry["id"]):
            updated.append(dict(entry))
            replaced = True
        else:
            updated.append(existing)
    if not replaced:
        updated.append(dict(entry))
    return updated


def remove_entry(entries: list[dict], related_id: object) -> list[dict]:
    """Return a new list without the entry for *related_id* (absent is fine)."""
    return [e for e in entries if not _same(e.get("id"), related_id)]


def entry_ids(entries: Iterable[dict], *, dedupe: bool = False) -> list[int | str]:
    """Ids referenced by *entries*, in list order; optionally deduplicated."""
    ids: list[int | str] = []
    seen: set = set()
    for entry in entries:
        try:
            rid = normalize_id(entry.get("id"))
        except ValueError:
            continue
        if dedupe:
            if rid in seen:
                continue
            seen.add(rid)
        ids.append(rid)
    return ids
