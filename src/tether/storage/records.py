"""File-backed record store: one JSON file per record under ``.tether/records/``.

Record ids are integers drawn from a single counter in ``ids.json`` shared by
every type, so an id alone identifies a record.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from tether.core.entries import normalize_id
from tether.core.errors import StorageError
from tether.core.relations import validate_type_name
from tether.storage.fs import read_json, write_json
from tether.storage.locks import tether_lock

logger = logging.getLogger(__name__)

EMPTY_TITLE_MESSAGE = "Title, content and excerpt are empty."
INVALID_ID_MESSAGE = "Invalid record ID."

# Criteria keys consumed by the store itself; every other key is matched
# against record attributes for equality.
_CONTROL_KEYS = ("ids", "order", "limit")


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _sort_key(value: object) -> tuple[int, object]:
    # ints before strings so mixed id types still sort deterministically
    if isinstance(value, int):
        return (0, value)
    return (1, str(value or ""))


class FileRecordStore:
    """Records as plain dicts: ``id``, ``type``, ``title``, ``status`` and any
    other submitted attributes."""

    def __init__(self, tether_dir: Path, untitled_types: list[str] | tuple[str, ...] = ()) -> None:
        self.tether_dir = tether_dir
        self.records_dir = tether_dir / "records"
        self.locks_dir = tether_dir / "locks"
        self.untitled_types = frozenset(untitled_types)

    # -- ids -----------------------------------------------------------------

    def _allocate_id(self) -> int:
        with tether_lock(self.locks_dir, "ids_json"):
            ids_path = self.tether_dir / "ids.json"
            index = read_json(ids_path, {}) or {}
            next_id = int(index.get("next_id", 1))
            index["next_id"] = next_id + 1
            write_json(ids_path, index)
        return next_id

    def _path(self, record_id: int | str) -> Path:
        rid = normalize_id(record_id)
        if not isinstance(rid, int):
            raise ValueError(f"Record ids are integers, got {record_id!r}")
        return self.records_dir / f"{rid}.json"

    # -- reads ---------------------------------------------------------------

    def find(self, record_type: str | None, record_id: int | str) -> dict | None:
        """Return the record, or ``None`` if it is missing or of another type."""
        try:
            path = self._path(record_id)
        except ValueError:
            return None
        record = read_json(path)
        if not isinstance(record, dict):
            return None
        if record_type is not None and record.get("type") != record_type:
            return None
        return record

    def _all(self) -> list[dict]:
        if not self.records_dir.is_dir():
            return []
        records = []
        for path in self.records_dir.glob("*.json"):
            record = read_json(path)
            if isinstance(record, dict):
                records.append(record)
        return records

    def query(self, record_type: str | list[str], criteria: dict | None = None) -> list[dict]:
        """Records of *record_type* (a name or a list of names) matching *criteria*.

        Recognised criteria: ``ids`` (restrict and order by that id list),
        ``order`` (``"id"``, ``"-id"``, ``"title"``), ``limit`` (``-1`` or
        absent means unbounded).  Any other key must equal the record's
        attribute of the same name.
        """
        criteria = dict(criteria or {})
        types = {record_type} if isinstance(record_type, str) else set(record_type)
        wanted_ids = criteria.get("ids")
        filters = {k: v for k, v in criteria.items() if k not in _CONTROL_KEYS}

        matches = [
            r
            for r in self._all()
            if r.get("type") in types and all(r.get(k) == v for k, v in filters.items())
        ]

        if wanted_ids is not None:
            position: dict[int | str, int] = {}
            for i, raw in enumerate(wanted_ids):
                try:
                    position.setdefault(normalize_id(raw), i)
                except ValueError:
                    continue
            matches = [r for r in matches if r.get("id") in position]
            matches.sort(key=lambda r: position[r["id"]])
        else:
            order = criteria.get("order", "id")
            if order == "title":
                matches.sort(key=lambda r: str(r.get("title") or "").lower())
            else:
                matches.sort(key=lambda r: _sort_key(r.get("id")), reverse=order == "-id")

        limit = criteria.get("limit", -1)
        if isinstance(limit, int) and limit >= 0:
            matches = matches[:limit]
        return matches

    def supports_title(self, record_type: str) -> bool:
        return record_type not in self.untitled_types

    # -- writes --------------------------------------------------------------

    def create(self, payload: dict, *, allow_empty_title: bool = False) -> dict:
        """Store a new record and return it with its allocated ``id``.

        Raises:
            StorageError: If the type is invalid or the title is empty and
                *allow_empty_title* is not set.
        """
        record_type = payload.get("type")
        if not validate_type_name(record_type or ""):
            raise StorageError([f"Invalid record type: {record_type!r}."])
        if not allow_empty_title and not str(payload.get("title") or "").strip():
            raise StorageError([EMPTY_TITLE_MESSAGE])

        record = {k: v for k, v in payload.items() if k != "id"}
        record.setdefault("title", "")
        record.setdefault("status", "publish")
        now = _now()
        record["created_at"] = now
        record["updated_at"] = now
        record["id"] = self._allocate_id()
        write_json(self._path(record["id"]), record)
        logger.debug("created %s record %s", record_type, record["id"])
        return record

    def update(self, record_id: int | str, payload: dict) -> dict:
        """Merge *payload* into an existing record and return the result.

        Raises:
            StorageError: If the record does not exist, the payload tries to
                change its type, or a titled type would lose its title.
        """
        try:
            path = self._path(record_id)
        except ValueError:
            raise StorageError([INVALID_ID_MESSAGE]) from None

        with tether_lock(self.locks_dir, f"record_{path.stem}"):
            existing = read_json(path)
            if not isinstance(existing, dict):
                raise StorageError([INVALID_ID_MESSAGE])
            record_type = existing.get("type")
            if payload.get("type", record_type) != record_type:
                raise StorageError([f"Record {existing['id']} is a {record_type}, not a {payload['type']}."])

            record = {**existing, **payload, "id": existing["id"], "type": record_type}
            if self.supports_title(record_type) and not str(record.get("title") or "").strip():
                raise StorageError([EMPTY_TITLE_MESSAGE])
            record["updated_at"] = _now()
            write_json(path, record)
        logger.debug("updated %s record %s", record_type, record["id"])
        return record
