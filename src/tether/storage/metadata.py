"""File-backed metadata store: one JSON object per record under ``.tether/meta/``."""

from __future__ import annotations

import re
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from tether.storage.fs import read_json, write_json
from tether.storage.locks import tether_lock

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _record_key(record_id: int | str) -> str:
    key = str(record_id)
    if not _SAFE_ID_RE.match(key):
        raise ValueError(f"Invalid record id for metadata: {record_id!r}")
    return key


class FileMetadataStore:
    """Key/value slots per record.

    :meth:`set` rewrites the record's file under a short ``meta_<id>`` lock.
    :meth:`lock` hands out a separate ``relations_<id>`` lock for callers that
    need a whole read-modify-write cycle to be exclusive.
    """

    def __init__(self, tether_dir: Path, timeout: float = 10) -> None:
        self.meta_dir = tether_dir / "meta"
        self.locks_dir = tether_dir / "locks"
        self.timeout = timeout

    def _path(self, record_id: int | str) -> Path:
        return self.meta_dir / f"{_record_key(record_id)}.json"

    def all(self, record_id: int | str) -> dict:
        data = read_json(self._path(record_id), {})
        return data if isinstance(data, dict) else {}

    def get(self, record_id: int | str, key: str) -> Any:
        return self.all(record_id).get(key)

    def set(self, record_id: int | str, key: str, value: Any) -> None:
        path = self._path(record_id)
        self.meta_dir.mkdir(parents=True, exist_ok=True)
        with tether_lock(self.locks_dir, f"meta_{_record_key(record_id)}", self.timeout):
            data = read_json(path, {})
            if not isinstance(data, dict):
                data = {}
            data[key] = value
            write_json(path, data)

    def lock(self, record_id: int | str) -> AbstractContextManager:
        return tether_lock(self.locks_dir, f"relations_{_record_key(record_id)}", self.timeout)
