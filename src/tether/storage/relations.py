"""Persisted relation lists: read, attach and detach against a metadata store."""

from __future__ import annotations

import logging

from tether.core.entries import normalize_list, remove_entry, upsert_entry
from tether.core.interfaces import MetadataStore

logger = logging.getLogger(__name__)


class RelationStore:
    """Relation lists stored in one metadata slot per primary record.

    Each mutation is a read-modify-write held under the metadata store's
    per-record lock, so concurrent attaches to the same primary record do
    not lose each other's entries.
    """

    def __init__(self, metadata: MetadataStore) -> None:
        self.metadata = metadata

    def read(self, primary_id: int | str, key: str) -> list[dict]:
        return normalize_list(self.metadata.get(primary_id, key))

    def attach(self, primary_id: int | str, key: str, entry: dict) -> list[dict]:
        """Upsert *entry* (already normalised) and return the updated list."""
        with self.metadata.lock(primary_id):
            entries = upsert_entry(self.read(primary_id, key), entry)
            self.metadata.set(primary_id, key, entries)
        logger.debug("attached %s to %s[%s]", entry["id"], key, primary_id)
        return entries

    def detach(self, primary_id: int | str, key: str, related_id: int | str) -> list[dict]:
        with self.metadata.lock(primary_id):
            entries = remove_entry(self.read(primary_id, key), related_id)
            self.metadata.set(primary_id, key, entries)
        logger.debug("detached %s from %s[%s]", related_id, key, primary_id)
        return entries
