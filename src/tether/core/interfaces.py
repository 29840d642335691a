"""Collaborator contracts the engine consumes."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol


class RecordStore(Protocol):
    """Create/read/update of related records.

    ``create`` and ``update`` raise :class:`~tether.core.errors.StorageError`
    carrying the store's messages when they refuse a payload.
    """

    def find(self, record_type: str | None, record_id: int | str) -> dict | None: ...

    def query(self, record_type: str | list[str], criteria: dict | None = None) -> list[dict]: ...

    def create(self, payload: dict, *, allow_empty_title: bool = False) -> dict: ...

    def update(self, record_id: int | str, payload: dict) -> dict: ...

    def supports_title(self, record_type: str) -> bool: ...


class MetadataStore(Protocol):
    """Key/value slots scoped to one record."""

    def get(self, record_id: int | str, key: str) -> Any: ...

    def set(self, record_id: int | str, key: str, value: Any) -> None: ...

    def lock(self, record_id: int | str) -> AbstractContextManager: ...


class TokenVerifier(Protocol):
    def issue(self, scope: str) -> str: ...

    def verify(self, token: str | None, scope: str) -> bool: ...


class DialogChrome(Protocol):
    """Header/footer wrapper for fragments shown in an embedded dialog."""

    def wrap(self, body: str) -> str: ...


class PlainChrome:
    """Returns fragments unwrapped."""

    def wrap(self, body: str) -> str:
        return body
