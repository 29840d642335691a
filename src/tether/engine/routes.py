"""Explicit route table: route name → handler, plus request/response types."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tether.core.errors import RouteNotFound, StorageError, TetherError

HTML = "text/html; charset=utf-8"
JSON = "application/json; charset=utf-8"


# ---------------------------------------------------------------------------
# JSON envelope helpers
# ---------------------------------------------------------------------------


def ok_body(data: Any) -> str:
    return json.dumps({"ok": True, "data": data}, sort_keys=True, indent=2) + "\n"


def err_body(code: str, message: str, **extra: Any) -> str:
    return (
        json.dumps(
            {"ok": False, "error": {"code": code, "message": message, **extra}},
            sort_keys=True,
            indent=2,
        )
        + "\n"
    )


# ---------------------------------------------------------------------------
# Request / response
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Request:
    """One incoming call.

    ``params`` are the query-string values; ``form`` is the submitted body,
    or ``None`` when nothing was submitted (a plain GET).
    """

    params: Mapping[str, Any] = field(default_factory=dict)
    form: Mapping[str, Any] | None = None

    @property
    def has_submission(self) -> bool:
        return self.form is not None

    @property
    def data(self) -> dict[str, Any]:
        """Query values overlaid with submitted values."""
        return {**self.params, **(self.form or {})}

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class Response:
    status: int
    content_type: str
    body: str

    @classmethod
    def ok(cls, data: Any) -> Response:
        return cls(200, JSON, ok_body(data))

    @classmethod
    def html(cls, body: str, status: int = 200) -> Response:
        return cls(status, HTML, str(body))

    @classmethod
    def error(cls, exc: TetherError) -> Response:
        extra: dict[str, Any] = {}
        if isinstance(exc, StorageError):
            extra["messages"] = list(exc.messages)
        return cls(exc.status_code, JSON, err_body(exc.code, exc.message, **extra))

    def json(self) -> Any:
        return json.loads(self.body)


Handler = Callable[[Request], Response]


# ---------------------------------------------------------------------------
# Route table
# ---------------------------------------------------------------------------


class RouteTable:
    """Route names mapped to handlers, filled during registration."""

    def __init__(self) -> None:
        self._routes: dict[str, Handler] = {}

    def add(self, name: str, handler: Handler) -> None:
        if name in self._routes:
            raise ValueError(f"Route already registered: {name}")
        self._routes[name] = handler

    def __contains__(self, name: object) -> bool:
        return name in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def names(self) -> list[str]:
        return list(self._routes)

    def dispatch(self, name: str | None, request: Request) -> Response:
        """Invoke the handler for *name*.

        Raises:
            RouteNotFound: If no handler is registered under *name*.
        """
        handler = self._routes.get(name or "")
        if handler is None:
            raise RouteNotFound(f"Unknown action: {name!r}")
        return handler(request)
