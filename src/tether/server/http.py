"""HTTP host for the route table.

Every route is served from one endpoint (``/ajax`` by default) and selected by
the ``action`` query or form parameter.  GET presents, POST submits.
"""

from __future__ import annotations

import json
import logging
import re
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from tether.engine.routes import JSON, Request, Response, err_body
from tether.engine.setup import Application

logger = logging.getLogger(__name__)

# Maximum allowed request body size (1 MiB).
MAX_REQUEST_BODY_BYTES = 1_048_576

_BRACKET_RE = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


def _single_values(parsed: dict[str, list[str]]) -> dict[str, str]:
    return {key: values[-1] for key, values in parsed.items()}


def unflatten_form(pairs: dict[str, str]) -> dict[str, Any]:
    """Turn ``meta[colour]=red`` style keys into nested dicts (one level)."""
    result: dict[str, Any] = {}
    for key, value in pairs.items():
        match = _BRACKET_RE.match(key)
        if match:
            outer, inner = match.groups()
            nested = result.setdefault(outer, {})
            if isinstance(nested, dict):
                nested[inner] = value
        else:
            result[key] = value
    return result


class _BadBody(Exception):
    def __init__(self, status: int, code: str, message: str):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message


def _make_handler_class(app: Application) -> type:
    """Create a handler class bound to one application."""

    class TetherHandler(BaseHTTPRequestHandler):
        _app: Application = app

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            logger.info("%s - %s", self.address_string(), format % args)

        def do_GET(self) -> None:  # noqa: N802
            parsed = urlparse(self.path)
            if not self._on_endpoint(parsed.path):
                return
            params = _single_values(parse_qs(parsed.query, keep_blank_values=True))
            self._dispatch(params.get("action"), Request(params=params))

        def do_POST(self) -> None:  # noqa: N802
            parsed = urlparse(self.path)
            if not self._on_endpoint(parsed.path):
                return
            params = _single_values(parse_qs(parsed.query, keep_blank_values=True))
            try:
                form = self._read_form()
            except _BadBody as exc:
                self._send(Response(exc.status, JSON, err_body(exc.code, exc.message)))
                return
            action = params.get("action") or form.get("action")
            self._dispatch(action, Request(params=params, form=form))

        # ---------------------------------------------------------------
        # Helpers
        # ---------------------------------------------------------------

        def _on_endpoint(self, path: str) -> bool:
            if (path.rstrip("/") or "/") == self._app.endpoint.rstrip("/"):
                return True
            self._send(
                Response(404, JSON, err_body("NOT_FOUND", f"Not found: {path}"))
            )
            return False

        def _read_form(self) -> dict[str, Any]:
            """Parse a JSON or form-encoded body; an empty body is an empty form."""
            try:
                content_length = int(self.headers.get("Content-Length", 0))
            except (TypeError, ValueError):
                raise _BadBody(400, "BAD_REQUEST", "Missing or invalid Content-Length") from None
            if content_length > MAX_REQUEST_BODY_BYTES:
                raise _BadBody(
                    413, "PAYLOAD_TOO_LARGE", f"Request body exceeds {MAX_REQUEST_BODY_BYTES} bytes"
                )
            raw = self.rfile.read(content_length) if content_length else b""
            if not raw:
                return {}

            content_type = (self.headers.get("Content-Type") or "").split(";")[0].strip()
            if content_type == "application/json":
                try:
                    body = json.loads(raw)
                except json.JSONDecodeError:
                    raise _BadBody(400, "BAD_REQUEST", "Invalid JSON in request body") from None
                if not isinstance(body, dict):
                    raise _BadBody(400, "BAD_REQUEST", "Request body must be a JSON object")
                return body
            text = raw.decode("utf-8", errors="replace")
            return unflatten_form(_single_values(parse_qs(text, keep_blank_values=True)))

        def _dispatch(self, action: str | None, request: Request) -> None:
            self._send(self._app.handle(action, request))

        def _send(self, response: Response) -> None:
            data = response.body.encode("utf-8")
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

    return TetherHandler


def create_server(app: Application, host: str, port: int) -> HTTPServer:
    """Create an HTTP server bound to *host*:*port* serving *app*'s routes."""
    handler_cls = _make_handler_class(app)
    return HTTPServer((host, port), handler_cls)
