"""Server-specific fixtures."""

from __future__ import annotations

import socket
import threading
from pathlib import Path

import pytest

from tether.engine.setup import load_application
from tether.server.http import create_server


def _get_free_port() -> int:
    """Find an available TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture()
def seeded_app(tether_dir: Path):
    """Application over the initialized project, with one order and two products."""
    app = load_application(tether_dir)
    ids = {
        "order": app.records.create({"type": "order", "title": "Order #1"})["id"],
        "widget": app.records.create({"type": "product", "title": "Widget"})["id"],
        "gadget": app.records.create({"type": "product", "title": "Gadget"})["id"],
    }
    return app, ids


@pytest.fixture()
def tether_server(seeded_app):
    """Start a server on a random port, yield (base_url, app, ids)."""
    app, ids = seeded_app
    port = _get_free_port()
    host = "127.0.0.1"
    server = create_server(app, host, port)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield f"http://{host}:{port}", app, ids

    server.shutdown()
    server.server_close()
