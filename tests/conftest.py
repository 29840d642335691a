"""Shared test fixtures."""

from __future__ import annotations

import contextlib
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tether.core.entries import normalize_id
from tether.core.errors import StorageError

# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class MemoryRecordStore:
    """Record store backed by a dict; records every query it answers."""

    def __init__(self, records: list[dict] = (), untitled: tuple[str, ...] = ()) -> None:
        self.records: dict[int | str, dict] = {r["id"]: dict(r) for r in records}
        self.untitled = set(untitled)
        self.queries: list[tuple[object, dict]] = []
        self._next_id = max((r["id"] for r in records if isinstance(r["id"], int)), default=0) + 1

    def find(self, record_type, record_id):
        record = self.records.get(normalize_id(record_id))
        if record is None or (record_type is not None and record["type"] != record_type):
            return None
        return dict(record)

    def query(self, record_type, criteria=None):
        criteria = dict(criteria or {})
        self.queries.append((record_type, dict(criteria)))
        types = {record_type} if isinstance(record_type, str) else set(record_type)
        ids = criteria.pop("ids", None)
        criteria.pop("limit", None)
        found = [
            dict(r)
            for r in self.records.values()
            if r["type"] in types and all(r.get(k) == v for k, v in criteria.items())
        ]
        if ids is not None:
            found = [r for r in found if r["id"] in ids]
            found.sort(key=lambda r: ids.index(r["id"]))
        return found

    def create(self, payload, *, allow_empty_title=False):
        if not allow_empty_title and not payload.get("title"):
            raise StorageError(["Title is required."])
        record = {**payload, "id": self._next_id}
        self._next_id += 1
        self.records[record["id"]] = record
        return dict(record)

    def update(self, record_id, payload):
        rid = normalize_id(record_id)
        if rid not in self.records:
            raise StorageError(["Invalid record ID."])
        self.records[rid] = {**self.records[rid], **payload, "id": rid}
        return dict(self.records[rid])

    def supports_title(self, record_type):
        return record_type not in self.untitled


class MemoryMetadataStore:
    def __init__(self) -> None:
        self.data: dict[tuple[str, str], object] = {}
        self.locked: list[str] = []

    def get(self, record_id, key):
        return self.data.get((str(record_id), key))

    def set(self, record_id, key, value):
        self.data[(str(record_id), key)] = value

    @contextlib.contextmanager
    def lock(self, record_id):
        self.locked.append(str(record_id))
        yield


class StaticTokens:
    """Tokens are ``token:<scope>``; anything else fails verification."""

    def issue(self, scope: str) -> str:
        return f"token:{scope}"

    def verify(self, token, scope):
        return token == f"token:{scope}"


SHOP_RECORDS = [
    {"id": 1, "type": "order", "title": "Order #1"},
    {"id": 7, "type": "product", "title": "Widget", "content": "A very useful widget.", "url": "/p/7"},
    {"id": 8, "type": "product", "title": "Gadget", "url": "/p/8"},
    {"id": 9, "type": "coupon", "title": "SAVE10"},
]


@pytest.fixture()
def records() -> MemoryRecordStore:
    return MemoryRecordStore(SHOP_RECORDS, untitled=("coupon",))


@pytest.fixture()
def metadata() -> MemoryMetadataStore:
    return MemoryMetadataStore()


@pytest.fixture()
def tokens() -> StaticTokens:
    return StaticTokens()


@pytest.fixture()
def make_relation(records, metadata, tokens):
    """Factory fixture: build a Relation over the in-memory collaborators.

    Usage::

        relation = make_relation(RelationDescriptor.single("shop", "order", "product"))
    """
    from tether.engine.handlers import Relation

    def _make(descriptor, registry=None, **kwargs):
        return Relation(
            descriptor, registry, records=records, metadata=metadata, tokens=tokens, **kwargs
        )

    return _make


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------

SHOP_CONFIG_RELATIONS = [
    {"prefix": "shop", "primary": "order", "related": ["product"]},
    {
        "prefix": "promo",
        "primary": "order",
        "related": ["product", "coupon"],
        "mixed": True,
        "post_list_format": "listgroup",
    },
]


@pytest.fixture()
def tether_root(tmp_path: Path) -> Path:
    """Return a temporary directory suitable for initializing .tether/ in."""
    return tmp_path


@pytest.fixture()
def initialized_root(tether_root: Path) -> Path:
    """Return a temporary directory with .tether/ initialized and two relations declared."""
    from tether.core.config import default_config, serialize_config
    from tether.storage.fs import TETHER_DIR, atomic_write, ensure_tether_dirs

    ensure_tether_dirs(tether_root)
    config = dict(default_config())
    config["secret"] = "test-secret"
    config["untitled_types"] = ["coupon"]
    config["relations"] = SHOP_CONFIG_RELATIONS
    atomic_write(tether_root / TETHER_DIR / "config.json", serialize_config(config))
    return tether_root


@pytest.fixture()
def tether_dir(initialized_root: Path) -> Path:
    return initialized_root / ".tether"


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def cli_env(initialized_root: Path) -> dict[str, str]:
    """Return env dict with TETHER_ROOT pointing to initialized_root."""
    return {"TETHER_ROOT": str(initialized_root)}


@pytest.fixture()
def invoke(cli_runner: CliRunner, cli_env: dict[str, str]):
    """Return a helper that invokes CLI commands with the right environment.

    Usage::

        result = invoke("attach", "1", "7", "--relation", "shop_add_order_product")
    """
    from tether.cli.main import cli

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=cli_env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.output)
        return parsed, result.exit_code

    return _invoke_json
