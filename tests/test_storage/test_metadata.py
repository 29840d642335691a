"""Tests for FileMetadataStore."""

from __future__ import annotations

from pathlib import Path

import pytest
from filelock import FileLock

from tether.storage.fs import ensure_tether_dirs
from tether.storage.metadata import FileMetadataStore


@pytest.fixture()
def meta(tmp_path: Path) -> FileMetadataStore:
    ensure_tether_dirs(tmp_path)
    return FileMetadataStore(tmp_path / ".tether")


class TestMetadata:
    def test_missing_key_is_none(self, meta: FileMetadataStore) -> None:
        assert meta.get(1, "shop_product") is None

    def test_set_then_get(self, meta: FileMetadataStore) -> None:
        meta.set(1, "shop_product", [{"id": 7}])
        meta.set(1, "colour", "red")
        assert meta.get(1, "shop_product") == [{"id": 7}]
        assert meta.get("1", "colour") == "red"
        assert meta.all(1) == {"colour": "red", "shop_product": [{"id": 7}]}

    def test_records_are_separate(self, meta: FileMetadataStore) -> None:
        meta.set(1, "k", "a")
        meta.set(2, "k", "b")
        assert (meta.get(1, "k"), meta.get(2, "k")) == ("a", "b")

    def test_unsafe_record_id_rejected(self, meta: FileMetadataStore) -> None:
        with pytest.raises(ValueError):
            meta.set("../x", "k", 1)

    def test_lock_is_per_record(self, meta: FileMetadataStore) -> None:
        with meta.lock(1):
            assert (meta.locks_dir / "relations_1.lock").exists()
            # another record is not blocked
            with meta.lock(2):
                pass
            probe = FileLock(meta.locks_dir / "relations_1.lock", timeout=0)
            with pytest.raises(Exception):  # noqa: B017
                probe.acquire(timeout=0)

    def test_set_inside_lock_does_not_deadlock(self, meta: FileMetadataStore) -> None:
        with meta.lock(1):
            meta.set(1, "k", "v")
        assert meta.get(1, "k") == "v"
