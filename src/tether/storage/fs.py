"""Atomic file writes, directory management, and root discovery."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

TETHER_DIR = ".tether"
TETHER_ROOT_ENV = "TETHER_ROOT"


def _fsync_directory(path: Path) -> None:
    """Fsync a directory so a rename inside it is durable.

    Some platforms do not support fsync on directory descriptors;
    ``OSError`` is ignored there.
    """
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        pass


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write content to path atomically via temp file + fsync + rename.

    Raises:
        FileNotFoundError: If the parent directory does not exist.
    """
    parent = path.parent
    if not parent.is_dir():
        raise FileNotFoundError(f"Parent directory does not exist: {parent}")

    data = content.encode("utf-8") if isinstance(content, str) else content

    fd, tmp_path = tempfile.mkstemp(dir=parent, prefix=".tmp.")
    closed = False
    try:
        mv = memoryview(data)
        while mv:
            written = os.write(fd, mv)
            mv = mv[written:]
        os.fsync(fd)
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
        _fsync_directory(parent)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json(path: Path, data: object) -> None:
    """Atomic write of *data* as canonical JSON."""
    atomic_write(path, json.dumps(data, sort_keys=True, indent=2) + "\n")


def read_json(path: Path, default: object = None) -> object:
    """Read a JSON file, returning *default* when it is missing or unreadable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return default


def ensure_tether_dirs(root: Path) -> None:
    """Create the .tether/ directory structure under *root*."""
    tether = root / TETHER_DIR
    for subdir in ("records", "meta", "locks"):
        (tether / subdir).mkdir(parents=True, exist_ok=True)


class TetherRootError(Exception):
    """Raised when TETHER_ROOT env var is set but invalid."""


def find_root(start: Path | None = None) -> Path | None:
    """Find the project root containing .tether/.

    Checks TETHER_ROOT first; if set it must point at a directory holding
    .tether/ (no fallback).  Otherwise walks up from *start* (default cwd).

    Raises:
        TetherRootError: If TETHER_ROOT is set but invalid.
    """
    env_root = os.environ.get(TETHER_ROOT_ENV)
    if env_root is not None:
        if not env_root:
            raise TetherRootError("TETHER_ROOT is set but empty")
        env_path = Path(env_root)
        if not env_path.is_dir():
            raise TetherRootError(f"TETHER_ROOT points to a path that does not exist: {env_root}")
        if not (env_path / TETHER_DIR).is_dir():
            raise TetherRootError(
                f"TETHER_ROOT points to a directory with no {TETHER_DIR}/ inside: {env_root}"
            )
        return env_path

    current = (start or Path.cwd()).resolve()
    while True:
        if (current / TETHER_DIR).is_dir():
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent
