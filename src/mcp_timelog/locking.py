"""File locking helpers for writing reports and appending entries."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, TextIO

import portalocker

LOCK_SUFFIX = ".lock"
TMP_SUFFIX = ".tmp"


def lock_path_for(path: Path) -> Path:
    return path.with_suffix(path.suffix + LOCK_SUFFIX)


@contextmanager
def file_lock(path: Path, timeout: float = 10.0) -> Generator[None, None, None]:
    """Hold an exclusive lock on a sidecar ``.lock`` file next to ``path``.

    Raises:
        portalocker.LockException: If lock cannot be acquired
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


@contextmanager
def atomic_write(path: Path, encoding: str = "utf-8") -> Generator[TextIO, None, None]:
    """Write a text file through a temporary file and rename it into place."""
    tmp_path = path.with_suffix(path.suffix + TMP_SUFFIX)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(tmp_path, "w", encoding=encoding) as f:
            yield f
        os.replace(tmp_path, path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


@contextmanager
def locked_atomic_write(path: Path, encoding: str = "utf-8", timeout: float = 10.0) -> Generator[TextIO, None, None]:
    """Atomic write while holding the file lock."""
    with file_lock(path, timeout=timeout):
        with atomic_write(path, encoding=encoding) as f:
            yield f


@contextmanager
def locked_append(path: Path, encoding: str = "utf-8", timeout: float = 10.0) -> Generator[TextIO, None, None]:
    """Open ``path`` for appending while holding the file lock.

    Creates the file and its parent directories when missing.
    """
    with file_lock(path, timeout=timeout):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding=encoding) as f:
            yield f
