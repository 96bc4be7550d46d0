"""Advisory lock files placed next to the file being written."""

from __future__ import annotations

import contextlib
import os
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TypeVar

from kbcore.errors import LockTimeoutError

LOCK_STALE_SECONDS = 30.0
LOCK_RETRY_INTERVAL = 0.05
LOCK_TIMEOUT = 5.0

T = TypeVar("T")


def lock_path(file_path: str | os.PathLike) -> Path:
    """The lock file for ``file_path``: the same path with ``.lock`` appended."""
    return Path(os.fspath(file_path) + ".lock")


def _is_stale(path: Path) -> bool:
    try:
        modified = path.stat().st_mtime
    except OSError:
        return False
    return time.time() - modified > LOCK_STALE_SECONDS


def _acquire(path: Path) -> None:
    deadline = time.monotonic() + LOCK_TIMEOUT
    while True:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL)
        except FileExistsError:
            if _is_stale(path):
                with contextlib.suppress(OSError):
                    path.unlink()
                continue
            if time.monotonic() >= deadline:
                raise LockTimeoutError(str(path)) from None
            time.sleep(LOCK_RETRY_INTERVAL)
        else:
            os.close(fd)
            return


@contextlib.contextmanager
def file_lock(file_path: str | os.PathLike) -> Iterator[None]:
    """Hold the advisory lock for ``file_path`` for the duration of the block."""
    path = lock_path(file_path)
    _acquire(path)
    try:
        yield
    finally:
        with contextlib.suppress(OSError):
            path.unlink()


def with_file_lock(file_path: str | os.PathLike, func: Callable[[], T]) -> T:
    """Call ``func`` while holding the lock and return its result."""
    with file_lock(file_path):
        return func()