"""Read files the path guard approved, without re-resolving the path string."""

import errno
import os
import stat
from typing import Optional

from pathguard.domain.guard_types import Allowed, PathRejected, Reason
from pathguard.domain.path_guard import classify_os_error

# O_NONBLOCK keeps a FIFO from stalling the open before fstat can refuse it.
_NONBLOCK = getattr(os, "O_NONBLOCK", 0)
_OPEN_FLAGS = (
    os.O_RDONLY
    | getattr(os, "O_NOFOLLOW", 0)
    | getattr(os, "O_BINARY", 0)
    | _NONBLOCK
)


def _verify_descriptor(descriptor: int, allowed: Allowed) -> None:
    try:
        status = os.fstat(descriptor)
    except OSError as exc:
        raise PathRejected(classify_os_error(exc)) from exc
    if not stat.S_ISREG(status.st_mode):
        raise PathRejected(Reason.NOT_FOUND)
    if allowed.identity is not None and allowed.identity != (
        status.st_dev,
        status.st_ino,
    ):
        raise PathRejected(Reason.TRAVERSAL)


def read_verified(allowed: Allowed, max_bytes: Optional[int] = None) -> bytes:
    """Return the bytes of an approved regular file.

    The final component is opened without following symlinks, and the opened
    descriptor must still be the file the guard inspected. This narrows the
    window between check and use; it does not remove it.
    """
    try:
        descriptor = os.open(allowed.path, _OPEN_FLAGS)
    except OSError as exc:
        if exc.errno == errno.ELOOP:
            raise PathRejected(Reason.TRAVERSAL) from exc
        raise PathRejected(classify_os_error(exc)) from exc

    try:
        _verify_descriptor(descriptor, allowed)
    except PathRejected:
        os.close(descriptor)
        raise
    if _NONBLOCK:
        os.set_blocking(descriptor, True)

    with os.fdopen(descriptor, "rb") as file_handle:
        try:
            if max_bytes is None:
                return file_handle.read()
            return file_handle.read(max_bytes)
        except OSError as exc:
            raise PathRejected(classify_os_error(exc)) from exc
