"""Containment checks for untrusted paths inside the trusted sandbox root.

A request is accepted only when it survives every layer, in order:

1. the raw string is percent-decoded exactly once, strictly, and must not
   contain a null byte or be blank;
2. it is joined onto the root as a relative path and normalised lexically;
3. the lexical candidate must sit on a segment boundary below the root;
4. the candidate is resolved against the real filesystem, following
   symlinks, and the resolved path must pass the same boundary test.

Any remaining ``%`` after the single decode pass is part of the file name.
"""

import errno
import os
import re
import urllib.parse
from pathlib import Path

from pathguard.domain.guard_types import (
    Allowed,
    GuardResult,
    PathRejected,
    Reason,
    Rejected,
    TrustedRoot,
)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SEPARATORS = os.sep + (os.altsep or "")

_NOT_FOUND_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ELOOP})
_INVALID_INPUT_ERRNOS = frozenset({errno.ENAMETOOLONG, errno.EINVAL})


def classify_os_error(error: OSError) -> Reason:
    """Map a filesystem error onto the rejection taxonomy."""
    if error.errno in _NOT_FOUND_ERRNOS:
        return Reason.NOT_FOUND
    if error.errno in _INVALID_INPUT_ERRNOS:
        return Reason.INVALID_INPUT
    return Reason.OTHER_IO_ERROR


def decode_untrusted(raw: str) -> str:
    """Percent-decode ``raw`` once, refusing malformed escapes or bad UTF-8."""
    if not isinstance(raw, str):
        raise PathRejected(Reason.INVALID_INPUT)
    if _MALFORMED_ESCAPE.search(raw):
        raise PathRejected(Reason.INVALID_INPUT)
    try:
        return urllib.parse.unquote_to_bytes(raw).decode("utf-8")
    except UnicodeError as exc:
        raise PathRejected(Reason.INVALID_INPUT) from exc


def is_within(candidate: str, root: str) -> bool:
    """Return True when ``candidate`` is ``root`` or lies below a separator of it."""
    candidate = os.path.normcase(candidate)
    root = os.path.normcase(root)
    if candidate == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return candidate.startswith(prefix)


def _sanitize(untrusted: str) -> str:
    decoded = decode_untrusted(untrusted)
    if "\x00" in decoded:
        raise PathRejected(Reason.INVALID_INPUT)
    text = decoded.strip()
    if not text:
        raise PathRejected(Reason.INVALID_INPUT)
    return text


def _relative_part(text: str) -> str:
    # Absolute input is re-anchored at the root; a drive or UNC share names
    # a different root altogether.
    drive, tail = os.path.splitdrive(text)
    if drive:
        raise PathRejected(Reason.TRAVERSAL)
    return tail.lstrip(_SEPARATORS)


def lexical_candidate(root: TrustedRoot, untrusted: str) -> Path:
    """Sanitise and lexically resolve ``untrusted`` without touching the disk."""
    root_str = str(root.path)
    relative = _relative_part(_sanitize(untrusted))
    candidate = os.path.normpath(os.path.join(root_str, relative))
    if not is_within(candidate, root_str):
        raise PathRejected(Reason.TRAVERSAL)
    return Path(candidate)


def _resolve_real(root: TrustedRoot, untrusted: str) -> tuple[Path, tuple[int, int]]:
    candidate = lexical_candidate(root, untrusted)
    try:
        real = os.path.realpath(candidate, strict=True)
        stat_result = os.stat(real)
    except OSError as exc:
        raise PathRejected(classify_os_error(exc)) from exc
    if not is_within(real, str(root.path)):
        raise PathRejected(Reason.TRAVERSAL)
    return Path(real), (stat_result.st_dev, stat_result.st_ino)


def check(root: TrustedRoot, untrusted: str) -> GuardResult:
    """Classify an untrusted path request against the trusted root."""
    try:
        resolved, identity = _resolve_real(root, untrusted)
    except PathRejected as rejection:
        return Rejected(rejection.reason)
    return Allowed(resolved, identity)
