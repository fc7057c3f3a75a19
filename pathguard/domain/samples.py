"""Sample files for exercising the read endpoint."""

import os
from pathlib import Path
from typing import Mapping

from pathguard.domain.guard_types import PathRejected, Reason, TrustedRoot
from pathguard.domain.path_guard import is_within, lexical_candidate

DEFAULT_SAMPLES: Mapping[str, str] = {
    "hello.txt": "Hello from safe file!\n",
    "notes/readme.md": "# Readme\nSample readme file",
}

_WRITE_FLAGS = (
    os.O_WRONLY
    | os.O_CREAT
    | os.O_TRUNC
    | getattr(os, "O_NOFOLLOW", 0)
    | getattr(os, "O_BINARY", 0)
)


def _write_sample(root: TrustedRoot, target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    # A planted symlink must not redirect the write outside the root.
    if not is_within(os.path.realpath(target.parent), str(root.path)):
        raise PathRejected(Reason.TRAVERSAL)
    descriptor = os.open(target, _WRITE_FLAGS, 0o644)
    with os.fdopen(descriptor, "wb") as file_handle:
        file_handle.write(content.encode("utf-8"))


def seed_samples(
    root: TrustedRoot, samples: Mapping[str, str] = DEFAULT_SAMPLES
) -> list[Path]:
    """Write each sample below ``root`` and return the paths written."""
    written = []
    for name, content in samples.items():
        target = lexical_candidate(root, name)
        _write_sample(root, target, content)
        written.append(target)
    return written
