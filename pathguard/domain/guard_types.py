"""Value types shared by the path guard and its callers."""

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


class Reason(str, enum.Enum):
    """Why a path request was refused."""

    INVALID_INPUT = "invalid_input"
    TRAVERSAL = "traversal"
    NOT_FOUND = "not_found"
    OTHER_IO_ERROR = "other_io_error"


class PathRejected(Exception):
    """Raised when a requested path cannot be served from the sandbox."""

    def __init__(self, reason: Reason) -> None:
        super().__init__(reason.value)
        self.reason = reason


class InvalidTrustedRoot(ValueError):
    """Raised when the configured sandbox root is unusable."""


@dataclass(frozen=True)
class TrustedRoot:
    """Operator-configured sandbox directory, already fully resolved."""

    path: Path

    def __post_init__(self) -> None:
        if not self.path.is_absolute():
            raise InvalidTrustedRoot("trusted root must be absolute")
        if os.path.realpath(self.path) != str(self.path):
            raise InvalidTrustedRoot("trusted root must be fully resolved")

    @classmethod
    def establish(cls, directory: Union[str, Path], create: bool = True) -> "TrustedRoot":
        """Create (optionally), resolve and validate the sandbox directory."""
        candidate = Path(directory).absolute()
        try:
            if create:
                candidate.mkdir(parents=True, exist_ok=True)
            resolved = candidate.resolve(strict=True)
        except OSError as exc:
            raise InvalidTrustedRoot(f"cannot use {candidate} as root: {exc}") from exc
        if not resolved.is_dir():
            raise InvalidTrustedRoot(f"{resolved} is not a directory")
        return cls(resolved)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class Allowed:
    """The request resolves to ``path``, inside the trusted root."""

    path: Path
    identity: Optional[tuple[int, int]] = None


@dataclass(frozen=True)
class Rejected:
    """The request was refused for ``reason``."""

    reason: Reason


GuardResult = Union[Allowed, Rejected]
