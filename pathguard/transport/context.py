"""Dependencies shared by every worker thread."""

from dataclasses import dataclass
from typing import Optional

from pathguard.bootstrap.config import ServerConfig
from pathguard.domain.guard_types import TrustedRoot
from pathguard.domain.window_limiter import FixedWindowLimiter
from pathguard.lifecycle.state import ServerLifecycle


@dataclass
class WorkerContext:
    """Read-only after start-up; the trusted root is fixed for the process."""

    root: TrustedRoot
    config: ServerConfig
    rate_limiter: Optional[FixedWindowLimiter] = None
    lifecycle: Optional[ServerLifecycle] = None
