"""Server lifecycle: stop/drain signalling and active worker tracking."""

import threading
import time

from pathguard.domain.correlation_id import get_logger

LIFECYCLE_LOGGER = get_logger("lifecycle")


class ServerLifecycle:
    """Tracks worker threads so shutdown can wait for in-flight requests."""

    def __init__(self) -> None:
        self._draining = threading.Event()
        self._idle = threading.Condition()
        self._workers: set[threading.Thread] = set()

    def should_stop(self) -> bool:
        return self._draining.is_set()

    def is_draining(self) -> bool:
        return self._draining.is_set()

    def begin_draining(self) -> None:
        """Stop accepting connections and tell workers to finish up."""
        if not self._draining.is_set():
            self._draining.set()
            LIFECYCLE_LOGGER.info(
                "Beginning graceful shutdown", extra={"event": "draining"}
            )

    def register_worker(self, thread: threading.Thread) -> None:
        with self._idle:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._idle:
            self._workers.discard(thread)
            if not self._workers:
                self._idle.notify_all()

    def active_worker_count(self) -> int:
        with self._idle:
            return len(self._workers)

    def wait_for_workers(self, timeout: float) -> bool:
        """Block until every worker has finished or ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        with self._idle:
            while True:
                self._workers = {w for w in self._workers if w.is_alive()}
                if not self._workers:
                    return True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    LIFECYCLE_LOGGER.warning(
                        "Shutdown timeout exceeded",
                        extra={
                            "event": "shutdown_timeout",
                            "remaining_workers": len(self._workers),
                        },
                    )
                    return False
                self._idle.wait(timeout=min(0.1, remaining))
