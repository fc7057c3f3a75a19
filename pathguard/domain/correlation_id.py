"""Per-request correlation IDs carried in a context variable."""

import contextlib
import contextvars
import logging
import uuid
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "pathguard."

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


@contextlib.contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one request."""
    token = _correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to every record it emits."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = get_correlation_id() or "-"
        name = self.logger.name
        extra["component"] = (
            name[len(LOGGER_PREFIX) :] if name.startswith(LOGGER_PREFIX) else name
        )
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(component: str) -> CorrelationLoggerAdapter:
    """Return the adapter for ``pathguard.<component>``."""
    return CorrelationLoggerAdapter(logging.getLogger(LOGGER_PREFIX + component), {})
