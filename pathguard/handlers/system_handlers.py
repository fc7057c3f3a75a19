"""Sample seeding and health check handlers."""

import logging
from http import HTTPStatus
from typing import Optional

from pathguard.domain.correlation_id import get_logger
from pathguard.domain.guard_types import PathRejected, TrustedRoot
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.response_builders import (
    error_response,
    healthz_response,
    json_response,
)
from pathguard.domain.samples import seed_samples
from pathguard.lifecycle.state import ServerLifecycle

SYSTEM_LOGGER = get_logger("handlers.system")


def handle_setup_sample(
    request: HttpRequest, root: TrustedRoot, expose_paths: bool = False
) -> HttpResponse:
    """Write the sample files below the trusted root."""
    try:
        written = seed_samples(root)
    except (PathRejected, OSError) as error:
        SYSTEM_LOGGER.error(
            "Sample setup failed",
            extra={"event": "samples_failed", "error_type": type(error).__name__},
        )
        return error_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, "Unable to write samples", request
        )
    SYSTEM_LOGGER.info(
        "%d sample files written", len(written), extra={"event": "samples_written"}
    )
    body: dict[str, object] = {"ok": True}
    if expose_paths:
        body["base"] = str(root)
    return json_response(HTTPStatus.OK, body, request)


def handle_healthz(
    request: HttpRequest, lifecycle: Optional[ServerLifecycle]
) -> HttpResponse:
    """Report 200 while serving and 503 once draining has begun."""
    is_draining = lifecycle.is_draining() if lifecycle is not None else False
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Health check performed", extra={"event": "healthz_check"}
        )
    return healthz_response(is_draining, request)
