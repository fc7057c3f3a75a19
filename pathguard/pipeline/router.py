"""Request routing."""

import logging

from pathguard.bootstrap.config import HEALTHZ_ROUTE, READ_ROUTE, SETUP_SAMPLE_ROUTE
from pathguard.domain.correlation_id import get_logger
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.response_builders import (
    method_not_allowed_response,
    not_found_response,
)
from pathguard.handlers.read_handler import read_response
from pathguard.handlers.system_handlers import handle_healthz, handle_setup_sample
from pathguard.transport.context import WorkerContext

ROUTER_LOGGER = get_logger("pipeline.router")

ROUTE_METHODS = {
    READ_ROUTE: {"POST"},
    SETUP_SAMPLE_ROUTE: {"POST"},
    HEALTHZ_ROUTE: {"GET"},
}


def route_request(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    """Dispatch the request to its handler and return the response."""
    methods = ROUTE_METHODS.get(request.path)
    if methods is None:
        ROUTER_LOGGER.info(
            "No matching route found",
            extra={
                "event": "route_not_found",
                "route": request.path,
                "method": request.method,
            },
        )
        return not_found_response(request)
    if request.method not in methods:
        return method_not_allowed_response(request, methods)

    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": request.path}
        )

    if request.path == READ_ROUTE:
        return read_response(request, context.root, context.config.expose_paths)
    if request.path == SETUP_SAMPLE_ROUTE:
        return handle_setup_sample(request, context.root, context.config.expose_paths)
    return handle_healthz(request, context.lifecycle)
