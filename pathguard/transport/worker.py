"""Per-connection worker: read, validate, limit, route, respond."""

import logging
import socket
import threading
from typing import Optional

from pathguard.bootstrap.config import ALLOWED_METHODS
from pathguard.domain.correlation_id import correlation_scope, get_logger
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.response_builders import (
    bad_request_response,
    draining_response,
    entity_too_large_response,
)
from pathguard.pipeline.io import receive_request, send_response
from pathguard.pipeline.rate_limiting import apply_rate_limit
from pathguard.pipeline.router import route_request
from pathguard.pipeline.validation import RequestEntityTooLarge, validate_request
from pathguard.transport.context import WorkerContext

WORKER_LOGGER = get_logger("transport.worker")


def _read_request(
    client_socket: socket.socket,
    buffer: bytes,
    client: str,
    max_body_bytes: int,
) -> tuple[Optional[HttpRequest], bytes]:
    """Return the next request, or None once the connection must end."""
    try:
        return receive_request(client_socket, buffer, max_body_bytes)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request size exceeded limit",
            extra={
                "event": "body_size_exceeded",
                "client": client,
                "limit": max_body_bytes,
            },
        )
        send_response(client_socket, entity_too_large_response())
    except ValueError:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client},
        )
        send_response(client_socket, bad_request_response())
    return None, b""


def _process_request(
    request: HttpRequest, context: WorkerContext, client_ip: str
) -> HttpResponse:
    decision, limited = apply_rate_limit(context.rate_limiter, client_ip, request)
    if limited is not None:
        return limited

    validation_error = validate_request(
        request, ALLOWED_METHODS, context.config.max_body_bytes
    )
    if validation_error is not None:
        return validation_error

    response = route_request(request, context)
    if decision is not None:
        response.headers.update(decision.headers)
    return response


def _serve_connection(
    client_socket: socket.socket, client_ip: str, client: str, context: WorkerContext
) -> None:
    buffer = b""
    lifecycle = context.lifecycle
    while True:
        with correlation_scope():
            if lifecycle is not None and lifecycle.is_draining():
                send_response(client_socket, draining_response())
                return

            request, buffer = _read_request(
                client_socket, buffer, client, context.config.max_body_bytes
            )
            if request is None:
                return

            response = _process_request(request, context, client_ip)
            send_response(client_socket, response)
            WORKER_LOGGER.info(
                "Request complete",
                extra={
                    "event": "request_complete",
                    "client": client,
                    "method": request.method,
                    "route": request.path,
                    "status_code": int(response.status_line.split(" ", 2)[1]),
                },
            )
            if response.close_connection:
                return


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    client_ip = client_address[0]
    client = f"{client_address[0]}:{client_address[1]}"
    current_thread = threading.current_thread()
    if context.lifecycle is not None:
        context.lifecycle.register_worker(current_thread)
    client_socket.settimeout(context.config.socket_timeout)

    try:
        _serve_connection(client_socket, client_ip, client, context)
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
    finally:
        if context.lifecycle is not None:
            context.lifecycle.cleanup_worker(current_thread)
        try:
            client_socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass
        client_socket.close()
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Socket closed", extra={"event": "socket_closed", "client": client}
            )
