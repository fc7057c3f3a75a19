"""Listening socket and connection acceptance loop."""

import argparse
import socket
import threading
from typing import Optional

from pathguard.bootstrap.config import ServerConfig
from pathguard.domain.correlation_id import get_logger
from pathguard.domain.guard_types import TrustedRoot
from pathguard.domain.response_builders import draining_response
from pathguard.domain.window_limiter import FixedWindowLimiter, WindowSettings
from pathguard.lifecycle.state import ServerLifecycle
from pathguard.pipeline.io import send_response
from pathguard.transport.context import WorkerContext
from pathguard.transport.worker import handle_client

ACCEPT_LOGGER = get_logger("transport.accept")
ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(host: str, port: int) -> socket.socket:
    server_socket = socket.create_server(
        (host, port), reuse_port=hasattr(socket, "SO_REUSEPORT")
    )
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket


def _create_rate_limiter(args: argparse.Namespace) -> Optional[FixedWindowLimiter]:
    if args.rate_limit > 0 and args.rate_window_ms > 0:
        return FixedWindowLimiter(
            WindowSettings(limit=args.rate_limit, window_ms=args.rate_window_ms)
        )
    return None


def run_server(
    args: argparse.Namespace,
    config: ServerConfig,
    root: TrustedRoot,
    lifecycle: ServerLifecycle,
) -> None:
    """Accept connections until draining begins, then wait for workers."""
    server_socket = create_server_socket(args.host, args.port)
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={"event": "server_listening", "host": args.host, "port": args.port},
    )
    context = WorkerContext(
        root=root,
        config=config,
        rate_limiter=_create_rate_limiter(args),
        lifecycle=lifecycle,
    )

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                send_response(client_socket, draining_response())
                client_socket.close()
                continue

            threading.Thread(
                target=handle_client,
                args=(client_socket, client_address, context),
                daemon=False,
            ).start()
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "shutdown_grace_seconds": config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
