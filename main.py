"""Sandboxed file read service entry point."""

import signal
import sys

from pathguard.bootstrap.config import build_server_config, parse_cli_args
from pathguard.bootstrap.logging_setup import configure_logging
from pathguard.domain.correlation_id import get_logger
from pathguard.domain.guard_types import InvalidTrustedRoot, TrustedRoot
from pathguard.lifecycle.state import ServerLifecycle
from pathguard.transport.accept_loop import run_server

SERVER_LOGGER = get_logger("server")


def main(argv: list[str] | None = None) -> None:
    """Establish the trusted root once, then serve until signalled."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_json)

    try:
        root = TrustedRoot.establish(args.directory)
    except InvalidTrustedRoot as error:
        SERVER_LOGGER.critical(
            "Trusted root unusable",
            extra={"event": "root_invalid", "error_type": type(error).__name__},
        )
        sys.exit(1)

    config = build_server_config(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info("Received shutdown signal", extra={"signal": signum})
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting file read service",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "directory": str(root),
            "expose_paths": config.expose_paths,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(args, config, root, lifecycle)


if __name__ == "__main__":
    main()
