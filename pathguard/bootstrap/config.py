"""Service configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


MAX_BODY_BYTES = _env_int("PATHGUARD_MAX_BODY_BYTES", 100 * 1024)
MAX_HEADER_BYTES = _env_int("PATHGUARD_MAX_HEADER_BYTES", 16 * 1024)
DEFAULT_PORT = _env_int("PORT", 4000)
DEFAULT_RATE_LIMIT = _env_int("PATHGUARD_RATE_LIMIT", 100)
DEFAULT_RATE_WINDOW_MS = _env_int("PATHGUARD_RATE_WINDOW_MS", 15 * 60 * 1000)
DEFAULT_SOCKET_TIMEOUT = _env_int("PATHGUARD_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("PATHGUARD_SHUTDOWN_GRACE_SECONDS", 30)
DEFAULT_EXPOSE_PATHS = _env_bool("PATHGUARD_EXPOSE_PATHS", False)
DEFAULT_LOG_JSON = _env_bool("PATHGUARD_LOG_JSON", True)

HEADER_DELIMITER = b"\r\n\r\n"
READ_ROUTE = "/read"
SETUP_SAMPLE_ROUTE = "/setup-sample"
HEALTHZ_ROUTE = "/healthz"
ALLOWED_METHODS = {"GET", "POST"}

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'",
    "X-Content-Type-Options": "nosniff",
    "Cache-Control": "no-store",
}


@dataclass
class ServerConfig:
    """Per-process settings shared with worker threads."""

    socket_timeout: int
    shutdown_grace_seconds: int
    expose_paths: bool = False
    max_body_bytes: int = MAX_BODY_BYTES


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for service configuration."""
    parser = argparse.ArgumentParser(description="Sandboxed file read service")
    parser.add_argument(
        "--directory",
        default=os.getenv("PATHGUARD_DIRECTORY", "files"),
        help="Trusted root directory; created when absent",
    )
    parser.add_argument("--host", default=os.getenv("PATHGUARD_HOST", "localhost"))
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--log-level",
        default=os.getenv("PATHGUARD_LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=os.getenv("PATHGUARD_LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-json",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_LOG_JSON,
        help="Emit structured JSON log lines",
    )
    parser.add_argument(
        "--rate-limit",
        type=int,
        default=DEFAULT_RATE_LIMIT,
        help="Requests allowed per client per window (0 to disable)",
    )
    parser.add_argument(
        "--rate-window-ms",
        type=int,
        default=DEFAULT_RATE_WINDOW_MS,
        help="Rate limit window in milliseconds",
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for request processing",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    parser.add_argument(
        "--expose-paths",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_EXPOSE_PATHS,
        help="Include resolved filesystem paths in response bodies",
    )
    return parser.parse_args(argv)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        expose_paths=args.expose_paths,
    )
