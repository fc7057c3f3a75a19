"""HTTP request parsing and response serialisation over raw sockets."""

import logging
import socket
import urllib.parse
from typing import Optional, Tuple

from pathguard.bootstrap.config import HEADER_DELIMITER, MAX_BODY_BYTES, MAX_HEADER_BYTES
from pathguard.domain.correlation_id import (
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.pipeline.validation import RequestEntityTooLarge

IO_LOGGER = get_logger("io")
MAX_REQUEST_ID_CHARS = 128


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        name, separator, value = line.partition(":")
        if separator and name.strip():
            parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str]:
    """Return the method and route path; the query string is discarded."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if not version.startswith("HTTP/") or not target.startswith("/"):
        raise ValueError("Invalid request line")
    return method, urllib.parse.urlsplit(target).path


def determine_content_length(
    method: str, headers: dict[str, str], max_body_bytes: int = MAX_BODY_BYTES
) -> int:
    """Validate and return the declared Content-Length for the request."""
    header_value = headers.get("content-length")
    if method == "POST" and header_value is None:
        raise ValueError("Missing Content-Length")
    if header_value is None:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    if content_length > max_body_bytes:
        raise RequestEntityTooLarge
    return content_length


def receive_request(
    client_socket: socket.socket,
    buffer: bytes,
    max_body_bytes: int = MAX_BODY_BYTES,
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read bytes from the socket until a complete request is available."""
    while HEADER_DELIMITER not in buffer:
        if len(buffer) > MAX_HEADER_BYTES:
            raise RequestEntityTooLarge
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        buffer += chunk

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    header_lines = header_block.decode("iso-8859-1").split("\r\n")
    method, path = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])

    incoming_correlation_id = headers.get("x-request-id")
    if incoming_correlation_id:
        set_correlation_id(incoming_correlation_id[:MAX_REQUEST_ID_CHARS])

    content_length = determine_content_length(method, headers, max_body_bytes)
    while len(remainder) < content_length:
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        remainder += chunk

    body = remainder[:content_length]
    leftover = remainder[content_length:]
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request",
            extra={"method": method, "route": path, "bytes_in": len(body)},
        )
    return HttpRequest(method, path, headers, body), leftover


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialise and send the HTTP response over the socket."""
    headers = dict(response.headers)
    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Request-ID"] = correlation_id
    headers["Content-Length"] = str(len(response.body))
    if response.close_connection:
        headers["Connection"] = "close"

    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("iso-8859-1") + HEADER_DELIMITER
    client_socket.sendall(header_block + response.body)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Sent response",
            extra={"status_code": response.status_line, "bytes_out": len(response.body)},
        )
