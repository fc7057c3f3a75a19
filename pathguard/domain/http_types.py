"""Request and response records passed between pipeline stages."""

from dataclasses import dataclass


@dataclass
class HttpRequest:
    """A parsed HTTP/1.1 request."""

    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class HttpResponse:
    """A fully buffered response ready to serialise."""

    status_line: str
    headers: dict[str, str]
    body: bytes
    close_connection: bool


def should_close(headers: dict[str, str]) -> bool:
    """Determine whether the connection should be closed after responding."""
    return headers.get("connection", "").lower() == "close"
