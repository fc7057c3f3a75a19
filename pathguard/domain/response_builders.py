"""Pure JSON response builders."""

import json
from http import HTTPStatus
from typing import Any, Iterable, Optional

from pathguard.bootstrap.config import SECURITY_HEADERS
from pathguard.domain.guard_types import Reason
from pathguard.domain.http_types import HttpRequest, HttpResponse, should_close

REJECTION_STATUS = {
    Reason.INVALID_INPUT: HTTPStatus.BAD_REQUEST,
    Reason.TRAVERSAL: HTTPStatus.FORBIDDEN,
    Reason.NOT_FOUND: HTTPStatus.NOT_FOUND,
    Reason.OTHER_IO_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
}

REJECTION_MESSAGE = {
    Reason.INVALID_INPUT: "Invalid filename",
    Reason.TRAVERSAL: "Path traversal detected",
    Reason.NOT_FOUND: "File not found",
    Reason.OTHER_IO_ERROR: "Unable to read file",
}


def status_line(status: HTTPStatus) -> str:
    return f"HTTP/1.1 {status.value} {status.phrase}"


def json_response(
    status: HTTPStatus,
    payload: Any,
    request: Optional[HttpRequest] = None,
    extra_headers: Optional[dict[str, str]] = None,
) -> HttpResponse:
    """Serialise ``payload`` as JSON, honouring the caller's keep-alive choice."""
    headers = {
        "Content-Type": "application/json; charset=utf-8",
        **(extra_headers or {}),
        **SECURITY_HEADERS,
    }
    close = should_close(request.headers) if request is not None else True
    body = json.dumps(payload).encode("utf-8")
    return HttpResponse(status_line(status), headers, body, close)


def error_response(
    status: HTTPStatus, message: str, request: Optional[HttpRequest] = None
) -> HttpResponse:
    return json_response(status, {"error": message}, request)


def rejection_response(reason: Reason, request: HttpRequest) -> HttpResponse:
    """Translate a guard rejection into its HTTP status and generic message."""
    return error_response(REJECTION_STATUS[reason], REJECTION_MESSAGE[reason], request)


def field_errors_response(
    request: HttpRequest, param: str, message: str
) -> HttpResponse:
    """Produce a 400 listing a single invalid body field."""
    return json_response(
        HTTPStatus.BAD_REQUEST,
        {"errors": [{"param": param, "msg": message}]},
        request,
    )


def bad_request_response(request: Optional[HttpRequest] = None) -> HttpResponse:
    return error_response(HTTPStatus.BAD_REQUEST, "Bad request", request)


def not_found_response(request: HttpRequest) -> HttpResponse:
    return error_response(HTTPStatus.NOT_FOUND, "Not found", request)


def entity_too_large_response() -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    return error_response(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, "Payload too large")


def method_not_allowed_response(
    request: HttpRequest, allowed_methods: Iterable[str]
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    return json_response(
        HTTPStatus.METHOD_NOT_ALLOWED,
        {"error": "Method not allowed"},
        request,
        {"Allow": ", ".join(sorted(allowed_methods))},
    )


def rate_limited_response(decision, request: HttpRequest) -> HttpResponse:
    """Create a 429 response populated with RateLimit headers."""
    retry_after = max(1, int(decision.reset_seconds + 0.999))
    return json_response(
        HTTPStatus.TOO_MANY_REQUESTS,
        {"error": "Too many requests, please try again later."},
        request,
        {"Retry-After": str(retry_after), **decision.headers},
    )


def draining_response() -> HttpResponse:
    return error_response(HTTPStatus.SERVICE_UNAVAILABLE, "draining")


def healthz_response(is_draining: bool, request: HttpRequest) -> HttpResponse:
    if is_draining:
        return draining_response()
    return json_response(HTTPStatus.OK, {"status": "ok"}, request)
