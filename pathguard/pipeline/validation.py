"""Request validation ahead of routing."""

import json
from typing import Any, Optional

from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.response_builders import (
    bad_request_response,
    entity_too_large_response,
    method_not_allowed_response,
)


class RequestEntityTooLarge(Exception):
    """Raised when a request head or body exceeds configured limits."""


class InvalidBody(ValueError):
    """Raised when a request body is not the JSON document a route expects."""

    def __init__(self, param: str, message: str) -> None:
        super().__init__(message)
        self.param = param
        self.message = message


def enforce_allowed_method(
    request: HttpRequest, allowed_methods: set[str]
) -> Optional[HttpResponse]:
    """Ensure the HTTP method is part of the supported allowlist."""
    if request.method in allowed_methods:
        return None
    return method_not_allowed_response(request, allowed_methods)


def enforce_post_constraints(
    request: HttpRequest, max_body_bytes: int
) -> Optional[HttpResponse]:
    """Validate POST-specific invariants such as Content-Length and size."""
    declared_length = request.headers.get("content-length")
    if declared_length is None:
        return bad_request_response(request)
    try:
        content_length = int(declared_length)
    except ValueError:
        return bad_request_response(request)
    if content_length != len(request.body):
        return bad_request_response(request)
    if content_length > max_body_bytes:
        return entity_too_large_response()
    return None


def validate_request(
    request: HttpRequest, allowed_methods: set[str], max_body_bytes: int
) -> Optional[HttpResponse]:
    """Return an error response when the request fails validation checks."""
    method_error = enforce_allowed_method(request, allowed_methods)
    if method_error is not None:
        return method_error
    if request.method == "POST":
        return enforce_post_constraints(request, max_body_bytes)
    return None


def parse_json_object(request: HttpRequest) -> dict[str, Any]:
    """Decode the request body as a JSON object."""
    try:
        document = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise InvalidBody("body", "body must be a JSON object") from exc
    if not isinstance(document, dict):
        raise InvalidBody("body", "body must be a JSON object")
    return document


def require_string_field(document: dict[str, Any], name: str) -> str:
    """Return ``document[name]`` when it is present and a string."""
    if name not in document or document[name] is None:
        raise InvalidBody(name, f"{name} required")
    value = document[name]
    if not isinstance(value, str):
        raise InvalidBody(name, f"{name} must be a string")
    return value
