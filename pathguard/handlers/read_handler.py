"""Handler for reading sandboxed files named in a JSON body."""

from http import HTTPStatus
from typing import Optional

from pathguard.domain.correlation_id import get_logger
from pathguard.domain.file_reader import read_verified
from pathguard.domain.guard_types import PathRejected, Reason, Rejected, TrustedRoot
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.path_guard import check
from pathguard.domain.response_builders import (
    field_errors_response,
    json_response,
    rejection_response,
)
from pathguard.pipeline.validation import (
    InvalidBody,
    parse_json_object,
    require_string_field,
)

READ_LOGGER = get_logger("handlers.read")


def _rejected(request: HttpRequest, reason: Reason, filename: str) -> HttpResponse:
    READ_LOGGER.warning(
        "Path request rejected",
        extra={
            "event": "path_rejected",
            "reason": reason.value,
            "untrusted_input": filename,
            "input_length": len(filename),
        },
    )
    return rejection_response(reason, request)


def read_response(
    request: HttpRequest,
    root: TrustedRoot,
    expose_paths: bool = False,
    max_bytes: Optional[int] = None,
) -> HttpResponse:
    """Serve ``{"filename": ...}`` from ``root`` as a JSON document."""
    try:
        filename = require_string_field(parse_json_object(request), "filename")
    except InvalidBody as error:
        READ_LOGGER.warning(
            "Invalid read request body",
            extra={"event": "invalid_body", "reason": error.message},
        )
        return field_errors_response(request, error.param, error.message)

    result = check(root, filename)
    if isinstance(result, Rejected):
        return _rejected(request, result.reason, filename)

    try:
        payload = read_verified(result, max_bytes)
    except PathRejected as rejection:
        return _rejected(request, rejection.reason, filename)

    READ_LOGGER.info(
        "File read complete",
        extra={"event": "file_read_complete", "bytes_out": len(payload)},
    )
    body = {"content": payload.decode("utf-8", errors="replace")}
    if expose_paths:
        body["path"] = str(result.path)
    return json_response(HTTPStatus.OK, body, request)
