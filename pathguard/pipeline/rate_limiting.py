"""Rate limiting stage of the request pipeline."""

import logging
from typing import Optional

from pathguard.domain.correlation_id import get_logger
from pathguard.domain.http_types import HttpRequest, HttpResponse
from pathguard.domain.response_builders import rate_limited_response
from pathguard.domain.window_limiter import FixedWindowLimiter, RateLimitDecision

LIMITER_LOGGER = get_logger("pipeline.rate_limiting")


def apply_rate_limit(
    rate_limiter: Optional[FixedWindowLimiter],
    client: str,
    request: HttpRequest,
) -> tuple[Optional[RateLimitDecision], Optional[HttpResponse]]:
    """Count the request against ``client``'s window.

    Returns the decision (None when limiting is off) and, when the client is
    over its quota, the 429 response to send instead of routing.
    """
    if rate_limiter is None or not rate_limiter.enabled:
        return None, None

    decision = rate_limiter.hit(client)
    if decision.allowed:
        if LIMITER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            LIMITER_LOGGER.debug(
                "Rate limit check passed",
                extra={
                    "event": "rate_limit_allowed",
                    "client": client,
                    "remaining": decision.remaining,
                },
            )
        return decision, None

    LIMITER_LOGGER.warning(
        "Rate limit enforced",
        extra={
            "event": "rate_limit_enforced",
            "client": client,
            "limit": decision.limit,
            "route": request.path,
        },
    )
    return decision, rate_limited_response(decision, request)
