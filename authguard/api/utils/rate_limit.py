from dataclasses import dataclass

from authguard.api.error import RateLimitError
from authguard.app.services.rate_limiter import (
    RateLimiter,
    RateLimitResult,
    build_rate_limit_headers,
)
from authguard.result import Error

RATE_LIMITED = "RATE_LIMITED"


@dataclass(frozen=True)
class RateLimiters:
    """Per-endpoint limiters built once by create_app, all sharing one counter store"""

    forgot_password: RateLimiter
    reset_password: RateLimiter
    resend_verification: RateLimiter


async def enforce_rate_limit(limiter: RateLimiter, identity_key: str, message: str) -> RateLimitResult:
    """
    Count the request and raise when the budget is spent.

    Raises:
        RateLimitError: 429 with Retry-After and X-RateLimit-* headers
    """
    result = await limiter.check(identity_key)
    if not result.allowed:
        raise RateLimitError(
            Error(RATE_LIMITED, message),
            retry_after=result.retry_after_seconds,
            headers=build_rate_limit_headers(result),
        )
    return result
