"""
Origin validation for state-changing requests.

Browsers attach ``Origin`` to cross-site POST/PUT/PATCH/DELETE requests, so
a request whose origin is not ours was assembled by another site. When
``Origin`` is absent the origin part of ``Referer`` is used instead.
"""

import logging
from typing import Iterable, Mapping, Optional
from urllib.parse import urlsplit

from fastapi import Request

from authguard.api.error import OriginMismatchError
from authguard.result import Error, Result, Return

logger = logging.getLogger(__name__)

STATE_CHANGING_METHODS = frozenset(["POST", "PUT", "PATCH", "DELETE"])

ORIGIN_MISMATCH = Error("ORIGIN_MISMATCH", "Request origin not allowed")


def normalize_origin(value: Optional[str]) -> Optional[str]:
    """scheme://host[:port] in lowercase, or None when the value is not an absolute URL"""
    if not value:
        return None
    parts = urlsplit(value.strip())
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}".lower()


class OriginValidator:
    def __init__(self, allowed_origins: Iterable[str]):
        normalized = (normalize_origin(origin) for origin in allowed_origins)
        self.allowed_origins = frozenset(origin for origin in normalized if origin)

    def request_origin(self, headers: Mapping[str, str]) -> Optional[str]:
        origin = headers.get("origin")
        if origin is not None:
            # "null" is what sandboxed frames and file:// pages send
            return None if origin.strip().lower() == "null" else normalize_origin(origin)
        return normalize_origin(headers.get("referer"))

    def check(self, method: str, headers: Mapping[str, str]) -> Result[None]:
        if method.upper() not in STATE_CHANGING_METHODS:
            return Return.ok()

        origin = self.request_origin(headers)
        if origin is None or origin not in self.allowed_origins:
            return Return.err(ORIGIN_MISMATCH)
        return Return.ok()


async def require_trusted_origin(request: Request) -> None:
    """Router dependency; runs before any body is read"""
    validator: OriginValidator = request.app.state.origin_validator
    result = validator.check(request.method, request.headers)
    if result.is_err():
        logger.warning(f"Rejected {request.method} {request.url.path}: untrusted origin")
        raise OriginMismatchError(result.error)
