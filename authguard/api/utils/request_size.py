"""
Bounded request body ingestion.

The body is read chunk by chunk and abandoned as soon as the running total
passes the cap, so an oversized upload never sits fully in memory. A
declared ``Content-Length`` over the cap is rejected before reading at all.
"""

import json
from typing import Callable, Dict, Mapping, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError
from starlette.requests import ClientDisconnect

from authguard.api.error import PayloadTooLargeError, ValidationError
from authguard.result import Error, Result, Return
from config import KB

M = TypeVar("M", bound=BaseModel)

PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
INVALID_BODY = "INVALID_BODY"

DEFAULT_MAX_REQUEST_SIZE = 100 * KB


class RequestSizeLimits(BaseModel):
    """Body caps by path prefix; the longest matching prefix wins"""

    model_config = ConfigDict(frozen=True)

    routes: Dict[str, int]
    default: int = DEFAULT_MAX_REQUEST_SIZE

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int]) -> "RequestSizeLimits":
        routes = {prefix: int(size) for prefix, size in mapping.items() if prefix != "default"}
        return cls(routes=routes, default=int(mapping.get("default", DEFAULT_MAX_REQUEST_SIZE)))


class RequestBody(BaseModel):
    content: bytes
    size: int


def get_max_request_size(path: str, limits: RequestSizeLimits) -> int:
    matched = [prefix for prefix in limits.routes if path.startswith(prefix)]
    if not matched:
        return limits.default
    return limits.routes[max(matched, key=len)]


def payload_too_large(max_bytes: int) -> Error:
    return Error(
        PAYLOAD_TOO_LARGE,
        f"Request body exceeds maximum size of {round(max_bytes / KB)} KB",
        {"max_bytes": max_bytes},
    )


def invalid_body() -> Error:
    return Error(INVALID_BODY, "Invalid request body")


async def read_request_body(request: Request, max_bytes: int) -> Result[RequestBody]:
    """
    Read at most ``max_bytes`` of body.

    Returns:
        RequestBody, or PAYLOAD_TOO_LARGE once the declared or streamed size
        exceeds the cap. A body of exactly ``max_bytes`` is accepted.
    """
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            declared = int(content_length)
        except ValueError:
            declared = None
        if declared is not None and declared > max_bytes:
            return Return.err(payload_too_large(max_bytes))

    chunks = []
    size = 0
    try:
        async for chunk in request.stream():
            if not chunk:
                continue
            size += len(chunk)
            if size > max_bytes:
                return Return.err(payload_too_large(max_bytes))
            chunks.append(chunk)
    except ClientDisconnect:
        return Return.err(invalid_body())

    return Return.ok(RequestBody(content=b"".join(chunks), size=size))


async def read_json_body(request: Request, max_bytes: int, model: Type[M]) -> Result[M]:
    """Bounded read, then JSON object decode, then schema validation"""
    body_result = await read_request_body(request, max_bytes)
    if body_result.is_err():
        return body_result

    try:
        text = body_result.value.content.decode("utf-8").strip()
    except UnicodeDecodeError:
        return Return.err(invalid_body())
    if not text:
        return Return.err(invalid_body())

    try:
        data = json.loads(text)
    except ValueError:
        return Return.err(invalid_body())
    if not isinstance(data, dict):
        return Return.err(invalid_body())

    try:
        return Return.ok(model.model_validate(data))
    except SchemaError:
        return Return.err(invalid_body())


def json_body(model: Type[M]) -> Callable:
    """
    Dependency factory: the request body parsed into ``model`` under the
    size cap for the request path.

    Raises:
        PayloadTooLargeError: 413 when the cap is exceeded
        ValidationError: 400 for an empty, malformed or mismatched body
    """

    async def dependency(request: Request) -> M:
        limits: RequestSizeLimits = request.app.state.request_size_limits
        max_bytes = get_max_request_size(request.url.path, limits)
        result = await read_json_body(request, max_bytes, model)
        if result.is_err():
            if result.error.code == PAYLOAD_TOO_LARGE:
                raise PayloadTooLargeError(result.error)
            raise ValidationError(result.error)
        return result.value

    return dependency
