"""
Unit tests for bounded request body ingestion
"""
from typing import Optional

import pytest
from pydantic import BaseModel
from starlette.requests import Request

from authguard.api.utils.request_size import (
    INVALID_BODY,
    PAYLOAD_TOO_LARGE,
    RequestSizeLimits,
    get_max_request_size,
    read_json_body,
    read_request_body,
)

MAX_BYTES = 1024


class EmailPayload(BaseModel):
    email: Optional[str] = None


class Receiver:
    """ASGI receive callable that hands out the body in fixed-size chunks"""

    def __init__(self, body: bytes, chunk_size: int = 100):
        self.messages = [
            {"type": "http.request", "body": body[i : i + chunk_size], "more_body": True}
            for i in range(0, len(body), chunk_size)
        ]
        self.messages.append({"type": "http.request", "body": b"", "more_body": False})
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.messages:
            return self.messages.pop(0)
        return {"type": "http.disconnect"}


def make_request(receiver, headers: Optional[dict] = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/auth/forgot-password",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    return Request(scope, receiver)


@pytest.mark.asyncio
async def test_body_of_exactly_max_bytes_is_accepted():
    result = await read_request_body(make_request(Receiver(b"x" * MAX_BYTES)), MAX_BYTES)

    assert result.is_ok()
    assert result.value.size == MAX_BYTES


@pytest.mark.asyncio
async def test_one_byte_over_is_rejected():
    result = await read_request_body(make_request(Receiver(b"x" * (MAX_BYTES + 1))), MAX_BYTES)

    assert result.is_err()
    assert result.error.code == PAYLOAD_TOO_LARGE


@pytest.mark.asyncio
async def test_streaming_stops_once_cap_is_passed():
    receiver = Receiver(b"x" * (MAX_BYTES * 10), chunk_size=512)

    result = await read_request_body(make_request(receiver), MAX_BYTES)

    assert result.is_err()
    # Two chunks reach the cap, the third passes it; the rest is never pulled
    assert receiver.calls == 3


@pytest.mark.asyncio
async def test_declared_content_length_over_cap_is_rejected_without_reading():
    receiver = Receiver(b"{}")
    request = make_request(receiver, {"Content-Length": str(MAX_BYTES + 1)})

    result = await read_request_body(request, MAX_BYTES)

    assert result.is_err()
    assert result.error.code == PAYLOAD_TOO_LARGE
    assert receiver.calls == 0


@pytest.mark.asyncio
async def test_understated_content_length_is_still_enforced():
    receiver = Receiver(b"x" * (MAX_BYTES + 50))
    request = make_request(receiver, {"Content-Length": "10"})

    result = await read_request_body(request, MAX_BYTES)

    assert result.is_err()


@pytest.mark.asyncio
async def test_json_body_parses_into_model():
    request = make_request(Receiver(b'{"email": "dj@example.com"}'))

    result = await read_json_body(request, MAX_BYTES, EmailPayload)

    assert result.is_ok()
    assert result.value.email == "dj@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b"", b"   ", b"{not json", b'["dj@example.com"]', b'"text"', b'{"email": 42}', b"\xff\xfe"],
)
async def test_unusable_json_bodies_are_invalid(body):
    result = await read_json_body(make_request(Receiver(body)), MAX_BYTES, EmailPayload)

    assert result.is_err()
    assert result.error.code == INVALID_BODY


@pytest.mark.asyncio
async def test_oversized_json_body_reports_size_not_syntax():
    body = b'{"email": "' + b"a" * MAX_BYTES + b'"}'

    result = await read_json_body(make_request(Receiver(body)), MAX_BYTES, EmailPayload)

    assert result.error.code == PAYLOAD_TOO_LARGE


def test_longest_matching_prefix_wins():
    limits = RequestSizeLimits.from_mapping(
        {"/auth": 8 * 1024, "/auth/upload": 64 * 1024, "/health": 1024, "default": 100 * 1024}
    )

    assert get_max_request_size("/auth/forgot-password", limits) == 8 * 1024
    assert get_max_request_size("/auth/upload/avatar", limits) == 64 * 1024
    assert get_max_request_size("/health", limits) == 1024
    assert get_max_request_size("/feedback", limits) == 100 * 1024
