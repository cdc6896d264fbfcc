from typing import Any, Dict, Optional

from fastapi import status

from authguard.result import Error


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        self.extra = extra or {}
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


class ValidationError(ClientError):
    def __init__(self, base_error: Error):
        super().__init__(base_error, status.HTTP_400_BAD_REQUEST)


class AuthError(ClientError):
    def __init__(self, base_error: Error, headers: Optional[Dict[str, str]] = None):
        super().__init__(base_error, status.HTTP_401_UNAUTHORIZED, headers=headers)


class ForbiddenError(ClientError):
    def __init__(self, base_error: Error):
        super().__init__(base_error, status.HTTP_403_FORBIDDEN)


class OriginMismatchError(ForbiddenError):
    pass


class PayloadTooLargeError(ClientError):
    def __init__(self, base_error: Error):
        super().__init__(base_error, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)


class RateLimitError(ClientError):
    def __init__(self, base_error: Error, retry_after: int, headers: Dict[str, str]):
        super().__init__(
            base_error,
            status.HTTP_429_TOO_MANY_REQUESTS,
            headers=headers,
            extra={"retryAfter": retry_after},
        )
        self.retry_after = retry_after


class StorageError(ServerError):
    pass
