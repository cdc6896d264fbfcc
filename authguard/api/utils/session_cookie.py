from typing import Optional

from fastapi import Request, Response

from authguard.app.services.session_manager import IssuedSession
from authguard.domain.base import utc_now
from config import ApplicationConfig

COOKIE_PATH = "/"


def set_session_cookie(response: Response, issued: IssuedSession) -> None:
    max_age = int((issued.expires_at - utc_now()).total_seconds())
    response.set_cookie(
        ApplicationConfig.SESSION_COOKIE_NAME,
        issued.token,
        max_age=max(0, max_age),
        path=COOKIE_PATH,
        httponly=True,
        secure=ApplicationConfig.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        ApplicationConfig.SESSION_COOKIE_NAME,
        path=COOKIE_PATH,
        httponly=True,
        secure=ApplicationConfig.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def read_session_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie"""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(ApplicationConfig.SESSION_COOKIE_NAME) or None
