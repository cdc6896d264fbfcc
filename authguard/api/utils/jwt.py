from datetime import datetime
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from authguard.domain.base import epoch_ms, utc_now
from config import ApplicationConfig

ALGORITHM = "HS256"


def create_session_token(
    user_id: UUID, session_id: UUID, claims: dict, expires_at: datetime
) -> str:
    """
    Sign a session token

    Args:
        user_id: User UUID, carried as "sub"
        session_id: Server-side session UUID, carried as "sid"
        claims: Identity snapshot (email, username, is_admin, email_verified)
        expires_at: Naive UTC expiry, same as the session row

    Returns:
        JWT token string (HS256)
    """
    payload = {
        **claims,
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": epoch_ms(utc_now()) // 1000,
        "exp": epoch_ms(expires_at) // 1000,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm=ALGORITHM)


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid or expired
    """
    try:
        return jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None
