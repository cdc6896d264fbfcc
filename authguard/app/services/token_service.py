"""
One-time token helpers for password reset and email verification.

The plaintext token goes to the user by email; only ``hash_token(token)``
is ever stored. Hashing needs no secret: the token carries 256 bits of
entropy, so the digest alone is useless to whoever reads the table.
"""

import hashlib
import hmac
import secrets

TOKEN_BYTES = 32


def generate_token(byte_length: int = TOKEN_BYTES) -> str:
    """URL-safe random token; 32 bytes gives 256 bits of entropy"""
    if byte_length < TOKEN_BYTES:
        raise ValueError(f"Tokens need at least {TOKEN_BYTES} bytes of entropy")
    return secrets.token_urlsafe(byte_length)


def hash_token(token: str) -> str:
    """SHA-256 hex digest (64 chars) of a token"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(token: str, token_hash: str) -> bool:
    """
    Recompute the digest and compare in constant time.

    Stored tokens are found by digest (``WHERE token_hash = ...``), so the
    plaintext never meets a stored value in Python; use this wherever a
    token is checked against a digest already in hand.
    """
    return hmac.compare_digest(hash_token(token), token_hash)
