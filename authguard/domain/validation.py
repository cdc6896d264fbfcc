"""
Credential format rules shared by registration, account updates and availability checks.
"""

import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt ignores anything past 72 bytes

RESERVED_USERNAMES = frozenset(
    ["admin", "root", "system", "metadj", "metadjai", "support", "help", "api", "www"]
)
RESERVED_EMAILS = frozenset(["admin"])


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_username(username: str) -> str:
    return username.strip().lower()


def email_error(email: str) -> Optional[str]:
    """Return a user-facing reason the email is unusable, or None"""
    normalized = normalize_email(email)
    if normalized in RESERVED_EMAILS:
        return "This email cannot be used"
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email format"
    return None


def username_error(username: str) -> Optional[str]:
    """Return a user-facing reason the username is unusable, or None"""
    normalized = normalize_username(username)

    if len(normalized) < USERNAME_MIN_LENGTH:
        return f"Username must be at least {USERNAME_MIN_LENGTH} characters"
    if len(normalized) > USERNAME_MAX_LENGTH:
        return f"Username must be {USERNAME_MAX_LENGTH} characters or less"
    if not USERNAME_PATTERN.match(normalized):
        return "Username can only contain lowercase letters, numbers, and underscores"
    if normalized[0].isdigit():
        return "Username cannot start with a number"
    if normalized in RESERVED_USERNAMES:
        return "This username is reserved"
    return None


def password_error(password: str) -> Optional[str]:
    if len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return f"Password must be at most {PASSWORD_MAX_BYTES} bytes"
    return None


def mask_email(email: str) -> str:
    """Log-safe form of an address: first character of the local part, then the domain"""
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
