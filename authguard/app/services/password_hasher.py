from functools import lru_cache

import bcrypt

from config import ApplicationConfig


def _rounds() -> int:
    return int(ApplicationConfig.BCRYPT_ROUNDS)


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(rounds))


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured cost factor"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(_rounds())).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt check; malformed hashes never verify"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def burn_password_check(password: str) -> None:
    """Spend one bcrypt check when there is no account, so timing does not reveal it"""
    verify_password(password, _dummy_hash(_rounds()).decode("utf-8"))
