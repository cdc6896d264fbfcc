import hashlib

from pydantic import BaseModel, ConfigDict

UNKNOWN_IP = "unknown"


def fingerprint(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class ClientIdentity(BaseModel):
    """
    Client address as seen through trusted proxy headers.

    Derived per request and never persisted. ``fingerprint`` is the SHA-256
    of ``ip`` and stands in for the raw address in logs and, when the address
    is unknown, in rate-limit keys.
    """

    model_config = ConfigDict(frozen=True)

    ip: str
    fingerprint: str

    @property
    def is_known(self) -> bool:
        return self.ip != UNKNOWN_IP

    def rate_limit_key(self, scope: str) -> str:
        # One counter per request: by address when trusted, otherwise by fingerprint
        if self.is_known:
            return f"{scope}-ip:{self.ip}"
        return f"{scope}-fp:{self.fingerprint}"
