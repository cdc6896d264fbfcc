import hashlib

from authguard.api.utils.client_identity import ClientIdentityResolver

resolver = ClientIdentityResolver("x-real-ip", "x-forwarded-for")


def sha256(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def test_real_ip_header_wins():
    identity = resolver.resolve({"x-real-ip": " 203.0.113.7 ", "x-forwarded-for": "198.51.100.1"})

    assert identity.ip == "203.0.113.7"
    assert identity.fingerprint == sha256("203.0.113.7")


def test_first_forwarded_hop_used_without_real_ip():
    identity = resolver.resolve({"x-forwarded-for": "198.51.100.1, 10.0.0.2, 10.0.0.3"})

    assert identity.ip == "198.51.100.1"


def test_no_headers_is_unknown_with_stable_fingerprint():
    identity = resolver.resolve({})

    assert identity.ip == "unknown"
    assert identity.is_known is False
    assert identity.fingerprint == sha256("unknown")
    assert len(identity.fingerprint) == 64


def test_blank_headers_are_ignored():
    identity = resolver.resolve({"x-real-ip": "  ", "x-forwarded-for": " , 10.0.0.2"})

    assert identity.ip == "unknown"


def test_rate_limit_key_uses_ip_when_known():
    identity = resolver.resolve({"x-real-ip": "203.0.113.7"})

    assert identity.rate_limit_key("auth-forgot") == "auth-forgot-ip:203.0.113.7"


def test_rate_limit_key_falls_back_to_fingerprint():
    identity = resolver.resolve({})

    assert identity.rate_limit_key("auth-forgot") == f"auth-forgot-fp:{sha256('unknown')}"


def test_custom_header_names():
    custom = ClientIdentityResolver("CF-Connecting-IP", "X-Forwarded-For")

    assert custom.resolve({"cf-connecting-ip": "192.0.2.9"}).ip == "192.0.2.9"
