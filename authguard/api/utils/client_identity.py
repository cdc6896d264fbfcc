from typing import Mapping

from fastapi import Request

from authguard.domain.client_identity import UNKNOWN_IP, ClientIdentity, fingerprint


class ClientIdentityResolver:
    """
    Resolve the caller's address from trusted proxy headers only.

    Order: real-IP header, then the first hop of the forwarded-for chain,
    then "unknown". The socket peer (``request.client``) is never read.
    """

    def __init__(self, real_ip_header: str = "x-real-ip", forwarded_for_header: str = "x-forwarded-for"):
        self.real_ip_header = real_ip_header.lower()
        self.forwarded_for_header = forwarded_for_header.lower()

    def resolve(self, headers: Mapping[str, str]) -> ClientIdentity:
        real_ip = (headers.get(self.real_ip_header) or "").strip()
        forwarded = headers.get(self.forwarded_for_header) or ""
        first_hop = forwarded.split(",")[0].strip()

        ip = real_ip or first_hop or UNKNOWN_IP
        return ClientIdentity(ip=ip, fingerprint=fingerprint(ip))


def get_client_identity(request: Request) -> ClientIdentity:
    """Dependency: identity of the current caller"""
    resolver: ClientIdentityResolver = request.app.state.identity_resolver
    return resolver.resolve(request.headers)
