"""
Client identity resolution

The identity used for view deduplication is the first hop of the forwarding
header. The header is client-suppliable, so deployments that need a trusted
address should resolve the peer at the proxy layer and overwrite the header.
"""

from fastapi import Request

from viewtrack.config import settings
from viewtrack.constants import UNKNOWN_IDENTITY


def resolve_identity(forwarded_for: str | None) -> str:
    """Return the first entry of a comma-separated proxy chain, or "unknown"."""
    if not forwarded_for:
        return UNKNOWN_IDENTITY

    first_hop = forwarded_for.split(",")[0].strip()
    return first_hop or UNKNOWN_IDENTITY


def get_client_identity(request: Request) -> str:
    return resolve_identity(request.headers.get(settings.forwarded_for_header))
