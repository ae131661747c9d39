"""
Rate Limiting for the view endpoints

Bounds how fast a single client can hit the view entry points before the
requests reach the store. Keyed by the same identity the cooldown uses.
"""

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from viewtrack.utils.client_ip import get_client_identity


def identity_key(request: Request) -> str:
    return get_client_identity(request)


limiter = Limiter(
    key_func=identity_key,
    storage_uri="memory://",  # per-process; point at Redis when running several workers
    headers_enabled=False,
)


def configure_rate_limiting(app) -> None:
    """
    Configure rate limiting for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
