"""Shared middleware for cross-cutting concerns.

The request scope middleware binds a fresh request context around every
HTTP request, so tenant and actor identity never leak between requests.
"""

from shared_kernel.middleware.request_scope import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
]
