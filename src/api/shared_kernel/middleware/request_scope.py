"""ASGI middleware binding a request context per HTTP request.

Pure ASGI rather than ``BaseHTTPMiddleware`` so the endpoint runs inside
the same context the middleware binds. Every request starts with a fresh
context with no tenant and no actor; the tenancy dependencies fill those
in later. The context is released when the response has been sent.
"""

from __future__ import annotations

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared_kernel.middleware.observability import (
    DefaultRequestScopeProbe,
    RequestScopeProbe,
)
from shared_kernel.request_context import RequestContext, bound_context

REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware:
    """Bind a fresh ``RequestContext`` around each HTTP request.

    An incoming ``X-Request-ID`` header is reused as the correlation id,
    otherwise one is generated. The id is echoed on the response.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)
    """

    def __init__(self, app: ASGIApp, probe: RequestScopeProbe | None = None):
        self.app = app
        self._probe = probe or DefaultRequestScopeProbe()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = Headers(scope=scope).get(REQUEST_ID_HEADER)
        context = RequestContext(request_id=incoming) if incoming else RequestContext()
        status_code: int | None = None

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = context.request_id
            await send(message)

        with bound_context(context):
            self._probe.scope_opened(
                context.request_id, scope.get("method", ""), scope["path"]
            )
            try:
                await self.app(scope, receive, send_with_request_id)
            finally:
                self._probe.scope_closed(
                    context.request_id, context.tenant_id, status_code
                )
