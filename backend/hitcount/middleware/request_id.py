"""
Request ID middleware for tracing.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so that background
tasks scheduled by the count endpoint still run after the response.
"""
import uuid

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware:
    """
    Pure ASGI middleware that tags each request with an ID.
    The ID is echoed in the ``X-Request-ID`` response header and bound to
    the structlog context for every log line of the request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for header_name, header_value in scope.get("headers", []):
            if header_name == b"x-request-id":
                request_id = header_value.decode("latin-1")[:MAX_REQUEST_ID_LENGTH]
                break

        if not request_id:
            request_id = str(uuid.uuid4())

        # Start from a clean context so nothing leaks between requests
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        scope.setdefault("state", {})
        scope["state"]["request_id"] = request_id

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_request_id)
