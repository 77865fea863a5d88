"""
SkillSwap Backend — Request ID Middleware
===========================================

What:  Assigns an ID to each incoming request and echoes it in the response.
Why:   Every log line and every error body of a request carries the same ID,
       so a user-reported error can be matched to the server logs.
How:   Accepts a client-sent X-Request-ID or generates a short one, stores it
       in a ContextVar (read by loggers and exception handlers) and in
       request.state, and returns it as a response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars are enough for correlation and read well in logs
        rid = request.headers.get("X-Request-ID", "")[:MAX_CLIENT_REQUEST_ID_LENGTH]
        if not rid:
            rid = uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
