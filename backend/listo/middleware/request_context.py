from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.context import request_id_var

# Caller-supplied ids end up in every log line; cap them.
MAX_REQUEST_ID_LENGTH = 128


def _inbound_request_id(request: Request) -> str:
    raw = str(request.headers.get("x-request-id") or "").strip()
    return raw[:MAX_REQUEST_ID_LENGTH]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Give every request an id (the caller's X-Request-Id, else a fresh UUIDv4),
    bind it for logging and problem responses, and echo it back.
    """

    header_name = "X-Request-Id"

    async def dispatch(self, request: Request, call_next):
        request_id = _inbound_request_id(request) or str(uuid.uuid4())
        request.state.request_id = request_id

        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[self.header_name] = request_id
        return response
