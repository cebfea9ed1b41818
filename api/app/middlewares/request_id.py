import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Read by the log filter and error envelopes
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("api")

MAX_REQUEST_ID_LENGTH = 128


def _incoming_id(request: Request) -> str | None:
    value = (request.headers.get("X-Request-ID") or "").strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return None
    return value


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate ``X-Request-ID`` or mint one, and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        req_id = _incoming_id(request) or uuid.uuid4().hex
        ctx_token = request_id_ctx.set(req_id)
        request.state.request_id = req_id
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(ctx_token)
        response.headers["X-Request-ID"] = req_id
        return response
