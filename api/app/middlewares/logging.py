import json
import logging
import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .request_id import request_id_ctx

# Request fields whose values never reach the logs
REDACT_KEYS = {"token", "wifi_password", "authorization", "password", "secret"}
QUIET_PATHS = {"/health"}

logger = logging.getLogger("api")


def redact(obj):
    """Return ``obj`` with values of :data:`REDACT_KEYS` replaced by ``***``."""
    if isinstance(obj, dict):
        return {
            k: ("***" if str(k).lower() in REDACT_KEYS else redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [redact(v) for v in obj]
    return obj


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one inbound and one outbound JSON line per request."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        req_id = getattr(request.state, "request_id", None) or request_id_ctx.get(None)
        # Starlette replays a body read here to the downstream app
        body_bytes = await request.body()

        inbound = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "req_id": req_id,
            "method": request.method,
            "path": path,
            "ip": request.client.host if request.client else None,
        }
        query = dict(request.query_params)
        if query:
            inbound["query"] = redact(query)
        if body_bytes and "json" in request.headers.get("content-type", ""):
            try:
                inbound["body"] = redact(json.loads(body_bytes))
            except ValueError:
                inbound["body"] = "<unparseable>"
        logger.info(json.dumps(inbound))

        start = time.perf_counter()
        response = await call_next(request)
        outbound = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "req_id": req_id,
            "route": path,
            "status": response.status_code,
            "latency_ms": int((time.perf_counter() - start) * 1000),
        }
        log_fn = logger.error if response.status_code >= 500 else logger.info
        log_fn(json.dumps(outbound))
        return response
