import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import request_id_ctx

# Compact JWTs and ``token=`` query values
JWT_RE = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")
TOKEN_PARAM_RE = re.compile(r"(?i)(token=)[^&\s\"']+")

EXTRA_FIELDS = (
    "route", "status", "latency_ms", "table", "table_id", "reason",
    "action", "actor", "payload",
)


def _redact_tokens(text: str) -> str:
    """Replace signed tokens embedded in ``text`` with ***."""
    text = TOKEN_PARAM_RE.sub(lambda m: m.group(1) + "***", text)
    return JWT_RE.sub("***", text)


class RequestIdFilter(logging.Filter):
    """Attach request id from context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.req_id = request_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """Render logs as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "msg": _redact_tokens(record.getMessage()),
        }
        for name in EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                data[name] = value
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logger with JSON formatting."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
