from __future__ import annotations

"""Audit decorator for operator routes."""

from functools import wraps
import inspect
import logging
import typing
from typing import Any, Callable

from fastapi import Request

from ..middlewares.logging import redact

logger = logging.getLogger("api.audit")


def audit(action: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate a route handler to log an audit entry on success.

    An entry is written to the ``api.audit`` logger when the handler returns
    an ``ok`` envelope or a non-error :class:`~starlette.responses.Response`,
    capturing the actor, the request path and the redacted JSON payload. The
    decorator injects a :class:`~fastapi.Request` parameter when the handler
    does not declare one.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        sig = inspect.signature(func)
        hints = typing.get_type_hints(func)
        params: list[inspect.Parameter] = []
        if "request" not in sig.parameters:
            params.append(
                inspect.Parameter(
                    "request",
                    inspect.Parameter.POSITIONAL_OR_KEYWORD,
                    annotation=Request,
                )
            )
        for p in sig.parameters.values():
            ann = hints.get(p.name, p.annotation)
            params.append(p.replace(annotation=ann))
        new_sig = sig.replace(parameters=params)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            bound = new_sig.bind_partial(*args, **kwargs)
            request: Request = bound.arguments["request"]
            try:
                payload = await request.json()
            except ValueError:
                payload = None
            bound.apply_defaults()
            call_kwargs = {
                k: v for k, v in bound.arguments.items() if k in sig.parameters
            }
            result = await func(**call_kwargs)
            succeeded = (
                result.get("ok") is True
                if isinstance(result, dict)
                else getattr(result, "status_code", 500) < 400
            )
            if succeeded:
                actor = getattr(bound.arguments.get("user"), "username", "guest")
                logger.info(
                    "audit action=%s actor=%s",
                    action,
                    actor,
                    extra={
                        "route": request.url.path,
                        "action": action,
                        "actor": actor,
                        "payload": redact(payload),
                    },
                )
            return result

        wrapper.__signature__ = new_sig
        return wrapper

    return decorator
