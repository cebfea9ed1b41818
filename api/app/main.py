# main.py

"""FastAPI application for table QR access codes."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

from . import db as app_db
from .config.validate import validate_on_boot
from .middlewares import LoggingMiddleware, RequestIdMiddleware
from .obs.logging import configure_logging
from .routes_guest_qr import router as guest_qr_router
from .routes_tables_qr import router as tables_qr_router
from .utils.responses import err, ok

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger("api")

validate_on_boot(settings)

app = FastAPI(
    title="Table QR API",
    version="1.0.0",
    servers=[{"url": "/"}],
    openapi_url="/openapi.json",
)
# Outermost last: request ids exist before the request is logged
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        str(exc.detail),
        extra={"status": exc.status_code, "route": request.url.path},
    )
    return JSONResponse(
        err(exc.status_code, str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.exception(
        "unhandled_error",
        extra={"status": 500, "route": request.url.path},
    )
    return JSONResponse(err(500, "Internal Server Error"), status_code=500)


@app.on_event("startup")
async def prepare_database() -> None:
    app_db.configure(settings.database_url)
    await app_db.create_tables()


@app.on_event("shutdown")
async def close_database() -> None:
    await app_db.dispose()


@app.get("/health")
async def health() -> dict:
    return ok({"status": "ok"})


app.include_router(tables_qr_router)
app.include_router(guest_qr_router)
