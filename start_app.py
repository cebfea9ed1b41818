# start_app.py
"""Load settings and launch the API server."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load ``.env``, check configuration, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("PORT", "8000")), help="Listen port"
    )
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    config.get_settings.cache_clear()
    settings = config.get_settings()
    if not settings.qr_token_secret:
        print(
            "QR_TOKEN_SECRET is not set; table QR codes cannot be signed",
            file=sys.stderr,
        )
        raise SystemExit(2)

    uvicorn.run(
        "api.app.main:app",
        host="0.0.0.0",  # nosec B104: bind for local development
        port=args.port,
        log_level=settings.log_level.lower(),
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
