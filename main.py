"""LinguaFabric entrypoint.

Loads environment files, then serves the gateway app with uvicorn.
"""
from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv(".env.production")
load_dotenv(".env", override=True)

from services.gateway.app import app  # noqa: E402

log = logging.getLogger("linguafabric")

# Export ASGI for uvicorn/gunicorn
__all__ = ["app"]


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    log.info("starting gateway on %s:%d", host, port)
    uvicorn.run("main:app", host=host, port=port, reload=os.getenv("ENV", "dev") == "dev")


if __name__ == "__main__":
    main()
