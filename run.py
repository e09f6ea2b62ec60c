"""Entry point for the Snippr API.

Builds the application from environment variables and serves it with
Uvicorn.  ``ENCRYPTION_KEY`` (64 hex characters) is required; generate
one with ``python generate_keys.py``.  If the key is missing or
malformed, or ``SALT_ROUNDS`` is not a usable bcrypt cost, the process
exits with status 1 instead of starting.

Host and port are read from ``HOST`` and ``PORT`` (defaults
``0.0.0.0`` and ``3000``).

Usage:
    ENCRYPTION_KEY=... python run.py
"""
import asyncio
import logging
import os
import sys

from uvicorn import Config, Server

from snippr_api.app.core.errors import FatalConfiguration
from snippr_api.app.main import create_app


async def serve() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    app = create_app()
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    logging.getLogger(__name__).info("Server is running on http://%s:%d", host, port)
    await server.serve()


def main() -> None:
    try:
        asyncio.run(serve())
    except FatalConfiguration as exc:
        logging.basicConfig(level=logging.INFO)
        logging.critical("FATAL ERROR: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
