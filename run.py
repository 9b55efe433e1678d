"""Entry point for the Events API server.

Serves ``events_api.app.main:app`` with Uvicorn from the project root,
which suits Docker or any host where you only name one Python file.
Application settings (``SECRET_KEY``, ``DATABASE_URL``, ``LOG_LEVEL``
and the rest of ``Settings``) come from the environment; so do the
listen address ``HOST`` (default ``0.0.0.0``) and ``PORT`` (``3000``).

Usage:
    PORT=8080 python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from events_api.app.main import app

logger = logging.getLogger("events_api.run")


async def serve() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    server = Server(Config(app=app, host=host, port=port, log_config=None))
    logger.info("Server running at http://%s:%s/", host, port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(serve())
    except (KeyboardInterrupt, SystemExit):
        pass
