"""Entry point for the Event Hub API server.

Starts the FastAPI application with Uvicorn.  Host and port come from
``API_HOST`` and ``API_PORT`` (defaults ``0.0.0.0`` and ``8000``); all
other configuration is read by ``event_hub_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from event_hub_api.app.core.config import settings
from event_hub_api.app.main import app


async def main() -> None:
    """Serve the API until interrupted."""
    config = Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Server stopped")
