"""Entry point for the LinkShelf API.

Starts the FastAPI application under Uvicorn.  Host and port come from
the ``HOST`` and ``PORT`` environment variables (defaults ``0.0.0.0``
and ``8080``); see ``linkshelf_api/app/core/config.py`` for the full
list of settings.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from linkshelf_api.app.core.config import settings
from linkshelf_api.app.main import app


def build_server() -> Server:
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    return Server(config)


async def main() -> None:
    logging.getLogger(__name__).info("API listening on :%s", settings.port)
    await build_server().serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
