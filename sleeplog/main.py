"""Facade to start the FastAPI server with logging configured."""

from __future__ import annotations

import asyncio
import logging
import os

import uvicorn

from sleeplog import config
from sleeplog.app.api import create_app


def run() -> None:
    level = config.log_level()
    logging.basicConfig(level=level.upper(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8765"))
    server_config = uvicorn.Config(create_app(), host=host, port=port, log_level=level)
    server = uvicorn.Server(server_config)
    asyncio.run(server.serve())


if __name__ == "__main__":
    run()
