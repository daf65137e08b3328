"""
main.py - Server launcher and entry point.

Run this file to start the forecasting API:

    python main.py

Interactive API docs are served at http://127.0.0.1:8000/docs

This file does NOT contain application logic. See app.py for the FastAPI
application and service wiring.

Direct uvicorn usage:
    uvicorn app:app --reload
"""

from __future__ import annotations

import uvicorn

from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Start the forecasting API server."""
    settings = get_settings()
    logger.info(
        "Starting %s %s | url=http://%s:%s | docs=http://%s:%s/docs",
        settings.app_name,
        settings.app_version,
        HOST,
        PORT,
        HOST,
        PORT,
    )

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
