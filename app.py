"""
app.py - FastAPI application factory.

This is the ASGI application object imported by uvicorn.
It wires the forecasting service and its audit log, then registers routers.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from backend.controllers.forecast_controller import router as forecast_router
from backend.repository.forecast_log import ForecastLogSink, build_forecast_log
from backend.services.forecasting_service import ForecastingService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    log_sink: Optional[ForecastLogSink] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    The audit log sink is created here and injected into the service, so every
    request served by this app writes to the same log.
    """
    resolved_settings = settings or get_settings()

    # --- Audit log (in-memory ring buffer unless a database path is set) ---
    forecast_log = (
        log_sink
        if log_sink is not None
        else build_forecast_log(
            database_path=resolved_settings.forecast_log_database_path,
            capacity=resolved_settings.forecast_log_capacity,
        )
    )

    # --- Services ---
    forecasting_service = ForecastingService(
        settings=resolved_settings,
        log_sink=forecast_log,
    )

    app = FastAPI(
        title=resolved_settings.app_name,
        version=resolved_settings.app_version,
    )
    app.include_router(forecast_router)

    app.state.forecast_log = forecast_log
    app.state.forecasting_service = forecasting_service

    logger.info(
        "Application wired | log_sink=%s | log_capacity=%s",
        type(forecast_log).__name__,
        resolved_settings.forecast_log_capacity,
    )
    return app


# Module-level app object for uvicorn
app = create_app()
