"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Request

from backend.services.forecasting_service import ForecastingService
from backend.utils.config import get_settings


def get_forecasting_service(request: Request) -> ForecastingService:
    service = getattr(request.app.state, "forecasting_service", None)
    if service is None:
        service = ForecastingService(settings=get_settings())
        request.app.state.forecasting_service = service
    return service
