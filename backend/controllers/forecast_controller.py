"""HTTP controller layer for deterministic facility forecasting."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_forecasting_service
from backend.domain.constraints import InvalidProfileError
from backend.domain.models import (
    EquipmentAvailabilityProfile,
    ForecastingEngineInput,
    LaborAvailabilityProfile,
    RoomCapacityProfile,
    SubstrateInventoryProfile,
    WorkflowTimingProfile,
)
from backend.repository.forecast_log import ForecastLogError
from backend.services.export_service import report_to_csv
from backend.services.forecasting_service import ForecastingService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["forecasting"])

MAX_LOG_LIMIT = 500


class RoomProfileRequest(BaseModel):
    room_id: str = Field(min_length=1)
    capacity_units: int
    turnover_days: float
    historical_utilization: float = 1.0


class EquipmentProfileRequest(BaseModel):
    equipment_id: str = Field(min_length=1)
    available_hours_per_day: float
    cycle_time_hours: float
    historical_availability: float = 1.0


class SubstrateProfileRequest(BaseModel):
    volume_units: float
    batch_size_units: float
    historical_completion_rate: float


class LaborProfileRequest(BaseModel):
    role: str = Field(min_length=1)
    hours_available_per_day: float
    hours_per_batch: float


class WorkflowProfileRequest(BaseModel):
    workflow_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    duration_days: float
    room_sequence: list[str] = Field(default_factory=list)
    equipment_needed: list[str] = Field(default_factory=list)
    historical_delay_factor: float = 0.0


class ForecastRequest(BaseModel):
    """Input DTO; numeric limits are enforced by the domain validators."""

    facility_id: str = Field(min_length=1)
    horizon_days: float
    rooms: list[RoomProfileRequest] = Field(default_factory=list)
    equipment: list[EquipmentProfileRequest] = Field(default_factory=list)
    substrate: SubstrateProfileRequest
    labor: list[LaborProfileRequest] = Field(default_factory=list)
    workflows: list[WorkflowProfileRequest] = Field(default_factory=list)

    @field_validator("facility_id")
    @classmethod
    def validate_facility_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("facility_id must be non-empty")
        return value.strip()

    def to_domain(self) -> ForecastingEngineInput:
        return ForecastingEngineInput(
            facility_id=self.facility_id,
            horizon_days=self.horizon_days,
            rooms=tuple(RoomCapacityProfile(**room.model_dump()) for room in self.rooms),
            equipment=tuple(
                EquipmentAvailabilityProfile(**item.model_dump()) for item in self.equipment
            ),
            substrate=SubstrateInventoryProfile(**self.substrate.model_dump()),
            labor=tuple(LaborAvailabilityProfile(**role.model_dump()) for role in self.labor),
            workflows=tuple(
                WorkflowTimingProfile(
                    workflow_id=workflow.workflow_id,
                    name=workflow.name,
                    duration_days=workflow.duration_days,
                    room_sequence=tuple(workflow.room_sequence),
                    equipment_needed=tuple(workflow.equipment_needed),
                    historical_delay_factor=workflow.historical_delay_factor,
                )
                for workflow in self.workflows
            ),
        )


class RoomUtilizationResponse(BaseModel):
    room_id: str
    available_capacity_units: int = Field(ge=0)
    utilization_percent: int = Field(ge=0, le=100)
    constrained_by: str


class EquipmentAvailabilityResponse(BaseModel):
    equipment_id: str
    available_hours: float = Field(ge=0.0)
    cycles_possible: int = Field(ge=0)


class SubstrateCapacityResponse(BaseModel):
    volume_units: float = Field(ge=0.0)
    raw_batches: int = Field(ge=0)
    batches_possible: int = Field(ge=0)


class LaborCapacityResponse(BaseModel):
    role: str
    hours_available: float = Field(ge=0.0)
    batches_possible: int = Field(ge=0)


class CapacitySnapshotResponse(BaseModel):
    facility_id: str
    horizon_days: float
    timestamp: str
    room_utilization: list[RoomUtilizationResponse]
    equipment_availability: list[EquipmentAvailabilityResponse]
    substrate: SubstrateCapacityResponse
    labor: list[LaborCapacityResponse]


class ThroughputEstimateResponse(BaseModel):
    workflow_id: str
    workflow_name: str
    batches_min: int = Field(ge=0)
    batches_max: int = Field(ge=0)
    cycle_time_days: float
    governing_constraint: str
    constraint_values: dict[str, Optional[int]]
    unknown_rooms: list[str]
    unknown_equipment: list[str]
    explain: str


class YieldRangeResponse(BaseModel):
    workflow_id: str
    workflow_name: str
    batches_min: int = Field(ge=0)
    batches_max: int = Field(ge=0)
    volume_min: int = Field(ge=0)
    volume_max: int = Field(ge=0)


class BottleneckResponse(BaseModel):
    type: str
    id: str
    severity: str
    detail: str


class BottleneckAnalysisResponse(BaseModel):
    facility_id: str
    timestamp: str
    bottlenecks: list[BottleneckResponse]


class InsightResponse(BaseModel):
    insight_id: str
    facility_id: str
    timestamp: str
    severity: str
    category: str
    summary: str
    details: str
    related_ids: list[str]


class ForecastReportResponse(BaseModel):
    report_id: str
    facility_id: str
    timestamp: str
    capacity: CapacitySnapshotResponse
    throughput: list[ThroughputEstimateResponse]
    yield_ranges: list[YieldRangeResponse]
    bottlenecks: BottleneckAnalysisResponse
    insights: list[InsightResponse]


class ForecastLogEntryResponse(BaseModel):
    entry_id: str
    timestamp: str
    category: str
    message: str
    context: dict[str, Any]


def _invalid_profile_exception(exc: InvalidProfileError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=exc.to_dict(),
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post(
    "/forecast",
    response_model=ForecastReportResponse,
    status_code=status.HTTP_200_OK,
)
async def build_forecast(
    payload: ForecastRequest,
    service: ForecastingService = Depends(get_forecasting_service),
) -> ForecastReportResponse:
    """Build one deterministic forecasting report for a facility."""
    try:
        report = service.build_deterministic_forecast(payload.to_domain())
        return ForecastReportResponse(**report.to_dict())
    except InvalidProfileError as exc:
        raise _invalid_profile_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected forecasting failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build forecast",
        ) from exc


@router.post("/forecast/export", status_code=status.HTTP_200_OK)
async def export_forecast(
    payload: ForecastRequest,
    service: ForecastingService = Depends(get_forecasting_service),
) -> Response:
    """Build a report and return its per-workflow rows as CSV."""
    try:
        report = service.build_deterministic_forecast(payload.to_domain())
        content = report_to_csv(report)
    except InvalidProfileError as exc:
        raise _invalid_profile_exception(exc) from exc
    except Exception as exc:
        logger.exception("Unexpected forecast export failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to export forecast",
        ) from exc
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{report.report_id}.csv"',
        },
    )


@router.get(
    "/forecast/log",
    response_model=list[ForecastLogEntryResponse],
    status_code=status.HTTP_200_OK,
)
async def get_forecast_log(
    limit: int = Query(default=50, ge=1, le=MAX_LOG_LIMIT),
    service: ForecastingService = Depends(get_forecasting_service),
) -> list[ForecastLogEntryResponse]:
    """Return the most recent audit entries, newest first."""
    try:
        entries = service.get_forecast_log(limit)
    except ForecastLogError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return [ForecastLogEntryResponse(**entry.to_dict()) for entry in entries]


@router.get(
    "/forecast/log/{category}",
    response_model=list[ForecastLogEntryResponse],
    status_code=status.HTTP_200_OK,
)
async def filter_forecast_log(
    category: str,
    service: ForecastingService = Depends(get_forecasting_service),
) -> list[ForecastLogEntryResponse]:
    try:
        entries = service.filter_forecast_log(category)
    except ForecastLogError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return [ForecastLogEntryResponse(**entry.to_dict()) for entry in entries]
