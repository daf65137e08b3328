from __future__ import annotations

from dataclasses import replace

from backend.domain.models import (
    ForecastingEngineInput,
    RoomCapacityProfile,
    SubstrateInventoryProfile,
    WorkflowTimingProfile,
)
from backend.repository.forecast_log import InMemoryForecastLog
from backend.services.export_service import EXPORT_COLUMNS, report_to_csv, report_to_frame
from backend.services.forecasting_service import ForecastingService
from backend.utils.config import get_settings


def _build_report():
    service = ForecastingService(
        settings=replace(get_settings(), forecast_log_database_path=None),
        log_sink=InMemoryForecastLog(),
        clock=lambda: "2026-01-01T00:00:00+00:00",
        report_id_factory=lambda facility_id: f"{facility_id}-export",
    )
    return service.build_deterministic_forecast(
        ForecastingEngineInput(
            facility_id="facility-export",
            horizon_days=14,
            rooms=(RoomCapacityProfile("incubation", 40, 2, 0.9),),
            equipment=(),
            substrate=SubstrateInventoryProfile(600, 10, 0.93),
            labor=(),
            workflows=(
                WorkflowTimingProfile("wf-a", "Alpha", 7, ("incubation",)),
                WorkflowTimingProfile("wf-b", "Beta", 1, ("incubation",)),
            ),
        )
    )


def test_frame_has_one_row_per_workflow() -> None:
    frame = report_to_frame(_build_report())

    assert list(frame.columns) == EXPORT_COLUMNS
    assert frame["workflow_id"].tolist() == ["wf-a", "wf-b"]
    assert frame["batches_max"].tolist() == [2, 14]
    assert frame["governing_constraint"].tolist() == ["time", "time"]
    assert frame["volume_max"].tolist() == [18, 130]


def test_csv_is_reproducible() -> None:
    first = report_to_csv(_build_report())
    second = report_to_csv(_build_report())

    assert first == second
    assert first.splitlines()[0] == ",".join(EXPORT_COLUMNS)
