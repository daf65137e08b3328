"""Domain-level validation rules and policy constants for forecasting."""

from __future__ import annotations

import math
from dataclasses import dataclass

from backend.domain.models import (
    EquipmentAvailabilityProfile,
    ForecastingEngineInput,
    LaborAvailabilityProfile,
    RoomCapacityProfile,
    SubstrateInventoryProfile,
    WorkflowTimingProfile,
)


# Absorbs binary representation error so 0.29 * 100 floors to 29, not 28.
FLOOR_EPSILON = 1e-9


class ForecastingError(Exception):
    """Base exception for forecasting workflow failures."""


class InvalidProfileError(ForecastingError):
    """Raised when a profile field would produce an infinite or negative result."""

    def __init__(self, profile: str, field: str, message: str) -> None:
        super().__init__(f"{profile}.{field}: {message}")
        self.profile = profile
        self.field = field
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"profile": self.profile, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class ForecastingPolicy:
    throughput_min_ratio: float = 0.7
    yield_min_ratio: float = 0.85
    bottleneck_threshold: int = 2
    low_throughput_threshold: int = 2


def validate_forecasting_policy(policy: ForecastingPolicy) -> None:
    if not 0.0 <= policy.throughput_min_ratio <= 1.0:
        raise ValueError("throughput_min_ratio must be between 0 and 1")
    if not 0.0 <= policy.yield_min_ratio <= 1.0:
        raise ValueError("yield_min_ratio must be between 0 and 1")
    if policy.bottleneck_threshold < 0:
        raise ValueError("bottleneck_threshold must be >= 0")
    if policy.low_throughput_threshold < 0:
        raise ValueError("low_throughput_threshold must be >= 0")


def floor_count(value: float) -> int:
    return int(math.floor(value + FLOOR_EPSILON))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_positive(profile: str, field: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        raise InvalidProfileError(profile, field, f"must be > 0, got {value}")


def _require_non_negative(profile: str, field: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise InvalidProfileError(profile, field, f"must be >= 0, got {value}")


def _require_fraction(profile: str, field: str, value: float) -> None:
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise InvalidProfileError(profile, field, f"must be between 0 and 1, got {value}")


def validate_horizon(horizon_days: float) -> None:
    _require_positive("input", "horizon_days", horizon_days)


def validate_room_profile(room: RoomCapacityProfile) -> None:
    profile = f"room[{room.room_id}]"
    _require_non_negative(profile, "capacity_units", room.capacity_units)
    _require_positive(profile, "turnover_days", room.turnover_days)
    _require_fraction(profile, "historical_utilization", room.historical_utilization)


def validate_equipment_profile(equipment: EquipmentAvailabilityProfile) -> None:
    profile = f"equipment[{equipment.equipment_id}]"
    _require_non_negative(profile, "available_hours_per_day", equipment.available_hours_per_day)
    _require_positive(profile, "cycle_time_hours", equipment.cycle_time_hours)
    _require_fraction(profile, "historical_availability", equipment.historical_availability)


def validate_substrate_profile(substrate: SubstrateInventoryProfile) -> None:
    _require_non_negative("substrate", "volume_units", substrate.volume_units)
    _require_positive("substrate", "batch_size_units", substrate.batch_size_units)
    _require_fraction(
        "substrate",
        "historical_completion_rate",
        substrate.historical_completion_rate,
    )


def validate_labor_profile(labor: LaborAvailabilityProfile) -> None:
    profile = f"labor[{labor.role}]"
    _require_non_negative(profile, "hours_available_per_day", labor.hours_available_per_day)
    _require_positive(profile, "hours_per_batch", labor.hours_per_batch)


def workflow_cycle_time_days(workflow: WorkflowTimingProfile) -> float:
    """Return the delay-adjusted cycle time, rejecting non-positive results."""
    profile = f"workflow[{workflow.workflow_id}]"
    if not math.isfinite(workflow.historical_delay_factor):
        raise InvalidProfileError(profile, "historical_delay_factor", "must be finite")
    cycle_time_days = workflow.duration_days * (1 + workflow.historical_delay_factor)
    if not math.isfinite(cycle_time_days) or cycle_time_days <= 0:
        raise InvalidProfileError(
            profile,
            "duration_days",
            f"duration_days x (1 + delay_factor) must be > 0, got {cycle_time_days}",
        )
    return cycle_time_days


def validate_engine_input(payload: ForecastingEngineInput) -> None:
    """Reject every fatal profile problem before any modeling stage runs."""
    validate_horizon(payload.horizon_days)
    for room in payload.rooms:
        validate_room_profile(room)
    for equipment in payload.equipment:
        validate_equipment_profile(equipment)
    validate_substrate_profile(payload.substrate)
    for labor in payload.labor:
        validate_labor_profile(labor)
    for workflow in payload.workflows:
        workflow_cycle_time_days(workflow)
