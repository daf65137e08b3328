"""Capacity modeling: turns resource profiles into a per-horizon snapshot."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from backend.domain.constraints import (
    floor_count,
    round_half_up,
    validate_equipment_profile,
    validate_horizon,
    validate_labor_profile,
    validate_room_profile,
    validate_substrate_profile,
)
from backend.domain.models import (
    CapacitySnapshot,
    EquipmentAvailability,
    EquipmentAvailabilityProfile,
    LaborAvailabilityProfile,
    LaborCapacity,
    RoomCapacityProfile,
    RoomUtilization,
    SubstrateCapacity,
    SubstrateInventoryProfile,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def model_room(room: RoomCapacityProfile, horizon_days: float) -> RoomUtilization:
    validate_room_profile(room)
    cycles = horizon_days / room.turnover_days
    available = max(
        0,
        floor_count(room.capacity_units * cycles * room.historical_utilization),
    )
    utilization_percent = min(100, round_half_up(cycles * 100))

    if cycles < 1:
        constrained_by = "turnover"
    elif available <= 0:
        constrained_by = "capacity"
    else:
        constrained_by = "none"

    return RoomUtilization(
        room_id=room.room_id,
        available_capacity_units=available,
        utilization_percent=utilization_percent,
        constrained_by=constrained_by,
    )


def model_equipment(
    equipment: EquipmentAvailabilityProfile,
    horizon_days: float,
) -> EquipmentAvailability:
    validate_equipment_profile(equipment)
    hours = (
        equipment.available_hours_per_day
        * horizon_days
        * equipment.historical_availability
    )
    return EquipmentAvailability(
        equipment_id=equipment.equipment_id,
        available_hours=hours,
        cycles_possible=max(0, floor_count(hours / equipment.cycle_time_hours)),
    )


def model_substrate(substrate: SubstrateInventoryProfile) -> SubstrateCapacity:
    validate_substrate_profile(substrate)
    raw_batches = floor_count(substrate.volume_units / substrate.batch_size_units)
    adjusted = floor_count(raw_batches * substrate.historical_completion_rate)
    return SubstrateCapacity(
        volume_units=substrate.volume_units,
        raw_batches=max(0, raw_batches),
        batches_possible=max(0, adjusted),
    )


def model_labor(labor: LaborAvailabilityProfile, horizon_days: float) -> LaborCapacity:
    validate_labor_profile(labor)
    hours = labor.hours_available_per_day * horizon_days
    return LaborCapacity(
        role=labor.role,
        hours_available=hours,
        batches_possible=max(0, floor_count(hours / labor.hours_per_batch)),
    )


def compute_capacity_snapshot(
    *,
    facility_id: str,
    horizon_days: float,
    rooms: Sequence[RoomCapacityProfile],
    equipment: Sequence[EquipmentAvailabilityProfile],
    substrate: SubstrateInventoryProfile,
    labor: Sequence[LaborAvailabilityProfile],
    timestamp: Optional[str] = None,
) -> CapacitySnapshot:
    """Project every resource over the horizon.

    Empty room, equipment or labor lists are not an error: the snapshot simply
    carries no entries for that resource and downstream stages treat the
    dimension as unconstrained (rooms referenced by a workflow then surface
    as unknown references).
    """
    validate_horizon(horizon_days)

    for label, items in (("rooms", rooms), ("equipment", equipment), ("labor", labor)):
        if not items:
            logger.warning(
                "Capacity input empty | facility_id=%s | resource=%s",
                facility_id,
                label,
            )

    snapshot = CapacitySnapshot(
        facility_id=facility_id,
        horizon_days=horizon_days,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        room_utilization=tuple(model_room(room, horizon_days) for room in rooms),
        equipment_availability=tuple(
            model_equipment(item, horizon_days) for item in equipment
        ),
        substrate=model_substrate(substrate),
        labor=tuple(model_labor(role, horizon_days) for role in labor),
    )
    logger.info(
        "Capacity snapshot computed | facility_id=%s | horizon_days=%s | rooms=%s | "
        "equipment=%s | labor_roles=%s | substrate_batches=%s",
        facility_id,
        horizon_days,
        len(snapshot.room_utilization),
        len(snapshot.equipment_availability),
        len(snapshot.labor),
        snapshot.substrate.batches_possible,
    )
    return snapshot
