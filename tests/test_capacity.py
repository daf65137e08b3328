"""Tests for per-horizon capacity modeling."""

from __future__ import annotations

import pytest

from backend.domain.constraints import InvalidProfileError
from backend.domain.models import (
    EquipmentAvailabilityProfile,
    LaborAvailabilityProfile,
    RoomCapacityProfile,
    SubstrateInventoryProfile,
)
from backend.services.capacity_service import (
    compute_capacity_snapshot,
    model_equipment,
    model_labor,
    model_room,
    model_substrate,
)


SUBSTRATE = SubstrateInventoryProfile(
    volume_units=600,
    batch_size_units=10,
    historical_completion_rate=0.93,
)


def test_room_capacity_over_fourteen_day_horizon() -> None:
    room = RoomCapacityProfile(
        room_id="incubation-a",
        capacity_units=40,
        turnover_days=2,
        historical_utilization=0.9,
    )

    result = model_room(room, horizon_days=14)

    assert result.available_capacity_units == 252
    assert result.utilization_percent == 100
    assert result.constrained_by == "none"


def test_room_with_turnover_longer_than_horizon_is_turnover_constrained() -> None:
    room = RoomCapacityProfile(room_id="fruiting-b", capacity_units=10, turnover_days=20)

    result = model_room(room, horizon_days=14)

    assert result.available_capacity_units == 7
    assert result.utilization_percent == 70
    assert result.constrained_by == "turnover"


def test_room_with_no_slots_is_capacity_constrained() -> None:
    room = RoomCapacityProfile(room_id="closed", capacity_units=0, turnover_days=2)

    result = model_room(room, horizon_days=14)

    assert result.available_capacity_units == 0
    assert result.constrained_by == "capacity"


def test_utilization_percent_rounds_half_up() -> None:
    room = RoomCapacityProfile(room_id="r", capacity_units=4, turnover_days=8)

    # 1 / 8 = 0.125 -> 12.5 percent
    assert model_room(room, horizon_days=1).utilization_percent == 13


def test_equipment_cycles_from_available_hours() -> None:
    equipment = EquipmentAvailabilityProfile(
        equipment_id="autoclave-1",
        available_hours_per_day=6,
        cycle_time_hours=2,
        historical_availability=0.92,
    )

    result = model_equipment(equipment, horizon_days=14)

    assert result.available_hours == pytest.approx(77.28)
    assert result.cycles_possible == 38


def test_substrate_batches_adjusted_by_completion_rate() -> None:
    result = model_substrate(SUBSTRATE)

    assert result.raw_batches == 60
    assert result.batches_possible == 55


def test_labor_batches_from_hours() -> None:
    labor = LaborAvailabilityProfile(role="technician", hours_available_per_day=8, hours_per_batch=10)

    result = model_labor(labor, horizon_days=14)

    assert result.hours_available == 112
    assert result.batches_possible == 11


def test_snapshot_collects_every_resource() -> None:
    snapshot = compute_capacity_snapshot(
        facility_id="facility-1",
        horizon_days=14,
        rooms=[
            RoomCapacityProfile("a", 40, 2, 0.9),
            RoomCapacityProfile("b", 3, 7),
        ],
        equipment=[EquipmentAvailabilityProfile("autoclave-1", 6, 2, 0.92)],
        substrate=SUBSTRATE,
        labor=[LaborAvailabilityProfile("technician", 8, 4)],
        timestamp="2026-01-01T00:00:00+00:00",
    )

    assert snapshot.facility_id == "facility-1"
    assert snapshot.timestamp == "2026-01-01T00:00:00+00:00"
    assert [room.available_capacity_units for room in snapshot.room_utilization] == [252, 6]
    assert snapshot.room("b").available_capacity_units == 6
    assert snapshot.room("missing") is None
    assert snapshot.equipment("autoclave-1").cycles_possible == 38
    assert snapshot.labor[0].batches_possible == 28
    assert snapshot.substrate.batches_possible == 55
    for room in snapshot.room_utilization:
        assert room.available_capacity_units >= 0
        assert 0 <= room.utilization_percent <= 100


def test_empty_resource_lists_produce_empty_snapshot_sections() -> None:
    snapshot = compute_capacity_snapshot(
        facility_id="empty",
        horizon_days=14,
        rooms=[],
        equipment=[],
        substrate=SUBSTRATE,
        labor=[],
    )

    assert snapshot.room_utilization == ()
    assert snapshot.equipment_availability == ()
    assert snapshot.labor == ()
    assert snapshot.timestamp


@pytest.mark.parametrize(
    ("kwargs", "field"),
    [
        ({"rooms": [RoomCapacityProfile("a", 10, 0)]}, "turnover_days"),
        ({"equipment": [EquipmentAvailabilityProfile("e", 6, 0)]}, "cycle_time_hours"),
        ({"labor": [LaborAvailabilityProfile("tech", 8, 0)]}, "hours_per_batch"),
        (
            {"substrate": SubstrateInventoryProfile(600, 0, 0.9)},
            "batch_size_units",
        ),
        ({"rooms": [RoomCapacityProfile("a", 10, 2, 1.5)]}, "historical_utilization"),
        ({"horizon_days": 0}, "horizon_days"),
    ],
)
def test_zero_denominators_are_rejected(kwargs, field) -> None:
    arguments = {
        "facility_id": "facility-1",
        "horizon_days": 14,
        "rooms": [],
        "equipment": [],
        "substrate": SUBSTRATE,
        "labor": [],
    }
    arguments.update(kwargs)

    with pytest.raises(InvalidProfileError) as exc_info:
        compute_capacity_snapshot(**arguments)

    assert exc_info.value.field == field
