"""Domain models for deterministic capacity, throughput and yield forecasting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


CONSTRAINT_KEYS: tuple[str, ...] = ("time", "room", "equipment", "labor", "substrate")


@dataclass(frozen=True)
class RoomCapacityProfile:
    room_id: str
    capacity_units: int
    turnover_days: float
    historical_utilization: float = 1.0


@dataclass(frozen=True)
class EquipmentAvailabilityProfile:
    equipment_id: str
    available_hours_per_day: float
    cycle_time_hours: float
    historical_availability: float = 1.0


@dataclass(frozen=True)
class SubstrateInventoryProfile:
    volume_units: float
    batch_size_units: float
    historical_completion_rate: float


@dataclass(frozen=True)
class LaborAvailabilityProfile:
    role: str
    hours_available_per_day: float
    hours_per_batch: float


@dataclass(frozen=True)
class WorkflowTimingProfile:
    workflow_id: str
    name: str
    duration_days: float
    room_sequence: tuple[str, ...] = ()
    equipment_needed: tuple[str, ...] = ()
    historical_delay_factor: float = 0.0


@dataclass(frozen=True)
class ForecastingEngineInput:
    facility_id: str
    horizon_days: float
    rooms: tuple[RoomCapacityProfile, ...]
    equipment: tuple[EquipmentAvailabilityProfile, ...]
    substrate: SubstrateInventoryProfile
    labor: tuple[LaborAvailabilityProfile, ...]
    workflows: tuple[WorkflowTimingProfile, ...]


@dataclass(frozen=True)
class RoomUtilization:
    room_id: str
    available_capacity_units: int
    utilization_percent: int
    constrained_by: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "available_capacity_units": self.available_capacity_units,
            "utilization_percent": self.utilization_percent,
            "constrained_by": self.constrained_by,
        }


@dataclass(frozen=True)
class EquipmentAvailability:
    equipment_id: str
    available_hours: float
    cycles_possible: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "equipment_id": self.equipment_id,
            "available_hours": self.available_hours,
            "cycles_possible": self.cycles_possible,
        }


@dataclass(frozen=True)
class SubstrateCapacity:
    volume_units: float
    raw_batches: int
    batches_possible: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "volume_units": self.volume_units,
            "raw_batches": self.raw_batches,
            "batches_possible": self.batches_possible,
        }


@dataclass(frozen=True)
class LaborCapacity:
    role: str
    hours_available: float
    batches_possible: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "hours_available": self.hours_available,
            "batches_possible": self.batches_possible,
        }


@dataclass(frozen=True)
class CapacitySnapshot:
    """Point-in-time view of facility capacity over one planning horizon."""

    facility_id: str
    horizon_days: float
    timestamp: str
    room_utilization: tuple[RoomUtilization, ...]
    equipment_availability: tuple[EquipmentAvailability, ...]
    substrate: SubstrateCapacity
    labor: tuple[LaborCapacity, ...]

    def room(self, room_id: str) -> Optional[RoomUtilization]:
        for room in self.room_utilization:
            if room.room_id == room_id:
                return room
        return None

    def equipment(self, equipment_id: str) -> Optional[EquipmentAvailability]:
        for item in self.equipment_availability:
            if item.equipment_id == equipment_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "facility_id": self.facility_id,
            "horizon_days": self.horizon_days,
            "timestamp": self.timestamp,
            "room_utilization": [room.to_dict() for room in self.room_utilization],
            "equipment_availability": [
                item.to_dict() for item in self.equipment_availability
            ],
            "substrate": self.substrate.to_dict(),
            "labor": [role.to_dict() for role in self.labor],
        }


@dataclass(frozen=True)
class ThroughputEstimate:
    workflow_id: str
    workflow_name: str
    batches_min: int
    batches_max: int
    cycle_time_days: float
    governing_constraint: str
    explain: str
    # Candidate limits in CONSTRAINT_KEYS order; None means unconstrained.
    constraint_values: tuple[tuple[str, Optional[int]], ...] = ()
    unknown_rooms: tuple[str, ...] = ()
    unknown_equipment: tuple[str, ...] = ()

    @property
    def constraints(self) -> dict[str, Optional[int]]:
        return dict(self.constraint_values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "batches_min": self.batches_min,
            "batches_max": self.batches_max,
            "cycle_time_days": self.cycle_time_days,
            "governing_constraint": self.governing_constraint,
            "constraint_values": self.constraints,
            "unknown_rooms": list(self.unknown_rooms),
            "unknown_equipment": list(self.unknown_equipment),
            "explain": self.explain,
        }


@dataclass(frozen=True)
class YieldRangeEstimate:
    workflow_id: str
    workflow_name: str
    batches_min: int
    batches_max: int
    volume_min: int
    volume_max: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "workflow_name": self.workflow_name,
            "batches_min": self.batches_min,
            "batches_max": self.batches_max,
            "volume_min": self.volume_min,
            "volume_max": self.volume_max,
        }


@dataclass(frozen=True)
class Bottleneck:
    type: str
    id: str
    severity: str
    detail: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type,
            "id": self.id,
            "severity": self.severity,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class BottleneckAnalysis:
    facility_id: str
    timestamp: str
    bottlenecks: tuple[Bottleneck, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "facility_id": self.facility_id,
            "timestamp": self.timestamp,
            "bottlenecks": [item.to_dict() for item in self.bottlenecks],
        }


@dataclass(frozen=True)
class ForecastingInsight:
    insight_id: str
    facility_id: str
    timestamp: str
    severity: str
    category: str
    summary: str
    details: str
    related_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "insight_id": self.insight_id,
            "facility_id": self.facility_id,
            "timestamp": self.timestamp,
            "severity": self.severity,
            "category": self.category,
            "summary": self.summary,
            "details": self.details,
            "related_ids": list(self.related_ids),
        }


@dataclass(frozen=True)
class ForecastingReport:
    report_id: str
    facility_id: str
    timestamp: str
    capacity: CapacitySnapshot
    throughput: tuple[ThroughputEstimate, ...]
    yield_ranges: tuple[YieldRangeEstimate, ...]
    bottlenecks: BottleneckAnalysis
    insights: tuple[ForecastingInsight, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_id": self.report_id,
            "facility_id": self.facility_id,
            "timestamp": self.timestamp,
            "capacity": self.capacity.to_dict(),
            "throughput": [item.to_dict() for item in self.throughput],
            "yield_ranges": [item.to_dict() for item in self.yield_ranges],
            "bottlenecks": self.bottlenecks.to_dict(),
            "insights": [item.to_dict() for item in self.insights],
        }


@dataclass(frozen=True)
class ForecastingLogEntry:
    entry_id: str
    timestamp: str
    category: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }
