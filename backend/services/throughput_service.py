"""Throughput estimation bounded by the tightest constraining resource."""

from __future__ import annotations

from typing import Optional, Sequence

from backend.domain.constraints import (
    ForecastingPolicy,
    floor_count,
    validate_forecasting_policy,
    validate_horizon,
    workflow_cycle_time_days,
)
from backend.domain.models import (
    CONSTRAINT_KEYS,
    CapacitySnapshot,
    ThroughputEstimate,
    WorkflowTimingProfile,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def format_explain(cycle_time_days: float, governing_constraint: str, batches_max: int) -> str:
    return (
        f"Cycle time {cycle_time_days:.2f}d | "
        f"Governing constraint: {governing_constraint} | "
        f"Max batches: {batches_max}"
    )


def _min_or_none(values: Sequence[int]) -> Optional[int]:
    return min(values) if values else None


def _room_constraint(
    snapshot: CapacitySnapshot,
    workflow: WorkflowTimingProfile,
) -> tuple[Optional[int], tuple[str, ...]]:
    values: list[int] = []
    unknown: list[str] = []
    for room_id in workflow.room_sequence:
        room = snapshot.room(room_id)
        if room is None:
            unknown.append(room_id)
            values.append(0)
        else:
            values.append(room.available_capacity_units)
    return _min_or_none(values), tuple(unknown)


def _equipment_constraint(
    snapshot: CapacitySnapshot,
    workflow: WorkflowTimingProfile,
) -> tuple[Optional[int], tuple[str, ...]]:
    values: list[int] = []
    unknown: list[str] = []
    for equipment_id in workflow.equipment_needed:
        item = snapshot.equipment(equipment_id)
        if item is None:
            unknown.append(equipment_id)
            values.append(0)
        else:
            values.append(item.cycles_possible)
    return _min_or_none(values), tuple(unknown)


def estimate_workflow(
    snapshot: CapacitySnapshot,
    workflow: WorkflowTimingProfile,
    *,
    horizon_days: float,
    policy: ForecastingPolicy,
) -> ThroughputEstimate:
    cycle_time_days = workflow_cycle_time_days(workflow)
    room_value, unknown_rooms = _room_constraint(snapshot, workflow)
    equipment_value, unknown_equipment = _equipment_constraint(snapshot, workflow)

    candidates: dict[str, Optional[int]] = {
        "time": floor_count(horizon_days / cycle_time_days),
        "room": room_value,
        "equipment": equipment_value,
        "labor": _min_or_none([role.batches_possible for role in snapshot.labor]),
        "substrate": snapshot.substrate.batches_possible,
    }
    bounded = [value for value in candidates.values() if value is not None]
    batches_max = max(0, min(bounded))
    batches_min = max(
        0,
        min(batches_max, floor_count(batches_max * policy.throughput_min_ratio)),
    )
    governing_constraint = next(
        key for key in CONSTRAINT_KEYS if candidates[key] == batches_max
    )

    if unknown_rooms or unknown_equipment:
        logger.warning(
            "Workflow references unknown resources | workflow_id=%s | rooms=%s | equipment=%s",
            workflow.workflow_id,
            list(unknown_rooms),
            list(unknown_equipment),
        )

    return ThroughputEstimate(
        workflow_id=workflow.workflow_id,
        workflow_name=workflow.name,
        batches_min=batches_min,
        batches_max=batches_max,
        cycle_time_days=cycle_time_days,
        governing_constraint=governing_constraint,
        explain=format_explain(cycle_time_days, governing_constraint, batches_max),
        constraint_values=tuple((key, candidates[key]) for key in CONSTRAINT_KEYS),
        unknown_rooms=unknown_rooms,
        unknown_equipment=unknown_equipment,
    )


def estimate_throughput(
    snapshot: CapacitySnapshot,
    workflows: Sequence[WorkflowTimingProfile],
    *,
    horizon_days: float,
    policy: Optional[ForecastingPolicy] = None,
) -> tuple[ThroughputEstimate, ...]:
    """Return one estimate per workflow, in input order."""
    resolved_policy = policy or ForecastingPolicy()
    validate_forecasting_policy(resolved_policy)
    validate_horizon(horizon_days)

    estimates = tuple(
        estimate_workflow(
            snapshot,
            workflow,
            horizon_days=horizon_days,
            policy=resolved_policy,
        )
        for workflow in workflows
    )
    logger.info(
        "Throughput estimated | facility_id=%s | workflows=%s | stalled=%s",
        snapshot.facility_id,
        len(estimates),
        sum(1 for estimate in estimates if estimate.batches_max == 0),
    )
    return estimates
