"""Bottleneck detection and summary insight derivation."""

from __future__ import annotations

from typing import Optional, Sequence

from backend.domain.constraints import ForecastingPolicy
from backend.domain.models import (
    Bottleneck,
    BottleneckAnalysis,
    CapacitySnapshot,
    ForecastingInsight,
    ThroughputEstimate,
    YieldRangeEstimate,
)


SEVERITY_BY_CATEGORY: dict[str, str] = {
    "room": "medium",
    "labor": "medium",
    "equipment": "high",
    "substrate": "high",
    "workflow": "high",
    "unknown-reference": "high",
}


def _finding(category: str, finding_type: str, finding_id: str, detail: str) -> Bottleneck:
    return Bottleneck(
        type=finding_type,
        id=finding_id,
        severity=SEVERITY_BY_CATEGORY[category],
        detail=detail,
    )


def analyze_bottlenecks(
    snapshot: CapacitySnapshot,
    throughput: Sequence[ThroughputEstimate],
    *,
    policy: Optional[ForecastingPolicy] = None,
) -> BottleneckAnalysis:
    threshold = (policy or ForecastingPolicy()).bottleneck_threshold
    findings: list[Bottleneck] = []

    for room in snapshot.room_utilization:
        if room.constrained_by != "none":
            findings.append(
                _finding("room", "room", room.room_id, f"Room limited by {room.constrained_by}")
            )

    for item in snapshot.equipment_availability:
        if item.cycles_possible < threshold:
            findings.append(
                _finding(
                    "equipment",
                    "equipment",
                    item.equipment_id,
                    "Low equipment cycles available",
                )
            )

    for role in snapshot.labor:
        if role.batches_possible < threshold:
            findings.append(_finding("labor", "labor", role.role, "Labor hours tight"))

    if snapshot.substrate.batches_possible < threshold:
        findings.append(
            _finding("substrate", "substrate", "substrate", "Substrate volume constrained")
        )

    for estimate in throughput:
        if estimate.batches_max == 0:
            findings.append(
                _finding(
                    "workflow",
                    "workflow",
                    estimate.workflow_id,
                    f"Workflow stalled by {estimate.governing_constraint} constraint",
                )
            )

    for estimate in throughput:
        for room_id in estimate.unknown_rooms:
            findings.append(
                _finding(
                    "unknown-reference",
                    "unknown-room",
                    room_id,
                    f"Workflow {estimate.workflow_id} references unknown room {room_id}",
                )
            )
        for equipment_id in estimate.unknown_equipment:
            findings.append(
                _finding(
                    "unknown-reference",
                    "unknown-equipment",
                    equipment_id,
                    f"Workflow {estimate.workflow_id} references unknown equipment {equipment_id}",
                )
            )

    return BottleneckAnalysis(
        facility_id=snapshot.facility_id,
        timestamp=snapshot.timestamp,
        bottlenecks=tuple(findings),
    )


def build_insights(
    snapshot: CapacitySnapshot,
    analysis: BottleneckAnalysis,
    throughput: Sequence[ThroughputEstimate],
    yield_ranges: Sequence[YieldRangeEstimate],
    *,
    policy: Optional[ForecastingPolicy] = None,
    timestamp: Optional[str] = None,
) -> tuple[ForecastingInsight, ...]:
    """Summarise findings into at most one insight per category."""
    resolved_policy = policy or ForecastingPolicy()
    facility_id = snapshot.facility_id
    now = timestamp or snapshot.timestamp
    insights: list[ForecastingInsight] = []

    if analysis.bottlenecks:
        insights.append(
            ForecastingInsight(
                insight_id=f"{facility_id}-bottlenecks",
                facility_id=facility_id,
                timestamp=now,
                severity="high",
                category="bottleneck",
                summary="Bottlenecks identified",
                details=f"{len(analysis.bottlenecks)} bottleneck(s) require attention",
                related_ids=tuple(item.id for item in analysis.bottlenecks),
            )
        )

    low_throughput = [
        estimate
        for estimate in throughput
        if estimate.batches_max < resolved_policy.low_throughput_threshold
    ]
    if low_throughput:
        insights.append(
            ForecastingInsight(
                insight_id=f"{facility_id}-throughput",
                facility_id=facility_id,
                timestamp=now,
                severity="medium",
                category="throughput",
                summary="Throughput limited",
                details="Low throughput workflows: "
                + ", ".join(estimate.workflow_name for estimate in low_throughput),
                related_ids=tuple(estimate.workflow_id for estimate in low_throughput),
            )
        )

    zero_yield = [item for item in yield_ranges if item.volume_max == 0]
    if zero_yield:
        insights.append(
            ForecastingInsight(
                insight_id=f"{facility_id}-yield",
                facility_id=facility_id,
                timestamp=now,
                severity="medium",
                category="yield",
                summary="Yield ranges at zero",
                details="No producible volume for: "
                + ", ".join(item.workflow_name for item in zero_yield),
                related_ids=tuple(item.workflow_id for item in zero_yield),
            )
        )

    return tuple(insights)
