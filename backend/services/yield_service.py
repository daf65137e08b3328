"""Yield range calculation from throughput and substrate limits."""

from __future__ import annotations

from typing import Optional, Sequence

from backend.domain.constraints import (
    ForecastingPolicy,
    floor_count,
    validate_forecasting_policy,
    validate_substrate_profile,
)
from backend.domain.models import (
    SubstrateInventoryProfile,
    ThroughputEstimate,
    YieldRangeEstimate,
)


def substrate_batch_ceiling(substrate: SubstrateInventoryProfile) -> int:
    return max(0, floor_count(substrate.volume_units / substrate.batch_size_units))


def calculate_yield_range(
    estimate: ThroughputEstimate,
    substrate: SubstrateInventoryProfile,
    *,
    policy: ForecastingPolicy,
) -> YieldRangeEstimate:
    max_batches = min(estimate.batches_max, substrate_batch_ceiling(substrate))
    min_batches = min(estimate.batches_min, max_batches)
    volume_max = max(
        0,
        floor_count(
            max_batches
            * substrate.batch_size_units
            * substrate.historical_completion_rate
        ),
    )
    volume_min = max(0, floor_count(volume_max * policy.yield_min_ratio))
    return YieldRangeEstimate(
        workflow_id=estimate.workflow_id,
        workflow_name=estimate.workflow_name,
        batches_min=min_batches,
        batches_max=max_batches,
        volume_min=volume_min,
        volume_max=volume_max,
    )


def calculate_yield_ranges(
    throughput: Sequence[ThroughputEstimate],
    substrate: SubstrateInventoryProfile,
    *,
    policy: Optional[ForecastingPolicy] = None,
) -> tuple[YieldRangeEstimate, ...]:
    resolved_policy = policy or ForecastingPolicy()
    validate_forecasting_policy(resolved_policy)
    validate_substrate_profile(substrate)
    return tuple(
        calculate_yield_range(estimate, substrate, policy=resolved_policy)
        for estimate in throughput
    )
