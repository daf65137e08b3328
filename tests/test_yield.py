"""Tests for yield range calculation."""

from __future__ import annotations

import pytest

from backend.domain.constraints import ForecastingPolicy, InvalidProfileError, floor_count
from backend.domain.models import SubstrateInventoryProfile, ThroughputEstimate
from backend.services.yield_service import calculate_yield_ranges, substrate_batch_ceiling


def _estimate(workflow_id: str, batches_min: int, batches_max: int) -> ThroughputEstimate:
    return ThroughputEstimate(
        workflow_id=workflow_id,
        workflow_name=f"Workflow {workflow_id}",
        batches_min=batches_min,
        batches_max=batches_max,
        cycle_time_days=1.0,
        governing_constraint="time",
        explain=f"Cycle time 1.00d | Governing constraint: time | Max batches: {batches_max}",
    )


def test_volume_range_from_throughput() -> None:
    substrate = SubstrateInventoryProfile(600, 10, 0.93)

    (result,) = calculate_yield_ranges([_estimate("a", 4, 6)], substrate)

    assert result.batches_max == 6
    assert result.batches_min == 4
    assert result.volume_max == 55
    assert result.volume_min == 46


def test_batches_are_clamped_to_substrate_ceiling() -> None:
    substrate = SubstrateInventoryProfile(30, 10, 1.0)

    (result,) = calculate_yield_ranges([_estimate("a", 4, 6)], substrate)

    assert result.batches_max == 3
    assert result.batches_min == 3
    assert result.volume_max == 30
    assert result.volume_min == 25


def test_stalled_workflow_has_zero_volume() -> None:
    substrate = SubstrateInventoryProfile(600, 10, 0.93)

    (result,) = calculate_yield_ranges([_estimate("stalled", 0, 0)], substrate)

    assert result.volume_min == 0
    assert result.volume_max == 0


def test_yield_min_ratio_is_configurable() -> None:
    substrate = SubstrateInventoryProfile(100, 10, 1.0)

    (result,) = calculate_yield_ranges(
        [_estimate("a", 5, 10)],
        substrate,
        policy=ForecastingPolicy(yield_min_ratio=0.5),
    )

    assert result.volume_max == 100
    assert result.volume_min == 50


def test_yield_invariants_hold_across_estimates() -> None:
    substrate = SubstrateInventoryProfile(275, 12, 0.81)
    estimates = [_estimate(str(n), (n * 7) // 10, n) for n in range(0, 40, 3)]
    ceiling = floor_count(
        substrate_batch_ceiling(substrate)
        * substrate.batch_size_units
        * substrate.historical_completion_rate
    )

    results = calculate_yield_ranges(estimates, substrate)

    assert len(results) == len(estimates)
    for result in results:
        assert 0 <= result.volume_min <= result.volume_max
        assert result.volume_max <= ceiling
        assert 0 <= result.batches_min <= result.batches_max


def test_zero_batch_size_is_rejected() -> None:
    with pytest.raises(InvalidProfileError) as exc_info:
        calculate_yield_ranges([_estimate("a", 1, 1)], SubstrateInventoryProfile(100, 0, 1.0))

    assert exc_info.value.field == "batch_size_units"
